# app/finance.py
"""Dashboard arithmetic over appointment and expense rows. Integer cents, one currency."""
import calendar
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import AppointmentOut, DayPoint, FinanceSummary, ServiceRank

PAID = "paid"
PARTIAL = "partial"
SCHEDULED = "scheduled"

BY_COUNT = "count"
BY_PAID = "paid"
RANK_MODES = (BY_COUNT, BY_PAID)

WEEK = "week"
MONTH = "month"
PERIODS = (WEEK, MONTH)


def _cents(value: Any) -> int:
    return int(value or 0)


def appointment_total(price_cents: Optional[int], discount_cents: Optional[int]) -> int:
    return max(_cents(price_cents) - _cents(discount_cents), 0)


def remaining(total_cents: int, paid_cents: Optional[int]) -> int:
    return max(total_cents - _cents(paid_cents), 0)


def payment_status(total_cents: int, paid_cents: Optional[int]) -> str:
    paid = _cents(paid_cents)
    if paid <= 0:
        return SCHEDULED
    if paid >= total_cents:
        return PAID
    return PARTIAL


def month_bounds(month: str) -> Tuple[date, date]:
    """'2025-02' -> (2025-02-01, 2025-02-28)."""
    try:
        year, mon = (int(p) for p in month.split("-"))
        last = calendar.monthrange(year, mon)[1]
    except (ValueError, calendar.IllegalMonthError) as e:
        raise ValueError(f"Invalid month {month!r}, expected YYYY-MM") from e
    return date(year, mon, 1), date(year, mon, last)


def current_month(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{today.year}-{today.month:02d}"


def period_bounds(period: str, today: Optional[date] = None) -> Tuple[date, date]:
    """Week (from Monday) or month to date, both ending today."""
    today = today or date.today()
    if period == WEEK:
        return today - timedelta(days=today.weekday()), today
    if period == MONTH:
        return today.replace(day=1), today
    raise ValueError(f"Unknown period {period!r}, expected one of {PERIODS}")


def _service_name(row: Dict[str, Any]) -> Optional[str]:
    # embedded relation comes back as an object or a one-item list
    services = row.get("services")
    if isinstance(services, list):
        services = services[0] if services else None
    if isinstance(services, dict):
        return services.get("name")
    return None


def to_appointment_out(row: Dict[str, Any]) -> AppointmentOut:
    total = appointment_total(row.get("price_cents"), row.get("discount_cents"))
    paid = _cents(row.get("paid_cents"))
    return AppointmentOut(
        id=row.get("id"),
        service_id=row.get("service_id"),
        service_name=_service_name(row),
        client_name=row.get("client_name"),
        client_phone=row.get("client_phone"),
        date=row.get("date"),
        time=row.get("time"),
        starts_at=row.get("starts_at"),
        ends_at=row.get("ends_at"),
        price_cents=_cents(row.get("price_cents")),
        discount_cents=_cents(row.get("discount_cents")),
        paid_cents=paid,
        total_cents=total,
        remaining_cents=remaining(total, paid),
        payment_method=row.get("payment_method"),
        status=payment_status(total, paid),
    )


def _day_key(row: Dict[str, Any]) -> str:
    return (row.get("date") or row.get("starts_at") or "")[:10]


def _starts_key(row: Dict[str, Any]) -> str:
    return row.get("starts_at") or f"{row.get('date') or ''}T{row.get('time') or ''}"


def retention_pct(visits: Dict[str, int]) -> int:
    """Share of distinct clients with 2+ visits, rounded half up."""
    total = len(visits)
    if not total:
        return 0
    returning = sum(1 for n in visits.values() if n >= 2)
    return (returning * 200 + total) // (2 * total)


def _ranked(ranks: Iterable[ServiceRank], rank_by: str) -> List[ServiceRank]:
    if rank_by == BY_COUNT:
        return sorted(ranks, key=lambda r: (-r.count, -r.paid_cents, r.name))
    if rank_by == BY_PAID:
        return sorted(ranks, key=lambda r: (-r.paid_cents, -r.count, r.name))
    raise ValueError(f"Unknown ranking {rank_by!r}")


def summarize(
    appointments: Iterable[Dict[str, Any]],
    expenses: Iterable[Dict[str, Any]],
    start: date,
    end: date,
    *,
    period: Optional[str] = None,
    rank_by: str = BY_COUNT,
    top: int = 6,
    latest: int = 8,
) -> FinanceSummary:
    rows = list(appointments)
    forecast = paid = 0
    by_service: Dict[str, ServiceRank] = {}
    by_day: Dict[str, List[int]] = {
        (start + timedelta(days=i)).isoformat(): [0, 0] for i in range((end - start).days + 1)
    }
    phones: Dict[str, int] = {}

    for row in rows:
        total = appointment_total(row.get("price_cents"), row.get("discount_cents"))
        row_paid = max(_cents(row.get("paid_cents")), 0)
        forecast += total
        paid += row_paid

        day = by_day.get(_day_key(row))
        if day is not None:
            day[0] += total
            day[1] += row_paid

        name = _service_name(row) or "Sem serviço"
        rank = by_service.setdefault(name, ServiceRank(name=name, count=0, forecast_cents=0, paid_cents=0))
        rank.count += 1
        rank.forecast_cents += total
        rank.paid_cents += row_paid

        phone = (row.get("client_phone") or "").strip()
        if phone:
            phones[phone] = phones.get(phone, 0) + 1

    costs = sum(_cents(e.get("amount_cents")) for e in expenses)
    count = len(rows)

    return FinanceSummary(
        period=period or f"{start.year}-{start.month:02d}",
        start=start,
        end=end,
        appointments=count,
        forecast_cents=forecast,
        paid_cents=paid,
        receivable_cents=max(forecast - paid, 0),
        costs_cents=costs,
        profit_cents=paid - costs,
        average_ticket_cents=paid // count if count else 0,
        returning_clients=sum(1 for n in phones.values() if n >= 2),
        retention_pct=retention_pct(phones),
        rank_by=rank_by,
        ranking=_ranked(by_service.values(), rank_by)[:top],
        series=[
            DayPoint(
                date=date.fromisoformat(k),
                forecast_cents=f,
                paid_cents=p,
                receivable_cents=max(f - p, 0),
            )
            for k, (f, p) in by_day.items()
        ],
        latest=[to_appointment_out(r) for r in sorted(rows, key=_starts_key, reverse=True)[:latest]],
    )
