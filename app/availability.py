# app/availability.py
from datetime import date
from typing import FrozenSet, Iterable, List

from .errors import InfraError, dump_store_error
from .store import STORE_ERRORS


def normalize_time(value: str) -> str:
    """'8:0' -> '08:00'. Seconds are dropped; values without a colon give ''."""
    if not value:
        return ""
    parts = str(value).strip().split(":")
    if len(parts) < 2:
        return ""
    return f"{parts[0].zfill(2)}:{parts[1].zfill(2)}"


def blocked_from_rows(times: Iterable[str]) -> FrozenSet[str]:
    normalized = (normalize_time(t) for t in times)
    return frozenset(t for t in normalized if t and ":" in t)


async def fetch_blocked(store, professional_id: str, service_id: str, day: date) -> FrozenSet[str]:
    """Point-in-time read; the result may be stale as soon as it returns."""
    try:
        times = await store.fetch_booked_times(professional_id, service_id, day)
    except STORE_ERRORS as e:
        dump_store_error("[fetch_blocked] error", e)
        raise InfraError() from e
    return blocked_from_rows(times)


def available_times(candidates: Iterable[str], blocked: Iterable[str]) -> List[str]:
    taken = set(blocked)
    return [t for t in candidates if t not in taken]
