# app/booking.py
"""
Booking commit for the public agenda.

The appointments table carries a unique (user_id, service_id, date, time)
constraint and that constraint is the only authority on whether a slot is
free. Everything held in memory here (candidate grid, blocked times) is a cache
used to reject obviously bad requests before touching the store; a rejected
insert is the normal outcome of two clients racing for the same slot and is
reported as a ConflictError, not as a failure. Writes are never retried.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Container, Dict, MutableSet, Optional

from .availability import normalize_time
from .errors import (
    BookingError,
    BookingInProgressError,
    LocalValidationError,
    StaleSelectionError,
    classify_store_error,
    dump_store_error,
)
from .models import Service
from .store import STORE_ERRORS

log = logging.getLogger("uvicorn.error")

MIN_NAME_LEN = 2
MIN_PHONE_LEN = 8
SCHEDULED = "scheduled"


class BookingState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    COMMITTING = "committing"
    COMMITTED = "committed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class BookingRequest:
    professional_id: str
    service_id: str
    date: date
    time: str
    client_name: str
    client_phone: str


def local_datetime(day: date, hhmm: str) -> datetime:
    # Wall clock of the business, taken literally (naive, no tz conversion)
    hh, mm = normalize_time(hhmm).split(":")
    return datetime(day.year, day.month, day.day, int(hh), int(mm))


def build_appointment_row(request: BookingRequest, service: Service) -> Dict[str, Any]:
    time = normalize_time(request.time)
    starts_at = local_datetime(request.date, time)
    ends_at = starts_at + timedelta(minutes=service.duration_minutes)
    return {
        "user_id": request.professional_id,
        "service_id": service.id,
        "client_name": request.client_name.strip(),
        "client_phone": request.client_phone.strip(),
        "date": request.date.isoformat(),
        "time": time,
        "starts_at": starts_at.isoformat(),
        "ends_at": ends_at.isoformat(),
        # price snapshot, later edits to the service don't touch it
        "price_cents": service.price_cents or 0,
        "status": SCHEDULED,
    }


def validate_request(request: BookingRequest, service: Optional[Service], candidates: Container[str]) -> str:
    """Raises LocalValidationError; returns the normalized time."""
    if service is None or not service.active or service.id != request.service_id:
        raise LocalValidationError("service_id", "Selecione um serviço válido.")
    time = normalize_time(request.time)
    if not time or time not in candidates:
        raise LocalValidationError("time", "Selecione um horário disponível.")
    if len(request.client_name.strip()) < MIN_NAME_LEN:
        raise LocalValidationError("client_name", "Informe seu nome.")
    # length only, not a phone format check
    if len(request.client_phone.strip()) < MIN_PHONE_LEN:
        raise LocalValidationError("client_phone", "Informe um WhatsApp válido.")
    return time


class BookingTransactor:
    def __init__(self, store):
        self.store = store
        self.state = BookingState.IDLE
        self.last_error: Optional[BookingError] = None

    def reset(self) -> None:
        if not self.busy:
            self.state = BookingState.IDLE
            self.last_error = None

    @property
    def busy(self) -> bool:
        return self.state in (BookingState.VALIDATING, BookingState.COMMITTING)

    async def submit(
        self,
        request: BookingRequest,
        service: Optional[Service],
        candidates: Container[str],
        blocked: MutableSet[str],
    ) -> Dict[str, Any]:
        if self.busy:
            raise BookingInProgressError()

        self.state = BookingState.VALIDATING
        self.last_error = None
        try:
            time = validate_request(request, service, candidates)
            if time in blocked:
                raise StaleSelectionError()

            row = build_appointment_row(request, service)
            self.state = BookingState.COMMITTING
            try:
                created = await self.store.insert_appointment(row)
            except STORE_ERRORS as e:
                dump_store_error("[submit] error", e)
                raise classify_store_error(e) from e
        except BookingError as e:
            self.state = BookingState.REJECTED
            self.last_error = e
            log.info(
                "booking rejected kind=%s user=%s service=%s date=%s time=%s",
                e.kind, request.professional_id, request.service_id, request.date, request.time,
            )
            raise
        except Exception:
            self.state = BookingState.REJECTED
            raise

        blocked.add(time)
        self.state = BookingState.COMMITTED
        log.info(
            "booking committed id=%s user=%s service=%s date=%s time=%s",
            created.get("id"), request.professional_id, request.service_id, request.date, time,
        )
        return created
