# app/session.py
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Set

from .availability import available_times, fetch_blocked, normalize_time
from .booking import BookingRequest, BookingTransactor, validate_request
from .errors import (
    BookingInProgressError,
    ConflictError,
    InfraError,
    LocalValidationError,
    StaleSelectionError,
)
from .models import Service
from .slots import GRID, BusinessWindow, SlotGrid

log = logging.getLogger("uvicorn.error")


class BookingSession:
    """
    State of one client's pass through the public agenda.

    Holds the selected service and date, the candidate grid for that service,
    the last blocked times read from the store and the client's chosen time.
    The blocked set is only a cache: it is re-read on every selection change
    and right before a submit, and a fetch that returns after the selection
    moved on is dropped.
    """

    def __init__(
        self,
        store,
        professional_id: str,
        services: Iterable[Service],
        window: Optional[BusinessWindow] = None,
        policy: str = GRID,
    ):
        self.store = store
        self.professional_id = professional_id
        self.services: Dict[str, Service] = {s.id: s for s in services}
        self.window = window or BusinessWindow()
        self.policy = policy

        self.service_id: Optional[str] = None
        self.date: Optional[date] = None
        self.candidates: List[str] = []
        self.blocked: Set[str] = set()
        self.selection: Optional[str] = None
        self.last_booking: Optional[Dict[str, Any]] = None

        self.transactor = BookingTransactor(store)
        self._generation = 0
        self._submitting = False

    @property
    def service(self) -> Optional[Service]:
        if self.service_id is None:
            return None
        return self.services.get(self.service_id)

    @property
    def available(self) -> List[str]:
        return available_times(self.candidates, self.blocked)

    @property
    def submitting(self) -> bool:
        return self._submitting or self.transactor.busy

    def _selection_changed(self) -> None:
        self._generation += 1
        self.blocked = set()
        self.selection = None
        self.transactor.reset()

    def select_service(self, service_id: Optional[str]) -> None:
        self.service_id = service_id
        service = self.service
        if service is None or not service.active:
            self.candidates = []
        else:
            self.candidates = list(SlotGrid(service.duration_minutes, self.window, self.policy))
        self._selection_changed()

    def select_date(self, day: date) -> None:
        self.date = day
        self._selection_changed()

    async def refresh(self) -> bool:
        """Re-read blocked times. Returns False when the result was discarded."""
        if self.service_id is None or self.date is None:
            self.blocked = set()
            return True

        issued = (self._generation, self.service_id, self.date)
        blocked = await fetch_blocked(self.store, self.professional_id, self.service_id, self.date)
        if issued != (self._generation, self.service_id, self.date):
            log.debug("dropping availability for %s/%s, selection changed", issued[1], issued[2])
            return False

        self.blocked = set(blocked)
        if self.selection is not None and self.selection in self.blocked:
            self.selection = None
        return True

    def choose(self, time: str) -> str:
        service = self.service
        if service is None or not service.active:
            raise LocalValidationError("service_id", "Selecione um serviço válido.")
        t = normalize_time(time)
        if t not in self.available:
            raise LocalValidationError("time", "Selecione um horário disponível.")
        self.selection = t
        self.transactor.reset()
        return t

    def _request(self, client_name: str, client_phone: str) -> BookingRequest:
        if self.service_id is None or self.date is None:
            raise LocalValidationError("service_id", "Selecione um serviço e uma data.")
        if self.selection is None:
            raise LocalValidationError("time", "Selecione um horário disponível.")
        return BookingRequest(
            professional_id=self.professional_id,
            service_id=self.service_id,
            date=self.date,
            time=self.selection,
            client_name=client_name,
            client_phone=client_phone,
        )

    async def submit(self, client_name: str, client_phone: str) -> Dict[str, Any]:
        if self.submitting:
            raise BookingInProgressError()

        request = self._request(client_name, client_phone)
        validate_request(request, self.service, self.candidates)

        self._submitting = True
        try:
            if not await self.refresh():
                raise StaleSelectionError()
            created = await self.transactor.submit(request, self.service, self.candidates, self.blocked)
        except (StaleSelectionError, ConflictError):
            self.selection = None
            await self._refresh_after_rejection()
            raise
        finally:
            self._submitting = False

        self.selection = None
        self.last_booking = created
        return created

    async def _refresh_after_rejection(self) -> None:
        try:
            await self.refresh()
        except InfraError:
            # the caller still sees the rejection that triggered the refresh
            log.warning("availability refresh after rejected booking failed")
