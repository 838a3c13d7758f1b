from __future__ import annotations

import asyncio
import uuid
from datetime import date
from typing import Any, Awaitable, Callable, Optional

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from app.auth import current_professional_id
from app.deps import get_notifier, get_store
from app.main import app
from app.models import Service

PRO_ID = "pro-1"
OTHER_PRO_ID = "pro-2"
DAY = date(2030, 5, 14)


def unique_violation() -> APIError:
    return APIError(
        {
            "message": 'duplicate key value violates unique constraint "appointments_slot_key"',
            "code": "23505",
            "details": "Key (user_id, service_id, date, \"time\") already exists.",
            "hint": "",
        }
    )


class FakeStore:
    """In-memory stand-in for the Supabase tables, with the slot uniqueness constraint."""

    def __init__(self) -> None:
        self.profiles: list[dict[str, Any]] = [
            {"id": PRO_ID, "name": "Ana Souza", "slug": "ana", "company_name": "Studio Ana"},
            {"id": OTHER_PRO_ID, "name": "Bruno", "slug": "bruno", "company_name": None},
        ]
        self.services: list[dict[str, Any]] = [
            {"id": "corte", "user_id": PRO_ID, "name": "Corte", "duration_minutes": 30, "price_cents": 5000, "active": True},
            {"id": "coloracao", "user_id": PRO_ID, "name": "Coloração", "duration_minutes": 90, "price_cents": None, "active": True},
            {"id": "antigo", "user_id": PRO_ID, "name": "Antigo", "duration_minutes": 60, "price_cents": 1000, "active": False},
            {"id": "barba", "user_id": OTHER_PRO_ID, "name": "Barba", "duration_minutes": 30, "price_cents": 3000, "active": True},
        ]
        self.appointments: list[dict[str, Any]] = []
        self.expenses: list[dict[str, Any]] = []
        self.closings: list[dict[str, Any]] = []

        self.fetch_calls = 0
        self.insert_calls = 0
        self.fetch_gate: Optional[asyncio.Event] = None
        self.before_insert: Optional[Callable[[dict[str, Any]], Awaitable[None]]] = None
        self.insert_error: Optional[Exception] = None
        self.read_error: Optional[Exception] = None

    # helpers ----------------------------------------------------------------
    def book(self, service_id: str, day: date, time: str, user_id: str = PRO_ID, **extra: Any) -> dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "service_id": service_id,
            "date": day.isoformat(),
            "time": time,
            "client_name": "Outra Cliente",
            "client_phone": "11988887777",
            "price_cents": 5000,
            "status": "scheduled",
            **extra,
        }
        self.appointments.append(row)
        return row

    def service_models(self, user_id: str = PRO_ID) -> list[Service]:
        return [Service(**s) for s in self.services if s["user_id"] == user_id]

    def _check_read(self) -> None:
        if self.read_error is not None:
            raise self.read_error

    # public agenda ----------------------------------------------------------
    async def get_profile_by_slug(self, slug: str) -> Optional[dict[str, Any]]:
        self._check_read()
        return next((p for p in self.profiles if p["slug"] == slug), None)

    async def list_active_services(self, professional_id: str) -> list[dict[str, Any]]:
        self._check_read()
        rows = [s for s in self.services if s["user_id"] == professional_id and s["active"]]
        return sorted(rows, key=lambda s: s["name"])

    async def fetch_booked_times(self, professional_id: str, service_id: str, day: date) -> list[str]:
        self.fetch_calls += 1
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        await asyncio.sleep(0)
        self._check_read()
        return [
            a["time"]
            for a in self.appointments
            if a["user_id"] == professional_id and a["service_id"] == service_id and a["date"] == day.isoformat()
        ]

    async def insert_appointment(self, row: dict[str, Any]) -> dict[str, Any]:
        self.insert_calls += 1
        await asyncio.sleep(0)
        if self.before_insert is not None:
            await self.before_insert(row)
        if self.insert_error is not None:
            raise self.insert_error
        key = (row["user_id"], row["service_id"], row["date"], row["time"])
        if any((a["user_id"], a["service_id"], a["date"], a["time"]) == key for a in self.appointments):
            raise unique_violation()
        created = {"id": str(uuid.uuid4()), **row}
        self.appointments.append(created)
        return created

    # dashboard --------------------------------------------------------------
    async def list_services(self, professional_id: str) -> list[dict[str, Any]]:
        self._check_read()
        return [s for s in self.services if s["user_id"] == professional_id]

    async def get_service(self, professional_id: str, service_id: str) -> Optional[dict[str, Any]]:
        return next((s for s in self.services if s["user_id"] == professional_id and s["id"] == service_id), None)

    async def create_service(self, professional_id: str, values: dict[str, Any]) -> dict[str, Any]:
        row = {"id": str(uuid.uuid4()), "user_id": professional_id, **values}
        self.services.append(row)
        return row

    async def set_service_active(self, professional_id: str, service_id: str, active: bool) -> Optional[dict[str, Any]]:
        row = await self.get_service(professional_id, service_id)
        if row is not None:
            row["active"] = active
        return row

    async def list_appointments(self, professional_id: str, start: date, end: date) -> list[dict[str, Any]]:
        self._check_read()
        rows = [
            a
            for a in self.appointments
            if a["user_id"] == professional_id and start.isoformat() <= a["date"] <= end.isoformat()
        ]
        return sorted(rows, key=lambda a: (a["date"], a["time"]))

    async def list_expenses(self, professional_id: str, start: date, end: date) -> list[dict[str, Any]]:
        self._check_read()
        rows = [
            e
            for e in self.expenses
            if e["user_id"] == professional_id and start.isoformat() <= e["date"] <= end.isoformat()
        ]
        return sorted(rows, key=lambda e: e["date"], reverse=True)

    async def create_expense(self, professional_id: str, values: dict[str, Any]) -> dict[str, Any]:
        row = {"id": str(uuid.uuid4()), "user_id": professional_id, **values}
        self.expenses.append(row)
        return row

    async def delete_expense(self, professional_id: str, expense_id: str) -> bool:
        before = len(self.expenses)
        self.expenses = [e for e in self.expenses if not (e["user_id"] == professional_id and e["id"] == expense_id)]
        return len(self.expenses) < before

    async def get_closing(self, professional_id: str, closing_id: str) -> Optional[dict[str, Any]]:
        return next((c for c in self.closings if c["user_id"] == professional_id and c["id"] == closing_id), None)

    async def ping(self) -> None:
        self._check_read()


class RecordingNotifier:
    def __init__(self) -> None:
        self.calls: list[tuple[dict[str, Any], dict[str, Any]]] = []

    def notify_booking(self, appointment: dict[str, Any], **kwargs: Any) -> bool:
        self.calls.append((appointment, kwargs))
        return True


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def client(store: FakeStore, notifier: RecordingNotifier):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[current_professional_id] = lambda: PRO_ID
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
