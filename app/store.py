# app/store.py
"""
Supabase (PostgREST) access for the agenda and the dashboard.

The supabase client is synchronous; every call is pushed to the threadpool so
callers can await it without blocking the event loop. The service role key
bypasses RLS, so every query filters by the owning professional explicitly.
"""
from datetime import date
from typing import Any, Callable, Dict, List, Optional

import httpx
from fastapi.concurrency import run_in_threadpool
from postgrest.exceptions import APIError
from supabase import Client

# Anything the store can raise for a failed request
STORE_ERRORS = (APIError, httpx.HTTPError)

APPT_TABLE = "appointments"

PROFILE_COLS = "id,name,slug,company_name"
SERVICE_COLS = "id,user_id,name,description,duration_minutes,price_cents,active,created_at"
APPOINTMENT_COLS = (
    "id,user_id,service_id,client_name,client_phone,date,time,starts_at,ends_at,"
    "price_cents,discount_cents,paid_cents,payment_method,status,"
    "services:service_id(name)"
)
EXPENSE_COLS = "id,user_id,description,category,amount_cents,date,recurring,created_at"


def _first(rows: Optional[List[Dict[str, Any]]]) -> Optional[Dict[str, Any]]:
    return rows[0] if rows else None


class SupabaseStore:
    def __init__(self, client: Client):
        self.client = client

    async def _run(self, build: Callable[[], Any]) -> List[Dict[str, Any]]:
        resp = await run_in_threadpool(lambda: build().execute())
        return resp.data or []

    # ──────────────────────────────────────────────────────────────────────
    # Public agenda
    # ──────────────────────────────────────────────────────────────────────
    async def get_profile_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        rows = await self._run(
            lambda: self.client.table("profiles").select(PROFILE_COLS).eq("slug", slug).limit(1)
        )
        return _first(rows)

    async def list_active_services(self, professional_id: str) -> List[Dict[str, Any]]:
        return await self._run(
            lambda: self.client.table("services")
            .select("id,name,duration_minutes,price_cents,active")
            .eq("user_id", professional_id)
            .eq("active", True)
            .order("name")
        )

    async def fetch_booked_times(self, professional_id: str, service_id: str, day: date) -> List[str]:
        rows = await self._run(
            lambda: self.client.table(APPT_TABLE)
            .select("time")
            .eq("user_id", professional_id)
            .eq("service_id", service_id)
            .eq("date", day.isoformat())
        )
        return [str(r.get("time") or "") for r in rows]

    async def insert_appointment(self, row: Dict[str, Any]) -> Dict[str, Any]:
        # unique (user_id, service_id, date, time) is enforced by the table
        rows = await self._run(lambda: self.client.table(APPT_TABLE).insert(row))
        return _first(rows) or dict(row)

    # ──────────────────────────────────────────────────────────────────────
    # Dashboard
    # ──────────────────────────────────────────────────────────────────────
    async def list_services(self, professional_id: str) -> List[Dict[str, Any]]:
        return await self._run(
            lambda: self.client.table("services")
            .select(SERVICE_COLS)
            .eq("user_id", professional_id)
            .order("created_at")
        )

    async def get_service(self, professional_id: str, service_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._run(
            lambda: self.client.table("services")
            .select(SERVICE_COLS)
            .eq("user_id", professional_id)
            .eq("id", service_id)
            .limit(1)
        )
        return _first(rows)

    async def create_service(self, professional_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        payload = {"user_id": professional_id, **values}
        rows = await self._run(lambda: self.client.table("services").insert(payload))
        return _first(rows) or payload

    async def set_service_active(self, professional_id: str, service_id: str, active: bool) -> Optional[Dict[str, Any]]:
        rows = await self._run(
            lambda: self.client.table("services")
            .update({"active": active})
            .eq("user_id", professional_id)
            .eq("id", service_id)
        )
        return _first(rows)

    async def list_appointments(self, professional_id: str, start: date, end: date) -> List[Dict[str, Any]]:
        return await self._run(
            lambda: self.client.table(APPT_TABLE)
            .select(APPOINTMENT_COLS)
            .eq("user_id", professional_id)
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .order("starts_at")
        )

    async def list_expenses(self, professional_id: str, start: date, end: date) -> List[Dict[str, Any]]:
        return await self._run(
            lambda: self.client.table("expenses")
            .select(EXPENSE_COLS)
            .eq("user_id", professional_id)
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .order("date", desc=True)
        )

    async def create_expense(self, professional_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        payload = {"user_id": professional_id, **values}
        rows = await self._run(lambda: self.client.table("expenses").insert(payload))
        return _first(rows) or payload

    async def delete_expense(self, professional_id: str, expense_id: str) -> bool:
        rows = await self._run(
            lambda: self.client.table("expenses").delete().eq("user_id", professional_id).eq("id", expense_id)
        )
        return bool(rows)

    async def get_closing(self, professional_id: str, closing_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._run(
            lambda: self.client.table("monthly_closings")
            .select("*")
            .eq("user_id", professional_id)
            .eq("id", closing_id)
            .limit(1)
        )
        return _first(rows)

    async def ping(self) -> None:
        await self._run(lambda: self.client.table("profiles").select("id").limit(1))
