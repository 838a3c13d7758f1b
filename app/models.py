# app/models.py
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field


class Service(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    duration_minutes: int = Field(gt=0)
    price_cents: Optional[int] = Field(default=None, ge=0)  # None = not priced yet
    active: bool = True


class ServiceIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    duration_minutes: int = Field(default=60, gt=0)
    price_cents: int = Field(..., gt=0)


class ServiceActiveIn(BaseModel):
    active: Optional[bool] = None  # omitted = toggle


class PublicProfile(BaseModel):
    slug: str
    display_name: str
    services: List[Service]


class SlotsOut(BaseModel):
    service_id: str
    date: dt.date
    candidates: List[str]
    blocked: List[str]
    available: List[str]


class BookingIn(BaseModel):
    service_id: str
    date: dt.date
    time: str
    client_name: str
    client_phone: str


class AppointmentOut(BaseModel):
    id: Optional[str] = None
    service_id: Optional[str] = None
    service_name: Optional[str] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[str] = None
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None
    price_cents: int = 0
    discount_cents: int = 0
    paid_cents: int = 0
    total_cents: int = 0
    remaining_cents: int = 0
    payment_method: Optional[str] = None
    status: str = "scheduled"


class ExpenseIn(BaseModel):
    description: str = Field(..., min_length=1)
    category: Optional[str] = None
    amount_cents: int = Field(..., gt=0)
    date: dt.date
    recurring: bool = False


class ServiceRank(BaseModel):
    name: str
    count: int
    forecast_cents: int
    paid_cents: int


class DayPoint(BaseModel):
    date: dt.date
    forecast_cents: int
    paid_cents: int
    receivable_cents: int


class FinanceSummary(BaseModel):
    period: str  # "YYYY-MM", "week" or "month" (to date)
    start: dt.date
    end: dt.date
    appointments: int
    forecast_cents: int
    paid_cents: int
    receivable_cents: int
    costs_cents: int
    profit_cents: int
    average_ticket_cents: int
    returning_clients: int
    retention_pct: int
    rank_by: str
    ranking: List[ServiceRank]
    series: List[DayPoint]
    latest: List[AppointmentOut]
