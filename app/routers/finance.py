from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app import finance
from app.auth import current_professional_id
from app.deps import get_store
from app.models import FinanceSummary
from app.routers.common import month_param, store_failed
from app.store import STORE_ERRORS, SupabaseStore

router = APIRouter(tags=["finance"])


@router.get("/finance/summary", response_model=FinanceSummary)
async def summary(
    month: Optional[str] = Query(default=None, pattern=r"^\d{4}-\d{2}$"),
    period: Optional[str] = Query(default=None, pattern=r"^(week|month)$"),
    rank_by: str = Query(default=finance.BY_COUNT, pattern=r"^(count|paid)$"),
    professional_id: str = Depends(current_professional_id),
    store: SupabaseStore = Depends(get_store),
):
    """Totals for a calendar month (`month`, default current) or week/month to date (`period`)."""
    if month and period:
        raise HTTPException(status_code=422, detail="Use month or period, not both")
    if period:
        start, end = finance.period_bounds(period)
        label = period
    else:
        label, start, end = month_param(month)

    try:
        appointments = await store.list_appointments(professional_id, start, end)
        expenses = await store.list_expenses(professional_id, start, end)
    except STORE_ERRORS as e:
        raise store_failed("[finance summary] error", e)
    return finance.summarize(appointments, expenses, start, end, period=label, rank_by=rank_by)


@router.get("/closings/{closing_id}")
async def get_closing(
    closing_id: str,
    professional_id: str = Depends(current_professional_id),
    store: SupabaseStore = Depends(get_store),
):
    """Stored monthly closing (forecast / paid / receivable snapshot)."""
    try:
        row = await store.get_closing(professional_id, closing_id)
    except STORE_ERRORS as e:
        raise store_failed("[get closing] error", e)
    if not row:
        raise HTTPException(status_code=404, detail="Fechamento não encontrado")
    return row
