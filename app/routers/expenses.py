from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Response

from app.auth import current_professional_id
from app.deps import get_store
from app.models import ExpenseIn
from app.routers.common import month_param, store_failed
from app.store import STORE_ERRORS, SupabaseStore

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("")
async def list_expenses(
    period=Depends(month_param),
    professional_id: str = Depends(current_professional_id),
    store: SupabaseStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    _, start, end = period
    try:
        return await store.list_expenses(professional_id, start, end)
    except STORE_ERRORS as e:
        raise store_failed("[list expenses] error", e)


@router.post("", status_code=201)
async def create_expense(
    payload: ExpenseIn,
    professional_id: str = Depends(current_professional_id),
    store: SupabaseStore = Depends(get_store),
) -> Dict[str, Any]:
    values = payload.model_dump(mode="json")
    values["description"] = values["description"].strip()
    values["category"] = (values.get("category") or "").strip() or None
    if not values["description"]:
        raise HTTPException(status_code=422, detail="Preencha descrição e valor válido.")
    try:
        return await store.create_expense(professional_id, values)
    except STORE_ERRORS as e:
        raise store_failed("[create expense] error", e)


@router.delete("/{expense_id}", status_code=204)
async def delete_expense(
    expense_id: str,
    professional_id: str = Depends(current_professional_id),
    store: SupabaseStore = Depends(get_store),
):
    try:
        deleted = await store.delete_expense(professional_id, expense_id)
    except STORE_ERRORS as e:
        raise store_failed("[delete expense] error", e)
    if not deleted:
        raise HTTPException(status_code=404, detail="Despesa não encontrada")
    return Response(status_code=204)
