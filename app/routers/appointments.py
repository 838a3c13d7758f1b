from typing import List

from fastapi import APIRouter, Depends

from app.auth import current_professional_id
from app.deps import get_store
from app.finance import to_appointment_out
from app.models import AppointmentOut
from app.routers.common import month_param, store_failed
from app.store import STORE_ERRORS, SupabaseStore

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("", response_model=List[AppointmentOut])
async def list_appointments(
    period=Depends(month_param),
    professional_id: str = Depends(current_professional_id),
    store: SupabaseStore = Depends(get_store),
):
    _, start, end = period
    try:
        rows = await store.list_appointments(professional_id, start, end)
    except STORE_ERRORS as e:
        raise store_failed("[list appointments] error", e)
    return [to_appointment_out(r) for r in rows]
