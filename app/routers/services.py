from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.auth import current_professional_id
from app.deps import get_store
from app.models import Service, ServiceActiveIn, ServiceIn
from app.routers.common import store_failed
from app.store import STORE_ERRORS, SupabaseStore

router = APIRouter(prefix="/services", tags=["services"])


@router.get("", response_model=List[Service])
async def list_services(
    professional_id: str = Depends(current_professional_id),
    store: SupabaseStore = Depends(get_store),
):
    try:
        rows = await store.list_services(professional_id)
    except STORE_ERRORS as e:
        raise store_failed("[list services] error", e)
    return [Service(**r) for r in rows]


@router.post("", response_model=Service, status_code=201)
async def create_service(
    payload: ServiceIn,
    professional_id: str = Depends(current_professional_id),
    store: SupabaseStore = Depends(get_store),
):
    values = payload.model_dump()
    values["name"] = values["name"].strip()
    values["description"] = (values.get("description") or "").strip() or None
    if not values["name"]:
        raise HTTPException(status_code=422, detail="Informe nome e preço.")
    values["active"] = True
    try:
        row = await store.create_service(professional_id, values)
    except STORE_ERRORS as e:
        raise store_failed("[create service] error", e)
    return Service(**row)


@router.patch("/{service_id}/active", response_model=Service)
async def set_service_active(
    service_id: str,
    payload: ServiceActiveIn,
    professional_id: str = Depends(current_professional_id),
    store: SupabaseStore = Depends(get_store),
):
    try:
        current = await store.get_service(professional_id, service_id)
        if not current:
            raise HTTPException(status_code=404, detail="Serviço não encontrado")
        active = (not current.get("active", True)) if payload.active is None else payload.active
        row = await store.set_service_active(professional_id, service_id, active)
    except STORE_ERRORS as e:
        raise store_failed("[toggle service] error", e)
    return Service(**(row or {**current, "active": active}))
