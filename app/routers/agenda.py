# app/routers/agenda.py
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import ValidationError

from app.config import Settings, get_settings
from app.deps import get_notifier, get_store, get_window
from app.errors import BookingError, LocalValidationError, dump_store_error
from app.finance import to_appointment_out
from app.models import AppointmentOut, BookingIn, PublicProfile, Service, SlotsOut
from app.notify import WhatsAppNotifier
from app.session import BookingSession
from app.slots import BusinessWindow
from app.store import STORE_ERRORS, SupabaseStore

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/agenda", tags=["agenda"])


def public_display_name(profile: Dict[str, Any]) -> str:
    # company > personal name > fallback
    return (profile.get("company_name") or "").strip() or (profile.get("name") or "").strip() or "Profissional"


def _services(rows: List[Dict[str, Any]]) -> List[Service]:
    services = []
    for r in rows:
        try:
            services.append(Service(**r))
        except ValidationError as e:
            # e.g. a null or zero duration, unschedulable
            log.warning("skipping service %s with invalid data: %s", r.get("id"), e.errors())
    return services


async def _load_agenda(store: SupabaseStore, slug: str) -> Tuple[Dict[str, Any], List[Service]]:
    try:
        profile = await store.get_profile_by_slug(slug)
        if not profile:
            raise HTTPException(status_code=404, detail="Agenda não encontrada")
        rows = await store.list_active_services(profile["id"])
    except STORE_ERRORS as e:
        dump_store_error("[load agenda] error", e)
        raise HTTPException(status_code=503, detail="Agenda indisponível no momento")
    return profile, _services(rows)


def _booking_error(e: BookingError, session: Optional[BookingSession] = None) -> HTTPException:
    detail: Dict[str, Any] = {"kind": e.kind, "message": e.message}
    if isinstance(e, LocalValidationError):
        detail["field"] = e.field
    if session is not None and e.status_code == 409:
        detail["available"] = session.available
    return HTTPException(status_code=e.status_code, detail=detail)


async def _open_session(
    store: SupabaseStore,
    slug: str,
    service_id: str,
    day: date,
    window: BusinessWindow,
    settings: Settings,
    require_service: bool = True,
) -> Tuple[Dict[str, Any], BookingSession]:
    profile, services = await _load_agenda(store, slug)
    session = BookingSession(store, profile["id"], services, window=window, policy=settings.slot_policy)
    if require_service and session.services.get(service_id) is None:
        raise HTTPException(status_code=404, detail="Serviço não encontrado")
    session.select_service(service_id)
    session.select_date(day)
    return profile, session


@router.get("/{slug}", response_model=PublicProfile)
async def get_agenda(slug: str, store: SupabaseStore = Depends(get_store)):
    profile, services = await _load_agenda(store, slug)
    return PublicProfile(slug=profile.get("slug") or slug, display_name=public_display_name(profile), services=services)


@router.get("/{slug}/slots", response_model=SlotsOut)
async def get_slots(
    slug: str,
    service_id: str = Query(...),
    day: date = Query(..., alias="date"),
    store: SupabaseStore = Depends(get_store),
    window: BusinessWindow = Depends(get_window),
    settings: Settings = Depends(get_settings),
):
    _, session = await _open_session(store, slug, service_id, day, window, settings)
    try:
        await session.refresh()
    except BookingError as e:
        raise _booking_error(e)
    return SlotsOut(
        service_id=service_id,
        date=day,
        candidates=session.candidates,
        blocked=sorted(session.blocked),
        available=session.available,
    )


@router.post("/{slug}/bookings", response_model=AppointmentOut, status_code=201)
async def create_booking(
    slug: str,
    payload: BookingIn,
    background_tasks: BackgroundTasks,
    store: SupabaseStore = Depends(get_store),
    notifier: WhatsAppNotifier = Depends(get_notifier),
    window: BusinessWindow = Depends(get_window),
    settings: Settings = Depends(get_settings),
):
    profile, session = await _open_session(
        store, slug, payload.service_id, payload.date, window, settings, require_service=False
    )
    try:
        # the client picked against its own fetch; submit re-reads before inserting
        session.choose(payload.time)
        created = await session.submit(payload.client_name, payload.client_phone)
    except BookingError as e:
        raise _booking_error(e, session)

    service = session.service
    background_tasks.add_task(
        notifier.notify_booking,
        created,
        company_name=public_display_name(profile),
        service_name=service.name if service else "",
    )

    out = to_appointment_out(created)
    out.service_name = service.name if service else None
    return out
