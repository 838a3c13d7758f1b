import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.config import Settings, get_settings
from app.deps import get_store
from app.store import STORE_ERRORS, SupabaseStore

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health():
    return {"ok": True}


@router.get("/db")
async def health_db(settings: Settings = Depends(get_settings)):
    try:
        return {"ok": True, "db": await db.ping(settings)}
    except (RuntimeError, SQLAlchemyError, OSError) as e:
        log.error("db health check failed: %s", e)
        raise HTTPException(status_code=503, detail=f"DB check failed: {e}")


@router.get("/store")
async def health_store(store: SupabaseStore = Depends(get_store)):
    """Ping Supabase (PostgREST) using the service role."""
    try:
        await store.ping()
    except STORE_ERRORS as e:
        log.error("store health check failed: %s", e)
        raise HTTPException(status_code=503, detail="Store check failed")
    return {"ok": True, "store": "up"}
