# app/main.py
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .routers.agenda import router as agenda_router
from .routers.appointments import router as appointments_router
from .routers.expenses import router as expenses_router
from .routers.finance import router as finance_router
from .routers.health import router as health_router
from .routers.services import router as services_router

app = FastAPI(
    title="Marcaí API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["default"])
def root():
    return {"ok": True, "service": "marcai-api"}


@app.get("/diag", tags=["health"])
def diag():
    settings = get_settings()
    return {
        "supabase_url_set": bool(settings.supabase_url),
        "service_role_set": bool(settings.supabase_service_role_key),
        "jwt_secret_set": bool(settings.supabase_jwt_secret),
        "db_url_set": bool(settings.supabase_db_url),
        "whatsapp_enabled": bool(settings.callmebot_phone and settings.callmebot_apikey),
        "business_window": [settings.business_start, settings.business_end],
        "slot_policy": settings.slot_policy,
    }


# routers
app.include_router(health_router)
app.include_router(agenda_router)
app.include_router(services_router)
app.include_router(appointments_router)
app.include_router(expenses_router)
app.include_router(finance_router)


# Local dev entrypoint
if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=get_settings().log_level.upper())
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "8000")),
        reload=True,
    )
