# app/config.py
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from .slots import POLICIES, BusinessWindow


def _csv(raw: str) -> List[str]:
    return [p.strip() for p in raw.split(",") if p.strip()]


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    supabase_project_ref: Optional[str] = None
    supabase_anon_key: str = ""
    supabase_jwt_secret: str = ""  # HS256 secret
    supabase_db_url: Optional[str] = None

    # Public agenda window, start inclusive / end exclusive
    business_start: str = "08:00"
    business_end: str = "18:00"
    slot_policy: str = "grid"  # "grid" | "packed"

    callmebot_phone: str = ""
    callmebot_apikey: str = ""

    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def _validate(settings: Settings) -> None:
    # app.main loads settings at import, so this runs at startup
    BusinessWindow(settings.business_start, settings.business_end)
    if settings.slot_policy not in POLICIES:
        raise ValueError(f"Unknown SLOT_POLICY {settings.slot_policy!r}, expected one of {POLICIES}")


def load_settings() -> Settings:
    settings = Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
        supabase_project_ref=os.getenv("SUPABASE_PROJECT_REF"),  # e.g. lrxyfyzgrkvnoezjfycv
        supabase_anon_key=os.getenv("SUPABASE_ANON_KEY", ""),
        supabase_jwt_secret=os.getenv("SUPABASE_JWT_SECRET", ""),
        supabase_db_url=os.getenv("SUPABASE_DB_URL"),
        business_start=os.getenv("BUSINESS_START", "08:00"),
        business_end=os.getenv("BUSINESS_END", "18:00"),
        slot_policy=os.getenv("SLOT_POLICY", "grid").lower(),
        callmebot_phone=os.getenv("CALLMEBOT_WHATSAPP_PHONE", "").strip(),
        callmebot_apikey=os.getenv("CALLMEBOT_WHATSAPP_APIKEY", "").strip(),
        cors_origins=_csv(os.getenv("CORS_ORIGINS", "*")) or ["*"],
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
    _validate(settings)
    return settings


@lru_cache
def get_settings() -> Settings:
    return load_settings()
