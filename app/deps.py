# app/deps.py
from functools import lru_cache

from fastapi import Depends
from supabase import Client, create_client

from .config import Settings, get_settings
from .notify import WhatsAppNotifier
from .slots import BusinessWindow
from .store import SupabaseStore


@lru_cache
def _supabase(url: str, key: str) -> Client:
    return create_client(url, key)


def get_supabase(settings: Settings = Depends(get_settings)) -> Client:
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise RuntimeError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")
    return _supabase(settings.supabase_url, settings.supabase_service_role_key)


def get_store(sb: Client = Depends(get_supabase)) -> SupabaseStore:
    return SupabaseStore(sb)


def get_notifier(settings: Settings = Depends(get_settings)) -> WhatsAppNotifier:
    return WhatsAppNotifier.from_settings(settings)


def get_window(settings: Settings = Depends(get_settings)) -> BusinessWindow:
    return BusinessWindow(settings.business_start, settings.business_end)
