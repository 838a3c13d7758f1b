# app/db.py
# Direct Postgres connection, only used by the health check; app data goes through PostgREST.
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .config import Settings

_engines: dict = {}


def get_engine(settings: Settings) -> AsyncEngine:
    db_url = settings.supabase_db_url
    if not db_url:
        # defer failure until a DB-using endpoint is called
        raise RuntimeError("SUPABASE_DB_URL is not set")
    if db_url not in _engines:
        _engines[db_url] = create_async_engine(db_url, echo=False, pool_pre_ping=True, pool_size=5, max_overflow=10)
    return _engines[db_url]


async def ping(settings: Settings) -> int:
    async with get_engine(settings).connect() as conn:
        result = await conn.execute(text("select 1"))
        return result.scalar_one()
