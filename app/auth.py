# app/auth.py
import time

import requests
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import Settings, get_settings

security = HTTPBearer()
_cache = {"jwks": None, "fetched_at": 0}


def _auth_base(settings: Settings) -> str:
    if not settings.supabase_project_ref:
        raise HTTPException(status_code=500, detail="SUPABASE_PROJECT_REF not set")
    return f"https://{settings.supabase_project_ref}.supabase.co/auth/v1"


def _get_jwks(settings: Settings):
    now = time.time()
    if not _cache["jwks"] or now - _cache["fetched_at"] > 600:
        headers = {}
        if settings.supabase_anon_key:
            headers = {"apikey": settings.supabase_anon_key, "Authorization": f"Bearer {settings.supabase_anon_key}"}
        resp = requests.get(f"{_auth_base(settings)}/.well-known/jwks.json", headers=headers, timeout=10)
        resp.raise_for_status()
        _cache["jwks"] = resp.json()
        _cache["fetched_at"] = now
    return _cache["jwks"]


def _fetch_user_id_from_supabase(token: str, settings: Settings) -> str:
    """Fallback: ask Supabase who this token belongs to."""
    headers = {
        "Authorization": f"Bearer {token}",
        "apikey": settings.supabase_anon_key or "",
    }
    r = requests.get(f"{_auth_base(settings)}/user", headers=headers, timeout=10)
    if r.status_code != 200:
        raise HTTPException(status_code=401, detail="Could not verify token with Supabase")
    data = r.json() or {}
    uid = data.get("id") or (data.get("user") or {}).get("id")
    if not uid:
        raise HTTPException(status_code=401, detail="User id not found from Supabase")
    return uid


def _subject(token: str, key, alg: str, settings: Settings) -> str:
    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=[alg],
            options={"verify_aud": False},
            issuer=_auth_base(settings),
        )
    except JWTError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token ({alg}): {e}")
    sub = claims.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Token missing subject (sub)")
    return sub


def verify_token(token: str, settings: Settings) -> str:
    """
    Returns the Supabase user id (= profiles.id of the professional).

    Accepts access tokens signed with:
      - HS256 (JWT secret)  -> verify with SUPABASE_JWT_SECRET
      - RS256 (JWKS)        -> verify with the project JWKS
    Falls back to /auth/v1/user otherwise.
    """
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        return _fetch_user_id_from_supabase(token, settings)
    alg = (unverified_header.get("alg") or "").upper()

    if alg == "HS256" and settings.supabase_jwt_secret:
        return _subject(token, settings.supabase_jwt_secret, "HS256", settings)

    if alg == "RS256":
        jwks = _get_jwks(settings)
        kid = unverified_header.get("kid")
        key = next((k for k in jwks.get("keys", []) if k.get("kid") == kid), None)
        if not key:
            raise HTTPException(status_code=401, detail="Signing key not found")
        return _subject(token, key, "RS256", settings)

    return _fetch_user_id_from_supabase(token, settings)


def current_professional_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    return verify_token(credentials.credentials, settings)
