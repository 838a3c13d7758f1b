from __future__ import annotations

import time
from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException
from jose import jwt

from app.auth import verify_token
from app.config import Settings

SETTINGS = Settings(supabase_project_ref="testref", supabase_jwt_secret="s3cret", supabase_anon_key="anon")
ISSUER = "https://testref.supabase.co/auth/v1"


def _token(secret: str = "s3cret", **claims) -> str:
    payload = {"sub": "pro-1", "iss": ISSUER, "aud": "authenticated", "exp": int(time.time()) + 600, **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


def test_hs256_token_yields_subject() -> None:
    assert verify_token(_token(), SETTINGS) == "pro-1"


def test_wrong_secret_is_rejected() -> None:
    with pytest.raises(HTTPException) as exc:
        verify_token(_token(secret="other"), SETTINGS)

    assert exc.value.status_code == 401


def test_wrong_issuer_is_rejected() -> None:
    with pytest.raises(HTTPException) as exc:
        verify_token(_token(iss="https://evil.example/auth/v1"), SETTINGS)

    assert exc.value.status_code == 401


def test_expired_token_is_rejected() -> None:
    with pytest.raises(HTTPException):
        verify_token(_token(exp=int(time.time()) - 10), SETTINGS)


def test_without_secret_falls_back_to_supabase_user_endpoint() -> None:
    settings = Settings(supabase_project_ref="testref")
    resp = MagicMock(status_code=200)
    resp.json.return_value = {"id": "pro-9"}

    with patch("app.auth.requests.get", return_value=resp) as get:
        assert verify_token(_token(), settings) == "pro-9"

    assert get.call_args.args[0] == f"{ISSUER}/user"


def test_fallback_rejection_is_401() -> None:
    settings = Settings(supabase_project_ref="testref")

    with patch("app.auth.requests.get", return_value=MagicMock(status_code=401)):
        with pytest.raises(HTTPException) as exc:
            verify_token("not-a-jwt", settings)

    assert exc.value.status_code == 401


def test_dashboard_requires_bearer_token() -> None:
    from fastapi.testclient import TestClient

    from app.main import app

    assert TestClient(app).get("/services").status_code in (401, 403)
