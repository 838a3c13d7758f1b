from __future__ import annotations

import pytest

from app.config import load_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("BUSINESS_START", "BUSINESS_END", "SLOT_POLICY", "CORS_ORIGINS"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert (settings.business_start, settings.business_end) == ("08:00", "18:00")
    assert settings.slot_policy == "grid"
    assert settings.cors_origins == ["*"]


def test_policy_is_case_insensitive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SLOT_POLICY", "Packed")

    assert load_settings().slot_policy == "packed"


def test_unknown_slot_policy_fails_at_load(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SLOT_POLICY", "exact")

    with pytest.raises(ValueError, match="SLOT_POLICY"):
        load_settings()


@pytest.mark.parametrize(
    "start, end",
    [("18:00", "08:00"), ("09:00", "09:00"), ("8h", "18:00"), ("08:00", "25:00")],
)
def test_bad_business_window_fails_at_load(monkeypatch: pytest.MonkeyPatch, start: str, end: str) -> None:
    monkeypatch.setenv("BUSINESS_START", start)
    monkeypatch.setenv("BUSINESS_END", end)

    with pytest.raises(ValueError):
        load_settings()
