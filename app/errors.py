# app/errors.py
import logging
from typing import Any, Optional

log = logging.getLogger("uvicorn.error")

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


class BookingError(Exception):
    """Base for every classified booking outcome. `message` is safe to show to the client."""

    kind = "error"
    status_code = 400
    message = "Não foi possível confirmar o agendamento."

    def __init__(self, message: Optional[str] = None):
        if message:
            self.message = message
        super().__init__(self.message)


class LocalValidationError(BookingError):
    kind = "validation"
    status_code = 422

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class StaleSelectionError(BookingError):
    kind = "stale"
    status_code = 409
    message = "Esse horário acabou de ser reservado. Selecione outro."


class ConflictError(BookingError):
    kind = "conflict"
    status_code = 409
    message = "Esse horário acabou de ser reservado. Escolha outro."


class InfraError(BookingError):
    kind = "infra"
    status_code = 503
    message = "Não foi possível confirmar o agendamento."


class BookingInProgressError(BookingError):
    kind = "in_progress"
    status_code = 429
    message = "Seu agendamento ainda está sendo confirmado."


def _attr(err: Any, name: str) -> str:
    value = getattr(err, name, None)
    if value is None and isinstance(err, dict):
        value = err.get(name)
    return "" if value is None else str(value)


def dump_store_error(tag: str, err: Any) -> None:
    log.error(
        "%s message=%s code=%s details=%s hint=%s",
        tag,
        _attr(err, "message") or str(err),
        _attr(err, "code"),
        _attr(err, "details"),
        _attr(err, "hint"),
    )


def looks_like_unique_violation(err: Any) -> bool:
    # Structured SQLSTATE first; the message match is best effort for stores
    # that only hand back text.
    if _attr(err, "code") == UNIQUE_VIOLATION:
        return True
    msg = (_attr(err, "message") or str(err)).lower()
    return "duplicate" in msg or "unique" in msg


def classify_store_error(err: Any) -> BookingError:
    if isinstance(err, BookingError):
        return err
    if looks_like_unique_violation(err):
        return ConflictError()
    return InfraError()
