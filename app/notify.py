# app/notify.py
import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional

import requests

from .config import Settings

log = logging.getLogger("uvicorn.error")

CALLMEBOT_URL = "https://api.callmebot.com/whatsapp.php"


def format_brl(cents: int) -> str:
    """12345 -> 'R$ 123,45'."""
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(cents), 100)
    return f"{sign}R$ {reais:,}".replace(",", ".") + f",{centavos:02d}"


def normalize_intl_phone(phone: str) -> str:
    # digits only, e.g. 5511999999999
    return re.sub(r"\D", "", phone or "")


def _when(starts_at: Optional[str]) -> str:
    if not starts_at:
        return "—"
    try:
        return datetime.fromisoformat(starts_at).strftime("%d/%m/%Y %H:%M")
    except ValueError:
        return "—"


def booking_message(
    appointment: Dict[str, Any],
    *,
    company_name: str = "",
    service_name: str = "",
) -> str:
    price = appointment.get("price_cents")
    lines = [
        "📅 *Novo agendamento*",
        f"🏢 *Empresa:* {company_name.strip() or 'Sua empresa'}",
        f"💇 *Serviço:* {service_name.strip() or 'Serviço'}",
        f"🕒 *Quando:* {_when(appointment.get('starts_at'))}",
        f"👤 *Cliente:* {(appointment.get('client_name') or '').strip() or 'Cliente'}",
        f"📱 *WhatsApp:* {(appointment.get('client_phone') or '').strip() or '—'}",
        f"💰 *Valor:* {format_brl(price) if isinstance(price, int) else '—'}",
    ]
    if appointment.get("id"):
        lines.append(f"🧾 *ID:* {appointment['id']}")
    return "\n".join(lines)


class WhatsAppNotifier:
    """Sends the "new booking" message to the professional through CallMeBot."""

    def __init__(self, phone: str, apikey: str, timeout: float = 10):
        self.phone = normalize_intl_phone(phone)
        self.apikey = apikey
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "WhatsAppNotifier":
        return cls(settings.callmebot_phone, settings.callmebot_apikey)

    @property
    def enabled(self) -> bool:
        return bool(self.phone and self.apikey)

    def send(self, text: str) -> bool:
        if not self.enabled:
            log.info("whatsapp notification skipped, CALLMEBOT_WHATSAPP_PHONE/APIKEY not set")
            return False
        try:
            r = requests.get(
                CALLMEBOT_URL,
                params={"phone": self.phone, "text": text, "apikey": self.apikey},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.warning("whatsapp notification failed: %s", e)
            return False
        if r.status_code != 200:
            log.warning("callmebot returned %s: %s", r.status_code, r.text[:200])
            return False
        return True

    def notify_booking(self, appointment: Dict[str, Any], *, company_name: str = "", service_name: str = "") -> bool:
        # runs as a background task, must never raise into the response
        return self.send(booking_message(appointment, company_name=company_name, service_name=service_name))
