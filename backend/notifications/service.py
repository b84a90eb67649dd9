"""
Notifications e-mail (réservation, newsletter, contact).

Rendu HTML via Jinja2 (templates/), envoi via le Mailer injecté.
Tous les envois sont best-effort: un échec est journalisé et retourne False,
il n'interrompt jamais l'opération principale.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from backend import config
from backend.infra.mailer import Mailer

logger = logging.getLogger(__name__)

_MONTHS = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]


def format_date(value: Any) -> str:
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return f"{value.day} {_MONTHS[value.month - 1]} {value.year}"
    return str(value or "")


def money(value: Any) -> str:
    amount = Decimal(str(value or 0)).quantize(Decimal("0.01"))
    return f"{amount:,.2f} $".replace(",", " ")


_env = Environment(
    loader=FileSystemLoader(str(config.TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)
_env.filters["format_date"] = format_date
_env.filters["money"] = money


def render(template: str, **context: Any) -> str:
    context.setdefault("artist_name", config.ARTIST_NAME)
    context.setdefault("base_url", config.BASE_URL)
    return _env.get_template(template).render(**context)


def _safe_send(mailer: Mailer, kind: str, *, to: str, subject: str, html: str, reply_to: Optional[str] = None) -> bool:
    try:
        mailer.send(to=to, subject=subject, html=html, reply_to=reply_to)
        return True
    except Exception:
        logger.exception("notifications.%s failed", kind)
        return False


def notify_booking_admin(mailer: Mailer, booking: Dict[str, Any]) -> bool:
    return _safe_send(
        mailer,
        "booking_admin",
        to=mailer.admin_email,
        subject=f"Nouvelle demande de réservation : {booking.get('event_name')}",
        html=render("booking_admin.html", booking=booking),
        reply_to=booking.get("email"),
    )


def notify_booking_client(mailer: Mailer, booking: Dict[str, Any]) -> bool:
    return _safe_send(
        mailer,
        "booking_client",
        to=booking["email"],
        subject=f"Votre demande de réservation - {config.ARTIST_NAME}",
        html=render("booking_client.html", booking=booking),
    )


def verification_url(token: str) -> str:
    return f"{config.BASE_URL}/verify-email?token={token}"


def send_verification_email(mailer: Mailer, email: str, token: str) -> bool:
    return _safe_send(
        mailer,
        "subscription_verify",
        to=email,
        subject=f"Confirmez votre inscription - {config.ARTIST_NAME}",
        html=render("subscription_verify.html", verification_url=verification_url(token)),
    )


def send_welcome_email(mailer: Mailer, email: str) -> bool:
    return _safe_send(
        mailer,
        "subscription_welcome",
        to=email,
        subject=f"Bienvenue dans la communauté {config.ARTIST_NAME} !",
        html=render("subscription_welcome.html"),
    )


def notify_contact_admin(mailer: Mailer, contact: Dict[str, Any]) -> bool:
    return _safe_send(
        mailer,
        "contact_admin",
        to=mailer.admin_email,
        subject=f"[{contact.get('inquiry_type')}] {contact.get('subject')}",
        html=render("contact_admin.html", contact=contact),
        reply_to=contact.get("email"),
    )


def send_contact_auto_reply(mailer: Mailer, contact: Dict[str, Any]) -> bool:
    return _safe_send(
        mailer,
        "contact_reply",
        to=contact["email"],
        subject=f"Nous avons bien reçu votre message - {config.ARTIST_NAME}",
        html=render("contact_reply.html", contact=contact),
    )
