"""
Appointment emails sent through Resend

Sending is best-effort: callers schedule these as background tasks and a
failed or unconfigured send is logged, never raised into a booking.

Background tasks run after the request's database session is closed, so
they receive a plain dict snapshot (appointment_notice) instead of ORM rows.
"""

import html
import logging
from typing import Optional

import resend

from .config import BUSINESS_NAME, EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .models import Appointment

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY

FRENCH_WEEKDAYS = ["lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"]


def appointment_notice(appointment: Appointment) -> Optional[dict]:
    """Snapshot of what the emails need, or None when the customer has no email"""
    customer = appointment.customer
    if not customer or not customer.email:
        return None

    day = appointment.appointment_date
    return {
        "appointment_id": appointment.id,
        "email": customer.email,
        "first_name": customer.first_name,
        "service_name": appointment.service.name if appointment.service else "votre soin",
        "date": f"{FRENCH_WEEKDAYS[day.weekday()]} {day.strftime('%d/%m/%Y')}",
        "start": appointment.start_time.strftime("%H:%M"),
        "end": appointment.end_time.strftime("%H:%M"),
        "total_price": float(appointment.total_price),
        "status": appointment.status,
    }


def _text(value: str) -> str:
    # Customer names are stored HTML-escaped already; catalog names are not
    return html.escape(html.unescape(value))


def _layout(notice: dict, headline: str) -> str:
    return (
        "<div style=\"font-family: Arial, sans-serif; max-width: 560px; margin: 0 auto;\">"
        f"<h2 style=\"color: #b76e79;\">{html.escape(BUSINESS_NAME)}</h2>"
        f"<p>Bonjour {_text(notice['first_name'])},</p>"
        f"<p>{headline}</p>"
        f"<p><strong>{_text(notice['service_name'])}</strong><br>"
        f"{notice['date']} de {notice['start']} à {notice['end']}</p>"
        f"<p>Montant : {notice['total_price']:.2f} €</p>"
        "<p style=\"color: #888; font-size: 12px;\">Pour modifier ou annuler votre rendez-vous, "
        "merci de nous contacter au moins 24h à l'avance.</p>"
        "</div>"
    )


async def send_email(to: str, subject: str, html_content: str) -> Optional[dict]:
    """
    Send one email via Resend.

    Returns:
        Resend response, or None when email is not configured or the send failed
    """
    if not RESEND_API_KEY:
        logger.info(f"📭 RESEND_API_KEY not set, skipping email '{subject}' to {to}")
        return None

    try:
        logger.info(f"📧 Sending email via Resend to: {to}")
        response = resend.Emails.send(
            {
                "from": EMAIL_FROM_ADDRESS,
                "to": [to],
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {to}: {e}")
        return None


async def send_booking_confirmation(notice: dict) -> Optional[dict]:
    """Confirmation sent right after a booking is committed"""
    return await send_email(
        to=notice["email"],
        subject=f"Votre rendez-vous chez {BUSINESS_NAME}",
        html_content=_layout(notice, "Votre rendez-vous est bien enregistré :"),
    )


async def send_status_update(notice: dict) -> Optional[dict]:
    """Sent when an appointment is confirmed, cancelled or moved"""
    headline = {
        "confirmed": "Votre rendez-vous est confirmé :",
        "cancelled": "Votre rendez-vous a été annulé :",
    }.get(notice["status"], "Votre rendez-vous a été modifié :")

    return await send_email(
        to=notice["email"],
        subject=f"Mise à jour de votre rendez-vous - {BUSINESS_NAME}",
        html_content=_layout(notice, headline),
    )


async def send_appointment_reminder(notice: dict) -> Optional[dict]:
    """Reminder for tomorrow's appointment"""
    return await send_email(
        to=notice["email"],
        subject=f"Rappel : votre rendez-vous demain chez {BUSINESS_NAME}",
        html_content=_layout(notice, "Petit rappel, nous vous attendons demain :"),
    )
