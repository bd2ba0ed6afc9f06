import logging

import requests as http_requests
from django.conf import settings
from django.core.mail import send_mail
from django.utils.html import escape

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    pass


def render_email_html(message) -> str:
    lines = [
        f"<h2>{escape(message.title)}</h2>",
        f"<p>{escape(message.message)}</p>",
    ]
    if message.details:
        lines.append("<hr><p><strong>Appointment Details:</strong></p><ul>")
        for label, value in message.details.items():
            lines.append(f"<li>{escape(label)}: {escape(value)}</li>")
        lines.append("</ul>")
    if message.recipient_phone:
        lines.append(f"<p>Contact: {escape(message.recipient_phone)}</p>")
    lines.append("<p><em>E-Clinic Management System</em></p>")
    return "\n".join(lines)


class DjangoEmailChannel:
    """Delivers through the configured Django EMAIL_BACKEND."""

    name = "django"

    def deliver(self, message):
        send_mail(
            message.title,  # subject
            message.message,  # plain-text body
            settings.NOTIFICATIONS_FROM_EMAIL,  # from email
            [message.recipient_email],  # to email
            html_message=render_email_html(message),
        )


class ResendEmailChannel:
    """Delivers through the Resend HTTP API."""

    name = "resend"

    def __init__(self, api_key=None, url=None, timeout=10):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.url = url or settings.RESEND_API_URL
        self.timeout = timeout

    def deliver(self, message):
        if not self.api_key:
            raise DeliveryError("RESEND_API_KEY is not configured")

        r = http_requests.post(
            self.url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "from": settings.NOTIFICATIONS_FROM_EMAIL,
                "to": [message.recipient_email],
                "subject": message.title,
                "html": render_email_html(message),
            },
            timeout=self.timeout,
        )
        if not r.ok:
            try:
                detail = r.json().get("message")
            except ValueError:
                detail = r.text
            raise DeliveryError(f"Resend rejected email ({r.status_code}): {detail}")
        logger.debug("Resend accepted email %s", r.json().get("id"))


class NullChannel:
    name = "none"

    def deliver(self, message):
        logger.debug("Email delivery disabled; dropping '%s'", message.title)


CHANNELS = {
    DjangoEmailChannel.name: DjangoEmailChannel,
    ResendEmailChannel.name: ResendEmailChannel,
    NullChannel.name: NullChannel,
}


def get_channel(name=None):
    name = (name or settings.NOTIFICATIONS_EMAIL_CHANNEL or "none").lower()
    try:
        return CHANNELS[name]()
    except KeyError:
        raise ValueError(f"Unknown notification channel: {name!r}") from None
