"""
accounts.emailing

Verification code email (plain text + HTML template via EmailMultiAlternatives).

email_channel_configured() tells the send endpoint whether the configured
backend can actually deliver; it answers 503 instead of issuing a code nobody
will receive.
"""

from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)

# Backends that never leave the process; always "configured".
LOCAL_BACKENDS = ("locmem.EmailBackend", "console.EmailBackend", "filebased.EmailBackend", "dummy.EmailBackend")


def email_channel_configured() -> bool:
    backend = getattr(settings, "EMAIL_BACKEND", "") or ""
    if backend.endswith(LOCAL_BACKENDS):
        return True
    if backend.startswith("anymail.backends.mailgun"):
        anymail = getattr(settings, "ANYMAIL", {}) or {}
        return bool(anymail.get("MAILGUN_API_KEY") and anymail.get("MAILGUN_SENDER_DOMAIN"))
    if backend.endswith("smtp.EmailBackend"):
        return bool(settings.EMAIL_HOST and settings.EMAIL_HOST_USER and settings.EMAIL_HOST_PASSWORD)
    return bool(backend)


def _from_email() -> str:
    return (
        getattr(settings, "DEFAULT_FROM_EMAIL", "")
        or getattr(settings, "SERVER_EMAIL", "")
        or "no-reply@localhost"
    )


def send_otp_email(*, to_email: str, code: str, first_name: Optional[str] = None, ttl_minutes: int = 10) -> None:
    """
    Send the verification code. Raises on delivery failure; the caller decides
    whether that is fatal.
    """
    store = getattr(settings, "STORE_NAME", "Storefront")
    greeting = f"Hi {first_name}," if first_name else "Hi there,"
    subject = f"{store} verification code: {code}"

    text_body = "\n".join([
        greeting,
        "",
        f"Your verification code is: {code}",
        f"It expires in {ttl_minutes} minutes.",
        "",
        "If you didn't request this, you can ignore this email.",
        "",
        f"- {store}",
    ])

    html_body = render_to_string(
        "accounts/email_otp_code.html",
        {"first_name": first_name, "code": code, "ttl_minutes": ttl_minutes, "store_name": store},
    )

    msg = EmailMultiAlternatives(
        subject=subject,
        body=text_body,
        from_email=_from_email(),
        to=[to_email],
    )
    msg.attach_alternative(html_body, "text/html")
    msg.send(fail_silently=False)
    logger.info("OTP email sent backend=%s", settings.EMAIL_BACKEND)
