"""
accounts.sessions

Opaque customer sessions: a random token stored server-side and sent back as an
HttpOnly cookie (SameSite=Lax, Secure outside DEBUG, optional COOKIE_DOMAIN).

Email verification issues 30-day sessions; mobile verification issues 7-day ones.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.http import HttpResponse
from django.utils import timezone

from .models import Customer, CustomerSession

logger = logging.getLogger(__name__)

EMAIL_SESSION_DAYS = 30
MOBILE_SESSION_DAYS = 7


def create_session(customer: Customer, days: int = EMAIL_SESSION_DAYS) -> CustomerSession:
    session = CustomerSession.objects.create(
        customer=customer,
        email=customer.email,
        role=customer.role,
        expires_at=timezone.now() + timedelta(days=days),
    )
    logger.info("Session issued for customer %s (%s days)", customer.pk, days)
    return session


def attach_session_cookie(response: HttpResponse, session: CustomerSession) -> HttpResponse:
    max_age = max(0, round((session.expires_at - timezone.now()).total_seconds()))
    response.set_cookie(
        settings.CUSTOMER_SESSION_COOKIE,
        session.token,
        max_age=max_age,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="Lax",
        domain=settings.COOKIE_DOMAIN,
        path="/",
    )
    return response


def clear_session_cookie(response: HttpResponse) -> HttpResponse:
    response.delete_cookie(
        settings.CUSTOMER_SESSION_COOKIE,
        path="/",
        domain=settings.COOKIE_DOMAIN,
        samesite="Lax",
    )
    return response


def resolve_session(token: Optional[str]) -> Optional[CustomerSession]:
    """Live session for `token`, or None. Expired sessions are deleted on sight."""
    if not token:
        return None
    session = CustomerSession.objects.select_related("customer").filter(token=token).first()
    if session is None:
        return None
    if session.is_expired():
        session.delete()
        return None
    return session


def end_session(token: Optional[str]) -> bool:
    if not token:
        return False
    deleted, _ = CustomerSession.objects.filter(token=token).delete()
    return bool(deleted)
