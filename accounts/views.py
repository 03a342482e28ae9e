"""
accounts.views

OTP registration / login + customer session endpoints.

POST /api/auth/send-otp           registration {email|mobile, firstName, lastName, ...}
                                  login        {emailOrPhone}
POST /api/auth/verify-otp         {email|mobile|emailOrPhone, otp}          → 30-day (email) / 7-day (mobile) session
POST /api/auth/verify-mobile-otp  {mobile, otp, registrationData?}          → 7-day session
GET  /api/auth/me
POST /api/auth/logout
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Tuple

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from storefront import errors
from storefront.http import check_rate_limit, get_ip, json_endpoint, json_ok, parse_json_body

from .models import Customer, OtpRecord
from .otp import OtpLifecycle, complete_verification
from .phone import looks_like_email, mask_identifier, normalize_email, to_e164
from .sessions import (
    EMAIL_SESSION_DAYS,
    MOBILE_SESSION_DAYS,
    attach_session_cookie,
    clear_session_cookie,
    create_session,
    end_session,
)

logger = logging.getLogger(__name__)

OTP_RE = re.compile(r"^\d{6}$")


def _email_identifier(raw: str) -> Tuple[str, str]:
    try:
        return normalize_email(raw), OtpRecord.Channel.EMAIL
    except ValueError as e:
        raise errors.ValidationError(str(e))


def _phone_identifier(raw: str) -> Tuple[str, str]:
    try:
        return to_e164(raw), OtpRecord.Channel.SMS
    except ValueError as e:
        raise errors.ValidationError(str(e))


def _identifier_from(data: Dict[str, Any]) -> Tuple[str, str]:
    if data.get("email"):
        return _email_identifier(str(data["email"]))
    if data.get("mobile"):
        return _phone_identifier(str(data["mobile"]))
    raw = str(data.get("emailOrPhone") or "").strip()
    if not raw:
        raise errors.ValidationError("Email or mobile number is required.")
    return _email_identifier(raw) if looks_like_email(raw) else _phone_identifier(raw)


def _customer_lookup(identifier: str, channel: str) -> Dict[str, str]:
    if channel == OtpRecord.Channel.EMAIL:
        return {"email": identifier}
    return {"phone_number": identifier}


def _registration_details(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "firstName": (data.get("firstName") or "").strip(),
        "lastName": (data.get("lastName") or "").strip(),
        "email": (data.get("email") or "").strip() or None,
        "mobile": (data.get("mobile") or "").strip() or None,
        "isFoundingMember": bool(data.get("isFoundingMember")),
        "foundingMemberPlan": data.get("foundingMemberPlan") or None,
        "foundingMemberSince": data.get("foundingMemberSince") or None,
    }


@csrf_exempt
@require_POST
@json_endpoint
def send_otp(request: HttpRequest) -> JsonResponse:
    data = parse_json_body(request)
    lifecycle = OtpLifecycle()

    if data.get("emailOrPhone"):
        flow = "login"
        identifier, channel = _identifier_from({"emailOrPhone": data["emailOrPhone"]})
        customer = Customer.objects.filter(**_customer_lookup(identifier, channel)).first()
        if customer is None:
            raise errors.NotFound("No account found with these details. Please register first.")
        result = lifecycle.send(identifier, channel, customer=customer, first_name=customer.first_name)
    else:
        flow = "registration"
        details = _registration_details(data)
        if not details["firstName"] or not details["lastName"]:
            raise errors.ValidationError("First name and last name are required.")
        identifier, channel = _identifier_from(data)
        result = lifecycle.send(identifier, channel, temp_user_data=details, first_name=details["firstName"])

    if channel == OtpRecord.Channel.EMAIL and not result.delivered and not settings.DEBUG:
        raise errors.Internal("Failed to send verification email. Please try again.")

    logger.info("send-otp %s for %s via %s", flow, mask_identifier(identifier), channel)

    payload: Dict[str, Any] = {
        "message": "Verification code sent." if result.delivered else "Verification code generated.",
        "type": flow,
        "channel": channel,
        "identifier": identifier,
        "expiresAt": result.expires_at.isoformat(),
    }
    if channel == OtpRecord.Channel.SMS:
        payload["smsStatus"] = result.sms_status
    if settings.DEBUG and result.delivery != OtpRecord.Delivery.SMS_PROVIDER:
        payload["devOtp"] = result.code
    return json_ok(payload)


def _verify(request: HttpRequest, *, mobile_only: bool) -> JsonResponse:
    check_rate_limit("otp_verify", get_ip(request), settings.OTP_VERIFY_RATE_LIMIT_PER_MIN)
    data = parse_json_body(request)

    if mobile_only:
        if not data.get("mobile"):
            raise errors.ValidationError("Mobile number is required.")
        identifier, channel = _phone_identifier(str(data["mobile"]))
    else:
        identifier, channel = _identifier_from(data)

    otp = str(data.get("otp") or "").strip()
    if not OTP_RE.match(otp):
        raise errors.ValidationError("Please enter the 6-digit verification code.")

    record = OtpLifecycle().verify(identifier, otp)

    registration_data = data.get("registrationData") if mobile_only else None
    if registration_data is not None and not isinstance(registration_data, dict):
        raise errors.ValidationError("registrationData must be an object.")
    customer = complete_verification(record, registration_data=registration_data)

    days = EMAIL_SESSION_DAYS if channel == OtpRecord.Channel.EMAIL and not mobile_only else MOBILE_SESSION_DAYS
    session = create_session(customer, days=days)

    response = json_ok({
        "verified": True,
        "message": "Verification successful.",
        "user": customer.as_public_dict(),
    })
    return attach_session_cookie(response, session)


@csrf_exempt
@require_POST
@json_endpoint
def verify_otp(request: HttpRequest) -> JsonResponse:
    return _verify(request, mobile_only=False)


@csrf_exempt
@require_POST
@json_endpoint
def verify_mobile_otp(request: HttpRequest) -> JsonResponse:
    return _verify(request, mobile_only=True)


@require_GET
@json_endpoint
def me(request: HttpRequest) -> JsonResponse:
    customer = getattr(request, "customer", None)
    if customer is None:
        raise errors.Unauthorized()
    return json_ok({"authenticated": True, "user": customer.as_public_dict()})


@csrf_exempt
@require_POST
@json_endpoint
def logout(request: HttpRequest) -> JsonResponse:
    ended = end_session(request.COOKIES.get(settings.CUSTOMER_SESSION_COOKIE))
    response = json_ok({"loggedOut": ended})
    return clear_session_cookie(response)
