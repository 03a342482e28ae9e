# accounts/phone.py
import re

from django.conf import settings

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
E164_RE = re.compile(r"^\+[1-9]\d{7,14}$")


def normalize_email(raw: str) -> str:
    """
    Lower-case + strip, then validate.
    Raises ValueError when the address is not plausible.
    """
    email = (raw or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValueError("Please enter a valid email address.")
    return email


def to_e164(raw: str, default_country_code: str = None) -> str:
    """
    Normalize user input into canonical E.164 ("+<country><number>").
    - Strips spaces, dashes, dots and parentheses
    - "00" international prefix becomes "+"
    - Bare national numbers get the default country code (leading trunk 0 dropped)
    Raises ValueError when the result is not a valid E.164 number.
    """
    if not raw or not isinstance(raw, str):
        raise ValueError("Missing phone number")
    cc = (default_country_code or getattr(settings, "DEFAULT_PHONE_COUNTRY_CODE", "91")).lstrip("+")

    s = re.sub(r"[\s\-\.\(\)]", "", raw.strip())
    if s.startswith("00"):
        s = "+" + s[2:]
    if not s.startswith("+"):
        s = s.lstrip("0")
        s = f"+{cc}{s}"

    if not E164_RE.match(s):
        raise ValueError("Please enter a valid phone number.")
    return s


def looks_like_email(raw: str) -> bool:
    return "@" in (raw or "")


def mask_identifier(identifier: str) -> str:
    """For logs: keep the shape, hide most of the value."""
    s = identifier or ""
    if "@" in s:
        local, _, domain = s.partition("@")
        return f"{local[:2]}***@{domain}"
    if len(s) <= 4:
        return "****"
    return f"{s[:3]}***{s[-2:]}"
