"""
accounts.models

Customers, one-time passcodes, and opaque customer sessions.

- Customer: storefront identity (email and/or E.164 phone), verification flags,
  lifecycle status, founding-member perks.
- OtpRecord: at most one live code per canonical identifier (email or phone).
- CustomerSession: random token → customer, sent as the `session` cookie.

CHANGE LOG
- 2026-10-12: ADD founding-member fields + OtpRecord.delivery marker.  # CHANGED:
- 2026-10-03: Create Customer, OtpRecord, CustomerSession.
"""

from __future__ import annotations

import secrets
import uuid

from django.core.validators import RegexValidator
from django.db import models
from django.utils import timezone


E164_VALIDATOR = RegexValidator(
    regex=r"^\+[1-9]\d{7,14}$",
    message="Phone number must be in E.164 format, e.g. +919876543210.",
)


def six_digit_code() -> str:
    # 6-digit numeric code
    return f"{secrets.randbelow(1_000_000):06d}"


def session_token() -> str:
    return secrets.token_urlsafe(32)


class Customer(models.Model):
    """
    One storefront identity. Either email or phone (or both) is set.

    Email is stored lower-cased; phone is stored in E.164.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        ACTIVE = "active", "Active"
        SUSPENDED = "suspended", "Suspended"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    email = models.EmailField(unique=True, null=True, blank=True)
    phone_number = models.CharField(
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        validators=[E164_VALIDATOR],
    )
    first_name = models.CharField(max_length=80, blank=True, default="")
    last_name = models.CharField(max_length=80, blank=True, default="")

    email_verified = models.BooleanField(default=False)
    mobile_verified = models.BooleanField(default=False)

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)
    role = models.CharField(max_length=32, default="customer")

    is_founding_member = models.BooleanField(default=False)
    founding_member_plan = models.CharField(max_length=64, blank=True, default="")
    founding_member_since = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return self.email or self.phone_number or str(self.id)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active_customer(self) -> bool:
        return self.status == self.Status.ACTIVE

    def as_public_dict(self) -> dict:
        return {
            "id": str(self.id),
            "email": self.email,
            "phoneNumber": self.phone_number,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "emailVerified": self.email_verified,
            "mobileVerified": self.mobile_verified,
            "status": self.status,
            "role": self.role,
            "isFoundingMember": self.is_founding_member,
            "foundingMemberPlan": self.founding_member_plan or None,
        }


class OtpRecord(models.Model):
    """Live verification code for one identifier. Deleted once consumed or expired."""

    class Channel(models.TextChoices):
        EMAIL = "email", "Email"
        SMS = "sms", "SMS"

    class Delivery(models.TextChoices):
        EMAIL = "email", "Email"
        SMS_PROVIDER = "sms_provider", "SMS provider"
        SMS_LOCAL = "sms_local", "Local code"

    identifier = models.CharField(max_length=254, unique=True)
    channel = models.CharField(max_length=8, choices=Channel.choices)
    code = models.CharField(max_length=6)
    expires_at = models.DateTimeField()
    verified = models.BooleanField(default=False)
    failed_attempts = models.PositiveSmallIntegerField(default=0)
    delivery = models.CharField(max_length=16, choices=Delivery.choices, default=Delivery.EMAIL)

    # Registration details held until the code is verified.
    temp_user_data = models.JSONField(null=True, blank=True)
    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="otp_records",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"OTP({self.identifier}, {self.channel})"

    def is_expired(self, now=None) -> bool:
        return (now or timezone.now()) > self.expires_at

    def matches(self, code: str) -> bool:
        return secrets.compare_digest(self.code, (code or "").strip())


class CustomerSession(models.Model):
    token = models.CharField(max_length=64, unique=True, default=session_token)
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name="sessions")
    email = models.EmailField(null=True, blank=True)
    role = models.CharField(max_length=32, default="customer")
    expires_at = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return f"Session({self.customer_id}) until {self.expires_at:%Y-%m-%d}"

    def is_expired(self, now=None) -> bool:
        return (now or timezone.now()) >= self.expires_at
