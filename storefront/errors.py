"""
storefront.errors

Error taxonomy shared by the storefront services.

Services raise these; `storefront.http.json_endpoint` turns them into the JSON
envelope `{success: false, error, code}` with the carried HTTP status.

========= CHANGE LOG =========
2026-10-12 • ADD: Forbidden (suspended / not-yet-active accounts).  # CHANGED:
2026-10-03 • ADD: StoreError hierarchy replacing ad-hoc (status, message) tuples.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class StoreError(Exception):
    status = 500
    code = "internal"
    default_message = "Something went wrong."

    def __init__(self, message: Optional[str] = None, *, extra: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.extra = dict(extra or {})
        super().__init__(self.message)


class ValidationError(StoreError):
    status = 400
    code = "validation_error"
    default_message = "Invalid request."


class NotFound(StoreError):
    status = 404
    code = "not_found"
    default_message = "Not found."


class RateLimited(StoreError):
    status = 429
    code = "rate_limited"
    default_message = "Too many requests. Please try again shortly."

    def __init__(self, message: Optional[str] = None, *, retry_after: int = 0, extra=None):
        self.retry_after = max(0, int(retry_after))
        extra = dict(extra or {})
        extra.setdefault("rateLimited", True)
        if self.retry_after:
            extra.setdefault("retryAfter", self.retry_after)
        super().__init__(message, extra=extra)


class Expired(StoreError):
    status = 400
    code = "expired"
    default_message = "Verification code has expired. Please request a new one."


class Mismatch(StoreError):
    status = 400
    code = "mismatch"
    default_message = "Invalid verification code."


class Unauthorized(StoreError):
    status = 401
    code = "unauthorized"
    default_message = "Not signed in."


class Forbidden(StoreError):
    status = 403
    code = "forbidden"
    default_message = "Account is not active."


class Conflict(StoreError):
    status = 409
    code = "conflict"
    default_message = "Resource already exists."


class Unavailable(StoreError):
    status = 503
    code = "unavailable"
    default_message = "Service temporarily unavailable."


class Internal(StoreError):
    status = 500
    code = "internal"
