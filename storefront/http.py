"""
storefront.http

JSON plumbing shared by the accounts + orders views.

- json_ok / json_error build the response envelope.
- parse_json_body returns a dict or raises errors.ValidationError.
- check_rate_limit is the per-IP, per-minute cache counter.
- json_endpoint converts StoreError (and anything unexpected) into JSON.

Success envelope: {"success": true, ...payload, "ver": VER}
Error envelope:   {"success": false, "error": "...", "code": "...", "ver": VER}
                  + "details" (traceback) only when DEBUG is on.

========= CHANGE LOG =========
2026-10-12 • ADD: json_endpoint decorator (one try/except per view was drifting).  # CHANGED:
2026-10-03 • ADD: Envelope + body parsing + rate limit helpers lifted from the checkout view.
"""

from __future__ import annotations

import functools
import json
import logging
import traceback
from typing import Any, Callable, Dict, Optional

from django.conf import settings
from django.core.cache import cache
from django.http import HttpRequest, JsonResponse

from storefront import errors

logger = logging.getLogger("storefront")

VER = "storefront.v2026-10-12"


def json_ok(payload: Optional[Dict[str, Any]] = None, status: int = 200) -> JsonResponse:
    body: Dict[str, Any] = {"success": True}
    body.update(payload or {})
    body["ver"] = VER
    return JsonResponse(body, status=status)


def json_error(message: str, status: int, code: str = "error", detail: Optional[str] = None,
               extra: Optional[Dict[str, Any]] = None) -> JsonResponse:
    body: Dict[str, Any] = {"success": False, "error": message, "code": code}
    body.update(extra or {})
    if detail and settings.DEBUG:
        body["details"] = detail[:2000]
    body["ver"] = VER
    return JsonResponse(body, status=status)


def parse_json_body(request: HttpRequest) -> Dict[str, Any]:
    try:
        raw = request.body.decode("utf-8") if request.body else ""
    except UnicodeDecodeError:
        raise errors.ValidationError("Unable to read request body.")
    if not raw.strip():
        raise errors.ValidationError("Missing JSON body.")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        raise errors.ValidationError("Invalid JSON.")
    if not isinstance(data, dict):
        raise errors.ValidationError("JSON body must be an object.")
    return data


def get_ip(request: HttpRequest) -> str:
    xff = request.META.get("HTTP_X_FORWARDED_FOR")
    if xff:
        return xff.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "unknown")


def check_rate_limit(scope: str, ip: str, limit_per_minute: int) -> None:
    key = f"storefront_rl:{scope}:{ip}"
    try:
        count = int(cache.get(key, 0))
    except (TypeError, ValueError):
        count = 0

    count += 1
    cache.set(key, count, timeout=60)

    if count > limit_per_minute:
        raise errors.RateLimited("Too many attempts. Please try again in a minute.", retry_after=60)


def json_endpoint(view: Callable[..., JsonResponse]) -> Callable[..., JsonResponse]:
    """Run `view`, mapping StoreError to its status and anything else to a 500."""

    @functools.wraps(view)
    def wrapper(request: HttpRequest, *args, **kwargs) -> JsonResponse:
        try:
            return view(request, *args, **kwargs)
        except errors.StoreError as exc:
            if exc.status >= 500:
                logger.error("%s %s failed: %s", request.method, request.path, exc.message)
            else:
                logger.info("%s %s rejected (%s): %s", request.method, request.path, exc.code, exc.message)
            return json_error(exc.message, exc.status, code=exc.code, extra=exc.extra)
        except Exception as exc:
            logger.exception("%s %s crashed", request.method, request.path)
            return json_error(
                "Internal server error.",
                500,
                code="internal",
                detail=f"{exc}\n{traceback.format_exc()}",
            )

    return wrapper
