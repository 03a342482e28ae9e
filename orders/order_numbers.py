"""
orders.order_numbers

Human-friendly order numbers tagged by plan type.

Format:
  <TAG>-<YYMMDD>-XXXXX      e.g. NFC-261019-7K4Q9

Where X uses an unambiguous alphabet (no 0/1/I/O):
  23456789ABCDEFGHJKLMNPQRSTUVWXYZ
"""

from __future__ import annotations

import secrets
from typing import Callable, Optional

from django.utils import timezone

ALPHABET: str = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"

PLAN_TAGS = {
    "digital-only": "DIG",
    "digital-profile-app": "APP",
    "nfc-card-full": "NFC",
}
DEFAULT_TAG = "NFC"


def generate_order_number(plan_type: str, *, suffix_len: int = 5, now=None) -> str:
    tag = PLAN_TAGS.get(plan_type, DEFAULT_TAG)
    stamp = (now or timezone.now()).strftime("%y%m%d")
    suffix = "".join(secrets.choice(ALPHABET) for _ in range(max(4, suffix_len)))
    return f"{tag}-{stamp}-{suffix}"


def generate_unique_order_number(
    plan_type: str,
    *,
    exists: Callable[[str], bool],
    max_tries: int = 25,
) -> str:
    """
    `exists(number) -> bool` is supplied by the caller, typically:
      lambda n: Order.objects.filter(order_number=n).exists()
    """
    last: Optional[str] = None
    for attempt in range(max(1, max_tries)):
        # Widen the random part after a few collisions on the same day.
        candidate = generate_order_number(plan_type, suffix_len=5 if attempt < 5 else 8)
        if not exists(candidate):
            return candidate
        last = candidate
    raise RuntimeError(f"Unable to generate a unique order number after {max_tries} tries (last={last}).")
