"""
accounts.throttle

Check-and-set gate used for OTP send locks and resend cooldowns.

`CacheGate` stores an expiry timestamp under the key with `cache.add`, which only
writes when the key is absent, so two workers sharing the cache cannot both pass.
Entries expire on their own; nothing needs sweeping.
"""

from __future__ import annotations

import math
import time
from typing import Protocol

from django.core.cache import caches


class Gate(Protocol):
    def check_and_set(self, key: str, ttl: int) -> bool: ...

    def remaining(self, key: str) -> int: ...

    def release(self, key: str) -> None: ...


class CacheGate:
    def __init__(self, alias: str = "default", prefix: str = "otp_gate"):
        self.alias = alias
        self.prefix = prefix

    @property
    def _cache(self):
        return caches[self.alias]

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def check_and_set(self, key: str, ttl: int) -> bool:
        """True if `key` was free (and is now held for `ttl` seconds)."""
        return bool(self._cache.add(self._key(key), time.time() + ttl, timeout=ttl))

    def remaining(self, key: str) -> int:
        """Seconds until `key` frees up (0 if free)."""
        expiry = self._cache.get(self._key(key))
        if expiry is None:
            return 0
        try:
            return max(0, math.ceil(float(expiry) - time.time()))
        except (TypeError, ValueError):
            return 0

    def release(self, key: str) -> None:
        self._cache.delete(self._key(key))
