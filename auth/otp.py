"""
auth/otp.py -- In-memory one-time codes for password reset.

Codes are six-digit numbers drawn from the secrets CSPRNG, keyed by the
lower-cased email they were issued to. Each code is single use: a successful
verify() deletes it. Expired codes are deleted lazily on lookup and in bulk by
purge_expired(), which the API lifespan calls on a timer.

The store lives in process memory. Running several API workers means each
worker has its own store, so a reset must be completed against the same
worker that issued it.

Layer rule: no imports from api/ or designs/.
"""

from __future__ import annotations

import hmac
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass


def generate_otp() -> str:
    """Return a six-digit numeric code in the range 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


@dataclass
class _Entry:
    code: str
    expires_at: float
    attempts: int = 0


class OTPStore:
    """Thread-safe map of email -> pending reset code.

    Usage:
        otps = OTPStore(ttl_seconds=300)
        code = otps.issue("alice@example.com")
        otps.verify("alice@example.com", code)   # True, and the code is gone
        otps.verify("alice@example.com", code)   # False
    """

    def __init__(
        self,
        ttl_seconds: int = 300,
        max_attempts: int = 5,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def issue(self, email: str) -> str:
        """Generate a fresh code for email, replacing any pending one."""
        code = generate_otp()
        self.set(email, code)
        return code

    def set(self, email: str, code: str, ttl_seconds: int | None = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[_key(email)] = _Entry(code=code, expires_at=self._clock() + ttl)

    def verify(self, email: str, code: str) -> bool:
        """Consume the code for email if it matches and has not expired.

        A wrong code counts against max_attempts; once the limit is reached
        the pending code is discarded and a new one must be requested.
        """
        key = _key(email)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.expires_at < self._clock():
                del self._entries[key]
                return False
            if not hmac.compare_digest(entry.code.encode(), str(code).strip().encode()):
                entry.attempts += 1
                if entry.attempts >= self.max_attempts:
                    del self._entries[key]
                return False
            del self._entries[key]
            return True

    def purge_expired(self) -> int:
        """Delete all expired entries. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.expires_at < now]
            for k in expired:
                del self._entries[k]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def _key(email: str) -> str:
    return email.strip().lower()
