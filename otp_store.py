"""
One-time password storage

Purpose: issue and check short-lived login codes keyed by email.

Input: email address (normalized to lowercase by the API models).

Output: a 6-digit code on issue; True/False on verify.

Notes: InMemoryOtpStore is only correct for a single-process deployment.
A multi-process deployment needs a shared keyed expiring cache behind the
same OtpStore interface.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol
import hmac
import secrets
import threading
import time

import config


class OtpStore(Protocol):
    def issue(self, email: str) -> str: ...

    def verify(self, email: str, code: str) -> bool: ...

    def discard(self, email: str) -> None: ...


@dataclass
class _Entry:
    code: str
    expires_at: float


def generate_code(length: int = config.OTP_LENGTH) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


class InMemoryOtpStore:
    """Codes expire after `ttl_seconds` and are consumed by a successful verify."""

    def __init__(
        self,
        ttl_seconds: int = config.OTP_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        code_factory: Callable[[], str] = generate_code,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._code_factory = code_factory
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def issue(self, email: str) -> str:
        code = self._code_factory()
        with self._lock:
            self._purge_expired()
            self._entries[email] = _Entry(code=code, expires_at=self._clock() + self.ttl_seconds)
        return code

    def verify(self, email: str, code: str) -> bool:
        with self._lock:
            entry: Optional[_Entry] = self._entries.get(email)
            if entry is None:
                return False
            if self._clock() >= entry.expires_at:
                del self._entries[email]
                return False
            # compare_digest only accepts ASCII str, so compare the encoded bytes
            if not hmac.compare_digest(entry.code.encode("utf-8"), code.strip().encode("utf-8")):
                return False
            del self._entries[email]
            return True

    def discard(self, email: str) -> None:
        """Drop the pending code, e.g. when it could not be delivered."""
        with self._lock:
            self._entries.pop(email, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [email for email, entry in self._entries.items() if now >= entry.expires_at]
        for email in expired:
            del self._entries[email]
