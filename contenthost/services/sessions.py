# CONTENTHOST BACKEND

# COMPONENT: ADMIN SESSION SERVICE
# REQUIREMENTS SATISFIED: password login, bearer-token sessions with expiry
"""
contenthost/services/sessions.py

Single-admin authentication for the upload / list / delete endpoints.

The admin password is never stored; ADMIN_PASSWORD_HASH holds its SHA-256
hex digest (see contenthost-hash-password). A successful login issues a
random 64-hex-character token that stays valid for SESSION_TTL seconds.

Sessions live in process memory. Each worker process keeps its own table,
so a token issued by one worker is not known to another.
"""
import hashlib
import hmac
import os
import secrets
import threading
import time
from typing import Callable, Dict, Optional

SESSION_TTL = 86400


class InvalidPassword(Exception):
    pass


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class SessionStore:
    def __init__(
        self,
        password_hash: Optional[str],
        ttl: int = SESSION_TTL,
        clock: Callable[[], float] = time.time,
    ):
        self._password_hash = (password_hash or "").strip().lower()
        self._ttl = ttl
        self._clock = clock
        self._sessions: Dict[str, float] = {}
        self._lock = threading.Lock()

    def login(self, password: str) -> str:
        """
        Check the password and return a fresh session token.
        Raises RuntimeError when no hash is configured, InvalidPassword on mismatch.
        """
        if not self._password_hash:
            raise RuntimeError("ADMIN_PASSWORD_HASH not set")

        if not hmac.compare_digest(hash_password(password), self._password_hash):
            raise InvalidPassword("Invalid password")

        token = secrets.token_hex(32)
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._sessions[token] = now + self._ttl
        return token

    def _purge_expired(self, now: float) -> None:
        # caller holds self._lock
        expired = [t for t, expires_at in self._sessions.items() if now >= expires_at]
        for t in expired:
            del self._sessions[t]

    def is_valid(self, token: str) -> bool:
        with self._lock:
            expires_at = self._sessions.get(token)
            if expires_at is None:
                return False
            if self._clock() >= expires_at:
                del self._sessions[token]
                return False
            return True


_session_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(os.getenv("ADMIN_PASSWORD_HASH"))
    return _session_store
