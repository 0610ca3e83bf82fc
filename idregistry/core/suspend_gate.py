"""Process-wide suspend switch for maintenance windows."""

from __future__ import annotations

import hmac
import logging
import threading

from idregistry.core.exceptions import AdminAuthorizationError, ServiceSuspendedError

logger = logging.getLogger(__name__)


class SuspendGate:
    """Thread-safe boolean that blocks mutating operations while set.

    State is never persisted: every new gate (and so every process start)
    begins active.
    """

    def __init__(self, admin_secret: str) -> None:
        self._admin_secret = admin_secret
        self._suspended = False
        self._lock = threading.Lock()

    def is_suspended(self) -> bool:
        with self._lock:
            return self._suspended

    def set_suspended(self, value: bool) -> None:
        with self._lock:
            self._suspended = value

    def ensure_active(self) -> None:
        """Raise ``ServiceSuspendedError`` when mutations are blocked."""
        if self.is_suspended():
            raise ServiceSuspendedError()

    def _authorize(self, secret: str | None, *, action: str) -> None:
        candidate = (secret or "").encode("utf-8")
        if not secret or not hmac.compare_digest(candidate, self._admin_secret.encode("utf-8")):
            logger.warning("Admin secret rejected", extra={"action": action})
            raise AdminAuthorizationError()

    def suspend(self, secret: str | None) -> None:
        self._authorize(secret, action="suspend")
        self.set_suspended(True)
        logger.info("Server suspended; mutating requests will be rejected")

    def resume(self, secret: str | None) -> None:
        self._authorize(secret, action="resume")
        self.set_suspended(False)
        logger.info("Server resumed")
