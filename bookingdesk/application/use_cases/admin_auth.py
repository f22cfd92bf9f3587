from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Callable

from bookingdesk.application.exceptions import AuthenticationError


DEV_TOKEN_SECRET = "bookingdesk-dev-secret-change-me"
TOKEN_LENGTH = 64


class AdminAuthenticator:
    """Stateless admin tokens derived from the current admin password.

    Changing the password in the Settings table invalidates every token
    issued before the change; ``password_provider`` should read the store
    uncached.
    """

    def __init__(self, secret: str | None, password_provider: Callable[[], str]) -> None:
        self._logger = logging.getLogger(__name__)
        if not secret:
            self._logger.warning("ADMIN_TOKEN_SECRET not set; using an insecure development secret")
            secret = DEV_TOKEN_SECRET
        self._secret = secret.encode("utf-8")
        self._password_provider = password_provider

    def make_token(self, password: str) -> str:
        return hmac.new(self._secret, password.encode("utf-8"), hashlib.sha256).hexdigest()

    def verify(self, token: str | None) -> bool:
        if not token or len(token) != TOKEN_LENGTH:
            return False
        password = self._password_provider()
        if not password:
            return False
        expected = self.make_token(password)
        return hmac.compare_digest(expected.encode("ascii"), token.encode("ascii", "ignore"))

    def login(self, password: str | None) -> str:
        stored = self._password_provider()
        if not stored:
            self._logger.warning("Admin login attempted with no password configured")
            raise AuthenticationError("Admin password not configured")
        if not hmac.compare_digest(
            hashlib.sha256((password or "").encode("utf-8")).digest(),
            hashlib.sha256(stored.encode("utf-8")).digest(),
        ):
            self._logger.info("Admin login rejected")
            raise AuthenticationError("Invalid password")
        return self.make_token(stored)
