"""Shared-secret authentication for the versioned API."""
from typing import Optional
import hmac
import logging

from exceptions import UnauthenticatedError, ForbiddenError

logger = logging.getLogger(__name__)


class CredentialGuard:
    """Checks the X-BOCHAT-API-KEY header against the server-held secret."""

    def __init__(self, secret: Optional[str]):
        self._secret = secret

    def authenticate(self, provided: Optional[str], origin: Optional[str] = None) -> None:
        """Raise UnauthenticatedError when the header is missing, ForbiddenError when it does not match."""
        if not provided:
            raise UnauthenticatedError()

        if self._secret is None or not hmac.compare_digest(provided.encode(), self._secret.encode()):
            logger.warning(f"[Auth] Invalid API key attempt from {origin or 'unknown'}")
            raise ForbiddenError()
