"""Error taxonomy for the gateway, rendered to JSON by the app's exception handler."""
from typing import Dict, Optional

from fastapi import status


GENERIC_ERROR = "Something went wrong on my end. Try again in a sec."


class GatewayError(Exception):
    """
    Base class for every failure the gateway reports to a client.

    `error` is what the client sees. Server-side failures keep their
    internal reason in the exception message and only expose it as
    `details` outside production.
    """
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = GENERIC_ERROR
    expose_details: bool = True

    def __init__(
        self,
        message: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        error: Optional[str] = None,
    ):
        super().__init__(message or error or self.error)
        self.headers = headers
        if error:
            self.error = error


class ClientError(GatewayError):
    """Terminal request errors; the message itself is safe to return."""
    expose_details = False

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(message, headers, error=message)


class UnauthenticatedError(ClientError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Missing X-BOCHAT-API-KEY header"


class ForbiddenError(ClientError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Invalid API key"


class RateLimitedError(ClientError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error = "Too many requests. Take a breath and try again in a minute."


class BadRequestError(ClientError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Invalid request"


class UpstreamError(GatewayError):
    """The LLM provider answered with a non-success status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = status_code


class PersistenceError(GatewayError):
    """The relational store is unreachable or rejected a write."""


class ConfigurationError(GatewayError):
    """A required secret or credential is missing."""
