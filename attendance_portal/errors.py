"""
Exception types shared by the API client, the services and the UI.
"""
from typing import Optional


class PortalError(Exception):
    """Base error; ``message`` is what the UI shows inline."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Client-side validation failure. Never reaches the network."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ApiError(PortalError):
    """
    Failed call to the backend.

    ``kind`` is "network" for transport failures (status is None),
    "http" when the error body carried a message and "unparseable"
    when it did not.
    """

    def __init__(self, message: str, status: Optional[int] = None, kind: str = "http"):
        super().__init__(message)
        self.status = status
        self.kind = kind


class UnauthorizedError(ApiError):
    """HTTP 401 from the backend."""


class RequestCancelled(PortalError):
    """The request was superseded before its result could be applied."""

    def __init__(self, message: str = "Request cancelled"):
        super().__init__(message)


class ConfigurationError(PortalError):
    """Required server-side configuration is missing."""
