"""Exceptions raised by the Toolhouse client."""

from typing import Optional


class ToolhouseError(Exception):
    """Base class for every error raised by this package."""


class RequestFailed(ToolhouseError):
    """
    Raised when a request to an agent cannot be completed.

    Covers both transport failures (DNS, refused connection, timeouts, ...)
    and responses with a non-2xx status. ``status_code`` is only set for the
    latter.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
