"""Errors raised by the video services and mapped to HTTP 403 by the app."""
from __future__ import annotations

from twilio.base.exceptions import TwilioException, TwilioRestException


class VideoServiceError(RuntimeError):
    """Raised when Twilio (or the Twilio library) rejects a request."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    @classmethod
    def from_twilio(cls, exc: TwilioException) -> "VideoServiceError":
        if isinstance(exc, TwilioRestException):
            return cls(exc.msg or str(exc))
        return cls(str(exc))


class MissingParameterError(VideoServiceError):
    """Raised when a request omits a parameter the endpoint cannot do without."""


class NoGroupingSidsError(MissingParameterError):
    def __init__(self) -> None:
        super().__init__("No grouping sids specified")
