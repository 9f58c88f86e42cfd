"""
Error taxonomy for the lighting pipeline.

Every error raised below the controller derives from LightingError and
carries an ``error_kind`` the controller copies into LightingFailure.
"""
from typing import Optional


class LightingError(Exception):
    """Base class for pipeline errors."""

    error_kind = "unexpected"


class ConfigurationError(LightingError):
    """A required setting (API key, device address) is missing."""

    error_kind = "configuration"


class TransportError(LightingError):
    """Connection failure, timeout or non-2xx status from a remote service."""

    error_kind = "transport"


class HttpStatusError(TransportError):
    """A remote service answered with a non-success HTTP status."""

    def __init__(self, service: str, status: int, url: str, body: str = ""):
        self.service = service
        self.status = status
        self.url = url
        self.body = body
        super().__init__(f"{service} HTTP {status} / URL: {url} / {body}")


class GeminiResponseError(HttpStatusError):
    """Gemini generateContent returned a non-2xx status."""

    def __init__(self, status: int, url: str, body: str = ""):
        super().__init__("Gemini API error:", status, url, body)


class DeviceResponseError(HttpStatusError):
    """The Tasmota /cm endpoint returned a non-2xx status."""

    def __init__(self, status: int, url: str, body: str = ""):
        super().__init__("Tasmota send failed:", status, url, body)


class ReplyParseError(LightingError):
    """The model reply had no usable candidate text."""

    error_kind = "parse"

    def __init__(self, message: str, raw: Optional[str] = None):
        self.raw = raw
        super().__init__(message)
