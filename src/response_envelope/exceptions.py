"""
Custom exceptions for the response envelope package.
"""
from typing import Any, Optional


def _preview(raw_body: bytes, limit: int) -> str:
    """Render a bounded, printable preview of a response body."""
    if not raw_body:
        return "<empty>"
    text = raw_body[:limit].decode('utf-8', errors='replace')
    if len(raw_body) > limit:
        text += f"... ({len(raw_body)} bytes)"
    return text


class EnvelopeError(Exception):
    """Base exception for all envelope errors."""
    pass


class TransportError(EnvelopeError):
    """Raised when an HTTP exchange did not complete.

    No envelope exists for such a call; transport adapters raise this before
    one could be constructed.
    """
    def __init__(self, message: str, method: str = None, url: str = None, cause: Exception = None):
        super().__init__(message)
        self.method = method
        self.url = url
        self.cause = cause


class DeserializationError(EnvelopeError):
    """Raised when a body cannot be converted to the requested type.

    Carries the raw body and content-type hint so nothing received is lost.
    """
    def __init__(self, message: str, raw_body: bytes = b"", content_type_hint: Optional[str] = None,
                 target_type: Any = None, cause: Exception = None):
        super().__init__(message)
        self.raw_body = raw_body if raw_body is not None else b""
        self.content_type_hint = content_type_hint
        self.target_type = target_type
        self.cause = cause

    @property
    def target_name(self) -> str:
        return getattr(self.target_type, '__name__', repr(self.target_type))

    def body_preview(self, limit: int = 256) -> str:
        """Return a truncated, decoded view of the offending body."""
        return _preview(self.raw_body, limit)


class EmptyBodyError(DeserializationError):
    """Raised when a body was expected for the status and method but none arrived."""
    def __init__(self, message: str, status_code: int = None, method: str = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.method = method


class ResponseStatusError(EnvelopeError):
    """Raised by classic (payload-only) calls for non-2xx responses.

    The complete envelope is attached so status, headers and body stay
    available to the caller.
    """
    def __init__(self, envelope, message: str = None):
        self.envelope = envelope
        if message is None:
            message = f"HTTP {envelope.status_code}"
            if envelope.method:
                message = f"{envelope.method} returned HTTP {envelope.status_code}"
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return self.envelope.status_code
