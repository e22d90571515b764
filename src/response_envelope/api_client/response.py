"""
Response envelopes for API clients.

A ResponseEnvelope keeps the complete result of one HTTP exchange (status,
headers, raw body) regardless of the underlying HTTP library. Deserialization
is lazy: nothing is parsed until a caller asks for a typed value.
"""
import logging
import threading
from typing import Any, Generic, Optional, TypeVar

from ..config.providers import get_provider_friendly_name
from ..config.settings import get_settings
from ..deserializers import Deserializer, as_deserializer, decode_text, default_deserializer
from ..exceptions import DeserializationError, EmptyBodyError
from ..headers import HeaderMap

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Statuses that never carry a body (RFC 9110)
BODYLESS_STATUSES = frozenset({204, 205, 304})
BODYLESS_METHODS = frozenset({'HEAD'})

# Targets that read the raw bytes directly, so an empty body is a valid value
_RAW_TARGETS = (bytes, str)


def _freeze_body(raw_body: Any) -> bytes:
    if raw_body is None:
        return b""
    if type(raw_body) is bytes:
        return raw_body
    if isinstance(raw_body, str):
        raise TypeError("raw_body must be bytes, not str; encode it before building an envelope")
    if not isinstance(raw_body, (bytes, bytearray, memoryview)):
        raise TypeError(f"raw_body must be bytes-like, not {type(raw_body).__name__}")
    return bytes(raw_body)


class ResponseEnvelope:
    """Complete, lossless result of one HTTP call.

    Constructible for any status, 4xx and 5xx included. Attribute access never
    raises; the body is stored exactly as received and is never consumed, so
    it can be deserialized any number of times into different types.
    """

    def __init__(self, status_code: int, headers: Any = None, raw_body: Any = b"",
                 deserializer: Any = None, content_type_hint: Optional[str] = None,
                 method: Optional[str] = None, url: Optional[str] = None):
        """Capture a completed exchange.

        Args:
            status_code: HTTP status code
            headers: Header container (dict, pair list, requests/httpx headers)
            raw_body: Body bytes; None is treated as an empty body
            deserializer: Custom deserializer or callable; defaults to the JSON codec
            content_type_hint: Overrides the Content-Type header for deserialization
            method: HTTP method of the request, used to decide whether a body is expected
            url: Request URL, kept for diagnostics
        """
        self._status_code = int(status_code)
        self._headers = headers if isinstance(headers, HeaderMap) else HeaderMap(headers)
        self._raw_body = _freeze_body(raw_body)
        self._deserializer = as_deserializer(deserializer) if deserializer is not None else default_deserializer()
        self._content_type_hint = (
            content_type_hint
            or self._headers.get('content-type')
            or get_settings().default_content_type
        )
        self._method = method.upper() if method else None
        self._url = url

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> HeaderMap:
        return self._headers

    @property
    def raw_body(self) -> bytes:
        return self._raw_body

    @property
    def deserializer(self) -> Deserializer:
        return self._deserializer

    @property
    def content_type_hint(self) -> str:
        return self._content_type_hint

    @property
    def method(self) -> Optional[str]:
        return self._method

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def is_success(self) -> bool:
        return 200 <= self._status_code < 300

    @property
    def body_expected(self) -> bool:
        """Whether the status and method allow a response body at all."""
        if self._method in BODYLESS_METHODS:
            return False
        if 100 <= self._status_code < 200:
            return False
        return self._status_code not in BODYLESS_STATUSES

    @property
    def text(self) -> str:
        """Body decoded with the declared charset; undecodable bytes are replaced."""
        return decode_text(self._raw_body, self._content_type_hint, errors='replace')

    def deserialize_as(self, target_type: Any, deserializer: Any = None) -> Any:
        """Deserialize the raw body into target_type, without caching.

        Returns None for legitimately bodyless responses (204, 304, HEAD...).

        Raises:
            EmptyBodyError: A body was expected but none was received
            DeserializationError: The body does not match target_type
        """
        return self._deserialize(target_type, deserializer)

    def _deserialize(self, target_type: Any, deserializer: Any = None) -> Any:
        if not self._raw_body and target_type not in _RAW_TARGETS:
            if not self.body_expected:
                return None
            raise EmptyBodyError(
                f"Expected a {getattr(target_type, '__name__', target_type)} body for "
                f"{self._method or 'request'} with HTTP {self._status_code}, got none",
                status_code=self._status_code, method=self._method,
                raw_body=self._raw_body, content_type_hint=self._content_type_hint, target_type=target_type
            )

        chosen = as_deserializer(deserializer) if deserializer is not None else self._deserializer
        try:
            return chosen.deserialize(self._raw_body, target_type, self._content_type_hint)
        except DeserializationError as e:
            logger.warning(
                f"❌ {get_provider_friendly_name(chosen)} deserialization failed "
                f"(HTTP {self._status_code}, {self._content_type_hint}): {e}; "
                f"body: {e.body_preview(get_settings().body_preview_bytes)}"
            )
            raise

    def __repr__(self):
        return (f"{type(self).__name__}(status_code={self._status_code}, "
                f"content_type={self._content_type_hint!r}, body={len(self._raw_body)} bytes)")


class TypedResponseEnvelope(ResponseEnvelope, Generic[T]):
    """ResponseEnvelope with a declared payload type.

    The payload is deserialized on the first get_payload() call. With caching
    on, that first successful result is stored and returned by later calls;
    concurrent first calls deserialize only once. With caching off, every call
    deserializes afresh. A failed deserialization never caches anything.
    """

    def __init__(self, status_code: int, headers: Any = None, raw_body: Any = b"",
                 payload_type: Any = dict, deserializer: Any = None,
                 content_type_hint: Optional[str] = None, method: Optional[str] = None,
                 url: Optional[str] = None, cache_payload: Optional[bool] = None):
        super().__init__(status_code, headers=headers, raw_body=raw_body, deserializer=deserializer,
                         content_type_hint=content_type_hint, method=method, url=url)
        self._payload_type = payload_type
        self._cache_payload = get_settings().cache_payload if cache_payload is None else cache_payload
        self._lock = threading.Lock()
        # (materialized, payload) swapped as one reference so readers never see half a state
        self._state = (False, None)

    @classmethod
    def from_envelope(cls, envelope: ResponseEnvelope, payload_type: Any = dict,
                      deserializer: Any = None, cache_payload: Optional[bool] = None) -> 'TypedResponseEnvelope':
        """Specialize an existing envelope to a payload type without copying its storage."""
        return cls(
            envelope.status_code,
            headers=envelope.headers,
            raw_body=envelope.raw_body,
            payload_type=payload_type,
            deserializer=deserializer if deserializer is not None else envelope.deserializer,
            content_type_hint=envelope.content_type_hint,
            method=envelope.method,
            url=envelope.url,
            cache_payload=cache_payload,
        )

    @property
    def payload_type(self) -> Any:
        return self._payload_type

    @property
    def cache_payload(self) -> bool:
        return self._cache_payload

    @property
    def is_materialized(self) -> bool:
        return self._state[0]

    def get_payload(self, deserializer: Any = None) -> T:
        """Return the body deserialized as payload_type.

        Args:
            deserializer: Optional override used for this call only (e.g. to
                retry after a failure with a corrected deserializer). Ignored
                once a cached payload exists.
        """
        if not self._cache_payload:
            return self._deserialize(self._payload_type, deserializer)

        materialized, payload = self._state
        if materialized:
            return payload

        with self._lock:
            materialized, payload = self._state
            if not materialized:
                payload = self._deserialize(self._payload_type, deserializer)
                self._state = (True, payload)
                logger.debug(f"Materialized {getattr(self._payload_type, '__name__', self._payload_type)} "
                             f"payload for HTTP {self._status_code}")
            return payload

    def clear_payload(self) -> None:
        """Drop any cached payload, returning the envelope to its raw state."""
        with self._lock:
            self._state = (False, None)
