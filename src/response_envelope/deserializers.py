"""
Pluggable body deserializers.

A deserializer is anything with a
``deserialize(raw_body, target_type, content_type_hint)`` method that returns
an instance of ``target_type`` or raises DeserializationError. The default
codec parses JSON into pydantic-validated types, which covers generated SDK
models (BaseModel subclasses) as well as plain containers such as
``dict`` or ``List[Model]``.
"""
import codecs
import logging
from functools import lru_cache
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from .config.providers import simple_provider_name, get_provider_friendly_name
from .exceptions import DeserializationError
from .headers import media_type_of, parse_charset

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPES = ('application/json', 'text/json')


@runtime_checkable
class Deserializer(Protocol):
    """Anything that turns raw body bytes into a typed value."""

    def deserialize(self, raw_body: bytes, target_type: Any, content_type_hint: Optional[str] = None) -> Any:
        ...


def is_json_media_type(media_type: Optional[str]) -> bool:
    """True for application/json, text/json and any +json structured suffix."""
    if not media_type:
        return False
    return media_type in JSON_MEDIA_TYPES or media_type.endswith('+json')


def decode_text(raw_body: bytes, content_type_hint: Optional[str] = None, errors: str = 'strict') -> str:
    """Decode a body using the hint's charset, defaulting to UTF-8."""
    encoding = 'utf-8'
    charset = parse_charset(content_type_hint) if content_type_hint else None
    if charset:
        try:
            encoding = codecs.lookup(charset).name
        except LookupError:
            logger.warning(f"Unknown charset {charset!r}, decoding as utf-8")
    return raw_body.decode(encoding, errors=errors)


def _codec_name(charset: str) -> str:
    try:
        return codecs.lookup(charset).name
    except LookupError:
        return 'utf-8'


@lru_cache(maxsize=256)
def _cached_adapter(target_type: Any) -> TypeAdapter:
    return TypeAdapter(target_type)


def type_adapter_for(target_type: Any) -> TypeAdapter:
    """Return a (cached where possible) pydantic TypeAdapter for target_type."""
    try:
        hash(target_type)
    except TypeError:
        return TypeAdapter(target_type)
    return _cached_adapter(target_type)


def _type_name(target_type: Any) -> str:
    return getattr(target_type, '__name__', repr(target_type))


@simple_provider_name("JSON")
class JsonDeserializer:
    """Default codec: JSON body validated into target_type with pydantic.

    Unknown fields are ignored and missing optional fields take their defaults
    (pydantic's standard behaviour); missing required fields fail.
    ``bytes`` and ``str`` targets bypass JSON parsing entirely. A non-UTF-8
    charset declared in the hint is honoured.
    """

    def deserialize(self, raw_body: bytes, target_type: Any, content_type_hint: Optional[str] = None) -> Any:
        if target_type is bytes:
            return bytes(raw_body)
        if target_type is str:
            return TextDeserializer().deserialize(raw_body, str, content_type_hint)

        media_type = media_type_of(content_type_hint)
        if media_type is not None and not is_json_media_type(media_type):
            raise DeserializationError(
                f"Cannot deserialize {media_type} body as JSON into {_type_name(target_type)}",
                raw_body=raw_body, content_type_hint=content_type_hint, target_type=target_type
            )

        payload = raw_body
        charset = parse_charset(content_type_hint) if content_type_hint else None
        if charset and _codec_name(charset) != 'utf-8':
            # pydantic parses JSON bytes as UTF-8; other declared charsets are decoded first
            try:
                payload = decode_text(raw_body, content_type_hint)
            except UnicodeDecodeError as e:
                raise DeserializationError(
                    f"Body is not valid {charset} text: {e.reason}",
                    raw_body=raw_body, content_type_hint=content_type_hint, target_type=target_type, cause=e
                ) from e

        try:
            return type_adapter_for(target_type).validate_json(payload)
        except ValidationError as e:
            raise DeserializationError(
                f"Body does not match {_type_name(target_type)}: {e.error_count()} validation error(s)",
                raw_body=raw_body, content_type_hint=content_type_hint, target_type=target_type, cause=e
            ) from e


@simple_provider_name("Text")
class TextDeserializer:
    """Decodes the body as text; non-str targets are validated from that text."""

    def deserialize(self, raw_body: bytes, target_type: Any, content_type_hint: Optional[str] = None) -> Any:
        try:
            text = decode_text(raw_body, content_type_hint)
        except UnicodeDecodeError as e:
            raise DeserializationError(
                f"Body is not valid text: {e.reason}",
                raw_body=raw_body, content_type_hint=content_type_hint, target_type=target_type, cause=e
            ) from e

        if target_type is str:
            return text
        try:
            return type_adapter_for(target_type).validate_python(text)
        except ValidationError as e:
            raise DeserializationError(
                f"Text body does not match {_type_name(target_type)}",
                raw_body=raw_body, content_type_hint=content_type_hint, target_type=target_type, cause=e
            ) from e


class CallableDeserializer:
    """Adapts a plain function ``(raw_body, target_type, hint) -> value`` to the Deserializer contract."""

    def __init__(self, func: Callable[[bytes, Any, Optional[str]], Any], name: str = None):
        self.func = func
        self.name = name or getattr(func, '__name__', 'callable')

    def deserialize(self, raw_body: bytes, target_type: Any, content_type_hint: Optional[str] = None) -> Any:
        try:
            return self.func(raw_body, target_type, content_type_hint)
        except DeserializationError:
            raise
        except (ValueError, TypeError, LookupError) as e:
            raise DeserializationError(
                f"Custom deserializer {self.name!r} failed for {_type_name(target_type)}: {e}",
                raw_body=raw_body, content_type_hint=content_type_hint, target_type=target_type, cause=e
            ) from e

    def __repr__(self):
        return f"CallableDeserializer({self.name})"


@simple_provider_name("Content-Type")
class ContentTypeDeserializer:
    """Dispatches on the hint's media type to a registered deserializer.

    Lookup order: exact media type, ``+json`` suffix, ``major/*`` wildcard,
    then the fallback.
    """

    def __init__(self, fallback: Deserializer = None, mapping: Dict[str, Any] = None):
        self.fallback = as_deserializer(fallback) if fallback is not None else JsonDeserializer()
        self._by_media_type: Dict[str, Deserializer] = {}
        for media_type, deserializer in (mapping or {}).items():
            self.register(media_type, deserializer)

    def register(self, media_type: str, deserializer: Any) -> 'ContentTypeDeserializer':
        self._by_media_type[media_type.strip().lower()] = as_deserializer(deserializer)
        return self

    def resolve(self, content_type_hint: Optional[str]) -> Deserializer:
        """Pick the deserializer for a content-type hint."""
        media_type = media_type_of(content_type_hint)
        if media_type is None:
            return self.fallback
        if media_type in self._by_media_type:
            return self._by_media_type[media_type]
        if media_type.endswith('+json') and 'application/json' in self._by_media_type:
            return self._by_media_type['application/json']
        wildcard = media_type.split('/', 1)[0] + '/*'
        return self._by_media_type.get(wildcard, self.fallback)

    def deserialize(self, raw_body: bytes, target_type: Any, content_type_hint: Optional[str] = None) -> Any:
        deserializer = self.resolve(content_type_hint)
        logger.debug(f"{content_type_hint or 'no content type'} -> {get_provider_friendly_name(deserializer)}")
        return deserializer.deserialize(raw_body, target_type, content_type_hint)


def as_deserializer(obj: Any) -> Deserializer:
    """Coerce a deserializer-like object into something honouring the contract.

    Objects with a ``deserialize`` method are used as-is; plain callables are
    wrapped in CallableDeserializer. Classes are rejected: pass an instance.
    """
    if isinstance(obj, type):
        raise TypeError(f"Expected a deserializer instance, got the class {obj.__name__}; instantiate it first")
    if isinstance(obj, Deserializer):
        return obj
    if callable(obj):
        return CallableDeserializer(obj)
    raise TypeError(f"Expected a deserializer or callable, got {type(obj).__name__}")


# Registry of deserializers by short name
DESERIALIZERS: Dict[str, Deserializer] = {
    "json": JsonDeserializer(),
    "text": TextDeserializer(),
}


def register_deserializer(name: str, deserializer: Any) -> None:
    """Register a deserializer under a short name for later lookup."""
    DESERIALIZERS[name] = as_deserializer(deserializer)


def get_deserializer(name: str) -> Deserializer:
    """Get a registered deserializer by short name.

    Raises:
        ValueError: If no deserializer is registered under that name
    """
    if name not in DESERIALIZERS:
        raise ValueError(f"No deserializer registered as {name!r}. Available: {', '.join(sorted(DESERIALIZERS))}")
    return DESERIALIZERS[name]


def default_deserializer() -> Deserializer:
    """The codec envelopes use when none is supplied."""
    return DESERIALIZERS["json"]
