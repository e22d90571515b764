"""
Response envelopes with lazy, pluggable deserialization for HTTP client SDKs.
"""

from .api_client import (
    APIClient,
    InMemoryAPIClient,
    PagedResponseEnvelope,
    RemoteAPIClient,
    ResponseEnvelope,
    TypedResponseEnvelope,
    typed_call,
)
from .deserializers import (
    CallableDeserializer,
    ContentTypeDeserializer,
    Deserializer,
    JsonDeserializer,
    TextDeserializer,
    as_deserializer,
    get_deserializer,
    register_deserializer,
)
from .exceptions import (
    DeserializationError,
    EmptyBodyError,
    EnvelopeError,
    ResponseStatusError,
    TransportError,
)
from .headers import HeaderMap

__version__ = '0.1.0'

__all__ = [
    'APIClient',
    'InMemoryAPIClient',
    'RemoteAPIClient',
    'ResponseEnvelope',
    'TypedResponseEnvelope',
    'PagedResponseEnvelope',
    'typed_call',
    'Deserializer',
    'JsonDeserializer',
    'TextDeserializer',
    'CallableDeserializer',
    'ContentTypeDeserializer',
    'as_deserializer',
    'get_deserializer',
    'register_deserializer',
    'EnvelopeError',
    'TransportError',
    'DeserializationError',
    'EmptyBodyError',
    'ResponseStatusError',
    'HeaderMap',
]
