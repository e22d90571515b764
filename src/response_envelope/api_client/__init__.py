"""
API Client package.

Provides response envelopes and a consistent client interface whether calls
run in-memory or over HTTP.
"""

from .base_client import APIClient, typed_call
from .in_memory_client import InMemoryAPIClient
from .remote_client import RemoteAPIClient
from .response import ResponseEnvelope, TypedResponseEnvelope
from .paging import PagedResponseEnvelope

__all__ = [
    'APIClient',
    'typed_call',
    'InMemoryAPIClient',
    'RemoteAPIClient',
    'ResponseEnvelope',
    'TypedResponseEnvelope',
    'PagedResponseEnvelope',
]
