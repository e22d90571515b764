"""
Base API client abstract class.

Offers two call surfaces over one transport hook:

* classic calls (get/post/delete) return only the payload and raise
  ResponseStatusError for non-2xx results;
* with-response calls (get_with_response, post_with_response,
  delete_with_response, get_page) return envelopes and never raise for status.

Both surfaces coexist and share the same envelope types underneath.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, Optional

from ..config.settings import get_settings
from ..deserializers import as_deserializer
from ..exceptions import ResponseStatusError
from .paging import PagedResponseEnvelope
from .response import ResponseEnvelope, TypedResponseEnvelope

logger = logging.getLogger(__name__)


class APIClient(ABC):
    """Abstract base class for API clients.

    Subclasses supply _send(), which performs one HTTP exchange and returns a
    ResponseEnvelope (or raises TransportError if the exchange did not
    complete).
    """

    def __init__(self, default_headers: Optional[Dict[str, str]] = None, deserializer: Any = None,
                 raise_on_status: Optional[bool] = None):
        """Initialize shared client options.

        Args:
            default_headers: Optional default headers to include in all requests
            deserializer: Custom deserializer applied to every envelope this client creates
            raise_on_status: Whether classic calls raise for non-2xx; defaults to settings
        """
        self.default_headers = default_headers or {}
        self.deserializer = as_deserializer(deserializer) if deserializer is not None else None
        self.raise_on_status = get_settings().raise_on_status if raise_on_status is None else raise_on_status

    @abstractmethod
    def _send(self, method: str, path: str, json: Any = None,
              headers: Optional[Dict[str, str]] = None) -> ResponseEnvelope:
        """Perform one HTTP exchange and wrap the result."""
        pass

    def _merge_headers(self, headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        merged_headers = {**self.default_headers}
        if headers:
            merged_headers.update(headers)
        return merged_headers

    # With-response surface

    def request_with_response(self, method: str, path: str, payload_type: Any = dict, json: Any = None,
                              headers: Optional[Dict[str, str]] = None,
                              deserializer: Any = None) -> TypedResponseEnvelope:
        """Issue a request and return the typed envelope, whatever the status."""
        envelope = self._send(method, path, json=json, headers=self._merge_headers(headers))
        logger.debug(f"{method} {path} -> HTTP {envelope.status_code} ({len(envelope.raw_body)} bytes)")
        return TypedResponseEnvelope.from_envelope(
            envelope, payload_type=payload_type, deserializer=deserializer or self.deserializer
        )

    def get_with_response(self, path: str, payload_type: Any = dict, headers: Optional[Dict[str, str]] = None,
                          deserializer: Any = None) -> TypedResponseEnvelope:
        """Make GET request and return the full envelope."""
        return self.request_with_response('GET', path, payload_type, headers=headers, deserializer=deserializer)

    def post_with_response(self, path: str, json: Any = None, payload_type: Any = dict,
                           headers: Optional[Dict[str, str]] = None,
                           deserializer: Any = None) -> TypedResponseEnvelope:
        """Make POST request and return the full envelope."""
        return self.request_with_response('POST', path, payload_type, json=json, headers=headers,
                                          deserializer=deserializer)

    def delete_with_response(self, path: str, headers: Optional[Dict[str, str]] = None) -> ResponseEnvelope:
        """Make DELETE request and return the envelope; deletes carry no payload type."""
        envelope = self._send('DELETE', path, headers=self._merge_headers(headers))
        logger.debug(f"DELETE {path} -> HTTP {envelope.status_code}")
        return envelope

    def get_page(self, path: str, item_type: Any = dict, headers: Optional[Dict[str, str]] = None,
                 deserializer: Any = None) -> PagedResponseEnvelope:
        """Fetch one page of a collection.

        Raises:
            DeserializationError: The body is not a page of item_type
        """
        envelope = self._send('GET', path, headers=self._merge_headers(headers))
        return PagedResponseEnvelope.from_envelope(envelope, item_type, deserializer or self.deserializer)

    def iter_pages(self, path: str, item_type: Any = dict, headers: Optional[Dict[str, str]] = None,
                   deserializer: Any = None, max_pages: Optional[int] = None) -> Iterator[PagedResponseEnvelope]:
        """Yield pages, following next links until the collection ends.

        Stops after a page carrying a delta link; that link is for the next
        synchronization round, not for this read.

        Raises:
            ResponseStatusError: A page request returned a non-2xx status
        """
        link = path
        fetched = 0
        while link and (max_pages is None or fetched < max_pages):
            envelope = self._send('GET', link, headers=self._merge_headers(headers))
            self._check_status(envelope)
            page = PagedResponseEnvelope.from_envelope(envelope, item_type, deserializer or self.deserializer)
            fetched += 1
            yield page
            link = page.next_link

    # Classic surface

    def _check_status(self, envelope: ResponseEnvelope) -> None:
        if self.raise_on_status and not envelope.is_success:
            logger.debug(f"Raising for HTTP {envelope.status_code} from {envelope.method} {envelope.url}")
            raise ResponseStatusError(envelope)

    def request(self, method: str, path: str, payload_type: Any = dict, json: Any = None,
                headers: Optional[Dict[str, str]] = None) -> Any:
        """Issue a request and return only the payload."""
        envelope = self.request_with_response(method, path, payload_type, json=json, headers=headers)
        self._check_status(envelope)
        return envelope.get_payload()

    def get(self, path: str, payload_type: Any = dict, headers: Optional[Dict[str, str]] = None) -> Any:
        """Make GET request and return the payload."""
        return self.request('GET', path, payload_type, headers=headers)

    def post(self, path: str, json: Any = None, payload_type: Any = dict,
             headers: Optional[Dict[str, str]] = None) -> Any:
        """Make POST request and return the payload."""
        return self.request('POST', path, payload_type, json=json, headers=headers)

    def delete(self, path: str, headers: Optional[Dict[str, str]] = None) -> None:
        """Make DELETE request."""
        self._check_status(self.delete_with_response(path, headers=headers))


def typed_call(method: str, payload_type: Any, with_response: bool = False) -> Callable[..., Any]:
    """Build a call-site function that fixes the payload type of one operation.

    Generated SDK methods use this instead of repeating envelope logic per
    entity type:

        get_user = typed_call('GET', User)
        get_user_with_response = typed_call('GET', User, with_response=True)

        user = get_user(client, '/users/42')
    """
    method = method.upper()

    def call(client: APIClient, path: str, json: Any = None, headers: Optional[Dict[str, str]] = None,
             deserializer: Any = None):
        envelope = client.request_with_response(method, path, payload_type, json=json, headers=headers,
                                                deserializer=deserializer)
        if with_response:
            return envelope
        client._check_status(envelope)
        return envelope.get_payload()

    call.__name__ = f"{method.lower()}_{getattr(payload_type, '__name__', 'payload').lower()}"
    call.payload_type = payload_type
    return call
