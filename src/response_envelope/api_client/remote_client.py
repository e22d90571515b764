"""
Remote HTTP API client using requests library.

Produces envelopes from real network exchanges. Network failures surface as
TransportError before any envelope exists.
"""
import logging
from typing import Any, Dict, Optional

import requests

from ..config.providers import simple_provider_name
from ..exceptions import TransportError
from .base_client import APIClient
from .response import ResponseEnvelope

logger = logging.getLogger(__name__)


@simple_provider_name("HTTP")
class RemoteAPIClient(APIClient):
    """Remote HTTP API client using requests library."""

    def __init__(self, base_url: str, default_headers: Optional[Dict[str, str]] = None,
                 timeout: Optional[float] = 30.0, session: Optional[requests.Session] = None, **kwargs):
        """Initialize with base URL for remote API.

        Args:
            base_url: Base URL for the remote API (e.g., http://localhost:8001)
            default_headers: Optional default headers to include in all requests
            timeout: Per-request timeout in seconds passed to requests
            session: Optional requests.Session to reuse connections
            **kwargs: deserializer / raise_on_status, see APIClient
        """
        super().__init__(default_headers=default_headers, **kwargs)
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _build_url(self, path: str) -> str:
        # Continuation links are usually absolute
        if path.startswith(('http://', 'https://')):
            return path
        if not path.startswith('/'):
            path = '/' + path
        return f"{self.base_url}{path}"

    def _send(self, method: str, path: str, json: Any = None,
              headers: Optional[Dict[str, str]] = None) -> ResponseEnvelope:
        """Make the request over HTTP and wrap the completed response."""
        url = self._build_url(path)
        try:
            response = self.session.request(method, url, json=json, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.debug(f"{method} {url} failed: {e}")
            raise TransportError(f"{method} {url} failed: {e}", method=method, url=url, cause=e) from e

        return ResponseEnvelope(
            status_code=response.status_code,
            headers=response.headers,
            raw_body=response.content,
            deserializer=self.deserializer,
            method=method,
            url=response.url or url,
        )
