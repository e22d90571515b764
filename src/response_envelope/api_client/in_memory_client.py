"""
In-memory API client using FastAPI TestClient.

Used for fast, isolated exchanges against an ASGI app in the same process.
This is a generic client that doesn't know about specific auth frameworks.
"""
from typing import Any, Dict, Optional

from ..config.providers import simple_provider_name
from ..exceptions import TransportError
from .base_client import APIClient
from .response import ResponseEnvelope


@simple_provider_name("In Memory")
class InMemoryAPIClient(APIClient):
    """In-memory API client using FastAPI TestClient."""

    def __init__(self, fastapi_client, default_headers: Optional[Dict[str, str]] = None, **kwargs):
        """Initialize with FastAPI TestClient instance.

        Args:
            fastapi_client: FastAPI TestClient instance
            default_headers: Optional default headers to include in all requests
            **kwargs: deserializer / raise_on_status, see APIClient
        """
        super().__init__(default_headers=default_headers, **kwargs)
        self.client = fastapi_client

    def _send(self, method: str, path: str, json: Any = None,
              headers: Optional[Dict[str, str]] = None) -> ResponseEnvelope:
        """Run the request through the TestClient and wrap the completed response."""
        kwargs = {'headers': headers}
        if json is not None:
            kwargs['json'] = json
        try:
            response = self.client.request(method, path, **kwargs)
        except (OSError, RuntimeError) as e:
            raise TransportError(f"{method} {path} failed in-process: {e}", method=method, url=path, cause=e) from e

        return ResponseEnvelope(
            status_code=response.status_code,
            headers=response.headers,
            raw_body=response.content,
            deserializer=self.deserializer,
            method=method,
            url=str(response.url),
        )
