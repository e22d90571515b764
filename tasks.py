"""Invoke entry point: `inv test --suite=unit`."""
from response_envelope.tasks import namespace  # noqa: F401
