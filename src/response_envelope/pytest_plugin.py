"""
Pytest plugin for response-envelope.

Keeps cached envelope settings from leaking between tests and provides an
envelope_factory fixture for building envelopes from literal responses.
"""

import json as jsonlib

import pytest

from response_envelope.api_client.response import ResponseEnvelope, TypedResponseEnvelope
from response_envelope.config.logging import bootstrap_logging
from response_envelope.config.settings import reset_settings


def pytest_configure(config):
    """Bootstrap logging once for the test session."""
    bootstrap_logging()


def pytest_sessionstart(session):
    """Clear cached settings so the session starts from the real environment."""
    reset_settings()


def pytest_runtest_setup(item):
    """Re-read settings for every test; tests may patch ENVELOPE_* variables."""
    reset_settings()


def pytest_runtest_teardown(item, nextitem):
    reset_settings()


@pytest.fixture
def envelope_factory():
    """
    Build envelopes from literal response data.

    Usage:
        envelope = envelope_factory(200, json={'id': 1}, payload_type=User)
        deleted = envelope_factory(204, method='DELETE')
    """
    def factory(status_code=200, json=None, body=b"", headers=None, payload_type=None, **kwargs):
        headers = dict(headers or {})
        if json is not None:
            body = jsonlib.dumps(json).encode('utf-8')
            headers.setdefault('Content-Type', 'application/json')
        if payload_type is None:
            return ResponseEnvelope(status_code, headers=headers, raw_body=body, **kwargs)
        return TypedResponseEnvelope(status_code, headers=headers, raw_body=body,
                                     payload_type=payload_type, **kwargs)
    return factory
