"""
Root pytest configuration for response-envelope.

Settings reset and the envelope_factory fixture come from the
response_envelope pytest plugin (registered through the pytest11 entry point).
"""

from response_envelope.config.logging import bootstrap_logging

bootstrap_logging()
