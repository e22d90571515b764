"""
Tests for TypedResponseEnvelope: lazy materialization, caching policy,
custom deserializers and concurrent access.
"""

import os
import threading
import time
import unittest
import xml.etree.ElementTree as ET
from unittest import mock

from response_envelope import DeserializationError, TypedResponseEnvelope
from tests.models import User

USER_BODY = b'{"id": 7, "name": "Grace"}'


class CountingDeserializer:
    """Deserializer that records how often it runs."""

    def __init__(self, result=None, delay=0.0):
        self.result = result
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def deserialize(self, raw_body, target_type, content_type_hint=None):
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.result is not None:
            return self.result
        return target_type.model_validate_json(raw_body)


class TestMaterialization(unittest.TestCase):
    """Raw -> Materialized transition."""

    def test_construction_does_not_deserialize(self):
        deserializer = CountingDeserializer()
        envelope = TypedResponseEnvelope(200, raw_body=b'not json at all', payload_type=User,
                                         deserializer=deserializer)

        self.assertFalse(envelope.is_materialized)
        self.assertEqual(deserializer.calls, 0)
        self.assertEqual(envelope.status_code, 200)
        self.assertEqual(envelope.raw_body, b'not json at all')

    def test_cached_payload_deserialized_once(self):
        deserializer = CountingDeserializer()
        envelope = TypedResponseEnvelope(200, raw_body=USER_BODY, payload_type=User,
                                         deserializer=deserializer, cache_payload=True)

        first = envelope.get_payload()
        second = envelope.get_payload()

        self.assertEqual(first, User(id=7, name='Grace'))
        self.assertIs(first, second)
        self.assertEqual(deserializer.calls, 1)
        self.assertTrue(envelope.is_materialized)

    def test_uncached_payload_deserialized_every_call(self):
        deserializer = CountingDeserializer()
        envelope = TypedResponseEnvelope(200, raw_body=USER_BODY, payload_type=User,
                                         deserializer=deserializer, cache_payload=False)

        first = envelope.get_payload()
        second = envelope.get_payload()

        self.assertEqual(first, second)
        self.assertIsNot(first, second)
        self.assertEqual(deserializer.calls, 2)
        self.assertFalse(envelope.is_materialized)

    def test_clear_payload_returns_to_raw(self):
        deserializer = CountingDeserializer()
        envelope = TypedResponseEnvelope(200, raw_body=USER_BODY, payload_type=User,
                                         deserializer=deserializer)
        envelope.get_payload()

        envelope.clear_payload()

        self.assertFalse(envelope.is_materialized)
        envelope.get_payload()
        self.assertEqual(deserializer.calls, 2)

    def test_clear_racing_with_cached_reads_never_yields_none(self):
        envelope = TypedResponseEnvelope(200, raw_body=USER_BODY, payload_type=User, cache_payload=True)
        envelope.get_payload()
        stop = threading.Event()

        def keep_clearing():
            while not stop.is_set():
                envelope.clear_payload()

        clearer = threading.Thread(target=keep_clearing)
        clearer.start()
        try:
            payloads = [envelope.get_payload() for _ in range(2000)]
        finally:
            stop.set()
            clearer.join()

        self.assertTrue(all(payload == User(id=7, name='Grace') for payload in payloads))

    def test_caching_default_follows_settings(self):
        self.assertTrue(TypedResponseEnvelope(200, raw_body=USER_BODY, payload_type=User).cache_payload)

        with mock.patch.dict(os.environ, {'ENVELOPE_CACHE_PAYLOAD': 'off'}):
            from response_envelope.config.settings import reset_settings
            reset_settings()
            envelope = TypedResponseEnvelope(200, raw_body=USER_BODY, payload_type=User)

        self.assertFalse(envelope.cache_payload)

    def test_from_envelope_shares_storage(self):
        base = TypedResponseEnvelope(201, headers={'Location': '/users/7'}, raw_body=USER_BODY, method='POST')
        typed = TypedResponseEnvelope.from_envelope(base, payload_type=User)

        self.assertIs(typed.headers, base.headers)
        self.assertIs(typed.raw_body, base.raw_body)
        self.assertEqual(typed.method, 'POST')
        self.assertEqual(typed.get_payload().name, 'Grace')


class TestCustomDeserializer(unittest.TestCase):
    """The override slot replaces the default codec."""

    def test_sentinel_deserializer_bypasses_default_codec(self):
        sentinel = object()
        envelope = TypedResponseEnvelope(200, raw_body=b'\x00\x01 definitely not json',
                                         payload_type=User, deserializer=lambda raw, t, hint: sentinel)

        self.assertIs(envelope.get_payload(), sentinel)

    def test_failure_then_retry_with_corrected_deserializer(self):
        envelope = TypedResponseEnvelope(200, headers={'Content-Type': 'application/xml'},
                                         raw_body=b'<user id="7" name="Grace"/>', payload_type=User)

        with self.assertRaises(DeserializationError) as ctx:
            envelope.get_payload()

        self.assertFalse(envelope.is_materialized)
        self.assertEqual(ctx.exception.content_type_hint, 'application/xml')

        def parse_xml(raw_body, target_type, content_type_hint):
            element = ET.fromstring(raw_body)
            return target_type(id=int(element.get('id')), name=element.get('name'))

        user = envelope.get_payload(deserializer=parse_xml)

        self.assertEqual(user, User(id=7, name='Grace'))
        self.assertTrue(envelope.is_materialized)
        # Cached value is served regardless of later overrides
        self.assertIs(envelope.get_payload(deserializer=lambda *a: None), user)

    def test_failing_custom_deserializer_is_not_cached(self):
        attempts = []

        def flaky(raw_body, target_type, content_type_hint):
            attempts.append(1)
            if len(attempts) == 1:
                raise ValueError('transient parse problem')
            return target_type.model_validate_json(raw_body)

        envelope = TypedResponseEnvelope(200, raw_body=USER_BODY, payload_type=User, deserializer=flaky)

        with self.assertRaises(DeserializationError):
            envelope.get_payload()
        self.assertFalse(envelope.is_materialized)

        self.assertEqual(envelope.get_payload().id, 7)
        self.assertEqual(len(attempts), 2)


class TestConcurrentMaterialization(unittest.TestCase):
    """Concurrent first calls on a caching envelope deserialize exactly once."""

    def test_single_deserialization_under_contention(self):
        workers = 16
        deserializer = CountingDeserializer(delay=0.05)
        envelope = TypedResponseEnvelope(200, raw_body=USER_BODY, payload_type=User,
                                         deserializer=deserializer, cache_payload=True)
        barrier = threading.Barrier(workers)
        results = []
        results_lock = threading.Lock()

        def worker():
            barrier.wait()
            payload = envelope.get_payload()
            with results_lock:
                results.append(payload)

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        self.assertEqual(len(results), workers)
        self.assertEqual(deserializer.calls, 1)
        self.assertTrue(all(result is results[0] for result in results))
