"""
API tests using InMemoryAPIClient.

Exercises both call surfaces against a small FastAPI app through the FastAPI
TestClient, so envelopes are built from real ASGI responses.
"""

import unittest
from typing import Any, Dict

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from response_envelope import (
    InMemoryAPIClient,
    PagedResponseEnvelope,
    ResponseEnvelope,
    ResponseStatusError,
    TypedResponseEnvelope,
    typed_call,
)
from tests.models import ErrorBody, NewUser, User

USERS = [
    {'id': 1, 'name': 'Ada', 'email': 'ada@example.com'},
    {'id': 2, 'name': 'Alan'},
    {'id': 3, 'name': 'Grace'},
]
PAGE_SIZE = 2


def create_app() -> FastAPI:
    app = FastAPI()
    users = {user['id']: dict(user) for user in USERS}

    @app.get('/users')
    async def list_users(request: Request, page: int = 1):
        ordered = [users[key] for key in sorted(users)]
        start = (page - 1) * PAGE_SIZE
        body: Dict[str, Any] = {'value': ordered[start:start + PAGE_SIZE]}
        if start + PAGE_SIZE < len(ordered):
            body['@odata.nextLink'] = str(request.url_for('list_users').include_query_params(page=page + 1))
        else:
            body['@odata.deltaLink'] = str(request.url_for('list_users')) + '/delta?token=t1'
        return body

    @app.get('/users/{user_id}')
    async def get_user(user_id: int):
        if user_id not in users:
            return JSONResponse(
                status_code=404,
                content={'error': {'code': 'NotFound', 'message': f'User {user_id} not found'}},
                headers={'x-request-id': 'req-404'},
            )
        return users[user_id]

    @app.post('/users', status_code=201)
    async def create_user(new_user: NewUser, response: Response):
        user_id = max(users) + 1
        users[user_id] = {'id': user_id, **new_user.model_dump()}
        response.headers['Location'] = f'/users/{user_id}'
        return users[user_id]

    @app.delete('/users/{user_id}', status_code=204)
    async def delete_user(user_id: int):
        users.pop(user_id, None)
        return Response(status_code=204)

    @app.get('/trace')
    async def trace():
        response = JSONResponse({'ok': True})
        response.headers.append('X-Trace', 'hop-1')
        response.headers.append('X-Trace', 'hop-2')
        return response

    return app


class TestInMemoryAPIClient(unittest.TestCase):
    """Classic and with-response calls against an in-memory FastAPI app."""

    def setUp(self):
        self.test_client = TestClient(create_app())
        self.api_client = InMemoryAPIClient(self.test_client)

    def test_classic_get_returns_payload(self):
        self.assertEqual(self.api_client.get('/users/2'), {'id': 2, 'name': 'Alan'})
        self.assertEqual(self.api_client.get('/users/1', User).email, 'ada@example.com')

    def test_classic_get_error_keeps_envelope(self):
        with self.assertRaises(ResponseStatusError) as ctx:
            self.api_client.get('/users/99', User)

        envelope = ctx.exception.envelope
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(envelope.headers['X-Request-Id'], 'req-404')
        self.assertEqual(envelope.deserialize_as(ErrorBody).error.code, 'NotFound')

    def test_get_with_response_for_error(self):
        envelope = self.api_client.get_with_response('/users/99', ErrorBody)

        self.assertIsInstance(envelope, TypedResponseEnvelope)
        self.assertEqual(envelope.status_code, 404)
        self.assertIn(b'User 99 not found', envelope.raw_body)
        self.assertEqual(envelope.get_payload().error.message, 'User 99 not found')

    def test_post_with_response(self):
        envelope = self.api_client.post_with_response('/users', json={'name': 'Barbara'}, payload_type=User)

        self.assertEqual(envelope.status_code, 201)
        self.assertEqual(envelope.method, 'POST')
        self.assertEqual(envelope.headers['location'], '/users/4')
        self.assertEqual(envelope.get_payload(), User(id=4, name='Barbara'))

    def test_classic_post(self):
        user = self.api_client.post('/users', json={'name': 'Edsger', 'email': 'ewd@example.com'},
                                    payload_type=User)

        self.assertEqual(user.name, 'Edsger')

    def test_delete_surfaces(self):
        self.assertIsNone(self.api_client.delete('/users/3'))

        envelope = self.api_client.delete_with_response('/users/2')

        self.assertIsInstance(envelope, ResponseEnvelope)
        self.assertNotIsInstance(envelope, TypedResponseEnvelope)
        self.assertEqual(envelope.status_code, 204)
        self.assertEqual(envelope.raw_body, b"")
        self.assertFalse(envelope.body_expected)

    def test_repeated_headers_preserved(self):
        envelope = self.api_client.get_with_response('/trace')

        self.assertEqual(envelope.headers.get_all('x-trace'), ['hop-1', 'hop-2'])

    def test_default_headers_sent(self):
        app = FastAPI()

        @app.get('/whoami')
        async def whoami(request: Request):
            return {'tenant': request.headers.get('x-tenant')}

        client = InMemoryAPIClient(TestClient(app), default_headers={'X-Tenant': 'contoso'})

        self.assertEqual(client.get('/whoami'), {'tenant': 'contoso'})
        self.assertEqual(client.get('/whoami', headers={'X-Tenant': 'fabrikam'}), {'tenant': 'fabrikam'})

    def test_get_page_and_iter_pages(self):
        first = self.api_client.get_page('/users', User)

        self.assertIsInstance(first, PagedResponseEnvelope)
        self.assertEqual([user.id for user in first], [1, 2])
        self.assertIsNotNone(first.next_link)

        pages = list(self.api_client.iter_pages('/users', User))

        self.assertEqual(len(pages), 2)
        self.assertEqual([user.name for page in pages for user in page], ['Ada', 'Alan', 'Grace'])
        self.assertTrue(pages[-1].delta_link.endswith('/users/delta?token=t1'))
        self.assertIsNone(pages[-1].next_link)

    def test_iter_pages_max_pages(self):
        pages = list(self.api_client.iter_pages('/users', User, max_pages=1))

        self.assertEqual(len(pages), 1)

    def test_client_level_custom_deserializer(self):
        sentinel = object()
        client = InMemoryAPIClient(self.test_client, deserializer=lambda raw, t, hint: sentinel)

        self.assertIs(client.get('/users/1', User), sentinel)
        # Per-call override wins over the client default
        envelope = client.get_with_response('/users/1', User, deserializer=lambda raw, t, hint: 'override')
        self.assertEqual(envelope.get_payload(), 'override')

    def test_raise_on_status_disabled(self):
        client = InMemoryAPIClient(self.test_client, raise_on_status=False)

        error = client.get('/users/99', ErrorBody)

        self.assertEqual(error.error.code, 'NotFound')

    def test_typed_call_factories(self):
        get_user = typed_call('GET', User)
        get_user_with_response = typed_call('get', User, with_response=True)

        self.assertEqual(get_user(self.api_client, '/users/1').name, 'Ada')
        self.assertEqual(get_user.__name__, 'get_user')
        self.assertIs(get_user.payload_type, User)

        envelope = get_user_with_response(self.api_client, '/users/2')
        self.assertEqual(envelope.status_code, 200)
        self.assertEqual(envelope.get_payload().name, 'Alan')

        with self.assertRaises(ResponseStatusError):
            get_user(self.api_client, '/users/99')
