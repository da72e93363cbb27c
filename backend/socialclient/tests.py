import json
import tempfile
import time
import unittest
from pathlib import Path

import httpx
import jwt

from .api import ApiError, PostsClient
from .auth import TokenStore, bootstrap_auth


def make_token(exp_offset, **claims):
    payload = {"user_id": 1, "name": "Alice", "exp": int(time.time()) + exp_offset}
    payload.update(claims)
    return jwt.encode(payload, "test-secret", algorithm="HS256")


class RecordingTransport:
    """Collects requests and answers from a {(method, path): (status, body)} table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        status_code, body = self.routes.get(
            (request.method, request.url.path), (404, {"detail": "Not found."})
        )
        return httpx.Response(status_code, json=body)


class TokenStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = TokenStore(Path(self.tmp.name) / "nested" / "token")

    def tearDown(self):
        self.tmp.cleanup()

    def test_load_without_file(self):
        self.assertIsNone(self.store.load())

    def test_save_load_clear(self):
        self.store.save("abc.def.ghi")
        self.assertEqual(self.store.load(), "abc.def.ghi")

        self.store.clear()
        self.assertIsNone(self.store.load())
        # Clearing twice is fine
        self.store.clear()


class BootstrapAuthTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = TokenStore(Path(self.tmp.name) / "token")
        self.client = PostsClient(
            "http://api.test/api/", transport=httpx.MockTransport(RecordingTransport({}))
        )

    def tearDown(self):
        self.client.close()
        self.tmp.cleanup()

    def test_no_stored_token(self):
        state = bootstrap_auth(self.store, self.client)

        self.assertFalse(state.is_authenticated)
        self.assertFalse(state.login_required)
        self.assertIsNone(self.client.auth_token)

    def test_valid_token_authenticates(self):
        token = make_token(3600)
        self.store.save(token)

        state = bootstrap_auth(self.store, self.client)

        self.assertTrue(state.is_authenticated)
        self.assertEqual(state.user["name"], "Alice")
        self.assertEqual(self.client.auth_token, token)

    def test_expired_token_logs_out(self):
        self.store.save(make_token(-10))

        state = bootstrap_auth(self.store, self.client)

        self.assertFalse(state.is_authenticated)
        self.assertTrue(state.login_required)
        self.assertIsNone(self.store.load())
        self.assertIsNone(self.client.auth_token)

    def test_expiry_uses_given_clock(self):
        token = make_token(0, exp=1000)
        self.store.save(token)

        self.assertTrue(bootstrap_auth(self.store, self.client, now=999).is_authenticated)
        self.assertTrue(bootstrap_auth(self.store, self.client, now=1001).login_required)

    def test_token_without_exp_stays_authenticated(self):
        token = jwt.encode({"user_id": 1, "name": "A"}, "test-secret", algorithm="HS256")
        self.store.save(token)

        state = bootstrap_auth(self.store, self.client)

        self.assertTrue(state.is_authenticated)
        self.assertFalse(state.login_required)
        self.assertEqual(state.user["name"], "A")
        self.assertEqual(self.store.load(), token)
        self.assertEqual(self.client.auth_token, token)

    def test_non_numeric_exp_logs_out(self):
        self.store.save(make_token(0, exp="tomorrow"))

        state = bootstrap_auth(self.store, self.client)

        self.assertFalse(state.is_authenticated)
        self.assertTrue(state.login_required)
        self.assertIsNone(self.store.load())
        self.assertIsNone(self.client.auth_token)

    def test_garbage_token_logs_out(self):
        self.store.save("definitely-not-a-jwt")

        state = bootstrap_auth(self.store, self.client)

        self.assertTrue(state.login_required)
        self.assertIsNone(self.store.load())


class PostsClientTests(unittest.TestCase):
    def make_client(self, routes, token_store=None):
        self.transport = RecordingTransport(routes)
        return PostsClient(
            "http://api.test/api/",
            token_store=token_store,
            transport=httpx.MockTransport(self.transport),
        )

    def test_login_stores_and_sends_token(self):
        with tempfile.TemporaryDirectory() as tmp:
            store = TokenStore(Path(tmp) / "token")
            routes = {
                ("POST", "/api/users/login/"): (200, {"access": "acc", "refresh": "ref"}),
                ("POST", "/api/posts/like/7/"): (200, {"id": 7, "likes": [{"user": 1}]}),
            }
            with self.make_client(routes, token_store=store) as client:
                client.login("alice@test.com", "pw")
                post = client.like(7)

            self.assertEqual(store.load(), "acc")

        self.assertEqual(post["likes"], [{"user": 1}])
        like_request = self.transport.requests[-1]
        self.assertEqual(like_request.headers["Authorization"], "Bearer acc")
        login_request = self.transport.requests[0]
        self.assertEqual(
            json.loads(login_request.content),
            {"email": "alice@test.com", "password": "pw"},
        )

    def test_error_response_raises_api_error(self):
        routes = {
            ("POST", "/api/posts/like/7/"): (
                400,
                {"alreadyliked": "User already liked this post"},
            ),
        }
        with self.make_client(routes) as client:
            with self.assertRaises(ApiError) as ctx:
                client.like(7)

        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.errors, {"alreadyliked": "User already liked this post"})

    def test_comment_routes(self):
        routes = {
            ("POST", "/api/posts/comment/3/"): (200, {"id": 3, "comments": [{"id": 9}]}),
            ("DELETE", "/api/posts/comment/3/9/"): (200, {"id": 3, "comments": []}),
        }
        with self.make_client(routes) as client:
            added = client.add_comment(3, "nice post!")
            removed = client.remove_comment(3, 9)

        self.assertEqual(added["comments"], [{"id": 9}])
        self.assertEqual(removed["comments"], [])
        self.assertEqual(json.loads(self.transport.requests[0].content), {"text": "nice post!"})

    def test_set_auth_token_none_detaches_header(self):
        with self.make_client({}) as client:
            client.set_auth_token("abc")
            self.assertEqual(client.auth_token, "abc")
            client.set_auth_token(None)
            self.assertIsNone(client.auth_token)
