"""HTTP client for the posts and users API."""

import logging
import os

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.environ.get("SOCIALAPI_URL", "http://localhost:8000/api/")


class ApiError(Exception):
    """Non-2xx response; ``errors`` is the decoded JSON body when there is one."""

    def __init__(self, status_code, errors):
        self.status_code = status_code
        self.errors = errors
        super().__init__(f"API request failed with status {status_code}: {errors}")


class PostsClient:
    def __init__(self, base_url=DEFAULT_BASE_URL, token_store=None, transport=None):
        self.token_store = token_store
        self._http = httpx.Client(base_url=base_url, transport=transport)

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # --- Auth header ---

    def set_auth_token(self, token):
        """Attach (or with None, detach) the bearer token sent on every request."""
        if token:
            self._http.headers["Authorization"] = f"Bearer {token}"
        else:
            self._http.headers.pop("Authorization", None)

    @property
    def auth_token(self):
        header = self._http.headers.get("Authorization", "")
        return header[len("Bearer "):] if header.startswith("Bearer ") else None

    def _request(self, method, url, **kwargs):
        response = self._http.request(method, url, **kwargs)
        if response.is_error:
            try:
                errors = response.json()
            except ValueError:
                errors = response.text
            logger.debug("%s %s -> %s %s", method, url, response.status_code, errors)
            raise ApiError(response.status_code, errors)
        return response.json()

    # --- Users ---

    def register(self, email, password, name="", avatar=""):
        payload = {"email": email, "password": password, "name": name, "avatar": avatar}
        return self._request("POST", "users/register/", json=payload)

    def login(self, email, password):
        """Obtain a token pair, use the access token from now on and store it."""
        tokens = self._request(
            "POST", "users/login/", json={"email": email, "password": password}
        )
        access = tokens["access"]
        self.set_auth_token(access)
        if self.token_store is not None:
            self.token_store.save(access)
        return tokens

    def me(self):
        return self._request("GET", "users/me/")

    # --- Posts ---

    def test(self):
        return self._request("GET", "posts/test/")

    def list_posts(self):
        return self._request("GET", "posts/")

    def get_post(self, post_id):
        return self._request("GET", f"posts/{post_id}/")

    def create_post(self, text, name=None, avatar=None):
        payload = {"text": text}
        if name is not None:
            payload["name"] = name
        if avatar is not None:
            payload["avatar"] = avatar
        return self._request("POST", "posts/", json=payload)

    def delete_post(self, post_id):
        return self._request("DELETE", f"posts/{post_id}/")

    def like(self, post_id):
        return self._request("POST", f"posts/like/{post_id}/")

    def unlike(self, post_id):
        return self._request("POST", f"posts/unlike/{post_id}/")

    def add_comment(self, post_id, text, name=None, avatar=None):
        payload = {"text": text}
        if name is not None:
            payload["name"] = name
        if avatar is not None:
            payload["avatar"] = avatar
        return self._request("POST", f"posts/comment/{post_id}/", json=payload)

    def remove_comment(self, post_id, comment_id):
        return self._request("DELETE", f"posts/comment/{post_id}/{comment_id}/")
