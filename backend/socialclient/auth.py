"""
Client-side authentication state.

The access token is kept in a local file between runs. On start-up
bootstrap_auth() reads it back, attaches it to the HTTP client and decodes the
user from it; an expired token logs the user out instead.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path

import jwt

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_FILE = os.environ.get(
    "SOCIALAPI_TOKEN_FILE", str(Path.home() / ".socialapi" / "token")
)


class TokenStore:
    """A single access token persisted in a local file."""

    def __init__(self, path=DEFAULT_TOKEN_FILE):
        self.path = Path(path)

    def load(self):
        try:
            token = self.path.read_text().strip()
        except FileNotFoundError:
            return None
        return token or None

    def save(self, token):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token)

    def clear(self):
        self.path.unlink(missing_ok=True)


@dataclass
class AuthState:
    is_authenticated: bool = False
    user: dict = field(default_factory=dict)
    # Set when a stored token had to be discarded and the user must log in again
    login_required: bool = False


def decode_token(token):
    # Signature is checked by the server on every request
    return jwt.decode(token, options={"verify_signature": False})


def logout(store, client):
    store.clear()
    client.set_auth_token(None)
    return AuthState(login_required=True)


def bootstrap_auth(store, client, now=None):
    token = store.load()
    if token is None:
        return AuthState()

    client.set_auth_token(token)

    try:
        decoded = decode_token(token)
    except jwt.InvalidTokenError:
        logger.warning("Discarding unreadable stored token")
        return logout(store, client)

    # A token without exp never expires on the client side
    exp = decoded.get("exp")
    if exp is not None:
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            logger.warning("Discarding stored token with malformed exp claim")
            return logout(store, client)

        current_time = time.time() if now is None else now
        if exp < current_time:
            logger.info("Stored token expired, logging out")
            return logout(store, client)

    return AuthState(is_authenticated=True, user=decoded)
