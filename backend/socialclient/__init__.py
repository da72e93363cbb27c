from .api import ApiError, PostsClient
from .auth import AuthState, TokenStore, bootstrap_auth, logout

__all__ = [
    "ApiError",
    "AuthState",
    "PostsClient",
    "TokenStore",
    "bootstrap_auth",
    "logout",
]
