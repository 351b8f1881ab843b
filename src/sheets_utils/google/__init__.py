"""Google OAuth utilities."""

from sheets_utils.google.exceptions import (
    AuthorizationDenied,
    AuthorizationRequired,
    CallbackServerError,
    CredentialsNotFoundError,
    GoogleAuthError,
    MissingCredentialsError,
    ScopeMismatchError,
    TokenError,
)
from sheets_utils.google.login_flow import LoginResult, login
from sheets_utils.google.oauth import GoogleOAuth, create_auth_client

__all__ = [
    "GoogleOAuth",
    "create_auth_client",
    "login",
    "LoginResult",
    "GoogleAuthError",
    "CredentialsNotFoundError",
    "MissingCredentialsError",
    "TokenError",
    "ScopeMismatchError",
    "AuthorizationRequired",
    "AuthorizationDenied",
    "CallbackServerError",
]
