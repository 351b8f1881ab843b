"""Google authentication exceptions."""

from __future__ import annotations


class GoogleAuthError(Exception):
    """Base exception for Google authentication errors."""

    pass


class CredentialsNotFoundError(GoogleAuthError):
    """Raised when OAuth credentials file is not found."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Credentials file not found at {path}. "
            "Please download OAuth credentials from Google Cloud Console."
        )


class MissingCredentialsError(GoogleAuthError):
    """Raised when required credential environment variables are unset."""

    def __init__(self, keys: list[str]):
        self.keys = keys
        super().__init__(
            f"Missing credentials: {', '.join(keys)}. "
            "Run 'sheets-utils login' and store the printed values."
        )


class TokenError(GoogleAuthError):
    """Raised when there's an issue with the OAuth token."""

    pass


class ScopeMismatchError(GoogleAuthError):
    """Raised when token scopes don't match required scopes."""

    def __init__(self, missing_scopes: set[str]):
        self.missing_scopes = missing_scopes
        super().__init__(f"Token missing required scopes: {missing_scopes}")


class AuthorizationRequired(GoogleAuthError):
    """Raised when an API call needs a user authorization that is not held."""

    def __init__(self, auth_url: str, message: str = "Authorization required"):
        self.auth_url = auth_url
        super().__init__(f"{message}\nAuthorization URL: {auth_url}")


class AuthorizationDenied(GoogleAuthError):
    """Raised when the consent screen redirects back with an error."""

    def __init__(self, error: str):
        self.error = error
        super().__init__(f"OAuth error: {error}")


class CallbackServerError(GoogleAuthError):
    """Raised when the local OAuth callback server cannot start."""

    def __init__(self, port: int, reason: str):
        self.port = port
        super().__init__(f"Failed to start callback server on port {port}: {reason}")
