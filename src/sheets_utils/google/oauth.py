"""Google OAuth management using Authlib.

This module provides OAuth 2.0 authentication for the Google Sheets API with:
- Credential construction from a stored refresh token
- Authorization URL creation and code exchange for the login flow
- Google API service creation

Credentials come from the environment (see sheets_utils.config):
    CLIENT_ID, CLIENT_SECRET  - OAuth client credentials
    REFRESH_TOKEN             - long-lived token from 'sheets-utils login'
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from authlib.integrations.requests_client import OAuth2Session
from authlib.oauth2 import OAuth2Error
from google.oauth2.credentials import Credentials as GoogleCredentials
from googleapiclient.discovery import build

from sheets_utils.config import REDIRECT_URI, Env, load_env
from sheets_utils.google.exceptions import (
    CredentialsNotFoundError,
    ScopeMismatchError,
    TokenError,
)

logger = logging.getLogger(__name__)


SCOPES = {
    "sheets": "https://www.googleapis.com/auth/spreadsheets",
    "sheets_readonly": "https://www.googleapis.com/auth/spreadsheets.readonly",
    "drive_file": "https://www.googleapis.com/auth/drive.file",
}


class GoogleOAuth:
    """Google OAuth management using Authlib.

    Holds the OAuth client credentials and, once authorized, the user's
    refresh token. Produces google-auth credentials for API client libraries.

    Example:
        >>> auth = GoogleOAuth.from_env()
        >>> sheets = auth.build_service("sheets", "v4")

        >>> auth = GoogleOAuth(client_id, client_secret)
        >>> url = auth.get_authorization_url()
        >>> auth.fetch_token(code="4/0Ab...")
        >>> auth.refresh_token
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str | None = None,
        scopes: list[str] | None = None,
        redirect_uri: str = REDIRECT_URI,
    ):
        """Initialize Google OAuth.

        Args:
            client_id: OAuth client ID.
            client_secret: OAuth client secret.
            refresh_token: Previously minted refresh token, if any.
            scopes: List of scope names (e.g., ["sheets"]) or full URLs.
                   If None, defaults to ["sheets"].
            redirect_uri: Redirect target registered for the login flow.
        """
        self.required_scopes = self._resolve_scopes(scopes or ["sheets"])
        self.client_id = client_id
        self.client_secret = client_secret

        token = None
        if refresh_token:
            token = {"refresh_token": refresh_token, "token_type": "Bearer"}

        self.session = OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.required_scopes),
            redirect_uri=redirect_uri,
            token=token,
            update_token=self._on_token_update,
            token_endpoint=self.TOKEN_URL,
            token_endpoint_auth_method="client_secret_post",
        )

        self.last_refresh: datetime | None = None
        self.refresh_count = 0
        self.state: str | None = None

    @classmethod
    def from_env(
        cls,
        env: Env | Mapping[str, str] | None = None,
        scopes: list[str] | None = None,
    ) -> GoogleOAuth:
        """Build from CLIENT_ID / CLIENT_SECRET / REFRESH_TOKEN.

        Args:
            env: An Env, a mapping with the upper-case keys, or None for os.environ.
            scopes: Scope names or URLs.

        Raises:
            MissingCredentialsError: If any of the keys is missing.
        """
        if not isinstance(env, Env):
            env = load_env(env)
        return cls(
            client_id=env.client_id,
            client_secret=env.client_secret,
            refresh_token=env.refresh_token,
            scopes=scopes,
        )

    @classmethod
    def from_client_secrets_file(cls, path: str | Path, **kwargs: Any) -> GoogleOAuth:
        """Build from an OAuth client credentials file.

        Args:
            path: credentials.json downloaded from Google Cloud Console.
            **kwargs: Passed through to the constructor.

        Raises:
            CredentialsNotFoundError: If the file does not exist.
            ValueError: If the file has neither an 'installed' nor a 'web' key,
                or lacks client_id or client_secret.
        """
        path = Path(path)
        if not path.exists():
            raise CredentialsNotFoundError(str(path))

        with open(path) as f:
            creds = json.load(f)

        # Handle both web and installed app credential formats
        if "installed" in creds:
            app_creds = creds["installed"]
        elif "web" in creds:
            app_creds = creds["web"]
        else:
            raise ValueError("Invalid credentials.json format. Expected 'installed' or 'web' key.")

        if not app_creds.get("client_id") or not app_creds.get("client_secret"):
            raise ValueError("Invalid credentials.json: missing client_id or client_secret.")

        return cls(app_creds["client_id"], app_creds["client_secret"], **kwargs)

    def _resolve_scopes(self, scopes: list[str]) -> list[str]:
        """Resolve scope names to full URLs."""
        resolved = []
        for scope in scopes:
            if scope.startswith("https://"):
                resolved.append(scope)
            elif scope in SCOPES:
                resolved.append(SCOPES[scope])
            else:
                raise ValueError(
                    f"Unknown scope: {scope}. Use full URL or one of: {list(SCOPES.keys())}"
                )
        return resolved

    def _on_token_update(
        self,
        token: dict[str, Any],
        refresh_token: str | None = None,
        access_token: str | None = None,
    ):
        """Record a refreshed token (Authlib callback)."""
        if refresh_token and not token.get("refresh_token"):
            token["refresh_token"] = refresh_token
        self._check_scopes(token)

        self.last_refresh = datetime.now()
        self.refresh_count += 1
        logger.info("Access token refreshed")

    def _check_scopes(self, token: Mapping[str, Any]) -> None:
        granted = token.get("scope")
        if not granted:
            return

        token_scopes = set(granted.split())
        missing = set(self.required_scopes) - token_scopes
        if missing:
            raise ScopeMismatchError(missing)

    @property
    def refresh_token(self) -> str | None:
        if not self.session.token:
            return None
        return self.session.token.get("refresh_token")

    def is_authorized(self) -> bool:
        """Check whether a refresh token is held."""
        return bool(self.refresh_token)

    def get_authorization_url(self) -> str:
        """Start OAuth authorization flow.

        Returns:
            Authorization URL for user to visit.
        """
        authorization_url, self.state = self.session.create_authorization_url(
            self.AUTHORIZE_URL,
            access_type="offline",
            prompt="consent",
        )
        return authorization_url

    def fetch_token(
        self,
        code: str | None = None,
        authorization_response: str | None = None,
    ) -> dict[str, Any]:
        """Exchange an authorization code for tokens.

        Args:
            code: The authorization code from the OAuth callback.
            authorization_response: The full redirect URL, as an alternative to code.

        Returns:
            The fetched OAuth token dict.

        Raises:
            TokenError: If the exchange fails.
            ScopeMismatchError: If the granted scopes miss a required one.
        """
        if not code and not authorization_response:
            raise ValueError("Either code or authorization_response is required")

        kwargs: dict[str, Any] = {}
        if code:
            kwargs["code"] = code
        else:
            kwargs["authorization_response"] = authorization_response

        try:
            token = self.session.fetch_token(self.TOKEN_URL, **kwargs)
        except OAuth2Error as e:
            raise TokenError(f"Failed to exchange authorization code: {e}") from e

        self._check_scopes(token)
        logger.info(f"Fetched token with scopes: {token.get('scope', '')}")
        return token

    def refresh(self) -> dict[str, Any]:
        """Exchange the refresh token for a fresh access token.

        Raises:
            TokenError: If no refresh token is held or the refresh fails.
        """
        if not self.is_authorized():
            raise TokenError("No refresh token available; run 'sheets-utils login'")

        logger.info("Refreshing access token...")
        try:
            return self.session.refresh_token(
                self.TOKEN_URL,
                refresh_token=self.refresh_token,
            )
        except OAuth2Error as e:
            raise TokenError(f"Failed to refresh token: {e}") from e

    def get_credentials(self) -> GoogleCredentials:
        """Get Google Credentials object for API client libraries.

        The access token, when not yet held, is minted by google-auth on the
        first request.

        Raises:
            TokenError: If no refresh token is held.
        """
        if not self.is_authorized():
            raise TokenError("No refresh token available; run 'sheets-utils login'")

        token = self.session.token
        expiry = None
        expires_at = token.get("expires_at")
        if expires_at:
            # google-auth compares against naive UTC datetimes
            expiry = datetime.fromtimestamp(expires_at, tz=timezone.utc).replace(tzinfo=None)

        return GoogleCredentials(
            token=token.get("access_token"),
            refresh_token=token["refresh_token"],
            token_uri=self.TOKEN_URL,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.required_scopes,
            expiry=expiry,
        )

    def build_service(self, service_name: str = "sheets", version: str = "v4"):
        """Build a Google API service with current credentials.

        Args:
            service_name: Name of the service (e.g., 'sheets', 'drive').
            version: API version (e.g., 'v4').

        Returns:
            Google API service object.
        """
        creds = self.get_credentials()
        return build(service_name, version, credentials=creds)

    def get_token_info(self) -> dict[str, Any]:
        """Get information about the current token.

        Returns:
            Dictionary with token status, scopes, expiry, etc.
        """
        token = self.session.token
        if not token or not token.get("refresh_token"):
            return {"status": "no_token"}

        if not token.get("access_token"):
            status = "refresh_only"
            expires_str = "n/a"
        else:
            expires_at = token.get("expires_at", 0)
            if expires_at:
                now = datetime.now().timestamp()
                expires_str = str(timedelta(seconds=int(max(0, expires_at - now))))
                status = "expired" if expires_at < now else "valid"
            else:
                expires_str = "unknown"
                status = "valid"

        return {
            "status": status,
            "scopes": (token.get("scope") or " ".join(self.required_scopes)).split(),
            "expires_in": expires_str,
            "has_refresh_token": True,
            "refresh_count": self.refresh_count,
            "last_refresh": self.last_refresh.isoformat() if self.last_refresh else None,
        }


def create_auth_client(
    env: Env | Mapping[str, str] | None = None,
    scopes: list[str] | None = None,
) -> GoogleCredentials:
    """Build OAuth2 credentials from client id/secret/refresh token.

    Args:
        env: An Env, a mapping with CLIENT_ID/CLIENT_SECRET/REFRESH_TOKEN,
            or None to read os.environ.
        scopes: Scope names or URLs. Defaults to ["sheets"].

    Raises:
        MissingCredentialsError: If any of the keys is missing.
    """
    return GoogleOAuth.from_env(env, scopes=scopes).get_credentials()
