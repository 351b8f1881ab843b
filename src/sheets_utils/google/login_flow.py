"""Interactive OAuth login that mints a refresh token.

Runs once per user:

1. Starts a temporary HTTP server on localhost:3847
2. Opens the browser to Google's consent screen
3. Receives the authorization code via redirect
4. Exchanges it for refresh + access tokens
5. Returns the credentials so they can be stored as CLIENT_ID,
   CLIENT_SECRET and REFRESH_TOKEN
"""

from __future__ import annotations

import html
import http.server
import logging
import os
import time
import urllib.parse
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sheets_utils.config import REDIRECT_PORT
from sheets_utils.google.exceptions import (
    AuthorizationDenied,
    CallbackServerError,
    MissingCredentialsError,
    TokenError,
)
from sheets_utils.google.oauth import GoogleOAuth

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300

REVOKE_HINT = (
    "No refresh token received. This can happen if the app was previously authorized. "
    "Revoke access at https://myaccount.google.com/permissions and try again."
)


@dataclass
class LoginResult:
    """Credentials produced by a successful login."""

    client_id: str
    client_secret: str
    refresh_token: str

    def as_env(self) -> dict[str, str]:
        """Environment variables to store for later API use."""
        return {
            "CLIENT_ID": self.client_id,
            "CLIENT_SECRET": self.client_secret,
            "REFRESH_TOKEN": self.refresh_token,
        }


def _create_handler_class(result: dict[str, Any], expected_state: str | None = None) -> type:
    """Create HTTP handler class for the OAuth redirect."""

    class CallbackHandler(http.server.BaseHTTPRequestHandler):
        # Socket read timeout; CallbackServer.wait() lowers it near the deadline
        timeout = 5

        def log_message(self, format: str, *args: Any) -> None:
            logger.debug("callback: " + format, *args)

        def do_GET(self) -> None:
            params = urllib.parse.parse_qs(urllib.parse.urlparse(self.path).query)

            if "error" in params:
                error = params["error"][0]
                result["error"] = error
                self._send_html(
                    f"<h1>Authorization failed</h1><p>{html.escape(error)}</p>", 400
                )
            elif "code" in params:
                state = params.get("state", [None])[0]
                if expected_state is not None and state != expected_state:
                    result["error"] = "state_mismatch"
                    self._send_html(
                        "<h1>Authorization failed</h1><p>State mismatch</p>", 400
                    )
                    return
                result["code"] = params["code"][0]
                self._send_html(
                    "<h1>Authorization successful</h1><p>You can close this tab.</p>"
                )
            else:
                self._send_html("<h1>Missing authorization code</h1>", 400)

        def _send_html(self, content: str, status: int = 200) -> None:
            body = content.encode()
            self.send_response(status)
            self.send_header("Content-Type", "text/html")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

    return CallbackHandler


class CallbackServer:
    """Single-use local server that captures the OAuth redirect.

    Usage:
        with CallbackServer(port=3847, expected_state=state) as server:
            code = server.wait(timeout=300)
    """

    # Upper bound on how long one idle poll or one slow client may block
    POLL_INTERVAL = 1
    READ_TIMEOUT = 5

    def __init__(
        self,
        port: int = REDIRECT_PORT,
        host: str = "localhost",
        expected_state: str | None = None,
    ):
        self._result: dict[str, Any] = {"code": None, "error": None}
        self._handler_class = _create_handler_class(self._result, expected_state)
        try:
            self._server = http.server.HTTPServer((host, port), self._handler_class)
        except OSError as e:
            raise CallbackServerError(port, str(e)) from e

    @property
    def port(self) -> int:
        return self._server.server_address[1]

    def wait(self, timeout: float = DEFAULT_TIMEOUT) -> str:
        """Serve requests until the redirect arrives.

        Requests without a code or error are answered with 400 and ignored.
        Clients that connect without sending a request are dropped once
        their read timeout or the overall deadline passes.

        Returns:
            The authorization code.

        Raises:
            AuthorizationDenied: If the redirect carries an error or a
                state that does not match expected_state.
            TokenError: If nothing arrives within timeout seconds.
        """
        deadline = time.monotonic() + timeout
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._server.timeout = min(self.POLL_INTERVAL, remaining)
                self._handler_class.timeout = min(self.READ_TIMEOUT, remaining)
                self._server.handle_request()
                if self._result["error"]:
                    raise AuthorizationDenied(self._result["error"])
                if self._result["code"]:
                    return self._result["code"]
        finally:
            self.close()

        raise TokenError(f"Timed out after {timeout}s waiting for authorization")

    def close(self) -> None:
        self._server.server_close()

    def __enter__(self) -> CallbackServer:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def open_browser(url: str) -> bool:
    """Try to open url in the default browser; the user can open it manually."""
    try:
        return webbrowser.open(url)
    except webbrowser.Error as e:
        logger.debug(f"Could not open browser: {e}")
        return False


def _resolve_client(
    client_id: str | None,
    client_secret: str | None,
    credentials_path: str | Path | None,
) -> tuple[str, str]:
    if client_id and client_secret:
        return client_id, client_secret

    if credentials_path:
        auth = GoogleOAuth.from_client_secrets_file(credentials_path)
        return auth.client_id, auth.client_secret

    client_id = client_id or os.environ.get("CLIENT_ID")
    client_secret = client_secret or os.environ.get("CLIENT_SECRET")
    missing = [
        key for key, value in (("CLIENT_ID", client_id), ("CLIENT_SECRET", client_secret))
        if not value
    ]
    if missing:
        raise MissingCredentialsError(missing)
    return client_id, client_secret


def login(
    client_id: str | None = None,
    client_secret: str | None = None,
    credentials_path: str | Path | None = None,
    scopes: list[str] | None = None,
    port: int = REDIRECT_PORT,
    timeout: float = DEFAULT_TIMEOUT,
    launch_browser: bool = True,
) -> LoginResult:
    """Run the browser login flow to obtain a refresh token.

    Args:
        client_id: OAuth client ID. Falls back to credentials_path, then CLIENT_ID.
        client_secret: OAuth client secret. Falls back like client_id.
        credentials_path: OAuth client credentials JSON file.
        scopes: Scope names or URLs. Defaults to ["sheets"].
        port: Local port for the redirect.
        timeout: Seconds to wait for the redirect.
        launch_browser: Whether to try opening the consent URL automatically.

    Returns:
        LoginResult with the client credentials and the new refresh token.

    Raises:
        MissingCredentialsError: If no client credentials can be found.
        CallbackServerError: If the local port cannot be bound.
        AuthorizationDenied: If the user denies consent.
        TokenError: On timeout, failed exchange, or a missing refresh token.
    """
    client_id, client_secret = _resolve_client(client_id, client_secret, credentials_path)
    auth = GoogleOAuth(
        client_id,
        client_secret,
        scopes=scopes,
        redirect_uri=f"http://localhost:{port}",
    )
    auth_url = auth.get_authorization_url()

    with CallbackServer(port, expected_state=auth.state) as server:
        print(f"\nOpen this URL in your browser to authorize:\n\n{auth_url}\n")
        if launch_browser:
            open_browser(auth_url)
        code = server.wait(timeout)

    token = auth.fetch_token(code=code)
    refresh_token = token.get("refresh_token")
    if not refresh_token:
        raise TokenError(REVOKE_HINT)

    logger.info("Login complete")
    return LoginResult(
        client_id=client_id,
        client_secret=client_secret,
        refresh_token=refresh_token,
    )
