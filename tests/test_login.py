"""Tests for the interactive login flow."""

import os
import socket
import threading
import time
import urllib.error
import urllib.request
from unittest.mock import patch

import pytest

from sheets_utils.google import (
    AuthorizationDenied,
    CallbackServerError,
    GoogleOAuth,
    LoginResult,
    MissingCredentialsError,
    TokenError,
    login,
)
from sheets_utils.google.login_flow import CallbackServer


_OPENER = urllib.request.build_opener(urllib.request.ProxyHandler({}))


def _get(url: str, responses: list) -> None:
    """GET url and record (status, body)."""
    try:
        with _OPENER.open(url, timeout=5) as resp:
            responses.append((resp.status, resp.read().decode()))
    except urllib.error.HTTPError as e:
        responses.append((e.code, e.read().decode()))


def _request_in_background(server: CallbackServer, *paths: str) -> tuple[threading.Thread, list]:
    responses: list = []

    def run():
        for path in paths:
            _get(f"http://127.0.0.1:{server.port}{path}", responses)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread, responses


class TestLoginResult:
    def test_as_env(self):
        result = LoginResult(client_id="id", client_secret="secret", refresh_token="rt")
        assert result.as_env() == {
            "CLIENT_ID": "id",
            "CLIENT_SECRET": "secret",
            "REFRESH_TOKEN": "rt",
        }


class TestCallbackServer:
    """Tests against a real local callback server."""

    def test_receives_code(self):
        server = CallbackServer(port=0, host="127.0.0.1")
        thread, responses = _request_in_background(server, "/?code=abc123&scope=x")

        assert server.wait(timeout=10) == "abc123"
        thread.join(timeout=5)

        status, body = responses[0]
        assert status == 200
        assert "Authorization successful" in body

    def test_error_redirect(self):
        server = CallbackServer(port=0, host="127.0.0.1")
        thread, responses = _request_in_background(server, "/?error=access_denied")

        with pytest.raises(AuthorizationDenied) as exc_info:
            server.wait(timeout=10)
        thread.join(timeout=5)

        assert exc_info.value.error == "access_denied"
        status, body = responses[0]
        assert status == 400
        assert "Authorization failed" in body
        assert "access_denied" in body

    def test_ignores_requests_without_code(self):
        """Should answer 400 and keep listening until the code arrives."""
        server = CallbackServer(port=0, host="127.0.0.1")
        thread, responses = _request_in_background(server, "/favicon.ico", "/?code=later")

        assert server.wait(timeout=10) == "later"
        thread.join(timeout=5)

        assert responses[0][0] == 400
        assert "Missing authorization code" in responses[0][1]
        assert responses[1][0] == 200

    def test_timeout(self):
        server = CallbackServer(port=0, host="127.0.0.1")
        with pytest.raises(TokenError, match="Timed out"):
            server.wait(timeout=0)

    def test_error_is_escaped(self):
        server = CallbackServer(port=0, host="127.0.0.1")
        thread, responses = _request_in_background(
            server, "/?error=%3Cscript%3Ealert(1)%3C%2Fscript%3E"
        )

        with pytest.raises(AuthorizationDenied):
            server.wait(timeout=10)
        thread.join(timeout=5)

        body = responses[0][1]
        assert "<script>" not in body
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body

    def test_idle_connection_does_not_block_timeout(self):
        """Should give up on time even when a client connects and sends nothing."""
        server = CallbackServer(port=0, host="127.0.0.1")
        idle = socket.create_connection(("127.0.0.1", server.port))
        try:
            start = time.monotonic()
            with pytest.raises(TokenError, match="Timed out"):
                server.wait(timeout=2)
            assert time.monotonic() - start < 4
        finally:
            idle.close()

    def test_matching_state(self):
        server = CallbackServer(port=0, host="127.0.0.1", expected_state="xyz")
        thread, responses = _request_in_background(server, "/?code=abc&state=xyz")

        assert server.wait(timeout=10) == "abc"
        thread.join(timeout=5)
        assert responses[0][0] == 200

    def test_state_mismatch(self):
        server = CallbackServer(port=0, host="127.0.0.1", expected_state="xyz")
        thread, responses = _request_in_background(server, "/?code=abc&state=forged")

        with pytest.raises(AuthorizationDenied) as exc_info:
            server.wait(timeout=10)
        thread.join(timeout=5)

        assert exc_info.value.error == "state_mismatch"
        assert responses[0][0] == 400

    def test_port_in_use(self):
        with CallbackServer(port=0, host="127.0.0.1") as first:
            with pytest.raises(CallbackServerError) as exc_info:
                CallbackServer(port=first.port, host="127.0.0.1")
        assert exc_info.value.port == first.port
        assert "Failed to start callback server" in str(exc_info.value)


class TestLogin:
    """Tests for login() with the callback server and token endpoint mocked."""

    @pytest.fixture
    def callback(self):
        with patch("sheets_utils.google.login_flow.CallbackServer") as server_cls:
            server = server_cls.return_value.__enter__.return_value
            server.wait.return_value = "the-code"
            yield server_cls

    def test_returns_refresh_token(self, callback):
        token = {"access_token": "at", "refresh_token": "rt"}
        with patch.object(GoogleOAuth, "fetch_token", return_value=token) as fetch:
            result = login("id", "secret", launch_browser=False)

        fetch.assert_called_once_with(code="the-code")
        callback.assert_called_once()
        assert callback.call_args.args == (3847,)
        assert callback.call_args.kwargs["expected_state"]
        assert result == LoginResult(client_id="id", client_secret="secret", refresh_token="rt")

    def test_custom_port(self, callback):
        token = {"access_token": "at", "refresh_token": "rt"}
        with patch.object(GoogleOAuth, "fetch_token", return_value=token):
            login("id", "secret", port=9000, launch_browser=False)
        assert callback.call_args.args == (9000,)

    def test_opens_browser(self, callback):
        token = {"access_token": "at", "refresh_token": "rt"}
        with (
            patch.object(GoogleOAuth, "fetch_token", return_value=token),
            patch("sheets_utils.google.login_flow.webbrowser.open") as browser_open,
        ):
            login("id", "secret")
        url = browser_open.call_args[0][0]
        assert url.startswith(GoogleOAuth.AUTHORIZE_URL)

    def test_missing_refresh_token(self, callback):
        with (
            patch.object(GoogleOAuth, "fetch_token", return_value={"access_token": "at"}),
            pytest.raises(TokenError, match="myaccount.google.com/permissions"),
        ):
            login("id", "secret", launch_browser=False)

    def test_client_from_environment(self, callback):
        token = {"access_token": "at", "refresh_token": "rt"}
        env = {"CLIENT_ID": "env-id", "CLIENT_SECRET": "env-secret"}
        with (
            patch.dict(os.environ, env, clear=True),
            patch.object(GoogleOAuth, "fetch_token", return_value=token),
        ):
            result = login(launch_browser=False)
        assert result.client_id == "env-id"
        assert result.client_secret == "env-secret"

    def test_missing_client_credentials(self, callback):
        with (
            patch.dict(os.environ, {}, clear=True),
            pytest.raises(MissingCredentialsError) as exc_info,
        ):
            login(launch_browser=False)
        assert exc_info.value.keys == ["CLIENT_ID", "CLIENT_SECRET"]
        callback.assert_not_called()
