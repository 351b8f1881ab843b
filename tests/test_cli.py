"""Tests for the sheets-utils CLI."""

import json
import os
from unittest.mock import MagicMock, patch

import pytest
from google.auth.exceptions import RefreshError

from sheets_utils.cli import main
from sheets_utils.google import AuthorizationDenied, LoginResult
from sheets_utils.sheets import Sheet, SheetsAPIError, SheetsClient, Spreadsheet

ENV = {
    "CLIENT_ID": "test-client-id.apps.googleusercontent.com",
    "CLIENT_SECRET": "test-client-secret",
    "REFRESH_TOKEN": "test-refresh-token",
}


@pytest.fixture
def client():
    client = MagicMock()
    with patch("sheets_utils.get_client", return_value=client):
        yield client


class TestLogin:
    def test_prints_credentials(self, capsys):
        result = LoginResult(client_id="id", client_secret="secret", refresh_token="rt")
        with patch("sheets_utils.google.login", return_value=result) as login:
            assert main(["login", "--credentials", "creds.json", "--no-browser"]) == 0

        login.assert_called_once_with(
            credentials_path="creds.json", port=3847, timeout=300, launch_browser=False
        )
        out = capsys.readouterr().out
        assert "CLIENT_ID=id" in out
        assert "CLIENT_SECRET=secret" in out
        assert "REFRESH_TOKEN=rt" in out

    def test_port_and_timeout(self):
        result = LoginResult(client_id="id", client_secret="secret", refresh_token="rt")
        with patch("sheets_utils.google.login", return_value=result) as login:
            main(["login", "--credentials", "c.json", "--port", "9000", "--timeout", "30"])
        assert login.call_args.kwargs["port"] == 9000
        assert login.call_args.kwargs["timeout"] == 30

    def test_incomplete_credentials_file(self, tmp_path, capsys):
        creds_path = tmp_path / "credentials.json"
        creds_path.write_text(json.dumps({"installed": {"client_id": "id"}}))
        assert main(["login", "--credentials", str(creds_path), "--no-browser"]) == 1
        assert "missing client_id or client_secret" in capsys.readouterr().out

    def test_failure(self, capsys):
        with patch("sheets_utils.google.login", side_effect=AuthorizationDenied("access_denied")):
            assert main(["login", "--credentials", "creds.json"]) == 1
        assert "OAuth error: access_denied" in capsys.readouterr().out


class TestStatus:
    def test_configured(self, capsys):
        with patch.dict(os.environ, ENV, clear=True):
            assert main(["status"]) == 0
        assert "[x]" in capsys.readouterr().out

    def test_missing(self):
        with patch.dict(os.environ, {}, clear=True):
            assert main(["status"]) == 1


class TestData:
    def test_info(self, client, capsys):
        client.get_spreadsheet.return_value = Spreadsheet(
            id="sheet-123",
            title="Budget",
            url="https://docs.google.com/spreadsheets/d/sheet-123/edit",
            sheets=[Sheet(id=0, title="Sheet1", index=0, row_count=1000, column_count=26)],
        )
        assert main(["info", "sheet-123"]) == 0
        out = capsys.readouterr().out
        assert "Budget" in out
        assert "[0] Sheet1 (1000 rows x 26 columns)" in out

    def test_read(self, client, capsys):
        client.read_range.return_value = [["a", 1], ["b", 2]]
        assert main(["read", "sheet-123", "Sheet1!A1:B2"]) == 0
        client.read_range.assert_called_once_with("sheet-123", "Sheet1!A1:B2")
        assert json.loads(capsys.readouterr().out) == [["a", 1], ["b", 2]]

    def test_read_api_error(self, client, capsys):
        client.read_range.side_effect = SheetsAPIError("Sheets API error: not found", 404)
        assert main(["read", "sheet-123", "A1"]) == 1
        assert "not found" in capsys.readouterr().out

    def test_read_revoked_token(self, capsys):
        """Should exit 1 with a message when the refresh token is rejected."""
        service = MagicMock()
        get = service.spreadsheets.return_value.values.return_value.get
        get.return_value.execute.side_effect = RefreshError(
            "invalid_grant: Token has been expired or revoked."
        )
        client = SheetsClient(auth=MagicMock())
        client._service = service

        with patch("sheets_utils.get_client", return_value=client):
            assert main(["read", "sheet-123", "A1"]) == 1
        out = capsys.readouterr().out
        assert "Error: Failed to refresh access token" in out
        assert "invalid_grant" in out


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out
