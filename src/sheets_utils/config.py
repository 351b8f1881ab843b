"""Centralized credential configuration.

Credentials are read from the environment. A ``.env`` file in the repo root
is auto-loaded on import, so the three keys below can live there:

    CLIENT_ID       - Google OAuth client ID
    CLIENT_SECRET   - Google OAuth client secret
    REFRESH_TOKEN   - refresh token minted by 'sheets-utils login'

An OAuth client credentials file downloaded from Google Cloud Console may be
kept at google/credentials.json for the login flow.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from sheets_utils.google.exceptions import MissingCredentialsError

# __file__ is src/sheets_utils/config.py, so 3 levels up
REPO_ROOT = Path(__file__).parent.parent.parent
GOOGLE_DIR = REPO_ROOT / "google"

ENV_FILE = REPO_ROOT / ".env"
GOOGLE_CREDENTIALS = GOOGLE_DIR / "credentials.json"

ENV_KEYS = ("CLIENT_ID", "CLIENT_SECRET", "REFRESH_TOKEN")

# Local redirect target for the login flow
REDIRECT_PORT = 3847
REDIRECT_URI = f"http://localhost:{REDIRECT_PORT}"


@dataclass
class Env:
    """OAuth client credentials plus the user's refresh token."""

    client_id: str
    client_secret: str
    refresh_token: str

    def as_dict(self) -> dict[str, str]:
        return {
            "CLIENT_ID": self.client_id,
            "CLIENT_SECRET": self.client_secret,
            "REFRESH_TOKEN": self.refresh_token,
        }


def load_env(environ: Mapping[str, str] | None = None) -> Env:
    """Read OAuth credentials from the environment.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        Env with client id, client secret and refresh token.

    Raises:
        MissingCredentialsError: If any key is missing or empty.
    """
    source = os.environ if environ is None else environ
    missing = [key for key in ENV_KEYS if not source.get(key)]
    if missing:
        raise MissingCredentialsError(missing)

    return Env(
        client_id=source["CLIENT_ID"],
        client_secret=source["CLIENT_SECRET"],
        refresh_token=source["REFRESH_TOKEN"],
    )


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            # Env vars take precedence
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


def get_credential_status() -> dict:
    """Get status of the configured credentials.

    Returns:
        Dictionary with credential status (no secret values).
    """
    return {
        "repo_root": str(REPO_ROOT),
        "env_file": ENV_FILE.exists(),
        "credentials_file": GOOGLE_CREDENTIALS.exists(),
        "env": {key: bool(os.environ.get(key)) for key in ENV_KEYS},
    }


_loaded = _load_env_file(ENV_FILE)
