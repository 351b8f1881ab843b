"""CLI for sheets-utils.

Usage:
    sheets-utils login                     # Browser OAuth login, prints credentials
    sheets-utils login --credentials PATH  # Use a downloaded credentials.json
    sheets-utils status                    # Show credential status
    sheets-utils info SPREADSHEET_ID       # Show spreadsheet title, url and sheets
    sheets-utils read SPREADSHEET_ID RANGE # Print range values as JSON
"""

from __future__ import annotations

import argparse
import json
import sys

from sheets_utils.config import REDIRECT_PORT


def cmd_login(
    credentials_path: str | None,
    no_browser: bool = False,
    port: int = REDIRECT_PORT,
    timeout: float = 300,
) -> int:
    """Run the OAuth login flow and print the credentials to store."""
    from sheets_utils.config import GOOGLE_CREDENTIALS
    from sheets_utils.google import GoogleAuthError, login

    if credentials_path is None and GOOGLE_CREDENTIALS.exists():
        credentials_path = str(GOOGLE_CREDENTIALS)

    print("=" * 60)
    print("SHEETS-UTILS LOGIN")
    print("=" * 60)

    try:
        result = login(
            credentials_path=credentials_path,
            port=port,
            timeout=timeout,
            launch_browser=not no_browser,
        )
    except (GoogleAuthError, ValueError) as e:
        print(f"\nError: {e}")
        return 1

    print("\nAuthorization complete. Add these to your environment or .env:\n")
    for key, value in result.as_env().items():
        print(f"{key}={value}")
    return 0


def cmd_status() -> int:
    """Show which credentials are configured."""
    from sheets_utils.config import get_credential_status

    status = get_credential_status()

    print("=" * 60)
    print("SHEETS-UTILS CREDENTIAL STATUS")
    print("=" * 60)
    print()
    print(f"Repository: {status['repo_root']}")
    print()
    print(f"  .env:              {'[x]' if status['env_file'] else '[ ]'}")
    print(f"  credentials.json:  {'[x]' if status['credentials_file'] else '[ ]'}")
    for key, configured in status["env"].items():
        print(f"  {key + ':':<18} {'[x]' if configured else '[ ]'}")
    print()

    return 0 if all(status["env"].values()) else 1


def cmd_info(spreadsheet_id: str) -> int:
    """Show spreadsheet metadata."""
    from sheets_utils import get_client
    from sheets_utils.google import GoogleAuthError
    from sheets_utils.sheets import SheetsError

    try:
        spreadsheet = get_client().get_spreadsheet(spreadsheet_id)
    except (GoogleAuthError, SheetsError) as e:
        print(f"Error: {e}")
        return 1

    print(f"Title : {spreadsheet.title}")
    print(f"URL   : {spreadsheet.url}")
    print("Sheets:")
    for sheet in spreadsheet.sheets or []:
        print(
            f"  [{sheet.id}] {sheet.title} "
            f"({sheet.row_count} rows x {sheet.column_count} columns)"
        )
    return 0


def cmd_read(spreadsheet_id: str, range_notation: str) -> int:
    """Print range values as JSON."""
    from sheets_utils import get_client
    from sheets_utils.google import GoogleAuthError
    from sheets_utils.sheets import SheetsError

    try:
        values = get_client().read_range(spreadsheet_id, range_notation)
    except (GoogleAuthError, SheetsError) as e:
        print(f"Error: {e}")
        return 1

    print(json.dumps(values, indent=2, default=str))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="sheets-utils",
        description="Google Sheets operations with OAuth refresh-token authentication",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # login command
    login_parser = subparsers.add_parser("login", help="Interactive OAuth login")
    login_parser.add_argument(
        "--credentials",
        type=str,
        default=None,
        help="Path to OAuth client credentials.json (default: CLIENT_ID/CLIENT_SECRET env)",
    )
    login_parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Don't open browser automatically",
    )
    login_parser.add_argument(
        "--port",
        type=int,
        default=REDIRECT_PORT,
        help=f"Local redirect port (default: {REDIRECT_PORT})",
    )
    login_parser.add_argument(
        "--timeout",
        type=float,
        default=300,
        help="Seconds to wait for authorization (default: 300)",
    )

    # status command
    subparsers.add_parser("status", help="Show credential status")

    # info command
    info_parser = subparsers.add_parser("info", help="Show spreadsheet metadata")
    info_parser.add_argument("spreadsheet_id", help="Spreadsheet ID")

    # read command
    read_parser = subparsers.add_parser("read", help="Print range values as JSON")
    read_parser.add_argument("spreadsheet_id", help="Spreadsheet ID")
    read_parser.add_argument("range", help="A1 notation, e.g. Sheet1!A1:C10")

    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "login":
        return cmd_login(args.credentials, args.no_browser, args.port, args.timeout)

    if args.command == "status":
        return cmd_status()

    if args.command == "info":
        return cmd_info(args.spreadsheet_id)

    if args.command == "read":
        return cmd_read(args.spreadsheet_id, args.range)

    return 0


if __name__ == "__main__":
    sys.exit(main())
