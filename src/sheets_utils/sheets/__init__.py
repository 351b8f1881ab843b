"""Google Sheets API client with OAuth authentication.

Manage Google Sheets programmatically with OAuth 2.0 authentication.

Usage:
    from sheets_utils.sheets import SheetsClient

    client = SheetsClient()

    # Create a spreadsheet
    sheet = client.create_spreadsheet("My Spreadsheet")

    # Read values
    values = client.read_range(sheet.id, "Sheet1!A1:C10")

    # Write values
    client.write_range(sheet.id, "Sheet1!A1", [["Name", "Age"], ["Alice", 30]])

OAuth Setup:
    1. Create OAuth client credentials in Google Cloud Console
    2. Authorize: sheets-utils login --credentials ~/Downloads/credentials.json
    3. Store the printed CLIENT_ID, CLIENT_SECRET and REFRESH_TOKEN in .env
"""

from __future__ import annotations

from sheets_utils.sheets.client import (
    CellFormat,
    CellRange,
    Color,
    Sheet,
    SheetsClient,
    Spreadsheet,
    UpdateResult,
)
from sheets_utils.sheets.exceptions import SheetsAPIError, SheetsError

__all__ = [
    "SheetsClient",
    "Spreadsheet",
    "Sheet",
    "CellRange",
    "CellFormat",
    "Color",
    "UpdateResult",
    "SheetsError",
    "SheetsAPIError",
]
