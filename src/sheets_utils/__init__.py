"""Google Sheets operations behind OAuth2 refresh-token authentication.

The module-level functions share one lazily created SheetsClient, built from
CLIENT_ID, CLIENT_SECRET and REFRESH_TOKEN on first use:

    import sheets_utils

    sheet = sheets_utils.create_spreadsheet("Budget")
    sheets_utils.write_range(sheet.id, "Sheet1!A1", [["Item", "Cost"]])
"""

from __future__ import annotations

from typing import Any

from sheets_utils.google import create_auth_client
from sheets_utils.sheets import (
    CellFormat,
    CellRange,
    Color,
    Sheet,
    SheetsClient,
    Spreadsheet,
    UpdateResult,
)

_client: SheetsClient | None = None


def get_client() -> SheetsClient:
    """Return the shared client, creating it on first call."""
    global _client
    if _client is None:
        _client = SheetsClient(credentials=create_auth_client())
    return _client


def reset_client() -> None:
    """Drop the shared client so the next call re-reads credentials."""
    global _client
    _client = None


# -- Spreadsheet operations --


def create_spreadsheet(title: str) -> Spreadsheet:
    return get_client().create_spreadsheet(title)


def get_spreadsheet(spreadsheet_id: str) -> Spreadsheet:
    return get_client().get_spreadsheet(spreadsheet_id)


# -- Sheet (tab) operations --


def list_sheets(spreadsheet_id: str) -> list[Sheet]:
    return get_client().list_sheets(spreadsheet_id)


def add_sheet(spreadsheet_id: str, title: str) -> Sheet:
    return get_client().add_sheet(spreadsheet_id, title)


def delete_sheet(spreadsheet_id: str, sheet_id: int) -> None:
    get_client().delete_sheet(spreadsheet_id, sheet_id)


# -- Data operations --


def read_range(spreadsheet_id: str, range_notation: str) -> list[list[Any]]:
    return get_client().read_range(spreadsheet_id, range_notation)


def write_range(spreadsheet_id: str, range_notation: str, values: list[list[Any]]) -> UpdateResult:
    return get_client().write_range(spreadsheet_id, range_notation, values)


def append_rows(spreadsheet_id: str, range_notation: str, rows: list[list[Any]]) -> UpdateResult:
    return get_client().append_rows(spreadsheet_id, range_notation, rows)


def clear_range(spreadsheet_id: str, range_notation: str) -> None:
    get_client().clear_range(spreadsheet_id, range_notation)


# -- Formatting --


def format_cells(
    spreadsheet_id: str,
    sheet_id: int,
    cell_range: CellRange,
    cell_format: CellFormat,
) -> None:
    get_client().format_cells(spreadsheet_id, sheet_id, cell_range, cell_format)


__all__ = [
    "get_client",
    "reset_client",
    "create_spreadsheet",
    "get_spreadsheet",
    "list_sheets",
    "add_sheet",
    "delete_sheet",
    "read_range",
    "write_range",
    "append_rows",
    "clear_range",
    "format_cells",
    "SheetsClient",
    "Spreadsheet",
    "Sheet",
    "CellRange",
    "CellFormat",
    "Color",
    "UpdateResult",
]
