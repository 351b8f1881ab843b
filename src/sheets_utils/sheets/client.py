"""Google Sheets API client implementation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from google.auth.exceptions import RefreshError, TransportError
from google.oauth2.credentials import Credentials as GoogleCredentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from sheets_utils.google import GoogleOAuth
from sheets_utils.google.exceptions import AuthorizationRequired, TokenError
from sheets_utils.sheets.exceptions import SheetsAPIError, SheetsError

logger = logging.getLogger(__name__)

HORIZONTAL_ALIGNMENTS = ("LEFT", "CENTER", "RIGHT")


@dataclass
class Sheet:
    """Represents a sheet (tab) within a spreadsheet."""

    id: int
    title: str
    index: int
    row_count: int = 0
    column_count: int = 0


@dataclass
class Spreadsheet:
    """Represents a Google Spreadsheet."""

    id: str
    title: str
    url: str = ""
    sheets: list[Sheet] | None = None


@dataclass
class CellRange:
    """Zero-based, end-exclusive row/column rectangle within a sheet."""

    start_row_index: int
    end_row_index: int
    start_column_index: int
    end_column_index: int

    def to_grid_range(self, sheet_id: int) -> dict[str, int]:
        return {
            "sheetId": sheet_id,
            "startRowIndex": self.start_row_index,
            "endRowIndex": self.end_row_index,
            "startColumnIndex": self.start_column_index,
            "endColumnIndex": self.end_column_index,
        }


@dataclass
class Color:
    """RGB color with components in [0, 1]."""

    red: float | None = None
    green: float | None = None
    blue: float | None = None

    def to_dict(self) -> dict[str, float]:
        return {
            key: value
            for key, value in (("red", self.red), ("green", self.green), ("blue", self.blue))
            if value is not None
        }


@dataclass
class CellFormat:
    """Formatting to apply to a range. Unset attributes are left untouched."""

    bold: bool | None = None
    italic: bool | None = None
    font_size: int | None = None
    foreground_color: Color | None = None
    background_color: Color | None = None
    horizontal_alignment: str | None = None


@dataclass
class UpdateResult:
    """Outcome of a write or append."""

    updated_cells: int = 0


class SheetsClient:
    """Google Sheets API client with OAuth authentication.

    Usage:
        client = SheetsClient()

        # Create a spreadsheet
        sheet = client.create_spreadsheet("My Spreadsheet")

        # Read values
        values = client.read_range(sheet.id, "Sheet1!A1:C10")

        # Write values
        client.write_range(sheet.id, "Sheet1!A1", [["Name", "Age"], ["Alice", 30]])

        # Append rows
        client.append_rows(sheet.id, "Sheet1", [["Bob", 25], ["Carol", 35]])

        # Bold the header row
        client.format_cells(sheet.id, 0, CellRange(0, 1, 0, 2), CellFormat(bold=True))

    Note:
        Reads CLIENT_ID, CLIENT_SECRET and REFRESH_TOKEN from the environment
        unless credentials or an authorized GoogleOAuth are passed in. Run `sheets-utils login`
        to mint a refresh token.
    """

    def __init__(
        self,
        auth: GoogleOAuth | None = None,
        scopes: list[str] | None = None,
        credentials: GoogleCredentials | None = None,
    ) -> None:
        """Initialize Sheets client.

        Args:
            auth: Authorized GoogleOAuth. Built from the environment if None.
            scopes: OAuth scopes used when building from the environment.
                Defaults to ["sheets"].
            credentials: Ready-made google-auth credentials, e.g. from
                create_auth_client(). Takes precedence over auth.
        """
        self._scopes = scopes or ["sheets"]
        self._auth = auth
        self._credentials = credentials
        self._service: Any = None

    def _get_service(self) -> Any:
        """Get or create Sheets API service."""
        if self._service is None and self._credentials is not None:
            self._service = build("sheets", "v4", credentials=self._credentials)
        if self._service is None:
            if self._auth is None:
                self._auth = GoogleOAuth.from_env(scopes=self._scopes)
            if not self._auth.is_authorized():
                raise AuthorizationRequired(
                    self._auth.get_authorization_url(),
                    "Sheets API requires OAuth authorization. "
                    "Run 'sheets-utils login' to authorize.",
                )
            self._service = self._auth.build_service("sheets", "v4")
        return self._service

    def _execute(self, request: Any) -> dict[str, Any]:
        """Execute an API request, converting HTTP and token errors."""
        try:
            return request.execute() or {}
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            raise SheetsAPIError(f"Sheets API error: {e}", status_code=status) from e
        except RefreshError as e:
            raise TokenError(
                f"Failed to refresh access token: {e}. Run 'sheets-utils login' again."
            ) from e
        except TransportError as e:
            raise TokenError(f"Could not reach the token endpoint: {e}") from e

    # =========================================================================
    # Spreadsheets
    # =========================================================================

    def create_spreadsheet(self, title: str, sheet_titles: list[str] | None = None) -> Spreadsheet:
        """Create a new spreadsheet.

        Args:
            title: Spreadsheet title.
            sheet_titles: List of sheet names (optional).

        Returns:
            Created Spreadsheet.
        """
        service = self._get_service()

        body: dict[str, Any] = {"properties": {"title": title}}
        if sheet_titles:
            body["sheets"] = [{"properties": {"title": name}} for name in sheet_titles]

        result = self._execute(service.spreadsheets().create(body=body))
        logger.info(f"Created spreadsheet {result.get('spreadsheetId')}")
        return self._parse_spreadsheet(result)

    def get_spreadsheet(self, spreadsheet_id: str) -> Spreadsheet:
        """Get a spreadsheet by ID.

        Args:
            spreadsheet_id: Google Sheets spreadsheet ID.

        Returns:
            Spreadsheet with its sheets.
        """
        service = self._get_service()
        result = self._execute(service.spreadsheets().get(spreadsheetId=spreadsheet_id))
        return self._parse_spreadsheet(result)

    # =========================================================================
    # Sheet Management
    # =========================================================================

    def list_sheets(self, spreadsheet_id: str) -> list[Sheet]:
        """List the sheets (tabs) of a spreadsheet."""
        service = self._get_service()
        result = self._execute(service.spreadsheets().get(spreadsheetId=spreadsheet_id))
        return [self._parse_sheet(sheet) for sheet in result.get("sheets", [])]

    def add_sheet(self, spreadsheet_id: str, title: str) -> Sheet:
        """Add a new sheet to a spreadsheet.

        Args:
            spreadsheet_id: Spreadsheet ID.
            title: New sheet title.

        Returns:
            Created Sheet.

        Raises:
            SheetsError: If the API reply does not describe the new sheet.
        """
        result = self._batch_update(
            spreadsheet_id, [{"addSheet": {"properties": {"title": title}}}]
        )
        replies = result.get("replies") or [{}]
        props = replies[0].get("addSheet", {}).get("properties")
        if not props:
            raise SheetsError("Failed to add sheet: no response from API")
        return self._parse_sheet({"properties": props})

    def delete_sheet(self, spreadsheet_id: str, sheet_id: int) -> None:
        """Delete a sheet from a spreadsheet.

        Args:
            spreadsheet_id: Spreadsheet ID.
            sheet_id: Sheet ID (not title).
        """
        self._batch_update(spreadsheet_id, [{"deleteSheet": {"sheetId": sheet_id}}])

    # =========================================================================
    # Reading Data
    # =========================================================================

    def read_range(
        self,
        spreadsheet_id: str,
        range_notation: str,
        value_render_option: str = "UNFORMATTED_VALUE",
    ) -> list[list[Any]]:
        """Read values from a range.

        Args:
            spreadsheet_id: Spreadsheet ID.
            range_notation: A1 notation (e.g., "Sheet1!A1:C10").
            value_render_option: How to render values ("FORMATTED_VALUE", "UNFORMATTED_VALUE", "FORMULA").

        Returns:
            2D list of cell values, empty if the range holds none.
        """
        service = self._get_service()
        result = self._execute(
            service.spreadsheets()
            .values()
            .get(
                spreadsheetId=spreadsheet_id,
                range=range_notation,
                valueRenderOption=value_render_option,
            )
        )
        return result.get("values", [])

    def read_cell(self, spreadsheet_id: str, cell: str) -> Any:
        """Read a single cell value, or None if the cell is empty."""
        values = self.read_range(spreadsheet_id, cell)
        if values and values[0]:
            return values[0][0]
        return None

    # =========================================================================
    # Writing Data
    # =========================================================================

    def write_range(
        self,
        spreadsheet_id: str,
        range_notation: str,
        values: list[list[Any]],
        value_input_option: str = "USER_ENTERED",
    ) -> UpdateResult:
        """Write values to a range.

        Args:
            spreadsheet_id: Spreadsheet ID.
            range_notation: A1 notation (e.g., "Sheet1!A1").
            values: 2D list of values to write.
            value_input_option: How to interpret input ("RAW" or "USER_ENTERED").

        Returns:
            UpdateResult with the number of cells updated.
        """
        service = self._get_service()
        result = self._execute(
            service.spreadsheets()
            .values()
            .update(
                spreadsheetId=spreadsheet_id,
                range=range_notation,
                valueInputOption=value_input_option,
                body={"values": values},
            )
        )
        return UpdateResult(updated_cells=result.get("updatedCells", 0))

    def write_cell(
        self,
        spreadsheet_id: str,
        cell: str,
        value: Any,
        value_input_option: str = "USER_ENTERED",
    ) -> UpdateResult:
        """Write a single cell value."""
        return self.write_range(spreadsheet_id, cell, [[value]], value_input_option)

    def append_rows(
        self,
        spreadsheet_id: str,
        range_notation: str,
        rows: list[list[Any]],
        value_input_option: str = "USER_ENTERED",
    ) -> UpdateResult:
        """Append rows after the last row of data in a range.

        Args:
            spreadsheet_id: Spreadsheet ID.
            range_notation: A1 notation or sheet name (e.g., "Sheet1").
            rows: 2D list of rows to append.
            value_input_option: How to interpret input.

        Returns:
            UpdateResult with the number of cells updated.
        """
        service = self._get_service()
        result = self._execute(
            service.spreadsheets()
            .values()
            .append(
                spreadsheetId=spreadsheet_id,
                range=range_notation,
                valueInputOption=value_input_option,
                body={"values": rows},
            )
        )
        updates = result.get("updates", {})
        return UpdateResult(updated_cells=updates.get("updatedCells", 0))

    def clear_range(self, spreadsheet_id: str, range_notation: str) -> None:
        """Clear values (not formatting) from a range."""
        service = self._get_service()
        self._execute(
            service.spreadsheets()
            .values()
            .clear(spreadsheetId=spreadsheet_id, range=range_notation, body={})
        )

    # =========================================================================
    # Formatting
    # =========================================================================

    def format_cells(
        self,
        spreadsheet_id: str,
        sheet_id: int,
        cell_range: CellRange,
        cell_format: CellFormat,
    ) -> None:
        """Apply text and cell formatting to a range.

        Only the attributes set on cell_format are written; everything else
        keeps its current formatting.

        Args:
            spreadsheet_id: Spreadsheet ID.
            sheet_id: Sheet ID (not title).
            cell_range: Rectangle to format.
            cell_format: Formatting to apply.

        Raises:
            ValueError: If cell_format sets nothing or has an unknown alignment.
        """
        user_format, fields = build_format_request(cell_format)
        self._batch_update(
            spreadsheet_id,
            [
                {
                    "repeatCell": {
                        "range": cell_range.to_grid_range(sheet_id),
                        "cell": {"userEnteredFormat": user_format},
                        "fields": fields,
                    }
                }
            ],
        )

    def _batch_update(self, spreadsheet_id: str, requests: list[dict]) -> dict[str, Any]:
        service = self._get_service()
        logger.debug(f"batchUpdate {spreadsheet_id}: {[next(iter(r)) for r in requests]}")
        return self._execute(
            service.spreadsheets().batchUpdate(
                spreadsheetId=spreadsheet_id,
                body={"requests": requests},
            )
        )

    # =========================================================================
    # Parsing
    # =========================================================================

    def _parse_sheet(self, data: dict) -> Sheet:
        """Parse sheet from API response."""
        props = data.get("properties", {})
        grid_props = props.get("gridProperties", {})
        return Sheet(
            id=props.get("sheetId", 0),
            title=props.get("title", ""),
            index=props.get("index", 0),
            row_count=grid_props.get("rowCount", 0),
            column_count=grid_props.get("columnCount", 0),
        )

    def _parse_spreadsheet(self, data: dict) -> Spreadsheet:
        """Parse spreadsheet from API response."""
        return Spreadsheet(
            id=data["spreadsheetId"],
            title=data.get("properties", {}).get("title", ""),
            url=data.get("spreadsheetUrl", ""),
            sheets=[self._parse_sheet(sheet) for sheet in data.get("sheets", [])],
        )


def build_format_request(cell_format: CellFormat) -> tuple[dict[str, Any], str]:
    """Build the userEnteredFormat payload and its field mask.

    Returns:
        Tuple of (userEnteredFormat dict, comma-separated fields mask).
    """
    text_format: dict[str, Any] = {}
    fields = []

    if cell_format.bold is not None:
        text_format["bold"] = cell_format.bold
        fields.append("userEnteredFormat.textFormat.bold")
    if cell_format.italic is not None:
        text_format["italic"] = cell_format.italic
        fields.append("userEnteredFormat.textFormat.italic")
    if cell_format.font_size is not None:
        text_format["fontSize"] = cell_format.font_size
        fields.append("userEnteredFormat.textFormat.fontSize")
    if cell_format.foreground_color:
        text_format["foregroundColorStyle"] = {"rgbColor": cell_format.foreground_color.to_dict()}
        fields.append("userEnteredFormat.textFormat.foregroundColorStyle")

    user_format: dict[str, Any] = {"textFormat": text_format}

    if cell_format.background_color:
        user_format["backgroundColorStyle"] = {"rgbColor": cell_format.background_color.to_dict()}
        fields.append("userEnteredFormat.backgroundColorStyle")
    if cell_format.horizontal_alignment:
        alignment = cell_format.horizontal_alignment.upper()
        if alignment not in HORIZONTAL_ALIGNMENTS:
            raise ValueError(
                f"Unknown alignment: {cell_format.horizontal_alignment}. "
                f"Use one of: {list(HORIZONTAL_ALIGNMENTS)}"
            )
        user_format["horizontalAlignment"] = alignment
        fields.append("userEnteredFormat.horizontalAlignment")

    if not fields:
        raise ValueError("cell_format sets no attributes")

    return user_format, ",".join(fields)
