"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as an alternative backend because:
1. Users can view their ledgers directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Survives redeploys on hosts without persistent disks

Each user is one row. Entries and bills are JSON-serialized into cells,
using the same key names as the JSON file backend.

TRADEOFFS:
- Not suitable for high-volume data (a cell holds at most 50k characters)
- No transactions (the core serializes writes per user)
- Limited query capabilities (we filter in Python)
"""

import json
from datetime import datetime, timezone
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from expense_assistant.config import GoogleSheetsSettings, get_settings
from expense_assistant.models.audit import AuditEvent
from expense_assistant.models.ledger import UserRecord
from expense_assistant.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


# Column mappings for Ledgers sheet
LEDGER_COLUMNS = [
    "user_id",
    "authorized",
    "daily_limit",
    "logs_json",
    "vault_json",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_ledger_sheet(self) -> gspread.Worksheet:
        """Get or create the Ledgers worksheet."""
        return self._get_or_create_sheet(
            self._settings.ledger_sheet_name, LEDGER_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsLedgerStore(LedgerStoreInterface):
    """
    Google Sheets implementation of the ledger store.

    Rows are located by the user id in the first column; row 1 is the header.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _record_to_row(self, user_id: str, record: UserRecord) -> list:
        """Convert a UserRecord to a spreadsheet row."""
        data = record.to_storage_dict()
        return [
            user_id,
            str(record.authorized),
            json.dumps(data["dailyLimit"]),
            json.dumps(data["logs"], ensure_ascii=False),
            json.dumps(data["vault"], ensure_ascii=False),
            datetime.now(timezone.utc).isoformat(),
        ]

    def _row_to_record(self, row: list) -> UserRecord:
        """Convert a spreadsheet row to a UserRecord."""
        # Handle missing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return UserRecord.model_validate({
            "authorized": safe_get(1).lower() == "true",
            "dailyLimit": json.loads(safe_get(2, "0")),
            "logs": json.loads(safe_get(3, "[]")),
            "vault": json.loads(safe_get(4, "[]")),
        })

    def _find_row(self, rows: list[list], user_id: str) -> tuple[Optional[int], Optional[list]]:
        """Return (sheet row number, row) for a user, skipping the header."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == user_id:
                return idx, row
        return None, None

    async def get(self, user_id: str) -> Optional[UserRecord]:
        """Retrieve a user's record."""
        try:
            sheet = self._client.get_ledger_sheet()
            _, row = self._find_row(sheet.get_all_values(), user_id)
            if row is None:
                return None
            return self._row_to_record(row)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get ledger for {user_id}: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def set(self, user_id: str, record: UserRecord) -> None:
        """Update the user's row in place, or append one for a new user."""
        try:
            sheet = self._client.get_ledger_sheet()
            new_row = self._record_to_row(user_id, record)
            idx, _ = self._find_row(sheet.get_all_values(), user_id)

            if idx is None:
                sheet.append_row(new_row, value_input_option="RAW")
            else:
                end_column = chr(ord("A") + len(LEDGER_COLUMNS) - 1)
                sheet.update(
                    range_name=f"A{idx}:{end_column}{idx}",
                    values=[new_row],
                    value_input_option="RAW",
                )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save ledger for {user_id}: {e}")

    async def get_all(self) -> dict[str, UserRecord]:
        """Every stored record in sheet order."""
        try:
            sheet = self._client.get_ledger_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list ledgers: {e}")

        records = {}
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                records[row[0]] = self._row_to_record(row)
            except Exception:
                logger.warning("ledger_row_skipped", user_id=row[0])
                continue  # Skip malformed rows
        return records


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning(
                "audit_sheet_write_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False
