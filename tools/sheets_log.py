"""
Google Sheets hazard log.

Every validated hazard report becomes one appended row. Rows are never
updated or overwritten, and a repeated call writes a repeated row.
"""

import asyncio
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo

from google.oauth2 import service_account
from googleapiclient.discovery import Resource, build

from tools.errors import SinkError
from tools.hazard_schema import HazardReport
from tools.logging import get_logger

logger = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

#Hardcoded until workers sign in
WORKER_NAME = "Demo Worker"
DEFAULT_STATUS = "Open"

LOG_COLUMNS = (
    "Timestamp",
    "Worker",
    "Zone",
    "Hazard Type",
    "Severity (%)",
    "Risk Level",
    "AI Notes",
    "Status",
)


def format_log_timestamp(moment: datetime, tz_name: str = "America/New_York") -> str:
    """
    Render a moment the way the log sheet shows it, e.g. ``10/19/2026, 03:04 PM``.

    :param moment: Timezone-aware datetime. Naive values are treated as UTC.
    :type moment: datetime
    :param tz_name: IANA time zone the sheet is kept in.
    :type tz_name: str

    :return: ``MM/DD/YYYY, hh:mm AM`` formatted string.
    :rtype: str
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(tz_name)).strftime("%m/%d/%Y, %I:%M %p")


def build_log_row(report: HazardReport, timestamp: str) -> list:
    """
    Assemble the eight log columns for one report.

    :param report: Validated hazard report.
    :type report: HazardReport
    :param timestamp: Already formatted timestamp string.
    :type timestamp: str

    :return: Row values in ``LOG_COLUMNS`` order.
    :rtype: list
    """
    return [timestamp, WORKER_NAME, *report.to_row_values(), DEFAULT_STATUS]


def build_sheets_service(service_account_file: Path) -> Resource:
    """
    Build an authorized Sheets v4 resource from a service account key file.

    :raises SinkError: If the key file is missing or unreadable.
    """
    if not service_account_file.exists():
        raise SinkError(
            f"Service account file not found: {service_account_file}",
            {"service_account_file": str(service_account_file)},
        )

    try:
        credentials = service_account.Credentials.from_service_account_file(
            str(service_account_file),
            scopes=SCOPES,
        )
        return build("sheets", "v4", credentials=credentials, cache_discovery=False)
    except Exception as e:
        logger.error(f"Failed to build Sheets service: {e}")
        raise SinkError(f"Failed to connect to Sheets API: {str(e)}") from e


class SheetsHazardLog:
    """
    Append-only hazard log backed by one spreadsheet range.

    The Sheets resource is built on first use, so a missing key file fails
    each append instead of startup. The resource's HTTP transport is not
    thread-safe, so executor calls go through one lock.
    """

    def __init__(
        self,
        service: Optional[Resource] = None,
        spreadsheet_id: Optional[str] = None,
        sheet_range: str = "Sheet1!A:H",
        tz_name: str = "America/New_York",
        clock=None,
        service_account_file: Optional[Path] = None,
    ) -> None:
        """
        :param service: Sheets v4 resource (or any object with the same
            ``spreadsheets().values().append()`` shape). Built from
            ``service_account_file`` on first append when omitted.
        :param spreadsheet_id: Target spreadsheet.
        :param sheet_range: A1 range rows are appended after.
        :param tz_name: Time zone for the timestamp column.
        :param clock: Callable returning the current aware datetime.
        :param service_account_file: Key file used to build ``service``.
        """
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.sheet_range = sheet_range
        self.tz_name = tz_name
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.service_account_file = service_account_file or Path("service-account-key.json")
        self._lock = threading.Lock()

    def _append_rows(self, values: list[list[Any]]) -> dict:
        with self._lock:
            if self.service is None:
                self.service = build_sheets_service(self.service_account_file)
            return (
                self.service.spreadsheets()
                .values()
                .append(
                    spreadsheetId=self.spreadsheet_id,
                    range=self.sheet_range,
                    valueInputOption="RAW",
                    insertDataOption="INSERT_ROWS",
                    body={"values": values},
                )
                .execute()
            )

    async def append(self, report: HazardReport) -> int:
        """
        Append one row for ``report``.

        :param report: Validated hazard report.
        :type report: HazardReport

        :return: Number of rows the sheet reports as written (expected 1).
        :rtype: int
        :raises SinkError: If the spreadsheet is not configured, credentials
            cannot be loaded, or the append fails.
        """
        if not self.spreadsheet_id:
            raise SinkError("GOOGLE_SHEETS_SPREADSHEET_ID is not configured")

        row = build_log_row(report, format_log_timestamp(self.clock(), self.tz_name))

        try:
            # googleapiclient is blocking
            response = await asyncio.get_running_loop().run_in_executor(None, self._append_rows, [row])
        except SinkError:
            raise
        except Exception as e:
            logger.error(f"Google Sheets error: {e}", exc_info=True)
            raise SinkError(str(e), {"spreadsheet_id": self.spreadsheet_id, "range": self.sheet_range}) from e

        updated_rows = (response or {}).get("updates", {}).get("updatedRows", 0)
        logger.info(f"Written to Google Sheets: {updated_rows} row(s)")
        return updated_rows
