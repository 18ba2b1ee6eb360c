"""
PinJournal Backend — Weekly Report Exporter
=============================================

What:  Builds the `journal_report.csv` download from the last week of Active
       entries.
Why:   The report is read by people in a spreadsheet, so each entry's single
       timestamp is split into a long display date ("Monday 3 June 2024") and
       a 24-hour time ("14:05").
How:   Select → format rows → serialize with the csv module (";" delimiter).

Date words are spelled from fixed English tables so the output does not
depend on the server's locale.
"""

import csv
import io
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pinjournal.config import settings
from pinjournal.database import Database
from pinjournal.exceptions import DatabaseError, NotFoundError
from pinjournal.models.activity import ACTION_DOWNLOAD
from pinjournal.models.entry import STATUS_ACTIVE, Entry
from pinjournal.services.activity_service import activity_service

logger = logging.getLogger(__name__)

REPORT_FIELDS = ("title", "content", "date", "time")
REPORT_DELIMITER = ";"
REPORT_FILENAME = "journal_report.csv"
DOWNLOAD_DETAILS = "User downloaded journal report for the week"

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_report_date(value: datetime) -> str:
    """'Monday 3 June 2024': weekday, day without padding, month, year."""
    return f"{DAY_NAMES[value.weekday()]} {value.day} {MONTH_NAMES[value.month - 1]} {value.year}"


def format_report_time(value: datetime) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def format_entry_row(entry: Entry, tz: tzinfo) -> Dict[str, str]:
    local = _as_utc(entry.date).astimezone(tz)
    return {
        "title": entry.title,
        "content": entry.content,
        "date": format_report_date(local),
        "time": format_report_time(local),
    }


def serialize_rows(rows: List[Dict[str, str]]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=REPORT_FIELDS,
        delimiter=REPORT_DELIMITER,
        lineterminator="\n",
    )
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


class ReportService:
    """
    Exports the weekly CSV.

    `window_days` and `timezone_name` come from settings; the timezone only
    affects how the date/time columns are rendered, not which entries are
    selected.
    """

    def __init__(self, window_days: int = 7, timezone_name: str = "UTC"):
        self.window_days = window_days
        self.tz = ZoneInfo(timezone_name)

    async def build_weekly_report(
        self,
        db: AsyncSession,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Return the CSV text for Active entries dated within the window.

        Raises:
            NotFoundError: no qualifying entries (→ 404)
            DatabaseError: the selection query failed (→ 500)
        """
        since = (now or datetime.now(timezone.utc)) - timedelta(days=self.window_days)
        try:
            result = await db.execute(
                select(Entry).where(Entry.status == STATUS_ACTIVE, Entry.date >= since)
            )
            entries = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error selecting report entries: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to generate report", context={"error_type": type(e).__name__})

        if not entries:
            raise NotFoundError(message="No entries found for this week", resource="report")

        logger.info("Exporting %d entries since %s", len(entries), since.isoformat())
        return serialize_rows([format_entry_row(entry, self.tz) for entry in entries])

    async def record_download(self, database: Database) -> None:
        """
        Background task run after the CSV response is sent.

        Opens its own session (the request's session is closed by then). Any
        failure is logged; the client already has its file.
        """
        try:
            async with database.session() as db:
                await activity_service.record(db, action=ACTION_DOWNLOAD, details=DOWNLOAD_DETAILS)
        except Exception as e:
            logger.error("Failed to record report download: %s", str(e))


report_service = ReportService(
    window_days=settings.report_window_days,
    timezone_name=settings.report_timezone,
)
