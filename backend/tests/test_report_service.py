"""
PinJournal Backend — Weekly Report Tests
==========================================

What:  Tests for the CSV exporter and its download audit.

What we test:
    ✅ Date and time formatting ("Monday 3 June 2024", "14:05")
    ✅ Only Active entries inside the window are exported
    ✅ Header row and ";" delimiter, quoting only where needed
    ✅ Empty window → NotFoundError and no audit record
    ✅ record_download opens its own session and writes one activity
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select

from pinjournal.exceptions import NotFoundError
from pinjournal.models.activity import Activity
from pinjournal.models.entry import STATUS_DELETED, Entry
from pinjournal.services.report_service import (
    DOWNLOAD_DETAILS,
    ReportService,
    format_report_date,
    format_report_time,
    serialize_rows,
)

NOW = datetime(2024, 6, 5, 12, 0, tzinfo=timezone.utc)


class TestFormatting:

    def test_report_date(self):
        assert format_report_date(datetime(2024, 6, 3, 14, 5)) == "Monday 3 June 2024"
        assert format_report_date(datetime(2023, 12, 31, 0, 0)) == "Sunday 31 December 2023"

    def test_report_time_is_zero_padded(self):
        assert format_report_time(datetime(2024, 6, 3, 9, 7)) == "09:07"

    def test_serialize_header_only(self):
        assert serialize_rows([]) == "title;content;date;time\n"

    def test_serialize_quotes_only_when_needed(self):
        text = serialize_rows([
            {"title": "Plain", "content": "a;b", "date": "Monday 3 June 2024", "time": "14:05"},
        ])
        assert text.splitlines() == [
            "title;content;date;time",
            'Plain;"a;b";Monday 3 June 2024;14:05',
        ]


class TestBuildWeeklyReport:

    async def _seed(self, db):
        db.add_all([
            Entry(title="Recent", content="kept", date=datetime(2024, 6, 3, 14, 5, tzinfo=timezone.utc)),
            Entry(title="Old", content="too old", date=datetime(2024, 5, 20, 8, 0, tzinfo=timezone.utc)),
            Entry(
                title="Removed",
                content="deleted",
                date=datetime(2024, 6, 4, 10, 0, tzinfo=timezone.utc),
                status=STATUS_DELETED,
            ),
        ])
        await db.commit()

    @pytest.mark.asyncio
    async def test_exports_active_entries_in_window(self, db_session):
        await self._seed(db_session)

        text = await ReportService(window_days=7).build_weekly_report(db_session, now=NOW)

        assert text == "title;content;date;time\nRecent;kept;Monday 3 June 2024;14:05\n"

    @pytest.mark.asyncio
    async def test_report_timezone_changes_rendering(self, db_session):
        await self._seed(db_session)

        text = await ReportService(window_days=7, timezone_name="Asia/Kolkata").build_weekly_report(
            db_session, now=NOW
        )

        assert text.splitlines()[1] == "Recent;kept;Monday 3 June 2024;19:35"

    @pytest.mark.asyncio
    async def test_empty_window_is_not_found(self, db_session):
        await self._seed(db_session)

        with pytest.raises(NotFoundError, match="No entries found for this week"):
            await ReportService(window_days=7).build_weekly_report(
                db_session, now=datetime(2025, 1, 1, tzinfo=timezone.utc)
            )

        activities = (await db_session.execute(select(Activity))).scalars().all()
        assert activities == []


class TestRecordDownload:

    @pytest.mark.asyncio
    async def test_writes_download_activity(self, database):
        await ReportService().record_download(database)

        async with database.session() as db:
            activities = (await db.execute(select(Activity))).scalars().all()

        assert [(a.action, a.entry_id, a.details) for a in activities] == [
            ("download", None, DOWNLOAD_DETAILS)
        ]

    @pytest.mark.asyncio
    async def test_audit_failure_is_swallowed(self):
        database = MagicMock()
        database.session = MagicMock(side_effect=RuntimeError("database unavailable"))

        await ReportService().record_download(database)

        database.session.assert_called_once()
