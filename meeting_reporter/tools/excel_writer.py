"""
Excel report assembly.

Turns calendar events into report rows and writes them, with optional AI
analysis columns and an executive summary sheet, using pandas and openpyxl.
"""

import asyncio
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd
from openpyxl.utils import get_column_letter

from ..models.core import CalendarEvent, MeetingAnalysis, MeetingReportRow, ReportArtifact
from ..utils.domains import extract_company, unique_companies
from ..utils.logging import LoggerMixin
from .base import ReportWriter

MEETINGS_SHEET = "Meetings"
SUMMARY_SHEET = "Summary"
AGENDA_LIMIT = 500

MEETING_COLUMNS = {
    "meeting_name": "Meeting Name",
    "date": "Date",
    "start_time": "Start Time",
    "end_time": "End Time",
    "organizer_name": "Organizer Name",
    "organizer_email": "Organizer Email",
    "organizer_company": "Organizer Company",
    "attendees": "Attendees",
    "attendee_emails": "Attendee Emails",
    "attendee_companies": "Attendee Companies",
    "agenda": "Agenda",
}

ANALYSIS_COLUMNS = {
    "ai_summary": "AI Summary",
    "category": "Category",
    "action_items": "Action Items",
    "key_topics": "Key Topics",
}


def to_report_row(event: CalendarEvent) -> MeetingReportRow:
    attendee_emails = [attendee.email.address for attendee in event.attendees if attendee.email.address]
    return MeetingReportRow(
        meeting_id=event.id,
        meeting_name=event.subject or "(No subject)",
        date=event.start.strftime("%Y-%m-%d"),
        start_time=event.start.strftime("%H:%M"),
        end_time=event.end.strftime("%H:%M"),
        organizer_name=event.organizer.name,
        organizer_email=event.organizer.address,
        organizer_company=extract_company(event.organizer.address),
        attendees=", ".join(attendee.email.name for attendee in event.attendees if attendee.email.name),
        attendee_emails=", ".join(attendee_emails),
        attendee_companies=", ".join(unique_companies(attendee_emails)),
        agenda=event.body_preview[:AGENDA_LIMIT],
    )


def build_report_rows(events: Iterable[CalendarEvent]) -> List[MeetingReportRow]:
    """
    Transform events into report rows.

    Cancelled meetings and zero-duration placeholders are skipped.
    """
    return [
        to_report_row(event)
        for event in events
        if not event.is_cancelled and event.start != event.end
    ]


def attach_analysis(rows: List[MeetingReportRow], analyses: Dict[str, MeetingAnalysis]) -> List[MeetingReportRow]:
    """Fill analysis columns on rows whose meeting has an analysis."""
    return [
        row.with_analysis(analyses[row.meeting_id]) if row.meeting_id in analyses else row
        for row in rows
    ]


def report_filename(start: date, end: date) -> str:
    return f"meeting-report_{start.strftime('%Y%m%d')}_to_{end.strftime('%Y%m%d')}.xlsx"


class ExcelReportWriter(ReportWriter, LoggerMixin):
    """Writes meeting reports as ``.xlsx`` workbooks into an output directory."""

    def __init__(self, output_dir: Path = Path("reports"), download_base_url: Optional[str] = None):
        self.output_dir = Path(output_dir)
        self.download_base_url = download_base_url

    def frame(self, rows: List[MeetingReportRow], include_analysis: bool) -> pd.DataFrame:
        columns = dict(MEETING_COLUMNS)
        if include_analysis:
            columns.update(ANALYSIS_COLUMNS)

        records = [
            {header: (getattr(row, field) or "") for field, header in columns.items()}
            for row in rows
        ]
        return pd.DataFrame(records, columns=list(columns.values()))

    def download_url(self, path: Path) -> str:
        if self.download_base_url:
            return f"{self.download_base_url.rstrip('/')}/{path.name}"
        return path.resolve().as_uri()

    async def assemble(
        self,
        rows: List[MeetingReportRow],
        executive_summary: Optional[str],
        start: date,
        end: date,
        include_analysis: bool = True,
        include_executive_summary: bool = True
    ) -> ReportArtifact:
        """
        Write the workbook and describe it.

        Analysis columns appear only when requested and at least one row
        carries an analysis. The summary sheet appears only when requested
        and a summary exists.
        """
        filename = report_filename(start, end)
        path = self.output_dir / filename

        with_analysis = include_analysis and any(row.ai_summary is not None for row in rows)
        meetings = self.frame(rows, with_analysis)

        summary_lines = None
        if include_executive_summary and executive_summary:
            summary_lines = [
                "",
                f"Date Range: {start.strftime('%a %b %d %Y')} - {end.strftime('%a %b %d %Y')}",
                f"Total Meetings: {len(rows)}",
                "",
                executive_summary,
            ]

        await asyncio.to_thread(self._write, path, meetings, summary_lines)
        self.logger.info("Wrote report", filename=filename, rows=len(rows), columns=len(meetings.columns))

        return ReportArtifact(
            filename=filename,
            path=path,
            download_url=self.download_url(path),
            row_count=len(rows),
            column_count=len(meetings.columns),
            sheet_count=2 if summary_lines else 1,
        )

    def _write(self, path: Path, meetings: pd.DataFrame, summary_lines: Optional[List[str]]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            meetings.to_excel(writer, sheet_name=MEETINGS_SHEET, index=False)
            sheet = writer.sheets[MEETINGS_SHEET]
            for index, header in enumerate(meetings.columns, start=1):
                sheet.column_dimensions[get_column_letter(index)].width = max(len(header), 20)

            if summary_lines:
                summary = pd.DataFrame({"Executive Summary": summary_lines})
                summary.to_excel(writer, sheet_name=SUMMARY_SHEET, index=False)
                writer.sheets[SUMMARY_SHEET].column_dimensions["A"].width = 100
