"""
Report agent: turns meetings and analysis into a downloadable Excel report.
"""

from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models.core import AgentEventType, MeetingReportRow, ToolSpec
from ..orchestration.events import EventBus
from ..tools.base import ModelClient, ReportWriter
from ..tools.excel_writer import attach_analysis, build_report_rows
from ..utils.domains import extract_company
from .base import BaseAgent


class ReportTool(str, Enum):
    GENERATE_EXCEL_REPORT = "generate_excel_report"
    PREVIEW_REPORT = "preview_report"
    GET_REPORT_SUMMARY = "get_report_summary"


REPORT_TOOLS = [
    ToolSpec(
        name=ReportTool.GENERATE_EXCEL_REPORT,
        description="Generate an Excel report from the meeting data and analysis",
        parameter_schema={
            "type": "object",
            "properties": {
                "include_analysis": {
                    "type": "string",
                    "description": "Whether to include LLM analysis columns (true/false)",
                },
                "include_executive_summary": {
                    "type": "string",
                    "description": "Whether to include executive summary sheet (true/false)",
                },
            },
            "required": [],
        },
    ),
    ToolSpec(
        name=ReportTool.PREVIEW_REPORT,
        description="Get a preview of what the report will contain",
        parameter_schema={
            "type": "object",
            "properties": {
                "rows": {"type": "string", "description": "Number of preview rows to return (default: 5)"},
            },
            "required": [],
        },
    ),
    ToolSpec(
        name=ReportTool.GET_REPORT_SUMMARY,
        description="Get a summary of the report contents",
    ),
]

SYSTEM_PROMPT = """You are a Report Agent specialized in generating Excel reports from meeting data.

Your capabilities:
1. Generate Excel reports with meeting details
2. Include LLM analysis (summaries, categories, action items)
3. Provide report previews
4. Add executive summaries

When generating reports:
1. First check if meeting data is available in context
2. Check if analysis results are available (optional)
3. Generate the report with appropriate columns
4. Provide a summary of what was included

Always confirm successful report generation with the user."""

DEFAULT_PREVIEW_ROWS = 5


def flag(value: Any) -> bool:
    """Tool flags default to true; only an explicit false turns them off."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() != "false"


class ReportAgent(BaseAgent):
    """Builds report rows from its context and hands them to a ``ReportWriter``."""

    def __init__(
        self,
        writer: ReportWriter,
        model_client: ModelClient,
        event_bus: Optional[EventBus] = None,
        max_iterations: int = 5
    ):
        self.writer = writer
        self.report_rows: List[MeetingReportRow] = []
        super().__init__(
            name="ReportAgent",
            system_prompt=SYSTEM_PROMPT,
            tool_specs=REPORT_TOOLS,
            model_client=model_client,
            event_bus=event_bus,
            max_iterations=max_iterations
        )

    def register_tools(self) -> None:
        self.tools.register(ReportTool.GENERATE_EXCEL_REPORT, self.generate_excel_report)
        self.tools.register(ReportTool.PREVIEW_REPORT, self.preview_report)
        self.tools.register(ReportTool.GET_REPORT_SUMMARY, self.get_report_summary)

    def clear_caches(self) -> None:
        self.report_rows = []

    async def generate_excel_report(self, args: Dict[str, Any]) -> Dict[str, Any]:
        include_analysis = flag(args.get("include_analysis", True))
        include_summary = flag(args.get("include_executive_summary", True))
        meetings = self.context.meetings

        if not meetings:
            return {"success": False, "error": "No meetings found. Please fetch calendar data first."}

        self.emit(AgentEventType.THINKING, "Generating Excel report...")

        rows = build_report_rows(meetings)
        if include_analysis:
            rows = attach_analysis(rows, self.context.analysis_results)
        self.report_rows = rows

        today = datetime.now(timezone.utc)
        start = (self.context.start_date or today).date()
        end = (self.context.end_date or today).date()

        artifact = await self.writer.assemble(
            rows,
            self.context.executive_summary,
            start,
            end,
            include_analysis=include_analysis,
            include_executive_summary=include_summary
        )

        self.context.report_filename = artifact.filename
        self.context.download_url = artifact.download_url

        return {
            "success": True,
            "filename": artifact.filename,
            "downloadUrl": artifact.download_url,
            "rowCount": artifact.row_count,
            "columnsIncluded": artifact.column_count,
            "sheetsIncluded": artifact.sheet_count,
        }

    def preview_report(self, args: Dict[str, Any]) -> Dict[str, Any]:
        meetings = self.context.meetings
        if not meetings:
            return {"success": False, "error": "No meetings found"}

        try:
            row_count = int(args.get("rows") or DEFAULT_PREVIEW_ROWS)
        except (TypeError, ValueError):
            row_count = DEFAULT_PREVIEW_ROWS

        rows = build_report_rows(meetings[:max(row_count, 0)])
        return {
            "success": True,
            "previewRows": [row.model_dump(exclude_none=True) for row in rows],
            "totalAvailable": len(meetings),
        }

    def get_report_summary(self, args: Dict[str, Any]) -> Dict[str, Any]:
        meetings = self.context.meetings
        analyses = self.context.analysis_results

        companies = set()
        for meeting in meetings:
            addresses = [meeting.organizer.address] + [a.email.address for a in meeting.attendees]
            companies.update(company for company in map(extract_company, addresses) if company)

        categories = dict(Counter(analysis.category.value for analysis in analyses.values()))

        return {
            "success": True,
            "summary": {
                "totalMeetings": sum(1 for m in meetings if not m.is_cancelled),
                "cancelledMeetings": sum(1 for m in meetings if m.is_cancelled),
                "uniqueCompanies": len(companies),
                "analyzedMeetings": len(analyses),
                "categories": categories or "Not analyzed",
                "hasExecutiveSummary": bool(self.context.executive_summary),
            },
        }
