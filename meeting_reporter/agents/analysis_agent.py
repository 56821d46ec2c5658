"""
Analysis agent: per-meeting insights and executive summaries.
"""

import asyncio
from collections import Counter
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models.core import AgentEventType, MeetingCategory, ToolSpec
from ..models.errors import ProcessingError, ValidationError
from ..orchestration.events import EventBus
from ..tools.base import MeetingAnalyzer, ModelClient
from .base import BaseAgent


class AnalysisTool(str, Enum):
    ANALYZE_SINGLE_MEETING = "analyze_single_meeting"
    ANALYZE_ALL_MEETINGS = "analyze_all_meetings"
    GENERATE_EXECUTIVE_SUMMARY = "generate_executive_summary"
    GET_ACTION_ITEMS = "get_action_items"
    GET_MEETINGS_BY_CATEGORY = "get_meetings_by_category"


ANALYSIS_TOOLS = [
    ToolSpec(
        name=AnalysisTool.ANALYZE_SINGLE_MEETING,
        description="Analyze a single meeting to extract summary, category, action items, and key topics",
        parameter_schema={
            "type": "object",
            "properties": {
                "meeting_id": {"type": "string", "description": "The ID of the meeting to analyze"},
            },
            "required": ["meeting_id"],
        },
    ),
    ToolSpec(
        name=AnalysisTool.ANALYZE_ALL_MEETINGS,
        description="Analyze all meetings in the current context",
        parameter_schema={
            "type": "object",
            "properties": {
                "batch_size": {
                    "type": "string",
                    "description": "Advisory batch size; meetings are analyzed one at a time",
                },
            },
            "required": [],
        },
    ),
    ToolSpec(
        name=AnalysisTool.GENERATE_EXECUTIVE_SUMMARY,
        description="Generate an executive summary of all analyzed meetings",
    ),
    ToolSpec(
        name=AnalysisTool.GET_ACTION_ITEMS,
        description="Get all action items extracted from analyzed meetings",
    ),
    ToolSpec(
        name=AnalysisTool.GET_MEETINGS_BY_CATEGORY,
        description="Get meetings grouped by their category",
        parameter_schema={
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "description": "Filter by specific category (optional)",
                    "enum": [category.value for category in MeetingCategory],
                },
            },
            "required": [],
        },
    ),
]

SYSTEM_PROMPT = """You are an Analysis Agent specialized in analyzing meeting data using AI.

Your capabilities:
1. Analyze individual meetings to extract summaries, categories, and action items
2. Batch analyze multiple meetings
3. Generate executive summaries
4. Categorize meetings and extract insights

When asked to analyze meetings:
1. Use analyze_all_meetings for batch processing
2. Use generate_executive_summary for an overview
3. Provide insights about meeting patterns and action items

Always provide clear, actionable insights from the meeting data."""


class AnalysisAgent(BaseAgent):
    """
    Analyses the meetings in its context.

    Results are written to ``analysis_results`` keyed by meeting id and the
    summary to ``executive_summary``.
    """

    def __init__(
        self,
        analyzer: MeetingAnalyzer,
        model_client: ModelClient,
        event_bus: Optional[EventBus] = None,
        delay_seconds: float = 0.2,
        max_iterations: int = 10
    ):
        self.analyzer = analyzer
        self.delay_seconds = delay_seconds
        super().__init__(
            name="AnalysisAgent",
            system_prompt=SYSTEM_PROMPT,
            tool_specs=ANALYSIS_TOOLS,
            model_client=model_client,
            event_bus=event_bus,
            max_iterations=max_iterations
        )

    def register_tools(self) -> None:
        self.tools.register(AnalysisTool.ANALYZE_SINGLE_MEETING, self.analyze_single_meeting)
        self.tools.register(AnalysisTool.ANALYZE_ALL_MEETINGS, self.analyze_all_meetings)
        self.tools.register(AnalysisTool.GENERATE_EXECUTIVE_SUMMARY, self.generate_executive_summary)
        self.tools.register(AnalysisTool.GET_ACTION_ITEMS, self.get_action_items)
        self.tools.register(AnalysisTool.GET_MEETINGS_BY_CATEGORY, self.get_meetings_by_category)

    async def analyze_single_meeting(self, args: Dict[str, Any]) -> Dict[str, Any]:
        meeting_id = args.get("meeting_id")
        meeting = next((m for m in self.context.meetings if m.id == meeting_id), None)
        if meeting is None:
            raise ProcessingError(f"Meeting with ID {meeting_id} not found")

        self.emit(AgentEventType.THINKING, f"Analyzing meeting: {meeting.subject}...")
        analysis = await self.analyzer.analyze(meeting)
        self.context.analysis_results = {**self.context.analysis_results, meeting.id: analysis}

        return {
            "success": True,
            "meetingId": meeting.id,
            "subject": meeting.subject,
            "analysis": analysis.model_dump(mode="json"),
        }

    async def analyze_all_meetings(self, args: Dict[str, Any]) -> Dict[str, Any]:
        meetings = self.context.meetings
        if not meetings:
            return {"success": False, "error": "No meetings found in context. Fetch calendar data first."}

        pending = [m for m in meetings if not m.is_cancelled]
        self.emit(AgentEventType.THINKING, f"Analyzing {len(pending)} meetings...")

        results = dict(self.context.analysis_results)
        analyzed = 0
        for index, meeting in enumerate(pending):
            self.emit(AgentEventType.THINKING, f"Analyzing ({index + 1}/{len(pending)}): {meeting.subject}")
            try:
                results[meeting.id] = await self.analyzer.analyze(meeting)
                analyzed += 1
            except Exception as e:
                # One bad record never aborts the batch
                self.logger.warning(f"Failed to analyze meeting {meeting.id}: {e}")
                continue

            # Throttle between model calls
            if self.delay_seconds and index < len(pending) - 1:
                await asyncio.sleep(self.delay_seconds)

        self.context.analysis_results = results

        return {
            "success": True,
            "totalAnalyzed": analyzed,
            "failed": len(pending) - analyzed,
            "categories": dict(Counter(analysis.category.value for analysis in results.values())),
            "totalActionItems": sum(len(analysis.action_items) for analysis in results.values()),
        }

    async def generate_executive_summary(self, args: Dict[str, Any]) -> Dict[str, Any]:
        analyses = self.context.analysis_results
        if not analyses:
            return {
                "success": False,
                "error": "No analysis results available. Run analyze_all_meetings first.",
            }

        self.emit(AgentEventType.THINKING, "Generating executive summary...")
        summary = await self.analyzer.summarize(self.context.meetings, analyses)
        self.context.executive_summary = summary

        return {"success": True, "summary": summary}

    def get_action_items(self, args: Dict[str, Any]) -> Dict[str, Any]:
        subjects = {m.id: m.subject for m in self.context.meetings}
        by_meeting: List[Dict[str, Any]] = [
            {"meeting": subjects.get(meeting_id, "Unknown"), "items": analysis.action_items}
            for meeting_id, analysis in self.context.analysis_results.items()
            if analysis.action_items
        ]

        return {
            "success": True,
            "totalActionItems": sum(len(entry["items"]) for entry in by_meeting),
            "byMeeting": by_meeting,
        }

    def get_meetings_by_category(self, args: Dict[str, Any]) -> Dict[str, Any]:
        category_filter = args.get("category") or None
        if category_filter is not None:
            try:
                category_filter = MeetingCategory(category_filter)
            except ValueError as e:
                raise ValidationError(f"Unknown category: {category_filter}") from e

        meetings = {m.id: m for m in self.context.meetings}
        by_category: Dict[str, List[Dict[str, str]]] = {}
        for meeting_id, analysis in self.context.analysis_results.items():
            meeting = meetings.get(meeting_id)
            if meeting is None:
                continue
            if category_filter is not None and analysis.category != category_filter:
                continue
            by_category.setdefault(analysis.category.value, []).append({
                "subject": meeting.subject,
                "date": meeting.start.isoformat(),
            })

        return {
            "success": True,
            "filter": category_filter.value if category_filter else "all",
            "byCategory": by_category,
        }
