"""
Calendar agent: fetches, filters and summarises calendar meetings.
"""

from collections import Counter
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Dict, Optional

from ..models.core import AgentEventType, ToolSpec
from ..models.errors import MeetingReporterError, ValidationError
from ..orchestration.events import EventBus
from ..tools.base import CalendarSource, ModelClient
from ..utils.domains import extract_domain
from .base import BaseAgent


class CalendarTool(str, Enum):
    FETCH_CALENDAR_EVENTS = "fetch_calendar_events"
    FILTER_MEETINGS = "filter_meetings"
    GET_MEETING_STATS = "get_meeting_stats"


class FilterType(str, Enum):
    ORGANIZER_DOMAIN = "organizer_domain"
    MIN_ATTENDEES = "min_attendees"
    KEYWORD = "keyword"
    EXTERNAL_ONLY = "external_only"
    INTERNAL_ONLY = "internal_only"


CALENDAR_TOOLS = [
    ToolSpec(
        name=CalendarTool.FETCH_CALENDAR_EVENTS,
        description=(
            "Fetch calendar events from Microsoft Outlook for a given date range. Can fetch for "
            "yourself or another user if they shared their calendar."
        ),
        parameter_schema={
            "type": "object",
            "properties": {
                "start_date": {"type": "string", "description": "Start date in ISO format (YYYY-MM-DD)"},
                "end_date": {"type": "string", "description": "End date in ISO format (YYYY-MM-DD)"},
                "target_user": {
                    "type": "string",
                    "description": "Email of the user whose calendar to fetch (optional, requires shared calendar access)",
                },
            },
            "required": ["start_date", "end_date"],
        },
    ),
    ToolSpec(
        name=CalendarTool.FILTER_MEETINGS,
        description="Filter meetings by criteria like organizer domain, attendee count, or keywords",
        parameter_schema={
            "type": "object",
            "properties": {
                "filter_type": {
                    "type": "string",
                    "description": "Type of filter to apply",
                    "enum": [filter_type.value for filter_type in FilterType],
                },
                "filter_value": {
                    "type": "string",
                    "description": "Value to filter by (domain name, number, or keyword)",
                },
            },
            "required": ["filter_type"],
        },
    ),
    ToolSpec(
        name=CalendarTool.GET_MEETING_STATS,
        description="Get statistics about the fetched meetings",
    ),
]

SYSTEM_PROMPT = """You are a Calendar Agent specialized in fetching and processing Microsoft Outlook calendar data.

Your capabilities:
1. Fetch calendar events for a specified date range
2. Filter meetings by various criteria
3. Provide meeting statistics

When asked to get meeting data:
1. First use fetch_calendar_events to retrieve the data
2. Apply any requested filters
3. Provide a summary of what was found

Always be helpful and provide clear information about the meetings found."""

END_OF_DAY = time(23, 59, 59, 999000)


def parse_day(value: Any, field: str) -> date:
    """Accept ``YYYY-MM-DD`` or a full ISO timestamp and return the calendar day."""
    if not value:
        raise ValidationError(f"{field} is required (YYYY-MM-DD)", field=field)
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as e:
        raise ValidationError(f"{field} is not a valid date: {value}", field=field) from e


class CalendarAgent(BaseAgent):
    """Fetches calendar data and stores it as ``meetings`` in the agent context."""

    def __init__(
        self,
        calendar_source: CalendarSource,
        model_client: ModelClient,
        event_bus: Optional[EventBus] = None,
        user_domain: Optional[str] = None,
        max_iterations: int = 5
    ):
        self.calendar_source = calendar_source
        self.user_domain = (user_domain or "").lower()
        super().__init__(
            name="CalendarAgent",
            system_prompt=SYSTEM_PROMPT,
            tool_specs=CALENDAR_TOOLS,
            model_client=model_client,
            event_bus=event_bus,
            max_iterations=max_iterations
        )

    def register_tools(self) -> None:
        self.tools.register(CalendarTool.FETCH_CALENDAR_EVENTS, self.fetch_calendar_events)
        self.tools.register(CalendarTool.FILTER_MEETINGS, self.filter_meetings)
        self.tools.register(CalendarTool.GET_MEETING_STATS, self.get_meeting_stats)

    async def fetch_calendar_events(self, args: Dict[str, Any]) -> Dict[str, Any]:
        start_day = parse_day(args.get("start_date"), "start_date")
        end_day = parse_day(args.get("end_date"), "end_date")
        if end_day < start_day:
            raise ValidationError("end_date must not be before start_date")

        start = datetime.combine(start_day, time.min, tzinfo=timezone.utc)
        # Include the whole final day
        end = datetime.combine(end_day, END_OF_DAY, tzinfo=timezone.utc)
        target_user = args.get("target_user") or None

        user_info = f"for {target_user}" if target_user else "for yourself"
        self.emit(
            AgentEventType.THINKING,
            f"Fetching calendar events {user_info} from {start_day:%a %b %d %Y} to {end_day:%a %b %d %Y}..."
        )

        try:
            meetings = await self.calendar_source.fetch_events(start, end, target_user)
        except MeetingReporterError as e:
            # Read by the orchestrator when no meetings arrive
            self.context.fetch_error = e.message
            raise

        self.context.meetings = meetings
        self.context.fetch_error = None
        self.context.start_date = start
        self.context.end_date = end
        self.context.target_user = target_user

        return {
            "success": True,
            "totalMeetings": len(meetings),
            "dateRange": {"start": start.isoformat(), "end": end.isoformat()},
            "meetings": [
                {
                    "id": meeting.id,
                    "subject": meeting.subject,
                    "start": meeting.start.isoformat(),
                    "organizer": meeting.organizer.name,
                    "attendeeCount": meeting.attendee_count,
                }
                for meeting in meetings
            ],
        }

    def filter_meetings(self, args: Dict[str, Any]) -> Dict[str, Any]:
        try:
            filter_type = FilterType(args.get("filter_type"))
        except ValueError as e:
            raise ValidationError(f"Unknown filter type: {args.get('filter_type')}") from e

        raw_value = args.get("filter_value")
        value = "" if raw_value is None else str(raw_value)
        needle = value.lower()
        meetings = self.context.meetings

        if filter_type == FilterType.ORGANIZER_DOMAIN:
            filtered = [m for m in meetings if needle in m.organizer.address.lower()]
        elif filter_type == FilterType.MIN_ATTENDEES:
            try:
                min_count = int(value)
            except ValueError:
                min_count = 0
            filtered = [m for m in meetings if m.attendee_count >= min_count]
        elif filter_type == FilterType.KEYWORD:
            filtered = [
                m for m in meetings
                if needle in m.subject.lower() or needle in m.body_preview.lower()
            ]
        else:
            if not self.user_domain:
                raise ValidationError("User domain is unknown; configure USER_DOMAIN to filter by it")
            internal = filter_type == FilterType.INTERNAL_ONLY
            filtered = [
                m for m in meetings
                if (extract_domain(m.organizer.address) == self.user_domain) == internal
            ]

        self.context.meetings = filtered

        return {
            "success": True,
            "filteredCount": len(filtered),
            "filterApplied": {"type": filter_type.value, "value": raw_value},
        }

    def get_meeting_stats(self, args: Dict[str, Any]) -> Dict[str, Any]:
        meetings = self.context.meetings
        by_domain = Counter(extract_domain(m.organizer.address) or "unknown" for m in meetings)
        total_minutes = sum(m.duration_minutes for m in meetings)

        return {
            "totalMeetings": len(meetings),
            "totalHours": round(total_minutes / 60, 1),
            "byDomain": dict(by_domain),
            "cancelledCount": sum(1 for m in meetings if m.is_cancelled),
            "allDayCount": sum(1 for m in meetings if m.is_all_day),
        }
