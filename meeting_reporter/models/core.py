"""
Core Pydantic data models for Meeting Reporter.
"""

import json
import re
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from typing import List, Optional, Dict, Any, Union
from datetime import date, datetime, timezone
from pathlib import Path
from enum import Enum


class Role(str, Enum):
    """Conversation roles understood by chat-completion endpoints."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCall(BaseModel):
    """A single tool invocation requested by the model."""
    id: str = Field(..., min_length=1)
    tool_name: str = Field(..., min_length=1)
    arguments_json: str = ""

    model_config = ConfigDict(frozen=True)

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.tool_name, "arguments": self.arguments_json},
        }

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "ToolCall":
        function = payload.get("function") or {}
        arguments = function.get("arguments", "")
        # Some OpenAI-compatible servers return arguments as an object
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return cls(id=payload["id"], tool_name=function["name"], arguments_json=arguments)


class Message(BaseModel):
    """One entry of an agent's conversation log."""
    role: Role
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None
    tool_call_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_tool_reference(self) -> "Message":
        if self.role == Role.TOOL and not self.tool_call_id:
            raise ValueError("tool messages must reference a tool_call_id")
        return self

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_api(self) -> Dict[str, Any]:
        """Serialize into the OpenAI chat-completions message format."""
        payload: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            payload["tool_calls"] = [call.to_api() for call in self.tool_calls]
        if self.tool_call_id is not None:
            payload["tool_call_id"] = self.tool_call_id
        return payload

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Message":
        """Parse an assistant message out of a chat-completions choice."""
        raw_calls = payload.get("tool_calls") or []
        return cls(
            role=Role(payload.get("role", "assistant")),
            content=payload.get("content"),
            tool_calls=[ToolCall.from_api(call) for call in raw_calls] or None,
        )


class ToolSpec(BaseModel):
    """Declared capability an agent advertises to the model."""
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    parameter_schema: Dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []}
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("name", mode="before")
    @classmethod
    def coerce_enum_name(cls, v):
        if isinstance(v, Enum):
            return v.value
        return v

    def to_api(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameter_schema,
            },
        }


class AgentEventType(str, Enum):
    """Kinds of progress notifications emitted by agents."""
    THINKING = "thinking"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    RESPONSE = "response"
    ERROR = "error"
    COMPLETE = "complete"


class AgentEvent(BaseModel):
    """Observational progress record; never read back by control logic."""
    type: AgentEventType
    agent: str
    message: str
    data: Optional[Any] = None
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(frozen=True)


# Calendar records

_FRACTION = re.compile(r"\.(\d+)")


def parse_graph_datetime(value: Union[str, Dict[str, Any]]) -> datetime:
    """Parse a Graph ``dateTimeTimeZone`` value into an aware UTC datetime.

    Graph returns seven fractional digits (``2024-03-04T09:00:00.0000000``)
    which ``datetime.fromisoformat`` rejects on older interpreters, so the
    fraction is normalised to microseconds first.
    """
    raw = value.get("dateTime", "") if isinstance(value, dict) else value
    raw = raw.strip().replace("Z", "+00:00")
    raw = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), raw, count=1)
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class EmailAddress(BaseModel):
    """Name and address pair as reported by the calendar."""
    name: str = ""
    address: str = ""


class Attendee(BaseModel):
    """Meeting participant."""
    email: EmailAddress = Field(default_factory=EmailAddress)
    type: str = "required"
    response: str = "none"


class CalendarEvent(BaseModel):
    """A calendar meeting fetched from the data-acquisition capability."""
    id: str = Field(..., min_length=1)
    subject: str = ""
    body_preview: str = ""
    start: datetime
    end: datetime
    organizer: EmailAddress = Field(default_factory=EmailAddress)
    attendees: List[Attendee] = Field(default_factory=list)
    is_all_day: bool = False
    is_cancelled: bool = False
    web_link: str = ""

    @field_validator("start", "end")
    @classmethod
    def normalize_to_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60

    @property
    def attendee_count(self) -> int:
        return len(self.attendees)

    @classmethod
    def from_graph(cls, payload: Dict[str, Any]) -> "CalendarEvent":
        """Build an event from a Microsoft Graph ``calendarView`` item."""
        organizer = (payload.get("organizer") or {}).get("emailAddress") or {}
        attendees = []
        for raw in payload.get("attendees") or []:
            address = raw.get("emailAddress") or {}
            attendees.append(Attendee(
                email=EmailAddress(name=address.get("name") or "", address=address.get("address") or ""),
                type=raw.get("type") or "required",
                response=(raw.get("status") or {}).get("response") or "none",
            ))

        return cls(
            id=payload["id"],
            subject=payload.get("subject") or "",
            body_preview=payload.get("bodyPreview") or "",
            start=parse_graph_datetime(payload["start"]),
            end=parse_graph_datetime(payload["end"]),
            organizer=EmailAddress(name=organizer.get("name") or "", address=organizer.get("address") or ""),
            attendees=attendees,
            is_all_day=bool(payload.get("isAllDay")),
            is_cancelled=bool(payload.get("isCancelled")),
            web_link=payload.get("webLink") or "",
        )


class MeetingCategory(str, Enum):
    """Fixed set of categories the analysis capability may assign."""
    INTERNAL_TEAM = "internal-team"
    EXTERNAL_CLIENT = "external-client"
    ONE_ON_ONE = "one-on-one"
    ALL_HANDS = "all-hands"
    INTERVIEW = "interview"
    TRAINING = "training"
    REVIEW = "review"
    PLANNING = "planning"
    SOCIAL = "social"
    OTHER = "other"


class MeetingAnalysis(BaseModel):
    """Structured insight extracted from a single meeting."""
    summary: str = ""
    category: MeetingCategory = MeetingCategory.OTHER
    action_items: List[str] = Field(default_factory=list)
    key_topics: List[str] = Field(default_factory=list)

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v):
        if isinstance(v, MeetingCategory):
            return v
        try:
            return MeetingCategory(str(v).strip().lower())
        except ValueError:
            return MeetingCategory.OTHER

    @field_validator("action_items", "key_topics", mode="before")
    @classmethod
    def coerce_text_list(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return [str(item) for item in v if str(item).strip()]

    @classmethod
    def default_for(cls, event: CalendarEvent) -> "MeetingAnalysis":
        """Neutral analysis used when the model output cannot be used."""
        return cls(
            summary=event.body_preview[:100] or "No description available",
            category=MeetingCategory.OTHER,
        )


# Report generation

class MeetingReportRow(BaseModel):
    """One spreadsheet row describing a meeting."""
    meeting_id: str
    meeting_name: str
    date: str
    start_time: str
    end_time: str
    organizer_name: str = ""
    organizer_email: str = ""
    organizer_company: str = ""
    attendees: str = ""
    attendee_emails: str = ""
    attendee_companies: str = ""
    agenda: str = ""
    ai_summary: Optional[str] = None
    category: Optional[str] = None
    action_items: Optional[str] = None
    key_topics: Optional[str] = None

    def with_analysis(self, analysis: MeetingAnalysis) -> "MeetingReportRow":
        return self.model_copy(update={
            "ai_summary": analysis.summary,
            "category": analysis.category.value,
            "action_items": "; ".join(analysis.action_items),
            "key_topics": ", ".join(analysis.key_topics),
        })


class ReportArtifact(BaseModel):
    """Output of the report-assembly capability."""
    filename: str
    path: Optional[Path] = None
    download_url: Optional[str] = None
    row_count: int = 0
    column_count: int = 0
    sheet_count: int = 1


class ReportOptions(BaseModel):
    """Parameters of a single report-generation request."""
    start_date: date
    end_date: date
    target_user: Optional[str] = None
    include_analysis: bool = True
    include_executive_summary: bool = True

    @model_validator(mode="after")
    def check_range(self) -> "ReportOptions":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class AnalysisStatus(str, Enum):
    """How far Stage 2 got for a report."""
    COMPLETED = "completed"
    DEGRADED = "degraded"
    SKIPPED = "skipped"
    NOT_REQUESTED = "not_requested"


class ReportResult(BaseModel):
    """Aggregate outcome returned by the orchestrator."""
    success: bool
    message: str
    filename: Optional[str] = None
    download_url: Optional[str] = None
    error: Optional[str] = None
    meeting_count: int = 0
    analysis_status: AnalysisStatus = AnalysisStatus.NOT_REQUESTED

    @property
    def partial(self) -> bool:
        return self.success and self.analysis_status in (AnalysisStatus.DEGRADED, AnalysisStatus.SKIPPED)
