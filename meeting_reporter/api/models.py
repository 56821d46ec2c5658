"""
API request and response models for Meeting Reporter.
"""

from pydantic import BaseModel, Field, model_validator
from typing import List, Optional, Dict, Any
from datetime import date, datetime

from ..models.core import ReportOptions


class ReportRequest(BaseModel):
    """Request model for generating a meeting report."""
    start_date: date = Field(..., description="First day of the range (YYYY-MM-DD)")
    end_date: date = Field(..., description="Last day of the range, inclusive (YYYY-MM-DD)")
    target_user: Optional[str] = Field(None, description="Mailbox of a shared calendar to report on")
    include_analysis: bool = Field(default=True, description="Add AI summary, category, action item and topic columns")
    include_executive_summary: bool = Field(default=True, description="Add an executive summary sheet")

    @model_validator(mode="after")
    def check_range(self) -> "ReportRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def to_options(self) -> ReportOptions:
        return ReportOptions(**self.model_dump())


class CommandRequest(BaseModel):
    """Free-text instruction routed to a single agent."""
    command: str = Field(..., min_length=1, max_length=2000, description="Instruction text")


class CommandResponse(BaseModel):
    """Outcome of a routed command."""
    success: bool = Field(..., description="Whether the agent finished its run")
    message: str = Field(..., description="Final agent reply or failure summary")
    agent_name: str = Field(..., description="Agent that handled the command")
    iterations: int = Field(..., description="Model queries spent")
    error: Optional[str] = Field(None, description="Failure detail")
    meeting_count: int = Field(default=0, description="Meetings currently in the shared context")
    analyzed_count: int = Field(default=0, description="Meetings with an analysis in the shared context")
    report_filename: Optional[str] = Field(None, description="Most recent report file, if any")


class SharedCalendarOwner(BaseModel):
    """Person who shared a calendar with the signed-in user."""
    name: str
    email: str


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=datetime.now, description="Error timestamp")


class HealthCheck(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(default_factory=datetime.now, description="Health check timestamp")
    version: str = Field(..., description="API version")
    uptime_seconds: float = Field(..., description="Service uptime in seconds")
    analysis_enabled: bool = Field(..., description="Whether an LLM endpoint is configured")
    calendar_configured: bool = Field(..., description="Whether a Graph access token is configured")
    event_stream_connections: int = Field(0, description="Open WebSocket event streams")


class ResetResponse(BaseModel):
    success: bool = True
    message: str = "All agents reset"


class SharedCalendarList(BaseModel):
    owners: List[SharedCalendarOwner] = Field(default_factory=list)
