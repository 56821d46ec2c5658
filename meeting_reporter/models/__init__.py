"""
Data models for Meeting Reporter.
"""

from .core import (
    Role,
    ToolCall,
    Message,
    ToolSpec,
    AgentEventType,
    AgentEvent,
    EmailAddress,
    Attendee,
    CalendarEvent,
    MeetingCategory,
    MeetingAnalysis,
    MeetingReportRow,
    ReportArtifact,
    ReportOptions,
    AnalysisStatus,
    ReportResult,
)

__all__ = [
    'Role',
    'ToolCall',
    'Message',
    'ToolSpec',
    'AgentEventType',
    'AgentEvent',
    'EmailAddress',
    'Attendee',
    'CalendarEvent',
    'MeetingCategory',
    'MeetingAnalysis',
    'MeetingReportRow',
    'ReportArtifact',
    'ReportOptions',
    'AnalysisStatus',
    'ReportResult',
]
