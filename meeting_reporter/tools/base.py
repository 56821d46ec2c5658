"""
Abstract collaborator interfaces consumed by the agents.

Concrete implementations live beside this module; tests substitute their own.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, List, Optional

from ..models.core import (
    CalendarEvent, Message, ToolSpec, MeetingAnalysis, MeetingReportRow, ReportArtifact
)


class ModelClient(ABC):
    """Language model endpoint that can request tool calls."""

    @abstractmethod
    async def complete(self, messages: List[Message], tools: List[ToolSpec]) -> Message:
        """
        Query the model with the full conversation.

        Args:
            messages: Conversation so far, system message first
            tools: Every tool the calling agent exposes

        Returns:
            The assistant reply, possibly carrying tool calls

        Raises:
            ModelTransportError: On non-2xx responses or transport failure
        """


class CalendarSource(ABC):
    """Source of calendar meetings."""

    @abstractmethod
    async def fetch_events(
        self,
        start: datetime,
        end: datetime,
        target_user: Optional[str] = None
    ) -> List[CalendarEvent]:
        """Return every meeting between ``start`` and ``end``, inclusive."""


class MeetingAnalyzer(ABC):
    """Per-meeting analysis and cross-meeting summarisation."""

    @abstractmethod
    async def analyze(self, event: CalendarEvent) -> MeetingAnalysis:
        """Extract summary, category, action items and topics from one meeting."""

    @abstractmethod
    async def summarize(
        self,
        events: List[CalendarEvent],
        analyses: Dict[str, MeetingAnalysis]
    ) -> str:
        """Write an executive summary over analysed meetings."""


class ReportWriter(ABC):
    """Assembles report rows into a downloadable document."""

    @abstractmethod
    async def assemble(
        self,
        rows: List[MeetingReportRow],
        executive_summary: Optional[str],
        start: date,
        end: date,
        include_analysis: bool = True,
        include_executive_summary: bool = True
    ) -> ReportArtifact:
        """Write the report and describe the produced artefact."""
