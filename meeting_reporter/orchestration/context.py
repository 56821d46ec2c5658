"""
Typed shared context threaded between pipeline agents.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.core import CalendarEvent, MeetingAnalysis


class AcquisitionOutput(BaseModel):
    """What the calendar stage contributes."""
    meetings: List[CalendarEvent] = Field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_user: Optional[str] = None
    fetch_error: Optional[str] = None


class AnalysisOutput(BaseModel):
    """What the analysis stage contributes."""
    analysis_results: Dict[str, MeetingAnalysis] = Field(default_factory=dict)
    executive_summary: Optional[str] = None


class ReportOutput(BaseModel):
    """What the report stage contributes."""
    report_filename: Optional[str] = None
    download_url: Optional[str] = None


class SharedContext(BaseModel):
    """
    Key/value state handed from one agent to the next.

    Fields are only ever replaced as a whole, never mutated in place, so
    ``model_fields_set`` records exactly which fields a holder has written.
    Folding copies those fields over, last writer wins.
    """
    meetings: List[CalendarEvent] = Field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_user: Optional[str] = None
    fetch_error: Optional[str] = None
    analysis_results: Dict[str, MeetingAnalysis] = Field(default_factory=dict)
    executive_summary: Optional[str] = None
    report_filename: Optional[str] = None
    download_url: Optional[str] = None

    model_config = ConfigDict(validate_assignment=True)

    def fold(self, other: "SharedContext") -> "SharedContext":
        """
        Merge every explicitly set field of ``other`` into this context.

        Args:
            other: Context whose written fields take precedence

        Returns:
            This context, for chaining
        """
        for name in other.model_fields_set:
            setattr(self, name, getattr(other, name))
        return self

    def handoff(self) -> "SharedContext":
        """Independent copy for the next agent; its writes never leak back."""
        return self.model_copy(deep=True)

    def acquisition(self) -> AcquisitionOutput:
        return AcquisitionOutput(
            meetings=self.meetings,
            start_date=self.start_date,
            end_date=self.end_date,
            target_user=self.target_user,
            fetch_error=self.fetch_error,
        )

    def analysis(self) -> AnalysisOutput:
        return AnalysisOutput(
            analysis_results=self.analysis_results,
            executive_summary=self.executive_summary,
        )

    def report(self) -> ReportOutput:
        return ReportOutput(report_filename=self.report_filename, download_url=self.download_url)

    def is_empty(self) -> bool:
        return not self.model_fields_set
