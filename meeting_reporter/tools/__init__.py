"""
Collaborators used by the agents: model client, calendar source, analyzer and report writer.
"""

from .base import ModelClient, CalendarSource, MeetingAnalyzer, ReportWriter
from .registry import ToolRegistry
from .llm_client import OpenAICompatibleClient
from .graph_client import GraphCalendarClient
from .meeting_analyzer import LLMMeetingAnalyzer
from .excel_writer import ExcelReportWriter

__all__ = [
    'ModelClient',
    'CalendarSource',
    'MeetingAnalyzer',
    'ReportWriter',
    'ToolRegistry',
    'OpenAICompatibleClient',
    'GraphCalendarClient',
    'LLMMeetingAnalyzer',
    'ExcelReportWriter'
]
