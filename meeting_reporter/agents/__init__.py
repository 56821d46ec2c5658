"""
Tool-calling agents for Meeting Reporter.
"""

from .base import BaseAgent, AgentRunResult, RunState
from .calendar_agent import CalendarAgent, CalendarTool
from .analysis_agent import AnalysisAgent, AnalysisTool
from .report_agent import ReportAgent, ReportTool

__all__ = [
    'BaseAgent',
    'AgentRunResult',
    'RunState',
    'CalendarAgent',
    'CalendarTool',
    'AnalysisAgent',
    'AnalysisTool',
    'ReportAgent',
    'ReportTool'
]
