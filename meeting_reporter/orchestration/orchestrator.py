"""
Report orchestrator coordinating the calendar, analysis and report agents.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from ..agents.analysis_agent import AnalysisAgent
from ..agents.base import AgentRunResult, BaseAgent
from ..agents.calendar_agent import CalendarAgent
from ..agents.report_agent import ReportAgent
from ..models.core import AgentEvent, AgentEventType, AnalysisStatus, ReportOptions, ReportResult
from ..models.errors import ProcessingError
from ..tools.base import CalendarSource, MeetingAnalyzer, ModelClient, ReportWriter
from ..tools.excel_writer import ExcelReportWriter
from ..tools.graph_client import GraphCalendarClient
from ..tools.llm_client import OpenAICompatibleClient
from ..tools.meeting_analyzer import LLMMeetingAnalyzer
from ..utils.config import SystemConfig
from ..utils.logging import get_logger
from .context import SharedContext
from .events import EventBus

ORCHESTRATOR_NAME = "Orchestrator"

ACQUISITION_KEYWORDS = ("fetch", "calendar", "meetings")
ANALYSIS_KEYWORDS = ("analyz", "summar", "action item", "categor")
REPORT_KEYWORDS = ("report", "excel", "export", "download")


@dataclass
class OrchestrationConfig:
    """Configuration for the report pipeline."""
    analysis_enabled: bool = True


class ReportOrchestrator:
    """
    Runs the three-stage report pipeline and routes free-text commands.

    Stage 1 (calendar) and Stage 3 (report) failures are fatal. Stage 2
    (analysis) is best-effort: its failures degrade the report instead of
    aborting it. Each agent works on a copy of the shared context, and its
    local context is folded back after a successful run.
    """

    def __init__(
        self,
        calendar_agent: CalendarAgent,
        analysis_agent: AnalysisAgent,
        report_agent: ReportAgent,
        event_bus: Optional[EventBus] = None,
        config: Optional[OrchestrationConfig] = None
    ):
        self.calendar_agent = calendar_agent
        self.analysis_agent = analysis_agent
        self.report_agent = report_agent
        self.event_bus = event_bus or calendar_agent.event_bus
        # One bus for every agent so observers see the whole pipeline
        for agent in self.agents:
            agent.event_bus = self.event_bus
        self.config = config or OrchestrationConfig()
        self.shared_context = SharedContext()
        self.logger = get_logger(f"{__name__}.ReportOrchestrator")

    @classmethod
    def from_config(
        cls,
        config: SystemConfig,
        model_client: Optional[ModelClient] = None,
        calendar_source: Optional[CalendarSource] = None,
        analyzer: Optional[MeetingAnalyzer] = None,
        writer: Optional[ReportWriter] = None,
        event_bus: Optional[EventBus] = None
    ) -> "ReportOrchestrator":
        """
        Wire the default collaborators from configuration.

        Any collaborator passed in explicitly replaces the default one.
        """
        event_bus = event_bus or EventBus()
        llm_client = OpenAICompatibleClient(config.llm)
        model_client = model_client or llm_client
        calendar_source = calendar_source or GraphCalendarClient(config.graph)
        analyzer = analyzer or LLMMeetingAnalyzer(llm_client, max_tokens=config.llm.max_tokens)
        writer = writer or ExcelReportWriter(config.reports.output_dir, config.reports.download_base_url)

        return cls(
            calendar_agent=CalendarAgent(
                calendar_source,
                model_client,
                event_bus=event_bus,
                user_domain=config.graph.user_domain,
                max_iterations=config.agents.calendar_max_iterations
            ),
            analysis_agent=AnalysisAgent(
                analyzer,
                model_client,
                event_bus=event_bus,
                delay_seconds=config.reports.analysis_delay_seconds,
                max_iterations=config.agents.analysis_max_iterations
            ),
            report_agent=ReportAgent(
                writer,
                model_client,
                event_bus=event_bus,
                max_iterations=config.agents.report_max_iterations
            ),
            event_bus=event_bus,
            config=OrchestrationConfig(analysis_enabled=config.analysis_enabled)
        )

    @property
    def agents(self):
        return (self.calendar_agent, self.analysis_agent, self.report_agent)

    def on_event(self, handler: Callable[[AgentEvent], None]) -> Callable[[], None]:
        """Subscribe to orchestrator and agent events; returns an unsubscribe callable."""
        return self.event_bus.subscribe(handler)

    def emit(self, event_type: AgentEventType, message: str, data=None) -> AgentEvent:
        return self.event_bus.emit(event_type, ORCHESTRATOR_NAME, message, data)

    def reset(self) -> None:
        """Reset every agent and empty the shared context."""
        for agent in self.agents:
            agent.reset()
        self.shared_context = SharedContext()

    async def _run_stage(self, agent: BaseAgent, instruction: str, fold_on_failure: bool = False) -> AgentRunResult:
        agent.set_context(self.shared_context)
        result = await agent.run(instruction)
        if result.success or fold_on_failure:
            self.shared_context.fold(agent.context)
        return result

    @staticmethod
    def acquisition_instruction(options: ReportOptions) -> str:
        target_clause = f" for user {options.target_user}" if options.target_user else ""
        return (
            f"Fetch all calendar events from {options.start_date.isoformat()} "
            f"to {options.end_date.isoformat()}{target_clause}"
        )

    @staticmethod
    def report_instruction(options: ReportOptions) -> str:
        return (
            f"Generate an Excel report with include_analysis={str(options.include_analysis).lower()} "
            f"and include_executive_summary={str(options.include_executive_summary).lower()}"
        )

    async def _analyze(self, options: ReportOptions) -> AnalysisStatus:
        """Stage 2; never raises and never aborts the pipeline."""
        if not options.include_analysis:
            return AnalysisStatus.NOT_REQUESTED

        if not self.config.analysis_enabled:
            self.emit(AgentEventType.RESPONSE, "LLM not configured - skipping AI analysis")
            return AnalysisStatus.SKIPPED

        self.emit(AgentEventType.THINKING, "Analyzing meetings with AI...")
        analysis = await self._run_stage(
            self.analysis_agent,
            "Analyze all meetings in the context to extract summaries, categories, and action items"
        )
        if not analysis.success:
            self.logger.warning(f"Analysis stage failed: {analysis.error}")
            self.emit(AgentEventType.ERROR, "Analysis failed, generating report without AI insights")
            return AnalysisStatus.DEGRADED

        status = AnalysisStatus.COMPLETED
        eligible = sum(1 for m in self.shared_context.meetings if not m.is_cancelled)
        if len(self.shared_context.analysis_results) < eligible:
            status = AnalysisStatus.DEGRADED

        if options.include_executive_summary:
            self.emit(AgentEventType.THINKING, "Generating executive summary...")
            summary = await self._run_stage(
                self.analysis_agent,
                "Generate an executive summary of all analyzed meetings"
            )
            if not summary.success or not self.shared_context.executive_summary:
                self.logger.warning(f"Executive summary failed: {summary.error or 'no summary produced'}")
                self.emit(AgentEventType.ERROR, "Executive summary failed, continuing without it")
                status = AnalysisStatus.DEGRADED

        return status

    async def generate_report(self, options: ReportOptions) -> ReportResult:
        """
        Run acquisition, optional analysis and report assembly.

        Args:
            options: Date range, target user and analysis flags

        Returns:
            ReportResult: success with the report filename and download URL,
            a no-data result when the range is empty, or a fatal failure
        """
        self.reset()
        self.emit(AgentEventType.THINKING, "Starting report generation...")
        user_info = f"for {options.target_user}" if options.target_user else "for yourself"
        self.emit(
            AgentEventType.THINKING,
            f"Date range: {options.start_date:%a %b %d %Y} to {options.end_date:%a %b %d %Y} {user_info}"
        )

        try:
            calendar = await self._run_stage(self.calendar_agent, self.acquisition_instruction(options))
            if not calendar.success:
                raise ProcessingError(calendar.error or "Failed to fetch calendar data", stage="calendar")

            acquisition = self.shared_context.acquisition()
            meeting_count = len(acquisition.meetings)
            if meeting_count == 0 and acquisition.fetch_error:
                raise ProcessingError(f"Calendar fetch failed: {acquisition.fetch_error}", stage="calendar")
            self.emit(AgentEventType.RESPONSE, f"Found {meeting_count} meetings")

            if meeting_count == 0:
                return ReportResult(
                    success=False,
                    message="No meetings found in the specified date range",
                    meeting_count=0
                )

            analysis_status = await self._analyze(options)

            self.emit(AgentEventType.THINKING, "Generating Excel report...")
            report = await self._run_stage(self.report_agent, self.report_instruction(options))
            if not report.success:
                raise ProcessingError(report.error or "Failed to generate report", stage="report")

            output = self.shared_context.report()
            if not output.report_filename:
                raise ProcessingError("Report agent finished without producing a report", stage="report")

        except ProcessingError as e:
            self.logger.error(f"Report generation failed: {e.message}")
            self.emit(AgentEventType.ERROR, e.message)
            return ReportResult(success=False, message="Failed to generate report", error=e.message)

        self.emit(AgentEventType.COMPLETE, "Report generated successfully!")
        return ReportResult(
            success=True,
            message=f"Report generated with {meeting_count} meetings",
            filename=output.report_filename,
            download_url=output.download_url,
            meeting_count=meeting_count,
            analysis_status=analysis_status
        )

    def route(self, command: str) -> BaseAgent:
        """
        Pick the agent for a free-text command.

        Keyword heuristic, first match wins: acquisition, then analysis, then
        report; anything else goes to the calendar agent.
        """
        text = command.lower()
        if any(keyword in text for keyword in ACQUISITION_KEYWORDS):
            return self.calendar_agent
        if any(keyword in text for keyword in ANALYSIS_KEYWORDS):
            return self.analysis_agent
        if any(keyword in text for keyword in REPORT_KEYWORDS):
            return self.report_agent
        return self.calendar_agent

    async def run_command(self, command: str) -> AgentRunResult:
        """
        Route a free-text command to one agent and fold its context back.

        Raises:
            ValidationError: If the command is empty
        """
        agent = self.route(command)
        self.logger.info(f"Routing command to {agent.name}")
        return await self._run_stage(agent, command, fold_on_failure=True)
