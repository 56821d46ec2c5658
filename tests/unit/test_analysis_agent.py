"""
Unit tests for the analysis agent.
"""

from unittest.mock import AsyncMock

import pytest

from meeting_reporter.agents.analysis_agent import AnalysisAgent
from meeting_reporter.models.core import MeetingAnalysis, MeetingCategory
from meeting_reporter.models.errors import ProcessingError, ValidationError
from meeting_reporter.orchestration.context import SharedContext

from doubles import FailingAnalyzer, ScriptedModelClient, StubAnalyzer


def make_agent(analyzer=None, meetings=None, analyses=None):
    agent = AnalysisAgent(analyzer or StubAnalyzer(), ScriptedModelClient(), delay_seconds=0)
    context = SharedContext()
    if meetings is not None:
        context.meetings = meetings
    if analyses is not None:
        context.analysis_results = analyses
    agent.set_context(context)
    return agent


class TestAnalyzeMeetings:
    """Test cases for single and batch analysis."""

    @pytest.mark.asyncio
    async def test_single_meeting(self, three_meetings):
        agent = make_agent(meetings=three_meetings)

        result = await agent.analyze_single_meeting({"meeting_id": "m2"})

        assert result["success"] is True
        assert result["meetingId"] == "m2"
        assert result["analysis"]["category"] == "internal-team"
        assert list(agent.context.analysis_results) == ["m2"]

    @pytest.mark.asyncio
    async def test_single_meeting_not_found(self, three_meetings):
        agent = make_agent(meetings=three_meetings)

        with pytest.raises(ProcessingError) as exc_info:
            await agent.analyze_single_meeting({"meeting_id": "missing"})

        assert exc_info.value.message == "Meeting with ID missing not found"

    @pytest.mark.asyncio
    async def test_all_meetings_skips_cancelled(self, make_event):
        analyzer = StubAnalyzer()
        agent = make_agent(analyzer, meetings=[
            make_event("a", "Planning"),
            make_event("b", "Cancelled sync", cancelled=True),
            make_event("c", "Retro"),
        ])

        result = await agent.analyze_all_meetings({"batch_size": "2"})

        assert analyzer.analyzed == ["a", "c"]
        assert result == {
            "success": True,
            "totalAnalyzed": 2,
            "failed": 0,
            "categories": {"internal-team": 2},
            "totalActionItems": 2,
        }
        assert set(agent.context.analysis_results) == {"a", "c"}

    @pytest.mark.asyncio
    async def test_all_meetings_without_data(self):
        agent = make_agent()

        result = await agent.analyze_all_meetings({})

        assert result["success"] is False
        assert "Fetch calendar data first" in result["error"]

    @pytest.mark.asyncio
    async def test_one_failing_meeting_does_not_abort_the_batch(self, three_meetings):
        analyzer = AsyncMock()
        analyzer.analyze.side_effect = [
            MeetingAnalysis(summary="first"),
            RuntimeError("timeout"),
            MeetingAnalysis(summary="third"),
        ]
        agent = make_agent(analyzer, meetings=three_meetings)

        result = await agent.analyze_all_meetings({})

        assert result["totalAnalyzed"] == 2
        assert result["failed"] == 1
        assert set(agent.context.analysis_results) == {"m1", "m3"}

    @pytest.mark.asyncio
    async def test_throwing_analyzer_yields_no_analyses(self, three_meetings):
        agent = make_agent(FailingAnalyzer(), meetings=three_meetings)

        result = await agent.analyze_all_meetings({})

        assert result["success"] is True
        assert result["totalAnalyzed"] == 0
        assert result["failed"] == 3
        assert agent.context.analysis_results == {}

    @pytest.mark.asyncio
    async def test_delay_between_calls(self, three_meetings, monkeypatch):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr("meeting_reporter.agents.analysis_agent.asyncio.sleep", fake_sleep)
        agent = AnalysisAgent(StubAnalyzer(), ScriptedModelClient(), delay_seconds=0.2)
        agent.set_context(SharedContext(meetings=three_meetings))

        await agent.analyze_all_meetings({})

        assert sleeps == [0.2, 0.2]


class TestSummaryAndQueries:
    """Test cases for summaries, action items and categories."""

    @pytest.fixture
    def analyses(self):
        return {
            "m1": MeetingAnalysis(summary="Sync", category="internal-team", action_items=["Send notes"]),
            "m2": MeetingAnalysis(summary="Kickoff", category="external-client",
                                  action_items=["Draft SOW", "Share deck"]),
            "m3": MeetingAnalysis(summary="1:1", category="one-on-one"),
        }

    @pytest.mark.asyncio
    async def test_executive_summary(self, three_meetings, analyses):
        agent = make_agent(StubAnalyzer(summary="A busy week."), three_meetings, analyses)

        result = await agent.generate_executive_summary({})

        assert result == {"success": True, "summary": "A busy week."}
        assert agent.context.executive_summary == "A busy week."

    @pytest.mark.asyncio
    async def test_executive_summary_requires_analyses(self, three_meetings):
        agent = make_agent(meetings=three_meetings)

        result = await agent.generate_executive_summary({})

        assert result["success"] is False
        assert agent.context.executive_summary is None

    @pytest.mark.asyncio
    async def test_executive_summary_errors_propagate(self, three_meetings, analyses):
        agent = make_agent(StubAnalyzer(summary_error=RuntimeError("model down")), three_meetings, analyses)

        with pytest.raises(RuntimeError):
            await agent.generate_executive_summary({})

    def test_action_items(self, three_meetings, analyses):
        agent = make_agent(meetings=three_meetings, analyses=analyses)

        result = agent.get_action_items({})

        assert result["totalActionItems"] == 3
        assert result["byMeeting"] == [
            {"meeting": "Weekly sync", "items": ["Send notes"]},
            {"meeting": "Client kickoff", "items": ["Draft SOW", "Share deck"]},
        ]

    def test_meetings_by_category(self, three_meetings, analyses):
        agent = make_agent(meetings=three_meetings, analyses=analyses)

        result = agent.get_meetings_by_category({})

        assert result["filter"] == "all"
        assert set(result["byCategory"]) == {"internal-team", "external-client", "one-on-one"}
        assert result["byCategory"]["external-client"][0]["subject"] == "Client kickoff"

    def test_meetings_by_single_category(self, three_meetings, analyses):
        agent = make_agent(meetings=three_meetings, analyses=analyses)

        result = agent.get_meetings_by_category({"category": MeetingCategory.ONE_ON_ONE.value})

        assert result["filter"] == "one-on-one"
        assert list(result["byCategory"]) == ["one-on-one"]

    def test_unknown_category(self, three_meetings, analyses):
        agent = make_agent(meetings=three_meetings, analyses=analyses)

        with pytest.raises(ValidationError):
            agent.get_meetings_by_category({"category": "party"})
