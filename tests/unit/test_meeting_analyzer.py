"""
Unit tests for LLM-backed meeting analysis.
"""

from unittest.mock import AsyncMock

import pytest

from meeting_reporter.models.core import MeetingAnalysis, MeetingCategory, Role
from meeting_reporter.models.errors import ModelTransportError
from meeting_reporter.tools.llm_client import OpenAICompatibleClient
from meeting_reporter.tools.meeting_analyzer import (
    LLMMeetingAnalyzer, build_analysis_prompt, build_summary_prompt, parse_analysis, strip_code_fence
)


def make_analyzer(reply=None, error=None):
    client = AsyncMock(spec=OpenAICompatibleClient)
    if error is not None:
        client.chat.side_effect = error
    else:
        client.chat.return_value = reply
    return LLMMeetingAnalyzer(client, max_tokens=500), client


class TestParsing:
    """Test cases for reply parsing."""

    def test_strip_code_fence(self):
        assert strip_code_fence("```json\n{\"a\": 1}\n```") == "{\"a\": 1}"
        assert strip_code_fence("```\n{}\n```") == "{}"
        assert strip_code_fence("  {}  ") == "{}"

    def test_camel_case_reply(self):
        analysis = parse_analysis(
            '{"summary": "Kickoff with Fabrikam", "category": "external-client", '
            '"actionItems": ["Send SOW"], "keyTopics": ["scope", "timeline"]}'
        )

        assert analysis.summary == "Kickoff with Fabrikam"
        assert analysis.category == MeetingCategory.EXTERNAL_CLIENT
        assert analysis.action_items == ["Send SOW"]
        assert analysis.key_topics == ["scope", "timeline"]

    def test_snake_case_reply_in_fence(self):
        analysis = parse_analysis('```json\n{"summary": "x", "category": "review", "action_items": []}\n```')

        assert analysis.category == MeetingCategory.REVIEW
        assert analysis.action_items == []

    def test_key_topics_are_capped(self):
        analysis = parse_analysis('{"summary": "x", "keyTopics": ["a", "b", "c", "d", "e", "f", "g"]}')

        assert analysis.key_topics == ["a", "b", "c", "d", "e"]

    def test_string_key_topic_is_not_split(self):
        analysis = parse_analysis('{"summary": "x", "keyTopics": "quarterly planning"}')

        assert analysis.key_topics == ["quarterly planning"]

    @pytest.mark.parametrize("text", ["not json", "[1, 2]", ""])
    def test_invalid_replies(self, text):
        with pytest.raises(ValueError):
            parse_analysis(text)


class TestPrompts:
    def test_analysis_prompt_mentions_meeting(self, make_event):
        prompt = build_analysis_prompt(make_event(subject="Budget review", attendees=["bob@fabrikam.com"]))

        assert "Meeting Subject: Budget review" in prompt
        assert "Bob (bob@fabrikam.com)" in prompt
        assert "internal-team" in prompt

    def test_summary_prompt(self, three_meetings):
        analyses = {"m1": MeetingAnalysis(summary="Team sync", action_items=["Send notes"])}

        prompt = build_summary_prompt(three_meetings, analyses)

        assert "Total Meetings: 3" in prompt
        assert "- Weekly sync: Team sync" in prompt
        assert "- Client kickoff: No summary" in prompt
        assert "Action Items Found: Send notes" in prompt


class TestLLMMeetingAnalyzer:
    """Test cases for LLMMeetingAnalyzer."""

    @pytest.mark.asyncio
    async def test_analyze(self, make_event):
        analyzer, client = make_analyzer('{"summary": "Weekly sync", "category": "internal-team"}')

        analysis = await analyzer.analyze(make_event())

        assert analysis.category == MeetingCategory.INTERNAL_TEAM
        messages = client.chat.call_args.args[0]
        assert [m.role for m in messages] == [Role.SYSTEM, Role.USER]
        assert client.chat.call_args.kwargs["max_tokens"] == 500

    @pytest.mark.asyncio
    async def test_bad_reply_degrades_to_default(self, make_event):
        analyzer, _ = make_analyzer("I cannot help with that")

        analysis = await analyzer.analyze(make_event(body="Quarterly numbers"))

        assert analysis == MeetingAnalysis(summary="Quarterly numbers", category=MeetingCategory.OTHER)

    @pytest.mark.asyncio
    async def test_transport_failure_degrades_to_default(self, make_event):
        analyzer, _ = make_analyzer(error=ModelTransportError("LLM API error: 500 - boom", status_code=500))

        analysis = await analyzer.analyze(make_event(body=""))

        assert analysis.summary == "No description available"
        assert analysis.category == MeetingCategory.OTHER

    @pytest.mark.asyncio
    async def test_summarize_propagates_errors(self, three_meetings):
        analyzer, _ = make_analyzer(error=ModelTransportError("LLM API error: 500 - boom", status_code=500))

        with pytest.raises(ModelTransportError):
            await analyzer.summarize(three_meetings, {})

    @pytest.mark.asyncio
    async def test_summarize(self, three_meetings):
        analyzer, _ = make_analyzer("Three meetings this week.")

        assert await analyzer.summarize(three_meetings, {}) == "Three meetings this week."
