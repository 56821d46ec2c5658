"""
LLM-backed meeting analysis and executive summaries.
"""

import json
from collections import Counter
from typing import Any, Dict, List

from ..models.core import CalendarEvent, Message, MeetingAnalysis, MeetingCategory, Role
from ..models.errors import MeetingReporterError
from ..utils.logging import LoggerMixin
from .base import MeetingAnalyzer
from .llm_client import OpenAICompatibleClient

ANALYST_PROMPT = (
    "You are a meeting analyst. Analyze calendar meetings and extract structured "
    "information. Always respond with valid JSON only, no additional text."
)

SUMMARY_PROMPT = "You are an executive assistant writing meeting summaries. Be concise and professional."

MAX_KEY_TOPICS = 5


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence, with or without a ``json`` tag."""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    if cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_analysis(text: str) -> MeetingAnalysis:
    """
    Parse a model reply into a ``MeetingAnalysis``.

    Accepts camelCase or snake_case keys. Unknown categories become ``other``.

    Raises:
        ValueError: If the reply is not a JSON object
    """
    payload = json.loads(strip_code_fence(text))
    if not isinstance(payload, dict):
        raise ValueError("analysis reply is not a JSON object")

    analysis = MeetingAnalysis(
        summary=str(payload.get("summary") or ""),
        category=payload.get("category", MeetingCategory.OTHER),
        action_items=payload.get("actionItems", payload.get("action_items")),
        key_topics=payload.get("keyTopics", payload.get("key_topics")),
    )
    analysis.key_topics = analysis.key_topics[:MAX_KEY_TOPICS]
    return analysis


def build_analysis_prompt(event: CalendarEvent) -> str:
    attendee_list = ", ".join(
        f"{attendee.email.name} ({attendee.email.address})" for attendee in event.attendees
    )
    categories = ", ".join(category.value for category in MeetingCategory)

    return f"""Analyze this calendar meeting and provide a JSON response:

Meeting Subject: {event.subject or '(No subject)'}
Organizer: {event.organizer.name} ({event.organizer.address})
Attendees: {attendee_list or 'None'}
Description/Agenda:
{event.body_preview or '(No description)'}

Respond ONLY with valid JSON in this exact format:
{{
  "summary": "A brief 1-2 sentence summary of what this meeting is about",
  "category": "one of: {categories}",
  "actionItems": ["list of action items or tasks mentioned, or empty array if none"],
  "keyTopics": ["list of main topics to be discussed, max {MAX_KEY_TOPICS}"]
}}"""


def build_summary_prompt(events: List[CalendarEvent], analyses: Dict[str, MeetingAnalysis]) -> str:
    meeting_summaries = "\n".join(
        f"- {event.subject}: {analyses[event.id].summary if event.id in analyses else 'No summary'}"
        for event in events
        if not event.is_cancelled
    )
    categories: Dict[str, Any] = dict(Counter(analysis.category.value for analysis in analyses.values()))
    action_items = [item for analysis in analyses.values() for item in analysis.action_items]

    return f"""Generate a brief executive summary (3-4 paragraphs) of these meetings:

Total Meetings: {len(events)}
Categories: {json.dumps(categories)}

Meeting Summaries:
{meeting_summaries}

Action Items Found: {'; '.join(action_items) if action_items else 'None'}

Write a professional summary highlighting key themes, important meetings, and action items."""


class LLMMeetingAnalyzer(MeetingAnalyzer, LoggerMixin):
    """
    Meeting analyzer backed by a chat-completions endpoint.

    ``analyze`` never fails on bad model output or an unreachable endpoint:
    it logs the problem and returns the neutral default analysis.
    ``summarize`` propagates errors to the calling tool.
    """

    def __init__(self, client: OpenAICompatibleClient, max_tokens: int = 1000):
        self.client = client
        self.max_tokens = max_tokens

    async def analyze(self, event: CalendarEvent) -> MeetingAnalysis:
        messages = [
            Message(role=Role.SYSTEM, content=ANALYST_PROMPT),
            Message(role=Role.USER, content=build_analysis_prompt(event)),
        ]
        try:
            reply = await self.client.chat(messages, max_tokens=self.max_tokens)
            return parse_analysis(reply)
        except (MeetingReporterError, ValueError, TypeError) as e:
            self.logger.warning("Failed to analyze meeting, using default analysis", meeting_id=event.id, error=str(e))
            return MeetingAnalysis.default_for(event)

    async def summarize(self, events: List[CalendarEvent], analyses: Dict[str, MeetingAnalysis]) -> str:
        messages = [
            Message(role=Role.SYSTEM, content=SUMMARY_PROMPT),
            Message(role=Role.USER, content=build_summary_prompt(events, analyses)),
        ]
        return await self.client.chat(messages, max_tokens=self.max_tokens)
