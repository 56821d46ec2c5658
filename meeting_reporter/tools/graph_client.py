"""
Microsoft Graph calendar client.

Fetches meetings through the ``calendarView`` endpoint, following
``@odata.nextLink`` pagination. Token acquisition happens elsewhere; this
client only needs a bearer token.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from ..models.core import CalendarEvent
from ..models.errors import CalendarAccessError, ExternalAPIError, MeetingReporterError, NetworkError
from ..utils.config import GraphConfig
from ..utils.error_handler import RetryConfig, error_handler
from ..utils.logging import LoggerMixin
from .base import CalendarSource

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


def format_graph_datetime(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GraphCalendarClient(CalendarSource, LoggerMixin):
    """Calendar source backed by Microsoft Graph."""

    def __init__(
        self,
        config: Optional[GraphConfig] = None,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_config: Optional[RetryConfig] = None
    ):
        self.config = config or GraphConfig()
        self.access_token = access_token if access_token is not None else self.config.access_token
        self.retry_config = retry_config or RetryConfig(max_retries=self.config.max_retries)
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        if not self.access_token:
            raise CalendarAccessError("Not authenticated. Please sign in first.")
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
            "Prefer": 'outlook.timezone="UTC"',
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self._transport)

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        headers = self._headers()
        try:
            response = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise NetworkError(f"Graph request failed: {e}", url=url) from e

        if not response.is_success:
            message = f"Graph API error: {response.status_code} - {response.text}"
            if response.status_code in RETRYABLE_STATUS:
                raise ExternalAPIError(message, status_code=response.status_code)
            raise CalendarAccessError(message, status_code=response.status_code)

        return response.json()

    async def _get_with_retry(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return await error_handler.with_retry(
            lambda: self._get_json(client, url, params),
            retry_config=self.retry_config,
            error_types=(NetworkError, ExternalAPIError),
            give_up_on=(CalendarAccessError,),
            context={"service": "graph", "url": url}
        )

    def calendar_view_url(self, target_user: Optional[str] = None) -> str:
        user_path = f"users/{target_user}" if target_user else "me"
        return f"{self.config.base_url.rstrip('/')}/{user_path}/calendar/calendarView"

    async def fetch_events(
        self,
        start: datetime,
        end: datetime,
        target_user: Optional[str] = None
    ) -> List[CalendarEvent]:
        """
        Fetch every meeting in ``[start, end]`` across all result pages.

        Args:
            start: Range start; naive values are treated as UTC
            end: Range end; naive values are treated as UTC
            target_user: Mailbox of a shared calendar, or ``None`` for the signed-in user

        Returns:
            Meetings ordered by start time

        Raises:
            CalendarAccessError: Missing token or a non-retryable Graph error
            ExternalAPIError: Throttling or server errors that outlived the retries
            NetworkError: Transport failures that outlived the retries
        """
        url: Optional[str] = self.calendar_view_url(target_user)
        params: Optional[Dict[str, Any]] = {
            "startDateTime": format_graph_datetime(start),
            "endDateTime": format_graph_datetime(end),
            "$top": self.config.page_size,
            "$orderby": "start/dateTime",
        }

        self.log_operation_start("fetch_events", target_user=target_user)
        started = time.time()
        events: List[CalendarEvent] = []
        pages = 0
        try:
            async with self._client() as client:
                while url:
                    data = await self._get_with_retry(client, url, params)
                    events.extend(CalendarEvent.from_graph(item) for item in data.get("value", []))
                    pages += 1
                    # nextLink already carries the query string
                    url = data.get("@odata.nextLink")
                    params = None
        except MeetingReporterError as e:
            self.log_operation_error("fetch_events", e, target_user=target_user, pages=pages)
            raise

        self.log_operation_success(
            "fetch_events",
            int((time.time() - started) * 1000),
            count=len(events),
            pages=pages,
            target_user=target_user
        )
        return events

    async def get_user_profile(self) -> Dict[str, Any]:
        """Profile of the signed-in user (``displayName``, ``mail``, ``userPrincipalName``)."""
        async with self._client() as client:
            return await self._get_with_retry(client, f"{self.config.base_url.rstrip('/')}/me")

    async def list_shared_calendar_owners(self) -> List[Dict[str, str]]:
        """
        People who shared a calendar with the signed-in user.

        Returns:
            ``{"name", "email"}`` pairs, excluding the user's own calendars
        """
        base = self.config.base_url.rstrip('/')
        async with self._client() as client:
            calendars = await self._get_with_retry(client, f"{base}/me/calendars", {"$top": 50})
            profile = await self._get_with_retry(client, f"{base}/me")

        own_address = (profile.get("mail") or profile.get("userPrincipalName") or "").lower()
        owners = []
        for calendar in calendars.get("value", []):
            owner = calendar.get("owner") or {}
            address = owner.get("address") or ""
            if not address or address.lower() == own_address:
                continue
            owners.append({"name": owner.get("name") or calendar.get("name") or address, "email": address})
        return owners
