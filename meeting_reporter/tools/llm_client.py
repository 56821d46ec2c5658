"""
Client for OpenAI-compatible chat-completions endpoints.

Works against OpenAI, Azure OpenAI deployments, Ollama, LM Studio,
OpenRouter and any other server exposing ``POST {base_url}/chat/completions``.
The API key is optional so local endpoints can be used without one.
"""

from typing import Any, Dict, List, Optional

import httpx

from ..models.core import Message, ToolSpec
from ..models.errors import ConfigurationError, ModelTransportError
from ..utils.config import LLMConfig
from ..utils.logging import LoggerMixin
from .base import ModelClient


class OpenAICompatibleClient(ModelClient, LoggerMixin):
    """Model client speaking the chat-completions wire format over httpx."""

    def __init__(self, config: Optional[LLMConfig] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or LLMConfig()
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.base_url and self.config.model)

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.is_configured:
            raise ConfigurationError("LLM not configured. Set LLM_BASE_URL and LLM_MODEL.")

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self.endpoint, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise ModelTransportError(f"LLM request failed: {e}") from e

        if not response.is_success:
            raise ModelTransportError(
                f"LLM API error: {response.status_code} - {response.text}",
                status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise ModelTransportError("LLM API returned a non-JSON body", status_code=response.status_code) from e

    @staticmethod
    def _first_message(data: Dict[str, Any]) -> Dict[str, Any]:
        choices = data.get("choices") or []
        if not choices:
            raise ModelTransportError("LLM API returned no choices")
        return choices[0].get("message") or {}

    async def complete(self, messages: List[Message], tools: List[ToolSpec]) -> Message:
        """
        Send the conversation and tool catalogue, returning the assistant reply.

        Args:
            messages: Full conversation, system message first
            tools: Tool specs offered to the model

        Returns:
            Parsed assistant message

        Raises:
            ModelTransportError: On transport failure or a non-2xx status
        """
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [message.to_api() for message in messages],
            "temperature": self.config.temperature,
        }
        if tools:
            payload["tools"] = [spec.to_api() for spec in tools]
            payload["tool_choice"] = "auto"

        self.logger.debug("Querying model", model=self.config.model, messages=len(messages), tools=len(tools))
        data = await self._post(payload)
        return Message.from_api(self._first_message(data))

    async def chat(self, messages: List[Message], max_tokens: Optional[int] = None) -> str:
        """
        Plain text completion without tools.

        Args:
            messages: Prompt messages
            max_tokens: Completion cap, defaults to the configured limit

        Returns:
            Reply content, empty when the model returned none
        """
        payload = {
            "model": self.config.model,
            "messages": [message.to_api() for message in messages],
            "temperature": self.config.temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }
        data = await self._post(payload)
        return self._first_message(data).get("content") or ""
