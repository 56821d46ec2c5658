"""
Base agent runtime for Meeting Reporter.

Every agent wraps a language model client, a fixed tool catalogue and a
conversation log, and runs the same bounded tool-calling loop.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.core import AgentEvent, AgentEventType, Message, Role, ToolCall, ToolSpec
from ..models.errors import ArgumentParseError, ValidationError
from ..orchestration.context import SharedContext
from ..orchestration.events import EventBus
from ..tools.base import ModelClient
from ..tools.registry import ToolRegistry
from ..utils.logging import get_logger


class RunState(str, Enum):
    """Lifecycle of a single agent run."""
    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    DISPATCHING_TOOLS = "dispatching_tools"
    DONE = "done"
    FAILED = "failed"


class AgentRunResult(BaseModel):
    """Standard result format for all agents."""
    success: bool
    message: str
    data: Optional[SharedContext] = None
    error: Optional[str] = None
    agent_name: str
    iterations: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)


class BaseAgent(ABC):
    """
    Abstract base class for all Meeting Reporter agents.

    Subclasses declare their tool specs and bind a handler to each one in
    ``register_tools``. Construction fails with ``ConfigurationError`` when a
    declared tool is left without a handler.
    """

    def __init__(
        self,
        name: str,
        system_prompt: str,
        tool_specs: List[ToolSpec],
        model_client: ModelClient,
        event_bus: Optional[EventBus] = None,
        max_iterations: int = 10
    ):
        self.name = name
        self.system_prompt = system_prompt
        self.model_client = model_client
        self.event_bus = event_bus or EventBus()
        self.max_iterations = max_iterations
        self.logger = get_logger(f"meeting_reporter.agents.{name}")

        self.tools = ToolRegistry(tool_specs, owner=name)
        self.register_tools()
        self.tools.validate()

        self.state = RunState.IDLE
        self.context = SharedContext()
        self.conversation: List[Message] = [Message(role=Role.SYSTEM, content=system_prompt)]

    @abstractmethod
    def register_tools(self) -> None:
        """Bind a handler to every declared tool via ``self.tools.register``."""
        pass

    def clear_caches(self) -> None:
        """Drop agent-specific state on reset. No-op by default."""
        pass

    def emit(self, event_type: AgentEventType, message: str, data: Optional[Any] = None) -> AgentEvent:
        return self.event_bus.emit(event_type, self.name, message, data)

    def on_event(self, handler: Callable[[AgentEvent], None]) -> Callable[[], None]:
        """Subscribe to this agent's event bus; returns an unsubscribe callable."""
        return self.event_bus.subscribe(handler)

    def set_context(self, context: SharedContext) -> None:
        """Merge a copy of ``context`` into the local context."""
        self.context.fold(context.handoff())

    def reset(self) -> None:
        """Restore the conversation to the system message and clear local state."""
        self.conversation = [Message(role=Role.SYSTEM, content=self.system_prompt)]
        self.context = SharedContext()
        self.state = RunState.IDLE
        self.clear_caches()

    @staticmethod
    def parse_arguments(call: ToolCall) -> Dict[str, Any]:
        """
        Decode a tool call's argument JSON.

        An empty argument string means no arguments.

        Raises:
            ArgumentParseError: If the text is not a JSON object
        """
        if not call.arguments_json.strip():
            return {}
        try:
            args = json.loads(call.arguments_json)
        except ValueError as e:
            raise ArgumentParseError(f"Invalid JSON arguments: {e}", tool_name=call.tool_name) from e
        if not isinstance(args, dict):
            raise ArgumentParseError("Tool arguments must be a JSON object", tool_name=call.tool_name)
        return args

    async def _dispatch(self, call: ToolCall) -> None:
        """Execute one tool call and append its tool message; failures stay local to the call."""
        self.emit(
            AgentEventType.TOOL_CALL,
            f"Calling tool: {call.tool_name}",
            {"name": call.tool_name, "args": call.arguments_json}
        )

        try:
            args = self.parse_arguments(call)
            result = await self.tools.invoke(call.tool_name, args)
            content = json.dumps(result, default=str)
        except Exception as e:
            error_message = str(e) or type(e).__name__
            self.logger.warning(f"Tool {call.tool_name} failed: {error_message}")
            self.emit(AgentEventType.ERROR, f"Tool {call.tool_name} failed: {error_message}")
            content = json.dumps({"error": error_message})
        else:
            self.emit(AgentEventType.TOOL_RESULT, f"Tool {call.tool_name} completed", result)

        self.conversation.append(Message(role=Role.TOOL, content=content, tool_call_id=call.id))

    def _result(self, success: bool, message: str, iterations: int,
                error: Optional[str] = None, data: Optional[SharedContext] = None) -> AgentRunResult:
        return AgentRunResult(
            success=success,
            message=message,
            data=data,
            error=error,
            agent_name=self.name,
            iterations=iterations
        )

    async def run(self, instruction: str) -> AgentRunResult:
        """
        Drive the model through tool calls until it answers in plain text.

        Args:
            instruction: Natural-language task for this agent

        Returns:
            AgentRunResult: success with the final reply and a context
            snapshot, or failure when the model call fails or the iteration
            cap is hit

        Raises:
            ValidationError: If the instruction is empty
        """
        if not instruction or not instruction.strip():
            raise ValidationError("Instruction must not be empty", agent_name=self.name)

        self.conversation.append(Message(role=Role.USER, content=instruction))
        self.emit(AgentEventType.THINKING, "Processing request...")
        self.logger.info(f"Starting {self.name} run", max_iterations=self.max_iterations, tools=self.tools.names)

        iterations = 0
        while iterations < self.max_iterations:
            iterations += 1
            self.state = RunState.AWAITING_MODEL

            try:
                reply = await self.model_client.complete(list(self.conversation), self.tools.specs)
            except Exception as e:
                error_message = str(e) or type(e).__name__
                self.state = RunState.FAILED
                self.logger.error(f"{self.name} failed after {iterations} iteration(s): {error_message}")
                self.emit(AgentEventType.ERROR, f"Agent error: {error_message}")
                return self._result(False, "Agent failed", iterations, error=error_message)

            self.conversation.append(reply)

            if reply.tool_calls:
                self.state = RunState.DISPATCHING_TOOLS
                for call in reply.tool_calls:
                    await self._dispatch(call)
                continue

            self.state = RunState.DONE
            self.emit(AgentEventType.COMPLETE, "Task completed")
            self.logger.info(f"{self.name} completed in {iterations} iteration(s)")
            return self._result(
                True,
                reply.content or "Task completed",
                iterations,
                data=self.context.model_copy(deep=True)
            )

        self.state = RunState.FAILED
        self.logger.warning(f"{self.name} hit the iteration cap of {self.max_iterations}")
        self.emit(AgentEventType.ERROR, "Max iterations reached")
        return self._result(False, "maximum iterations exceeded", iterations, error="Max iterations reached")
