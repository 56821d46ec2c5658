"""
Per-agent tool registry binding declared tool specs to handlers.
"""

import inspect
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Union

from ..models.core import ToolSpec
from ..models.errors import ConfigurationError, UnknownToolError

ToolHandler = Callable[[Dict[str, Any]], Union[Any, Awaitable[Any]]]


def _tool_name(name: Union[str, Enum]) -> str:
    return name.value if isinstance(name, Enum) else name


class ToolRegistry:
    """
    Maps tool names to specs and handlers for a single agent.

    Specs are fixed at construction. Handlers are bound afterwards with
    ``register`` and ``validate`` confirms that every declared spec has one.
    """

    def __init__(self, specs: Iterable[ToolSpec], owner: str = "agent"):
        self.owner = owner
        self._specs: Dict[str, ToolSpec] = {}
        self._handlers: Dict[str, ToolHandler] = {}

        for spec in specs:
            if spec.name in self._specs:
                raise ConfigurationError(f"{owner} declares tool {spec.name} twice", tool_name=spec.name)
            self._specs[spec.name] = spec

    def register(self, name: Union[str, Enum], handler: ToolHandler) -> None:
        """
        Bind a handler to a declared tool; re-registration overwrites.

        Args:
            name: Declared tool name or enum member
            handler: Callable taking the parsed arguments, sync or async

        Raises:
            UnknownToolError: If no spec with that name was declared
        """
        tool_name = _tool_name(name)
        if tool_name not in self._specs:
            raise UnknownToolError(f"{self.owner} has no tool named {tool_name}", tool_name=tool_name)
        self._handlers[tool_name] = handler

    def validate(self) -> None:
        """
        Check that every declared spec has a handler.

        Raises:
            ConfigurationError: Naming every unbound tool
        """
        missing = [name for name in self._specs if name not in self._handlers]
        if missing:
            raise ConfigurationError(
                f"{self.owner} declares tools without handlers: {', '.join(missing)}",
                missing_tools=missing
            )

    async def invoke(self, name: Union[str, Enum], args: Dict[str, Any]) -> Any:
        """
        Run the handler bound to ``name``.

        Handler exceptions propagate unchanged; argument schemas are advisory
        and not enforced here.

        Raises:
            UnknownToolError: If the name has no handler
        """
        tool_name = _tool_name(name)
        handler = self._handlers.get(tool_name)
        if handler is None:
            raise UnknownToolError(f"Unknown tool: {tool_name}", tool_name=tool_name)

        result = handler(args)
        if inspect.isawaitable(result):
            result = await result
        return result

    @property
    def specs(self) -> List[ToolSpec]:
        return list(self._specs.values())

    @property
    def names(self) -> List[str]:
        return list(self._specs)

    def __contains__(self, name: object) -> bool:
        if isinstance(name, Enum):
            name = name.value
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._specs)
