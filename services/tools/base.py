"""Tool specifications and registry for the chat loop."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError

from services.gemini.types import ToolDeclaration


class ToolKind(str, Enum):
    """How a tool call gets its output."""

    AUTOMATIC = "automatic"  # executed on the server
    MANUAL = "manual"  # answered by the client


class ToolInputError(Exception):
    """Raised when a tool call names an unknown tool or has invalid input."""

    def __init__(self, tool_name: str, message: str) -> None:
        """Initialize with the tool name and a readable message."""
        self.tool_name = tool_name
        self.message = message
        super().__init__(message)


class ToolExecutionError(Exception):
    """Raised by a tool whose execution failed; the message is shown to the user."""


type ToolExecutor = Callable[[Any], AsyncIterator[Any]]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """
    A tool the model may call.

    Automatic tools carry an executor: an async generator receiving the
    validated input model, yielding zero or more progress outputs and
    finally the output. Manual tools have no executor.
    """

    name: str
    description: str
    input_model: type[BaseModel]
    kind: ToolKind
    execute: ToolExecutor | None = None

    def __post_init__(self) -> None:
        """Check that only automatic tools have an executor."""
        if self.kind == ToolKind.AUTOMATIC and self.execute is None:
            msg = f"Automatic tool {self.name} needs an executor"
            raise ValueError(msg)
        if self.kind == ToolKind.MANUAL and self.execute is not None:
            msg = f"Manual tool {self.name} cannot have an executor"
            raise ValueError(msg)

    @property
    def is_manual(self) -> bool:
        """Return True if the client supplies the output."""
        return self.kind == ToolKind.MANUAL

    def parse_input(self, raw: dict[str, Any]) -> BaseModel:
        """
        Validate raw arguments.

        Raises:
            ToolInputError: If validation fails.
        """
        try:
            return self.input_model.model_validate(raw)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or 'input'}: {err['msg']}"
                for err in e.errors()
            )
            raise ToolInputError(self.name, f"Invalid input for tool {self.name}: {problems}") from e

    def declaration(self) -> ToolDeclaration:
        """Describe the tool for the model."""
        return ToolDeclaration(
            name=self.name,
            description=self.description,
            parameters=self.input_model.model_json_schema(),
        )


class ToolRegistry:
    """Tools available to the model, keyed by name."""

    def __init__(self, tools: list[ToolSpec] | None = None) -> None:
        self._tools: dict[str, ToolSpec] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ToolSpec) -> None:
        """
        Register a tool.

        Raises:
            ValueError: If a tool with the same name is registered.
        """
        if tool.name in self._tools:
            msg = f"Tool already registered: {tool.name}"
            raise ValueError(msg)
        self._tools[tool.name] = tool

    def get(self, name: str) -> ToolSpec:
        """
        Look up a tool.

        Raises:
            ToolInputError: If no tool has that name.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolInputError(name, f"Unknown tool: {name}")
        return tool

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> list[str]:
        """Return registered tool names."""
        return list(self._tools)

    def declarations(self) -> list[ToolDeclaration]:
        """Return declarations for every tool, in registration order."""
        return [tool.declaration() for tool in self._tools.values()]
