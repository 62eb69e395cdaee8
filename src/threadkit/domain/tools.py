"""Tool Registry - Named Capabilities the Model May Invoke Mid-Conversation.

A tool is a name, a description shown to the model, a structured parameter
schema and a capability callable. The registry keeps them in registration
order, renders them for the system prompt and for the backend's function
calling API, and resolves a backend's ToolCallRequest into a ToolOutcome.

Resolution never raises: unknown names, argument mismatches, capability
exceptions and timeouts all come back as failure outcomes so the
conversation can continue and the model can react.

Tool Registration:
    >>> registry = ToolRegistry()
    >>> registry.register(ToolDefinition(
    ...     name="echo",
    ...     description="Repeat the given text",
    ...     parameters=ToolSchema(parameters=(ToolParameter(name="text"),)),
    ...     capability=lambda args: args["text"],
    ... ))
"""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Callable, Iterable
from functools import cached_property
from typing import Any, Literal

import logfire
from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model
from pydantic_ai.tools import ToolDefinition as ModelToolDefinition

from .domain_type import ParameterType
from .domain_value import ToolCallRequest, ToolOutcome

Capability = Callable[[dict[str, Any]], Any]

NO_TOOLS_TEXT = "No tools are available."

_PYTHON_TYPES: dict[ParameterType, Any] = {
    ParameterType.STRING: str,
    ParameterType.NUMBER: float,
    ParameterType.INTEGER: int,
    ParameterType.BOOLEAN: bool,
    ParameterType.OBJECT: dict[str, Any],
    ParameterType.ARRAY: list[Any],
}


class ToolParameter(BaseModel):
    """One named argument of a tool.

    ``type`` is kept as free text: a schema naming an unknown type is accepted
    at registration and only fails when a call is validated against it.
    """

    name: str
    type: str = ParameterType.STRING.value
    description: str = ""
    required: bool = True
    default: Any = None
    enum: tuple[Any, ...] | None = None
    pattern: str | None = None

    model_config = ConfigDict(frozen=True)

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        if self.enum:
            schema["enum"] = list(self.enum)
        if self.pattern:
            schema["pattern"] = self.pattern
        if self.default is not None:
            schema["default"] = self.default
        return schema

    def describe(self) -> str:
        flag = "required" if self.required else "optional"
        line = f"{self.name} ({self.type}, {flag})"
        if self.description:
            line += f": {self.description}"
        if self.enum:
            line += f" [one of: {', '.join(str(v) for v in self.enum)}]"
        return line


class ToolSchema(BaseModel):
    """Ordered, structured description of a tool's accepted arguments.

    Serves two audiences: the model (rendered as JSON schema / prompt text)
    and the registry (compiled into a pydantic model that validates and
    coerces arguments before the capability sees them).
    """

    parameters: tuple[ToolParameter, ...] = ()

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_json_schema(cls, schema: dict[str, Any]) -> ToolSchema:
        """Build from a ``{"type": "object", "properties": ..., "required": [...]}`` dict."""
        required = set(schema.get("required", ()))
        parameters = []
        for name, prop in schema.get("properties", {}).items():
            enum = prop.get("enum")
            parameters.append(
                ToolParameter(
                    name=name,
                    type=prop.get("type", ParameterType.STRING.value),
                    description=prop.get("description", ""),
                    required=name in required,
                    default=prop.get("default"),
                    enum=tuple(enum) if enum else None,
                    pattern=prop.get("pattern"),
                )
            )
        return cls(parameters=tuple(parameters))

    def to_json_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {p.name: p.to_json_schema() for p in self.parameters},
            "required": [p.name for p in self.parameters if p.required],
            "additionalProperties": False,
        }

    @cached_property
    def arguments_model(self) -> type[BaseModel]:
        """Compile the schema into a pydantic model (cached).

        Fields are keyed positionally and aliased to the parameter name so
        names like ``json`` or ``copy`` cannot shadow BaseModel attributes.

        Raises:
            ValueError: Unknown parameter type
            Exception: Anything pydantic raises while building the model
                (e.g. an invalid regex pattern)
        """
        fields: dict[str, Any] = {}
        for index, param in enumerate(self.parameters):
            annotation = _PYTHON_TYPES[ParameterType(param.type)]
            if param.enum:
                annotation = Literal[tuple(param.enum)]  # type: ignore[valid-type]

            constraints: dict[str, Any] = {"alias": param.name}
            if param.pattern and param.type == ParameterType.STRING:
                constraints["pattern"] = param.pattern

            if param.required:
                fields[f"arg_{index}"] = (annotation, Field(..., **constraints))
            else:
                fields[f"arg_{index}"] = (annotation | None, Field(param.default, **constraints))

        return create_model(  # type: ignore[call-overload, no-any-return]
            "ToolArguments",
            __config__=ConfigDict(extra="forbid"),
            **fields,
        )

    def validate_arguments(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Validate and coerce raw model-chosen arguments.

        Optional parameters the model left out and that have no default are
        omitted instead of being passed as None.

        Raises:
            ValidationError: Arguments do not match the schema
        """
        validated = self.arguments_model.model_validate(arguments)
        data = validated.model_dump(by_alias=True)
        return {name: value for name, value in data.items() if name in arguments or value is not None}


class ToolDefinition(BaseModel):
    """A named capability plus everything the model needs to call it."""

    name: str = Field(min_length=1)
    description: str = ""
    parameters: ToolSchema = Field(default_factory=ToolSchema)
    capability: Capability

    model_config = ConfigDict(frozen=True)

    async def invoke(self, arguments: dict[str, Any]) -> str:
        """Run the capability; sync and async callables are both accepted.

        Sync callables run in a worker thread so they cannot stall the event
        loop and stay subject to the registry timeout. A timed-out worker
        thread is abandoned, not killed.
        """
        if inspect.iscoroutinefunction(self.capability):
            result = await self.capability(arguments)
        else:
            result = await asyncio.to_thread(self.capability, arguments)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, str):
            return result
        return json.dumps(result, default=str)

    def describe(self) -> str:
        lines = [f"- {self.name}: {self.description or 'No description.'}"]
        if self.parameters.parameters:
            lines.append("  Parameters:")
            lines.extend(f"    - {param.describe()}" for param in self.parameters.parameters)
        else:
            lines.append("  Parameters: none")
        return "\n".join(lines)

    def to_model_definition(self) -> ModelToolDefinition:
        """Render for the backend's function-calling API."""
        return ModelToolDefinition(
            name=self.name,
            description=self.description,
            parameters_json_schema=self.parameters.to_json_schema(),
        )


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors(include_url=False):
        location = ".".join(str(part) for part in error["loc"]) or "arguments"
        problems.append(f"{location}: {error['msg']}")
    return "; ".join(problems)


class ToolRegistry:
    """
    Mapping from tool name to ToolDefinition, in registration order.

    Responsibilities:
    - Register tools (last writer wins on name collisions)
    - Describe tools for the system prompt and the backend
    - Resolve tool calls into outcomes, absorbing every failure

    Owns no conversation state; one registry may serve many threads.
    """

    def __init__(self, tools: Iterable[ToolDefinition] = (), *, timeout: float | None = None):
        self._tools: dict[str, ToolDefinition] = {}
        self.timeout = timeout
        for tool in tools:
            self.register(tool)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, tool: ToolDefinition) -> None:
        """Insert or overwrite by name. An overwrite keeps the original slot."""
        if tool.name in self._tools:
            logfire.warn("Tool {tool_name} re-registered; previous definition replaced", tool_name=tool.name)
        self._tools[tool.name] = tool

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(self._tools)

    def describe_all(self) -> str:
        """Deterministic prompt fragment listing every tool in registration order."""
        if not self._tools:
            return NO_TOOLS_TEXT
        body = "\n".join(tool.describe() for tool in self._tools.values())
        return f"Available tools:\n{body}"

    def definitions(self) -> list[ModelToolDefinition]:
        return [tool.to_model_definition() for tool in self._tools.values()]

    async def resolve(self, request: ToolCallRequest) -> ToolOutcome:
        """Resolve a Tool Call into an Outcome.

        Execution Flow:
            1. Look up the tool; unknown name → failure outcome
            2. Compile the schema and validate arguments → failure on mismatch
            3. Invoke the capability under the registry timeout
            4. Wrap output (or the raised error) in a ToolOutcome

        Returns:
            ToolOutcome - never raises for tool-side problems
        """
        tool = self._tools.get(request.name)
        if tool is None:
            logfire.warn("Unknown tool {tool_name} requested", tool_name=request.name)
            return ToolOutcome.failure(request.name, f"Unknown tool '{request.name}'")

        try:
            arguments = tool.parameters.validate_arguments(request.arguments)
        except ValidationError as exc:
            return ToolOutcome.failure(tool.name, f"Invalid arguments: {_format_validation_error(exc)}")
        except Exception as exc:
            # Schemas are not checked at registration; a broken one surfaces here
            return ToolOutcome.failure(tool.name, f"Invalid parameter schema: {exc}")

        try:
            async with asyncio.timeout(self.timeout):
                output = await tool.invoke(arguments)
        except TimeoutError:
            logfire.warn("Tool {tool_name} timed out", tool_name=tool.name, timeout=self.timeout)
            return ToolOutcome.failure(tool.name, f"Timed out after {self.timeout}s")
        except Exception as exc:
            logfire.warn("Tool {tool_name} failed: {error}", tool_name=tool.name, error=str(exc))
            return ToolOutcome.failure(tool.name, str(exc) or type(exc).__name__)

        logfire.info("Tool {tool_name} resolved", tool_name=tool.name, call_id=request.id)
        return ToolOutcome.success(tool.name, output)


__all__ = [
    "NO_TOOLS_TEXT",
    "Capability",
    "ToolDefinition",
    "ToolParameter",
    "ToolRegistry",
    "ToolSchema",
]
