"""Domain Type System - Core Enumerations.

Defines type-safe constants using Python's StrEnum for domain concepts.
Using StrEnum instead of plain Enum provides automatic string coercion
and better JSON serialization without custom encoders.
"""

from enum import StrEnum


class MessageRole(StrEnum):
    """Author of a message in a thread's history.

    Order of messages in a history is causal order; the role decides how a
    message is rendered for the model backend.
    """

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL_RESULT = "tool-result"


class ModelBackend(StrEnum):
    """Backend families understood by pydantic-ai's model inference.

    Values double as the prefix in pydantic-ai model strings
    ("openai:gpt-4o-mini", "groq:llama-3.3-70b-specdec", ...).
    """

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    DEEPSEEK = "deepseek"
    GROQ = "groq"


class TurnState(StrEnum):
    """Tool-resolution state machine of a single thread.

    States:
        IDLE: No request outstanding
        AWAITING_RESPONSE: adapter.send in flight
        RESPONDED: An assistant message was received
        RESOLVING_TOOL: The response asked for a tool; capability running
    """

    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    RESPONDED = "responded"
    RESOLVING_TOOL = "resolving_tool"


class ToolOutcomeStatus(StrEnum):
    """Outcome of resolving one tool call."""

    SUCCESS = "success"
    FAILURE = "failure"


class ParameterType(StrEnum):
    """JSON-schema primitive types accepted for tool parameters."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


__all__ = [
    "MessageRole",
    "ModelBackend",
    "ParameterType",
    "ToolOutcomeStatus",
    "TurnState",
]
