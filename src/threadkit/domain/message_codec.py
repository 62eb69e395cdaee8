"""Message Codec - Thread History ⇄ Pydantic AI Messages.

Our history is a flat tuple of role-tagged Messages; pydantic-ai speaks in
ModelRequest (what we send) and ModelResponse (what the model said) made of
typed parts. This module is the only place that knows both shapes.

Mapping:
    system       → ModelRequest[SystemPromptPart]
    user         → ModelRequest[UserPromptPart]
    assistant    → ModelResponse[TextPart?, ToolCallPart?]
    tool-result  → ModelRequest[ToolReturnPart]
"""

from __future__ import annotations

from collections.abc import Sequence

import logfire
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelRequestPart,
    ModelResponse,
    ModelResponsePart,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)

from .domain_type import MessageRole
from .domain_value import Message, ToolCallRequest

EMPTY_REPLY_TEXT = "(no response)"


def to_model_message(message: Message) -> ModelMessage:
    """Render one history entry for the backend."""
    if message.role == MessageRole.SYSTEM:
        return ModelRequest(parts=[SystemPromptPart(content=message.content)])

    if message.role == MessageRole.USER:
        return ModelRequest(parts=[UserPromptPart(content=message.content)])

    if message.role == MessageRole.TOOL_RESULT:
        part: ModelRequestPart = ToolReturnPart(
            tool_name=message.tool_name or "",
            content=message.content,
            tool_call_id=message.tool_call_id or "",
        )
        return ModelRequest(parts=[part])

    parts: list[ModelResponsePart] = []
    if message.content.strip():
        parts.append(TextPart(content=message.content))
    elif message.tool_call is None:
        # Some backends (Anthropic) reject blank text blocks
        parts.append(TextPart(content=EMPTY_REPLY_TEXT))
    if message.tool_call is not None:
        parts.append(
            ToolCallPart(
                tool_name=message.tool_call.name,
                args=dict(message.tool_call.arguments),
                tool_call_id=message.tool_call.id,
            )
        )
    return ModelResponse(parts=parts)


def to_model_messages(history: Sequence[Message]) -> list[ModelMessage]:
    return [to_model_message(message) for message in history]


def from_model_response(response: ModelResponse) -> Message:
    """Collapse a backend response into a single assistant Message.

    Text parts are concatenated. Only the first tool call is kept: a history
    entry carries at most one tool request, and dropping the rest keeps
    every request in history paired with exactly one tool result.

    Raises:
        ValueError: A tool call's arguments are not a JSON object
    """
    texts = [part.content for part in response.parts if isinstance(part, TextPart)]
    calls = [part for part in response.parts if isinstance(part, ToolCallPart)]

    tool_call: ToolCallRequest | None = None
    if calls:
        first = calls[0]
        if len(calls) > 1:
            logfire.warn(
                "Backend requested {count} tool calls; only {tool_name} is resolved",
                count=len(calls),
                tool_name=first.tool_name,
            )
        tool_call = ToolCallRequest(
            id=first.tool_call_id,
            name=first.tool_name,
            arguments=first.args_as_dict(),
        )

    return Message.assistant("".join(texts), tool_call=tool_call)


__all__ = ["EMPTY_REPLY_TEXT", "from_model_response", "to_model_message", "to_model_messages"]
