"""Thread API contracts - use domain types directly where they fit."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ...domain.domain_type import MessageRole
from ...domain.domain_value import Message, ThreadId, ToolCallRequest


class CreateThreadRequest(BaseModel):
    """Request to open a new thread."""

    provider: str | None = Field(
        default=None,
        description="Provider id or alias (e.g. 'openai', 'claude'). Leave empty for the configured default.",
        examples=["openai"],
    )
    model: str | None = Field(
        default=None,
        description="Backend model identifier. Leave empty for the provider's default.",
        examples=["gpt-4o-mini"],
    )
    temperature: float | None = Field(default=None, ge=0.0, le=2.0, examples=[0.7])
    greet: bool = Field(
        default=False,
        description="Ask the model for an opening greeting before returning",
    )


class RebindRequest(BaseModel):
    """Request to switch a thread to another provider."""

    provider: str = Field(min_length=1, examples=["anthropic"])
    model: str | None = Field(default=None, examples=["claude-3-sonnet-20240229"])
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)


class SendMessageRequest(BaseModel):
    """Request to send a user message into a thread."""

    content: str = Field(
        min_length=1,
        max_length=10_000,
        description="User message to send",
        examples=["What is 17 factorial divided by 3?"],
    )


class MessageResponse(BaseModel):
    """One history entry."""

    role: MessageRole
    content: str
    tool_call: ToolCallRequest | None = None
    tool_call_id: str | None = None
    tool_name: str | None = None
    created_at: datetime

    @classmethod
    def from_domain(cls, message: Message) -> MessageResponse:
        return cls(
            role=message.role,
            content=message.content,
            tool_call=message.tool_call,
            tool_call_id=message.tool_call_id,
            tool_name=message.tool_name,
            created_at=message.created_at,
        )


class ThreadResponse(BaseModel):
    """Thread identity and its current binding."""

    thread_id: ThreadId = Field(description="Thread ID for subsequent requests")
    provider: str
    model: str
    greeting: str | None = Field(default=None, description="Opening message, when requested")


class SendMessageResponse(BaseModel):
    """Final assistant message of a turn."""

    message: MessageResponse
    provider: str
    model: str


class ProviderResponse(BaseModel):
    """One backend available for binding."""

    id: str
    label: str
    default_model: str
    aliases: tuple[str, ...] = ()
