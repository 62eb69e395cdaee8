"""Value Layer - Identities and Immutable Records of a Conversation.

This module provides the value objects every other domain module speaks in:
identities (ThreadId, MessageId), the Message record that makes up a
thread's history, and the request/outcome pair exchanged with the tool
registry.

Architecture:
    - Identity: ThreadId, MessageId (UUID wrappers)
    - Content: Message (role + text, optional tool call / tool result link)
    - Tool exchange: ToolCallRequest (model asks) → ToolOutcome (registry answers)
    - Projection: ThreadSummary (read-only view for listings)

All models are frozen; histories are tuples of Messages and grow by
functional append.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, RootModel, model_validator

from .domain_type import MessageRole, ToolOutcomeStatus


class MessageId(RootModel[UUID]):
    """Unique identifier for individual messages."""

    root: UUID = Field(default_factory=uuid4)
    model_config = ConfigDict(frozen=True)


class ThreadId(RootModel[UUID]):
    """Unique Identifier for Threads.

    Generated once at thread creation and never reused. RootModel keeps it
    distinct from MessageId while serializing as a plain UUID string.

    Usage:
        >>> thread_id = ThreadId()
        >>> str(thread_id)
        '550e8400-e29b-41d4-a716-446655440000'
    """

    root: UUID = Field(default_factory=uuid4)
    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return str(self.root)


class ToolCallRequest(BaseModel):
    """A backend's request to invoke a named tool.

    Attributes:
        id: Correlation id; the answering tool-result message carries the same id
        name: Tool name as registered in the ToolRegistry
        arguments: Raw, not yet validated arguments chosen by the model
    """

    id: str = Field(default_factory=lambda: f"call_{uuid4().hex[:24]}")
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class ToolOutcome(BaseModel):
    """Result of resolving a ToolCallRequest - never an exception."""

    tool_name: str
    status: ToolOutcomeStatus
    output: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def success(cls, tool_name: str, output: str) -> ToolOutcome:
        return cls(tool_name=tool_name, status=ToolOutcomeStatus.SUCCESS, output=output)

    @classmethod
    def failure(cls, tool_name: str, error: str) -> ToolOutcome:
        return cls(tool_name=tool_name, status=ToolOutcomeStatus.FAILURE, output=error)

    @property
    def ok(self) -> bool:
        return self.status == ToolOutcomeStatus.SUCCESS

    @property
    def summary(self) -> str:
        """Text fed back to the model as the tool-result message content.

        Successful outputs are passed through untouched so the model sees
        exactly what the capability returned; failures name the tool.
        """
        if self.ok:
            return self.output
        return f"Error from tool '{self.tool_name}': {self.output}"


class Message(BaseModel):
    """One Entry in a Thread's History.

    Attributes:
        id: Our identifier for this message
        role: system, user, assistant or tool-result
        content: Message text (may be empty on a pure tool-call response)
        tool_call: Present only on assistant messages that request a tool
        tool_call_id: Present only on tool-result messages; matches the request id
        tool_name: Present only on tool-result messages; the tool that answered
        created_at: UTC creation timestamp

    Use the factory classmethods rather than the constructor; they keep the
    role/field pairing consistent.
    """

    id: MessageId = Field(default_factory=MessageId)
    role: MessageRole
    content: str = ""
    tool_call: ToolCallRequest | None = None
    tool_call_id: str | None = None
    tool_name: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_role_fields(self) -> Message:
        """Tool fields only appear on the roles that own them."""
        if self.tool_call is not None and self.role != MessageRole.ASSISTANT:
            raise ValueError("tool_call is only allowed on assistant messages")
        if self.role == MessageRole.TOOL_RESULT:
            if not self.tool_call_id or not self.tool_name:
                raise ValueError("tool-result messages require tool_call_id and tool_name")
        elif self.tool_call_id is not None or self.tool_name is not None:
            raise ValueError("tool_call_id/tool_name are only allowed on tool-result messages")
        return self

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str, tool_call: ToolCallRequest | None = None) -> Message:
        return cls(role=MessageRole.ASSISTANT, content=content, tool_call=tool_call)

    @classmethod
    def tool_result(cls, request: ToolCallRequest, outcome: ToolOutcome) -> Message:
        return cls(
            role=MessageRole.TOOL_RESULT,
            content=outcome.summary,
            tool_call_id=request.id,
            tool_name=request.name,
        )


class ThreadSummary(BaseModel):
    """Read-only projection of a thread for listings."""

    thread_id: ThreadId
    provider: str
    model: str
    created_at: datetime
    message_count: int = Field(ge=1)

    model_config = ConfigDict(frozen=True)


__all__ = [
    "Message",
    "MessageId",
    "ThreadId",
    "ThreadSummary",
    "ToolCallRequest",
    "ToolOutcome",
]
