"""Conversation Engine - One Thread's History and Its Tool-Resolution Loop.

A Thread is an immutable snapshot: id, ordered history, current provider
binding. Every change (append a message, switch provider) returns a new
snapshot. The ConversationEngine owns the current snapshot of one thread and
is the only thing that replaces it.

Turn State Machine:
    IDLE → AWAITING_RESPONSE → RESPONDED ─┬─ no tool call → IDLE
                   ↑                      └─ tool call → RESOLVING_TOOL
                   └──────────────────────────────────────────┘

Turn algorithm:
    1. Append the user message to a working snapshot
    2. adapter.send(history) → append the assistant message
    3. If it requests a tool: resolve it, append the tool-result, go to 2
    4. Otherwise commit the working snapshot and return the final message

Rollback:
    The working snapshot is committed only when the turn completes. A backend
    failure (or exceeding the tool round limit) discards it, so the thread's
    history is exactly what it was before the turn began and every user
    message left in history has an answer.

Concurrency:
    Turns, greetings and rebinds on one engine are serialized by an
    asyncio.Lock; later callers queue. A turn runs in its own task, and a
    caller that stops waiting does not cancel it - the turn still commits
    or rolls back.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from datetime import UTC, datetime
from typing import Any

import logfire
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .domain_type import MessageRole, TurnState
from .domain_value import Message, ThreadId, ThreadSummary
from .errors import ProviderRequestError, ToolChainLimitExceeded
from .provider import ProviderBinding
from .tools import ToolRegistry

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."
DEFAULT_MAX_TOOL_ROUNDS = 8


class Thread(BaseModel):
    """
    One independent conversation bound to a model backend.

    Attributes:
        id: Stable identity, generated at creation, never reused
        history: Ordered messages; never empty, first is the system message
        binding: Provider binding serving the next turn
        created_at: Creation timestamp (immutable)
    """

    id: ThreadId = Field(default_factory=ThreadId)
    history: tuple[Message, ...]
    binding: ProviderBinding
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(frozen=True)

    @field_validator("history")
    @classmethod
    def require_system_seed(cls, v: tuple[Message, ...]) -> tuple[Message, ...]:
        """History is never empty and always starts with the system message."""
        if not v or v[0].role != MessageRole.SYSTEM:
            raise ValueError("Thread history must start with a system message")
        return v

    @classmethod
    def start(cls, *, system_prompt: str, binding: ProviderBinding, thread_id: ThreadId | None = None) -> Thread:
        """Factory: new thread seeded with exactly one system message."""
        return cls(
            id=thread_id or ThreadId(),
            history=(Message.system(system_prompt),),
            binding=binding,
        )

    def append(self, message: Message) -> Thread:
        return self.model_copy(update={"history": (*self.history, message)})

    def rebind(self, binding: ProviderBinding) -> Thread:
        """Replace the binding only; history is untouched."""
        return self.model_copy(update={"binding": binding})

    def summary(self) -> ThreadSummary:
        return ThreadSummary(
            thread_id=self.id,
            provider=self.binding.provider,
            model=self.binding.model,
            created_at=self.created_at,
            message_count=len(self.history),
        )


class TurnResult(BaseModel):
    """Final assistant message of a turn and the binding that produced it."""

    message: Message
    binding: ProviderBinding

    model_config = ConfigDict(frozen=True)


class ConversationEngine:
    """
    Owns one thread's current snapshot and runs its turns.

    Responsibilities:
    - Run the send → resolve-tools → send loop, bounded by max_tool_rounds
    - Commit on success, roll back on backend failure
    - Serialize sends and rebinds for this thread
    """

    def __init__(
        self,
        thread: Thread,
        tools: ToolRegistry,
        *,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ):
        if max_tool_rounds < 0:
            raise ValueError("max_tool_rounds must be >= 0")
        self._thread = thread
        self.tools = tools
        self.max_tool_rounds = max_tool_rounds
        self.state = TurnState.IDLE
        self._lock = asyncio.Lock()
        self._turns: set[asyncio.Task[TurnResult]] = set()

    @property
    def thread(self) -> Thread:
        """Last committed snapshot (never a half-finished turn)."""
        return self._thread

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def run_turn(self, content: str) -> TurnResult:
        """Run one user turn; the result names the binding that answered it.

        A rebind queued behind this turn does not change the reported binding.

        Raises:
            ProviderRequestError: Backend failed; history rolled back
            ToolChainLimitExceeded: Too many tool rounds; history rolled back
        """
        return await self._spawn(self._turn(Message.user(content)))

    async def send_message(self, content: str) -> Message:
        """Run one user turn and return only the final assistant message."""
        return (await self.run_turn(content)).message

    async def greet(self) -> Message:
        """Opening turn: send the system-only history to obtain a greeting.

        Raises:
            ValueError: The thread already has turns
            ProviderRequestError: Backend failed; history unchanged
        """
        return (await self._spawn(self._turn(None))).message

    async def rebind(self, binding: ProviderBinding) -> Thread:
        """Switch provider for subsequent turns; waits for any turn in flight."""
        async with self._lock:
            previous = self._thread.binding
            self._thread = self._thread.rebind(binding)
            logfire.info(
                "Thread {thread_id} rebound {old_provider} → {new_provider}",
                thread_id=str(self._thread.id),
                old_provider=previous.provider,
                new_provider=binding.provider,
                model=binding.model,
            )
            return self._thread

    async def _spawn(self, turn: Coroutine[Any, Any, TurnResult]) -> TurnResult:
        # The turn owns its task; shield keeps caller cancellation from reaching it
        task = asyncio.create_task(turn)
        self._turns.add(task)
        task.add_done_callback(self._forget)
        return await asyncio.shield(task)

    def _forget(self, task: asyncio.Task[TurnResult]) -> None:
        self._turns.discard(task)
        if not task.cancelled():
            # Retrieve so an abandoned failed turn is not reported as unhandled
            task.exception()

    async def _turn(self, user_message: Message | None) -> TurnResult:
        async with self._lock:
            snapshot = self._thread
            if user_message is None and len(snapshot.history) != 1:
                raise ValueError("Greeting is only possible before the first turn")
            working = snapshot if user_message is None else snapshot.append(user_message)

            with logfire.span(
                "thread turn {thread_id}",
                thread_id=str(snapshot.id),
                provider=snapshot.binding.provider,
                model=snapshot.binding.model,
                opening=user_message is None,
            ):
                try:
                    working, reply = await self._resolve(working)
                except (ProviderRequestError, ToolChainLimitExceeded) as exc:
                    logfire.warn(
                        "Turn on thread {thread_id} rolled back: {error}",
                        thread_id=str(snapshot.id),
                        error=str(exc),
                    )
                    raise
                finally:
                    self.state = TurnState.IDLE

            self._thread = working
            return TurnResult(message=reply, binding=snapshot.binding)

    async def _resolve(self, working: Thread) -> tuple[Thread, Message]:
        """Exchange with the backend until it stops requesting tools."""
        adapter = working.binding.adapter
        definitions = self.tools.definitions()
        rounds = 0
        while True:
            self.state = TurnState.AWAITING_RESPONSE
            reply = await adapter.send(working.history, definitions)
            self.state = TurnState.RESPONDED
            working = working.append(reply)

            request = reply.tool_call
            if request is None:
                return working, reply

            if rounds >= self.max_tool_rounds:
                raise ToolChainLimitExceeded(working.id, self.max_tool_rounds)
            rounds += 1

            self.state = TurnState.RESOLVING_TOOL
            outcome = await self.tools.resolve(request)
            working = working.append(Message.tool_result(request, outcome))


__all__ = [
    "DEFAULT_MAX_TOOL_ROUNDS",
    "DEFAULT_SYSTEM_PROMPT",
    "ConversationEngine",
    "Thread",
    "TurnResult",
]
