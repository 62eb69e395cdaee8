"""Thread Registry - Explicitly Owned Store of Live Conversations.

The registry maps ThreadId → ConversationEngine. It is an ordinary object
created by the service layer and held by whoever serves requests; nothing
about it is global.

Every operation is total: a failure leaves the registry and the affected
thread exactly as they were. Locking is per thread (inside each engine), so
operations on different threads never wait on each other.
"""

from __future__ import annotations

import logfire

from .conversation import DEFAULT_MAX_TOOL_ROUNDS, DEFAULT_SYSTEM_PROMPT, ConversationEngine, Thread, TurnResult
from .domain_type import TurnState
from .domain_value import Message, ThreadId, ThreadSummary
from .errors import ThreadNotFoundError
from .provider import ProviderFactory, ProviderOptions
from .tools import ToolRegistry


class ThreadRegistry:
    """
    Lifecycle of threads: create, fetch, send, rebind, list, remove.

    Responsibilities:
    - Seed new threads with the system prompt + tool descriptions
    - Guarantee id uniqueness among live threads
    - Route operations to the owning ConversationEngine
    """

    def __init__(
        self,
        factory: ProviderFactory,
        tools: ToolRegistry | None = None,
        *,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ):
        self.factory = factory
        self.tools = tools if tools is not None else ToolRegistry()
        self.system_prompt = system_prompt
        self.max_tool_rounds = max_tool_rounds
        self._engines: dict[ThreadId, ConversationEngine] = {}

    def __len__(self) -> int:
        return len(self._engines)

    def __contains__(self, thread_id: object) -> bool:
        return thread_id in self._engines

    def seed_prompt(self) -> str:
        """System message content: base prompt followed by the tool summary."""
        return f"{self.system_prompt}\n\n{self.tools.describe_all()}"

    def _engine(self, thread_id: ThreadId) -> ConversationEngine:
        engine = self._engines.get(thread_id)
        if engine is None:
            raise ThreadNotFoundError(thread_id)
        return engine

    def _fresh_id(self) -> ThreadId:
        thread_id = ThreadId()
        while thread_id in self._engines:
            thread_id = ThreadId()
        return thread_id

    async def create_thread(
        self,
        provider_id: str,
        options: ProviderOptions | None = None,
        *,
        greet: bool = False,
    ) -> Thread:
        """
        Create and store a new thread.

        Args:
            provider_id: Catalog id or alias of the backend
            options: Model/temperature overrides
            greet: Run the opening turn before storing the thread

        Raises:
            UnsupportedProviderError: Unknown provider; nothing stored
            ProviderRequestError: Greeting failed; nothing stored
        """
        binding = self.factory.bind(provider_id, options)
        thread = Thread.start(system_prompt=self.seed_prompt(), binding=binding, thread_id=self._fresh_id())
        engine = ConversationEngine(thread, self.tools, max_tool_rounds=self.max_tool_rounds)

        if greet:
            await engine.greet()

        # Re-check: another creation may have raced in while the greeting was awaited
        if thread.id in self._engines:
            raise RuntimeError(f"Thread id collision for {thread.id}")
        self._engines[thread.id] = engine
        logfire.info(
            "Thread {thread_id} created on {provider}",
            thread_id=str(thread.id),
            provider=binding.provider,
            model=binding.model,
        )
        return engine.thread

    def get_thread(self, thread_id: ThreadId) -> Thread:
        """Raises ThreadNotFoundError if absent."""
        return self._engine(thread_id).thread

    async def send_message(self, thread_id: ThreadId, content: str) -> Message:
        """
        Run one turn on the named thread.

        Raises:
            ThreadNotFoundError: Unknown id
            ProviderRequestError: Backend failed; thread rolled back
            ToolChainLimitExceeded: Tool loop hit its bound; thread rolled back
        """
        return await self._engine(thread_id).send_message(content)

    async def run_turn(self, thread_id: ThreadId, content: str) -> TurnResult:
        """Like send_message, but also reports the binding that answered.

        Raises:
            ThreadNotFoundError: Unknown id
            ProviderRequestError: Backend failed; thread rolled back
            ToolChainLimitExceeded: Tool loop hit its bound; thread rolled back
        """
        return await self._engine(thread_id).run_turn(content)

    async def rebind(
        self,
        thread_id: ThreadId,
        provider_id: str,
        options: ProviderOptions | None = None,
    ) -> Thread:
        """
        Switch the thread to another provider; history is preserved.

        The binding is built before the thread is touched, so an unsupported
        provider leaves it unchanged. A turn in flight finishes on the old
        binding first.

        Raises:
            ThreadNotFoundError: Unknown id
            UnsupportedProviderError: Unknown provider
        """
        engine = self._engine(thread_id)
        binding = self.factory.bind(provider_id, options)
        return await engine.rebind(binding)

    def list_thread(self, thread_id: ThreadId) -> ThreadSummary:
        return self._engine(thread_id).thread.summary()

    def list_threads(self) -> list[ThreadSummary]:
        """Summaries of all live threads in creation order."""
        return [engine.thread.summary() for engine in self._engines.values()]

    def state_of(self, thread_id: ThreadId) -> TurnState:
        return self._engine(thread_id).state

    def remove_thread(self, thread_id: ThreadId) -> None:
        """Destroy a thread. A turn already in flight still completes on its engine."""
        self._engine(thread_id)
        del self._engines[thread_id]
        logfire.info("Thread {thread_id} removed", thread_id=str(thread_id))


__all__ = ["ThreadRegistry"]
