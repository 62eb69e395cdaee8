"""
Tests for Thread snapshots and the ConversationEngine turn loop.

These tests demonstrate:
- History growth rules (2 messages per plain turn, +2 per tool round)
- Rollback: a failed turn leaves no trace in history
- Per-thread serialization of sends and rebinds
"""

import asyncio
from collections.abc import Callable

import pytest
from pydantic import ValidationError

from tests.scripted import ScriptedBackend, text, tool_call
from threadkit.domain.conversation import ConversationEngine, Thread
from threadkit.domain.domain_type import MessageRole, TurnState
from threadkit.domain.domain_value import Message, ThreadId
from threadkit.domain.errors import ProviderRequestError, ToolChainLimitExceeded
from threadkit.domain.provider import ProviderFactory
from threadkit.domain.tools import ToolRegistry


def make_engine(factory: ProviderFactory, tools: ToolRegistry, provider: str = "alpha", **kwargs) -> ConversationEngine:
    thread = Thread.start(system_prompt="You are a test assistant.", binding=factory.bind(provider))
    return ConversationEngine(thread, tools, **kwargs)


async def wait_until(predicate: Callable[[], bool]) -> None:
    async with asyncio.timeout(1):
        while not predicate():
            await asyncio.sleep(0)


def roles(thread: Thread) -> list[MessageRole]:
    return [message.role for message in thread.history]


# =============================================================================
# THREAD SNAPSHOTS
# =============================================================================


def test_start_seeds_exactly_one_system_message(factory: ProviderFactory):
    thread = Thread.start(system_prompt="Be kind.", binding=factory.bind("alpha"))

    assert roles(thread) == [MessageRole.SYSTEM]
    assert thread.history[0].content == "Be kind."


def test_history_must_start_with_system_message(factory: ProviderFactory):
    with pytest.raises(ValidationError):
        Thread(history=(Message.user("hi"),), binding=factory.bind("alpha"))
    with pytest.raises(ValidationError):
        Thread(history=(), binding=factory.bind("alpha"))


def test_append_returns_new_snapshot(factory: ProviderFactory):
    thread = Thread.start(system_prompt="sys", binding=factory.bind("alpha"))

    grown = thread.append(Message.user("hello"))

    assert grown is not thread
    assert len(thread.history) == 1
    assert len(grown.history) == 2
    assert grown.id == thread.id


def test_rebind_keeps_history_and_identity(factory: ProviderFactory):
    thread = Thread.start(system_prompt="sys", binding=factory.bind("alpha")).append(Message.user("hi"))

    rebound = thread.rebind(factory.bind("beta"))

    assert rebound.history == thread.history
    assert rebound.id == thread.id
    assert rebound.created_at == thread.created_at
    assert rebound.binding.provider == "beta"


def test_summary_reports_binding_and_count(factory: ProviderFactory):
    thread = Thread.start(system_prompt="sys", binding=factory.bind("alpha"), thread_id=ThreadId())

    summary = thread.summary()

    assert summary.thread_id == thread.id
    assert (summary.provider, summary.model, summary.message_count) == ("alpha", "alpha-default", 1)


# =============================================================================
# TURNS
# =============================================================================


@pytest.mark.asyncio
async def test_plain_turn_appends_user_and_assistant(factory, tools, backend: ScriptedBackend):
    backend.script(text("Hi! How can I help?"))
    engine = make_engine(factory, tools)

    reply = await engine.send_message("Hello")

    assert reply.content == "Hi! How can I help?"
    assert roles(engine.thread) == [MessageRole.SYSTEM, MessageRole.USER, MessageRole.ASSISTANT]
    assert engine.thread.history[-1] == reply
    assert engine.state == TurnState.IDLE


@pytest.mark.asyncio
async def test_backend_sees_full_history_and_tools(factory, tools, backend: ScriptedBackend):
    engine = make_engine(factory, tools)

    await engine.send_message("one")
    await engine.send_message("two")

    # system, one, ok, two
    assert len(backend.requests[1]) == 4
    assert backend.tool_names == [["echo"], ["echo"]]


@pytest.mark.asyncio
async def test_tool_round_adds_request_and_result(factory, tools, backend: ScriptedBackend):
    """
    Demonstrates: One tool round = two extra history entries.

    The assistant's tool request and the tool-result answering it both stay
    in history, correlated by the call id, before the final answer.
    """
    backend.script(tool_call("echo", {"text": "ping"}, call_id="call-42"), text("The tool said ping."))
    engine = make_engine(factory, tools)

    reply = await engine.send_message("Echo ping please")

    history = engine.thread.history
    assert roles(engine.thread) == [
        MessageRole.SYSTEM,
        MessageRole.USER,
        MessageRole.ASSISTANT,
        MessageRole.TOOL_RESULT,
        MessageRole.ASSISTANT,
    ]
    assert history[2].tool_call.id == "call-42"
    assert history[3].tool_call_id == "call-42"
    assert history[3].tool_name == "echo"
    assert history[3].content == "ping"
    assert reply.content == "The tool said ping."
    assert reply.tool_call is None


@pytest.mark.asyncio
async def test_history_grows_by_two_plus_two_per_tool_round(factory, tools, backend: ScriptedBackend):
    backend.script(
        tool_call("echo", {"text": "a"}, call_id="c1"),
        tool_call("echo", {"text": "b"}, call_id="c2"),
        text("done"),
        text("plain"),
    )
    engine = make_engine(factory, tools)

    await engine.send_message("two rounds")
    after_first = len(engine.thread.history)
    await engine.send_message("no rounds")

    assert after_first == 1 + 2 + 2 * 2
    assert len(engine.thread.history) == after_first + 2


@pytest.mark.asyncio
async def test_failing_tool_is_reported_to_model_and_turn_continues(factory, tools, backend: ScriptedBackend):
    backend.script(tool_call("missing_tool", {}), text("Sorry, I can't do that."))
    engine = make_engine(factory, tools)

    reply = await engine.send_message("use a tool that does not exist")

    tool_result = engine.thread.history[3]
    assert tool_result.role == MessageRole.TOOL_RESULT
    assert tool_result.content == "Error from tool 'missing_tool': Unknown tool 'missing_tool'"
    assert reply.content == "Sorry, I can't do that."


@pytest.mark.asyncio
async def test_backend_failure_rolls_back_the_turn(factory, tools, backend: ScriptedBackend):
    """
    Demonstrates: Rollback on failure.

    The user message is not left unanswered in history; the thread is
    exactly as it was before the turn and accepts a retry.
    """
    engine = make_engine(factory, tools)
    await engine.send_message("first")
    before = engine.thread

    backend.script(ConnectionError("network down"))
    with pytest.raises(ProviderRequestError, match="network down"):
        await engine.send_message("second")

    assert engine.thread == before
    assert engine.state == TurnState.IDLE

    backend.script(text("recovered"))
    reply = await engine.send_message("second")
    assert reply.content == "recovered"


@pytest.mark.asyncio
async def test_failure_after_tool_round_discards_the_whole_turn(factory, tools, backend: ScriptedBackend):
    backend.script(tool_call("echo", {"text": "x"}), RuntimeError("boom"))
    engine = make_engine(factory, tools)

    with pytest.raises(ProviderRequestError):
        await engine.send_message("hi")

    assert roles(engine.thread) == [MessageRole.SYSTEM]


@pytest.mark.asyncio
async def test_tool_chain_limit_fails_closed(factory, tools, backend: ScriptedBackend):
    backend.script(*(tool_call("echo", {"text": str(i)}, call_id=f"c{i}") for i in range(5)))
    engine = make_engine(factory, tools, max_tool_rounds=2)

    with pytest.raises(ToolChainLimitExceeded) as exc_info:
        await engine.send_message("loop forever")

    assert exc_info.value.max_rounds == 2
    assert len(backend.requests) == 3
    assert roles(engine.thread) == [MessageRole.SYSTEM]


@pytest.mark.asyncio
async def test_zero_rounds_disables_tool_resolution(factory, tools, backend: ScriptedBackend):
    backend.script(tool_call("echo", {"text": "x"}))
    engine = make_engine(factory, tools, max_tool_rounds=0)

    with pytest.raises(ToolChainLimitExceeded):
        await engine.send_message("hi")


def test_negative_round_limit_is_rejected(factory, tools):
    with pytest.raises(ValueError):
        make_engine(factory, tools, max_tool_rounds=-1)


# =============================================================================
# GREETING
# =============================================================================


@pytest.mark.asyncio
async def test_greet_appends_only_an_assistant_message(factory, tools, backend: ScriptedBackend):
    backend.script(text("Welcome!"))
    engine = make_engine(factory, tools)

    greeting = await engine.greet()

    assert greeting.content == "Welcome!"
    assert roles(engine.thread) == [MessageRole.SYSTEM, MessageRole.ASSISTANT]
    assert len(backend.requests[0]) == 1


@pytest.mark.asyncio
async def test_greet_after_first_turn_is_rejected(factory, tools):
    engine = make_engine(factory, tools)
    await engine.send_message("hi")

    with pytest.raises(ValueError):
        await engine.greet()


# =============================================================================
# CONCURRENCY
# =============================================================================


@pytest.mark.asyncio
async def test_concurrent_sends_are_serialized(factory, tools, backend: ScriptedBackend):
    """
    Demonstrates: Per-thread serialization.

    The second send waits for the first turn to commit, so the backend sees
    the first exchange in the second request and history stays well ordered.
    """
    gate = asyncio.Event()

    async def held(messages, info):
        await gate.wait()
        return text("first answer")

    backend.script(held, text("second answer"))
    engine = make_engine(factory, tools)

    first = asyncio.create_task(engine.send_message("one"))
    await wait_until(lambda: len(backend.requests) == 1)
    second = asyncio.create_task(engine.send_message("two"))
    await asyncio.sleep(0.01)

    assert engine.busy
    assert engine.state == TurnState.AWAITING_RESPONSE
    assert len(backend.requests) == 1

    gate.set()
    await asyncio.gather(first, second)

    assert [m.content for m in engine.thread.history[1:]] == ["one", "first answer", "two", "second answer"]
    assert len(backend.requests[1]) == 4


@pytest.mark.asyncio
async def test_rebind_waits_for_turn_in_flight(factory, tools, backend: ScriptedBackend, beta_backend: ScriptedBackend):
    gate = asyncio.Event()

    async def held(messages, info):
        await gate.wait()
        return text("from alpha")

    backend.script(held)
    beta_backend.script(text("from beta"))
    engine = make_engine(factory, tools)

    turn = asyncio.create_task(engine.send_message("hello"))
    await wait_until(lambda: len(backend.requests) == 1)
    rebind = asyncio.create_task(engine.rebind(factory.bind("beta")))
    await asyncio.sleep(0.01)

    assert engine.thread.binding.provider == "alpha"

    gate.set()
    reply = await turn
    rebound = await rebind

    assert reply.content == "from alpha"
    assert rebound.binding.provider == "beta"
    assert len(rebound.history) == 3

    answer = await engine.send_message("and now?")
    assert answer.content == "from beta"
    # beta sees the whole conversation so far
    assert len(beta_backend.requests[0]) == 4


@pytest.mark.asyncio
async def test_turn_result_names_the_binding_that_answered(factory, tools, backend: ScriptedBackend):
    """
    Demonstrates: The reported binding is captured when the turn starts.

    A rebind queued behind the turn commits before the caller reads the
    result, yet the result still names the backend that produced the reply.
    """
    gate = asyncio.Event()

    async def held(messages, info):
        await gate.wait()
        return text("from alpha")

    backend.script(held)
    engine = make_engine(factory, tools)

    turn = asyncio.create_task(engine.run_turn("hello"))
    await wait_until(lambda: len(backend.requests) == 1)
    rebind = asyncio.create_task(engine.rebind(factory.bind("beta")))
    await asyncio.sleep(0.01)
    gate.set()
    await rebind
    result = await turn

    assert engine.thread.binding.provider == "beta"
    assert result.binding.provider == "alpha"
    assert result.message.content == "from alpha"


@pytest.mark.asyncio
async def test_abandoned_caller_does_not_cancel_the_turn(factory, tools, backend: ScriptedBackend):
    gate = asyncio.Event()

    async def held(messages, info):
        await gate.wait()
        return text("still delivered")

    backend.script(held)
    engine = make_engine(factory, tools)

    caller = asyncio.create_task(engine.send_message("hi"))
    await wait_until(lambda: len(backend.requests) == 1)
    caller.cancel()
    with pytest.raises(asyncio.CancelledError):
        await caller

    gate.set()
    await wait_until(lambda: not engine.busy)

    assert [m.content for m in engine.thread.history[1:]] == ["hi", "still delivered"]
