"""Tests for translating thread history to and from pydantic-ai messages."""

from pydantic_ai.messages import (
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)

from threadkit.domain.domain_type import MessageRole
from threadkit.domain.domain_value import Message, ToolCallRequest, ToolOutcome
from threadkit.domain.message_codec import EMPTY_REPLY_TEXT, from_model_response, to_model_messages


def test_history_maps_role_by_role():
    request = ToolCallRequest(id="call-7", name="calculator", arguments={"expression": "2+2"})
    history = [
        Message.system("sys"),
        Message.user("what is 2+2?"),
        Message.assistant("", tool_call=request),
        Message.tool_result(request, ToolOutcome.success("calculator", "4")),
        Message.assistant("4"),
    ]

    system, user, call, result, answer = to_model_messages(history)

    assert isinstance(system, ModelRequest) and isinstance(system.parts[0], SystemPromptPart)
    assert isinstance(user.parts[0], UserPromptPart) and user.parts[0].content == "what is 2+2?"

    assert isinstance(call, ModelResponse)
    [part] = call.parts
    assert isinstance(part, ToolCallPart)
    assert (part.tool_name, part.tool_call_id, part.args) == ("calculator", "call-7", {"expression": "2+2"})

    assert isinstance(result.parts[0], ToolReturnPart)
    assert result.parts[0].tool_call_id == "call-7"
    assert result.parts[0].content == "4"

    assert isinstance(answer, ModelResponse) and answer.parts == [TextPart(content="4")]


def test_assistant_text_and_tool_call_are_both_kept():
    request = ToolCallRequest(name="echo", arguments={"text": "x"})

    [rendered] = to_model_messages([Message.assistant("Let me check.", tool_call=request)])

    assert [type(part) for part in rendered.parts] == [TextPart, ToolCallPart]


def test_response_text_parts_are_concatenated():
    message = from_model_response(ModelResponse(parts=[TextPart(content="Hel"), TextPart(content="lo")]))

    assert message.role == MessageRole.ASSISTANT
    assert message.content == "Hello"
    assert message.tool_call is None


def test_only_first_tool_call_is_kept():
    """One request per assistant message keeps requests and results paired."""
    response = ModelResponse(
        parts=[
            ToolCallPart(tool_name="first", args={"a": 1}, tool_call_id="c1"),
            ToolCallPart(tool_name="second", args={"b": 2}, tool_call_id="c2"),
        ]
    )

    message = from_model_response(response)

    assert message.tool_call == ToolCallRequest(id="c1", name="first", arguments={"a": 1})


def test_json_string_arguments_are_decoded():
    response = ModelResponse(parts=[ToolCallPart(tool_name="echo", args='{"text": "hi"}', tool_call_id="c1")])

    assert from_model_response(response).tool_call.arguments == {"text": "hi"}


def test_blank_assistant_reply_is_sent_as_placeholder_text():
    """Blank replies never reach a backend as an empty text block."""
    [response] = to_model_messages([Message.assistant("")])

    [part] = response.parts
    assert isinstance(part, TextPart)
    assert part.content == EMPTY_REPLY_TEXT


def test_tool_call_with_blank_text_sends_only_the_call():
    request = ToolCallRequest(id="call-1", name="echo", arguments={"text": "x"})

    [response] = to_model_messages([Message.assistant("  ", tool_call=request)])

    [part] = response.parts
    assert isinstance(part, ToolCallPart)
