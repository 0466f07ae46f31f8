"""Tests for data models and conversation state."""

import json

import pytest
from pydantic import ValidationError

from minicursor.exceptions import ConversationProtocolError
from minicursor.models.conversation import ConversationState
from minicursor.models.llm import AssistantTurn, LLMUsage, TextBlock, ToolResultBlock, ToolUseBlock
from minicursor.models.messages import Message, ToolCall, ToolResult
from minicursor.tools.execute_command import ExecuteCommandInput
from minicursor.tools.filesystem import ReadFileInput, WriteFileInput


class TestMessageModels:
    """Tests for conversation message models."""

    def test_system_and_user_constructors(self):
        """Test the role-specific constructors."""
        assert Message.system("rules").role == "system"
        assert Message.user("task").content == "task"

    def test_assistant_message_with_tool_calls(self):
        """Test assistant message carrying tool calls and no text."""
        call = ToolCall(id="call_1", name="read_file", arguments={"filePath": "a.txt"})
        message = Message.assistant(None, [call])
        assert message.content is None
        assert message.tool_calls == [call]

    def test_tool_result_message_references_call(self):
        """Test tool result message keeps the call id."""
        message = Message.tool_result(ToolResult(tool_call_id="call_1", content="File content:\nhi"))
        assert message.role == "tool"
        assert message.tool_call_id == "call_1"
        assert message.content == "File content:\nhi"

    def test_only_assistant_can_carry_tool_calls(self):
        """Test that a user message with tool calls is rejected."""
        with pytest.raises(ValidationError, match="Only assistant messages can carry tool calls"):
            Message(role="user", content="hi", tool_calls=[ToolCall(id="1", name="x")])

    def test_tool_message_requires_call_id(self):
        """Test that tool messages must reference a call."""
        with pytest.raises(ValidationError, match="must reference a tool call id"):
            Message(role="tool", content="result")

    def test_user_message_requires_content(self):
        """Test that only assistant messages may have null content."""
        with pytest.raises(ValidationError):
            Message(role="user", content=None)

    def test_invalid_role(self):
        """Test message with invalid role."""
        with pytest.raises(ValidationError):
            Message(role="invalid", content="Hello")  # type: ignore

    def test_tool_call_from_json(self):
        """Test tool call parsing from a JSON payload."""
        data = json.loads('{"id": "toolu_01", "name": "write_file", "arguments": {"filePath": "a", "content": "b"}}')
        call = ToolCall.model_validate(data)
        assert call.name == "write_file"
        assert call.arguments["content"] == "b"


class TestLLMModels:
    """Tests for LLM-related models."""

    def test_final_turn(self):
        """Test a turn with text and no tool calls is final."""
        turn = AssistantTurn(content="Done")
        assert turn.is_final
        assert not turn.is_empty

    def test_tool_turn(self):
        """Test a turn with tool calls is not final even without text."""
        turn = AssistantTurn(tool_calls=[ToolCall(id="1", name="list_directory")])
        assert not turn.is_final
        assert not turn.is_empty

    @pytest.mark.parametrize("content", [None, "", "   \n"])
    def test_empty_turn(self, content):
        """Test blank content with no tool calls is empty."""
        assert AssistantTurn(content=content).is_empty

    def test_usage_accumulates(self):
        """Test usage addition."""
        usage = LLMUsage()
        usage.add(LLMUsage(input_tokens=10, output_tokens=2, total_tokens=12))
        usage.add(None)
        usage.add(LLMUsage(input_tokens=5, output_tokens=1, total_tokens=6))
        assert (usage.input_tokens, usage.output_tokens, usage.total_tokens) == (15, 3, 18)

    def test_content_blocks_from_anthropic_json(self):
        """Test parsing Anthropic content blocks, ignoring extra fields."""
        text_block = TextBlock.model_validate({"citations": None, "text": "Listing files", "type": "text"})
        assert text_block.text == "Listing files"

        tool_block = ToolUseBlock.model_validate(
            {"id": "toolu_01", "input": {"directoryPath": "."}, "name": "list_directory", "type": "tool_use"}
        )
        assert tool_block.input == {"directoryPath": "."}

    def test_tool_result_block_defaults(self):
        """Test tool result block defaults."""
        block = ToolResultBlock(tool_use_id="toolu_01", content="ok")
        assert block.type == "tool_result"
        assert block.is_error is False


class TestToolInputModels:
    """Tests for tool argument schemas."""

    def test_camel_case_aliases(self):
        """Test arguments are accepted under their model-facing names."""
        params = ExecuteCommandInput.model_validate({"command": "ls", "workingDirectory": "app"})
        assert params.working_directory == "app"

    def test_working_directory_optional(self):
        """Test working directory defaults to None."""
        assert ExecuteCommandInput.model_validate({"command": "ls"}).working_directory is None

    def test_missing_required_field(self):
        """Test missing content is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            WriteFileInput.model_validate({"filePath": "a.txt"})
        assert exc_info.value.errors()[0]["loc"] == ("content",)

    def test_schema_uses_aliases(self):
        """Test the JSON schema exposes camelCase property names."""
        schema = ReadFileInput.model_json_schema(by_alias=True)
        assert list(schema["properties"]) == ["filePath"]
        assert schema["required"] == ["filePath"]


class TestConversationState:
    """Tests for the append-only conversation log."""

    @pytest.fixture
    def conversation(self):
        return ConversationState.start("system rules", "do the task")

    def test_seeded_with_system_and_user(self, conversation):
        """Test a new conversation holds one system and one user message."""
        assert [m.role for m in conversation.messages] == ["system", "user"]
        assert conversation.ready_for_model

    def test_tool_turn_opens_pending_calls(self, conversation):
        """Test tool calls stay pending until answered in any order."""
        turn = AssistantTurn(tool_calls=[ToolCall(id="a", name="read_file"), ToolCall(id="b", name="read_file")])
        conversation.append_assistant(turn)
        assert conversation.pending_call_ids == {"a", "b"}

        conversation.append_tool_result(ToolResult(tool_call_id="b", content="B"))
        assert not conversation.ready_for_model
        conversation.append_tool_result(ToolResult(tool_call_id="a", content="A"))
        assert conversation.ready_for_model
        assert len(conversation) == 5

    def test_assistant_turn_rejected_while_calls_pending(self, conversation):
        """Test the next assistant turn waits for every result."""
        conversation.append_assistant(AssistantTurn(tool_calls=[ToolCall(id="a", name="read_file")]))
        with pytest.raises(ConversationProtocolError, match="still unanswered"):
            conversation.append_assistant(AssistantTurn(content="done"))

    def test_result_for_unknown_call_rejected(self, conversation):
        """Test a result must answer a pending call."""
        with pytest.raises(ConversationProtocolError, match="No pending tool call"):
            conversation.append_tool_result(ToolResult(tool_call_id="ghost", content="?"))

    def test_result_cannot_answer_twice(self, conversation):
        """Test a call is answered exactly once."""
        conversation.append_assistant(AssistantTurn(tool_calls=[ToolCall(id="a", name="read_file")]))
        conversation.append_tool_result(ToolResult(tool_call_id="a", content="A"))
        with pytest.raises(ConversationProtocolError):
            conversation.append_tool_result(ToolResult(tool_call_id="a", content="A again"))

    def test_duplicate_call_ids_rejected(self, conversation):
        """Test call ids must be unique within a turn."""
        turn = AssistantTurn(tool_calls=[ToolCall(id="a", name="read_file"), ToolCall(id="a", name="write_file")])
        with pytest.raises(ConversationProtocolError, match="Duplicate"):
            conversation.append_assistant(turn)

    def test_messages_view_is_read_only(self, conversation):
        """Test callers cannot mutate the log through the view."""
        assert isinstance(conversation.messages, tuple)
