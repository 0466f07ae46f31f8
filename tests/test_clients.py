"""Tests for the model invocation clients."""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest
from anthropic import APIConnectionError
from anthropic.types import TextBlock as AnthropicTextBlock
from anthropic.types import ToolUseBlock as AnthropicToolUseBlock
from langchain_core.language_models.fake_chat_models import GenericFakeChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from minicursor.clients.anthropic import AnthropicClient, AnthropicConfig, AnthropicRateLimiter, to_anthropic_messages
from minicursor.clients.langchain import LangChainClient, to_langchain_messages
from minicursor.exceptions import ModelInvocationFailed
from minicursor.models.llm import TextBlock, ToolResultBlock, ToolUseBlock
from minicursor.models.messages import Message, ToolCall, ToolResult
from minicursor.tools.registry import create_default_registry


def sample_conversation() -> list[Message]:
    return [
        Message.system("You are a project assistant."),
        Message.user("Set up the project"),
        Message.assistant(
            "Looking around first.",
            [
                ToolCall(id="toolu_1", name="list_directory", arguments={"directoryPath": "."}),
                ToolCall(id="toolu_2", name="read_file", arguments={"filePath": "package.json"}),
            ],
        ),
        Message.tool_result(ToolResult(tool_call_id="toolu_1", content="Directory contents:\n- package.json")),
        Message.tool_result(ToolResult(tool_call_id="toolu_2", content="File content:\n{}")),
    ]


class TestAnthropicMessageConversion:
    """Tests for converting the log to Messages API format."""

    def test_system_prompt_split_out(self):
        """Test system messages become the system parameter."""
        system, messages = to_anthropic_messages(sample_conversation())
        assert system == "You are a project assistant."
        assert [m.role for m in messages] == ["user", "assistant", "user"]

    def test_assistant_blocks(self):
        """Test assistant text and tool calls become content blocks."""
        _, messages = to_anthropic_messages(sample_conversation())
        blocks = messages[1].content
        assert isinstance(blocks[0], TextBlock)
        assert [b.id for b in blocks[1:]] == ["toolu_1", "toolu_2"]
        assert all(isinstance(b, ToolUseBlock) for b in blocks[1:])

    def test_consecutive_tool_results_grouped(self):
        """Test results of one turn share a single user message."""
        _, messages = to_anthropic_messages(sample_conversation())
        results = messages[2].content
        assert all(isinstance(b, ToolResultBlock) for b in results)
        assert [b.tool_use_id for b in results] == ["toolu_1", "toolu_2"]

    def test_tool_only_assistant_turn_has_no_text_block(self):
        """Test null assistant content produces only tool_use blocks."""
        _, messages = to_anthropic_messages(
            [Message.assistant(None, [ToolCall(id="t", name="list_directory", arguments={})])]
        )
        assert len(messages[0].content) == 1
        assert messages[0].content[0].type == "tool_use"


class TestAnthropicClient:
    """Tests for AnthropicClient.invoke."""

    @pytest.fixture
    def anthropic_client(self):
        """Create AnthropicClient with the SDK mocked out."""
        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "test-key"}),
            patch("minicursor.clients.anthropic.tiktoken.encoding_for_model", side_effect=Exception("offline")),
        ):
            client = AnthropicClient(config=AnthropicConfig(model="test-model", max_tokens=256))
        client.client = Mock()
        client.client.messages.create = AsyncMock()
        return client

    def test_requires_api_key(self):
        """Test construction fails without a key."""
        with patch.dict("os.environ", {}, clear=True), pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            AnthropicClient()

    def test_token_estimate_fallback(self, anthropic_client):
        """Test the character-based estimate when no tokenizer is available."""
        assert anthropic_client.tokenizer is None
        assert anthropic_client.estimate_text_tokens("a" * 400) == 100

    @pytest.mark.asyncio
    async def test_tool_use_response(self, anthropic_client):
        """Test tool_use blocks become tool calls."""
        anthropic_client.client.messages.create.return_value = Mock(
            content=[
                AnthropicTextBlock(type="text", text="Let me check."),
                AnthropicToolUseBlock(type="tool_use", id="toolu_9", name="list_directory", input={"directoryPath": "."}),
            ],
            stop_reason="tool_use",
            usage=Mock(input_tokens=120, output_tokens=30),
            model="test-model",
        )
        tools = create_default_registry().definitions()

        turn = await anthropic_client.invoke(sample_conversation(), tools)

        assert turn.content == "Let me check."
        assert turn.tool_calls == [ToolCall(id="toolu_9", name="list_directory", arguments={"directoryPath": "."})]
        assert turn.usage.total_tokens == 150

        request = anthropic_client.client.messages.create.call_args.kwargs
        assert request["model"] == "test-model"
        assert request["system"] == "You are a project assistant."
        assert [t["name"] for t in request["tools"]] == [t.name for t in tools]
        assert request["messages"][2]["content"][0]["type"] == "tool_result"

    @pytest.mark.asyncio
    async def test_final_text_response(self, anthropic_client):
        """Test a text-only response is a final turn."""
        anthropic_client.client.messages.create.return_value = Mock(
            content=[AnthropicTextBlock(type="text", text="All done.")],
            stop_reason="end_turn",
            usage=None,
            model="test-model",
        )

        turn = await anthropic_client.invoke([Message.system("s"), Message.user("u")], [])

        assert turn.is_final
        assert turn.content == "All done."
        assert "tools" not in anthropic_client.client.messages.create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_api_error_wrapped_and_not_retried(self, anthropic_client):
        """Test endpoint errors surface as ModelInvocationFailed after one attempt."""
        anthropic_client.client.messages.create.side_effect = APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        )

        with pytest.raises(ModelInvocationFailed):
            await anthropic_client.invoke([Message.system("s"), Message.user("u")], [])
        assert anthropic_client.client.messages.create.await_count == 1


class TestAnthropicRateLimiter:
    """Tests for AnthropicRateLimiter."""

    @pytest.mark.asyncio
    async def test_oversized_estimate_does_not_wait(self):
        """Test a log larger than the token budget is sent without waiting for a reset."""
        limiter = AnthropicRateLimiter(tokens_per_minute=40_000)

        with patch("minicursor.clients.anthropic.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await limiter.check_rate_limit(45_000)
            await limiter.check_rate_limit(45_000)

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exhausted_token_window_waits(self):
        """Test requests that fit the budget still wait once the window is spent."""
        limiter = AnthropicRateLimiter(tokens_per_minute=1_000)

        with patch("minicursor.clients.anthropic.asyncio.sleep", new_callable=AsyncMock) as sleep:
            await limiter.check_rate_limit(800)
            await limiter.check_rate_limit(800)

        sleep.assert_awaited_once()
        assert 0 < sleep.await_args.args[0] <= 60

    def test_client_limits_come_from_config(self):
        """Test the client builds its limiter from AnthropicConfig."""
        with patch("minicursor.clients.anthropic.tiktoken.encoding_for_model", side_effect=Exception("offline")):
            client = AnthropicClient(
                api_key="key", config=AnthropicConfig(requests_per_minute=5, tokens_per_minute=200_000)
            )
        assert client.rate_limiter.request_limit.amount == 5
        assert client.rate_limiter.token_limit.amount == 200_000


class ToolBindingFakeChatModel(GenericFakeChatModel):
    """Fake chat model that accepts bind_tools and records the tool schemas."""

    bound_tools: list = []

    def bind_tools(self, tools, **kwargs):
        self.bound_tools.append(tools)
        return self


class FailingChatModel(GenericFakeChatModel):
    def bind_tools(self, tools, **kwargs):
        return self

    async def ainvoke(self, *args, **kwargs):
        raise RuntimeError("upstream unavailable")


class TestLangChainClient:
    """Tests for LangChainClient."""

    def test_message_conversion(self):
        """Test each role maps to the matching LangChain message type."""
        converted = to_langchain_messages(sample_conversation())
        assert [type(m) for m in converted] == [SystemMessage, HumanMessage, AIMessage, ToolMessage, ToolMessage]
        assert [c["id"] for c in converted[2].tool_calls] == ["toolu_1", "toolu_2"]
        assert converted[3].tool_call_id == "toolu_1"

    @pytest.mark.asyncio
    async def test_tool_call_response(self):
        """Test AIMessage tool calls become ToolCalls."""
        model = ToolBindingFakeChatModel(
            messages=iter(
                [
                    AIMessage(
                        content="",
                        tool_calls=[{"id": "call_1", "name": "execute_command", "args": {"command": "ls"}}],
                    )
                ]
            ),
            bound_tools=[],
        )
        tools = create_default_registry().definitions()

        turn = await LangChainClient(model).invoke([Message.system("s"), Message.user("u")], tools)

        assert turn.content is None
        assert turn.tool_calls == [ToolCall(id="call_1", name="execute_command", arguments={"command": "ls"})]
        bound = model.bound_tools[0]
        assert [t["function"]["name"] for t in bound] == [t.name for t in tools]

    @pytest.mark.asyncio
    async def test_text_response(self):
        """Test a plain answer is a final turn."""
        model = ToolBindingFakeChatModel(messages=iter([AIMessage(content="Finished.")]), bound_tools=[])

        turn = await LangChainClient(model).invoke([Message.system("s"), Message.user("u")], [])

        assert turn.is_final
        assert turn.content == "Finished."

    @pytest.mark.asyncio
    async def test_errors_wrapped(self):
        """Test model exceptions surface as ModelInvocationFailed."""
        model = FailingChatModel(messages=iter([]))

        with pytest.raises(ModelInvocationFailed, match="upstream unavailable"):
            await LangChainClient(model).invoke([Message.user("u")], create_default_registry().definitions())
