"""Anthropic API client with rate limiting and error handling."""

import asyncio
import os
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

import tiktoken
from anthropic import APIError, AsyncAnthropic
from anthropic.types import ContentBlock as AnthropicContentBlock
from anthropic.types import Message as AnthropicResponseMessage
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from pydantic import BaseModel

from minicursor.exceptions import ModelInvocationFailed
from minicursor.models.llm import (
    AssistantTurn,
    ContentBlock,
    LLMToolDefinition,
    LLMUsage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from minicursor.models.messages import Message, ToolCall
from minicursor.utils.logging import get_logger

logger = get_logger(__name__)


class AnthropicMessage(BaseModel):
    """Message format for Anthropic API."""

    role: Literal["user", "assistant"]
    content: str | list[ContentBlock]


class AnthropicTool(BaseModel):
    """Tool definition for Anthropic API."""

    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass
class AnthropicConfig:
    """Configuration for Anthropic API client."""

    model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = 4096
    temperature: float = 0.0
    base_url: str | None = None
    timeout: float = 600.0
    requests_per_minute: int = 50
    tokens_per_minute: int = 40_000


class AnthropicRateLimiter:
    """Moving-window rate limiter for requests and tokens."""

    def __init__(self, requests_per_minute: int = 50, tokens_per_minute: int = 40_000):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Maximum requests per minute
            tokens_per_minute: Maximum tokens per minute
        """
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)

        self.request_limit = parse(f"{requests_per_minute}/minute")
        self.token_limit = parse(f"{tokens_per_minute}/minute")

    async def check_rate_limit(self, estimated_tokens: int, identifier: str = "anthropic") -> None:
        """Wait until the request fits within the rate limits."""
        logger.debug(f"Checking rate limit for {estimated_tokens} tokens, identifier: {identifier}")

        if not self.limiter.hit(self.request_limit, identifier):
            await self._wait_for_reset(self.request_limit, identifier, "Request")

        if estimated_tokens >= self.token_limit.amount:
            # hit() can never admit a cost this large
            logger.warning(
                f"Estimated {estimated_tokens} tokens exceeds the {self.token_limit.amount}/minute budget, "
                "skipping the token limit"
            )
            return

        token_identifier = f"{identifier}_tokens"
        if not self.limiter.hit(self.token_limit, token_identifier, cost=estimated_tokens):
            await self._wait_for_reset(self.token_limit, token_identifier, "Token")

    async def _wait_for_reset(self, limit, identifier: str, kind: str) -> None:
        window_stats = self.limiter.get_window_stats(limit, identifier)
        if window_stats:
            wait_time = max(0, window_stats.reset_time - time.time())
            if wait_time > 0:
                logger.warning(f"{kind} rate limit exceeded, waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)


def to_anthropic_messages(messages: Sequence[Message]) -> tuple[str, list[AnthropicMessage]]:
    """Split the log into a system prompt and Anthropic-format turns.

    Tool results become ``tool_result`` blocks; consecutive results are grouped
    into one user turn, which is what the API expects after a multi-call turn.
    """
    system_parts: list[str] = []
    converted: list[AnthropicMessage] = []
    pending_results: list[ContentBlock] = []

    def flush_results() -> None:
        if pending_results:
            converted.append(AnthropicMessage(role="user", content=list(pending_results)))
            pending_results.clear()

    for message in messages:
        if message.role == "tool":
            pending_results.append(ToolResultBlock(tool_use_id=message.tool_call_id, content=message.content))
            continue

        flush_results()
        if message.role == "system":
            system_parts.append(message.content)
        elif message.role == "user":
            converted.append(AnthropicMessage(role="user", content=message.content))
        else:
            blocks: list[ContentBlock] = []
            if message.content:
                blocks.append(TextBlock(text=message.content))
            blocks.extend(
                ToolUseBlock(id=call.id, name=call.name, input=call.arguments) for call in message.tool_calls
            )
            converted.append(AnthropicMessage(role="assistant", content=blocks))

    flush_results()
    return "\n\n".join(system_parts), converted


class AnthropicClient:
    """Model client backed by the Anthropic Messages API."""

    tokenizer: tiktoken.Encoding | None = None
    api_key: str
    client: AsyncAnthropic
    config: AnthropicConfig
    rate_limiter: AnthropicRateLimiter

    def __init__(
        self,
        api_key: str | None = None,
        config: AnthropicConfig | None = None,
        rate_limiter: AnthropicRateLimiter | None = None,
    ):
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            config: Client configuration
            rate_limiter: Shared rate limiter (a private one by default)
        """
        anthropic_api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable is required")

        self.api_key = anthropic_api_key
        self.config = config or AnthropicConfig()
        self.rate_limiter = rate_limiter or AnthropicRateLimiter(
            requests_per_minute=self.config.requests_per_minute,
            tokens_per_minute=self.config.tokens_per_minute,
        )

        # Retries belong to the caller
        self.client = AsyncAnthropic(
            api_key=self.api_key,
            base_url=self.config.base_url,
            max_retries=0,
            timeout=self.config.timeout,
        )

        try:
            # Close approximation for Claude
            self.tokenizer = tiktoken.encoding_for_model("gpt-4")
        except Exception:
            self.tokenizer = None

    async def invoke(self, messages: Sequence[Message], tools: Sequence[LLMToolDefinition]) -> AssistantTurn:
        """Send the conversation and tool set, return the model's next turn.

        Raises:
            ModelInvocationFailed: On any API or transport error
        """
        system_prompt, anthropic_messages = to_anthropic_messages(messages)
        anthropic_tools = [
            AnthropicTool(name=tool.name, description=tool.description, input_schema=tool.input_schema)
            for tool in tools
        ]

        estimated_tokens = self._estimate_tokens(anthropic_messages, system_prompt)
        logger.debug(f"Estimated tokens: {estimated_tokens}")
        await self.rate_limiter.check_rate_limit(estimated_tokens)

        request_params: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "system": system_prompt,
            "messages": [msg.model_dump() for msg in anthropic_messages],
        }
        if anthropic_tools:
            request_params["tools"] = [tool.model_dump() for tool in anthropic_tools]

        logger.debug(
            f"Making Anthropic API call with model {self.config.model}: "
            f"{len(anthropic_messages)} messages, {len(anthropic_tools)} tools"
        )
        try:
            response: AnthropicResponseMessage = await self.client.messages.create(**request_params)
        except APIError as e:
            logger.error(f"Anthropic API call failed: {e}")
            raise ModelInvocationFailed(f"Anthropic API error: {e}") from e

        logger.debug(
            f"Response received - Stop reason: {response.stop_reason}, Content blocks: {len(response.content)}"
        )
        return self._to_assistant_turn(response)

    def _to_assistant_turn(self, response: AnthropicResponseMessage) -> AssistantTurn:
        blocks = self._convert_content_blocks(response.content)
        text = "".join(block.text for block in blocks if isinstance(block, TextBlock))
        tool_calls = [
            ToolCall(id=block.id, name=block.name, arguments=block.input)
            for block in blocks
            if isinstance(block, ToolUseBlock)
        ]

        usage = None
        if response.usage:
            usage = LLMUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            )

        return AssistantTurn(
            content=text or None,
            tool_calls=tool_calls,
            stop_reason=response.stop_reason,
            usage=usage,
        )

    def _convert_content_blocks(self, anthropic_content: list[AnthropicContentBlock]) -> list[ContentBlock]:
        """Convert Anthropic content blocks to our ContentBlock types."""
        converted_blocks: list[ContentBlock] = []
        for block in anthropic_content:
            block_dict = block.model_dump() if hasattr(block, "model_dump") else dict(block)

            if block_dict.get("type") == "text":
                converted_blocks.append(TextBlock.model_validate(block_dict))
            elif block_dict.get("type") == "tool_use":
                converted_blocks.append(ToolUseBlock.model_validate(block_dict))
            else:
                logger.warning(f"Unknown content block type: {block_dict.get('type')}")

        return converted_blocks

    def _estimate_tokens(self, messages: list[AnthropicMessage], system_prompt: str) -> int:
        """Estimate token count for rate limiting."""
        text_content = system_prompt

        for message in messages:
            if isinstance(message.content, str):
                text_content += message.content
                continue
            for block in message.content:
                if isinstance(block, TextBlock):
                    text_content += block.text
                elif isinstance(block, ToolResultBlock):
                    text_content += block.content
                elif isinstance(block, ToolUseBlock):
                    text_content += str(block.input)

        return self.estimate_text_tokens(text_content)

    def estimate_text_tokens(self, text: str) -> int:
        """Estimate token count for a piece of text."""
        try:
            return len(self.tokenizer.encode(text)) if self.tokenizer else len(text) // 4
        except Exception:
            # Fallback: roughly 4 characters per token
            return len(text) // 4
