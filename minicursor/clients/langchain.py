"""Model client over any LangChain chat model that supports tool binding."""

import json
from collections.abc import Sequence
from typing import Any

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_openai import ChatOpenAI

from minicursor.exceptions import ModelInvocationFailed
from minicursor.models.llm import AssistantTurn, LLMToolDefinition, LLMUsage
from minicursor.models.messages import Message, ToolCall
from minicursor.utils.logging import get_logger

logger = get_logger(__name__)


def to_langchain_messages(messages: Sequence[Message]) -> list[BaseMessage]:
    converted: list[BaseMessage] = []
    for message in messages:
        if message.role == "system":
            converted.append(SystemMessage(content=message.content))
        elif message.role == "user":
            converted.append(HumanMessage(content=message.content))
        elif message.role == "tool":
            converted.append(ToolMessage(content=message.content, tool_call_id=message.tool_call_id))
        else:
            converted.append(
                AIMessage(
                    content=message.content or "",
                    tool_calls=[
                        {"id": call.id, "name": call.name, "args": call.arguments} for call in message.tool_calls
                    ],
                )
            )
    return converted


def to_langchain_tool(tool: LLMToolDefinition) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {"name": tool.name, "description": tool.description, "parameters": tool.input_schema},
    }


def _text_content(content: str | list[Any]) -> str:
    """Flatten an AIMessage's content, which providers return as a string or a block list."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class LangChainClient:
    """Model client that drives a LangChain chat model.

    The tool set is bound on every call, so the client holds no state between
    invocations besides the model itself.
    """

    def __init__(self, model: BaseChatModel):
        self.model = model

    @classmethod
    def anthropic(
        cls,
        model: str,
        api_key: str,
        base_url: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 4096,
    ) -> "LangChainClient":
        """Build a client over ChatAnthropic."""
        options: dict[str, Any] = {}
        if base_url:
            options["base_url"] = base_url

        chat_model = ChatAnthropic(
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            api_key=api_key,
            max_retries=0,
            **options,
        )
        return cls(chat_model)

    @classmethod
    def openai(
        cls,
        model: str,
        api_key: str,
        base_url: str | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> "LangChainClient":
        """Build a client over ChatOpenAI, for any OpenAI-compatible endpoint."""
        options: dict[str, Any] = {}
        if base_url:
            options["base_url"] = base_url
        if max_tokens is not None:
            options["max_tokens"] = max_tokens

        logger.info(f"Building OpenAI-compatible chat model (model={model}, base_url={base_url or 'default'})")
        chat_model = ChatOpenAI(
            model=model,
            temperature=temperature,
            api_key=api_key,
            max_retries=0,
            **options,
        )
        return cls(chat_model)

    async def invoke(self, messages: Sequence[Message], tools: Sequence[LLMToolDefinition]) -> AssistantTurn:
        """Invoke the bound model with the whole conversation.

        Raises:
            ModelInvocationFailed: On any error raised by the model
        """
        model = self.model.bind_tools([to_langchain_tool(tool) for tool in tools]) if tools else self.model
        langchain_messages = to_langchain_messages(messages)

        logger.debug(f"Invoking chat model with {len(langchain_messages)} messages and {len(tools)} tools")
        try:
            response = await model.ainvoke(langchain_messages)
        except Exception as e:
            logger.error(f"Chat model invocation failed: {e}")
            raise ModelInvocationFailed(f"Chat model error: {e}") from e

        logger.debug(f"Response: {json.dumps(response.model_dump(), indent=4, default=str)}")

        tool_calls = [
            ToolCall(id=call["id"], name=call["name"], arguments=call.get("args") or {})
            for call in getattr(response, "tool_calls", None) or []
        ]

        usage = None
        usage_metadata = getattr(response, "usage_metadata", None)
        if usage_metadata:
            usage = LLMUsage(
                input_tokens=usage_metadata.get("input_tokens", 0),
                output_tokens=usage_metadata.get("output_tokens", 0),
                total_tokens=usage_metadata.get("total_tokens", 0),
            )

        text = _text_content(response.content)
        metadata = response.response_metadata or {}
        return AssistantTurn(
            content=text or None,
            tool_calls=tool_calls,
            stop_reason=metadata.get("stop_reason") or metadata.get("finish_reason"),
            usage=usage,
        )
