"""Model invocation interface shared by all providers."""

from collections.abc import Sequence
from typing import Protocol

from minicursor.models.llm import AssistantTurn, LLMToolDefinition
from minicursor.models.messages import Message


class ModelClient(Protocol):
    """Sends the conversation and tool set to a model, returns its next turn.

    Implementations send the full message log and the full tool set on every
    call and never retry. Endpoint or transport failures are raised as
    ``ModelInvocationFailed``.
    """

    async def invoke(self, messages: Sequence[Message], tools: Sequence[LLMToolDefinition]) -> AssistantTurn: ...
