"""LLM-related data models and types (provider-agnostic)."""

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field

from minicursor.models.messages import ToolCall


# Content block types
class TextBlock(BaseModel):
    """Text content block."""

    type: Literal["text"] = "text"
    text: str

    class Config:
        extra = "ignore"  # Ignore any additional fields from Anthropic


class ToolUseBlock(BaseModel):
    """Tool use content block."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any]

    class Config:
        extra = "ignore"  # Ignore any additional fields from Anthropic


class ToolResultBlock(BaseModel):
    """Tool result content block."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str
    is_error: bool = False

    class Config:
        extra = "ignore"


ContentBlock = TextBlock | ToolUseBlock | ToolResultBlock


class LLMToolDefinition(BaseModel):
    """Tool definition as sent to the model."""

    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass
class LLMUsage:
    """Token usage information from the LLM provider."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def add(self, other: "LLMUsage | None") -> None:
        """Accumulate usage from another response."""
        if other is None:
            return
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.total_tokens += other.total_tokens


class AssistantTurn(BaseModel):
    """One model response: either a final answer or a request to act."""

    content: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    stop_reason: str | None = None
    usage: LLMUsage | None = None

    @property
    def is_final(self) -> bool:
        return not self.tool_calls

    @property
    def is_empty(self) -> bool:
        return not self.tool_calls and not (self.content and self.content.strip())
