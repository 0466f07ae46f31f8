"""Message and tool call data models."""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


class ToolCall(BaseModel):
    """A tool call requested by the assistant."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True


class ToolResult(BaseModel):
    """Result of a tool call.

    The model only ever sees ``content``; ``is_error`` is kept for local
    diagnostics.
    """

    tool_call_id: str
    content: str
    is_error: bool = False

    class Config:
        frozen = True


class Message(BaseModel):
    """A message in the conversation log."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    tool_call_id: str | None = None

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_role_fields(self) -> "Message":
        """Enforce which fields each role may carry."""
        if self.tool_calls and self.role != "assistant":
            raise ValueError("Only assistant messages can carry tool calls")
        if self.role == "tool" and not self.tool_call_id:
            raise ValueError("Tool result messages must reference a tool call id")
        if self.role != "tool" and self.tool_call_id is not None:
            raise ValueError("Only tool result messages can reference a tool call id")
        if self.role != "assistant" and self.content is None:
            raise ValueError(f"{self.role} messages must have content")
        return self

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str | None, tool_calls: list[ToolCall] | None = None) -> "Message":
        return cls(role="assistant", content=content, tool_calls=tool_calls or [])

    @classmethod
    def tool_result(cls, result: ToolResult) -> "Message":
        return cls(role="tool", content=result.content, tool_call_id=result.tool_call_id)
