"""Base types and definitions for tools."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from minicursor.models.llm import LLMToolDefinition

ToolHandler = Callable[[Any], Awaitable[str]]


class ToolInput(BaseModel):
    """Base class for tool argument schemas.

    Fields are snake_case in Python and exposed to the model under their
    camelCase aliases.
    """

    class Config:
        populate_by_name = True
        extra = "ignore"


@dataclass(frozen=True)
class ToolDefinition:
    """Definition of a tool available to the agent."""

    name: str
    description: str
    input_schema_class: type[ToolInput]
    handler: ToolHandler

    def get_json_schema(self) -> dict[str, Any]:
        """Get JSON schema for this tool's input."""
        return self.input_schema_class.model_json_schema(by_alias=True)

    def parse_input(self, raw_input: dict[str, Any]) -> ToolInput:
        """Parse and validate tool input."""
        return self.input_schema_class.model_validate(raw_input)

    def to_llm_tool(self) -> LLMToolDefinition:
        """Schema-only view sent to the model."""
        return LLMToolDefinition(name=self.name, description=self.description, input_schema=self.get_json_schema())
