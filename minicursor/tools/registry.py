"""Tools registry for managing agent tools."""

from minicursor.exceptions import DuplicateToolName, RegistryFrozen, UnknownTool
from minicursor.models.llm import LLMToolDefinition
from minicursor.tools.base import ToolDefinition
from minicursor.tools.confirm_action import InputSource, TerminalInputSource, create_confirm_action_tool
from minicursor.tools.execute_command import create_execute_command_tool
from minicursor.tools.filesystem import create_list_directory_tool, create_read_file_tool, create_write_file_tool


class ToolsRegistry:
    """Registry of tool definitions, keyed by unique name.

    Registration happens at startup. Once frozen (the agent loop freezes it
    before the first model call) the registry is read-only.
    """

    def __init__(self, tools: list[ToolDefinition] | None = None):
        self._tools: dict[str, ToolDefinition] = {}
        self._frozen = False
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ToolDefinition) -> None:
        """Register a new tool in the registry."""
        if self._frozen:
            raise RegistryFrozen(tool.name)
        if tool.name in self._tools:
            raise DuplicateToolName(tool.name)
        self._tools[tool.name] = tool

    def resolve(self, name: str) -> ToolDefinition:
        """Look up a tool by name."""
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownTool(name) from None

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def definitions(self) -> list[LLMToolDefinition]:
        """Get the schemas of all tools, in registration order."""
        return [tool.to_llm_tool() for tool in self._tools.values()]

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def create_default_registry(input_source: InputSource | None = None) -> ToolsRegistry:
    """Create a registry with the standard file, command and confirmation tools.

    Args:
        input_source: Where confirm_action reads answers from (defaults to the terminal)
    """
    return ToolsRegistry(
        [
            create_read_file_tool(),
            create_write_file_tool(),
            create_execute_command_tool(),
            create_list_directory_tool(),
            create_confirm_action_tool(input_source or TerminalInputSource()),
        ]
    )
