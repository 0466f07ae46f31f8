"""Typed failures raised by the agent core.

Everything here is a protocol-level failure: it aborts the agent loop and is
surfaced to the caller. Capability failures (missing files, non-zero exit codes)
never use these types; they travel back to the model as tool-result text.
"""


class AgentError(Exception):
    """Base class for all agent errors."""


class ToolError(AgentError):
    """Base class for tool registry and dispatch errors."""


class DuplicateToolName(ToolError):
    """A tool with the same name is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool '{name}' is already registered")


class UnknownTool(ToolError):
    """The requested tool is not in the registry."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class RegistryFrozen(ToolError):
    """The registry no longer accepts new tools."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot register '{name}': registry is frozen while the agent loop runs")


class InvalidArguments(ToolError):
    """Tool call arguments do not match the tool's parameter schema."""

    def __init__(self, tool_name: str, errors: list[str]):
        self.tool_name = tool_name
        self.errors = errors
        super().__init__(f"Invalid arguments for tool '{tool_name}': {'; '.join(errors)}")


class ModelError(AgentError):
    """Base class for model invocation errors."""


class ModelInvocationFailed(ModelError):
    """The model endpoint could not be reached or returned an error."""


class EmptyResponse(ModelError):
    """The model returned neither text nor tool calls."""

    def __init__(self) -> None:
        super().__init__("Model returned an empty response with no content and no tool calls")


class ConversationProtocolError(AgentError):
    """A message was appended out of order (e.g. an unanswered tool call)."""
