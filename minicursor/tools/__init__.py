"""Tools the agent can call."""

from minicursor.tools.registry import ToolsRegistry, create_default_registry

__all__ = ["ToolsRegistry", "create_default_registry"]
