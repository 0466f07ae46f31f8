"""Tool dispatch: validate a model-issued call and run its handler."""

import asyncio
from collections.abc import Sequence

from pydantic import ValidationError

from minicursor.exceptions import InvalidArguments
from minicursor.models.messages import ToolCall, ToolResult
from minicursor.tools.registry import ToolsRegistry
from minicursor.utils.logging import get_logger

logger = get_logger(__name__)


def format_validation_errors(error: ValidationError) -> list[str]:
    """Turn pydantic errors into ``field: reason`` strings."""
    messages = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "<arguments>"
        messages.append(f"{field}: {item['msg']}")
    return messages


class ToolDispatcher:
    """Runs tool calls against a registry.

    Only protocol problems raise (unknown tool, bad arguments). Anything a
    handler raises is turned into an error payload so the model always gets a
    result to reason about.
    """

    def __init__(self, registry: ToolsRegistry):
        self.registry = registry

    async def dispatch(self, call: ToolCall) -> ToolResult:
        """Execute a single tool call.

        Raises:
            UnknownTool: If no tool with the call's name is registered
            InvalidArguments: If the arguments fail the tool's schema
        """
        tool = self.registry.resolve(call.name)

        try:
            params = tool.parse_input(call.arguments)
        except ValidationError as e:
            errors = format_validation_errors(e)
            logger.error(f"Rejected call {call.id} to {call.name}: {errors}")
            raise InvalidArguments(call.name, errors) from e

        logger.debug(f"Executing tool: {call.name} with input: {call.arguments}")
        try:
            content = await tool.handler(params)
        except Exception as e:
            logger.warning(f"Tool {call.name} failed: {e}")
            return ToolResult(tool_call_id=call.id, content=f"Error: {e!s}", is_error=True)

        logger.debug(f"Tool {call.name} succeeded: {str(content)[:100]}...")
        return ToolResult(tool_call_id=call.id, content=str(content))

    async def dispatch_batch(self, calls: Sequence[ToolCall], concurrent: bool = True) -> list[ToolResult]:
        """Execute all calls from one assistant turn.

        Results are returned in the order the calls were issued, whatever order
        they finish in. When several calls fail at the protocol level the first
        one in issue order is raised, after every call has settled.
        """
        if not concurrent:
            return [await self.dispatch(call) for call in calls]

        outcomes = await asyncio.gather(*(self.dispatch(call) for call in calls), return_exceptions=True)

        results: list[ToolResult] = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)
        return results
