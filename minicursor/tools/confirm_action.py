"""Interactive confirmation tool and its input sources."""

import asyncio
from collections.abc import Iterable
from typing import Protocol

from pydantic import Field
from rich.console import Console

from minicursor.tools.base import ToolDefinition, ToolInput
from minicursor.utils.logging import get_logger

logger = get_logger(__name__)

CONFIRMED = "User confirmed, continue"
DECLINED = "User cancelled the operation"

_YES_ANSWERS = {"y", "yes"}


class InputSource(Protocol):
    """Source of operator answers for confirm_action."""

    def read_line(self, prompt: str) -> str:
        """Show ``prompt`` and block until one line of input is available."""
        ...


class TerminalInputSource:
    """Reads answers from the controlling terminal."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def read_line(self, prompt: str) -> str:
        try:
            return self.console.input(f"[bold yellow]{prompt}[/bold yellow] (y/N): ")
        except EOFError:
            # Closed stdin counts as no answer
            return ""


class ScriptedInputSource:
    """Replays canned answers in order; answers "" once exhausted."""

    def __init__(self, answers: Iterable[str]):
        self._answers = list(answers)
        self.prompts: list[str] = []

    def read_line(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._answers:
            return ""
        return self._answers.pop(0)


class StaticInputSource:
    """Gives the same answer to every prompt, for non-interactive runs."""

    def __init__(self, answer: str = ""):
        self.answer = answer

    def read_line(self, prompt: str) -> str:
        logger.info(f"Non-interactive confirmation for '{prompt}': answering '{self.answer}'")
        return self.answer


def is_confirmed(answer: str) -> bool:
    return answer.lower() in _YES_ANSWERS


class ConfirmActionInput(ToolInput):
    """Input schema for confirm_action."""

    prompt: str = Field(..., description="Confirmation question shown to the user")


def create_confirm_action_tool(input_source: InputSource) -> ToolDefinition:
    # One prompt on the terminal at a time, so each answer belongs to its own question
    read_lock = asyncio.Lock()

    async def confirm_action(params: ConfirmActionInput) -> str:
        async with read_lock:
            # The read blocks, so run it off the event loop to let sibling calls finish
            answer = await asyncio.to_thread(input_source.read_line, params.prompt)
        confirmed = is_confirmed(answer)
        logger.info(f'[tool] confirm_action("{params.prompt}") - {"confirmed" if confirmed else "declined"}')
        return CONFIRMED if confirmed else DECLINED

    return ToolDefinition(
        name="confirm_action",
        description=(
            "Ask the user to confirm whether to continue with an operation and return their answer. "
            "Use this instead of asking in plain text, since the terminal cannot reply to plain text questions."
        ),
        input_schema_class=ConfirmActionInput,
        handler=confirm_action,
    )
