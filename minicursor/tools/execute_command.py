"""Shell command execution tool."""

import asyncio
import os

from pydantic import Field

from minicursor.tools.base import ToolDefinition, ToolInput
from minicursor.utils.logging import get_logger

logger = get_logger(__name__)

SPAWN_FAILED_EXIT_CODE = -1


class ExecuteCommandInput(ToolInput):
    """Input schema for execute_command."""

    command: str = Field(..., min_length=1, description="The shell command to execute")
    working_directory: str | None = Field(
        None,
        alias="workingDirectory",
        description="Directory to run the command in (recommended). Do not also cd inside the command.",
    )


def success_message(command: str, working_directory: str | None) -> str:
    message = f"Command executed successfully: {command}"
    if working_directory:
        # Steer follow-up calls toward the parameter instead of cd
        message += (
            f'\n\nImportant: the command ran in directory "{working_directory}". '
            f'To keep running commands in this directory, pass workingDirectory: "{working_directory}" '
            "again instead of using cd."
        )
    return message


def failure_message(exit_code: int, error: str | None = None) -> str:
    message = f"Command failed with exit code {exit_code}"
    if error:
        message += f"\nError: {error}"
    return message


async def execute_command(params: ExecuteCommandInput) -> str:
    """Run a command through the shell with the operator's terminal attached.

    Output goes straight to our stdout/stderr; only the exit status comes back.
    Resolves once the process has exited or failed to start.
    """
    command = params.command
    working_directory = params.working_directory
    cwd = working_directory or os.getcwd()

    location = f" - working directory: {working_directory}" if working_directory else ""
    logger.info(f'[tool] execute_command("{command}"){location}')

    if working_directory and command.lstrip().startswith("cd "):
        logger.warning(f'execute_command("{command}") changes directory although workingDirectory is set')

    try:
        process = await asyncio.create_subprocess_shell(command, cwd=cwd)
        exit_code = await process.wait()
    except OSError as e:
        logger.warning(f'[tool] execute_command("{command}") - failed to start: {e}')
        return failure_message(SPAWN_FAILED_EXIT_CODE, str(e))

    if exit_code == 0:
        logger.info(f'[tool] execute_command("{command}") - succeeded')
        return success_message(command, working_directory)

    logger.warning(f'[tool] execute_command("{command}") - failed with exit code {exit_code}')
    return failure_message(exit_code)


def create_execute_command_tool() -> ToolDefinition:
    return ToolDefinition(
        name="execute_command",
        description=(
            "Execute a shell command, optionally in a given working directory. "
            "Output is shown to the user in real time; only the exit status is returned."
        ),
        input_schema_class=ExecuteCommandInput,
        handler=execute_command,
    )
