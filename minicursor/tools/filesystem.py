"""File system tools: read_file, write_file and list_directory."""

import asyncio
import os
from pathlib import Path

from pydantic import Field

from minicursor.tools.base import ToolDefinition, ToolInput
from minicursor.utils.logging import get_logger

logger = get_logger(__name__)


class ReadFileInput(ToolInput):
    """Input schema for read_file."""

    file_path: str = Field(..., alias="filePath", description="Path of the file to read")


class WriteFileInput(ToolInput):
    """Input schema for write_file."""

    file_path: str = Field(..., alias="filePath", description="Path of the file to write")
    content: str = Field(..., description="Content to write to the file")


class ListDirectoryInput(ToolInput):
    """Input schema for list_directory."""

    directory_path: str = Field(..., alias="directoryPath", description="Path of the directory to list")


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


async def read_file(params: ReadFileInput) -> str:
    try:
        content = await asyncio.to_thread(Path(params.file_path).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f'[tool] read_file("{params.file_path}") - error: {e}')
        return f"Failed to read file: {e}"

    logger.info(f'[tool] read_file("{params.file_path}") - read {len(content)} characters')
    return f"File content:\n{content}"


async def write_file(params: WriteFileInput) -> str:
    try:
        await asyncio.to_thread(_write_text, Path(params.file_path), params.content)
    except OSError as e:
        logger.warning(f'[tool] write_file("{params.file_path}") - error: {e}')
        return f"Failed to write file: {e}"

    logger.info(f'[tool] write_file("{params.file_path}") - wrote {len(params.content)} characters')
    return f"File written successfully: {params.file_path}"


async def list_directory(params: ListDirectoryInput) -> str:
    try:
        entries = await asyncio.to_thread(os.listdir, params.directory_path)
    except OSError as e:
        logger.warning(f'[tool] list_directory("{params.directory_path}") - error: {e}')
        return f"Failed to list directory: {e}"

    logger.info(f'[tool] list_directory("{params.directory_path}") - found {len(entries)} entries')
    listing = "\n".join(f"- {entry}" for entry in entries)
    return f"Directory contents:\n{listing}"


def create_read_file_tool() -> ToolDefinition:
    return ToolDefinition(
        name="read_file",
        description=(
            "Read the full text content of a file. Use this when asked to read, inspect or analyze a file. "
            "Accepts a relative or absolute path."
        ),
        input_schema_class=ReadFileInput,
        handler=read_file,
    )


def create_write_file_tool() -> ToolDefinition:
    return ToolDefinition(
        name="write_file",
        description="Write content to a file, creating missing parent directories. Overwrites existing files.",
        input_schema_class=WriteFileInput,
        handler=write_file,
    )


def create_list_directory_tool() -> ToolDefinition:
    return ToolDefinition(
        name="list_directory",
        description="List all files and folders in a directory.",
        input_schema_class=ListDirectoryInput,
        handler=list_directory,
    )
