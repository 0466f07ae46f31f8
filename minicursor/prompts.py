"""System prompt for the project assistant."""

import os


def get_system_prompt(working_directory: str | None = None, tool_names: list[str] | None = None) -> str:
    """Generate the system prompt: tool catalogue plus operating rules.

    Args:
        working_directory: Directory the agent starts in (defaults to the process cwd)
        tool_names: Registered tool names, listed in the catalogue when given

    Returns:
        System prompt string
    """
    cwd = working_directory or os.getcwd()

    catalogue = {
        "read_file": "read a file",
        "write_file": "write a file",
        "execute_command": "run a command (supports the workingDirectory parameter)",
        "list_directory": "list a directory",
        "confirm_action": "ask the user to confirm an operation",
    }
    names = tool_names if tool_names is not None else list(catalogue)
    tool_lines = "\n".join(
        f"{i}. {name}: {catalogue.get(name, 'see tool description')}" for i, name in enumerate(names, start=1)
    )

    return f"""You are a project management assistant. Use the tools to complete tasks.

Current working directory: {cwd}

Tools:
{tool_lines}

Important rules for execute_command:
- The workingDirectory parameter switches to the given directory automatically
- When you pass workingDirectory, never use cd in the command
- Wrong: {{ command: "cd react-todo-app && npm install", workingDirectory: "react-todo-app" }}
  This fails, because the command already runs inside react-todo-app and cd react-todo-app cannot find it
- Right: {{ command: "npm install", workingDirectory: "react-todo-app" }}
- When you need the user's confirmation, call confirm_action. Do not ask in plain text and wait for
  an answer, the terminal cannot reply.

Keep replies short and only say what you did."""
