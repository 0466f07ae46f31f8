"""Command-line front end: run the agent on one task in the current directory."""

import asyncio
import sys

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

from minicursor.config import AgentConfig, build_client
from minicursor.exceptions import AgentError
from minicursor.services.agent import AgentLoop, AgentLoopResult, AgentStatus
from minicursor.tools.confirm_action import TerminalInputSource
from minicursor.tools.registry import create_default_registry
from minicursor.utils.logging import LogConfig, setup_logging


class AgentCLI:
    """Runs a single agent task and renders the outcome."""

    def __init__(self, config: AgentConfig, console: Console | None = None):
        self.config = config
        self.console = console or Console()

    def run(self, task: str) -> int:
        """Run the task, returning the process exit status."""
        registry = create_default_registry(TerminalInputSource(self.console))
        try:
            client = build_client(self.config)
        except ValueError as e:
            self.console.print(f"[red]❌ Configuration error: {e}[/red]")
            return 1

        agent = AgentLoop(client, registry, max_iterations=self.config.max_iterations)

        self.console.print("[black on green]⏳ Waiting for the model...[/black on green]")
        try:
            result = asyncio.run(agent.run(task))
        except AgentError as e:
            self.console.print(f"\n[red]❌ Error: {e}[/red]\n")
            return 1
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Interrupted[/yellow]")
            return 130

        self._display_result(result)
        return 0

    def _display_result(self, result: AgentLoopResult) -> None:
        if result.status == AgentStatus.TERMINATED_BY_LIMIT:
            self.console.print(
                f"[yellow]⚠ Stopped after {result.iterations} iterations without a final answer[/yellow]"
            )

        self.console.print(
            Panel(
                Markdown(result.content or "_(no answer)_"),
                title="[bold green]✨ Final answer[/bold green]",
                border_style="green",
                padding=(1, 2),
            )
        )
        self.console.print(
            f"[dim]{result.iterations} iteration(s), "
            f"{result.usage.input_tokens} input / {result.usage.output_tokens} output tokens[/dim]"
        )


def main() -> None:
    """Main entry point for the agent CLI."""
    config = AgentConfig.from_env()
    setup_logging(LogConfig(level=config.log_level))

    task = " ".join(sys.argv[1:]).strip()
    if not task:
        task = Prompt.ask("[bold cyan]Task[/bold cyan]").strip()
    if not task:
        print("No task given", file=sys.stderr)
        sys.exit(2)

    sys.exit(AgentCLI(config).run(task))


if __name__ == "__main__":
    main()
