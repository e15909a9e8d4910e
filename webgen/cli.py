"""CLI and REPL for WebGen."""

import asyncio
import logging
import signal
import sys
from contextlib import suppress
from pathlib import Path
from typing import Any, Awaitable, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax

from webgen.config import Config
from webgen.errors import ChatClientError
from webgen.events import GeneratorEvents
from webgen.generator import WebAppGenerator
from webgen.handlers.console import ConsoleLogBuffer
from webgen.handlers.router import ToolRouter
from webgen.handlers.web import WEB_TOOLS, TavilyToolHandler
from webgen.messages import FileChange, GenerateResult, ProjectFiles
from webgen.tools.vfs import VirtualFileSystem
from webgen.utils.logging import SessionLogger

app = typer.Typer(help="WebGen - Tool-calling web app generator")
console = Console()

SYNTAX_LEXERS = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "jsx",
    ".json": "json",
    ".html": "html",
    ".css": "css",
    ".md": "markdown",
}


class REPL:
    """Interactive REPL for WebGen."""

    def __init__(self, config: Config, log_root: Optional[Path] = None):
        """Initialize REPL.

        Args:
            config: Configuration object
            log_root: Session log directory (default: config.log_dir or ./.webgen/runs)
        """
        self.config = config
        self.logger = SessionLogger(log_root or config.log_dir or Path.cwd() / ".webgen" / "runs")
        self.console_logs = ConsoleLogBuffer()

        router = ToolRouter()
        router.register(self.console_logs, "get_console_logs")
        custom_tools = []
        if config.tavily_api_key:
            web = TavilyToolHandler(config.tavily_api_key, config.tavily_api_url)
            router.register(web, "web_search", "web_reader")
            custom_tools.extend(WEB_TOOLS)

        events = GeneratorEvents(
            on_text=self._on_text,
            on_thinking=self._on_thinking,
            on_tool_call=self._on_tool_call,
            on_tool_result=self._on_tool_result,
            on_file_change=self._on_file_change,
            on_template_change=self._on_template_change,
        )
        self.generator = WebAppGenerator.from_config(
            config,
            custom_tools=custom_tools,
            custom_tool_handler=router,
            events=events,
        )

        self.running = True
        self._logged = 0

    # ------------------------------------------------------------------
    # Event rendering

    def _on_text(self, text: str) -> None:
        console.print(text, end="", markup=False, highlight=False)

    def _on_thinking(self, text: str) -> None:
        console.print(text, end="", style="dim italic", markup=False, highlight=False)

    def _on_tool_call(self, name: str, call_id: str) -> None:
        console.print(f"\n[cyan]→ {name}[/cyan]")

    def _on_tool_result(self, name: str, args: Any, result: str) -> None:
        first_line = result.split("\n", 1)[0]
        style = "red" if result.startswith("Error") else "dim"
        console.print(f"  {first_line[:120]}", style=style, markup=False, highlight=False)

    def _on_template_change(self, template: str, files: ProjectFiles) -> None:
        console.print(f"[green]Initialized template {template} ({len(files)} files)[/green]")

    def _on_file_change(self, files: ProjectFiles, changes: list[FileChange]) -> None:
        for change in changes:
            console.print(f"  [green]{change.action}[/green] {change.path}", highlight=False)

    # ------------------------------------------------------------------
    # Runs

    async def _guarded(self, call: Awaitable[GenerateResult]) -> GenerateResult:
        loop = asyncio.get_running_loop()
        with suppress(NotImplementedError):
            loop.add_signal_handler(signal.SIGINT, self.generator.abort)
        try:
            return await call
        finally:
            with suppress(NotImplementedError):
                loop.remove_signal_handler(signal.SIGINT)

    def run(self, prompt: Optional[str] = None) -> Optional[GenerateResult]:
        """Run one generation (or a retry when prompt is None).

        Args:
            prompt: User instruction

        Returns:
            GenerateResult, or None if the request failed
        """
        before = self.generator.get_files()
        call = self.generator.retry() if prompt is None else self.generator.generate(prompt)

        try:
            result = asyncio.run(self._guarded(call))
        except ChatClientError as e:
            console.print(f"\n[red]{e}[/red]")
            console.print("[dim]Use /retry to try again[/dim]")
            return None
        finally:
            self._flush_transcript()
            self.logger.save_diffs(before, self.generator.get_files())

        console.print()
        self.logger.save_result(result)
        self.show_summary(result)
        return result

    def _flush_transcript(self) -> None:
        messages = self.generator.get_messages()
        self.logger.log_messages(messages[self._logged:])
        self._logged = len(messages)

    def show_summary(self, result: GenerateResult) -> None:
        if result.aborted:
            console.print("[yellow]Generation aborted[/yellow]")
        elif result.max_iterations_reached:
            console.print(
                f"[yellow]Stopped after {self.generator.max_iterations} iterations. "
                "Use /retry to continue.[/yellow]"
            )
        console.print(f"[dim]{len(result.files)} files in project[/dim]")

    def save(self, directory: str) -> None:
        written = VirtualFileSystem(self.generator.get_files()).export(Path(directory))
        console.print(f"[green]Wrote {len(written)} files to {Path(directory).resolve()}[/green]")

    # ------------------------------------------------------------------
    # REPL

    def start(self) -> None:
        """Start the REPL."""
        console.print(Panel.fit(
            "[bold cyan]WebGen[/bold cyan] - Tool-calling web app generator\n"
            f"Model: {self.config.model}\n"
            f"Endpoint: {self.config.api_url}\n"
            "\n"
            "Describe the app you want, or type /help for commands",
            border_style="cyan"
        ))

        while self.running:
            try:
                user_input = console.input("[bold cyan]webgen>[/bold cyan] ").strip()

                if not user_input:
                    continue

                self.handle_input(user_input)

            except KeyboardInterrupt:
                console.print("\n[dim]Use /quit to exit[/dim]")
                continue
            except EOFError:
                break

        console.print("\n[cyan]Goodbye![/cyan]")

    def handle_input(self, user_input: str) -> None:
        """Handle user input (command or prompt).

        Args:
            user_input: User input string
        """
        if user_input.startswith("/"):
            self.handle_command(user_input)
        else:
            self.run(user_input)

    def handle_command(self, command: str) -> None:
        """Handle slash command.

        Args:
            command: Command string (starting with /)
        """
        parts = command.split(maxsplit=1)
        cmd = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ""

        if cmd == "/help":
            self.show_help()
        elif cmd in ("/quit", "/exit"):
            self.running = False
        elif cmd == "/files":
            files = self.generator.get_files()
            if not files:
                console.print("[dim]Project is empty[/dim]")
            for path in sorted(files):
                console.print(f"  {path} [dim]({len(files[path])} chars)[/dim]")
        elif cmd == "/read":
            if not args:
                console.print("[red]Usage: /read <path>[/red]")
                return
            success, content, error = VirtualFileSystem(self.generator.get_files()).read(args)
            if not success:
                console.print(f"[red]{error}[/red]")
                return
            console.print(f"[bold]{args}[/bold]")
            lexer = SYNTAX_LEXERS.get(Path(args).suffix, "text")
            console.print(Syntax(content, lexer, theme="monokai"))
        elif cmd == "/retry":
            self.run()
        elif cmd == "/reset":
            self.generator.reset_messages()
            self._logged = 0
            console.print("[green]Conversation cleared (files kept)[/green]")
        elif cmd == "/save":
            if not args:
                console.print("[red]Usage: /save <dir>[/red]")
                return
            try:
                self.save(args)
            except (OSError, ValueError) as e:
                console.print(f"[red]Error saving project: {e}[/red]")
        elif cmd == "/config":
            config_dict = self.config.to_dict()
            console.print(Panel(
                "\n".join(f"{k}: {v}" for k, v in config_dict.items()),
                title="Configuration",
                border_style="blue"
            ))
        elif cmd == "/log":
            console.print(f"[dim]Session logs: {self.logger.get_log_path()}[/dim]")
        else:
            console.print(f"[red]Unknown command: {cmd}[/red]")
            console.print("[dim]Type /help for available commands[/dim]")

    def show_help(self) -> None:
        """Show help message."""
        help_text = """
**Available Commands:**

- `/files` - List project files
- `/read <path>` - Show a project file
- `/retry` - Re-run the last request without a new message
- `/reset` - Clear the conversation (files are kept)
- `/save <dir>` - Write the project to a directory
- `/config` - Show current configuration
- `/log` - Show session log path
- `/help` - Show this help message
- `/quit` - Exit WebGen

Anything else is sent to the model. Press Ctrl+C during a run to abort it.

**Examples:**

```
Build a counter app with React and TypeScript
Make the button blue
/save ./counter-app
```
        """
        console.print(Markdown(help_text))


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


@app.command()
def main(
    prompt: Optional[str] = typer.Argument(
        None,
        help="Prompt for a one-shot run (default: start the REPL)"
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model", "-m",
        help="Model ID (e.g., gpt-4o)"
    ),
    preset: Optional[str] = typer.Option(
        None,
        "--preset", "-p",
        help="Endpoint preset (openai, openai-3.5, deepseek, ollama)"
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out", "-o",
        help="Directory to write the project to after a one-shot run"
    ),
    no_stream: bool = typer.Option(
        False,
        "--no-stream",
        help="Use non-streaming requests"
    ),
    max_iterations: Optional[int] = typer.Option(
        None,
        "--max-iterations",
        help="Maximum request rounds per run"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable debug logging"
    ),
) -> None:
    """Generate a web app from a prompt, or start an interactive session."""
    setup_logging(verbose)

    # Load configuration
    try:
        config = Config.load()
        if preset:
            config.apply_preset(preset)
    except ValueError as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        sys.exit(1)

    # Command-line overrides
    if model:
        config.model = model
    if no_stream:
        config.stream = False
    if max_iterations is not None:
        config.max_iterations = max_iterations

    # Validate configuration
    errors = config.validate()
    if errors:
        console.print("[red]Configuration errors:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        sys.exit(1)

    repl = REPL(config)

    if prompt is None:
        repl.start()
        return

    result = repl.run(prompt)
    if result is None:
        sys.exit(1)

    if out is not None:
        try:
            repl.save(str(out))
        except (OSError, ValueError) as e:
            console.print(f"[red]Error saving project: {e}[/red]")
            sys.exit(1)


if __name__ == "__main__":
    app()
