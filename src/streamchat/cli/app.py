"""Main CLI application using Typer."""
import asyncio
import logging

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from ..conversation import ConversationEngine, Message, Role, TurnOutcome
from ..errors import ChatError, MissingCredential
from .providers import get_llm, get_settings

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="streamchat",
    help="Minimal streaming chat client for OpenAI-compatible APIs",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()


class StreamPrinter:
    """Log listener that prints assistant text as it streams in.

    Tracks how much of the tail assistant message has been printed and
    writes only the new suffix on each notification.
    """

    def __init__(self, out: Console) -> None:
        self.out = out
        self._index: int | None = None
        self._printed = 0

    def __call__(self, messages: tuple[Message, ...]) -> None:
        last = messages[-1]
        if last.role != Role.ASSISTANT:
            return

        index = len(messages) - 1
        if index != self._index:
            self._index = index
            self._printed = 0
            self.out.print("[bold green]Assistant:[/bold green] ", end="")

        new_text = last.content[self._printed:]
        if new_text:
            self.out.print(new_text, end="", markup=False, highlight=False)
            self._printed = len(last.content)


def _print_error(error: ChatError) -> None:
    if isinstance(error, MissingCredential):
        console.print("[red]Error: API key is required[/red]")
    else:
        console.print(f"\n[red]Error: {error}[/red]")


@app.command()
def chat(
    provider: str | None = typer.Option(
        None,
        "--provider",
        "-p",
        help="Provider to use: openai or deepseek (default: LLM_PROVIDER or openai)"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model to request (default: provider default)"
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Stream read timeout in seconds"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging"
    ),
):
    """Interactive chat with streamed replies."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    async def _chat():
        try:
            settings = get_settings(provider=provider, model=model, timeout=timeout)
            llm = get_llm(settings, console)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)

        async with llm:
            engine = ConversationEngine(
                llm,
                greeting=settings.greeting,
                strict_events=settings.strict_events,
            )
            engine.subscribe(StreamPrinter(console))
            engine.on_error(_print_error)

            console.print(f"[bold cyan]streamchat[/bold cyan] [dim]({llm.model})[/dim]")
            console.print("[dim]Type 'exit', 'quit', or 'q' to leave[/dim]\n")
            engine.seed()
            console.print("\n")

            while True:
                try:
                    user_input = console.input("[bold yellow]You:[/bold yellow] ")

                    if not user_input.strip():
                        continue

                    if user_input.strip().lower() in ('exit', 'quit', 'q'):
                        console.print("[dim]Goodbye![/dim]")
                        break

                    result = await engine.send(user_input)
                    if result is not None and result.outcome != TurnOutcome.FAILED:
                        console.print("\n")

                except KeyboardInterrupt:
                    console.print("\n[dim]Goodbye![/dim]")
                    break
                except EOFError:
                    console.print("\n[dim]Goodbye![/dim]")
                    break

    try:
        asyncio.run(_chat())
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted.[/dim]")


@app.callback()
def callback():
    """Streaming chat client."""


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
