"""Main entry point for StreakPro CLI."""

import typer
from rich.console import Console

from streakpro_cli import __version__
from streakpro_cli.commands import activity, config, focus, history

app = typer.Typer(
    name="streakpro",
    help="Streak tracker with timed focus sessions and breaks",
    no_args_is_help=True,
)

console = Console()


# Add subcommands
app.add_typer(activity.app, name="activity", help="Activity management commands")
app.add_typer(focus.app, name="focus", help="Focus sessions with breaks")
app.add_typer(history.app, name="history", help="Session history commands")
app.add_typer(config.app, name="config", help="Configuration management")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]StreakPro CLI[/bold] version [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
