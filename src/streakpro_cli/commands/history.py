"""Session history commands."""

import typer

from streakpro_cli.services.config_service import get_principal_id
from streakpro_cli.services.reconciliation_service import get_reconciliation_service
from streakpro_cli.utils.ui.formatters import format_output

from .decorators import command_wrapper

app = typer.Typer(help="Session history commands", no_args_is_help=True)


@app.command("list")
@command_wrapper
async def list_history(
    activity_id: int = typer.Argument(..., help="Activity ID"),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Show at most N sessions"),
    output: str = typer.Option("pretty", "--output", "-o", help="Output format"),
) -> None:
    """List recorded sessions of an activity, newest first."""
    reconciliation = get_reconciliation_service()

    records = await reconciliation.list_history(activity_id, get_principal_id(), limit)
    format_output([r.model_dump(mode="json") for r in records], output)


@app.command("show")
@command_wrapper
async def show_history(
    activity_id: int = typer.Argument(..., help="Activity ID"),
    history_id: int = typer.Argument(..., help="History record ID"),
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Show one recorded session."""
    reconciliation = get_reconciliation_service()

    record = await reconciliation.get_history(activity_id, history_id, get_principal_id())
    format_output(record.model_dump(mode="json"), output)
