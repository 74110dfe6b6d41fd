"""Activity management commands."""

import typer

from streakpro_cli.services.activity_service import get_activity_service
from streakpro_cli.services.config_service import get_config_service, get_principal_id
from streakpro_cli.utils.ui.formatters import format_error, format_output, format_success

from .decorators import command_wrapper

app = typer.Typer(help="Activity management commands", no_args_is_help=True)


@app.command("list")
@command_wrapper
async def list_activities(
    output: str = typer.Option("pretty", "--output", "-o", help="Output format"),
) -> None:
    """List activities with their streaks."""
    activity_service = get_activity_service()

    activities = await activity_service.list_activities(get_principal_id())
    format_output([a.model_dump(mode="json") for a in activities], output)


@app.command("show")
@command_wrapper
async def show_activity(
    activity_id: int = typer.Argument(..., help="Activity ID"),
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Show activity details."""
    activity_service = get_activity_service()

    activity = await activity_service.get_owned(activity_id, get_principal_id())
    format_output(activity.model_dump(mode="json"), output)


@app.command("add")
@command_wrapper
async def add_activity(
    title: str = typer.Argument(..., help="Activity title"),
    total_time: int = typer.Option(..., "--minutes", "-m", help="Focus minutes per session"),
    description: str = typer.Option("", "--description", "-d", help="Description"),
    break_minutes: int | None = typer.Option(None, "--break-minutes", help="Length of one break"),
    break_count: int | None = typer.Option(None, "--breaks", help="Breaks allowed per session"),
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Create a new activity."""
    settings = get_config_service().config.session
    activity_service = get_activity_service()

    activity = await activity_service.create_activity(
        get_principal_id(),
        title,
        total_time=total_time,
        description=description,
        break_minutes=settings.default_break_minutes if break_minutes is None else break_minutes,
        break_count=settings.default_break_count if break_count is None else break_count,
    )
    format_success(f"Activity created: #{activity.id}")
    format_output(activity.model_dump(mode="json"), output)


@app.command("update")
@command_wrapper
async def update_activity(
    activity_id: int = typer.Argument(..., help="Activity ID"),
    title: str | None = typer.Option(None, "--title", help="Activity title"),
    total_time: int | None = typer.Option(None, "--minutes", "-m", help="Focus minutes per session"),
    description: str | None = typer.Option(None, "--description", "-d", help="Description"),
    break_minutes: int | None = typer.Option(None, "--break-minutes", help="Length of one break"),
    break_count: int | None = typer.Option(None, "--breaks", help="Breaks allowed per session"),
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Update an activity."""
    updates = {
        "title": title,
        "total_time": total_time,
        "description": description,
        "break_minutes": break_minutes,
        "break_count": break_count,
    }
    updates = {k: v for k, v in updates.items() if v is not None}
    if not updates:
        format_error("No updates specified")
        raise typer.Exit(2)

    activity_service = get_activity_service()
    activity = await activity_service.update_activity(activity_id, get_principal_id(), **updates)
    format_success(f"Activity updated: #{activity_id}")
    format_output(activity.model_dump(mode="json"), output)


@app.command("delete")
@command_wrapper
async def delete_activity(
    activity_id: int = typer.Argument(..., help="Activity ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete an activity."""
    if not yes and not typer.confirm(f"Are you sure you want to delete activity #{activity_id}?"):
        format_error("Cancelled")
        raise typer.Exit(0)

    activity_service = get_activity_service()
    await activity_service.delete_activity(activity_id, get_principal_id())
    format_success(f"Activity deleted: #{activity_id}")
