"""Focus session commands."""

from datetime import timedelta

import typer

from streakpro_cli.models.focus.duration import to_clock
from streakpro_cli.models.focus.state import SessionSnapshotStore
from streakpro_cli.models.focus.ui import TimerDisplay, show_session_summary
from streakpro_cli.services.config_service import get_config_service, get_principal_id
from streakpro_cli.services.reconciliation_service import get_reconciliation_service
from streakpro_cli.services.session_controller import get_session_controller
from streakpro_cli.services.verification_service import get_verification_service
from streakpro_cli.utils.ui.console import get_console
from streakpro_cli.utils.ui.formatters import (
    format_dict_table,
    format_info,
    format_output,
    format_success,
    format_warning,
)

from .decorators import command_wrapper

app = typer.Typer(help="Focus sessions with breaks", no_args_is_help=True)
console = get_console()


def _print_verdict(result) -> None:
    if result.verified:
        format_success("Session verified")
    else:
        format_warning("Session could not be verified")
    if result.confidence is not None:
        console.print(f"Confidence: {result.confidence:.0%}")
    if result.reasoning:
        console.print(f"[dim]{result.reasoning}[/dim]")


@app.command("start")
@command_wrapper
async def start_session(
    activity_id: int = typer.Argument(..., help="Activity ID"),
    title: str | None = typer.Option(None, "--title", help="Session title"),
    description: str = typer.Option("", "--description", "-d", help="What you worked on"),
    verify: bool = typer.Option(False, "--verify", help="Verify the session with AI afterwards"),
    photo: str | None = typer.Option(None, "--photo", help="Photo reference for verification"),
) -> None:
    """Run a live focus session.

    Keys: space start/pause, b break, s skip break, f back to focus, e end.
    """
    controller = get_session_controller()
    handle = await controller.start(activity_id, title, description)
    if handle.resumed:
        format_info(f"Resuming saved session at {to_clock(handle.engine.state.remaining_seconds)}")

    status = await TimerDisplay(console).run(controller, handle)
    if status == "completed":
        record = await controller.complete(handle)
    else:
        record = await controller.end(handle, "user")
    await controller.drain()
    show_session_summary(record, console)

    if verify:
        if not description:
            description = typer.prompt("Describe what you did")
        result = await controller.verify(handle, description, photo)
        _print_verdict(result)


@app.command("end-open")
@command_wrapper
async def end_open_session(
    activity_id: int = typer.Argument(..., help="Activity ID"),
    output: str = typer.Option("table", "--output", "-o", help="Output format"),
) -> None:
    """Close an interrupted session without recording its totals."""
    controller = get_session_controller()
    record = await controller.abandon(activity_id)
    format_success(f"Closed open session #{record.id} ({record.duration_minutes} min)")
    format_output(record.model_dump(mode="json"), output)


@app.command("verify")
@command_wrapper
async def verify_session(
    activity_id: int = typer.Argument(..., help="Activity ID"),
    description: str = typer.Option(..., "--description", "-d", help="What you worked on"),
    photo: str | None = typer.Option(None, "--photo", help="Photo reference"),
    history_id: int | None = typer.Option(
        None, "--history-id", help="Session to verify (defaults to the latest)"
    ),
) -> None:
    """Verify a recorded session with the AI classifier."""
    verification = get_verification_service()
    result = await verification.attach_verification(
        activity_id, get_principal_id(), description, photo, history_id=history_id
    )
    _print_verdict(result)


@app.command("snapshots")
@command_wrapper
def list_snapshots(
    purge: bool = typer.Option(False, "--purge", help="Delete stale snapshots"),
    older_than: int | None = typer.Option(
        None, "--older-than", help="Age in hours considered stale"
    ),
) -> None:
    """List (or purge) saved session snapshots left by interrupted sessions."""
    config_service = get_config_service()
    store = SessionSnapshotStore(config_service.snapshot_dir)

    if purge:
        hours = older_than if older_than is not None else config_service.config.session.stale_snapshot_hours
        purged = store.purge_stale(timedelta(hours=hours))
        format_success(f"Purged {len(purged)} snapshot(s)")
        return

    snapshots = store.list_snapshots()
    if not snapshots:
        console.print("[yellow]No saved sessions[/yellow]")
        return
    format_dict_table(
        [
            {
                "activity_id": s.activity_id,
                "title": s.title,
                "mode": s.state.mode,
                "remaining": to_clock(s.state.remaining_seconds),
                "breaks_used": s.state.used_breaks,
                "saved_at": s.saved_at[:19],
            }
            for s in snapshots
        ]
    )


@app.command("streak")
@command_wrapper
async def show_streak(
    activity_id: int = typer.Argument(..., help="Activity ID"),
) -> None:
    """Show the number of recorded sessions of an activity."""
    reconciliation = get_reconciliation_service()
    await reconciliation.activities.get_owned(activity_id, get_principal_id())
    count = await reconciliation.streak_count(activity_id)
    console.print(f"Activity #{activity_id}: [bold]{count}[/bold] recorded session(s)")
