"""Output formatters for different formats."""

import json
from typing import Any

import yaml
from rich.console import Console
from rich.table import Table

from streakpro_cli.models.focus.duration import to_clock

console = Console()


def format_output(data: Any, output_format: str = "pretty") -> None:
    """Format and display output based on format."""
    if output_format == "json":
        print(json.dumps(data, indent=2, default=str))
    elif output_format == "yaml":
        print(yaml.dump(data, default_flow_style=False, sort_keys=False))
    elif output_format == "table":
        format_table(data)
    else:
        format_pretty(data)


def format_table(data: Any) -> None:
    """Format data as a table."""
    if not data:
        console.print("[yellow]No data to display[/yellow]")
        return

    if isinstance(data, list):
        if isinstance(data[0], dict):
            format_dict_table(data)
        else:
            for item in data:
                console.print(item)
    elif isinstance(data, dict):
        format_single_item(data)
    else:
        console.print(data)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "✓" if value else "✗"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if value is None:
        return "-"
    return str(value)


def format_dict_table(items: list[dict], columns: list[str] | None = None) -> None:
    """Format a list of dictionaries as a table."""
    if not items:
        console.print("[yellow]No items found[/yellow]")
        return

    columns = columns or list(items[0].keys())

    table = Table(show_header=True, header_style="bold magenta")
    for col in columns:
        table.add_column(col.replace("_", " ").title())

    for item in items:
        table.add_row(*(_format_value(item.get(col, "")) for col in columns))

    console.print(table)


def format_single_item(item: dict) -> None:
    """Format a single item as key-value pairs."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    for key, value in item.items():
        table.add_row(key.replace("_", " ").title(), _format_value(value))

    console.print(table)


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")


# ============================================================================
# Pretty Format Implementation
# ============================================================================


def format_pretty(data: Any) -> None:
    """Format data in the human-friendly layout."""
    if isinstance(data, list):
        if not data:
            console.print("[yellow]No items found[/yellow]")
            return
        if "total_time" in data[0]:
            format_activities_pretty(data)
        elif "focus_duration_seconds" in data[0]:
            format_history_pretty(data)
        else:
            format_dict_table(data)
    elif isinstance(data, dict):
        format_single_item(data)
    else:
        console.print(data)


def format_activities_pretty(activities: list[dict]) -> None:
    """Render activities as one line each with their plan and streak."""
    for activity in activities:
        streak = activity.get("streak_count", 0)
        flame = "🔥" if streak else "·"
        console.print(
            f"[dim]#{activity['id']}[/dim] [bold]{activity['title']}[/bold]  "
            f"[cyan]{activity['total_time']} min[/cyan]  "
            f"[dim]break {activity['break_minutes']} min x {activity['break_count']}[/dim]  "
            f"{flame} {streak}"
        )


def format_history_pretty(records: list[dict]) -> None:
    """Render history records newest first, with focus/break split."""
    for record in records:
        if record.get("ended_at") is None:
            status = "[yellow]open[/yellow]"
        elif record.get("verified"):
            status = "[green]verified[/green]"
        else:
            status = "[dim]recorded[/dim]"
        focus = to_clock(record.get("focus_duration_seconds") or 0)
        breaks = to_clock(record.get("total_break_seconds") or 0)
        console.print(
            f"[dim]#{record['id']}[/dim] {record.get('started_at', '')[:16]}  "
            f"focus [cyan]{focus}[/cyan]  break [cyan]{breaks}[/cyan]  "
            f"{record.get('duration_minutes', 0)} min  {status}"
        )
