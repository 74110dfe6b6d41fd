"""Configuration management commands."""

import typer

from streakpro_cli.models.exceptions import ValidationError
from streakpro_cli.services.config_service import get_config_service
from streakpro_cli.utils.ui.console import get_console
from streakpro_cli.utils.ui.formatters import format_error, format_output, format_success

from .decorators import command_wrapper

app = typer.Typer(help="Configuration management commands", no_args_is_help=True)
console = get_console()


@app.command("show")
@command_wrapper
def show_config(
    output: str = typer.Option("json", "--output", "-o", help="Output format"),
) -> None:
    """Show current configuration."""
    config_service = get_config_service()
    format_output(config_service.config.model_dump(mode="json"), output)


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., session.tick_seconds)"),
) -> None:
    """Get a configuration value."""
    try:
        value = get_config_service().config.get_value(key)
    except KeyError as e:
        raise ValidationError(f"Configuration key '{key}' not found") from e
    console.print(value)


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., classifier.model)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    try:
        config = get_config_service().set_value(key, value)
    except KeyError as e:
        raise ValidationError(f"Configuration key '{key}' not found") from e
    format_success(f"Configuration '{key}' set to '{config.get_value(key)}'")


@app.command("reset")
@command_wrapper
def reset_config(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes and not typer.confirm("Are you sure you want to reset the entire configuration?"):
        format_error("Cancelled")
        raise typer.Exit(0)

    get_config_service().reset_config()
    format_success("Configuration reset to defaults")
