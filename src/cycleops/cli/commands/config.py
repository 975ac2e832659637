"""Configuration inspection command."""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table
from sqlalchemy.engine import make_url

from cycleops.core.config import ConfigManager

from ..error_handlers import handle_cli_errors

console = Console()


@click.command()
@click.option("--show", is_flag=True, help="Show current configuration")
@click.option("--export", type=click.Path(dir_okay=False, path_type=Path), help="Write effective configuration to a TOML file")
@click.pass_context
@handle_cli_errors
def config(ctx: click.Context, show: bool, export: Optional[Path]) -> None:
    """Show or export the effective configuration.

    Values come from the TOML file with CYCLEOPS_* environment overrides
    applied. The gateway secret is never printed.

    \b
    Examples:
        cycleops config --show
        cycleops --config ./cycleops.toml config --export effective.toml
    """
    config_manager = ConfigManager(ctx.obj.get("config_file"))

    if export:
        ConfigManager(export).save_config(config_manager.load_config())
        console.print(f"[green]✓ Configuration exported to {export}[/green]")
        return

    show_configuration(config_manager)


def show_configuration(config_manager: ConfigManager) -> None:
    """Display current configuration."""
    config = config_manager.load_config()

    table = Table(title="CycleOps Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Config File", str(config_manager.config_file))
    table.add_row("Log Level", config.general.logging.level.value)
    table.add_row("Log Format", config.general.logging.format)
    table.add_row("Metrics", f"port {config.general.metrics.port}" if config.general.metrics.enabled else "disabled")
    table.add_row("Repair Hold", f"{config.holds.repair_minutes} min")
    table.add_row("Rental Hold", f"{config.holds.rental_minutes} min")
    table.add_row("Sweeper", f"every {config.sweeper.interval_seconds}s" if config.sweeper.enabled else "disabled")
    table.add_row("Gateway", config.gateway.name)
    table.add_row("Gateway URL", config.gateway.base_url)
    table.add_row("Gateway Key", config.gateway.key_id or "[red]not set[/red]")
    table.add_row("Gateway Secret", "********" if config.gateway.key_secret else "[red]not set[/red]")
    table.add_row("Currency", config.gateway.currency)
    table.add_row("Write Attempts", str(config.concurrency.max_write_attempts))
    table.add_row("Database", make_url(config.storage.database_url).render_as_string(hide_password=True))

    console.print(table)
