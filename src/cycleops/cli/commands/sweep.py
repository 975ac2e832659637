"""Expiry sweeper command."""

import time
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from cycleops.constants import MAX_SWEEP_INTERVAL_SECONDS, MIN_SWEEP_INTERVAL_SECONDS
from cycleops.core.config import ConfigManager
from cycleops.infrastructure.metrics import get_metrics
from cycleops.infrastructure.storage import Database
from cycleops.logging import get_logger
from cycleops.services import RequestService, SweepReport

from ..error_handlers import handle_cli_errors

console = Console()
logger = get_logger(__name__)


@click.command()
@click.option("--once", is_flag=True, help="Run a single sweep and exit")
@click.option(
    "--interval",
    type=click.IntRange(MIN_SWEEP_INTERVAL_SECONDS, MAX_SWEEP_INTERVAL_SECONDS),
    help="Seconds between sweeps (overrides sweeper.interval_seconds)",
)
@click.option("--metrics-port", type=click.IntRange(1, 65535), help="Serve Prometheus metrics on this port")
@click.pass_context
@handle_cli_errors
def sweep(ctx: click.Context, once: bool, interval: Optional[int], metrics_port: Optional[int]) -> None:
    """Expire pending and unpaid requests whose hold window has elapsed.

    \b
    Examples:
        cycleops sweep --once
        cycleops sweep --interval 30 --metrics-port 9100
    """
    config = ConfigManager(ctx.obj.get("config_file")).load_config()

    database = Database(config.storage.database_url, echo=config.storage.echo)
    try:
        database.create_schema()
        service = RequestService.from_database(database, config)

        port = metrics_port or (config.general.metrics.port if config.general.metrics.enabled else None)
        if port:
            get_metrics().start_metrics_server(port)

        if once:
            result = service.run_expiry_sweep()
            report = result.unwrap()
            show_report(report)
            return

        if not config.sweeper.enabled and interval is None:
            console.print("[yellow]Sweeper is disabled in configuration; use --once or --interval[/yellow]")
            return

        service.sweeper.interval_seconds = interval or config.sweeper.interval_seconds
        service.sweeper.start()
        console.print(
            f"[green]Sweeping every {service.sweeper.interval_seconds}s, press Ctrl+C to stop[/green]"
        )
        try:
            while service.sweeper.is_running:
                time.sleep(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Stopping sweeper[/yellow]")
        finally:
            service.sweeper.stop()
    finally:
        database.dispose()


def show_report(report: SweepReport) -> None:
    table = Table(title="Expiry Sweep")
    table.add_column("Outcome", style="cyan")
    table.add_column("Requests", style="green", justify="right")

    table.add_row("Expired", str(len(report.expired)))
    table.add_row("Skipped", str(len(report.skipped)))
    table.add_row("Failed", str(len(report.failed)))
    table.add_row("Duration", f"{report.duration_seconds:.3f}s")
    console.print(table)

    for kind, count in sorted(report.expired_by_kind.items()):
        console.print(f"  {kind}: {count} expired")
