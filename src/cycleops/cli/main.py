#!/usr/bin/env python3
"""CycleOps CLI main entry point.

Operational commands for the request lifecycle engine: running the expiry
sweeper against the configured database and inspecting configuration.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from cycleops import __version__
from cycleops.core.config import ConfigManager
from cycleops.exceptions import ConfigurationError
from cycleops.logging import configure_logging, get_logger

from .commands import config, sweep

logger = get_logger("cycleops.cli")


def setup_logging(config_file: Optional[Path] = None, verbose: int = 0) -> None:
    """Set up logging from the configuration file, raised by ``-v``."""
    logging_config = ConfigManager(config_file).logging_config()
    if verbose > 1:
        logging_config.level = logging.DEBUG
    elif verbose == 1:
        logging_config.level = min(logging_config.level, logging.INFO)
    configure_logging(logging_config)
    logger.debug("CycleOps CLI started", version=__version__, verbose_level=verbose)


@click.group()
@click.version_option(version=__version__, prog_name="cycleops")
@click.option(
    "--config", "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Configuration file path",
)
@click.option(
    "--verbose", "-v",
    count=True,
    help="Increase verbosity (-v for INFO, -vv for DEBUG)",
)
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[Path], verbose: int) -> None:
    """CycleOps: bicycle repair and rental request lifecycle engine.

    \b
    Examples:
        cycleops sweep --once                 # Expire stale requests and exit
        cycleops sweep --interval 30          # Sweep every 30 seconds
        cycleops config --show
    """
    try:
        setup_logging(config_file, verbose)
    except ConfigurationError as e:
        raise click.ClickException(e.message) from e

    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["verbose"] = verbose


cli.add_command(sweep.sweep)
cli.add_command(config.config)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
