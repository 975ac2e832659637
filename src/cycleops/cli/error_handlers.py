"""
Centralized error handling for the CLI.

Provides consistent error display and exit codes across all CLI commands.
"""

import sys
from functools import wraps

from rich.console import Console

from cycleops.exceptions import ConfigurationError, CycleOpsError, InfrastructureError
from cycleops.logging import get_logger

console = Console(stderr=True)
logger = get_logger("cycleops.cli")

EXIT_ERROR = 1
EXIT_CONFIGURATION = 2
EXIT_INTERRUPTED = 130


def handle_cli_errors(func):
    """Decorator turning CycleOps errors into a readable message and a non-zero exit."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted[/yellow]")
            sys.exit(EXIT_INTERRUPTED)
        except ConfigurationError as e:
            _print_error(e, "Configuration error")
            sys.exit(EXIT_CONFIGURATION)
        except InfrastructureError as e:
            logger.error(f"CLI command failed: {e.message}", error_code=e.error_code)
            _print_error(e, "Store or gateway unavailable")
            sys.exit(EXIT_ERROR)
        except CycleOpsError as e:
            _print_error(e, "Error")
            sys.exit(EXIT_ERROR)

    return wrapper


def _print_error(error: CycleOpsError, title: str) -> None:
    console.print(f"[red]{title}: {error.message}[/red]")
    if error.help_text:
        console.print(f"[blue]Help: {error.help_text}[/blue]")
    console.print(f"[dim]Error ID: {error.correlation_id}[/dim]")
