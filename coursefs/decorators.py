"""Decorators for coursefs CLI commands."""

import functools
import logging
from typing import Callable, Any
import typer
from rich.console import Console

from .errors import (
    BuildCancelledError,
    ConfigError,
    CourseFSError,
    DirectoryNotFoundError,
    ObjectNotFoundError,
    PermissionDeniedError,
    RemoteNotFoundError,
    TransportError,
)

logger = logging.getLogger(__name__)
console = Console(stderr=True)

EXIT_ERROR = 1
EXIT_NOT_FOUND = 2
EXIT_PERMISSION_DENIED = 3
EXIT_INTERRUPTED = 130


def handle_vfs_errors(func: Callable) -> Callable:
    """
    Decorator to turn coursefs errors into messages and exit codes.

    - ConfigError: Missing or invalid settings (exit 1)
    - DirectoryNotFoundError / ObjectNotFoundError / RemoteNotFoundError: exit 2
    - PermissionDeniedError: Write attempt on the read-only store (exit 3)
    - TransportError and other CourseFSError: Remote failure (exit 1)
    - KeyboardInterrupt / BuildCancelledError: exit 130
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except ConfigError as e:
            console.print(f"[bold red]Configuration error:[/bold red] {e}")
            console.print("[yellow]Tip: set values with 'coursefs config' or COURSEFS_* variables[/yellow]")
            raise typer.Exit(code=EXIT_ERROR)
        except (DirectoryNotFoundError, ObjectNotFoundError, RemoteNotFoundError) as e:
            console.print(f"[bold red]Not found:[/bold red] {e}")
            raise typer.Exit(code=EXIT_NOT_FOUND)
        except PermissionDeniedError as e:
            console.print(f"[bold red]Permission denied:[/bold red] {e}")
            raise typer.Exit(code=EXIT_PERMISSION_DENIED)
        except TransportError as e:
            logger.debug(f"Transport error in {func.__name__}", exc_info=True)
            status = f" (HTTP {e.status_code})" if e.status_code else ""
            console.print(f"[bold red]Remote error{status}:[/bold red] {e}")
            raise typer.Exit(code=EXIT_ERROR)
        except (KeyboardInterrupt, BuildCancelledError):
            console.print("\n[yellow]Operation cancelled[/yellow]")
            raise typer.Exit(code=EXIT_INTERRUPTED)
        except CourseFSError as e:
            logger.debug(f"Error in {func.__name__}", exc_info=True)
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(code=EXIT_ERROR)

    return wrapper
