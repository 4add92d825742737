"""Bridge between Typer's synchronous commands and readyup's async core."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

import typer

T = TypeVar("T")

EXIT_INTERRUPTED = 130


def async_command(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., T]:
    """Run an async command in a fresh event loop.

    Ctrl-C cancels the command's task (stopping probes and restart backoff
    mid-sleep) and exits with status 130.

    Usage:
        @app.command()
        @async_command
        async def up(config_file: Path) -> None:
            await up_command(config_file)

    Args:
        func: Async command function.

    Returns:
        Synchronous wrapper Typer can register.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return asyncio.run(func(*args, **kwargs))
        except KeyboardInterrupt:
            typer.echo("Interrupted", err=True)
            raise typer.Exit(EXIT_INTERRUPTED) from None

    return wrapper


__all__ = ["EXIT_INTERRUPTED", "async_command"]
