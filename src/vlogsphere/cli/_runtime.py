"""
Shared runtime helpers for CLI commands: logging, console toasts, and a
short-lived client per command.
"""

import asyncio
import os
from typing import Awaitable, Callable, Optional, TypeVar

import typer

from vlogsphere.client import VlogSphereClient
from vlogsphere.notify import Notifier, Severity

T = TypeVar("T")

_ICONS = {
    Severity.SUCCESS: "✅",
    Severity.ERROR: "❌",
    Severity.INFO: "ℹ️ ",
    Severity.WARNING: "⚠️ ",
}


def configure_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    from vlogsphere.logger import setup_logging

    log_level = "DEBUG" if verbose else "WARNING"
    setup_logging(level=log_level)

    if not verbose:
        os.environ["LOGURU_LEVEL"] = "WARNING"


class ConsoleNotifier(Notifier):
    """Echoes toasts to the terminal."""

    def notify(
        self, message: str, severity: Severity, duration_ms: Optional[int] = None
    ) -> None:
        icon = _ICONS.get(Severity(severity), "")
        typer.echo(f"{icon} {message}", err=severity == Severity.ERROR)


def build_client() -> VlogSphereClient:
    return VlogSphereClient(
        notifier=ConsoleNotifier(),
        on_login_required=lambda path, _from: typer.echo(
            f"   Run `vlogsphere login` first ({path})."
        ),
    )


def run_with_client(action: Callable[[VlogSphereClient], Awaitable[T]]) -> T:
    """Bootstrap a client, run ``action`` against it, then tear it down."""

    async def _main() -> T:
        async with build_client() as client:
            await client.session.bootstrap()
            return await action(client)

    return asyncio.run(_main())


def exit_on_failure(result) -> None:
    if not result.ok:
        raise typer.Exit(code=1)
