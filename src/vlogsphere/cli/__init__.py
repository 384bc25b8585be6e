"""
VlogSphere CLI.

This package splits CLI commands into focused modules:
- auth:   login, logout, whoami, register, update-profile, update-password
- social: toggle, follow, state
"""

import typer

from vlogsphere.cli._runtime import configure_logging, run_with_client  # noqa: F401
from vlogsphere.cli.auth import register_commands
from vlogsphere.cli.social import social_app

app = typer.Typer(help="VlogSphere CLI - sessions and social actions")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """
    VlogSphere CLI - sessions and social actions.
    """
    configure_logging(verbose)


# Register top-level commands (login, logout, whoami, ...)
register_commands(app)

# Attach subcommand groups
app.add_typer(social_app, name="social")

if __name__ == "__main__":
    app()
