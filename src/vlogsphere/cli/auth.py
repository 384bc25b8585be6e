"""
Account commands: login, logout, whoami, register, update-profile,
update-password.
"""

import json

import typer

from vlogsphere.cli._runtime import exit_on_failure, run_with_client


def _parse_fields(fields: list[str]) -> dict:
    """Turn ``key=value`` pairs into a dict, decoding JSON values when possible."""
    patch = {}
    for item in fields:
        if "=" not in item:
            typer.echo(f"❌ Expected key=value, got '{item}'")
            raise typer.Exit(code=1)
        key, value = item.split("=", 1)
        try:
            patch[key] = json.loads(value)
        except json.JSONDecodeError:
            patch[key] = value
    return patch


def register_commands(app: typer.Typer):
    """Attach account commands to the root app."""

    @app.command()
    def login(
        email: str = typer.Argument(help="Account email"),
        password: str = typer.Option(
            ..., "--password", "-p", prompt=True, hide_input=True
        ),
        remember: bool = typer.Option(
            False, "--remember", "-r", help="Keep the session across runs"
        ),
    ):
        """Log in and store the session credentials."""

        async def _login(client):
            result = await client.session.login(email, password, durable=remember)
            if result.ok:
                target = client.session.resolve_redirect()
                typer.echo(f"   Continue at {target}")
                if not remember:
                    typer.echo("   Session is not remembered; pass --remember to keep it.")
            return result

        exit_on_failure(run_with_client(_login))

    @app.command()
    def logout():
        """End the current session."""
        run_with_client(lambda client: client.session.logout())

    @app.command()
    def whoami():
        """Show the authenticated user."""

        async def _whoami(client):
            return client.session.view

        view = run_with_client(_whoami)
        if not view.authenticated:
            typer.echo("Not logged in.")
            raise typer.Exit(code=1)

        profile = view.profile or {}
        typer.echo(f"👤 {profile.get('username') or view.user_id}")
        typer.echo(f"   ID: {view.user_id}")
        if profile.get("email"):
            typer.echo(f"   Email: {profile['email']}")

    @app.command()
    def register(
        username: str = typer.Argument(help="Desired username"),
        email: str = typer.Argument(help="Account email"),
        password: str = typer.Option(
            ...,
            "--password",
            "-p",
            prompt=True,
            hide_input=True,
            confirmation_prompt=True,
        ),
    ):
        """Create an account. Does not log in."""
        details = {"username": username, "email": email, "password": password}
        exit_on_failure(run_with_client(lambda client: client.session.register(details)))

    @app.command("update-profile")
    def update_profile(
        fields: list[str] = typer.Argument(help="Fields to change, as key=value"),
    ):
        """Update profile details."""
        patch = _parse_fields(fields)
        exit_on_failure(run_with_client(lambda client: client.session.update_profile(patch)))

    @app.command("update-password")
    def update_password(
        current: str = typer.Option(
            ..., "--current", prompt="Current password", hide_input=True
        ),
        new: str = typer.Option(
            ...,
            "--new",
            prompt="New password",
            hide_input=True,
            confirmation_prompt=True,
        ),
    ):
        """Change the account password."""
        exit_on_failure(
            run_with_client(lambda client: client.session.update_secret(current, new))
        )
