"""
CLI subcommands for social-graph actions.

Usage:
    vlogsphere social toggle <kind> <target>
    vlogsphere social follow <user>
    vlogsphere social state <kind> <target>
"""

import typer

from vlogsphere.cli._runtime import exit_on_failure, run_with_client
from vlogsphere.mutations.kinds import KINDS, get_kind
from vlogsphere.transport.errors import GatewayError

social_app = typer.Typer(help="Follow users and react to vlogs")


def _resolve_kind(kind: str):
    try:
        return get_kind(kind)
    except ValueError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)


async def _toggle(client, target: str, kind: str):
    spec = get_kind(kind)
    if client.session.authenticated:
        try:
            await client.mutations.load(spec.target_namespace, target)
        except GatewayError as e:
            typer.echo(f"⚠️  Could not load {spec.target_namespace} {target}: {e.message}")

    result = await client.mutations.toggle(target, spec)
    if result.ok:
        state = client.mutations.state(target, spec)
        label = spec.target_counter or spec.target_list
        counter = f", {label}={state.count}" if state.count is not None else ""
        typer.echo(f"   {spec.name}: {'on' if state.active else 'off'}{counter}")
    return result


@social_app.command("toggle")
def social_toggle(
    kind: str = typer.Argument(help=f"One of: {', '.join(KINDS)}"),
    target: str = typer.Argument(help="Target user or vlog id"),
):
    """Flip a relation (follow, like, dislike, bookmark)."""
    spec = _resolve_kind(kind)
    exit_on_failure(run_with_client(lambda client: _toggle(client, target, spec.name)))


@social_app.command("follow")
def social_follow(
    user: str = typer.Argument(help="User id to follow or unfollow"),
):
    """Follow a user, or unfollow if already following."""
    exit_on_failure(run_with_client(lambda client: _toggle(client, user, "follow")))


@social_app.command("state")
def social_state(
    kind: str = typer.Argument(help=f"One of: {', '.join(KINDS)}"),
    target: str = typer.Argument(help="Target user or vlog id"),
):
    """Show whether a relation is active, from fresh server data."""
    spec = _resolve_kind(kind)

    async def _state(client):
        if client.session.authenticated:
            await client.mutations.load(spec.target_namespace, target, refresh=True)
        return client.mutations.state(target, spec)

    try:
        state = run_with_client(_state)
    except GatewayError as e:
        typer.echo(f"❌ {e.message}")
        raise typer.Exit(code=1)

    typer.echo(f"{spec.name} {target}: {'on' if state.active else 'off'}")
    if state.count is not None:
        typer.echo(f"   {spec.target_counter or spec.target_list}: {state.count}")
