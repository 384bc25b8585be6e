"""
Unit tests for the CLI commands (account and social).
"""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from vlogsphere.cli import app
from vlogsphere.cli._runtime import ConsoleNotifier
from vlogsphere.client import VlogSphereClient
from vlogsphere.storage import ACCESS_KEY
from vlogsphere.transport.errors import GatewayError

runner = CliRunner()


@pytest.fixture(autouse=True)
def fake_client(gateway, storage):
    """Every command gets a client backed by the fake gateway."""

    def _build():
        return VlogSphereClient(
            gateway=gateway,
            storage=storage,
            notifier=ConsoleNotifier(),
            renewal_interval_minutes=60,
        )

    with patch("vlogsphere.cli._runtime.build_client", side_effect=_build):
        yield


def _login():
    result = runner.invoke(app, ["login", "a@b.com", "-p", "pw", "--remember"])
    assert result.exit_code == 0, result.output
    return result


class TestCLIRoot:
    def test_help_shows_all_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("login", "logout", "whoami", "register", "social"):
            assert command in result.output

    def test_social_help(self):
        result = runner.invoke(app, ["social", "--help"])
        assert result.exit_code == 0
        assert "toggle" in result.output
        assert "follow" in result.output
        assert "state" in result.output


class TestAccountCommands:
    def test_whoami_anonymous(self):
        result = runner.invoke(app, ["whoami"])
        assert result.exit_code == 1
        assert "Not logged in." in result.output

    def test_login_then_whoami(self, storage):
        result = _login()
        assert "Welcome back!" in result.output
        assert "Continue at /dashboard" in result.output
        assert storage.durable.get(ACCESS_KEY) == "access-1"

        result = runner.invoke(app, ["whoami"])
        assert result.exit_code == 0
        assert "alice" in result.output
        assert "ID: u1" in result.output
        assert "Email: a@b.com" in result.output

    def test_login_without_remember(self, storage):
        result = runner.invoke(app, ["login", "a@b.com", "-p", "pw"])
        assert result.exit_code == 0
        assert "--remember" in result.output
        assert storage.durable.is_empty()

    def test_login_failure(self, gateway):
        gateway.login_error = GatewayError("Invalid credentials", 401)

        result = runner.invoke(app, ["login", "a@b.com", "-p", "bad"])

        assert result.exit_code == 1
        assert "Invalid credentials" in result.output

    def test_logout(self, storage):
        _login()

        result = runner.invoke(app, ["logout"])

        assert result.exit_code == 0
        assert "Logged out" in result.output
        assert storage.durable.is_empty()

    def test_register(self, gateway, storage):
        result = runner.invoke(app, ["register", "neo", "n@b.com", "-p", "pw"])

        assert result.exit_code == 0
        assert "Check your inbox" in result.output
        assert gateway.count("register") == 1
        assert storage.durable.is_empty()

    def test_update_profile_parses_fields(self, gateway):
        _login()

        result = runner.invoke(app, ["update-profile", "bio=hello", "age=3"])

        assert result.exit_code == 0
        assert "Profile updated" in result.output
        assert ("update_profile", {"bio": "hello", "age": 3}) in gateway.calls

    def test_update_profile_rejects_bad_field(self):
        result = runner.invoke(app, ["update-profile", "bio"])
        assert result.exit_code == 1
        assert "Expected key=value" in result.output

    def test_update_password_failure(self, gateway):
        _login()
        gateway.update_error = GatewayError("Current password is incorrect", 401)

        result = runner.invoke(
            app, ["update-password", "--current", "old", "--new", "new"]
        )

        assert result.exit_code == 1
        assert "Current password is incorrect" in result.output


class TestSocialCommands:
    def test_follow_requires_login(self, gateway):
        result = runner.invoke(app, ["social", "follow", "u2"])

        assert result.exit_code == 1
        assert "Please log in to follow users" in result.output
        assert gateway.count("toggle_relation") == 0

    def test_follow(self, gateway):
        _login()
        gateway.users["u2"] = {"id": "u2", "followerCount": 4}

        result = runner.invoke(app, ["social", "follow", "u2"])

        assert result.exit_code == 0
        assert "User followed!" in result.output
        assert "follow: on, followerCount=5" in result.output

    def test_toggle_failure(self, gateway):
        _login()
        gateway.toggle_error = GatewayError("Server error. Please try again.", 500)

        result = runner.invoke(app, ["social", "toggle", "like", "v1"])

        assert result.exit_code == 1
        assert "Server error" in result.output

    def test_unknown_kind(self):
        result = runner.invoke(app, ["social", "toggle", "share", "v1"])
        assert result.exit_code == 1
        assert "Unknown toggle kind" in result.output

    def test_state(self, gateway):
        _login()
        gateway.vlogs["v1"] = {"id": "v1", "likes": ["a", "b", "c", "d", "e"]}

        result = runner.invoke(app, ["social", "state", "like", "v1"])

        assert result.exit_code == 0
        assert "like v1: off" in result.output
        assert "likes: 5" in result.output
