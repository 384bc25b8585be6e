"""Shared pytest fixtures and configuration."""

import asyncio
from typing import Optional

import pytest
import pytest_asyncio

from vlogsphere.mutations.engine import MutationEngine
from vlogsphere.notify import ToastQueue
from vlogsphere.session.manager import SessionManager
from vlogsphere.storage import CredentialStorage, FileStore, MemoryStore
from vlogsphere.transport.models import (
    CredentialPair,
    LoginPayload,
    Profile,
    RegisterResponse,
    ToggleResponse,
)


class FakeGateway:
    """
    In-memory stand-in for TransportGateway.

    Records every call; failures are injected through the ``*_error``
    attributes and in-flight calls can be held open with the ``*_gate``
    events.
    """

    def __init__(self):
        self.default_credential: Optional[str] = None
        self.calls: list[tuple] = []
        self.closed = False

        self.profile = Profile(
            id="u1",
            username="alice",
            email="a@b.com",
            following=[],
            followingCount=0,
        )
        self.login_credentials = CredentialPair(
            access_credential="access-1", renewal_credential="renew-1"
        )
        self.refresh_result = CredentialPair(
            access_credential="access-2", renewal_credential="renew-2"
        )
        self.register_result = RegisterResponse(ok=True, message="Check your inbox")
        self.updated_profile: Optional[Profile] = None
        self.toggle_response = ToggleResponse()
        self.users: dict[str, dict] = {}
        self.vlogs: dict[str, dict] = {}

        self.login_error: Optional[Exception] = None
        self.register_error: Optional[Exception] = None
        self.who_am_i_error: Optional[Exception] = None
        self.refresh_error: Optional[Exception] = None
        self.logout_error: Optional[Exception] = None
        self.update_error: Optional[Exception] = None
        self.toggle_error: Optional[Exception] = None
        self.toggle_errors: dict[str, Exception] = {}

        self.who_am_i_gate: Optional[asyncio.Event] = None
        self.refresh_gate: Optional[asyncio.Event] = None
        self.toggle_gate: Optional[asyncio.Event] = None

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def set_default_credential(self, access_credential):
        self.calls.append(("set_default_credential", access_credential))
        self.default_credential = access_credential

    async def aclose(self):
        self.closed = True

    async def login(self, identifier, secret):
        self.calls.append(("login", identifier))
        if self.login_error:
            raise self.login_error
        return LoginPayload(credentials=self.login_credentials, profile=self.profile)

    async def register(self, details):
        self.calls.append(("register", details))
        if self.register_error:
            raise self.register_error
        return self.register_result

    async def who_am_i(self, access_credential):
        self.calls.append(("who_am_i", access_credential))
        if self.who_am_i_gate:
            await self.who_am_i_gate.wait()
        if self.who_am_i_error:
            raise self.who_am_i_error
        return self.profile

    async def refresh(self, renewal_credential):
        self.calls.append(("refresh", renewal_credential))
        if self.refresh_gate:
            await self.refresh_gate.wait()
        if self.refresh_error:
            raise self.refresh_error
        return self.refresh_result

    async def logout(self, access_credential=None):
        self.calls.append(("logout", access_credential))
        if self.logout_error:
            raise self.logout_error

    async def update_profile(self, patch):
        self.calls.append(("update_profile", patch))
        if self.update_error:
            raise self.update_error
        return self.updated_profile

    async def update_secret(self, current, new):
        self.calls.append(("update_secret", current))
        if self.update_error:
            raise self.update_error

    async def toggle_relation(self, target_id, kind, activate):
        self.calls.append(("toggle_relation", target_id, kind, activate))
        if self.toggle_gate:
            await self.toggle_gate.wait()
        error = self.toggle_errors.get(target_id, self.toggle_error)
        if error:
            raise error
        return self.toggle_response

    async def get_user(self, user_id):
        self.calls.append(("get_user", user_id))
        return dict(self.users.get(user_id, {"id": user_id}))

    async def get_vlog(self, vlog_id):
        self.calls.append(("get_vlog", vlog_id))
        return dict(self.vlogs.get(vlog_id, {"id": vlog_id}))


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def storage(tmp_path):
    return CredentialStorage(
        durable=FileStore(tmp_path / "credentials.json"),
        ephemeral=MemoryStore(),
    )


@pytest.fixture
def toasts():
    return ToastQueue()


@pytest_asyncio.fixture
async def manager(gateway, storage, toasts):
    """A bootstrapped, unauthenticated session manager."""
    session = SessionManager(
        gateway, storage=storage, notifier=toasts, renewal_interval_minutes=60
    )
    await session.bootstrap()
    yield session
    await session.aclose()


@pytest_asyncio.fixture
async def logged_in(manager, toasts):
    """Session manager logged in as u1 with durable credentials."""
    result = await manager.login("a@b.com", "pw", durable=True)
    assert result.ok
    toasts.drain()
    return manager


@pytest.fixture
def redirects():
    return []


@pytest.fixture
def engine(manager, redirects):
    return MutationEngine(
        manager, on_login_required=lambda path, origin: redirects.append((path, origin))
    )
