"""
Session manager: owns the client's authentication session.

Responsible for bootstrap from stored credentials, login/register, silent
renewal, logout, and profile/password updates. It is the only writer of
the Session aggregate, the credential storage tiers and the gateway's
default credential header.

Every network-bound action returns an ActionResult and emits a
notification; failures are reported, never raised.
"""

from typing import Any, Callable, Optional

from vlogsphere.config import CONFIG
from vlogsphere.logger import get_logger
from vlogsphere.notify import Notifier, Severity, ToastQueue
from vlogsphere.results import ActionResult
from vlogsphere.session.models import (
    ALLOWED_TRANSITIONS,
    InvalidTransitionError,
    Session,
    SessionStatus,
    SessionView,
)
from vlogsphere.session.renewal import RenewalTimer
from vlogsphere.storage import (
    REDIRECT_KEY,
    CredentialStorage,
    StorageDurability,
)
from vlogsphere.transport.errors import GatewayError, describe_failure
from vlogsphere.transport.gateway import TransportGateway
from vlogsphere.transport.models import Profile

logger = get_logger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."

# Never worth returning to after authenticating.
_AUTH_PATHS = frozenset({"/login", "/register"})


def _failure_reason(exc: Exception) -> str:
    if isinstance(exc, GatewayError):
        if exc.is_network_error:
            return f"server unreachable ({exc.message})"
        if exc.is_auth_error:
            return f"credential rejected ({exc.message})"
    return describe_failure(exc, "unknown error")


class SessionManager:
    """
    Single owner of the authentication session.

    Args:
        gateway: Transport gateway used for every auth call.
        storage: Durable/ephemeral credential tiers.
        notifier: Sink for transient user-facing messages.
        renewal_interval_minutes: Override for the silent renewal interval.
    """

    def __init__(
        self,
        gateway: TransportGateway,
        storage: Optional[CredentialStorage] = None,
        notifier: Optional[Notifier] = None,
        renewal_interval_minutes: Optional[float] = None,
    ):
        self.gateway = gateway
        self.storage = storage or CredentialStorage()
        self.notifier = notifier or ToastQueue()
        self._session = Session()
        # Bumped on every local credential change; async results captured
        # under an older epoch are stale and get dropped.
        self._epoch = 0
        self._timer = RenewalTimer(self._renew, renewal_interval_minutes)
        self._clear_listeners: list[Callable[[], None]] = []
        self._profile_listeners: list[Callable[[dict[str, Any]], None]] = []

    # -- Read model ----------------------------------------------------------

    @property
    def view(self) -> SessionView:
        return SessionView.of(self._session)

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def authenticated(self) -> bool:
        return self._session.authenticated

    @property
    def resolving(self) -> bool:
        return self._session.status == SessionStatus.RESOLVING

    @property
    def user_id(self) -> Optional[str]:
        return self._session.user_id

    @property
    def profile(self) -> Optional[dict[str, Any]]:
        return self._session.profile.to_record() if self._session.profile else None

    @property
    def storage_durability(self) -> Optional[StorageDurability]:
        return self._session.storage_durability

    @property
    def renewal_timer(self) -> RenewalTimer:
        return self._timer

    def add_clear_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback run whenever the session is cleared."""
        self._clear_listeners.append(callback)

    def add_profile_listener(self, callback: Callable[[dict[str, Any]], None]) -> None:
        """Register a callback run with the new profile after an update."""
        self._profile_listeners.append(callback)

    # -- Lifecycle -----------------------------------------------------------

    async def bootstrap(self) -> SessionView:
        """
        Resolve the session from stored credentials.

        Durable storage is checked before ephemeral. While the identity
        call is in flight the status is ``resolving``.

        Returns:
            The settled session view.
        """
        if self._session.status != SessionStatus.UNINITIALIZED:
            return self.view

        durability, access, renewal = self.storage.find_credentials()
        if not access:
            self._transition(SessionStatus.UNAUTHENTICATED)
            return self.view

        if not renewal:
            logger.warning("Stored access credential has no renewal credential; discarding")
            self._clear_local()
            self._transition(SessionStatus.UNAUTHENTICATED)
            return self.view

        self._transition(SessionStatus.RESOLVING)
        epoch = self._epoch
        self.gateway.set_default_credential(access)

        try:
            profile = await self.gateway.who_am_i(access)
        except Exception as e:
            if epoch != self._epoch:
                logger.debug("Bootstrap failure ignored: session changed meanwhile")
                return self.view
            logger.warning(f"Session bootstrap failed: {_failure_reason(e)}")
            self._clear_local()
            self._transition(SessionStatus.UNAUTHENTICATED)
            return self.view

        if epoch != self._epoch:
            logger.debug("Bootstrap result discarded: session changed meanwhile")
            return self.view

        self._session.profile = profile
        self._session.access_credential = access
        self._session.renewal_credential = renewal
        self._session.storage_durability = durability
        self._transition(SessionStatus.AUTHENTICATED)
        self._timer.start()
        logger.info(f"Session restored for user {profile.id} ({durability.value})")
        return self.view

    async def aclose(self) -> None:
        """Tear down: disarm renewal and close the transport."""
        self._epoch += 1
        await self._timer.stop()
        await self.gateway.aclose()

    async def __aenter__(self) -> "SessionManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # -- Actions -------------------------------------------------------------

    async def login(
        self, identifier: str, secret: str, durable: bool = False
    ) -> ActionResult:
        """
        Authenticate and store credentials in exactly one tier.

        Args:
            identifier: Email address.
            secret: Password.
            durable: Keep credentials across restarts ("remember me").
        """
        try:
            payload = await self.gateway.login(identifier, secret)
        except Exception as e:
            message = describe_failure(e, "Login failed")
            logger.info(f"Login failed for {identifier}: {message}")
            self._notify(message, Severity.ERROR)
            return ActionResult.failure(message)

        durability = (
            StorageDurability.PERSISTENT if durable else StorageDurability.EPHEMERAL
        )
        credentials = payload.credentials

        previous_user = self._session.user_id
        self._epoch += 1
        if previous_user and previous_user != payload.profile.id:
            logger.info(f"Switching user {previous_user} -> {payload.profile.id}")
            self._run_clear_listeners()

        self.gateway.set_default_credential(credentials.access_credential)
        self.storage.clear_credentials()
        self.storage.write_credentials(
            durability, credentials.access_credential, credentials.renewal_credential
        )

        self._session.profile = payload.profile
        self._session.access_credential = credentials.access_credential
        self._session.renewal_credential = credentials.renewal_credential
        self._session.storage_durability = durability

        if self._session.status == SessionStatus.UNINITIALIZED:
            self._transition(SessionStatus.UNAUTHENTICATED)
        if not self._session.authenticated:
            self._transition(SessionStatus.AUTHENTICATED)

        self._timer.start()
        logger.info(f"Logged in as {payload.profile.id} ({durability.value})")
        self._notify("Welcome back!", Severity.SUCCESS)
        return ActionResult.success()

    async def register(self, details: dict[str, Any]) -> ActionResult:
        """Create an account. Never logs in or stores credentials."""
        try:
            response = await self.gateway.register(details)
        except Exception as e:
            message = describe_failure(e, "Registration failed")
            self._notify(message, Severity.ERROR)
            return ActionResult.failure(message)

        if not response.ok:
            message = response.message or "Registration failed"
            self._notify(message, Severity.ERROR)
            return ActionResult.failure(message)

        self._notify(response.message or "Account created", Severity.SUCCESS)
        return ActionResult.success()

    async def logout(
        self,
        message: str = "Logged out",
        severity: Severity = Severity.SUCCESS,
    ) -> ActionResult:
        """
        Clear the session locally, then invalidate it server-side.

        The local clear happens before the first await and does not depend
        on the network call, whose failure is ignored.
        """
        access = self._session.access_credential

        self._clear_local()
        if self._session.status != SessionStatus.UNAUTHENTICATED:
            self._transition(SessionStatus.UNAUTHENTICATED)

        if access:
            try:
                await self.gateway.logout(access)
            except Exception as e:
                logger.debug(f"Server-side logout failed (ignored): {e}")

        self._notify(message, severity)
        return ActionResult.success()

    async def update_profile(self, patch: dict[str, Any]) -> ActionResult:
        """Update profile details and patch the in-memory profile."""
        try:
            updated = await self.gateway.update_profile(patch)
        except Exception as e:
            message = describe_failure(e, "Update failed")
            self._notify(message, Severity.ERROR)
            return ActionResult.failure(message)

        if self._session.profile is not None:
            if updated is None:
                updated = Profile.model_validate(
                    {**self._session.profile.to_record(), **patch}
                )
            self._session.profile = updated
            record = updated.to_record()
            for listener in self._profile_listeners:
                listener(record)

        self._notify("Profile updated", Severity.SUCCESS)
        return ActionResult.success()

    async def update_secret(self, current: str, new: str) -> ActionResult:
        """Change the account password."""
        try:
            await self.gateway.update_secret(current, new)
        except Exception as e:
            message = describe_failure(e, "Password update failed")
            self._notify(message, Severity.ERROR)
            return ActionResult.failure(message)

        self._notify("Password updated", Severity.SUCCESS)
        return ActionResult.success()

    # -- Post-login redirect -------------------------------------------------

    def remember_redirect(self, path: str) -> None:
        """Store where to send the user after their next login."""
        if path and path not in _AUTH_PATHS:
            self.storage.durable.set(REDIRECT_KEY, path)

    def resolve_redirect(self, from_path: Optional[str] = None) -> str:
        """
        Pick the post-login destination.

        Order: stored redirect (consumed), then the navigation ``from``
        path, then the default landing page.
        """
        stored = self.storage.durable.get(REDIRECT_KEY)
        if stored:
            self.storage.durable.remove(REDIRECT_KEY)
            return stored
        if from_path and from_path not in _AUTH_PATHS:
            return from_path
        return CONFIG.DEFAULT_LANDING_PATH

    # -- Internal ------------------------------------------------------------

    async def _renew(self) -> None:
        """Timer callback: swap both credentials or end the session."""
        session = self._session
        if not session.authenticated or not session.renewal_credential:
            return

        epoch = self._epoch
        durability = session.storage_durability

        try:
            pair = await self.gateway.refresh(session.renewal_credential)
        except Exception as e:
            if epoch != self._epoch:
                logger.debug("Renewal failure ignored: session changed meanwhile")
                return
            logger.warning(f"Credential renewal failed: {_failure_reason(e)}")
            await self.logout(SESSION_EXPIRED_MESSAGE, Severity.WARNING)
            return

        if epoch != self._epoch or not session.authenticated:
            logger.debug("Renewal response discarded: session changed meanwhile")
            return

        self.gateway.set_default_credential(pair.access_credential)
        self.storage.write_credentials(
            durability, pair.access_credential, pair.renewal_credential
        )
        session.access_credential = pair.access_credential
        session.renewal_credential = pair.renewal_credential
        logger.info("Credentials renewed")

    def _clear_local(self) -> None:
        """Synchronously drop every trace of the session."""
        self._epoch += 1
        self._timer.cancel()
        self.gateway.set_default_credential(None)
        self.storage.clear_credentials()
        self._session.clear()
        self._run_clear_listeners()

    def _run_clear_listeners(self) -> None:
        for listener in self._clear_listeners:
            try:
                listener()
            except Exception as e:
                logger.error(f"Session clear listener failed: {e}")

    def _transition(self, target: SessionStatus) -> None:
        current = self._session.status
        if current == target:
            return
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(current, target)
        if not self._session.check_invariant(target):
            raise InvalidTransitionError(current, target, "credentials or profile missing")
        self._session.status = target
        logger.debug(f"Session {current.value} -> {target.value}")

    def _notify(self, message: str, severity: Severity) -> None:
        try:
            self.notifier.notify(message, severity)
        except Exception as e:
            logger.error(f"Notifier failed: {e}")
