"""
Session aggregate and its read-only projection.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from vlogsphere.storage import StorageDurability
from vlogsphere.transport.models import Profile


class SessionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    RESOLVING = "resolving"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


ALLOWED_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.UNINITIALIZED: frozenset(
        {SessionStatus.RESOLVING, SessionStatus.UNAUTHENTICATED}
    ),
    SessionStatus.RESOLVING: frozenset(
        {SessionStatus.AUTHENTICATED, SessionStatus.UNAUTHENTICATED}
    ),
    SessionStatus.AUTHENTICATED: frozenset({SessionStatus.UNAUTHENTICATED}),
    SessionStatus.UNAUTHENTICATED: frozenset({SessionStatus.AUTHENTICATED}),
}


class InvalidTransitionError(RuntimeError):
    """Raised when code attempts a session state change the lifecycle forbids."""

    def __init__(
        self,
        current: SessionStatus,
        target: SessionStatus,
        reason: Optional[str] = None,
    ):
        message = f"Invalid session transition: {current.value} -> {target.value}"
        super().__init__(f"{message} ({reason})" if reason else message)
        self.current = current
        self.target = target


@dataclass
class Session:
    """Client-held authentication session. Written only by SessionManager."""

    status: SessionStatus = SessionStatus.UNINITIALIZED
    profile: Optional[Profile] = None
    access_credential: Optional[str] = None
    renewal_credential: Optional[str] = None
    storage_durability: Optional[StorageDurability] = None

    @property
    def authenticated(self) -> bool:
        return self.status == SessionStatus.AUTHENTICATED

    @property
    def user_id(self) -> Optional[str]:
        return self.profile.id if self.profile else None

    def check_invariant(self, status: Optional[SessionStatus] = None) -> bool:
        """An authenticated session holds both credentials and a profile."""
        if (status or self.status) != SessionStatus.AUTHENTICATED:
            return True
        return bool(
            self.access_credential and self.renewal_credential and self.profile
        )

    def clear(self) -> None:
        self.profile = None
        self.access_credential = None
        self.renewal_credential = None
        self.storage_durability = None


@dataclass(frozen=True)
class SessionView:
    """What the rest of the application may see of the session."""

    status: SessionStatus
    authenticated: bool
    resolving: bool
    user_id: Optional[str]
    profile: Optional[dict[str, Any]] = field(default=None)

    @classmethod
    def of(cls, session: Session) -> "SessionView":
        return cls(
            status=session.status,
            authenticated=session.authenticated,
            resolving=session.status == SessionStatus.RESOLVING,
            user_id=session.user_id,
            profile=session.profile.to_record() if session.profile else None,
        )
