"""
Session management for VlogSphere.

- models:  Session aggregate, status lifecycle, read-only view
- renewal: Cancellable silent-renewal timer
- manager: SessionManager, the single owner of the session
"""

from vlogsphere.session.manager import SessionManager
from vlogsphere.session.models import (
    InvalidTransitionError,
    Session,
    SessionStatus,
    SessionView,
)
from vlogsphere.session.renewal import RenewalTimer

__all__ = [
    "SessionManager",
    "InvalidTransitionError",
    "Session",
    "SessionStatus",
    "SessionView",
    "RenewalTimer",
]
