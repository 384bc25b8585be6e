"""
Optimistic social-graph mutations.

Toggles (follow, like, dislike, bookmark) patch the entity cache
immediately, then commit or roll back once the server answers.
"""

from vlogsphere.mutations.cache import EntityCache
from vlogsphere.mutations.engine import (
    EntityState,
    FieldEdit,
    MutationEngine,
    PendingMutation,
    SettlementState,
)
from vlogsphere.mutations.kinds import KINDS, ToggleKind, get_kind

__all__ = [
    "EntityCache",
    "EntityState",
    "FieldEdit",
    "MutationEngine",
    "PendingMutation",
    "SettlementState",
    "KINDS",
    "ToggleKind",
    "get_kind",
]
