"""
Mutation engine: optimistic social-graph toggles with exact rollback.

A toggle runs in two halves. The first half is synchronous and cannot be
interleaved with any other trigger: auth gate, duplicate guard, membership
read, optimistic patch, pending record. The second half awaits the
network call and settles the record as committed or rolled back.

Every field the patch touches is recorded as a FieldEdit holding its
previous value. A field nobody else changed meanwhile is restored to that
value verbatim; a field a concurrent toggle also changed gets only this
toggle's own contribution undone.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from vlogsphere.config import CONFIG
from vlogsphere.logger import get_logger
from vlogsphere.mutations.cache import EntityCache
from vlogsphere.mutations.kinds import KINDS, ToggleKind, get_kind
from vlogsphere.notify import Notifier, Severity
from vlogsphere.results import ActionResult
from vlogsphere.session.manager import SessionManager
from vlogsphere.transport.errors import describe_failure
from vlogsphere.transport.gateway import TransportGateway
from vlogsphere.transport.models import ToggleResponse

logger = get_logger(__name__)

NOT_AUTHENTICATED = "Not authenticated"


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING: Any = _Missing()


class SettlementState(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class FieldEdit:
    """
    One field changed by an optimistic patch.

    ``path`` addresses the field inside the record, e.g. ``("likes",)`` or
    ``("author", "followerCount")``. ``before`` is MISSING when the field
    did not exist.
    """

    namespace: str
    entity_id: str
    path: tuple[str, ...]
    before: Any
    after: Any
    member: Any = None
    positions: list[int] = field(default_factory=list)
    delta: int = 0


@dataclass
class PendingMutation:
    target_id: str
    kind: ToggleKind
    activate: bool
    viewer_id: str
    generation: int
    edits: list[FieldEdit] = field(default_factory=list)
    state: SettlementState = SettlementState.PENDING

    @property
    def key(self) -> tuple[str, str]:
        return (self.target_id, self.kind.pending_group)


@dataclass(frozen=True)
class EntityState:
    """Render model for one (target, kind) pair."""

    active: bool
    count: Optional[int]
    pending: bool


def _container(record: Optional[dict[str, Any]], path: tuple[str, ...]):
    node = record
    for name in path[:-1]:
        node = node.get(name) if isinstance(node, dict) else None
    return node if isinstance(node, dict) else None


def _embedded_id(value: Any) -> Optional[str]:
    if not isinstance(value, dict):
        return None
    entity_id = value.get("_id") or value.get("id")
    return str(entity_id) if entity_id is not None else None


class MutationEngine:
    """
    Applies toggle actions optimistically against the entity cache.

    Args:
        session: Session manager gating every action.
        gateway: Transport gateway; defaults to the session's.
        cache: Entity cache; a fresh one is created when omitted.
        notifier: Notification sink; defaults to the session's.
        on_login_required: Called with (login_path, from_path) when an
            unauthenticated user triggers a toggle.
    """

    def __init__(
        self,
        session: SessionManager,
        gateway: Optional[TransportGateway] = None,
        cache: Optional[EntityCache] = None,
        notifier: Optional[Notifier] = None,
        on_login_required: Optional[Callable[[str, Optional[str]], None]] = None,
    ):
        self.session = session
        self.gateway = gateway or session.gateway
        self.cache = cache or EntityCache()
        self.notifier = notifier or session.notifier
        self.on_login_required = on_login_required
        self._pending: dict[tuple[str, str], PendingMutation] = {}

        session.add_clear_listener(self.reset)
        session.add_profile_listener(self._on_profile_updated)

    # -- Read model ----------------------------------------------------------

    def is_pending(self, target_id: str, kind: "str | ToggleKind") -> bool:
        return (target_id, get_kind(kind).pending_group) in self._pending

    def state(self, target_id: str, kind: "str | ToggleKind") -> EntityState:
        """Current per-entity state, derived only from the cache."""
        spec = get_kind(kind)
        viewer_id = self.session.user_id
        active = bool(viewer_id) and self._is_active(target_id, spec, viewer_id)

        count = None
        target = self.cache.live(spec.target_namespace, target_id)
        if target is not None:
            if spec.target_counter:
                count = target.get(spec.target_counter)
            elif spec.target_list:
                count = len(target.get(spec.target_list) or [])

        return EntityState(
            active=active,
            count=count,
            pending=self.is_pending(target_id, spec),
        )

    async def load(
        self, namespace: str, entity_id: str, refresh: bool = False
    ) -> dict[str, Any]:
        """
        Read a record, fetching it through the gateway on first use.

        Raises:
            GatewayError: If the fetch fails.
        """
        loader = self.gateway.get_user if namespace == "user" else self.gateway.get_vlog
        if refresh:
            return await self.cache.refresh(namespace, entity_id, loader)
        return await self.cache.get_or_load(namespace, entity_id, loader)

    def reset(self) -> None:
        """Discard the cache and every pending record."""
        self.cache.clear()
        self._pending.clear()

    # -- Actions -------------------------------------------------------------

    async def toggle(
        self,
        target_id: str,
        kind: "str | ToggleKind",
        from_path: Optional[str] = None,
    ) -> ActionResult:
        """
        Flip a relation between the viewer and ``target_id``.

        Args:
            target_id: User id for follow, vlog id for the other kinds.
            kind: Toggle kind name or ToggleKind.
            from_path: Current location, forwarded with the login redirect.

        Raises:
            ValueError: If ``kind`` is not a registered toggle kind.
        """
        spec = get_kind(kind)

        if not self.session.authenticated:
            self._notify(spec.messages.login_prompt, Severity.INFO)
            if self.on_login_required:
                self.on_login_required(CONFIG.LOGIN_PATH, from_path)
            return ActionResult.failure(NOT_AUTHENTICATED)

        key = (target_id, spec.pending_group)
        if key in self._pending:
            logger.debug(f"Suppressed duplicate {spec.name} on {target_id}")
            return ActionResult.skipped()

        viewer_id = self.session.user_id
        activate = not self._is_active(target_id, spec, viewer_id)
        pending = self._apply(target_id, spec, activate, viewer_id)
        self._pending[key] = pending

        try:
            response = await self.gateway.toggle_relation(target_id, spec.name, activate)
        except asyncio.CancelledError:
            self._rollback(pending)
            raise
        except Exception as e:
            self._rollback(pending)
            message = describe_failure(e, spec.failure_message(activate))
            logger.info(f"{spec.name} on {target_id} rolled back: {message}")
            self._notify(message, Severity.ERROR)
            return ActionResult.failure(message)
        finally:
            if self._pending.get(key) is pending:
                del self._pending[key]

        self._commit(pending, response)
        self._notify(spec.success_message(activate), Severity.SUCCESS)
        return ActionResult.success()

    # -- Internal ------------------------------------------------------------

    def _viewer_record(self) -> dict[str, Any]:
        viewer_id = self.session.user_id
        record = self.cache.live("user", viewer_id)
        if record is None:
            self.cache.put("user", viewer_id, self.session.profile or {"id": viewer_id})
            record = self.cache.live("user", viewer_id)
        return record

    def _is_active(self, target_id: str, spec: ToggleKind, viewer_id: str) -> bool:
        if spec.viewer_list:
            viewer = self.cache.live("user", viewer_id) or self.session.profile or {}
            return target_id in (viewer.get(spec.viewer_list) or [])

        target = self.cache.live(spec.target_namespace, target_id) or {}
        if spec.target_list:
            return viewer_id in (target.get(spec.target_list) or [])
        if spec.target_flag:
            return bool(target.get(spec.target_flag))
        return False

    def _apply(
        self,
        target_id: str,
        spec: ToggleKind,
        activate: bool,
        viewer_id: str,
    ) -> PendingMutation:
        pending = PendingMutation(
            target_id=target_id,
            kind=spec,
            activate=activate,
            viewer_id=viewer_id,
            generation=self.cache.generation,
        )

        if activate and spec.exclusive_with:
            other = get_kind(spec.exclusive_with)
            if self._is_active(target_id, other, viewer_id):
                pending.edits.extend(self._patch(target_id, other, False, viewer_id))

        pending.edits.extend(self._patch(target_id, spec, activate, viewer_id))
        return pending

    def _patch(
        self,
        target_id: str,
        kind: ToggleKind,
        activate: bool,
        viewer_id: str,
    ) -> list[FieldEdit]:
        edits: list[FieldEdit] = []

        if kind.viewer_fields:
            viewer = self._viewer_record()
            if kind.viewer_list:
                edits.append(
                    self._edit_list("user", viewer_id, viewer, (kind.viewer_list,), target_id, activate)
                )
            if kind.viewer_counter and isinstance(viewer.get(kind.viewer_counter), int):
                edits.append(
                    self._edit_counter("user", viewer_id, viewer, (kind.viewer_counter,), activate)
                )

        namespace = kind.target_namespace
        target = self.cache.live(namespace, target_id)
        if target is not None:
            if kind.target_list:
                edits.append(
                    self._edit_list(namespace, target_id, target, (kind.target_list,), viewer_id, activate)
                )
            if kind.target_flag:
                edits.append(
                    self._edit_value(namespace, target_id, target, (kind.target_flag,), activate)
                )
            if kind.target_counter:
                edits.append(
                    self._edit_counter(namespace, target_id, target, (kind.target_counter,), activate)
                )

        if kind.embedded_in and kind.target_counter:
            holder_namespace, name = kind.embedded_in
            for entity_id, record in self.cache.live_records(holder_namespace):
                if _embedded_id(record.get(name)) == target_id:
                    edits.append(
                        self._edit_counter(
                            holder_namespace,
                            entity_id,
                            record,
                            (name, kind.target_counter),
                            activate,
                        )
                    )

        return edits

    @staticmethod
    def _edit_list(namespace, entity_id, record, path, member, add) -> FieldEdit:
        container = _container(record, path)
        name = path[-1]
        before = container.get(name, MISSING)
        current = list(before) if isinstance(before, list) else []
        positions = [i for i, v in enumerate(current) if v == member]

        if add:
            if not positions:
                current.append(member)
        else:
            current = [v for v in current if v != member]
        container[name] = current

        return FieldEdit(
            namespace=namespace,
            entity_id=entity_id,
            path=path,
            before=before,
            after=list(current),
            member=member,
            positions=positions,
        )

    @staticmethod
    def _edit_counter(namespace, entity_id, record, path, increment) -> FieldEdit:
        container = _container(record, path)
        name = path[-1]
        before = container.get(name, MISSING)
        base = before if isinstance(before, int) else 0
        after = base + 1 if increment else max(base - 1, 0)
        container[name] = after
        return FieldEdit(namespace, entity_id, path, before, after, delta=after - base)

    @staticmethod
    def _edit_value(namespace, entity_id, record, path, value) -> FieldEdit:
        container = _container(record, path)
        name = path[-1]
        before = container.get(name, MISSING)
        container[name] = value
        return FieldEdit(namespace, entity_id, path, before, value)

    def _undo(self, edit: FieldEdit) -> None:
        container = _container(self.cache.live(edit.namespace, edit.entity_id), edit.path)
        if container is None:
            return

        name = edit.path[-1]
        current = container.get(name, MISSING)
        if current == edit.after:
            value = edit.before
        elif edit.member is not None and isinstance(current, list):
            value = [v for v in current if v != edit.member]
            for position in edit.positions:
                value.insert(min(position, len(value)), edit.member)
        elif edit.delta and isinstance(current, int):
            value = max(current - edit.delta, 0)
        else:
            value = edit.before

        if value is MISSING:
            container.pop(name, None)
        else:
            container[name] = value

    def _rollback(self, pending: PendingMutation) -> None:
        """Restore every field the patch touched to its pre-patch value."""
        pending.state = SettlementState.ROLLED_BACK
        if pending.generation != self.cache.generation:
            logger.debug(f"Rollback of {pending.kind.name} on {pending.target_id} skipped: cache cleared")
            return

        for edit in reversed(pending.edits):
            self._undo(edit)

    def _commit(self, pending: PendingMutation, response: ToggleResponse) -> None:
        """Mark committed and fold authoritative response fields into the cache."""
        pending.state = SettlementState.COMMITTED
        if pending.generation != self.cache.generation:
            logger.debug(f"Reconcile of {pending.kind.name} on {pending.target_id} skipped: cache cleared")
            return

        fields = response.updated_fields
        if not fields:
            return

        kinds = [pending.kind]
        if pending.kind.exclusive_with:
            kinds.append(get_kind(pending.kind.exclusive_with))

        viewer_fields = {n: fields[n] for k in kinds for n in k.viewer_fields if n in fields}
        target_fields = {n: fields[n] for k in kinds for n in k.target_fields if n in fields}

        self.cache.merge("user", pending.viewer_id, viewer_fields)
        self.cache.merge(pending.kind.target_namespace, pending.target_id, target_fields)

        # Embedded copies of the target follow the authoritative value.
        for edit in pending.edits:
            if len(edit.path) > 1 and edit.path[-1] in target_fields:
                record = self.cache.live(edit.namespace, edit.entity_id)
                container = _container(record, edit.path)
                if container is not None:
                    container[edit.path[-1]] = target_fields[edit.path[-1]]

    def _on_profile_updated(self, profile: dict[str, Any]) -> None:
        # Relation lists and counters in the cache are newer than the profile.
        owned = {name for kind in KINDS.values() for name in kind.viewer_fields}
        fields = {k: v for k, v in profile.items() if k not in owned}
        self.cache.merge("user", profile.get("id"), fields)

    def _notify(self, message: str, severity: Severity) -> None:
        try:
            self.notifier.notify(message, severity)
        except Exception as e:
            logger.error(f"Notifier failed: {e}")
