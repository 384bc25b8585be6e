"""
Toggle kinds: how each social-graph action maps onto cached records.

Each kind names where "am I doing this to that target" is recorded
(a list on the viewer, a list of user ids on the target, or a flag on the
target) plus the counters that move with it.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ToggleMessages:
    activated: str
    deactivated: str
    failed_activate: str
    failed_deactivate: str
    login_prompt: str


@dataclass(frozen=True)
class ToggleKind:
    """
    Describes one toggle action.

    Membership is read from the first of these that the kind defines:

    - ``viewer_list``: ids of targets on the viewer's own record
    - ``target_list``: ids of users on the target record
    - ``target_flag``: a boolean on the target record

    ``embedded_in`` names (namespace, field) of records that carry a copy
    of the target, e.g. the ``author`` of every cached vlog.

    Example:
        ToggleKind(
            name="follow",
            target_namespace="user",
            viewer_list="following",
            target_counter="followerCount",
            viewer_counter="followingCount",
            ...
        )
    """

    name: str
    target_namespace: str
    messages: ToggleMessages
    viewer_list: Optional[str] = None
    target_list: Optional[str] = None
    target_flag: Optional[str] = None
    target_counter: Optional[str] = None
    viewer_counter: Optional[str] = None
    embedded_in: Optional[tuple[str, str]] = None
    group: Optional[str] = None
    exclusive_with: Optional[str] = None

    @property
    def pending_group(self) -> str:
        """Kinds sharing a group never have concurrent in-flight calls per target."""
        return self.group or self.name

    @property
    def viewer_fields(self) -> tuple[str, ...]:
        """Fields this kind owns on the viewer's record."""
        return tuple(f for f in (self.viewer_list, self.viewer_counter) if f)

    @property
    def target_fields(self) -> tuple[str, ...]:
        return tuple(
            f for f in (self.target_list, self.target_flag, self.target_counter) if f
        )

    def success_message(self, activate: bool) -> str:
        return self.messages.activated if activate else self.messages.deactivated

    def failure_message(self, activate: bool) -> str:
        return self.messages.failed_activate if activate else self.messages.failed_deactivate


FOLLOW = ToggleKind(
    name="follow",
    target_namespace="user",
    viewer_list="following",
    target_counter="followerCount",
    viewer_counter="followingCount",
    embedded_in=("vlog", "author"),
    messages=ToggleMessages(
        activated="User followed!",
        deactivated="User unfollowed",
        failed_activate="Failed to follow user",
        failed_deactivate="Failed to unfollow user",
        login_prompt="Please log in to follow users",
    ),
)

LIKE = ToggleKind(
    name="like",
    target_namespace="vlog",
    target_list="likes",
    group="reaction",
    exclusive_with="dislike",
    messages=ToggleMessages(
        activated="Vlog liked!",
        deactivated="Like removed",
        failed_activate="Failed to like vlog",
        failed_deactivate="Failed to remove like",
        login_prompt="Please log in to like vlogs",
    ),
)

DISLIKE = ToggleKind(
    name="dislike",
    target_namespace="vlog",
    target_list="dislikes",
    group="reaction",
    exclusive_with="like",
    messages=ToggleMessages(
        activated="Vlog disliked!",
        deactivated="Dislike removed",
        failed_activate="Failed to dislike vlog",
        failed_deactivate="Failed to remove dislike",
        login_prompt="Please log in to dislike vlogs",
    ),
)

BOOKMARK = ToggleKind(
    name="bookmark",
    target_namespace="vlog",
    target_flag="isBookmarked",
    messages=ToggleMessages(
        activated="Vlog bookmarked!",
        deactivated="Bookmark removed!",
        failed_activate="Failed to update bookmark",
        failed_deactivate="Failed to update bookmark",
        login_prompt="Please log in to bookmark vlogs",
    ),
)

KINDS: dict[str, ToggleKind] = {k.name: k for k in (FOLLOW, LIKE, DISLIKE, BOOKMARK)}


def get_kind(kind: "str | ToggleKind") -> ToggleKind:
    """
    Resolve a kind by name.

    Raises:
        ValueError: If the kind is not registered.
    """
    if isinstance(kind, ToggleKind):
        return kind
    try:
        return KINDS[kind]
    except KeyError:
        available = ", ".join(KINDS)
        raise ValueError(f"Unknown toggle kind '{kind}'. Available: {available}") from None
