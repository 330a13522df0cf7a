"""Session and group state for the grouping controller."""

import asyncio
from dataclasses import dataclass, field

# NOTE: No __future__.annotations here; field annotations are evaluated when
# the dataclasses are built, so only the task type needs quoting.


def wrapper_id_for(request_id: int, group_index: int) -> str:
    """Deterministic wrapper fragment id for the Nth group of a turn."""
    return f"group-{request_id}-{group_index}"


def thought_id_for(wrapper_id: str) -> str:
    """Id of the hidden child holding a group's full thought text."""
    return f"{wrapper_id}-thought"


@dataclass
class Group:
    """One collapsible wrapper section and everything folded into it."""

    request_id: int
    wrapper_id: str

    # Insertion order is display order; slot 0 is reserved for the thought child
    child_ids: list[str] = field(default_factory=list)
    has_tool_calls: bool = False

    animator: "asyncio.Task[None] | None" = field(default=None, repr=False)
    frame_index: int = 0

    accumulated_text: str = ""
    label: str = ""
    finalized: bool = False

    @property
    def thought_id(self) -> str:
        return thought_id_for(self.wrapper_id)

    def has_child(self, child_id: str) -> bool:
        return child_id in self.child_ids


@dataclass
class Session:
    """Per-session grouping record.

    ``groups`` is append-only: it is the history used to replay user toggles
    on groups from earlier in the session.
    """

    current_group: Group | None = None
    groups: list[Group] = field(default_factory=list)
    group_index: int = 0
    request_count: int = 0

    # wrapper id -> owning group, filled in when the wrapper is created
    wrappers: dict[str, Group] = field(default_factory=dict)

    def start_turn(self) -> int:
        """Mark the start of a new request and return its turn id."""
        self.request_count += 1
        return self.request_count

    def add_group(self, group: Group) -> None:
        """Register ``group`` as current and record it in the history."""
        self.current_group = group
        self.groups.append(group)
        self.wrappers[group.wrapper_id] = group

    def group_for_wrapper(self, wrapper_id: str) -> Group | None:
        return self.wrappers.get(wrapper_id)

    @property
    def active_groups(self) -> list[Group]:
        """Groups that currently own a running animator."""
        return [group for group in self.groups if group.animator is not None]
