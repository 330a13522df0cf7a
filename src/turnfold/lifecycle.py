"""Starting, reusing and finalizing wrapper groups.

A turn's activity is folded into one wrapper group until a new thought shows
up after the group has already run tool calls; that starts the next phase in
a fresh group. Groups are finalized at phase boundaries and at turn end.
"""

from __future__ import annotations

import logging

from turnfold.spinner import SpinnerAnimator
from turnfold.state import Group, Session, wrapper_id_for
from turnfold.surface import DocumentSurface
from turnfold.ui import Icons, completion_marker
from turnfold.visibility import DEFAULT_INDENT, sync_children

logger = logging.getLogger(__name__)

PLACEHOLDER_BODY = " "


def needs_new_group(session: Session, *, is_new_thought: bool) -> bool:
    """Whether the next bit of activity must open a new wrapper group."""
    current = session.current_group
    if current is None or current.request_id != session.request_count:
        return True
    return is_new_thought and current.has_tool_calls


def ensure_wrapper(
    surface: DocumentSurface,
    session: Session,
    animator: SpinnerAnimator,
    *,
    is_new_thought: bool = False,
    indent: str = DEFAULT_INDENT,
) -> Group:
    """Return the group that new activity belongs to, creating it if needed."""
    if not needs_new_group(session, is_new_thought=is_new_thought):
        return session.current_group  # type: ignore[return-value]

    outgoing = session.current_group
    if outgoing is not None and outgoing.request_id == session.request_count:
        finalize(surface, animator, outgoing, indent=indent)
        session.group_index += 1
    else:
        if outgoing is not None and outgoing.animator is not None:
            # Turn ended without on_turn_ended; drop the frame from the caption
            logger.debug(
                "Turn %d started while %s was animating",
                session.request_count,
                outgoing.wrapper_id,
            )
            animator.stop(outgoing)
            animator.refresh(outgoing)
        session.group_index = 1

    request_id = session.request_count
    group = Group(
        request_id=request_id,
        wrapper_id=wrapper_id_for(request_id, session.group_index),
    )
    session.add_group(group)
    logger.debug(
        "Started group %s (turn %d, phase %d)",
        group.wrapper_id,
        request_id,
        session.group_index,
    )

    surface.create_or_update_fragment(
        request_id,
        group.wrapper_id,
        label_left=animator.working_label,
        body=PLACEHOLDER_BODY,
        expanded=False,
    )
    animator.start(session, group)
    return group


def mark_tool_call(session: Session) -> None:
    """Record that the current group has run a tool call."""
    if session.current_group is not None:
        session.current_group.has_tool_calls = True


def finalize(
    surface: DocumentSurface,
    animator: SpinnerAnimator,
    group: Group,
    *,
    indent: str = DEFAULT_INDENT,
) -> None:
    """Stop the group's spinner and show its completion marker."""
    animator.stop(group)
    group.finalized = True
    if not surface.is_live():
        return
    surface.create_or_update_fragment(
        group.request_id,
        group.wrapper_id,
        label_left=animator.completion_caption(group),
    )
    if group.child_ids:
        sync_children(surface, group, indent=indent)


def sweep_unfinalized(
    surface: DocumentSurface,
    session: Session,
    *,
    done_icon: str = Icons.DONE,
    working_label: str = Icons.WORKING,
) -> list[Group]:
    """Show the completion marker on every group not finalized yet.

    Animators are left alone; a spinner still running on a swept group stops
    itself on its next tick. Returns the groups that were swept.
    """
    swept = [group for group in session.groups if not group.finalized]
    for group in swept:
        group.finalized = True
        if surface.is_live():
            surface.create_or_update_fragment(
                group.request_id,
                group.wrapper_id,
                label_left=completion_marker(group.label or working_label, done_icon),
            )
    if swept:
        logger.debug("Swept %d unfinalized group(s)", len(swept))
    return swept
