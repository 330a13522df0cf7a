"""Keep a group's children in step with its wrapper's collapse state."""

from __future__ import annotations

import logging

from turnfold.state import Group, Session
from turnfold.surface import DocumentSurface, FragmentRange, Span

logger = logging.getLogger(__name__)

DEFAULT_INDENT = "  "


def register_child(group: Group, child_id: str) -> bool:
    """Append ``child_id`` to the group's children. Returns False if present."""
    if group.has_child(child_id):
        return False
    group.child_ids.append(child_id)
    return True


def drop_child(surface: DocumentSurface, group: Group, child_id: str) -> bool:
    """Remove ``child_id`` from the group and hide it. Returns False if absent."""
    if not group.has_child(child_id):
        return False
    group.child_ids.remove(child_id)
    if surface.is_live():
        child = surface.query_fragment_range(group.request_id, child_id)
        if child is not None:
            _hide_child(surface, child)
    return True


def find_owning_group(session: Session, child_id: str) -> Group | None:
    """Most recently created group that lists ``child_id`` as a child."""
    for group in reversed(session.groups):
        if group.has_child(child_id):
            return group
    return None


def sync_children(
    surface: DocumentSurface,
    group: Group,
    *,
    indent: str = DEFAULT_INDENT,
) -> bool:
    """Show or hide every child of ``group`` to match its wrapper.

    Returns False when nothing was touched (surface gone or wrapper missing).
    Running it twice in a row leaves the surface unchanged.
    """
    if not surface.is_live():
        return False

    wrapper = surface.query_fragment_range(group.request_id, group.wrapper_id)
    if wrapper is None:
        logger.debug("Wrapper %s not on surface; skipping sync", group.wrapper_id)
        return False

    _hide_wrapper_body(surface, wrapper)

    for child_id in group.child_ids:
        child = surface.query_fragment_range(group.request_id, child_id)
        if child is None:
            continue
        if wrapper.collapsed:
            _hide_child(surface, child)
        else:
            _show_child(surface, child, indent)
    return True


def on_user_toggle(
    surface: DocumentSurface,
    session: Session,
    fragment_id: str,
    *,
    indent: str = DEFAULT_INDENT,
) -> Group | None:
    """Cascade a user expand/collapse of a wrapper onto its children.

    Returns the owning group, or None when ``fragment_id`` is not a wrapper.
    """
    group = session.group_for_wrapper(fragment_id)
    if group is None:
        return None
    sync_children(surface, group, indent=indent)
    return group


def _hide_wrapper_body(surface: DocumentSurface, wrapper: FragmentRange) -> None:
    # The wrapper body is a placeholder; the surface cannot draw a
    # collapsible without one, so it stays hidden in both states.
    if wrapper.body is not None and not wrapper.body.is_empty:
        surface.set_invisible(wrapper.body, True)


def _blank_separator(surface: DocumentSurface, start: int) -> Span | None:
    """The double line break right before ``start``, if there is one."""
    if start < 2 or surface.text(start - 2, start) != "\n\n":
        return None
    return Span(start - 2, start)


def _hide_child(surface: DocumentSurface, child: FragmentRange) -> None:
    surface.set_invisible(child.span, True)
    separator = _blank_separator(surface, child.start)
    if separator is not None:
        surface.set_invisible(separator, True)


def _show_child(surface: DocumentSurface, child: FragmentRange, indent: str) -> None:
    surface.set_invisible(child.span, False)
    surface.set_indent(child.span, indent)
    separator = _blank_separator(surface, child.start)
    if separator is not None:
        surface.set_invisible(separator, False)
        # keep one of the two breaks so the child sits right under the wrapper
        surface.set_invisible(Span(separator.end - 1, separator.end), True)
