"""Event-facing entry point for grouped display.

The turn layer calls ``GroupController`` as events arrive; the controller
routes them through the lifecycle, label, spinner and visibility modules.
None of the handlers raise: a gone surface or a cosmetic failure only means
the display stops changing.
"""

from __future__ import annotations

import logging

from turnfold.config import TurnfoldConfig
from turnfold.labels import update_label
from turnfold.lifecycle import ensure_wrapper, finalize, mark_tool_call, sweep_unfinalized
from turnfold.spinner import SpinnerAnimator
from turnfold.state import Group, Session
from turnfold.surface import DocumentSurface
from turnfold.ui import get_icon_set
from turnfold.visibility import find_owning_group, on_user_toggle, register_child, sync_children

logger = logging.getLogger(__name__)


class GroupController:
    """Groups a turn's fragments into collapsible, animated wrapper sections."""

    def __init__(
        self,
        surface: DocumentSurface,
        config: TurnfoldConfig | None = None,
        *,
        animator: SpinnerAnimator | None = None,
    ) -> None:
        self.surface = surface
        self.config = config or TurnfoldConfig()
        self.icons = get_icon_set(self.config.ascii_icons)
        self.animator = animator or SpinnerAnimator(
            surface,
            interval=self.config.spinner_interval,
            frames=self.icons.BRAILLE_SPINNER,
            working_label=self.icons.WORKING,
            done_icon=self.icons.DONE,
        )

    @property
    def enabled(self) -> bool:
        return self.config.grouping_enabled

    def on_thought_text(
        self,
        session: Session,
        text: str,
        is_new_phase_hint: bool = False,
    ) -> Group | None:
        """Fold a chunk of thought text into the current (or a new) group."""
        if not self.enabled:
            return None
        group = self._ensure(session, is_new_thought=is_new_phase_hint)
        if update_label(
            self.surface,
            group,
            text,
            max_chars=self.config.label_max_chars,
            ellipsis=self.icons.ELLIPSIS,
            indent=self.config.child_indent,
        ):
            self.animator.refresh(group)
        return group

    def on_tool_call_started(
        self,
        session: Session,
        fragment_id: str | None = None,
    ) -> Group | None:
        """Attribute a tool call (and optionally its fragment) to the current group."""
        if not self.enabled:
            return None
        group = self._ensure(session, is_new_thought=False)
        mark_tool_call(session)
        if fragment_id is not None:
            self._adopt(group, fragment_id)
        return group

    def on_fragment_added(self, session: Session, fragment_id: str) -> Group | None:
        """Fold an already rendered fragment into the current group."""
        if not self.enabled or session.group_for_wrapper(fragment_id) is not None:
            return None
        owner = find_owning_group(session, fragment_id)
        if owner is not None:
            # Updates to a known child keep it where it was registered
            sync_children(self.surface, owner, indent=self.config.child_indent)
            return owner
        group = self._ensure(session, is_new_thought=False)
        self._adopt(group, fragment_id)
        return group

    def on_turn_ended(self, session: Session) -> list[Group]:
        """Finalize the turn's groups. Returns the groups that were still open."""
        if not self.enabled:
            return []
        closed: list[Group] = []
        current = session.current_group
        if current is not None and not current.finalized:
            finalize(self.surface, self.animator, current, indent=self.config.child_indent)
            closed.append(current)
        closed.extend(
            sweep_unfinalized(
                self.surface,
                session,
                done_icon=self.icons.DONE,
                working_label=self.icons.WORKING,
            )
        )
        return closed

    def on_user_toggle(self, session: Session, fragment_id: str) -> Group | None:
        """Re-sync the children of a wrapper the user just expanded or collapsed."""
        if not self.enabled:
            return None
        return on_user_toggle(
            self.surface, session, fragment_id, indent=self.config.child_indent
        )

    def stop_all(self, session: Session) -> None:
        """Stop every running spinner in ``session``."""
        for group in session.active_groups:
            self.animator.stop(group)

    def _ensure(self, session: Session, *, is_new_thought: bool) -> Group:
        return ensure_wrapper(
            self.surface,
            session,
            self.animator,
            is_new_thought=is_new_thought,
            indent=self.config.child_indent,
        )

    def _adopt(self, group: Group, fragment_id: str) -> None:
        if register_child(group, fragment_id):
            logger.debug("Registered %s under %s", fragment_id, group.wrapper_id)
        sync_children(self.surface, group, indent=self.config.child_indent)
