"""Spinner animation for the active group's wrapper caption.

The animator runs as an asyncio task on the same loop as the event handlers,
so ticks interleave with handlers but never run concurrently with them. The
task only captures the wrapper id and looks the group up again on every tick.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from turnfold.state import Group, Session
from turnfold.surface import DocumentSurface
from turnfold.ui import Icons, completion_marker

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.1


class SpinnerAnimator:
    """Rotates a glyph in front of a group caption until stopped.

    At most one group per session animates: ``start`` stops every other
    animator in the session before scheduling a new one.
    """

    def __init__(
        self,
        surface: DocumentSurface,
        *,
        interval: float = DEFAULT_INTERVAL,
        frames: Sequence[str] = tuple(Icons.BRAILLE_SPINNER),
        working_label: str = Icons.WORKING,
        done_icon: str = Icons.DONE,
    ) -> None:
        if not frames:
            raise ValueError("Spinner needs at least one frame")
        self.surface = surface
        self.interval = interval
        self.frames = tuple(frames)
        self.working_label = working_label
        self.done_icon = done_icon

    def start(self, session: Session, group: Group) -> bool:
        """Begin animating ``group``. Returns False if no task was scheduled."""
        for other in session.active_groups:
            self.stop(other)
        self.stop(group)
        if group.finalized:
            return False

        group.frame_index = 0
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; %s stays static", group.wrapper_id)
            return False

        group.animator = loop.create_task(
            self._spin(session, group.wrapper_id),
            name=f"turnfold-spinner-{group.wrapper_id}",
        )
        return True

    def stop(self, group: Group) -> None:
        """Cancel the group's animator. No-op when it is idle."""
        task = group.animator
        group.animator = None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # A tick stopping its own task just returns instead of cancelling
        if task is not current:
            task.cancel()

    def tick(self, session: Session, wrapper_id: str) -> bool:
        """Advance one frame. Returns False once the animation must end."""
        group = session.group_for_wrapper(wrapper_id)
        if group is None:
            return False
        if group.finalized:
            self.stop(group)
            return False
        if not self.surface.is_live():
            logger.debug("Surface gone; stopping spinner for %s", wrapper_id)
            self.stop(group)
            return False

        try:
            frame = self.frames[group.frame_index % len(self.frames)]
            group.frame_index = (group.frame_index + 1) % len(self.frames)
            self._push(group, f"{frame} {self.caption(group)}")
        except Exception:
            logger.exception("Spinner tick failed for %s", wrapper_id)
            self.stop(group)
            return False
        return True

    def caption(self, group: Group) -> str:
        return group.label or self.working_label

    def completion_caption(self, group: Group) -> str:
        return completion_marker(self.caption(group), self.done_icon)

    def refresh(self, group: Group) -> None:
        """Redraw the caption with the current frame, without advancing it."""
        if not self.surface.is_live():
            return
        if group.finalized:
            display = self.completion_caption(group)
        elif group.animator is not None:
            frame = self.frames[group.frame_index % len(self.frames)]
            display = f"{frame} {self.caption(group)}"
        else:
            display = self.caption(group)
        self._push(group, display)

    def _push(self, group: Group, display: str) -> None:
        self.surface.create_or_update_fragment(
            group.request_id, group.wrapper_id, label_left=display
        )

    async def _spin(self, session: Session, wrapper_id: str) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if not self.tick(session, wrapper_id):
                return
