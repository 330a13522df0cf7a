"""Replay JSONL turn scripts through the grouping controller.

Each line of a script is one event::

    {"type": "turn_start"}
    {"type": "thought", "text": "**Reading** the config", "new_phase": false}
    {"type": "tool_call", "id": "call-1", "title": "read_file config.toml", "output": "..."}
    {"type": "fragment", "id": "status-1", "label": "Indexed 42 files"}
    {"type": "toggle", "fragment": "group-1-1"}
    {"type": "sleep", "seconds": 0.5}
    {"type": "turn_end"}
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Annotated, Literal, TextIO, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from turnfold.buffer import BufferSurface
from turnfold.controller import GroupController
from turnfold.exceptions import ScriptError
from turnfold.state import Session

logger = logging.getLogger(__name__)


class TurnStart(BaseModel):
    type: Literal["turn_start"]


class Thought(BaseModel):
    type: Literal["thought"]
    text: str
    new_phase: bool = False


class ToolCall(BaseModel):
    type: Literal["tool_call"]
    id: str = Field(min_length=1)
    title: str = "Tool call"
    output: str | None = None


class FragmentAdded(BaseModel):
    type: Literal["fragment"]
    id: str = Field(min_length=1)
    label: str
    body: str | None = None
    expanded: bool | None = None


class Toggle(BaseModel):
    type: Literal["toggle"]
    fragment: str = Field(min_length=1)
    turn: int | None = None


class Sleep(BaseModel):
    type: Literal["sleep"]
    seconds: float = Field(ge=0.0)


class TurnEnd(BaseModel):
    type: Literal["turn_end"]


ScriptEvent = Annotated[
    Union[TurnStart, Thought, ToolCall, FragmentAdded, Toggle, Sleep, TurnEnd],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[ScriptEvent] = TypeAdapter(ScriptEvent)


def parse_script(stream: TextIO) -> list[ScriptEvent]:
    """Parse JSONL events from a stream. Blank lines are skipped."""
    events: list[ScriptEvent] = []
    for line_no, line in enumerate(stream, 1):
        line = line.strip()
        if not line:
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ScriptError(f"Invalid JSON on line {line_no}: {exc}", line_no) from exc
        try:
            events.append(_EVENT_ADAPTER.validate_python(payload))
        except ValidationError as exc:
            raise ScriptError(f"Invalid event on line {line_no}: {exc}", line_no) from exc
    return events


def load_script(path: str | Path) -> list[ScriptEvent]:
    """Load a JSONL script from ``path``."""
    with Path(path).open("r", encoding="utf-8") as handle:
        return parse_script(handle)


class ScriptReplayer:
    """Drives a controller and a buffer surface from script events.

    Tool calls and fragments are rendered onto the surface here, playing the
    part of the turn layer, before the controller is told about them.
    """

    def __init__(
        self,
        controller: GroupController,
        surface: BufferSurface,
        *,
        session: Session | None = None,
        speed: float = 1.0,
        on_step: Callable[[], None] | None = None,
    ) -> None:
        if speed <= 0:
            raise ValueError("speed must be positive")
        self.controller = controller
        self.surface = surface
        self.session = session or Session()
        self.speed = speed
        self.on_step = on_step
        self._plain_thoughts = 0
        surface.add_toggle_listener(self._on_toggle)

    async def run(self, events: Iterable[ScriptEvent]) -> Session:
        for event in events:
            await self.apply(event)
            if self.on_step is not None:
                self.on_step()
        return self.session

    async def apply(self, event: ScriptEvent) -> None:
        session = self.session
        if isinstance(event, TurnStart):
            turn = session.start_turn()
            logger.debug("Replaying turn %d", turn)
        elif isinstance(event, Thought):
            if self.controller.enabled:
                self.controller.on_thought_text(session, event.text, event.new_phase)
            else:
                self._plain_thoughts += 1
                self.surface.create_or_update_fragment(
                    session.request_count,
                    f"thought-{self._plain_thoughts}",
                    label_left=event.text.strip(),
                )
        elif isinstance(event, ToolCall):
            self.surface.create_or_update_fragment(
                session.request_count, event.id, label_left=event.title, body=event.output
            )
            self.controller.on_tool_call_started(session, event.id)
        elif isinstance(event, FragmentAdded):
            self.surface.create_or_update_fragment(
                session.request_count,
                event.id,
                label_left=event.label,
                body=event.body,
                expanded=event.expanded,
            )
            self.controller.on_fragment_added(session, event.id)
        elif isinstance(event, Toggle):
            turn = event.turn if event.turn is not None else session.request_count
            self.surface.toggle(turn, event.fragment)
        elif isinstance(event, Sleep):
            await asyncio.sleep(event.seconds / self.speed)
        elif isinstance(event, TurnEnd):
            self.controller.on_turn_ended(session)

    def _on_toggle(self, turn_id: int, fragment_id: str, expanded: bool) -> None:
        group = self.controller.on_user_toggle(self.session, fragment_id)
        if group is not None:
            logger.debug(
                "%s %s", "Expanded" if expanded else "Collapsed", group.wrapper_id
            )
