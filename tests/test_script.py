"""Tests for JSONL script parsing and replay."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from turnfold.buffer import BufferSurface
from turnfold.config import TurnfoldConfig
from turnfold.controller import GroupController
from turnfold.exceptions import FragmentNotFoundError, ScriptError
from turnfold.script import (
    FragmentAdded,
    Sleep,
    Thought,
    ToolCall,
    TurnEnd,
    TurnStart,
    ScriptReplayer,
    load_script,
    parse_script,
)

SCRIPT = """\
{"type": "turn_start"}
{"type": "thought", "text": "**Reading** the config"}
{"type": "tool_call", "id": "call-1", "title": "read_file config.toml", "output": "x = 1"}

{"type": "thought", "text": "Patching it", "new_phase": true}
{"type": "fragment", "id": "status-1", "label": "Wrote config.toml"}
{"type": "turn_end"}
"""


def _replayer(config: TurnfoldConfig | None = None) -> tuple[ScriptReplayer, BufferSurface]:
    surface = BufferSurface()
    controller = GroupController(surface, config or TurnfoldConfig(spinner_interval=0.005))
    return ScriptReplayer(controller, surface), surface


class TestParseScript:
    def test_parses_events_and_skips_blank_lines(self):
        events = parse_script(io.StringIO(SCRIPT))

        assert [type(e) for e in events] == [
            TurnStart,
            Thought,
            ToolCall,
            Thought,
            FragmentAdded,
            TurnEnd,
        ]
        assert events[3].new_phase
        assert events[2].output == "x = 1"

    def test_defaults(self):
        (event,) = parse_script(io.StringIO('{"type": "tool_call", "id": "c"}'))
        assert event.title == "Tool call"
        assert event.output is None

    def test_bad_json_reports_line(self):
        stream = io.StringIO('{"type": "turn_start"}\n{not json\n')
        with pytest.raises(ScriptError) as exc_info:
            parse_script(stream)
        assert exc_info.value.line_no == 2

    def test_unknown_event_type(self):
        with pytest.raises(ScriptError, match="line 1"):
            parse_script(io.StringIO('{"type": "explode"}'))

    def test_negative_sleep_rejected(self):
        with pytest.raises(ScriptError):
            parse_script(io.StringIO('{"type": "sleep", "seconds": -1}'))

    def test_load_script(self, tmp_path: Path):
        path = tmp_path / "turn.jsonl"
        path.write_text(SCRIPT, encoding="utf-8")
        assert len(load_script(path)) == 6


class TestScriptReplayer:
    @pytest.mark.asyncio
    async def test_replays_grouped_turn(self):
        replayer, surface = _replayer()

        session = await replayer.run(parse_script(io.StringIO(SCRIPT)))

        first, second = session.groups
        assert first.child_ids == ["call-1"]
        assert second.child_ids == ["status-1"]
        assert surface.label_of(1, first.wrapper_id) == "✓ Reading the config"
        assert surface.label_of(1, second.wrapper_id) == "✓ Patching it"
        assert session.active_groups == []
        assert surface.plain_text() == "✓ Reading the config\n\n✓ Patching it"

    @pytest.mark.asyncio
    async def test_toggle_event_expands_group(self):
        replayer, surface = _replayer()
        events = parse_script(io.StringIO(SCRIPT))
        events.append(parse_script(io.StringIO('{"type": "toggle", "fragment": "group-1-1"}'))[0])

        await replayer.run(events)

        assert surface.plain_text() == (
            "✓ Reading the config\n  read_file config.toml\n  x = 1\n\n✓ Patching it"
        )

    @pytest.mark.asyncio
    async def test_toggle_unknown_fragment_raises(self):
        replayer, _ = _replayer()
        await replayer.apply(TurnStart(type="turn_start"))
        with pytest.raises(FragmentNotFoundError):
            await replayer.run(parse_script(io.StringIO('{"type": "toggle", "fragment": "nope"}')))

    @pytest.mark.asyncio
    async def test_grouping_disabled_renders_flat(self):
        replayer, surface = _replayer(TurnfoldConfig(grouping_enabled=False))

        session = await replayer.run(parse_script(io.StringIO(SCRIPT)))

        assert session.groups == []
        assert surface.plain_text() == (
            "**Reading** the config\n\nread_file config.toml\nx = 1\n\n"
            "Patching it\n\nWrote config.toml"
        )

    @pytest.mark.asyncio
    async def test_on_step_called_per_event(self):
        replayer, _ = _replayer()
        steps = []
        replayer.on_step = lambda: steps.append(len(steps))

        await replayer.run(parse_script(io.StringIO(SCRIPT)))

        assert len(steps) == 6

    @pytest.mark.asyncio
    async def test_sleep_is_scaled_by_speed(self):
        surface = BufferSurface()
        replayer = ScriptReplayer(GroupController(surface), surface, speed=1000.0)
        await replayer.apply(Sleep(type="sleep", seconds=1.0))

    def test_speed_must_be_positive(self):
        surface = BufferSurface()
        with pytest.raises(ValueError):
            ScriptReplayer(GroupController(surface), surface, speed=0)
