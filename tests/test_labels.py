"""Tests for thought caption derivation."""

from __future__ import annotations

import pytest

from turnfold.buffer import BufferSurface
from turnfold.labels import derive_caption, strip_markup, update_label
from turnfold.state import Group


@pytest.fixture
def surface() -> BufferSurface:
    surface = BufferSurface()
    surface.create_or_update_fragment(1, "group-1-1", label_left="Working…", body=" ", expanded=False)
    return surface


@pytest.fixture
def group() -> Group:
    return Group(request_id=1, wrapper_id="group-1-1")


class TestStripMarkup:
    """Tests for strip_markup."""

    def test_removes_strong_emphasis_and_trims(self):
        assert strip_markup("**Thinking** about ") == "Thinking about"

    def test_removes_underscore_strong(self):
        assert strip_markup("__Plan__ the change") == "Plan the change"

    def test_removes_single_emphasis(self):
        assert strip_markup("*Quickly* check _this_ out") == "Quickly check this out"

    def test_removes_inline_code_ticks(self):
        assert strip_markup("Open `config.toml` first") == "Open config.toml first"

    def test_keeps_identifier_underscores(self):
        assert strip_markup("Rename snake_case_name") == "Rename snake_case_name"

    def test_keeps_bullet_stars(self):
        assert strip_markup("* first\n* second") == "* first\n* second"

    def test_drops_dangling_opener_from_partial_chunk(self):
        assert strip_markup("**Thinking") == "Thinking"

    def test_blank_returns_none(self):
        assert strip_markup("") is None
        assert strip_markup("   \n\t") is None

    def test_markup_only_returns_none(self):
        assert strip_markup("****") is None


class TestDeriveCaption:
    """Tests for derive_caption."""

    def test_short_single_line_is_verbatim(self):
        caption = derive_caption("Reading the config")
        assert caption.text == "Reading the config"
        assert not caption.truncated
        assert not caption.needs_detail

    def test_exactly_max_chars_is_not_truncated(self):
        label = "x" * 72
        caption = derive_caption(label)
        assert caption.text == label
        assert not caption.needs_detail

    def test_long_line_is_truncated_with_ellipsis(self):
        caption = derive_caption("y" * 100)
        assert caption.text == "y" * 72 + "…"
        assert caption.truncated
        assert caption.needs_detail

    def test_multiline_uses_first_line(self):
        caption = derive_caption("Plan\nStep one\nStep two")
        assert caption.text == "Plan"
        assert not caption.truncated
        assert caption.needs_detail

    def test_custom_limit_and_ellipsis(self):
        caption = derive_caption("abcdefghijkl", max_chars=8, ellipsis="...")
        assert caption.text == "abcdefgh..."


class TestUpdateLabel:
    """Tests for update_label."""

    def test_accumulates_chunks_in_order(self, surface, group):
        chunks = ["**Thinking** about ", "the problem", " in detail"]
        for chunk in chunks:
            update_label(surface, group, chunk)
        assert group.accumulated_text == "".join(chunks)
        assert group.label == "Thinking about the problem in detail"

    def test_short_label_creates_no_child(self, surface, group):
        update_label(surface, group, "Next step")
        assert group.label == "Next step"
        assert group.child_ids == []
        assert (1, "group-1-1-thought") not in surface

    def test_long_label_creates_hidden_thought_child(self, surface, group):
        text = "z" * 100
        assert update_label(surface, group, text)

        assert group.label == "z" * 72 + "…"
        assert group.child_ids == ["group-1-1-thought"]
        assert surface.label_of(1, "group-1-1-thought") == text
        # Wrapper is collapsed, so the child is hidden
        assert surface.plain_text() == "Working…"

    def test_multiline_label_keeps_full_text_in_child(self, surface, group):
        update_label(surface, group, "**Plan**\nRead the config\nThen patch it")
        assert group.label == "Plan"
        assert surface.label_of(1, group.thought_id) == "Plan\nRead the config\nThen patch it"

    def test_thought_child_is_updated_not_duplicated(self, surface, group):
        update_label(surface, group, "a" * 80)
        update_label(surface, group, "b" * 10)
        assert group.child_ids == [group.thought_id]
        assert surface.label_of(1, group.thought_id) == "a" * 80 + "b" * 10

    def test_thought_child_goes_first(self, surface, group):
        surface.create_or_update_fragment(1, "call-1", label_left="read_file")
        group.child_ids.append("call-1")

        update_label(surface, group, "line one\nline two")

        assert group.child_ids == [group.thought_id, "call-1"]

    def test_late_thought_child_displays_before_tool_calls(self, surface, group):
        surface.toggle(1, "group-1-1")
        update_label(surface, group, "Reading")
        surface.create_or_update_fragment(1, "call-1", label_left="read_file")
        group.child_ids.append("call-1")

        update_label(surface, group, "\nmore detail here")

        assert group.child_ids == [group.thought_id, "call-1"]
        assert surface.plain_text() == "Working…\n  Reading\n  more detail here\n  read_file"

    def test_thought_child_dropped_when_caption_fits_again(self, surface, group):
        surface.toggle(1, "group-1-1")
        update_label(surface, group, "_" + "a" * 72)
        assert group.child_ids == [group.thought_id]

        update_label(surface, group, "_")

        assert group.label == "a" * 72
        assert group.child_ids == []
        assert surface.plain_text() == "Working…"

    def test_dropped_thought_child_comes_back(self, surface, group):
        surface.toggle(1, "group-1-1")
        update_label(surface, group, "_" + "a" * 72)
        update_label(surface, group, "_")

        update_label(surface, group, "\nmore")

        assert group.child_ids == [group.thought_id]
        assert surface.label_of(1, group.thought_id) == "a" * 72 + "\nmore"
        assert surface.plain_text() == "Working…\n  " + "a" * 72 + "\n  more"

    def test_blank_input_leaves_label_unchanged(self, surface, group):
        update_label(surface, group, "Reading")
        assert update_label(surface, group, "   ") is True  # still "Reading   "
        assert group.label == "Reading"

        empty = Group(request_id=1, wrapper_id="group-1-1")
        assert update_label(surface, empty, "  \n ") is False
        assert empty.label == ""
        assert empty.accumulated_text == "  \n "

    def test_child_follows_expanded_wrapper(self, surface, group):
        surface.toggle(1, "group-1-1")
        update_label(surface, group, "First line\nsecond line")
        assert surface.plain_text() == "Working…\n  First line\n  second line"
