"""In-memory document surface.

``BufferSurface`` keeps the console transcript as a flat run of characters,
each carrying its own presentation properties, much like an editor buffer:

- fragments are laid out in creation order, a blank line between each,
  unless created with an ``after`` anchor, which places them right after it;
- a fragment is a label line followed by an optional body;
- a collapsed fragment hides its own body (``fragment`` invisibility);
- ``set_invisible`` adds or clears ``group`` invisibility, independently of
  the fragment's own, so cascading a wrapper never un-hides a collapsed body;
- replacing a label or body keeps the properties of the text it replaces.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from rich.text import Text

from turnfold.exceptions import FragmentNotFoundError, SurfaceError
from turnfold.surface import FragmentRange, Span
from turnfold.ui import Theme

logger = logging.getLogger(__name__)

SEPARATOR = "\n\n"

GROUP_INVISIBLE = "group"
FRAGMENT_INVISIBLE = "fragment"

_ROLE_STYLES = {
    "separator": Theme.SEPARATOR,
    "label": Theme.LABEL,
    "body": Theme.BODY,
}

ToggleListener = Callable[[int, str, bool], None]


@dataclass
class _Cell:
    char: str
    role: str
    hidden: set[str] = field(default_factory=set)
    prefix: str | None = None


@dataclass
class _Fragment:
    turn_id: int
    fragment_id: str
    label_left: str = ""
    body: str | None = None
    collapsed: bool = False
    separator: list[_Cell] = field(default_factory=list)
    label: list[_Cell] = field(default_factory=list)
    body_cells: list[_Cell] = field(default_factory=list)

    @property
    def cells(self) -> list[_Cell]:
        return self.separator + self.label + self.body_cells

    def __len__(self) -> int:
        return len(self.separator) + len(self.label) + len(self.body_cells)


def _make_cells(text: str, role: str, template: _Cell | None = None) -> list[_Cell]:
    if template is None:
        return [_Cell(char, role) for char in text]
    return [_Cell(char, role, set(template.hidden), template.prefix) for char in text]


def _body_text(body: str | None) -> str:
    return f"\n{body}" if body else ""


class BufferSurface:
    """A ``DocumentSurface`` backed by a character buffer, renderable with rich."""

    def __init__(self) -> None:
        self._fragments: list[_Fragment] = []
        self._index: dict[tuple[int, str], _Fragment] = {}
        self._live = True
        self._toggle_listeners: list[ToggleListener] = []

    # -- DocumentSurface ------------------------------------------------------

    def create_or_update_fragment(
        self,
        turn_id: int,
        fragment_id: str,
        *,
        label_left: str,
        body: str | None = None,
        expanded: bool | None = None,
        after: str | None = None,
    ) -> None:
        if not self._live:
            return

        fragment = self._index.get((turn_id, fragment_id))
        if fragment is None:
            anchor = self._index.get((turn_id, after)) if after is not None else None
            fragment = _Fragment(
                turn_id=turn_id,
                fragment_id=fragment_id,
                label_left=label_left,
                body=body,
                collapsed=expanded is False,
                separator=_make_cells(SEPARATOR, "separator") if self._fragments else [],
                label=_make_cells(label_left, "label"),
                body_cells=_make_cells(_body_text(body), "body"),
            )
            if anchor is None:
                self._fragments.append(fragment)
            else:
                self._fragments.insert(self._fragments.index(anchor) + 1, fragment)
            self._index[(turn_id, fragment_id)] = fragment
        else:
            if label_left != fragment.label_left:
                template = fragment.label[0] if fragment.label else None
                fragment.label = _make_cells(label_left, "label", template)
                fragment.label_left = label_left
            if body is not None and body != fragment.body:
                template = fragment.body_cells[0] if fragment.body_cells else None
                fragment.body_cells = _make_cells(_body_text(body), "body", template)
                fragment.body = body
            if expanded is not None:
                fragment.collapsed = not expanded

        self._apply_collapse(fragment)

    def query_fragment_range(self, turn_id: int, fragment_id: str) -> FragmentRange | None:
        if not self._live:
            return None
        offset = 0
        for fragment in self._fragments:
            if fragment.turn_id == turn_id and fragment.fragment_id == fragment_id:
                start = offset + len(fragment.separator)
                label_end = start + len(fragment.label)
                end = label_end + len(fragment.body_cells)
                body = Span(label_end, end) if fragment.body_cells else None
                return FragmentRange(start, end, fragment.collapsed, body)
            offset += len(fragment)
        return None

    def set_invisible(self, span: Span, invisible: bool) -> None:
        if not self._live:
            return
        for cell in self._slice(span.start, span.end):
            if invisible:
                cell.hidden.add(GROUP_INVISIBLE)
            else:
                cell.hidden.discard(GROUP_INVISIBLE)

    def set_indent(self, span: Span, prefix: str) -> None:
        if not self._live:
            return
        for cell in self._slice(span.start, span.end):
            cell.prefix = prefix or None

    def text(self, start: int, end: int) -> str:
        if not self._live:
            return ""
        return "".join(cell.char for cell in self._slice(start, end))

    def is_live(self) -> bool:
        return self._live

    # -- User actions -----------------------------------------------------------

    def toggle(self, turn_id: int, fragment_id: str) -> bool:
        """Flip a fragment between collapsed and expanded, as a user click would.

        Returns True when the fragment is now expanded. Toggle listeners are
        notified after the fragment has been updated.
        """
        if not self._live:
            raise SurfaceError("Surface is closed", {"fragment_id": fragment_id})
        fragment = self._index.get((turn_id, fragment_id))
        if fragment is None:
            raise FragmentNotFoundError(
                f"No fragment {fragment_id!r} in turn {turn_id}",
                turn_id=turn_id,
                fragment_id=fragment_id,
            )
        fragment.collapsed = not fragment.collapsed
        self._apply_collapse(fragment)
        expanded = not fragment.collapsed
        for listener in list(self._toggle_listeners):
            listener(turn_id, fragment_id, expanded)
        return expanded

    def add_toggle_listener(self, listener: ToggleListener) -> None:
        self._toggle_listeners.append(listener)

    def close(self) -> None:
        """Tear the surface down; later calls become no-ops."""
        self._live = False
        self._toggle_listeners.clear()
        logger.debug("Surface closed with %d fragment(s)", len(self._fragments))

    # -- Inspection -------------------------------------------------------------

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return sum(len(fragment) for fragment in self._fragments)

    @property
    def fragment_ids(self) -> list[tuple[int, str]]:
        return [(f.turn_id, f.fragment_id) for f in self._fragments]

    def label_of(self, turn_id: int, fragment_id: str) -> str | None:
        fragment = self._index.get((turn_id, fragment_id))
        return fragment.label_left if fragment else None

    def is_collapsed(self, turn_id: int, fragment_id: str) -> bool | None:
        fragment = self._index.get((turn_id, fragment_id))
        return fragment.collapsed if fragment else None

    def render(self) -> Text:
        """Visible transcript as rich ``Text``: hidden text dropped, prefixes applied."""
        text = Text()
        run: list[str] = []
        run_style: str | None = None
        at_line_start = True

        def flush() -> None:
            if run:
                text.append("".join(run), style=run_style or "")
                run.clear()

        for cell in self._iter_cells():
            if cell.hidden:
                continue
            if at_line_start and cell.prefix and cell.char != "\n":
                flush()
                text.append(cell.prefix, style=Theme.INDENT)
            style = _ROLE_STYLES.get(cell.role, "")
            if style != run_style:
                flush()
                run_style = style
            run.append(cell.char)
            at_line_start = cell.char == "\n"
        flush()
        return text

    def plain_text(self) -> str:
        return self.render().plain

    # -- Internals ---------------------------------------------------------------

    def _iter_cells(self) -> Iterator[_Cell]:
        for fragment in self._fragments:
            yield from fragment.cells

    def _slice(self, start: int, end: int) -> list[_Cell]:
        return list(self._iter_cells())[max(start, 0):max(end, 0)]

    @staticmethod
    def _apply_collapse(fragment: _Fragment) -> None:
        for cell in fragment.body_cells:
            if fragment.collapsed:
                cell.hidden.add(FRAGMENT_INVISIBLE)
            else:
                cell.hidden.discard(FRAGMENT_INVISIBLE)
