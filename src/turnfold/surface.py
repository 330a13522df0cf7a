"""The document surface the grouping core draws on.

The surface owns the rendered text: it creates fragments, reports where they
live and applies range-level presentation. The core only talks to it through
the ``DocumentSurface`` protocol below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Span:
    """Half-open character range ``[start, end)`` on the surface."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span: [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end == self.start


@dataclass(frozen=True)
class FragmentRange:
    """Where a fragment currently sits and whether it is collapsed.

    ``body`` is the sub-range holding the fragment body, or None when the
    fragment has no body.
    """

    start: int
    end: int
    collapsed: bool
    body: Span | None = None

    @property
    def span(self) -> Span:
        return Span(self.start, self.end)


@runtime_checkable
class DocumentSurface(Protocol):
    """Rendering substrate consumed by the grouping core.

    Every method must be safe to call after the surface has gone away: writes
    become no-ops, queries return None or an empty string.
    """

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
        """Insert or update a fragment; omitted fields keep their value.

        A new fragment is placed right after fragment ``after`` of the same
        turn when that exists, and at the end otherwise. ``after`` is ignored
        on updates.
        """
        ...

    def query_fragment_range(self, turn_id: int, fragment_id: str) -> FragmentRange | None:
        ...

    def set_invisible(self, span: Span, invisible: bool) -> None:
        """Add or clear group-owned invisibility on ``span``.

        Invisibility the fragment applies to itself (a collapsed body) is a
        separate marking and is never cleared by this call.
        """
        ...

    def set_indent(self, span: Span, prefix: str) -> None:
        """Prefix every line starting inside ``span`` with ``prefix``."""
        ...

    def text(self, start: int, end: int) -> str:
        ...

    def is_live(self) -> bool:
        ...
