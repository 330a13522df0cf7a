"""Caption derivation for thought text.

Thought text streams in as markdown chunks. The wrapper caption shows only the
first line, stripped of emphasis and capped in length; when that hides
anything, the full text goes into a child fragment placed right under the
wrapper. The child is dropped again once the caption shows everything.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from turnfold.state import Group
from turnfold.surface import DocumentSurface
from turnfold.ui import Icons
from turnfold.visibility import DEFAULT_INDENT, drop_child, sync_children

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS = 72

_STRONG_STAR_RE = re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*", re.DOTALL)
_STRONG_UNDERSCORE_RE = re.compile(r"(?<!\w)__(?=\S)(.+?)(?<=\S)__(?!\w)", re.DOTALL)
_EM_STAR_RE = re.compile(r"(?<![\w*])\*(?=[^\s*])(.+?)(?<=[^\s*])\*(?![\w*])")
_EM_UNDERSCORE_RE = re.compile(r"(?<![\w_])_(?=[^\s_])(.+?)(?<=[^\s_])_(?![\w_])")
_CODE_RE = re.compile(r"`([^`\n]+)`")
# Openers whose closer has not streamed in yet
_DANGLING_RE = re.compile(r"\*\*|`")


def strip_markup(text: str) -> str | None:
    """Remove emphasis markers and trim; None when nothing is left."""
    stripped = _STRONG_STAR_RE.sub(r"\1", text)
    stripped = _STRONG_UNDERSCORE_RE.sub(r"\1", stripped)
    stripped = _EM_STAR_RE.sub(r"\1", stripped)
    stripped = _EM_UNDERSCORE_RE.sub(r"\1", stripped)
    stripped = _CODE_RE.sub(r"\1", stripped)
    stripped = _DANGLING_RE.sub("", stripped).strip()
    return stripped or None


@dataclass(frozen=True)
class Caption:
    """One-line caption derived from a full label."""

    text: str
    truncated: bool
    needs_detail: bool


def derive_caption(
    label: str,
    max_chars: int = DEFAULT_MAX_CHARS,
    ellipsis: str = Icons.ELLIPSIS,
) -> Caption:
    """Take the first line of ``label``, truncating it past ``max_chars``."""
    first_line = label.partition("\n")[0].rstrip("\r")
    truncated = len(first_line) > max_chars
    text = first_line[:max_chars] + ellipsis if truncated else first_line
    return Caption(
        text=text,
        truncated=truncated,
        needs_detail=truncated or first_line != label,
    )


def update_label(
    surface: DocumentSurface,
    group: Group,
    incoming: str,
    *,
    max_chars: int = DEFAULT_MAX_CHARS,
    ellipsis: str = Icons.ELLIPSIS,
    indent: str = DEFAULT_INDENT,
) -> bool:
    """Fold ``incoming`` thought text into ``group`` and refresh its caption.

    Returns True when the caption was recomputed, False when the accumulated
    text still strips down to nothing (the previous caption is kept).
    """
    group.accumulated_text += incoming

    label = strip_markup(group.accumulated_text)
    if label is None:
        logger.debug("Blank thought text for %s; keeping caption", group.wrapper_id)
        return False

    caption = derive_caption(label, max_chars, ellipsis)
    thought_id = group.thought_id
    if caption.needs_detail:
        surface.create_or_update_fragment(
            group.request_id, thought_id, label_left=label, after=group.wrapper_id
        )
        if not group.has_child(thought_id):
            group.child_ids.insert(0, thought_id)
    elif drop_child(surface, group, thought_id):
        logger.debug("Caption of %s fits again; dropped thought child", group.wrapper_id)
    group.label = caption.text

    sync_children(surface, group, indent=indent)
    return True


__all__ = [
    "DEFAULT_MAX_CHARS",
    "Caption",
    "derive_caption",
    "strip_markup",
    "update_label",
]
