"""Glyphs and styles shared by the spinner, the labels and the renderer.

Unicode icons are the default; ``ASCIIIcons`` mirrors the same names for
terminals that cannot draw braille or check marks.
"""

from __future__ import annotations


# ═══════════════════════════════════════════════════════════════════════════════
# Theme
# ═══════════════════════════════════════════════════════════════════════════════

class Theme:
    """Rich styles used when rendering the document surface."""

    PRIMARY = "cyan"
    LABEL = "bold"
    BODY = "default"
    SEPARATOR = "default"
    MUTED = "dim"
    INDENT = "bright_black"


# ═══════════════════════════════════════════════════════════════════════════════
# Icons and Symbols (with ASCII fallback)
# ═══════════════════════════════════════════════════════════════════════════════

class Icons:
    """Unicode icons for the UI."""

    DONE = "✓"
    ELLIPSIS = "…"

    # Caption shown before the first thought arrives
    WORKING = "Working…"

    BRAILLE_SPINNER = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]


class ASCIIIcons:
    """ASCII fallback icons."""

    DONE = "[OK]"
    ELLIPSIS = "..."

    WORKING = "Working..."

    BRAILLE_SPINNER = ["/", "-", "\\", "|"]


def get_icon_set(ascii_icons: bool = False) -> type[Icons] | type[ASCIIIcons]:
    """Return the icon set matching the ``ascii_icons`` preference."""
    return ASCIIIcons if ascii_icons else Icons


def completion_marker(label: str, done_icon: str = Icons.DONE) -> str:
    """Caption shown on a finalized group."""
    return f"{done_icon} {label}"
