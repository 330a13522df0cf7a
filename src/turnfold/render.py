"""Rich rendering helpers for the buffer surface."""

from rich.box import ROUNDED
from rich.panel import Panel
from rich.text import Text

from turnfold.buffer import BufferSurface
from turnfold.ui import Theme

__all__ = [
    "render_surface",
    "render_surface_panel",
]


def render_surface(surface: BufferSurface) -> Text:
    """Visible transcript, or a muted notice once the surface is closed."""
    if not surface.is_live():
        return Text("(surface closed)", style=Theme.MUTED)
    return surface.render()


def render_surface_panel(
    surface: BufferSurface,
    *,
    title: str | None = None,
    active: bool = False,
) -> Panel:
    """Wrap the transcript in a panel for live display."""
    return Panel(
        render_surface(surface),
        title=title,
        title_align="left",
        box=ROUNDED,
        border_style=Theme.PRIMARY if active else Theme.MUTED,
        padding=(0, 1),
    )
