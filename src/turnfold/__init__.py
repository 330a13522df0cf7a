"""Turnfold - grouped, collapsible display for streaming turn-based consoles."""

__version__ = "0.3.0"

# Re-export core components for convenience
from .buffer import BufferSurface
from .config import TurnfoldConfig, configure_logging
from .controller import GroupController
from .exceptions import (
    ConfigError,
    FragmentNotFoundError,
    ScriptError,
    SurfaceError,
    TurnfoldError,
)
from .labels import Caption, derive_caption, strip_markup, update_label
from .lifecycle import ensure_wrapper, finalize, mark_tool_call, sweep_unfinalized
from .spinner import SpinnerAnimator
from .state import Group, Session
from .surface import DocumentSurface, FragmentRange, Span
from .visibility import (
    drop_child,
    find_owning_group,
    on_user_toggle,
    register_child,
    sync_children,
)

__all__ = [
    # Core
    "GroupController",
    "TurnfoldConfig",
    "configure_logging",
    # State
    "Session",
    "Group",
    # Surface
    "DocumentSurface",
    "FragmentRange",
    "Span",
    "BufferSurface",
    # Labels
    "Caption",
    "derive_caption",
    "strip_markup",
    "update_label",
    # Lifecycle
    "ensure_wrapper",
    "finalize",
    "mark_tool_call",
    "sweep_unfinalized",
    # Spinner
    "SpinnerAnimator",
    # Visibility
    "find_owning_group",
    "on_user_toggle",
    "drop_child",
    "register_child",
    "sync_children",
    # Exceptions
    "TurnfoldError",
    "ConfigError",
    "SurfaceError",
    "FragmentNotFoundError",
    "ScriptError",
]
