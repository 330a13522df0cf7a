"""CLI interface for Turnfold."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.live import Live
from rich.markup import escape

from turnfold import __version__
from turnfold.buffer import BufferSurface
from turnfold.config import TurnfoldConfig, configure_logging
from turnfold.controller import GroupController
from turnfold.exceptions import TurnfoldError
from turnfold.render import render_surface_panel
from turnfold.script import ScriptEvent, ScriptReplayer, load_script

app = typer.Typer(
    name="turnfold",
    help="Grouped, collapsible display for streaming turn-based consoles.",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"turnfold version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Grouped, collapsible display for streaming turn-based consoles."""


def _load_config(
    config_path: Path | None,
    *,
    ascii_icons: bool,
    no_grouping: bool,
    log_level: str | None,
) -> TurnfoldConfig:
    config = TurnfoldConfig.from_file(config_path or TurnfoldConfig.default_path())
    updates: dict[str, object] = {}
    if ascii_icons:
        updates["ascii_icons"] = True
    if no_grouping:
        updates["grouping_enabled"] = False
    if updates:
        config = config.model_copy(update=updates)
    if log_level is not None:
        # Re-validate so a bad level is reported like a bad config file
        config = TurnfoldConfig(**{**config.model_dump(), "log_level": log_level})
    return config


@app.command()
def replay(
    script: Annotated[Path, typer.Argument(help="JSONL turn script to replay")],
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to config TOML")
    ] = None,
    speed: Annotated[
        float, typer.Option("--speed", "-s", min=0.01, help="Playback speed multiplier")
    ] = 1.0,
    ascii_icons: Annotated[
        bool, typer.Option("--ascii", help="Use ASCII icons instead of Unicode")
    ] = False,
    no_grouping: Annotated[
        bool, typer.Option("--no-grouping", help="Render fragments without grouping")
    ] = False,
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Log level (debug, info, warning, ...)")
    ] = None,
    final_only: Annotated[
        bool, typer.Option("--final-only", help="Skip the live view; print the end state")
    ] = False,
) -> None:
    """Replay a turn script and show how its fragments are grouped."""
    if not script.exists():
        console.print(f"[red]File not found: {escape(str(script))}[/red]")
        raise typer.Exit(1)

    try:
        config = _load_config(
            config_path,
            ascii_icons=ascii_icons,
            no_grouping=no_grouping,
            log_level=log_level,
        )
    except (TurnfoldError, ValueError) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from None
    configure_logging(config)

    try:
        events = load_script(script)
        asyncio.run(_run_replay(events, config, speed=speed, final_only=final_only))
    except TurnfoldError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from None


async def _run_replay(
    events: list[ScriptEvent],
    config: TurnfoldConfig,
    *,
    speed: float,
    final_only: bool,
) -> None:
    surface = BufferSurface()
    controller = GroupController(surface, config)
    replayer = ScriptReplayer(controller, surface, speed=speed)

    if final_only:
        try:
            await replayer.run(events)
        finally:
            controller.stop_all(replayer.session)
        console.print(render_surface_panel(surface, title="turnfold"))
        return

    refresh_stop = asyncio.Event()

    with Live(console=console, refresh_per_second=20, transient=False) as live:

        def update() -> None:
            live.update(
                render_surface_panel(
                    surface,
                    title="turnfold",
                    active=bool(replayer.session.active_groups),
                )
            )

        async def refresh_loop() -> None:
            while not refresh_stop.is_set():
                update()
                await asyncio.sleep(config.spinner_interval / 2)

        replayer.on_step = update
        refresh_task = asyncio.create_task(refresh_loop())
        try:
            await replayer.run(events)
        finally:
            controller.stop_all(replayer.session)
            refresh_stop.set()
            try:
                await refresh_task
            except asyncio.CancelledError:
                pass
            update()


if __name__ == "__main__":
    app()
