"""Textual host for the Maestro dashboard.

The app is a thin shell: it forwards keys and resizes into the EventLoop as
messages and redraws a single Static with the renderer's output whenever the
state changes. All behaviour lives in the controller.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.css.query import NoMatches
from textual.widgets import Static

from maestro.config.store import ConfigStore
from maestro.container import ContainerRegistry
from maestro.logging_config import get_logger
from maestro.system import PrerequisiteChecker
from maestro.cli.tui.controller import init
from maestro.cli.tui.loop import EventLoop
from maestro.cli.tui.messages import KeyPress, RefreshRequested, Resize
from maestro.cli.tui.render import render
from maestro.cli.tui.state import AppState, Result, SettingsSnapshot, Snapshot
from maestro.cli.tui.tasks import Services, Task

logger = get_logger(__name__)


def normalize_key(key: str, character: Optional[str]) -> Optional[str]:
    """Map a Textual key event onto the controller's key names."""
    if key == "escape":
        return "esc"
    if key == "space":
        return "space"
    if character is not None and len(character) == 1 and character.isprintable():
        return character
    return key or None


class MaestroApp(App[Optional[Result]]):
    """Hosts the EventLoop and paints its state."""

    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("ctrl+c", "forward('ctrl+c')", show=False, priority=True),
        Binding("tab", "forward('tab')", show=False, priority=True),
        Binding("shift+tab", "forward('shift+tab')", show=False, priority=True),
    ]

    CSS = """
    Screen {
        overflow: hidden;
    }
    #frame {
        width: 100%;
        height: 100%;
    }
    """

    def __init__(self, state: AppState, services: Services, initial_tasks: tuple[Task, ...], **kwargs: object) -> None:
        super().__init__(**kwargs)
        self.session_loop = EventLoop(state, services, on_change=self._paint)
        self._initial_tasks = initial_tasks

    def compose(self) -> ComposeResult:
        yield Static(id="frame")

    def on_mount(self) -> None:
        self.run_worker(self._pump(), exclusive=True, name="maestro-event-loop")

    async def _pump(self) -> None:
        result = await self.session_loop.run(self._initial_tasks)
        self.exit(result)

    def _paint(self, state: AppState) -> None:
        try:
            frame = self.query_one("#frame", Static)
        except NoMatches:
            return
        frame.update(render(state, datetime.now()))

    def on_resize(self, event: events.Resize) -> None:
        self.session_loop.post(Resize(width=event.size.width, height=event.size.height))

    def on_app_focus(self, event: events.AppFocus) -> None:
        self.session_loop.post(RefreshRequested())

    def on_key(self, event: events.Key) -> None:
        key = normalize_key(event.key, event.character)
        if key is None:
            return
        event.stop()
        event.prevent_default()
        self.session_loop.post(KeyPress(key))

    def action_forward(self, key: str) -> None:
        self.session_loop.post(KeyPress(key))


def run_tui(
    store: ConfigStore,
    registry: ContainerRegistry,
    checker: PrerequisiteChecker,
    *,
    credentials_present: bool,
    snapshot: Snapshot | None = None,
    working_dir: str = "",
) -> tuple[Result | None, Snapshot | None]:
    """Run the dashboard until it produces a Result.

    Returns the result together with a snapshot of the last known list, so
    the caller can re-enter with an instant redraw after a handoff.
    """
    settings = SettingsSnapshot.from_store(store, credentials_present=credentials_present, working_dir=working_dir)
    state, tasks = init(settings, snapshot)
    services = Services(registry=registry, store=store, checker=checker, prefix=settings.prefix)
    app = MaestroApp(state, services, tasks)
    result = app.run()
    if result is None:
        logger.warning("Dashboard exited without a result")
    final = app.session_loop.state
    if final.wizard is not None or not final.initial_load_done:
        return result, None
    return result, final.snapshot()
