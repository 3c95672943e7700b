"""Unit tests for the renderer."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest
from rich.console import Console

from maestro.container import OperationType, SessionSummary
from maestro.cli.tui import modals, theme
from maestro.cli.tui.controller import handle, init
from maestro.cli.tui.messages import ConfirmOperation, KeyPress, Resize, SessionsLoaded
from maestro.cli.tui.render import render
from maestro.cli.tui.state import AppState, SettingsSnapshot, WizardState

NOW = datetime(2024, 5, 1, 14, 30)


def text_of(state: AppState) -> str:
    console = Console(record=True, width=120, color_system=None)
    console.print(render(state, NOW))
    return console.export_text()


def loaded(*names: str) -> AppState:
    state, _ = init(SettingsSnapshot(working_dir="/home/dev/project"))
    state, _ = handle(state, Resize(120, 40))
    sessions = tuple(
        SessionSummary(name=f"maestro-{n}", short_name=n, status="running", branch=f"feat/{n}") for n in names
    )
    state, _ = handle(state, SessionsLoaded(state.load_generation, sessions))
    return state


@pytest.mark.unit
def test_loading_placeholder_before_first_load() -> None:
    state, _ = init(SettingsSnapshot())

    assert "Loading containers..." in text_of(state)


@pytest.mark.unit
def test_session_table_shows_short_names_and_status_bar() -> None:
    output = text_of(loaded("api", "web"))

    assert "NAME" in output and "BRANCH" in output
    assert "› api" in output
    assert "feat/web" in output
    assert "2 containers" in output
    assert "/home/dev/project" in output
    assert "Ready" in output
    assert "14:30" in output
    assert "Success: Loaded 2 containers" in output


@pytest.mark.unit
def test_empty_list_hint() -> None:
    assert "No containers yet. Press n to create one." in text_of(loaded())


@pytest.mark.unit
def test_busy_status_is_shown() -> None:
    state = loaded("api")
    state, _ = handle(state, ConfirmOperation(OperationType.DELETE, "maestro-api"))

    assert "Deleting..." in text_of(state)


@pytest.mark.unit
def test_modal_panel_replaces_table() -> None:
    state = loaded("api")
    state = replace(state, modal=modals.confirm_operation_modal(OperationType.STOP, "maestro-api"))

    output = text_of(state)

    assert "Confirm Stop" in output
    assert "Are you sure you want to stop" in output
    assert "feat/api" not in output


@pytest.mark.unit
def test_form_error_is_rendered() -> None:
    state = loaded("api")
    state, _ = handle(state, KeyPress("n"))
    state, _ = handle(state, KeyPress("ctrl+s"))

    output = text_of(state)

    assert "Create New Container" in output
    assert "Task description is required" in output


@pytest.mark.unit
def test_wizard_reveal_prompt_after_animation() -> None:
    state = AppState(width=120, wizard=WizardState(animation_column=theme.BANNER_WIDTH, animation_complete=True))

    assert "Press Enter to begin setup" in text_of(state)


@pytest.mark.unit
def test_render_is_deterministic_for_equal_state() -> None:
    state = loaded("api")

    assert text_of(state) == text_of(state)
