"""Unit tests for the immutable TUI state types."""

from __future__ import annotations

import pytest

from maestro.config.store import ConfigStore
from maestro.container import OperationType, SessionSummary
from maestro.cli.tui.state import (
    STATUS_FOR_OPERATION,
    AppState,
    OperationStatus,
    SessionState,
    SettingsSnapshot,
)


def entry(name: str) -> SessionSummary:
    return SessionSummary(name=f"maestro-{name}", short_name=name, status="running")


@pytest.mark.unit
def test_empty_session_has_no_selection() -> None:
    session = SessionState()

    assert session.cursor == -1
    assert session.selected() is None
    assert session.move(1).cursor == -1


@pytest.mark.unit
def test_with_entries_keeps_selected_name() -> None:
    session = SessionState(entries=(entry("a"), entry("b")), cursor=1)

    updated = session.with_entries((entry("b"), entry("c"), entry("a")))

    assert updated.cursor == 0
    assert updated.selected() == entry("b")


@pytest.mark.unit
def test_with_entries_falls_back_to_first_row() -> None:
    session = SessionState(entries=(entry("a"),), cursor=0)

    assert session.with_entries((entry("x"), entry("y"))).cursor == 0
    assert session.with_entries(()).cursor == -1


@pytest.mark.unit
@pytest.mark.parametrize("cursor,expected", [(-5, 0), (1, 1), (99, 2)])
def test_with_cursor_clamps(cursor, expected) -> None:
    session = SessionState(entries=(entry("a"), entry("b"), entry("c")))

    assert session.with_cursor(cursor).cursor == expected


@pytest.mark.unit
def test_contains_matches_full_name() -> None:
    session = SessionState(entries=(entry("a"),), cursor=0)

    assert session.contains("maestro-a")
    assert not session.contains("a")


@pytest.mark.unit
def test_status_labels() -> None:
    assert OperationStatus.READY.label == "Ready"
    assert OperationStatus.SYNCING.label == "Syncing..."
    assert OperationStatus.REFRESHING_TOKENS.label == "Refreshing tokens..."
    assert not OperationStatus.READY.busy
    assert OperationStatus.DELETING.busy
    assert set(STATUS_FOR_OPERATION) == set(OperationType)


@pytest.mark.unit
def test_operation_type_properties() -> None:
    assert OperationType.STOP.is_destructive
    assert OperationType.DELETE.is_destructive
    assert not OperationType.RESTART.is_destructive
    assert OperationType.DELETE.past_tense == "removed"


@pytest.mark.unit
@pytest.mark.parametrize(
    "kwargs,expected",
    [
        ({}, False),
        ({"config_exists": False}, True),
        ({"credentials_present": False}, True),
        ({"credentials_present": False, "bedrock_enabled": True}, False),
        ({"always_run_wizard": True}, True),
        ({"resume_after_auth": True}, True),
    ],
)
def test_first_run_predicate(kwargs, expected) -> None:
    assert SettingsSnapshot(**kwargs).first_run is expected


@pytest.mark.unit
def test_settings_snapshot_from_store(tmp_path) -> None:
    path = tmp_path / "config.yml"
    path.write_text(
        "containers:\n"
        "  prefix: dev-\n"
        "  resources:\n"
        "    memory: 8g\n"
        "daemon:\n"
        "  show_nag: false\n"
        "firewall:\n"
        "  allowed_domains: [example.com]\n",
        encoding="utf-8",
    )

    settings = SettingsSnapshot.from_store(ConfigStore(path), credentials_present=True, working_dir="/work")

    assert settings.prefix == "dev-"
    assert settings.values.memory == "8g"
    assert settings.values.cpus == "2"
    assert settings.values.show_nag is False
    assert settings.values.token_refresh is True
    assert settings.domains == ("example.com",)
    assert settings.working_dir == "/work"
    assert settings.first_run is False


@pytest.mark.unit
def test_missing_config_is_first_run(tmp_path) -> None:
    settings = SettingsSnapshot.from_store(ConfigStore(tmp_path / "absent.yml"), credentials_present=True)

    assert settings.config_exists is False
    assert settings.first_run is True


@pytest.mark.unit
def test_app_state_snapshot() -> None:
    state = AppState(session=SessionState(entries=(entry("a"), entry("b")), cursor=1))

    snapshot = state.snapshot()

    assert snapshot.entries == (entry("a"), entry("b"))
    assert snapshot.cursor == 1
