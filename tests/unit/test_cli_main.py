"""Unit tests for the maestro-tui entry point."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from maestro.config.store import ConfigStore
from maestro.cli import main as cli_main
from maestro.cli.tui.messages import CreateParams
from maestro.cli.tui.state import Result, ResultKind, Snapshot


@pytest.fixture
def store(tmp_path) -> ConfigStore:
    path = tmp_path / "config.yml"
    path.write_text("cli:\n  binary: /opt/maestro/bin/maestro\n  tmux_session: work\n", encoding="utf-8")
    return ConfigStore(path)


@pytest.mark.unit
def test_connect_handoff(store) -> None:
    command = cli_main.handoff_command(Result(ResultKind.CONNECT, name="maestro-api"), store)

    assert command == ["docker", "exec", "-it", "maestro-api", "tmux", "attach", "-t", "work"]


@pytest.mark.unit
def test_create_handoff_includes_flags(store) -> None:
    params = CreateParams(task="add login", branch="feat/login", no_connect=True, exact=True)

    command = cli_main.handoff_command(Result(ResultKind.CREATE, create=params), store)

    assert command == [
        "/opt/maestro/bin/maestro",
        "new",
        "add login",
        "--branch",
        "feat/login",
        "--no-connect",
        "--exact",
    ]


@pytest.mark.unit
def test_create_command_minimal() -> None:
    assert cli_main.create_command("maestro", CreateParams(task="fix")) == ["maestro", "new", "fix"]


@pytest.mark.unit
def test_auth_and_quit_handoffs(store) -> None:
    assert cli_main.handoff_command(Result(ResultKind.RUN_AUTH), store) == ["/opt/maestro/bin/maestro", "auth"]
    assert cli_main.handoff_command(Result(ResultKind.QUIT), store) is None


@pytest.mark.unit
def test_main_returns_after_quit(tmp_path) -> None:
    snapshot = Snapshot()
    with (
        patch.object(cli_main, "run_tui", return_value=(Result(ResultKind.QUIT), snapshot)) as run_tui,
        patch.object(cli_main, "save_snapshot") as save,
        patch.object(cli_main, "setup_logging"),
    ):
        code = cli_main.main(["--config", str(tmp_path / "config.yml")])

    assert code == 0
    run_tui.assert_called_once()
    save.assert_called_once_with(snapshot)


@pytest.mark.unit
def test_main_reenters_after_handoff(tmp_path) -> None:
    results = iter(
        [
            (Result(ResultKind.CONNECT, name="maestro-a"), Snapshot()),
            (None, None),
        ]
    )
    with (
        patch.object(cli_main, "run_tui", side_effect=lambda *a, **k: next(results)) as run_tui,
        patch.object(cli_main, "_run_handoff") as handoff,
        patch.object(cli_main, "save_snapshot"),
        patch.object(cli_main, "setup_logging"),
    ):
        code = cli_main.main(["--config", str(tmp_path / "config.yml")])

    assert code == 0
    assert run_tui.call_count == 2
    handoff.assert_called_once_with(["docker", "exec", "-it", "maestro-a", "tmux", "attach", "-t", "main"])


@pytest.mark.unit
def test_missing_handoff_binary_is_reported(capsys) -> None:
    cli_main._run_handoff(["definitely-not-a-real-maestro-binary", "auth"])

    assert "not found" in capsys.readouterr().err
