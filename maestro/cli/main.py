"""maestro-tui: run the dashboard and perform the handoffs it asks for.

The TUI returns a Result instead of attaching terminals itself. This loop
executes the requested external step (attach, create, authenticate) with the
terminal released, then re-enters the TUI with the cached snapshot.

Usage: maestro-tui [--config PATH] [--log-level LEVEL]
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path
from typing import Optional

from maestro import __version__
from maestro.config.store import ConfigStore
from maestro.container import DockerRegistry
from maestro.logging_config import get_logger, setup_logging
from maestro.paths import credentials_file
from maestro.system import PrerequisiteChecker
from maestro.cli.tui.app import run_tui
from maestro.cli.tui.messages import CreateParams
from maestro.cli.tui.state import Result, ResultKind, Snapshot
from maestro.cli.tui.state_store import load_snapshot, save_snapshot

logger = get_logger(__name__)


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="maestro-tui", description="Maestro container dashboard")
    parser.add_argument("--config", help="Path to config.yml (default: ~/.maestro/config.yml)")
    parser.add_argument("--log-level", help="Override MAESTRO_LOG_LEVEL (DEBUG, INFO, ...)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def connect_command(name: str, tmux_session: str) -> list[str]:
    return ["docker", "exec", "-it", name, "tmux", "attach", "-t", tmux_session]


def create_command(binary: str, params: CreateParams) -> list[str]:
    command = [binary, "new", params.task]
    if params.branch:
        command += ["--branch", params.branch]
    if params.no_connect:
        command.append("--no-connect")
    if params.exact:
        command.append("--exact")
    return command


def auth_command(binary: str) -> list[str]:
    return [binary, "auth"]


def handoff_command(result: Result, store: ConfigStore) -> list[str] | None:
    """External command for a Result, or None when the caller should exit."""
    binary = store.get_str("cli.binary", "maestro")
    if result.kind is ResultKind.CONNECT:
        return connect_command(result.name, store.get_str("cli.tmux_session", "main"))
    if result.kind is ResultKind.CREATE and result.create is not None:
        return create_command(binary, result.create)
    if result.kind is ResultKind.RUN_AUTH:
        return auth_command(binary)
    return None


def _run_handoff(command: list[str]) -> None:
    logger.info("Handing off to: %s", " ".join(command))
    try:
        completed = subprocess.run(command, check=False)
    except FileNotFoundError as e:
        logger.error("Handoff command not found: %s", e)
        print(f"maestro-tui: {command[0]} not found", file=sys.stderr)
        return
    if completed.returncode != 0:
        logger.warning("Handoff %s exited with %d", command[0], completed.returncode)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging(args.log_level)
    store = ConfigStore(Path(args.config).expanduser() if args.config else None)
    checker = PrerequisiteChecker()
    snapshot: Snapshot | None = load_snapshot()
    working_dir = os.getcwd()

    while True:
        store.reload()
        credentials = credentials_file(store.get_str("claude.auth_path") or None)
        registry = DockerRegistry(prefix=store.get_str("containers.prefix", "maestro-"), credentials_path=credentials)
        result, latest = run_tui(
            store,
            registry,
            checker,
            credentials_present=credentials.exists(),
            snapshot=snapshot,
            working_dir=working_dir,
        )
        if latest is not None:
            save_snapshot(latest)
            snapshot = latest

        if result is None:
            return 0
        command = handoff_command(result, store)
        if command is None:
            return 0
        _run_handoff(command)


if __name__ == "__main__":
    sys.exit(main())
