"""Unit tests for prerequisite checks."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from maestro import system
from maestro.system import PrerequisiteChecker, PrerequisiteResult


@pytest.mark.unit
@pytest.mark.asyncio
async def test_missing_tools_report_install_hints(monkeypatch) -> None:
    monkeypatch.setattr(system.shutil, "which", lambda _name: None)

    results = await PrerequisiteChecker().check_all()

    assert results == (
        PrerequisiteResult("Claude CLI", False, "not found in PATH", "Install Claude CLI from https://claude.ai/download"),
        PrerequisiteResult("Docker", False, "not found in PATH", "Install Docker from https://docker.com/get-started"),
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_installed_tools_report_versions(monkeypatch) -> None:
    monkeypatch.setattr(system.shutil, "which", lambda name: f"/usr/bin/{name}")

    async def fake_run_check(*command):
        if command[0] == "claude":
            return True, "1.0.3 (Claude Code)"
        return True, "24.0.7"

    with patch.object(system, "_run_check", side_effect=fake_run_check):
        claude, docker = await PrerequisiteChecker().check_all()

    assert claude.available and claude.message == "installed (1.0.3 (Claude Code))"
    assert docker.available and docker.message == "running (server 24.0.7)"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unreachable_docker_daemon(monkeypatch) -> None:
    monkeypatch.setattr(system.shutil, "which", lambda name: f"/usr/bin/{name}")

    with patch.object(system, "_run_check", new_callable=AsyncMock, return_value=(False, "Cannot connect")):
        result = await PrerequisiteChecker().check_docker()

    assert result.available is False
    assert result.message == "daemon not reachable (Cannot connect)"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_check_of_missing_command() -> None:
    ok, detail = await system._run_check("definitely-not-a-real-command-xyz")

    assert ok is False
    assert detail


@pytest.mark.unit
def test_first_line() -> None:
    assert system._first_line(b"\n  v1.2\nmore\n") == "v1.2"
    assert system._first_line(b"") == ""
