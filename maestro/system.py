"""Prerequisite checks for the onboarding wizard."""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass

from maestro.logging_config import get_logger

logger = get_logger(__name__)

CHECK_TIMEOUT_S = 10.0


@dataclass(frozen=True)
class PrerequisiteResult:
    tool: str
    available: bool
    message: str
    install_hint: str = ""


async def _run_check(*command: str) -> tuple[bool, str]:
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        return False, str(e)
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=CHECK_TIMEOUT_S)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        return False, f"timed out after {CHECK_TIMEOUT_S:.0f}s"
    if proc.returncode != 0:
        return False, _first_line(stderr) or "failed"
    return True, _first_line(stdout) or "ok"


def _first_line(raw: bytes) -> str:
    lines = raw.decode("utf-8", errors="replace").strip().splitlines()
    return lines[0].strip() if lines else ""


class PrerequisiteChecker:
    """Checks the external tools Maestro needs on the host."""

    async def check_claude(self) -> PrerequisiteResult:
        hint = "Install Claude CLI from https://claude.ai/download"
        if shutil.which("claude") is None:
            return PrerequisiteResult("Claude CLI", False, "not found in PATH", hint)
        ok, detail = await _run_check("claude", "--version")
        return PrerequisiteResult("Claude CLI", ok, f"installed ({detail})" if ok else detail, hint)

    async def check_docker(self) -> PrerequisiteResult:
        hint = "Install Docker from https://docker.com/get-started"
        if shutil.which("docker") is None:
            return PrerequisiteResult("Docker", False, "not found in PATH", hint)
        ok, detail = await _run_check("docker", "info", "--format", "{{.ServerVersion}}")
        if not ok:
            return PrerequisiteResult("Docker", False, f"daemon not reachable ({detail})", hint)
        return PrerequisiteResult("Docker", True, f"running (server {detail})", hint)

    async def check_all(self) -> tuple[PrerequisiteResult, ...]:
        results = await asyncio.gather(self.check_claude(), self.check_docker())
        for result in results:
            logger.debug("Prerequisite %s: available=%s (%s)", result.tool, result.available, result.message)
        return tuple(results)
