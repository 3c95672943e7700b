"""Container Registry contract and its Docker implementation.

The TUI only talks to the registry through `ContainerRegistry`. Errors are
raised as `RegistryError` carrying the runtime's own message so the UI can
surface it verbatim.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from maestro.errors import RegistryError
from maestro.logging_config import get_logger

logger = get_logger(__name__)

DOCKER_TIMEOUT_S = 30.0
CONTAINER_CREDENTIALS_PATH = "/home/node/.claude/.credentials.json"


class OperationType(str, Enum):
    """Lifecycle operations the dashboard can run against a session."""

    STOP = "stop"
    RESTART = "restart"
    DELETE = "delete"
    REFRESH_TOKENS = "refresh-tokens"

    @property
    def past_tense(self) -> str:
        return {
            OperationType.STOP: "stopped",
            OperationType.RESTART: "restarted",
            OperationType.DELETE: "removed",
            OperationType.REFRESH_TOKENS: "tokens refreshed for",
        }[self]

    @property
    def is_destructive(self) -> bool:
        return self in (OperationType.STOP, OperationType.DELETE)


@dataclass(frozen=True)
class SessionSummary:
    """One row of the dashboard."""

    name: str
    short_name: str
    status: str
    branch: str = ""
    last_activity: str = ""
    auth_status: str = ""


@dataclass(frozen=True)
class SessionDetails:
    name: str
    short_name: str
    status: str
    status_details: str = ""
    branch: str = ""
    git_status: str = ""
    auth_status: str = ""
    last_activity: str = ""
    uptime: str = ""
    cpus: str = ""
    memory: str = ""
    ip_address: str = ""
    ports: tuple[str, ...] = ()
    volumes: tuple[str, ...] = ()
    environment: tuple[str, ...] = ()
    recent_logs: str = ""


@runtime_checkable
class ContainerRegistry(Protocol):
    """Session lifecycle operations provided by the container runtime."""

    async def list(self, prefix: str) -> list[SessionSummary]: ...

    async def describe(self, name: str) -> SessionDetails: ...

    async def stop(self, name: str) -> None: ...

    async def restart(self, name: str) -> None: ...

    async def delete(self, name: str) -> None: ...

    async def refresh_tokens(self, name: str) -> None: ...


def short_name(name: str, prefix: str) -> str:
    if prefix and name.startswith(prefix):
        return name[len(prefix) :] or name
    return name


@dataclass
class DockerRegistry:
    """ContainerRegistry over the `docker` CLI."""

    prefix: str
    credentials_path: Path | None = None
    binary: str = "docker"
    timeout: float = DOCKER_TIMEOUT_S
    _env_redactions: tuple[str, ...] = field(default=("TOKEN", "SECRET", "KEY", "PASSWORD"))

    async def _run(self, *args: str, check: bool = True) -> str:
        command = (self.binary, *args)
        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise RegistryError(f"{self.binary} not found: {e}", command=command) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise RegistryError(f"{' '.join(command)} timed out after {self.timeout:.0f}s", command=command) from None

        if check and proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip() or stdout.decode("utf-8", errors="replace")
            logger.debug("docker command failed (%s): %s", proc.returncode, message)
            raise RegistryError(message.strip(), command=command, returncode=proc.returncode)
        return stdout.decode("utf-8", errors="replace")

    async def list(self, prefix: str) -> list[SessionSummary]:
        output = await self._run(
            "ps",
            "-a",
            "--filter",
            f"name=^{prefix}",
            "--format",
            '{{.Names}}\t{{.State}}\t{{.Label "maestro.branch"}}\t{{.RunningFor}}\t{{.Label "maestro.auth"}}',
        )
        summaries: list[SessionSummary] = []
        for line in output.splitlines():
            if not line.strip():
                continue
            parts = line.split("\t")
            parts += [""] * (5 - len(parts))
            name, state, branch, running_for, auth = parts[:5]
            # Auth helper containers are not work sessions
            if name.endswith("-auth"):
                continue
            summaries.append(
                SessionSummary(
                    name=name,
                    short_name=short_name(name, prefix),
                    status=state,
                    branch=branch,
                    last_activity=running_for,
                    auth_status=auth,
                )
            )
        summaries.sort(key=lambda s: s.name)
        logger.debug("Listed %d containers with prefix %s", len(summaries), prefix)
        return summaries

    async def describe(self, name: str) -> SessionDetails:
        raw = await self._run("inspect", name)
        try:
            payload = json.loads(raw)
            info = payload[0]
        except (json.JSONDecodeError, IndexError, TypeError) as e:
            raise RegistryError(f"Unexpected inspect output for {name}: {e}") from e

        state = info.get("State") or {}
        config = info.get("Config") or {}
        host_config = info.get("HostConfig") or {}
        labels = config.get("Labels") or {}
        networks = (info.get("NetworkSettings") or {}).get("Networks") or {}
        ip_address = next((n.get("IPAddress", "") for n in networks.values() if n.get("IPAddress")), "")
        ports = tuple(
            f"{port} -> {binding.get('HostIp', '')}:{binding.get('HostPort', '')}"
            for port, bindings in ((info.get("NetworkSettings") or {}).get("Ports") or {}).items()
            for binding in (bindings or [])
        )
        volumes = tuple(f"{m.get('Source', '')} -> {m.get('Destination', '')}" for m in info.get("Mounts") or [])
        environment = tuple(self._redact(entry) for entry in config.get("Env") or [])

        nano_cpus = host_config.get("NanoCpus") or 0
        memory_bytes = host_config.get("Memory") or 0
        cpus = f"{nano_cpus / 1e9:g}" if nano_cpus else "unlimited"
        memory = f"{memory_bytes / (1024 ** 3):g}g" if memory_bytes else "unlimited"

        git_status = ""
        logs = ""
        if state.get("Running"):
            git_status = await self._run("exec", name, "git", "-C", "/workspace", "status", "--short", check=False)
        logs = await self._run("logs", "--tail", "50", name, check=False)

        return SessionDetails(
            name=name,
            short_name=short_name(name, self.prefix),
            status=state.get("Status", "unknown"),
            status_details=state.get("Error", ""),
            branch=labels.get("maestro.branch", ""),
            git_status=git_status.strip() or "(clean)",
            auth_status=labels.get("maestro.auth", ""),
            last_activity=state.get("FinishedAt", "") if not state.get("Running") else "active",
            uptime=state.get("StartedAt", "") if state.get("Running") else "",
            cpus=cpus,
            memory=memory,
            ip_address=ip_address,
            ports=ports,
            volumes=volumes,
            environment=environment,
            recent_logs=logs,
        )

    def _redact(self, entry: str) -> str:
        key, sep, _ = entry.partition("=")
        if sep and any(marker in key.upper() for marker in self._env_redactions):
            return f"{key}=********"
        return entry

    async def stop(self, name: str) -> None:
        await self._run("stop", name)

    async def restart(self, name: str) -> None:
        await self._run("restart", name)

    async def delete(self, name: str) -> None:
        await self._run("rm", "-f", name)

    async def refresh_tokens(self, name: str) -> None:
        if self.credentials_path is None or not self.credentials_path.exists():
            raise RegistryError(f"credentials file not found: {self.credentials_path}")
        await self._run("cp", str(self.credentials_path), f"{name}:{CONTAINER_CREDENTIALS_PATH}")
        # Ownership fix is best-effort
        await self._run("exec", "-u", "root", name, "chown", "node:node", CONTAINER_CREDENTIALS_PATH, check=False)
