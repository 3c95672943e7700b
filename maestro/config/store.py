"""Config Store: the only path through which the TUI reads and writes configuration.

Values are addressed by dotted paths (`containers.resources.memory`).
Reads fall back to the schema defaults; writes are validated against the
schema and persisted atomically.
"""

from __future__ import annotations

import copy
import fcntl
import os
import tempfile
from pathlib import Path
from typing import IO, Any

import yaml
from pydantic import ValidationError
from ruamel.yaml import YAML

from maestro.config.schema import MaestroConfig
from maestro.errors import FatalConfigError
from maestro.logging_config import get_logger
from maestro.paths import config_file

logger = get_logger(__name__)

_MISSING = object()


def _lookup(data: dict[str, Any], path: str) -> Any:  # guard: loose-dict - raw YAML tree
    node: Any = data
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _dump_yaml(data: dict[str, Any], stream: IO[str]) -> None:  # guard: loose-dict - YAML serialization boundary
    writer = YAML()
    writer.preserve_quotes = True
    writer.default_flow_style = False
    writer.dump(data, stream)


def _replace_config(path: Path, data: dict[str, Any]) -> None:  # guard: loose-dict - YAML serialization boundary
    """Swap in a new config file without ever exposing a partial one.

    Inside the dashboard every write already goes through the scheduler's
    config lock, so the flock on `<config>.lock` only orders us against a
    `maestro` CLI process saving the same file. The lock file is left in
    place; removing it would let a second writer lock a fresh inode.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path.with_name(path.name + ".lock"), "a", encoding="utf-8") as lock:
        try:
            fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
        except OSError as e:
            logger.debug("Config lock unavailable, writing unlocked: %s", e)
        staged = tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        )
        try:
            with staged:
                _dump_yaml(data, staged)
                staged.flush()
                os.fsync(staged.fileno())
            os.replace(staged.name, path)
        except BaseException:
            Path(staged.name).unlink(missing_ok=True)
            raise


class ConfigStore:
    """Dotted-path view over `~/.maestro/config.yml`."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or config_file()
        self._defaults = MaestroConfig().model_dump(mode="python")
        self._data: dict[str, Any] = {}  # guard: loose-dict - raw YAML tree
        self._saved: dict[str, Any] = {}  # guard: loose-dict - last tree read from or written to disk
        self.reload()

    def reload(self) -> None:
        self._data = self._read()
        self._saved = copy.deepcopy(self._data)

    def _read(self) -> dict[str, Any]:  # guard: loose-dict - raw YAML tree
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Failed to read config file %s: %s", self.path, e)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring non-mapping config file %s", self.path)
            raw = {}
        return raw

    def exists(self) -> bool:
        return self.path.exists()

    def get(self, path: str, default: Any = None) -> Any:
        value = _lookup(self._data, path)
        if value is _MISSING:
            value = _lookup(self._defaults, path)
        if value is _MISSING:
            return default
        return copy.deepcopy(value)

    def get_str(self, path: str, default: str = "") -> str:
        value = self.get(path)
        if value is None or value == "":
            return default
        return str(value)

    def get_bool(self, path: str, default: bool = False) -> bool:
        value = self.get(path)
        if value is None:
            return default
        return bool(value)

    def get_list(self, path: str) -> list[str]:
        value = self.get(path)
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]

    def set(self, path: str, value: Any) -> None:
        parts = path.split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

    def model(self) -> MaestroConfig:
        """Validated view of the current values (defaults applied)."""
        try:
            return MaestroConfig.model_validate(self._data)
        except ValidationError as e:
            raise FatalConfigError(f"Invalid configuration: {e}") from e

    def write(self) -> None:
        """Validate and persist. Raises FatalConfigError on failure.

        A rejected write drops the pending `set` calls, so reads keep
        matching what is on disk.
        """
        try:
            self.model()
            _replace_config(self.path, self._data)
        except OSError as e:
            self._data = copy.deepcopy(self._saved)
            raise FatalConfigError(f"Failed to write config file {self.path}: {e}") from e
        except FatalConfigError:
            self._data = copy.deepcopy(self._saved)
            raise
        self._saved = copy.deepcopy(self._data)
        logger.info("Saved config to %s", self.path)
