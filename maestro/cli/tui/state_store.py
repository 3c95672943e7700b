"""Persistence of the short-lived session snapshot (~/.maestro/tui_state.json)."""

from __future__ import annotations

import json
import os
import time
from pathlib import Path

from maestro.container import SessionSummary
from maestro.logging_config import get_logger
from maestro.paths import tui_state_path
from maestro.cli.tui.state import Snapshot

logger = get_logger(__name__)

SNAPSHOT_MAX_AGE_S = 600.0


def load_snapshot(path: Path | None = None, *, now: float | None = None) -> Snapshot | None:
    """Return the saved snapshot, or None when missing, unreadable or stale."""
    path = path or tui_state_path()
    if not path.exists():
        logger.debug("No TUI state file found at %s", path)
        return None

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        saved_at = float(data.get("saved_at", 0))
        age = (now if now is not None else time.time()) - saved_at
        if age > SNAPSHOT_MAX_AGE_S:
            logger.debug("Ignoring TUI snapshot older than %.0fs", SNAPSHOT_MAX_AGE_S)
            return None

        entries = tuple(
            SessionSummary(
                name=str(item["name"]),
                short_name=str(item.get("short_name", item["name"])),
                status=str(item.get("status", "")),
                branch=str(item.get("branch", "")),
                last_activity=str(item.get("last_activity", "")),
                auth_status=str(item.get("auth_status", "")),
            )
            for item in data.get("entries", [])
        )
        cursor = int(data.get("cursor", -1))
    except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError, OSError) as e:
        logger.warning("Failed to load TUI state from %s: %s", path, e)
        return None

    if not entries:
        cursor = -1
    else:
        cursor = max(0, min(len(entries) - 1, cursor))
    logger.info("Loaded TUI snapshot: %d containers, cursor=%d", len(entries), cursor)
    return Snapshot(entries=entries, cursor=cursor)


def save_snapshot(snapshot: Snapshot, path: Path | None = None, *, now: float | None = None) -> None:
    """Atomically write the snapshot. Failures are logged, never raised."""
    path = path or tui_state_path()
    state_data = {
        "saved_at": now if now is not None else time.time(),
        "cursor": snapshot.cursor,
        "entries": [
            {
                "name": e.name,
                "short_name": e.short_name,
                "status": e.status,
                "branch": e.branch,
                "last_activity": e.last_activity,
                "auth_status": e.auth_status,
            }
            for e in snapshot.entries
        ],
    }
    tmp_path = path.with_suffix(".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(state_data, f, indent=2)
        os.replace(tmp_path, path)
        logger.debug("Saved TUI snapshot: %d containers", len(snapshot.entries))
    except OSError as e:
        logger.error("Failed to save TUI state to %s: %s", path, e)
        try:
            tmp_path.unlink()
        except OSError:
            pass
