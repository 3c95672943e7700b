"""Pytest configuration for Maestro tests."""

import logging

import pytest

logging.getLogger("maestro").handlers.clear()


@pytest.fixture(autouse=True)
def _isolated_maestro_home(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.maestro."""
    home = tmp_path / "maestro-home"
    monkeypatch.setenv("MAESTRO_HOME", str(home))
    return home


def pytest_collection_modifyitems(config, items):
    """Set per-marker timeouts: unit=1s, integration=5s."""
    for item in items:
        if "unit" in item.keywords:
            item.add_marker(pytest.mark.timeout(1))
        elif "integration" in item.keywords:
            item.add_marker(pytest.mark.timeout(5))
