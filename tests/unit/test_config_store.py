"""Unit tests for ConfigStore."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import yaml

from maestro.config.store import ConfigStore
from maestro.errors import FatalConfigError


@pytest.mark.unit
def test_defaults_apply_without_file(tmp_path) -> None:
    store = ConfigStore(tmp_path / "config.yml")

    assert store.exists() is False
    assert store.get_str("containers.prefix") == "maestro-"
    assert store.get_str("containers.resources.memory") == "4g"
    assert store.get_bool("daemon.show_nag") is True
    assert "github.com" in store.get_list("firewall.allowed_domains")
    assert store.get("no.such.key", "fallback") == "fallback"


@pytest.mark.unit
def test_default_path_honours_maestro_home(_isolated_maestro_home) -> None:
    store = ConfigStore()

    assert store.path == _isolated_maestro_home / "config.yml"


@pytest.mark.unit
def test_file_values_override_defaults(tmp_path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("containers:\n  resources:\n    cpus: '8'\nbedrock:\n  enabled: true\n", encoding="utf-8")

    store = ConfigStore(path)

    assert store.get_str("containers.resources.cpus") == "8"
    assert store.get_str("containers.resources.memory") == "4g"
    assert store.get_bool("bedrock.enabled") is True


@pytest.mark.unit
def test_unreadable_yaml_falls_back_to_defaults(tmp_path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("containers: [unclosed\n", encoding="utf-8")

    store = ConfigStore(path)

    assert store.get_str("containers.prefix") == "maestro-"


@pytest.mark.unit
def test_set_and_write_preserves_unknown_keys(tmp_path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("custom:\n  keep: yes-please\n", encoding="utf-8")
    store = ConfigStore(path)

    store.set("containers.resources.memory", "16g")
    store.write()

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    assert data["custom"] == {"keep": "yes-please"}
    assert data["containers"]["resources"]["memory"] == "16g"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["config.yml", "config.yml.lock"]


@pytest.mark.unit
def test_write_creates_parent_directory(tmp_path) -> None:
    path = tmp_path / "nested" / "dir" / "config.yml"
    store = ConfigStore(path)

    store.set("wizard.resume_after_auth", True)
    store.write()

    assert ConfigStore(path).get_bool("wizard.resume_after_auth") is True


@pytest.mark.unit
def test_invalid_value_is_rejected_before_writing(tmp_path) -> None:
    path = tmp_path / "config.yml"
    store = ConfigStore(path)
    store.set("containers.resources.cpus", "-1")

    with pytest.raises(FatalConfigError, match="Invalid configuration"):
        store.write()
    assert not path.exists()


@pytest.mark.unit
def test_get_returns_copies(tmp_path) -> None:
    store = ConfigStore(tmp_path / "config.yml")

    domains = store.get("firewall.allowed_domains")
    domains.append("evil.example")

    assert "evil.example" not in store.get_list("firewall.allowed_domains")


@pytest.mark.unit
def test_reload_picks_up_external_changes(tmp_path) -> None:
    path = tmp_path / "config.yml"
    store = ConfigStore(path)
    path.write_text("containers:\n  prefix: other-\n", encoding="utf-8")

    store.reload()

    assert store.get_str("containers.prefix") == "other-"


@pytest.mark.unit
def test_numeric_resources_do_not_block_unrelated_writes(tmp_path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("containers:\n  resources:\n    memory: 4g\n    cpus: 2\n", encoding="utf-8")
    store = ConfigStore(path)

    store.set("firewall.allowed_domains", ["github.com"])
    store.write()

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    assert data["containers"]["resources"]["cpus"] == 2
    assert data["firewall"]["allowed_domains"] == ["github.com"]
    assert store.model().containers.resources.cpus == "2"


@pytest.mark.unit
def test_rejected_write_rolls_back_pending_values(tmp_path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("containers:\n  resources:\n    cpus: '4'\n", encoding="utf-8")
    store = ConfigStore(path)

    store.set("containers.resources.cpus", "zero")
    store.set("daemon.show_nag", False)
    with pytest.raises(FatalConfigError, match="Invalid configuration"):
        store.write()

    assert store.get_str("containers.resources.cpus") == "4"
    assert store.get_bool("daemon.show_nag") is True


@pytest.mark.unit
def test_failed_disk_write_rolls_back_pending_values(tmp_path) -> None:
    path = tmp_path / "config.yml"
    store = ConfigStore(path)
    store.set("containers.resources.memory", "8g")
    store.write()

    store.set("containers.resources.memory", "16g")
    with patch("maestro.config.store.os.replace", side_effect=OSError("read-only file system")):
        with pytest.raises(FatalConfigError, match="read-only file system"):
            store.write()

    assert store.get_str("containers.resources.memory") == "8g"
    assert ConfigStore(path).get_str("containers.resources.memory") == "8g"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["config.yml", "config.yml.lock"]
