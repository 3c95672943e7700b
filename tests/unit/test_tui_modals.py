"""Unit tests for the dashboard's concrete modals and form submitters."""

from __future__ import annotations

import pytest

from maestro.container import OperationType, SessionDetails
from maestro.cli.tui import modals
from maestro.cli.tui.messages import (
    ActionRequested,
    ConnectRequested,
    FirewallSubmitted,
    SettingsSubmitted,
    SettingsValues,
)
from maestro.cli.tui.modal import press


@pytest.mark.unit
def test_confirm_stop_wording() -> None:
    modal = modals.confirm_operation_modal(OperationType.STOP, "maestro-api")

    assert modal.title == "Confirm Stop"
    assert modal.body == "Are you sure you want to stop container 'maestro-api'?"


@pytest.mark.unit
def test_actions_menu_keys_map_to_operations() -> None:
    modal = modals.actions_menu_modal("maestro-api")

    assert press(modal, "c")[1] == ConnectRequested("maestro-api")
    assert press(modal, "s")[1] == ActionRequested(OperationType.STOP, "maestro-api")
    assert press(modal, "r")[1] == ActionRequested(OperationType.RESTART, "maestro-api")
    assert press(modal, "d")[1] == ActionRequested(OperationType.DELETE, "maestro-api")
    assert press(modal, "t")[1] == ActionRequested(OperationType.REFRESH_TOKENS, "maestro-api")
    assert press(modal, "esc") == (None, None)


@pytest.mark.unit
def test_operation_failed_wording() -> None:
    modal = modals.operation_failed_modal(OperationType.REFRESH_TOKENS, "maestro-api", "no credentials")

    assert modal.title == "Operation Failed"
    assert modal.body == "Failed to refresh tokens container maestro-api:\n\nno credentials"


@pytest.mark.unit
def test_details_modal_lists_sections() -> None:
    details = SessionDetails(
        name="maestro-api",
        short_name="api",
        status="running",
        branch="feat/api",
        ports=("8080/tcp -> 0.0.0.0:8080",),
        environment=("GITHUB_TOKEN=***",),
        recent_logs="started\nready\n",
    )

    modal = modals.details_modal(details)

    assert modal.title == "Container: api"
    assert modal.tag == modals.details_tag("maestro-api")
    assert "  8080/tcp -> 0.0.0.0:8080" in modal.body_lines
    assert "  GITHUB_TOKEN=***" in modal.body_lines
    assert modal.body_lines[-1] == "  ready"
    assert "Volumes:" in modal.body_lines


@pytest.mark.unit
def test_details_tags_distinguish_placeholder() -> None:
    assert modals.details_loading_modal("maestro-api").tag == "details:maestro-api:loading"
    assert modals.details_tag("maestro-api") == "details:maestro-api"


@pytest.mark.unit
@pytest.mark.parametrize(
    "memory,cpus,expected",
    [
        ("8G", "4", ("8g", "4")),
        ("", "", ("", "")),
        ("512m", "", ("512m", "")),
    ],
)
def test_validate_resources_normalizes(memory, cpus, expected) -> None:
    assert modals.validate_resources(memory, cpus) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "memory,cpus,fragment",
    [
        ("lots", "2", "Invalid memory limit"),
        ("4g", "many", "Invalid CPU limit"),
        ("4g", "0", "must be positive"),
    ],
)
def test_validate_resources_rejects(memory, cpus, fragment) -> None:
    with pytest.raises(ValueError, match=fragment):
        modals.validate_resources(memory, cpus)


@pytest.mark.unit
def test_submit_settings_reads_checkboxes() -> None:
    message = modals.submit_settings(
        {"memory": "8g", "cpus": "4", "show_nag": False, "token_refresh": True, "notifications": False}
    )

    assert message == SettingsSubmitted(
        SettingsValues(memory="8g", cpus="4", show_nag=False, token_refresh=True, notifications=False)
    )


@pytest.mark.unit
def test_settings_form_keeps_error_open() -> None:
    modal = modals.settings_form_modal(SettingsValues(memory="bad", cpus="2"))

    kept, message = press(modal, "ctrl+s")

    assert message is None
    assert kept is not None
    assert kept.error.startswith("Invalid memory limit")


@pytest.mark.unit
def test_parse_domains_skips_comments_and_duplicates() -> None:
    text = "github.com\n# internal\n\n  pypi.org  \ngithub.com\n"

    assert modals.parse_domains(text) == ("github.com", "pypi.org")


@pytest.mark.unit
@pytest.mark.parametrize("line", ["bad domain.com", "https://github.com"])
def test_parse_domains_rejects_malformed(line) -> None:
    with pytest.raises(ValueError, match="Invalid domain"):
        modals.parse_domains(line)


@pytest.mark.unit
def test_submit_firewall_requires_a_domain() -> None:
    with pytest.raises(ValueError, match="At least one domain is required"):
        modals.submit_firewall({"domains": "# nothing\n"})

    assert modals.submit_firewall({"domains": "example.com"}) == FirewallSubmitted(("example.com",))


@pytest.mark.unit
def test_firewall_form_prefills_domains() -> None:
    modal = modals.firewall_form_modal(("github.com", "pypi.org"))

    assert modal.fields[0].value == "github.com\npypi.org"


@pytest.mark.unit
def test_help_modal_is_scrollable() -> None:
    modal = modals.help_modal()

    assert modal.visible_lines == 10
    assert modal.max_scroll > 0
    scrolled, _ = press(modal, "end")
    assert scrolled.scroll == modal.max_scroll
