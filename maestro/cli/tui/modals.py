"""Concrete modal constructors for the dashboard.

Form submit functions live at module level so the Action descriptors stay
comparable values; they raise ValueError to keep the form open.
"""

from __future__ import annotations

from typing import Mapping

from pydantic import ValidationError

from maestro.config.schema import ResourcesConfig
from maestro.container import OperationType, SessionDetails
from maestro.cli.tui.messages import (
    ActionRequested,
    ConfirmOperation,
    ConnectRequested,
    CreateParams,
    CreateRequested,
    FirewallSubmitted,
    Message,
    SettingsSubmitted,
    SettingsValues,
)
from maestro.cli.tui.modal import FormValue, Modal, ModalBuilder, ModalKind

HELP_TEXT = """Navigation:
  Up/Down or j/k   Navigate list
  Enter            Connect to container

Actions:
  a                Container actions menu
  i                View container details
  n                Create a new container
  s                Settings
  f                Firewall allowed domains
  r                Refresh the list now
  ?                Show this help
  q                Quit Maestro

Container Connection:
  Ctrl+b d         Detach from container
  Ctrl+b 0         Switch to Claude window
  Ctrl+b 1         Switch to shell window

Scrolling in Modals:
  Up/Down or j/k   Scroll line by line
  PgUp/PgDn        Scroll page by page
  Space            Scroll down one page
  Home             Jump to top
  End              Jump to bottom"""

_CONFIRM_VERBS = {
    OperationType.STOP: ("Confirm Stop", "stop"),
    OperationType.DELETE: ("Confirm Delete", "remove"),
}


def error_modal(title: str, message: str, *, on_close: Message | None = None) -> Modal:
    builder = ModalBuilder(ModalKind.INFO, title).body(message).action("OK", "enter", primary=True)
    if on_close is not None:
        builder.on_close(on_close)
    return builder.build()


def operation_failed_modal(operation: OperationType, name: str, error: str) -> Modal:
    return error_modal(
        "Operation Failed",
        f"Failed to {operation.value.replace('-', ' ')} container {name}:\n\n{error}",
    )


def confirm_operation_modal(operation: OperationType, name: str) -> Modal:
    title, verb = _CONFIRM_VERBS.get(operation, ("Confirm", operation.value))
    return (
        ModalBuilder(ModalKind.CONFIRM, title)
        .body(f"Are you sure you want to {verb} container '{name}'?")
        .action("Yes", "y", primary=True, message=ConfirmOperation(operation, name))
        .action("No", "n")
        .build()
    )


def actions_menu_modal(name: str) -> Modal:
    return (
        ModalBuilder(ModalKind.ACTIONS_MENU, f"Actions: {name}")
        .action("Connect", "c", primary=True, message=ConnectRequested(name), description="Attach to the tmux session")
        .action("Stop", "s", message=ActionRequested(OperationType.STOP, name), description="Stop the container")
        .action(
            "Restart", "r", message=ActionRequested(OperationType.RESTART, name), description="Restart the container"
        )
        .action("Delete", "d", message=ActionRequested(OperationType.DELETE, name), description="Remove the container")
        .action(
            "Refresh Tokens",
            "t",
            message=ActionRequested(OperationType.REFRESH_TOKENS, name),
            description="Copy host credentials into the container",
        )
        .action("Cancel", "esc")
        .build()
    )


def help_modal() -> Modal:
    return (
        ModalBuilder(ModalKind.INFO, "Maestro Keybindings")
        .body(HELP_TEXT)
        .scrollable(10)
        .action("Close", "esc", primary=True)
        .build()
    )


def details_tag(name: str, *, loading: bool = False) -> str:
    return f"details:{name}:loading" if loading else f"details:{name}"


def details_loading_modal(name: str) -> Modal:
    return (
        ModalBuilder(ModalKind.INFO, f"Container: {name}")
        .body("Loading details...")
        .width(100)
        .tag(details_tag(name, loading=True))
        .action("Close", "esc", primary=True)
        .build()
    )


def _section(title: str, lines: tuple[str, ...] | list[str]) -> list[str]:
    out = ["", f"{title}:"]
    if not lines:
        out.append("  (none)")
    out.extend(f"  {line}" for line in lines)
    return out


def details_modal(details: SessionDetails) -> Modal:
    lines = [
        f"Name:          {details.name}",
        f"Status:        {details.status}" + (f" ({details.status_details})" if details.status_details else ""),
        f"Branch:        {details.branch or '-'}",
        f"Auth:          {details.auth_status or '-'}",
        f"Last activity: {details.last_activity or '-'}",
        f"Started:       {details.uptime or '-'}",
        f"Resources:     {details.cpus} CPUs, {details.memory} memory",
        f"IP address:    {details.ip_address or '-'}",
    ]
    lines += _section("Git status", details.git_status.splitlines())
    lines += _section("Ports", details.ports)
    lines += _section("Volumes", details.volumes)
    lines += _section("Environment", details.environment)
    lines += _section("Recent logs", details.recent_logs.rstrip().splitlines())
    return (
        ModalBuilder(ModalKind.INFO, f"Container: {details.short_name or details.name}")
        .body("\n".join(lines))
        .width(100)
        .scrollable(20)
        .tag(details_tag(details.name))
        .action("Close", "esc", primary=True)
        .build()
    )


def submit_create(values: Mapping[str, FormValue]) -> Message:
    task = str(values.get("task", "")).strip()
    if not task:
        raise ValueError("Task description is required")
    return CreateRequested(
        CreateParams(
            task=task,
            branch=str(values.get("branch", "")).strip(),
            no_connect=bool(values.get("no_connect")),
            exact=bool(values.get("exact")),
        )
    )


def create_form_modal() -> Modal:
    return (
        ModalBuilder(ModalKind.FORM, "Create New Container")
        .width(100)
        .text_area("task", "Task Description:", placeholder="Describe what Claude should work on")
        .input("branch", "Branch Name:", placeholder="(auto-generated from description)")
        .checkbox("no_connect", "Return to TUI after creation (--no-connect)")
        .checkbox("exact", "Exact prompt (don't preprocess with AI)")
        .action("Create", "ctrl+s", primary=True, submit=submit_create)
        .action("Cancel", "esc")
        .build()
    )


def validate_resources(memory: str, cpus: str) -> tuple[str, str]:
    """Normalize resource limits through the config schema. Empty values pass through."""
    try:
        checked = ResourcesConfig(memory=memory or "4g", cpus=cpus or "2")
    except ValidationError as e:
        message = e.errors()[0].get("msg", str(e))
        raise ValueError(message.removeprefix("Value error, ")) from None
    return (checked.memory if memory else "", checked.cpus if cpus else "")


def submit_settings(values: Mapping[str, FormValue]) -> Message:
    memory, cpus = validate_resources(str(values.get("memory", "")).strip(), str(values.get("cpus", "")).strip())
    return SettingsSubmitted(
        SettingsValues(
            memory=memory,
            cpus=cpus,
            show_nag=bool(values.get("show_nag")),
            token_refresh=bool(values.get("token_refresh")),
            notifications=bool(values.get("notifications")),
        )
    )


def settings_form_modal(current: SettingsValues) -> Modal:
    return (
        ModalBuilder(ModalKind.FORM, "Settings")
        .width(70)
        .input("memory", "Memory Limit (for new containers):", current.memory, placeholder="e.g., 4g, 8g")
        .input("cpus", "CPU Limit (for new containers):", current.cpus, placeholder="e.g., 1, 2, 4")
        .checkbox("show_nag", "Show daemon startup reminder", current.show_nag)
        .checkbox("token_refresh", "Auto-refresh authentication tokens", current.token_refresh)
        .checkbox("notifications", "Enable desktop notifications", current.notifications)
        .action("Save", "ctrl+s", primary=True, submit=submit_settings)
        .action("Cancel", "esc")
        .build()
    )


def parse_domains(text: str) -> tuple[str, ...]:
    domains: list[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if any(ch.isspace() for ch in line) or "/" in line:
            raise ValueError(f"Invalid domain: {line}")
        if line not in domains:
            domains.append(line)
    return tuple(domains)


def submit_firewall(values: Mapping[str, FormValue]) -> Message:
    domains = parse_domains(str(values.get("domains", "")))
    if not domains:
        raise ValueError("At least one domain is required")
    return FirewallSubmitted(domains)


def firewall_form_modal(domains: tuple[str, ...]) -> Modal:
    return (
        ModalBuilder(ModalKind.FORM, "Firewall Configuration")
        .width(80)
        .body("Allowed domains for new containers, one per line.")
        .text_area("domains", "Allowed Domains:", "\n".join(domains))
        .action("Save", "ctrl+s", primary=True, submit=submit_firewall)
        .action("Cancel", "esc")
        .build()
    )
