"""Renderer: AppState -> rich renderable.

Pure composition. The clock is passed in so equal inputs draw equal frames.
"""

from __future__ import annotations

from datetime import datetime

from rich.align import Align
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text
from typing_extensions import assert_never

from maestro.cli.tui import theme
from maestro.cli.tui.modal import FieldKind, Modal, ModalKind
from maestro.cli.tui.state import AppState, WizardStep

MAIN_HINT = "↑/↓ navigate • enter connect • a actions • i info • n new • s settings • f firewall • ? help • q quit"
WIZARD_HINT = "q quit"


def render(state: AppState, now: datetime | None = None) -> RenderableType:
    if state.wizard is not None and state.wizard.step is WizardStep.ANIMATION:
        return _render_wizard_reveal(state)

    parts: list[RenderableType] = [_render_banner(state)]
    if state.modal is not None:
        parts.append(Align.center(_render_modal(state.modal)))
    elif state.wizard is not None:
        parts.append(Align.center(Text("Preparing setup...", style=theme.HINT)))
    elif state.loading and not state.session.entries:
        spinner = theme.SPINNER_FRAMES[state.spinner_frame % len(theme.SPINNER_FRAMES)]
        parts.append(Align.center(Text(f"{spinner} Loading containers...", style=Style(color=theme.OCEAN_TIDE))))
    else:
        parts.append(_render_sessions(state))

    parts.append(Text(WIZARD_HINT if state.wizard is not None else MAIN_HINT, style=theme.HINT))
    parts.append(_render_status_bar(state, now))
    parts.extend(_render_toasts(state))
    return Group(*parts)


def _banner_line(line: str, width: int, frame: int, reveal: int | None = None) -> Text:
    visible = line if reveal is None else line[:reveal]
    text = Text()
    pad = max(0, (width - len(line)) // 2)
    span = max(1, width - 1)
    for i, char in enumerate(visible):
        position = theme.shifted_position((pad + i) / span, frame)
        text.append(char, style=Style(color=theme.gradient_color(position)))
    return text


def _render_banner(state: AppState) -> RenderableType:
    width = state.width or 100
    lines = [_banner_line(line, width, state.animation_frame) for line in theme.BANNER_LINES]
    return Align.center(Group(*lines, Text("")))


def _render_wizard_reveal(state: AppState) -> RenderableType:
    wizard = state.wizard
    assert wizard is not None
    width = state.width or 100
    column = theme.BANNER_WIDTH if wizard.animation_complete else wizard.animation_column
    lines: list[RenderableType] = [
        _banner_line(line, width, state.animation_frame, reveal=column) for line in theme.BANNER_LINES
    ]
    lines.append(Text(""))
    if wizard.animation_complete:
        lines.append(Text("Press Enter to begin setup", style=Style(color=theme.OCEAN_SURGE, bold=True)))
    lines.append(Text(WIZARD_HINT, style=theme.HINT))
    return Align.center(Group(*lines), vertical="middle")


def _render_sessions(state: AppState) -> RenderableType:
    session = state.session
    if not session.entries:
        return Align.center(Text("No containers yet. Press n to create one.", style=theme.HINT))

    table = Table(expand=True, box=None, header_style=Style(color=theme.OCEAN_TIDE, bold=True), pad_edge=False)
    table.add_column("NAME", ratio=3, no_wrap=True)
    table.add_column("STATUS", ratio=1, no_wrap=True)
    table.add_column("BRANCH", ratio=3, no_wrap=True)
    table.add_column("AUTH", ratio=1, no_wrap=True)
    table.add_column("ACTIVITY", ratio=2, no_wrap=True)

    pending_names = {p.name for p in state.pending}
    for index, entry in enumerate(session.entries):
        selected = index == session.cursor
        marker = "› " if selected else "  "
        busy = " …" if entry.name in pending_names else ""
        table.add_row(
            f"{marker}{entry.short_name}{busy}",
            Text(entry.status, style=theme.container_status_style(entry.status)),
            entry.branch or "-",
            entry.auth_status or "-",
            entry.last_activity or "-",
            style=theme.SELECTED_ROW if selected else None,
        )
    return table


def _render_status_bar(state: AppState, now: datetime | None) -> RenderableType:
    grid = Table.grid(expand=True)
    grid.add_column(justify="left", ratio=1)
    grid.add_column(justify="center", ratio=2)
    grid.add_column(justify="center", ratio=1)
    grid.add_column(justify="right", ratio=1)

    pulse = theme.PULSE_FRAMES[state.animation_frame % len(theme.PULSE_FRAMES)]
    count = Text(f"{pulse} {len(state.session.entries)} containers", style=Style(color=theme.OCEAN_TIDE))
    working_dir = Text(state.settings.working_dir or "", style=theme.HINT, overflow="ellipsis", no_wrap=True)

    label = state.status.label
    if state.status.busy:
        spinner = theme.SPINNER_FRAMES[state.spinner_frame % len(theme.SPINNER_FRAMES)]
        status = Text(f"{spinner} {label}", style=Style(color=theme.SUNSET_GLOW))
    else:
        status = Text(label, style=Style(color=theme.MOSS))

    glyph = "◆" if state.wizard is not None else "◇"
    clock = now.strftime("%H:%M") if now is not None else ""
    grid.add_row(count, working_dir, status, Text(f"{clock} {glyph}".strip(), style=theme.HINT))
    return grid


def _render_toasts(state: AppState) -> list[RenderableType]:
    rendered: list[RenderableType] = []
    for toast in state.toasts:
        text = Text(f" {theme.TOAST_TITLES[toast.level]}: {toast.text} ", style=theme.TOAST_STYLES[toast.level])
        rendered.append(Align.right(text))
    return rendered


def _render_buttons(modal: Modal, focused_button: int | None) -> Text:
    text = Text()
    for i, action in enumerate(modal.actions):
        active = i == focused_button
        key = "↵" if action.key == "enter" else action.key
        text.append(f" {action.label} ({key}) ", style=theme.BUTTON_SELECTED if active else theme.BUTTON)
        text.append("  ")
    return text


def _render_body(modal: Modal) -> list[RenderableType]:
    lines = modal.body_lines
    if modal.visible_lines <= 0 or len(lines) <= modal.visible_lines:
        return [Text(modal.body)] if modal.body else []
    window = lines[modal.scroll : modal.scroll + modal.visible_lines]
    parts: list[RenderableType] = []
    parts.append(Text("▲" if modal.scroll > 0 else " ", style=theme.HINT, justify="center"))
    parts.append(Text("\n".join(window)))
    parts.append(Text("▼" if modal.scroll < modal.max_scroll else " ", style=theme.HINT, justify="center"))
    return parts


def _render_form_fields(modal: Modal) -> list[RenderableType]:
    parts: list[RenderableType] = []
    for index, field in enumerate(modal.fields):
        focused = index == modal.focus
        if field.kind is FieldKind.CHECKBOX:
            box = "[x]" if field.checked else "[ ]"
            parts.append(Text(f"{box} {field.label}", style=theme.FIELD_FOCUSED if focused else theme.FIELD_LABEL))
            continue
        parts.append(Text(field.label, style=theme.FIELD_FOCUSED if focused else theme.FIELD_LABEL))
        cursor = "▏" if focused else ""
        if field.value:
            value = Text(field.value + cursor)
        else:
            value = Text(cursor + field.placeholder, style=theme.PLACEHOLDER)
        height = 5 if field.kind is FieldKind.TEXT_AREA else None
        border = Style(color=theme.OCEAN_TIDE) if focused else Style(color=theme.MUTED)
        parts.append(Panel(value, border_style=border, height=height, padding=(0, 1)))
    return parts


def _render_modal(modal: Modal) -> RenderableType:
    kind = modal.kind
    parts: list[RenderableType] = []
    if kind is ModalKind.INFO or kind is ModalKind.CONFIRM:
        parts.extend(_render_body(modal))
        parts.append(Text(""))
        parts.append(_render_buttons(modal, modal.selected))
    elif kind is ModalKind.FORM:
        parts.extend(_render_body(modal))
        parts.extend(_render_form_fields(modal))
        parts.append(Text(""))
        focused_button = modal.focus - len(modal.fields) if modal.focus >= len(modal.fields) else None
        parts.append(_render_buttons(modal, focused_button))
        parts.append(Text("tab next field • ctrl+s save • esc cancel", style=theme.HINT))
    elif kind is ModalKind.ACTIONS_MENU:
        for i, action in enumerate(modal.actions):
            selected = i == modal.selected
            row = Text(f"{'›' if selected else ' '} {action.key:<4}{action.label:<16}{action.description}")
            if selected:
                row.stylize(theme.SELECTED_ROW)
            parts.append(row)
    else:
        assert_never(kind)

    if modal.error:
        parts.append(Text(modal.error, style=theme.ERROR_TEXT))
    return Panel(
        Group(*parts),
        title=Text(modal.title, style=Style(color=theme.OCEAN_TIDE, bold=True)),
        border_style=Style(color=theme.OCEAN_TIDE),
        width=modal.width,
        padding=(1, 2),
    )
