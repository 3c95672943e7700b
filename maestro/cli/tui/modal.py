"""Modal overlay model and its key handling.

A modal is a frozen value of one of four kinds. Actions are plain
descriptors: either a fixed message or a module-level `submit` function that
turns form values into a message. Nothing here touches application state;
`press()` returns the next modal (or None when it closed) and the message the
user selected, if any.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Mapping, Union

from typing_extensions import assert_never

from maestro.cli.tui.messages import Message

FormValue = Union[str, bool]
SubmitFn = Callable[[Mapping[str, FormValue]], Message]

DEFAULT_WIDTH = 60


class ModalKind(str, Enum):
    INFO = "info"
    CONFIRM = "confirm"
    FORM = "form"
    ACTIONS_MENU = "actions_menu"


class FieldKind(str, Enum):
    TEXT_AREA = "text_area"
    INPUT = "input"
    CHECKBOX = "checkbox"


@dataclass(frozen=True)
class FormField:
    key: str
    label: str
    kind: FieldKind
    value: str = ""
    checked: bool = False
    placeholder: str = ""


@dataclass(frozen=True)
class Action:
    """A selectable modal outcome.

    Exactly one of `message` or `submit` is normally set. An action with
    neither simply closes the modal. `submit` may raise ValueError to reject
    the form; the modal then stays open showing the error.
    """

    label: str
    key: str
    primary: bool = False
    message: Message | None = None
    submit: SubmitFn | None = None
    description: str = ""


@dataclass(frozen=True)
class Modal:
    kind: ModalKind
    title: str
    body: str = ""
    actions: tuple[Action, ...] = ()
    fields: tuple[FormField, ...] = ()
    scroll: int = 0
    focus: int = 0
    selected: int = 0
    width: int = DEFAULT_WIDTH
    visible_lines: int = 0  # 0 = not scrollable
    disable_esc: bool = False
    tag: str = ""
    error: str = ""
    on_close: Message | None = None

    @property
    def body_lines(self) -> list[str]:
        return self.body.splitlines()

    @property
    def max_scroll(self) -> int:
        if self.visible_lines <= 0:
            return 0
        return max(0, len(self.body_lines) - self.visible_lines)

    def primary_action(self) -> Action | None:
        for action in self.actions:
            if action.primary:
                return action
        return self.actions[0] if self.actions else None


class ModalBuilder:
    """Fluent construction of Modal values."""

    def __init__(self, kind: ModalKind, title: str) -> None:
        self._kind = kind
        self._title = title
        self._body = ""
        self._actions: list[Action] = []
        self._fields: list[FormField] = []
        self._width = DEFAULT_WIDTH
        self._visible_lines = 0
        self._disable_esc = False
        self._tag = ""
        self._on_close: Message | None = None

    def body(self, text: str) -> ModalBuilder:
        self._body = text
        return self

    def action(
        self,
        label: str,
        key: str,
        *,
        primary: bool = False,
        message: Message | None = None,
        submit: SubmitFn | None = None,
        description: str = "",
    ) -> ModalBuilder:
        self._actions.append(
            Action(label=label, key=key, primary=primary, message=message, submit=submit, description=description)
        )
        return self

    def text_area(self, key: str, label: str, value: str = "", placeholder: str = "") -> ModalBuilder:
        self._fields.append(FormField(key, label, FieldKind.TEXT_AREA, value=value, placeholder=placeholder))
        return self

    def input(self, key: str, label: str, value: str = "", placeholder: str = "") -> ModalBuilder:
        self._fields.append(FormField(key, label, FieldKind.INPUT, value=value, placeholder=placeholder))
        return self

    def checkbox(self, key: str, label: str, checked: bool = False) -> ModalBuilder:
        self._fields.append(FormField(key, label, FieldKind.CHECKBOX, checked=checked))
        return self

    def width(self, width: int) -> ModalBuilder:
        self._width = width
        return self

    def scrollable(self, visible_lines: int) -> ModalBuilder:
        self._visible_lines = visible_lines
        return self

    def disable_esc(self) -> ModalBuilder:
        self._disable_esc = True
        return self

    def tag(self, tag: str) -> ModalBuilder:
        self._tag = tag
        return self

    def on_close(self, message: Message) -> ModalBuilder:
        self._on_close = message
        return self

    def build(self) -> Modal:
        selected = next((i for i, a in enumerate(self._actions) if a.primary), 0)
        return Modal(
            kind=self._kind,
            title=self._title,
            body=self._body,
            actions=tuple(self._actions),
            fields=tuple(self._fields),
            selected=selected,
            width=self._width,
            visible_lines=self._visible_lines,
            disable_esc=self._disable_esc,
            tag=self._tag,
            on_close=self._on_close,
        )


def form_values(modal: Modal) -> dict[str, FormValue]:
    values: dict[str, FormValue] = {}
    for field in modal.fields:
        values[field.key] = field.checked if field.kind is FieldKind.CHECKBOX else field.value
    return values


PressResult = tuple[Union[Modal, None], Union[Message, None]]


def press(modal: Modal, key: str) -> PressResult:
    """Apply one key press to a modal.

    Returns (modal, message): modal is None when the key closed it; message is
    the outcome of a selected action, None otherwise.
    """
    kind = modal.kind
    if kind is ModalKind.INFO:
        return _press_info(modal, key)
    if kind is ModalKind.CONFIRM:
        return _press_confirm(modal, key)
    if kind is ModalKind.FORM:
        return _press_form(modal, key)
    if kind is ModalKind.ACTIONS_MENU:
        return _press_actions_menu(modal, key)
    assert_never(kind)


def trigger(modal: Modal, action: Action) -> PressResult:
    if action.submit is not None:
        try:
            message = action.submit(form_values(modal))
        except ValueError as e:
            return replace(modal, error=str(e)), None
        return None, message
    return None, action.message


def _close(modal: Modal) -> PressResult:
    if modal.disable_esc:
        return modal, None
    return None, None


def _action_for_key(modal: Modal, key: str) -> Action | None:
    for action in modal.actions:
        if action.key == key:
            return action
    return None


def _move_selection(modal: Modal, delta: int) -> Modal:
    if not modal.actions:
        return modal
    selected = max(0, min(len(modal.actions) - 1, modal.selected + delta))
    return replace(modal, selected=selected)


def _scroll(modal: Modal, key: str) -> Modal | None:
    page = max(1, modal.visible_lines)
    if key in ("up", "k"):
        target = modal.scroll - 1
    elif key in ("down", "j"):
        target = modal.scroll + 1
    elif key == "pageup":
        target = modal.scroll - page
    elif key in ("pagedown", "space"):
        target = modal.scroll + page
    elif key == "home":
        target = 0
    elif key == "end":
        target = modal.max_scroll
    else:
        return None
    return replace(modal, scroll=max(0, min(modal.max_scroll, target)))


def _press_info(modal: Modal, key: str) -> PressResult:
    if key == "enter":
        if not modal.actions:
            return _close(modal)
        return trigger(modal, modal.actions[modal.selected])
    if key == "esc":
        action = _action_for_key(modal, "esc")
        if action is not None and not modal.disable_esc:
            return trigger(modal, action)
        return _close(modal)
    if key in ("left", "shift+tab"):
        return _move_selection(modal, -1), None
    if key in ("right", "tab"):
        return _move_selection(modal, 1), None
    action = _action_for_key(modal, key)
    if action is not None:
        return trigger(modal, action)
    if modal.visible_lines > 0:
        scrolled = _scroll(modal, key)
        if scrolled is not None:
            return scrolled, None
    return modal, None


def _press_confirm(modal: Modal, key: str) -> PressResult:
    if key == "y":
        primary = modal.primary_action()
        return trigger(modal, primary) if primary else (None, None)
    if key == "enter":
        if not modal.actions:
            return _close(modal)
        return trigger(modal, modal.actions[modal.selected])
    if key in ("n", "esc"):
        return _close(modal)
    if key in ("left", "shift+tab"):
        return _move_selection(modal, -1), None
    if key in ("right", "tab"):
        return _move_selection(modal, 1), None
    return modal, None


def _press_actions_menu(modal: Modal, key: str) -> PressResult:
    if key in ("up", "k"):
        return _move_selection(modal, -1), None
    if key in ("down", "j"):
        return _move_selection(modal, 1), None
    if key == "enter":
        if not modal.actions:
            return _close(modal)
        return trigger(modal, modal.actions[modal.selected])
    action = _action_for_key(modal, key)
    if action is not None:
        return trigger(modal, action)
    if key == "esc":
        return _close(modal)
    return modal, None


def _edit_field(modal: Modal, index: int, field: FormField) -> Modal:
    fields = list(modal.fields)
    fields[index] = field
    return replace(modal, fields=tuple(fields))


def _typed_text(key: str) -> str | None:
    if key == "space":
        return " "
    if len(key) == 1 and key.isprintable():
        return key
    return None


def _press_form(modal: Modal, key: str) -> PressResult:
    total = len(modal.fields) + len(modal.actions)
    if key == "esc":
        return _close(modal)
    if key == "ctrl+s":
        primary = modal.primary_action()
        return trigger(modal, primary) if primary else (None, None)
    if total and key == "tab":
        return replace(modal, focus=(modal.focus + 1) % total), None
    if total and key == "shift+tab":
        return replace(modal, focus=(modal.focus - 1) % total), None

    if modal.focus >= len(modal.fields):
        button = modal.focus - len(modal.fields)
        if key in ("enter", "space") and button < len(modal.actions):
            return trigger(modal, modal.actions[button])
        return modal, None

    index = modal.focus
    field = modal.fields[index]
    if field.kind is FieldKind.CHECKBOX:
        if key in ("enter", "space"):
            return _edit_field(modal, index, replace(field, checked=not field.checked)), None
        return modal, None

    if key == "enter":
        if field.kind is FieldKind.TEXT_AREA:
            return _edit_field(modal, index, replace(field, value=field.value + "\n")), None
        return replace(modal, focus=(modal.focus + 1) % total), None
    if key == "backspace":
        return _edit_field(modal, index, replace(field, value=field.value[:-1])), None
    text = _typed_text(key)
    if text is not None:
        return _edit_field(modal, index, replace(field, value=field.value + text)), None
    return modal, None
