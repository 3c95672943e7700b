"""TUI application state.

All state is immutable; `controller.handle` derives a new AppState for every
message. The session list, the pending operation tickets and the wizard
progress live here together with the read-only view of the configuration
captured at startup.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum

from maestro.config.schema import DEFAULT_ALLOWED_DOMAINS
from maestro.config.store import ConfigStore
from maestro.container import OperationType, SessionSummary
from maestro.cli.tui.messages import CreateParams, SettingsValues
from maestro.cli.tui.modal import Modal

MAX_TOASTS = 3


@dataclass(frozen=True)
class SessionState:
    """Session list plus selection. cursor is -1 or a valid index."""

    entries: tuple[SessionSummary, ...] = ()
    cursor: int = -1

    def selected(self) -> SessionSummary | None:
        if 0 <= self.cursor < len(self.entries):
            return self.entries[self.cursor]
        return None

    def index_of(self, name: str) -> int:
        for i, entry in enumerate(self.entries):
            if entry.name == name:
                return i
        return -1

    def contains(self, name: str) -> bool:
        return self.index_of(name) >= 0

    def with_entries(self, entries: tuple[SessionSummary, ...]) -> SessionState:
        """Replace the list, keeping the cursor on the same session when it survives."""
        current = self.selected()
        updated = SessionState(entries=entries, cursor=0 if entries else -1)
        if current is not None:
            index = updated.index_of(current.name)
            if index >= 0:
                updated = replace(updated, cursor=index)
        return updated

    def move(self, delta: int) -> SessionState:
        if not self.entries:
            return replace(self, cursor=-1)
        cursor = max(0, min(len(self.entries) - 1, self.cursor + delta))
        return replace(self, cursor=cursor)

    def with_cursor(self, cursor: int) -> SessionState:
        if not self.entries:
            return replace(self, cursor=-1)
        return replace(self, cursor=max(0, min(len(self.entries) - 1, cursor)))


class OperationStatus(str, Enum):
    READY = "ready"
    SYNCING = "syncing"
    DELETING = "deleting"
    STOPPING = "stopping"
    RESTARTING = "restarting"
    REFRESHING_TOKENS = "refreshing_tokens"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def busy(self) -> bool:
        return self is not OperationStatus.READY


_STATUS_LABELS = {
    OperationStatus.READY: "Ready",
    OperationStatus.SYNCING: "Syncing...",
    OperationStatus.DELETING: "Deleting...",
    OperationStatus.STOPPING: "Stopping...",
    OperationStatus.RESTARTING: "Restarting...",
    OperationStatus.REFRESHING_TOKENS: "Refreshing tokens...",
}

STATUS_FOR_OPERATION = {
    OperationType.STOP: OperationStatus.STOPPING,
    OperationType.RESTART: OperationStatus.RESTARTING,
    OperationType.DELETE: OperationStatus.DELETING,
    OperationType.REFRESH_TOKENS: OperationStatus.REFRESHING_TOKENS,
}


@dataclass(frozen=True)
class PendingOperation:
    """Ticket for an operation in flight."""

    op_id: int
    operation: OperationType
    name: str


class WizardStep(IntEnum):
    ANIMATION = 0
    PREREQUISITES = 1
    WELCOME = 2
    AUTH = 3
    FIREWALL = 4
    DEFAULTS = 5
    COMPLETION = 6


@dataclass(frozen=True)
class WizardAnswers:
    memory: str = "4g"
    cpus: str = "2"
    domains: tuple[str, ...] = tuple(DEFAULT_ALLOWED_DOMAINS)
    run_auth_now: bool = False


@dataclass(frozen=True)
class WizardState:
    step: WizardStep = WizardStep.ANIMATION
    animation_column: int = 0
    animation_complete: bool = False
    answers: WizardAnswers = field(default_factory=WizardAnswers)
    credentials_present: bool = False
    # Set when the step modal waits for the first terminal size.
    modal_deferred: bool = False


class ToastLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Toast:
    toast_id: int
    level: ToastLevel
    text: str


class ResultKind(str, Enum):
    QUIT = "quit"
    CONNECT = "connect"
    CREATE = "create"
    RUN_AUTH = "run_auth"


@dataclass(frozen=True)
class Result:
    """Why the TUI exited and what the caller should do next."""

    kind: ResultKind
    name: str = ""
    create: CreateParams | None = None


@dataclass(frozen=True)
class Snapshot:
    """Last known list and selection, used to redraw instantly on re-entry."""

    entries: tuple[SessionSummary, ...] = ()
    cursor: int = -1


@dataclass(frozen=True)
class SettingsSnapshot:
    """Configuration values the controller needs, read once at startup."""

    prefix: str = "maestro-"
    values: SettingsValues = field(default_factory=lambda: SettingsValues(memory="4g", cpus="2"))
    domains: tuple[str, ...] = tuple(DEFAULT_ALLOWED_DOMAINS)
    config_exists: bool = True
    credentials_present: bool = True
    bedrock_enabled: bool = False
    always_run_wizard: bool = False
    resume_after_auth: bool = False
    working_dir: str = ""

    @classmethod
    def from_store(cls, store: ConfigStore, *, credentials_present: bool, working_dir: str = "") -> SettingsSnapshot:
        return cls(
            prefix=store.get_str("containers.prefix", "maestro-"),
            values=SettingsValues(
                memory=store.get_str("containers.resources.memory", "4g"),
                cpus=store.get_str("containers.resources.cpus", "2"),
                show_nag=store.get_bool("daemon.show_nag", True),
                token_refresh=store.get_bool("daemon.token_refresh.enabled", True),
                notifications=store.get_bool("daemon.notifications.enabled", True),
            ),
            domains=tuple(store.get_list("firewall.allowed_domains")) or tuple(DEFAULT_ALLOWED_DOMAINS),
            config_exists=store.exists(),
            credentials_present=credentials_present,
            bedrock_enabled=store.get_bool("bedrock.enabled"),
            always_run_wizard=store.get_bool("wizard.always_run"),
            resume_after_auth=store.get_bool("wizard.resume_after_auth"),
            working_dir=working_dir,
        )

    @property
    def first_run(self) -> bool:
        if self.always_run_wizard or self.resume_after_auth or not self.config_exists:
            return True
        return not self.credentials_present and not self.bedrock_enabled


@dataclass(frozen=True)
class AppState:
    settings: SettingsSnapshot = field(default_factory=SettingsSnapshot)
    width: int = 0
    height: int = 0
    ready: bool = False
    loading: bool = False
    session: SessionState = field(default_factory=SessionState)
    modal: Modal | None = None
    wizard: WizardState | None = None
    status: OperationStatus = OperationStatus.READY
    pending: tuple[PendingOperation, ...] = ()
    next_op_id: int = 1
    load_generation: int = 0
    initial_load_done: bool = False
    toasts: tuple[Toast, ...] = ()
    next_toast_id: int = 1
    animation_frame: int = 0
    spinner_frame: int = 0
    spinner_active: bool = False
    pending_cursor: int | None = None
    result: Result | None = None

    def snapshot(self) -> Snapshot:
        return Snapshot(entries=self.session.entries, cursor=self.session.cursor)
