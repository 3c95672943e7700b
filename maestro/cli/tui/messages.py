"""Messages consumed by the TUI event loop.

Every event (key press, tick, task completion, modal outcome) reaches the
controller as one of the frozen dataclasses below. Completion messages carry
the identity of the work they complete (load generation, operation ticket,
session name) so stale ones can be recognised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from maestro.container import OperationType, SessionDetails, SessionSummary
from maestro.system import PrerequisiteResult

# --- Input ---


@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


# --- Ticks ---


@dataclass(frozen=True)
class AnimationTick:
    """Drives the banner gradient and status pulse."""


@dataclass(frozen=True)
class WizardAnimationTick:
    """Advances the onboarding reveal by one column."""


@dataclass(frozen=True)
class RefreshTick:
    """Periodic background reload of the session list."""


@dataclass(frozen=True)
class SpinnerTick:
    pass


@dataclass(frozen=True)
class ToastExpired:
    toast_id: int


# --- Session list and operations ---


@dataclass(frozen=True)
class SessionsLoaded:
    generation: int
    sessions: tuple[SessionSummary, ...] = ()
    error: str | None = None
    background: bool = False


@dataclass(frozen=True)
class DetailsLoaded:
    name: str
    details: SessionDetails | None = None
    error: str | None = None


@dataclass(frozen=True)
class ActionRequested:
    """User picked an operation from the actions menu."""

    operation: OperationType
    name: str


@dataclass(frozen=True)
class ConfirmOperation:
    """Operation approved (confirmed, or not requiring confirmation)."""

    operation: OperationType
    name: str


@dataclass(frozen=True)
class OperationFinished:
    op_id: int
    operation: OperationType
    name: str
    error: str | None = None


@dataclass(frozen=True)
class CreateParams:
    task: str
    branch: str = ""
    no_connect: bool = False
    exact: bool = False


@dataclass(frozen=True)
class ConnectRequested:
    name: str


@dataclass(frozen=True)
class CreateRequested:
    params: CreateParams


@dataclass(frozen=True)
class RefreshRequested:
    pass


# --- Onboarding wizard ---


@dataclass(frozen=True)
class PrerequisitesChecked:
    results: tuple[PrerequisiteResult, ...] = ()
    error: str | None = None


@dataclass(frozen=True)
class WizardNext:
    pass


@dataclass(frozen=True)
class WizardPrev:
    pass


@dataclass(frozen=True)
class WizardSkip:
    pass


@dataclass(frozen=True)
class WizardRunAuth:
    pass


@dataclass(frozen=True)
class WizardCycleDefault:
    field: str  # "memory" | "cpus"


@dataclass(frozen=True)
class WizardFinish:
    pass


@dataclass(frozen=True)
class WizardRestoreStep:
    """Re-open the current step's modal (after an error was acknowledged)."""


@dataclass(frozen=True)
class WizardConfigSaved:
    resume_after_auth: bool
    error: str | None = None


@dataclass(frozen=True)
class WizardSkipped:
    error: str | None = None


# --- Settings and firewall ---


@dataclass(frozen=True)
class SettingsValues:
    memory: str
    cpus: str
    show_nag: bool = True
    token_refresh: bool = True
    notifications: bool = True


@dataclass(frozen=True)
class SettingsSubmitted:
    values: SettingsValues


@dataclass(frozen=True)
class SettingsSaved:
    values: SettingsValues
    error: str | None = None


@dataclass(frozen=True)
class FirewallSubmitted:
    domains: tuple[str, ...]


@dataclass(frozen=True)
class FirewallSaved:
    domains: tuple[str, ...]
    error: str | None = None


Message = Union[
    KeyPress,
    Resize,
    AnimationTick,
    WizardAnimationTick,
    RefreshTick,
    SpinnerTick,
    ToastExpired,
    SessionsLoaded,
    DetailsLoaded,
    ActionRequested,
    ConfirmOperation,
    OperationFinished,
    ConnectRequested,
    CreateRequested,
    RefreshRequested,
    PrerequisitesChecked,
    WizardNext,
    WizardPrev,
    WizardSkip,
    WizardRunAuth,
    WizardCycleDefault,
    WizardFinish,
    WizardRestoreStep,
    WizardConfigSaved,
    WizardSkipped,
    SettingsSubmitted,
    SettingsSaved,
    FirewallSubmitted,
    FirewallSaved,
]
