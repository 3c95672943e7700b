"""Task descriptors and the asyncio scheduler that runs them.

The controller returns tasks as plain frozen values. `TaskScheduler` turns
each one into an asyncio task that posts exactly one completion message back
to the event loop. Failures are carried in the completion's `error` field;
nothing raised by a collaborator reaches the loop.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Union

from maestro.config.store import ConfigStore
from maestro.container import ContainerRegistry, OperationType
from maestro.logging_config import get_logger
from maestro.system import PrerequisiteChecker
from maestro.cli.tui.messages import (
    DetailsLoaded,
    FirewallSaved,
    Message,
    OperationFinished,
    PrerequisitesChecked,
    SessionsLoaded,
    SettingsSaved,
    SettingsValues,
    WizardConfigSaved,
    WizardSkipped,
)
from maestro.cli.tui.state import WizardAnswers

logger = get_logger(__name__)

ANIMATION_INTERVAL_S = 0.75
WIZARD_REVEAL_INTERVAL_S = 0.08
REFRESH_INTERVAL_S = 30.0
SPINNER_INTERVAL_S = 0.1
TOAST_DURATION_S = 3.0


@dataclass(frozen=True)
class LoadSessions:
    generation: int
    background: bool = False


@dataclass(frozen=True)
class DescribeSession:
    name: str


@dataclass(frozen=True)
class RunOperation:
    op_id: int
    operation: OperationType
    name: str


@dataclass(frozen=True)
class CheckPrerequisites:
    pass


@dataclass(frozen=True)
class SaveWizardConfig:
    answers: WizardAnswers
    resume_after_auth: bool


@dataclass(frozen=True)
class EnsureDefaultConfig:
    answers: WizardAnswers


@dataclass(frozen=True)
class SaveSettings:
    values: SettingsValues


@dataclass(frozen=True)
class SaveFirewall:
    domains: tuple[str, ...]


@dataclass(frozen=True)
class Timer:
    delay: float
    message: Message


@dataclass(frozen=True)
class Emit:
    """Deliver a message through the queue (modal outcomes)."""

    message: Message


Task = Union[
    LoadSessions,
    DescribeSession,
    RunOperation,
    CheckPrerequisites,
    SaveWizardConfig,
    EnsureDefaultConfig,
    SaveSettings,
    SaveFirewall,
    Timer,
    Emit,
]


@dataclass
class Services:
    """Collaborators the scheduler calls into."""

    registry: ContainerRegistry
    store: ConfigStore
    checker: PrerequisiteChecker
    prefix: str = "maestro-"


class TaskScheduler:
    """Runs task descriptors and posts their completion messages."""

    def __init__(self, post: Callable[[Message], None], services: Services) -> None:
        self._post = post
        self._services = services
        self._tasks: set[asyncio.Task[None]] = set()
        self._config_lock = asyncio.Lock()
        self._closed = False

    @property
    def outstanding(self) -> int:
        return len(self._tasks)

    def schedule(self, task: Task) -> asyncio.Task[None]:
        if self._closed:
            raise RuntimeError("TaskScheduler is closed")
        runner = asyncio.create_task(self._complete(task), name=f"maestro:{type(task).__name__}")
        self._tasks.add(runner)
        runner.add_done_callback(self._tasks.discard)
        return runner

    async def close(self) -> None:
        """Cancel everything still outstanding (timers, slow registry calls)."""
        self._closed = True
        pending = [t for t in self._tasks if not t.done()]
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()

    async def _complete(self, task: Task) -> None:
        message = await self.run(task)
        if message is not None and not self._closed:
            self._post(message)

    async def run(self, task: Task) -> Message | None:
        """Execute one task and return its completion message."""
        if isinstance(task, Timer):
            await asyncio.sleep(task.delay)
            return task.message
        if isinstance(task, Emit):
            return task.message
        if isinstance(task, LoadSessions):
            return await self._load_sessions(task)
        if isinstance(task, DescribeSession):
            return await self._describe(task)
        if isinstance(task, RunOperation):
            return await self._run_operation(task)
        if isinstance(task, CheckPrerequisites):
            return await self._check_prerequisites()
        if isinstance(task, SaveWizardConfig):
            error = await self._write_config(_apply_wizard_answers, task.answers, task.resume_after_auth)
            return WizardConfigSaved(resume_after_auth=task.resume_after_auth, error=error)
        if isinstance(task, EnsureDefaultConfig):
            error = await self._write_config(_ensure_default_config, task.answers)
            return WizardSkipped(error=error)
        if isinstance(task, SaveSettings):
            error = await self._write_config(_apply_settings, task.values)
            return SettingsSaved(values=task.values, error=error)
        if isinstance(task, SaveFirewall):
            error = await self._write_config(_apply_firewall, task.domains)
            return FirewallSaved(domains=task.domains, error=error)
        logger.error("Unknown task type: %s", type(task).__name__)
        return None

    async def _load_sessions(self, task: LoadSessions) -> SessionsLoaded:
        try:
            sessions = await self._services.registry.list(self._services.prefix)
        except Exception as e:  # noqa: BLE001 - carried in the completion message
            logger.warning("Session enumeration failed (generation %d): %s", task.generation, e)
            return SessionsLoaded(generation=task.generation, error=str(e), background=task.background)
        return SessionsLoaded(generation=task.generation, sessions=tuple(sessions), background=task.background)

    async def _describe(self, task: DescribeSession) -> DetailsLoaded:
        try:
            details = await self._services.registry.describe(task.name)
        except Exception as e:  # noqa: BLE001 - carried in the completion message
            logger.warning("Describe %s failed: %s", task.name, e)
            return DetailsLoaded(name=task.name, error=str(e))
        return DetailsLoaded(name=task.name, details=details)

    async def _run_operation(self, task: RunOperation) -> OperationFinished:
        registry = self._services.registry
        calls = {
            OperationType.STOP: registry.stop,
            OperationType.RESTART: registry.restart,
            OperationType.DELETE: registry.delete,
            OperationType.REFRESH_TOKENS: registry.refresh_tokens,
        }
        logger.info("Running %s on %s (op %d)", task.operation.value, task.name, task.op_id)
        try:
            await calls[task.operation](task.name)
        except Exception as e:  # noqa: BLE001 - carried in the completion message
            logger.warning("%s %s failed: %s", task.operation.value, task.name, e)
            return OperationFinished(op_id=task.op_id, operation=task.operation, name=task.name, error=str(e))
        return OperationFinished(op_id=task.op_id, operation=task.operation, name=task.name)

    async def _check_prerequisites(self) -> PrerequisitesChecked:
        try:
            results = await self._services.checker.check_all()
        except Exception as e:  # noqa: BLE001 - carried in the completion message
            logger.warning("Prerequisite check failed: %s", e)
            return PrerequisitesChecked(error=str(e))
        return PrerequisitesChecked(results=tuple(results))

    async def _write_config(self, apply: Callable[..., None], *args: object) -> str | None:
        """Mutate and persist the config store in a worker thread, one writer at a time."""
        async with self._config_lock:
            try:
                await asyncio.to_thread(apply, self._services.store, *args)
            except Exception as e:  # noqa: BLE001 - carried in the completion message
                logger.error("Config write failed: %s", e)
                return str(e)
        return None


def _apply_wizard_answers(store: ConfigStore, answers: WizardAnswers, resume_after_auth: bool) -> None:
    store.set("containers.resources.memory", answers.memory)
    store.set("containers.resources.cpus", answers.cpus)
    store.set("firewall.allowed_domains", list(answers.domains))
    store.set("wizard.resume_after_auth", resume_after_auth)
    store.write()


def _ensure_default_config(store: ConfigStore, answers: WizardAnswers) -> None:
    if store.exists():
        return
    _apply_wizard_answers(store, answers, False)


def _apply_settings(store: ConfigStore, values: SettingsValues) -> None:
    if values.memory:
        store.set("containers.resources.memory", values.memory)
    if values.cpus:
        store.set("containers.resources.cpus", values.cpus)
    store.set("daemon.show_nag", values.show_nag)
    store.set("daemon.token_refresh.enabled", values.token_refresh)
    store.set("daemon.notifications.enabled", values.notifications)
    store.write()


def _apply_firewall(store: ConfigStore, domains: tuple[str, ...]) -> None:
    store.set("firewall.allowed_domains", list(domains))
    store.write()
