"""Session controller: `init()` and the pure `handle()` transition.

`handle(state, message)` never performs I/O. It returns the next AppState and
the task descriptors the scheduler should start. Completions that arrive
after the state moved on are recognised by their identity (load generation,
operation ticket, modal tag) and dropped.
"""

from __future__ import annotations

from dataclasses import replace

from maestro.container import OperationType
from maestro.logging_config import get_logger
from maestro.cli.tui import modals, wizard
from maestro.cli.tui.messages import (
    ActionRequested,
    AnimationTick,
    ConfirmOperation,
    ConnectRequested,
    CreateRequested,
    DetailsLoaded,
    FirewallSaved,
    FirewallSubmitted,
    KeyPress,
    Message,
    OperationFinished,
    PrerequisitesChecked,
    RefreshRequested,
    RefreshTick,
    Resize,
    SessionsLoaded,
    SettingsSaved,
    SettingsSubmitted,
    SpinnerTick,
    ToastExpired,
    WizardAnimationTick,
    WizardConfigSaved,
    WizardCycleDefault,
    WizardFinish,
    WizardNext,
    WizardPrev,
    WizardRestoreStep,
    WizardRunAuth,
    WizardSkip,
    WizardSkipped,
)
from maestro.cli.tui.modal import press
from maestro.cli.tui.state import (
    MAX_TOASTS,
    STATUS_FOR_OPERATION,
    AppState,
    OperationStatus,
    PendingOperation,
    Result,
    ResultKind,
    SessionState,
    SettingsSnapshot,
    Snapshot,
    Toast,
    ToastLevel,
    WizardStep,
)
from maestro.cli.tui.tasks import (
    ANIMATION_INTERVAL_S,
    REFRESH_INTERVAL_S,
    SPINNER_INTERVAL_S,
    TOAST_DURATION_S,
    WIZARD_REVEAL_INTERVAL_S,
    DescribeSession,
    Emit,
    EnsureDefaultConfig,
    LoadSessions,
    RunOperation,
    SaveFirewall,
    SaveSettings,
    SaveWizardConfig,
    Task,
    Timer,
)

logger = get_logger(__name__)

QUIT_KEYS = ("q", "ctrl+c")

Transition = tuple[AppState, tuple[Task, ...]]


def init(settings: SettingsSnapshot, snapshot: Snapshot | None = None) -> Transition:
    """Initial state and the tasks that start the tickers and the first load."""
    state = AppState(settings=settings)
    tasks: list[Task] = [Timer(ANIMATION_INTERVAL_S, AnimationTick())]

    if settings.first_run:
        wizard_state = wizard.initial_wizard(settings, resume=settings.resume_after_auth)
        state = replace(state, wizard=wizard_state)
        if wizard_state.step is WizardStep.ANIMATION:
            tasks.append(Timer(WIZARD_REVEAL_INTERVAL_S, WizardAnimationTick()))
        logger.info("Starting onboarding wizard at step %s", wizard_state.step.name)
        return state, tuple(tasks)

    if snapshot is not None:
        session = SessionState(entries=snapshot.entries, cursor=0 if snapshot.entries else -1)
        state = replace(
            state,
            ready=True,
            session=session,
            pending_cursor=snapshot.cursor,
            initial_load_done=True,
        )
    state, load_tasks = _start_load(state, background=snapshot is not None)
    tasks.extend(load_tasks)
    tasks.append(Timer(REFRESH_INTERVAL_S, RefreshTick()))
    return state, tuple(tasks)


def handle(state: AppState, message: Message) -> Transition:
    """Apply one message. Pure: equal inputs give equal outputs."""
    if state.result is not None:
        return state, ()

    # Ticks and completions first: they are absorbed whatever the modal state.
    if isinstance(message, AnimationTick):
        return replace(state, animation_frame=state.animation_frame + 1), (
            Timer(ANIMATION_INTERVAL_S, AnimationTick()),
        )
    if isinstance(message, WizardAnimationTick):
        return wizard.reveal_tick(state)
    if isinstance(message, RefreshTick):
        return _on_refresh_tick(state)
    if isinstance(message, SpinnerTick):
        return _on_spinner_tick(state)
    if isinstance(message, ToastExpired):
        return replace(state, toasts=tuple(t for t in state.toasts if t.toast_id != message.toast_id)), ()
    if isinstance(message, Resize):
        return _on_resize(state, message)
    if isinstance(message, SessionsLoaded):
        return _on_sessions_loaded(state, message)
    if isinstance(message, DetailsLoaded):
        return _on_details_loaded(state, message)
    if isinstance(message, OperationFinished):
        return _on_operation_finished(state, message)
    if isinstance(message, PrerequisitesChecked):
        return wizard.prerequisites_checked(state, message.results, message.error), ()
    if isinstance(message, WizardConfigSaved):
        return _on_wizard_config_saved(state, message)
    if isinstance(message, WizardSkipped):
        if message.error:
            return _report_failure(state, "Warning", f"Could not create default config: {message.error}")
        return state, ()
    if isinstance(message, SettingsSaved):
        return _on_settings_saved(state, message)
    if isinstance(message, FirewallSaved):
        return _on_firewall_saved(state, message)

    if isinstance(message, KeyPress):
        return _on_key(state, message.key)

    # Outcomes of modal actions.
    if isinstance(message, ActionRequested):
        return _on_action_requested(state, message)
    if isinstance(message, ConfirmOperation):
        return _on_confirm_operation(state, message)
    if isinstance(message, ConnectRequested):
        return _finish(state, Result(ResultKind.CONNECT, name=message.name))
    if isinstance(message, CreateRequested):
        return _finish(state, Result(ResultKind.CREATE, create=message.params))
    if isinstance(message, RefreshRequested):
        return _manual_refresh(state)
    if isinstance(message, SettingsSubmitted):
        return state, (SaveSettings(message.values),)
    if isinstance(message, FirewallSubmitted):
        return state, (SaveFirewall(message.domains),)

    # Wizard transitions.
    if isinstance(message, WizardNext):
        return wizard.advance(state)
    if isinstance(message, WizardPrev):
        return wizard.go_back(state)
    if isinstance(message, WizardCycleDefault):
        return wizard.cycle_default(state, message.field), ()
    if isinstance(message, WizardRestoreStep):
        if state.wizard is None:
            return state, ()
        return wizard.enter_step(state, state.wizard.step)
    if isinstance(message, WizardSkip):
        return _on_wizard_skip(state)
    if isinstance(message, WizardRunAuth):
        return _save_wizard(state, run_auth_now=True)
    if isinstance(message, WizardFinish):
        return _save_wizard(state, run_auth_now=False)

    logger.warning("Unhandled message: %s", type(message).__name__)
    return state, ()


# --- Helpers ---


def _finish(state: AppState, result: Result) -> Transition:
    logger.info("TUI finished with %s %s", result.kind.value, result.name)
    return replace(state, result=result), ()


def _report_failure(state: AppState, title: str, text: str) -> Transition:
    """Error modal, or an error toast when another modal already owns the screen."""
    if state.modal is None:
        return replace(state, modal=modals.error_modal(title, text)), ()
    return _push_toast(state, ToastLevel.ERROR, text)


def _push_toast(state: AppState, level: ToastLevel, text: str) -> Transition:
    toast = Toast(toast_id=state.next_toast_id, level=level, text=text)
    toasts = (state.toasts + (toast,))[-MAX_TOASTS:]
    state = replace(state, toasts=toasts, next_toast_id=state.next_toast_id + 1)
    return state, (Timer(TOAST_DURATION_S, ToastExpired(toast.toast_id)),)


def _needs_spinner(state: AppState) -> bool:
    return state.loading or bool(state.pending) or state.status.busy


def _ensure_spinner(state: AppState) -> Transition:
    if state.spinner_active or not _needs_spinner(state):
        return state, ()
    return replace(state, spinner_active=True), (Timer(SPINNER_INTERVAL_S, SpinnerTick()),)


def _start_load(state: AppState, *, background: bool) -> Transition:
    """Issue a new enumeration; it supersedes any enumeration still in flight."""
    generation = state.load_generation + 1
    state = replace(state, load_generation=generation, loading=state.loading or not background)
    state, spinner = _ensure_spinner(state)
    return state, (LoadSessions(generation, background=background),) + spinner


def _start_normal_mode(state: AppState) -> Transition:
    state = replace(state, wizard=None, modal=None)
    state, load_tasks = _start_load(state, background=False)
    return state, load_tasks + (Timer(REFRESH_INTERVAL_S, RefreshTick()),)


def _status_after_tickets(state: AppState) -> OperationStatus:
    if state.pending:
        return STATUS_FOR_OPERATION[state.pending[-1].operation]
    return OperationStatus.READY


# --- Ticks and resize ---


def _on_refresh_tick(state: AppState) -> Transition:
    reschedule: tuple[Task, ...] = (Timer(REFRESH_INTERVAL_S, RefreshTick()),)
    if state.wizard is not None or state.modal is not None or state.pending or state.status.busy or state.loading:
        return state, reschedule
    state, load_tasks = _start_load(state, background=True)
    return state, load_tasks + reschedule


def _on_spinner_tick(state: AppState) -> Transition:
    if not _needs_spinner(state):
        return replace(state, spinner_active=False), ()
    return replace(state, spinner_frame=state.spinner_frame + 1, spinner_active=True), (
        Timer(SPINNER_INTERVAL_S, SpinnerTick()),
    )


def _on_resize(state: AppState, message: Resize) -> Transition:
    state = replace(state, width=message.width, height=message.height, ready=True)
    if state.pending_cursor is not None:
        state = replace(state, session=state.session.with_cursor(state.pending_cursor), pending_cursor=None)
    if state.wizard is not None and state.wizard.modal_deferred:
        return wizard.enter_step(state, state.wizard.step)
    return state, ()


# --- Key routing ---


def _on_key(state: AppState, key: str) -> Transition:
    if state.wizard is not None and key in QUIT_KEYS:
        return _finish(state, Result(ResultKind.QUIT))
    if state.modal is not None:
        return _on_modal_key(state, key)
    if state.wizard is not None:
        return _on_wizard_key(state, key)
    return _on_main_key(state, key)


def _on_modal_key(state: AppState, key: str) -> Transition:
    current = state.modal
    assert current is not None
    modal, outcome = press(current, key)
    state = replace(state, modal=modal)
    if outcome is not None:
        return state, (Emit(outcome),)
    if modal is None and current.on_close is not None:
        return state, (Emit(current.on_close),)
    return state, ()


def _on_wizard_key(state: AppState, key: str) -> Transition:
    wizard_state = state.wizard
    assert wizard_state is not None
    if wizard_state.step is WizardStep.ANIMATION and key == "enter" and wizard_state.animation_complete:
        return wizard.advance(state)
    return state, ()


def _on_main_key(state: AppState, key: str) -> Transition:
    session = state.session
    selected = session.selected()

    if key in QUIT_KEYS:
        return _finish(state, Result(ResultKind.QUIT))
    if key in ("up", "k"):
        return replace(state, session=session.move(-1)), ()
    if key in ("down", "j"):
        return replace(state, session=session.move(1)), ()
    if key == "enter":
        if selected is None:
            return state, ()
        return _finish(state, Result(ResultKind.CONNECT, name=selected.name))
    if key == "a":
        if selected is None:
            return state, ()
        return replace(state, modal=modals.actions_menu_modal(selected.name)), ()
    if key == "i":
        if selected is None:
            return state, ()
        return replace(state, modal=modals.details_loading_modal(selected.name)), (DescribeSession(selected.name),)
    if key == "n":
        return replace(state, modal=modals.create_form_modal()), ()
    if key == "s":
        return replace(state, modal=modals.settings_form_modal(state.settings.values)), ()
    if key == "f":
        return replace(state, modal=modals.firewall_form_modal(state.settings.domains)), ()
    if key == "r":
        return _manual_refresh(state)
    if key == "?":
        return replace(state, modal=modals.help_modal()), ()
    return state, ()


def _manual_refresh(state: AppState) -> Transition:
    if state.wizard is not None:
        return state, ()
    return _start_load(state, background=False)


# --- Session list ---


def _on_sessions_loaded(state: AppState, message: SessionsLoaded) -> Transition:
    if message.generation != state.load_generation:
        logger.debug("Dropping stale enumeration %d (current %d)", message.generation, state.load_generation)
        return state, ()

    first = not state.initial_load_done
    state = replace(state, loading=False, initial_load_done=True)
    if not state.pending:
        state = replace(state, status=OperationStatus.READY)

    if message.error is not None:
        if message.background:
            return state, ()
        return _push_toast(state, ToastLevel.ERROR, f"Failed to load containers: {message.error}")

    state = replace(state, session=state.session.with_entries(message.sessions))
    if first:
        return _push_toast(state, ToastLevel.SUCCESS, f"Loaded {len(message.sessions)} containers")
    return state, ()


def _on_details_loaded(state: AppState, message: DetailsLoaded) -> Transition:
    modal = state.modal
    if modal is None or modal.tag != modals.details_tag(message.name, loading=True):
        return state, ()
    if message.error is not None or message.details is None:
        error = message.error or "no details returned"
        body = f"Failed to load details for {message.name}:\n\n{error}"
        return replace(state, modal=modals.error_modal("Details Unavailable", body)), ()
    return replace(state, modal=modals.details_modal(message.details)), ()


# --- Operations ---


def _on_action_requested(state: AppState, message: ActionRequested) -> Transition:
    if not state.session.contains(message.name):
        return _push_toast(state, ToastLevel.WARNING, f"Container {message.name} no longer exists")
    if message.operation.is_destructive:
        return replace(state, modal=modals.confirm_operation_modal(message.operation, message.name)), ()

    state, tasks = _start_operation(state, message.operation, message.name)
    if message.operation is OperationType.RESTART:
        text = f"Restarting container {message.name}..."
    else:
        text = f"Refreshing tokens for {message.name}..."
    state, toast_tasks = _push_toast(state, ToastLevel.INFO, text)
    return state, tasks + toast_tasks


def _on_confirm_operation(state: AppState, message: ConfirmOperation) -> Transition:
    if not state.session.contains(message.name):
        return _push_toast(state, ToastLevel.WARNING, f"Container {message.name} no longer exists")
    return _start_operation(state, message.operation, message.name)


def _start_operation(state: AppState, operation: OperationType, name: str) -> Transition:
    ticket = PendingOperation(op_id=state.next_op_id, operation=operation, name=name)
    state = replace(
        state,
        pending=state.pending + (ticket,),
        next_op_id=state.next_op_id + 1,
        status=STATUS_FOR_OPERATION[operation],
    )
    logger.info("Started %s on %s (op %d)", operation.value, name, ticket.op_id)
    state, spinner = _ensure_spinner(state)
    return state, (RunOperation(ticket.op_id, operation, name),) + spinner


def _on_operation_finished(state: AppState, message: OperationFinished) -> Transition:
    if not any(p.op_id == message.op_id for p in state.pending):
        logger.debug("Ignoring completion for unknown operation ticket %d", message.op_id)
        return state, ()
    state = replace(state, pending=tuple(p for p in state.pending if p.op_id != message.op_id))

    if message.error is not None:
        state = replace(state, status=_status_after_tickets(state))
        if state.modal is None:
            return replace(state, modal=modals.operation_failed_modal(message.operation, message.name, message.error)), ()
        return _push_toast(
            state, ToastLevel.ERROR, f"Failed to {message.operation.value} {message.name}: {message.error}"
        )

    status = _status_after_tickets(state) if state.pending else OperationStatus.SYNCING
    state = replace(state, status=status)
    if message.operation is OperationType.REFRESH_TOKENS:
        text = f"Tokens refreshed for {message.name}"
    else:
        text = f"Container {message.name} {message.operation.past_tense}"
    state, toast_tasks = _push_toast(state, ToastLevel.SUCCESS, text)
    state, load_tasks = _start_load(state, background=True)
    return state, toast_tasks + load_tasks


# --- Wizard persistence ---


def _save_wizard(state: AppState, *, run_auth_now: bool) -> Transition:
    wizard_state = state.wizard
    if wizard_state is None:
        return state, ()
    answers = replace(wizard_state.answers, run_auth_now=run_auth_now)
    state = replace(state, wizard=replace(wizard_state, answers=answers))
    return state, (SaveWizardConfig(answers, resume_after_auth=run_auth_now),)


def _on_wizard_config_saved(state: AppState, message: WizardConfigSaved) -> Transition:
    if state.wizard is None:
        return state, ()
    if message.error is not None:
        modal = modals.error_modal(
            "Configuration Error",
            f"Failed to save configuration:\n\n{message.error}",
            on_close=WizardRestoreStep(),
        )
        return replace(state, modal=modal), ()
    if message.resume_after_auth:
        return _finish(state, Result(ResultKind.RUN_AUTH))

    answers = state.wizard.answers
    settings = state.settings
    settings = replace(
        settings,
        values=replace(settings.values, memory=answers.memory, cpus=answers.cpus),
        domains=answers.domains,
        config_exists=True,
        resume_after_auth=False,
    )
    state, tasks = _start_normal_mode(replace(state, settings=settings))
    state, toast_tasks = _push_toast(state, ToastLevel.SUCCESS, "Configuration saved!")
    return state, tasks + toast_tasks


def _on_wizard_skip(state: AppState) -> Transition:
    wizard_state = state.wizard
    if wizard_state is None:
        return state, ()
    tasks: tuple[Task, ...] = ()
    if not state.settings.config_exists:
        tasks = (EnsureDefaultConfig(wizard_state.answers),)
    state, normal_tasks = _start_normal_mode(state)
    return state, tasks + normal_tasks


# --- Settings and firewall ---


def _on_settings_saved(state: AppState, message: SettingsSaved) -> Transition:
    if message.error is not None:
        return _report_failure(state, "Save Failed", f"Failed to save settings: {message.error}")
    current = state.settings.values
    values = replace(
        message.values,
        memory=message.values.memory or current.memory,
        cpus=message.values.cpus or current.cpus,
    )
    state = replace(state, settings=replace(state.settings, values=values, config_exists=True))
    return _push_toast(state, ToastLevel.SUCCESS, "Settings saved successfully")


def _on_firewall_saved(state: AppState, message: FirewallSaved) -> Transition:
    if message.error is not None:
        return _report_failure(state, "Save Failed", f"Failed to save firewall: {message.error}")
    state = replace(state, settings=replace(state.settings, domains=message.domains, config_exists=True))
    return _push_toast(state, ToastLevel.SUCCESS, "Firewall configuration saved")
