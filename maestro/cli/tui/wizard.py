"""Onboarding wizard: step modals and step transitions.

Steps run Animation -> Prerequisites -> Welcome -> Auth -> Firewall ->
Defaults -> Completion. Every step after the reveal animation is an Info
modal with Esc disabled, so the reserved quit keys keep working throughout.
"""

from __future__ import annotations

from dataclasses import replace

from maestro.logging_config import get_logger
from maestro.system import PrerequisiteResult
from maestro.cli.tui.messages import (
    WizardAnimationTick,
    WizardCycleDefault,
    WizardFinish,
    WizardNext,
    WizardPrev,
    WizardRunAuth,
    WizardSkip,
)
from maestro.cli.tui import theme
from maestro.cli.tui.modal import Modal, ModalBuilder, ModalKind
from maestro.cli.tui.state import AppState, SettingsSnapshot, WizardAnswers, WizardState, WizardStep
from maestro.cli.tui.tasks import WIZARD_REVEAL_INTERVAL_S, CheckPrerequisites, Task, Timer

logger = get_logger(__name__)

REVEAL_COLUMNS = theme.BANNER_WIDTH
PREREQUISITES_TAG = "wizard:prerequisites"
MEMORY_PRESETS = ("2g", "4g", "8g", "16g")
CPU_PRESETS = ("1", "2", "4", "8")
WIZARD_WIDTH = 70


def initial_wizard(settings: SettingsSnapshot, *, resume: bool) -> WizardState:
    answers = WizardAnswers(
        memory=settings.values.memory or "4g",
        cpus=settings.values.cpus or "2",
        domains=settings.domains,
    )
    step = WizardStep.AUTH if resume else WizardStep.ANIMATION
    return WizardState(
        step=step,
        animation_complete=resume,
        answers=answers,
        credentials_present=settings.credentials_present,
        modal_deferred=resume,
    )


def _step_footer(step: WizardStep) -> str:
    return f"Step {int(step)} of 6"


def _builder(title: str) -> ModalBuilder:
    return ModalBuilder(ModalKind.INFO, title).width(WIZARD_WIDTH).disable_esc()


def prerequisites_placeholder() -> Modal:
    body = (
        "Checking Prerequisites...\n\n"
        "  * Claude CLI: Checking...\n"
        "  * Docker: Checking...\n\n"
        "Please wait while we verify your system requirements."
    )
    return _builder("System Requirements").body(body).tag(PREREQUISITES_TAG).build()


def prerequisites_result_modal(results: tuple[PrerequisiteResult, ...], error: str | None) -> Modal:
    lines = ["Prerequisite Check Complete", ""]
    for result in results:
        mark = "✓" if result.available else "✗"
        lines.append(f"  * {result.tool}: {mark} {result.message}")
    if error:
        lines.append(f"  * Check failed: {error}")
    lines.append("")

    passed = bool(results) and error is None and all(r.available for r in results)
    if passed:
        lines.append("All prerequisites are installed! You're ready to continue.")
    else:
        lines.append("Please install missing prerequisites before continuing:")
        lines.append("")
        lines.extend(f"  * {r.install_hint}" for r in results if not r.available and r.install_hint)
    lines += ["", _step_footer(WizardStep.PREREQUISITES)]

    builder = _builder("System Requirements").body("\n".join(lines)).tag(f"{PREREQUISITES_TAG}:done")
    if passed:
        builder.action("Continue", "enter", primary=True, message=WizardNext())
    else:
        builder.action("Exit", "enter", primary=True, message=WizardSkip())
    return builder.build()


def _welcome_modal() -> Modal:
    body = "\n".join(
        [
            "Welcome to Maestro!",
            "",
            "Maestro manages isolated Docker containers for Claude Code development.",
            "Each container runs an independent Claude instance with:",
            "",
            "  * Its own git branch for clean organization",
            "  * Network firewall for security",
            "  * Isolated environment and dependencies",
            "",
            "This setup wizard will help you configure:",
            "",
            "  1. Authentication with Claude",
            "  2. Network firewall rules",
            "  3. Container resource limits",
            "",
            _step_footer(WizardStep.WELCOME),
        ]
    )
    return (
        _builder("Welcome to Maestro")
        .body(body)
        .action("Get Started", "enter", primary=True, message=WizardNext())
        .action("Skip Wizard", "s", message=WizardSkip())
        .build()
    )


def _auth_modal(credentials_present: bool) -> Modal:
    builder = _builder("Authentication")
    if credentials_present:
        body = [
            "Authentication: ✓ Already configured",
            "",
            "Your Claude credentials are already set up and ready to use.",
        ]
    else:
        body = [
            "Authentication: Setup required",
            "",
            "Maestro needs to authenticate with Claude to create containers.",
            "",
            "At any time you can authenticate by running:",
            "",
            "  maestro auth",
            "",
            "This opens a browser window to complete OAuth authentication.",
            "Paste the authentication code back into the claude window and",
            "press Enter. When Claude setup is done, type \"exit\" to return",
            "to this wizard.",
            "",
            "You can authenticate now or after completing the wizard, although",
            "doing it now is recommended.",
        ]
    body += ["", _step_footer(WizardStep.AUTH)]
    builder.body("\n".join(body)).action("Next", "enter", primary=True, message=WizardNext())
    if not credentials_present:
        builder.scrollable(15).action("Run Auth Now", "a", message=WizardRunAuth())
    return builder.action("Back", "b", message=WizardPrev()).build()


def _firewall_modal(answers: WizardAnswers) -> Modal:
    body = "\n".join(
        [
            "Network Firewall",
            "",
            "Maestro containers use a network firewall to control outbound connections.",
            "Only whitelisted domains can be accessed from within containers.",
            "",
            f"{len(answers.domains)} common domains (GitHub, NPM, PyPI, etc.) are pre-configured.",
            "You can add more domains later with the Firewall settings (f key).",
            "",
            _step_footer(WizardStep.FIREWALL),
        ]
    )
    return (
        _builder("Firewall Setup")
        .body(body)
        .action("Next", "enter", primary=True, message=WizardNext())
        .action("Back", "b", message=WizardPrev())
        .build()
    )


def _defaults_modal(answers: WizardAnswers) -> Modal:
    body = "\n".join(
        [
            "Container Defaults",
            "",
            "Configure default resource limits for containers.",
            "",
            "Current settings:",
            f"  Memory:  {answers.memory}",
            f"  CPUs:    {answers.cpus}",
            "",
            "Press m or c to cycle through presets.",
            "You can adjust these later in Settings (s key).",
            "",
            _step_footer(WizardStep.DEFAULTS),
        ]
    )
    return (
        _builder("Container Defaults")
        .body(body)
        .action("Next", "enter", primary=True, message=WizardNext())
        .action("Memory", "m", message=WizardCycleDefault("memory"))
        .action("CPUs", "c", message=WizardCycleDefault("cpus"))
        .action("Back", "b", message=WizardPrev())
        .build()
    )


def _completion_modal(answers: WizardAnswers) -> Modal:
    body = "\n".join(
        [
            "Setup Complete!",
            "",
            "Your configuration:",
            "",
            f"  Memory Limit:  {answers.memory}",
            f"  CPU Limit:     {answers.cpus}",
            f"  Firewall:      {len(answers.domains)} domains configured",
            "",
            "You're ready to start using Maestro!",
            "",
            "On the main screen, press 'n' to create your first container.",
            "Use 's' to adjust settings and 'f' to modify firewall rules.",
            "",
            _step_footer(WizardStep.COMPLETION),
        ]
    )
    return (
        _builder("Welcome Complete")
        .body(body)
        .action("Finish", "enter", primary=True, message=WizardFinish())
        .action("Back", "b", message=WizardPrev())
        .build()
    )


def step_modal(wizard: WizardState) -> Modal | None:
    """Modal for the current step. The reveal animation has none."""
    step = wizard.step
    if step is WizardStep.ANIMATION:
        return None
    if step is WizardStep.PREREQUISITES:
        return prerequisites_placeholder()
    if step is WizardStep.WELCOME:
        return _welcome_modal()
    if step is WizardStep.AUTH:
        return _auth_modal(wizard.credentials_present)
    if step is WizardStep.FIREWALL:
        return _firewall_modal(wizard.answers)
    if step is WizardStep.DEFAULTS:
        return _defaults_modal(wizard.answers)
    return _completion_modal(wizard.answers)


def enter_step(state: AppState, step: WizardStep) -> tuple[AppState, tuple[Task, ...]]:
    """Move the wizard to `step` and show its modal.

    Entering Prerequisites shows the checking placeholder and schedules the
    check; the result replaces that same modal.
    """
    wizard = state.wizard
    if wizard is None:
        return state, ()
    wizard = replace(wizard, step=step, modal_deferred=False)
    logger.debug("Wizard entering step %d (%s)", int(step), step.name)
    state = replace(state, wizard=wizard, modal=step_modal(wizard))
    if step is WizardStep.PREREQUISITES:
        return state, (CheckPrerequisites(),)
    return state, ()


def advance(state: AppState) -> tuple[AppState, tuple[Task, ...]]:
    wizard = state.wizard
    if wizard is None or wizard.step is WizardStep.COMPLETION:
        return state, ()
    return enter_step(state, WizardStep(wizard.step + 1))


def go_back(state: AppState) -> tuple[AppState, tuple[Task, ...]]:
    wizard = state.wizard
    if wizard is None:
        return state, ()
    return enter_step(state, WizardStep(max(int(WizardStep.PREREQUISITES), wizard.step - 1)))


def cycle_default(state: AppState, field: str) -> AppState:
    wizard = state.wizard
    if wizard is None or wizard.step is not WizardStep.DEFAULTS:
        return state
    answers = wizard.answers
    if field == "memory":
        answers = replace(answers, memory=_next_preset(MEMORY_PRESETS, answers.memory))
    elif field == "cpus":
        answers = replace(answers, cpus=_next_preset(CPU_PRESETS, answers.cpus))
    else:
        return state
    wizard = replace(wizard, answers=answers)
    return replace(state, wizard=wizard, modal=step_modal(wizard))


def _next_preset(presets: tuple[str, ...], current: str) -> str:
    if current in presets:
        return presets[(presets.index(current) + 1) % len(presets)]
    return presets[0]


def reveal_tick(state: AppState) -> tuple[AppState, tuple[Task, ...]]:
    """Advance the reveal animation by one column; stops once complete."""
    wizard = state.wizard
    if wizard is None or wizard.step is not WizardStep.ANIMATION or wizard.animation_complete:
        return state, ()
    column = wizard.animation_column + 1
    complete = column >= REVEAL_COLUMNS
    state = replace(state, wizard=replace(wizard, animation_column=column, animation_complete=complete))
    if complete:
        return state, ()
    return state, (Timer(WIZARD_REVEAL_INTERVAL_S, WizardAnimationTick()),)


def prerequisites_checked(
    state: AppState, results: tuple[PrerequisiteResult, ...], error: str | None
) -> AppState:
    """Replace the checking placeholder, if it is still the active modal."""
    wizard = state.wizard
    if wizard is None or wizard.step is not WizardStep.PREREQUISITES:
        return state
    if state.modal is None or state.modal.tag != PREREQUISITES_TAG:
        return state
    return replace(state, modal=prerequisites_result_modal(results, error))
