"""Colors, glyphs and the title banner for the TUI.

The palette is the Ocean Tide set: purple haze through cyan to sunset gold,
interpolated horizontally across the banner.
"""

from __future__ import annotations

from rich.style import Style

from maestro.cli.tui.state import ToastLevel

PURPLE_HAZE = "#703898"
BLUE_CYAN = "#0096b4"
OCEAN_TIDE = "#00bcd4"
OCEAN_SURGE = "#4dd0e1"
SUNSET_GLOW = "#fcc451"
CORAL = "#ff6b6b"
MOSS = "#7bc96f"
STATUS_FG = "#727578"
TEXT = "#d0d0d0"
MUTED = "#6c6c6c"

GRADIENT_STOPS: tuple[tuple[float, tuple[int, int, int]], ...] = (
    (0.0, (112, 56, 152)),
    (0.33, (0, 150, 180)),
    (0.66, (0, 188, 212)),
    (1.0, (252, 196, 81)),
)

BANNER_LINES = (
    "░  ░░░░  ░░░      ░░░        ░░░      ░░░        ░░       ░░░░      ░░",
    "▒   ▒▒   ▒▒  ▒▒▒▒  ▒▒  ▒▒▒▒▒▒▒▒  ▒▒▒▒▒▒▒▒▒▒▒  ▒▒▒▒▒  ▒▒▒▒  ▒▒  ▒▒▒▒  ▒",
    "▓        ▓▓  ▓▓▓▓  ▓▓      ▓▓▓▓▓      ▓▓▓▓▓▓  ▓▓▓▓▓       ▓▓▓  ▓▓▓▓  ▓",
    "█  █  █  ██        ██  ██████████████  █████  █████  ███  ███  ████  █",
    "█  ████  ██  ████  ██        ███      ██████  █████  ████  ███      ██",
)
BANNER_WIDTH = max(len(line) for line in BANNER_LINES)

SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
PULSE_FRAMES = ("●", "◉", "○", "◉")

SELECTED_ROW = Style(color="black", bgcolor=OCEAN_TIDE, bold=True)
BUTTON = Style(color=TEXT, bgcolor="#303030")
BUTTON_SELECTED = Style(color="black", bgcolor=OCEAN_TIDE, bold=True)
FIELD_FOCUSED = Style(color=OCEAN_SURGE, bold=True)
FIELD_LABEL = Style(color=TEXT)
PLACEHOLDER = Style(color=MUTED, italic=True)
ERROR_TEXT = Style(color=CORAL, bold=True)
HINT = Style(color=STATUS_FG)

TOAST_STYLES = {
    ToastLevel.INFO: Style(color="black", bgcolor=OCEAN_SURGE),
    ToastLevel.SUCCESS: Style(color="black", bgcolor=MOSS),
    ToastLevel.WARNING: Style(color="black", bgcolor=SUNSET_GLOW),
    ToastLevel.ERROR: Style(color="white", bgcolor=CORAL, bold=True),
}

TOAST_TITLES = {
    ToastLevel.INFO: "Info",
    ToastLevel.SUCCESS: "Success",
    ToastLevel.WARNING: "Warning",
    ToastLevel.ERROR: "Error",
}


def container_status_style(status: str) -> Style:
    status = status.lower()
    if status == "running":
        return Style(color=MOSS)
    if status in ("exited", "dead"):
        return Style(color=CORAL)
    if status in ("paused", "restarting", "created"):
        return Style(color=SUNSET_GLOW)
    return Style(color=STATUS_FG)


def _interpolate(c1: tuple[int, int, int], c2: tuple[int, int, int], t: float) -> str:
    r = round(c1[0] + (c2[0] - c1[0]) * t)
    g = round(c1[1] + (c2[1] - c1[1]) * t)
    b = round(c1[2] + (c2[2] - c1[2]) * t)
    return f"#{r:02x}{g:02x}{b:02x}"


def gradient_color(position: float) -> str:
    """Color at `position` (0..1) along the banner gradient."""
    position = max(0.0, min(1.0, position))
    for (p1, c1), (p2, c2) in zip(GRADIENT_STOPS, GRADIENT_STOPS[1:]):
        if p1 <= position <= p2:
            span = p2 - p1
            return _interpolate(c1, c2, (position - p1) / span if span else 0.0)
    return _interpolate(GRADIENT_STOPS[-1][1], GRADIENT_STOPS[-1][1], 0.0)


def shifted_position(position: float, frame: int, step: float = 0.05) -> float:
    """Slide the gradient with the animation frame, bouncing at both ends."""
    phase = (position + frame * step) % 2.0
    return 2.0 - phase if phase > 1.0 else phase
