"""Error taxonomy for the session controller.

Tasks never let these escape into the event loop: each failure is carried
by the task's completion message and classified when it is handled.
"""

from __future__ import annotations


class MaestroError(Exception):
    """Base error for Maestro."""


class TransientTaskError(MaestroError):
    """A registry or prerequisite call failed; the UI recovers and may retry."""


class RegistryError(TransientTaskError):
    """Container runtime command failed. The message is shown verbatim."""

    def __init__(self, message: str, *, command: tuple[str, ...] = (), returncode: int | None = None) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class FatalConfigError(MaestroError):
    """Configuration could not be persisted; the user must acknowledge it."""
