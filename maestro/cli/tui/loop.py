"""Event loop: the single consumer of messages and sole writer of AppState."""

from __future__ import annotations

import asyncio
from typing import Callable, Iterable, Optional

from maestro.logging_config import get_logger
from maestro.cli.tui.controller import handle
from maestro.cli.tui.messages import Message
from maestro.cli.tui.state import AppState, Result
from maestro.cli.tui.tasks import Services, Task, TaskScheduler

logger = get_logger(__name__)


class EventLoop:
    """FIFO message pump around the pure controller.

    Messages are handled strictly one at a time in arrival order. Task
    completions, key presses and resizes all arrive through `post()`.
    """

    def __init__(
        self,
        state: AppState,
        services: Services,
        *,
        on_change: Optional[Callable[[AppState], None]] = None,
    ) -> None:
        self.state = state
        self.queue: asyncio.Queue[Message] = asyncio.Queue()
        self.scheduler = TaskScheduler(self.post, services)
        self._on_change = on_change
        self.handled = 0

    def post(self, message: Message) -> None:
        self.queue.put_nowait(message)

    def dispatch(self, message: Message) -> tuple[Task, ...]:
        """Apply one message and start the tasks it produced."""
        self.state, tasks = handle(self.state, message)
        self.handled += 1
        if self._on_change is not None:
            self._on_change(self.state)
        if self.state.result is not None:
            return ()
        for task in tasks:
            self.scheduler.schedule(task)
        return tasks

    async def run(self, initial_tasks: Iterable[Task] = ()) -> Result | None:
        """Process messages until a Result is set, then cancel outstanding tasks."""
        try:
            for task in initial_tasks:
                self.scheduler.schedule(task)
            if self._on_change is not None:
                self._on_change(self.state)
            while self.state.result is None:
                message = await self.queue.get()
                self.dispatch(message)
        finally:
            await self.scheduler.close()
        logger.info("Event loop stopped after %d messages", self.handled)
        return self.state.result
