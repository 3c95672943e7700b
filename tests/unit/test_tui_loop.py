"""Unit tests for the EventLoop message pump."""

from __future__ import annotations

import pytest

from maestro.config.store import ConfigStore
from maestro.container import SessionSummary
from maestro.cli.tui.controller import init
from maestro.cli.tui.loop import EventLoop
from maestro.cli.tui.messages import KeyPress, RefreshTick, SessionsLoaded
from maestro.cli.tui.state import Result, ResultKind, SettingsSnapshot
from maestro.cli.tui.tasks import LoadSessions, Services, Timer


class StaticRegistry:
    def __init__(self, sessions) -> None:
        self.sessions = list(sessions)

    async def list(self, prefix: str):
        return self.sessions

    async def describe(self, name: str):
        raise NotImplementedError

    async def stop(self, name: str) -> None:
        pass

    async def restart(self, name: str) -> None:
        pass

    async def delete(self, name: str) -> None:
        pass

    async def refresh_tokens(self, name: str) -> None:
        pass


class NoChecks:
    async def check_all(self):
        return ()


def services(tmp_path, sessions=()) -> Services:
    return Services(registry=StaticRegistry(sessions), store=ConfigStore(tmp_path / "config.yml"), checker=NoChecks())


@pytest.mark.unit
@pytest.mark.asyncio
async def test_quit_message_ends_loop(tmp_path) -> None:
    state, _ = init(SettingsSnapshot())
    loop = EventLoop(state, services(tmp_path))
    loop.post(KeyPress("q"))

    result = await loop.run()

    assert result == Result(ResultKind.QUIT)
    assert loop.handled == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_messages_are_handled_in_order(tmp_path) -> None:
    state, _ = init(SettingsSnapshot())
    loop = EventLoop(state, services(tmp_path))
    loop.post(SessionsLoaded(1, (SessionSummary(name="maestro-a", short_name="a", status="running"),)))
    loop.post(KeyPress("enter"))
    loop.post(KeyPress("q"))

    result = await loop.run()

    assert result == Result(ResultKind.CONNECT, name="maestro-a")
    assert loop.handled == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_connect_after_background_load(tmp_path) -> None:
    sessions = [
        SessionSummary(name="maestro-a", short_name="a", status="running"),
        SessionSummary(name="maestro-b", short_name="b", status="running"),
    ]
    state, _ = init(SettingsSnapshot())
    seen = []

    def on_change(current) -> None:
        seen.append(current)
        if current.initial_load_done and current.session.cursor == 0:
            loop.post(KeyPress("j"))
        elif current.session.cursor == 1 and current.result is None:
            loop.post(KeyPress("enter"))

    loop = EventLoop(state, services(tmp_path, sessions), on_change=on_change)

    result = await loop.run([LoadSessions(1), Timer(30.0, RefreshTick())])

    assert result == Result(ResultKind.CONNECT, name="maestro-b")
    assert loop.scheduler.outstanding == 0
