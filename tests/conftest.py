from __future__ import annotations

from datetime import datetime, timedelta, timezone

import anyio
import pytest


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeGit:
    """Stand-in for :func:`repocontext_tool.git_repo.run_git` that records calls."""

    def __init__(self, output: str = "", error: Exception | None = None, delay: float = 0.0) -> None:
        self.output = output
        self.error = error
        self.delay = delay
        self.calls: list[tuple[tuple[str, ...], str, float]] = []
        self.started = anyio.Event()

    async def __call__(self, *args: str, cwd, timeout: float) -> str:
        self.calls.append((args, str(cwd), timeout))
        self.started.set()
        if self.delay:
            await anyio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.output


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def fake_git():
    return FakeGit


@pytest.fixture
def clock():
    return FakeClock()
