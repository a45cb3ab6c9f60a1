from pathlib import Path

import pytest

from chat_pipe.store import FragmentStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> FragmentStore:
    return FragmentStore(ttl=600, clock=clock)


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "config.json"
