"""Shared test fixtures for Blockfill."""

from __future__ import annotations

from pathlib import Path

import pytest


class FakeClock:
    """Clock that advances by a fixed step every time it is read."""

    def __init__(self, step: float = 1.0) -> None:
        self.step = step
        self.now = 0.0
        self.calls = 0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        self.calls += 1
        return value


@pytest.fixture
def fake_clock() -> FakeClock:
    """A clock advancing one second per read."""
    return FakeClock(step=1.0)


@pytest.fixture
def frozen_clock() -> FakeClock:
    """A clock that never advances, so the deadline never fires."""
    return FakeClock(step=0.0)


@pytest.fixture
def tx_csv(tmp_path: Path) -> Path:
    """A transactions file with a header row and capacity-10 friendly sizes."""
    path = tmp_path / "transactions.csv"
    path.write_text(
        "id,size,fee\n"
        "a,4,8\n"
        "b,4,4\n"
        "c,4,20\n"
        "huge,11,1000\n"
        "broken,x,5\n"
        "free,3,0\n"
        "d,2,1\n"
    )
    return path


@pytest.fixture
def malformed_csv(tmp_path: Path) -> Path:
    """A transactions file whose third data record has too many fields."""
    path = tmp_path / "malformed.csv"
    path.write_text(
        "id,size,fee\n"
        "a,4,8\n"
        "b,4,4\n"
        "c,4,20,extra\n"
        "d,1,100\n"
    )
    return path
