from __future__ import annotations

import json

import pytest

from rehabmonitor.api import RehabService
from rehabmonitor.ledger import MemoryGateway
from rehabmonitor.records import RecordIndex


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def envelope(**fields) -> bytes:
    """Raw record payload the way the browser client writes it (no id)."""
    body = {
        "exerciseType": "Squat",
        "duration": 20,
        "intensity": "medium",
        "encryptedMetrics": "FHE-e30=",
        "timestamp": 1000,
        "therapistNotes": "",
        "progressScore": 40,
    }
    body.update(fields)
    return json.dumps({k: v for k, v in body.items() if v is not ...}).encode("utf-8")


@pytest.fixture
def gateway() -> MemoryGateway:
    return MemoryGateway()


@pytest.fixture
def index(gateway: MemoryGateway) -> RecordIndex:
    return RecordIndex(gateway)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(gateway: MemoryGateway, clock: FakeClock) -> RehabService:
    return RehabService(gateway, scorer=lambda: 55, clock=clock)
