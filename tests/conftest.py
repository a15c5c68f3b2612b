"""Pytest configuration for thing_api tests."""
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add src/ to path for src-layout imports
_SRC = Path(__file__).parent.parent / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest
from fastapi.testclient import TestClient

from thing_api.main import create_app
from thing_api.settings import ThingAPISettings

TEST_TOKEN = 'test-shared-secret'
AUTH = {'Authorization': TEST_TOKEN}

START = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class ScriptedRandom:
    """Random source whose transition rolls are scripted.

    ``randrange`` fails loudly when the script is exhausted, so a test
    notices any roll it did not expect.
    """

    def __init__(self, rolls=()):
        self.rolls = list(rolls)
        self.calls = 0
        self._bits = random.Random(0)

    def push(self, *rolls: int) -> None:
        self.rolls.extend(rolls)

    def randrange(self, stop: int) -> int:
        self.calls += 1
        assert self.rolls, 'unexpected transition roll'
        roll = self.rolls.pop(0)
        assert 0 <= roll < stop
        return roll

    def getrandbits(self, k: int) -> int:
        return self._bits.getrandbits(k)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return ScriptedRandom()


@pytest.fixture
def settings():
    """Settings with a generous rate limit; rate-limit tests override it."""
    return ThingAPISettings(api_token=TEST_TOKEN, rate_limit_max_requests=1000)


@pytest.fixture
def app(settings, clock, rng):
    return create_app(settings, clock=clock, rng=rng)


@pytest.fixture
def client(app):
    return TestClient(app)
