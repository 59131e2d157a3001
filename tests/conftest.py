import asyncio
import itertools
import random

import pytest

from lodestone.models import RequestOutcome


class ScriptedExecutor:
    """Returns (status, elapsed) pairs from a script, one per call."""

    def __init__(self, script):
        self._script = iter(script)
        self.produced: list[RequestOutcome] = []

    async def execute(self, url: str) -> RequestOutcome:
        status, elapsed = next(self._script)
        await asyncio.sleep(0)
        outcome = RequestOutcome(url, status, elapsed)
        self.produced.append(outcome)
        return outcome


class RandomDelayExecutor:
    """Sleeps a random short time and tags every outcome with a unique elapsed value."""

    def __init__(self, max_delay: float = 0.002, seed: int = 7):
        self._rng = random.Random(seed)
        self._counter = itertools.count(1)
        self.max_delay = max_delay
        self.produced: list[RequestOutcome] = []

    async def execute(self, url: str) -> RequestOutcome:
        n = next(self._counter)
        await asyncio.sleep(self._rng.uniform(0, self.max_delay))
        status = 200 if n % 3 else 503
        outcome = RequestOutcome(url, status, n / 1_000_000)
        self.produced.append(outcome)
        return outcome


@pytest.fixture
def scripted_executor():
    return ScriptedExecutor


@pytest.fixture
def random_delay_executor():
    return RandomDelayExecutor()
