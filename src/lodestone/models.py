from dataclasses import dataclass
from typing import Protocol
from collections.abc import Callable


# Status recorded when no HTTP response could be obtained.
TRANSPORT_FAILURE = 0


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


@dataclass(frozen=True)
class Options:
    url: str
    requests: int = 1
    clients: int = 1

    def __post_init__(self) -> None:
        if self.requests < 0:
            raise ValueError(f"requests must be >= 0, got {self.requests}")
        if self.clients < 1:
            raise ValueError(f"clients must be >= 1, got {self.clients}")


@dataclass(frozen=True)
class RequestOutcome:
    url: str
    status_code: int
    elapsed: float  # seconds

    @property
    def success(self) -> bool:
        return is_success(self.status_code)


@dataclass(frozen=True)
class Summary:
    successes: int = 0
    failures: int = 0
    min_latency: float = 0.0
    mean_latency: float = 0.0
    max_latency: float = 0.0

    @property
    def total(self) -> int:
        return self.successes + self.failures

    @property
    def error_rate(self) -> float:
        return self.failures / self.total if self.total else 0.0


# url -> Summary
StatisticsTable = dict[str, Summary]

# Invoked by the collector once per received outcome
ResultCallback = Callable[[RequestOutcome], None]


class Executor(Protocol):
    async def execute(self, url: str) -> RequestOutcome: ...
