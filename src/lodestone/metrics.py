import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from .models import RequestOutcome, StatisticsTable, Summary

logger = logging.getLogger(__name__)


@dataclass
class _Accumulator:
    failures: int = 0
    seen_success: bool = False
    min_latency: float = 0.0
    max_latency: float = 0.0
    latencies: list[float] = field(default_factory=list)

    def add(self, outcome: RequestOutcome) -> None:
        if not outcome.success:
            self.failures += 1
            return

        self.latencies.append(outcome.elapsed)
        # A zero-duration success is a valid minimum, so track first-seen explicitly.
        if not self.seen_success:
            self.min_latency = self.max_latency = outcome.elapsed
            self.seen_success = True
            return
        self.min_latency = min(self.min_latency, outcome.elapsed)
        self.max_latency = max(self.max_latency, outcome.elapsed)

    def summary(self) -> Summary:
        successes = len(self.latencies)
        mean = 0.0
        if successes:
            # fsum is exactly rounded, so the mean does not depend on arrival order.
            mean = math.fsum(self.latencies) / successes
            mean = min(max(mean, self.min_latency), self.max_latency)
        return Summary(
            successes=successes,
            failures=self.failures,
            min_latency=self.min_latency,
            mean_latency=mean,
            max_latency=self.max_latency,
        )


def calculate_statistics(outcomes: Iterable[RequestOutcome]) -> StatisticsTable:
    """Group outcomes by url and summarise each group in a single pass.

    Latency figures cover successful outcomes only; a url with no successes
    reports zero for all three. The result does not depend on the order of
    ``outcomes``.
    """
    groups: dict[str, _Accumulator] = {}
    for outcome in outcomes:
        acc = groups.get(outcome.url)
        if acc is None:
            acc = groups[outcome.url] = _Accumulator()
        acc.add(outcome)

    stats = {url: acc.summary() for url, acc in groups.items()}
    for url, summary in stats.items():
        logger.debug(
            f"Stats computed for {url}: success={summary.successes}, "
            f"errors={summary.failures}, mean={summary.mean_latency:.3f}s"
        )
    return stats
