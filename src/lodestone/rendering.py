from .models import StatisticsTable
from .utils import to_millis


def render_statistics(stats: StatisticsTable) -> str:
    if not stats:
        return ""

    blocks = []
    for url, summary in stats.items():
        blocks.append(
            f"{url}, successes: {summary.successes}, failures: {summary.failures}\n"
            f"\tminTime: {to_millis(summary.min_latency)} ms\n"
            f"\tmeanTime: {to_millis(summary.mean_latency)} ms\n"
            f"\tmaxTime: {to_millis(summary.max_latency)} ms"
        )
    return "\n".join(blocks)
