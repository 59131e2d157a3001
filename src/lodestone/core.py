import asyncio
import aiohttp
import logging

from .models import (
    TRANSPORT_FAILURE,
    Executor,
    Options,
    RequestOutcome,
    ResultCallback,
    StatisticsTable,
)
from .utils import now
from .metrics import calculate_statistics

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn, MofNCompleteColumn


logger = logging.getLogger(__name__)

# Marks the end of a URLSource stream.
_EXHAUSTED = object()


# ────────────────────────────────
# Request Executor
# ────────────────────────────────


class RequestExecutor:
    """Performs one GET per call through a caller-owned session."""

    def __init__(self, session: aiohttp.ClientSession) -> None:
        self.session = session

    async def execute(self, url: str) -> RequestOutcome:
        start = now()
        try:
            async with self.session.get(url) as resp:
                async for _ in resp.content.iter_chunked(65536):
                    pass
                status = resp.status
        except aiohttp.ClientConnectorError as e:
            logger.warning(f"Connection error for {url}: {e}")
            return RequestOutcome(url, TRANSPORT_FAILURE, now() - start)
        except asyncio.TimeoutError:
            logger.warning(f"Timeout for {url}")
            return RequestOutcome(url, TRANSPORT_FAILURE, now() - start)
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning(f"Request to {url!r} failed: {e!r}")
            return RequestOutcome(url, TRANSPORT_FAILURE, now() - start)
        except Exception as e:
            logger.error(f"Unexpected error fetching {url!r}: {e!r}")
            return RequestOutcome(url, TRANSPORT_FAILURE, now() - start)

        elapsed = now() - start
        logger.debug(f"Fetched {url}: status={status}, elapsed={elapsed:.3f}s")
        return RequestOutcome(url, status, elapsed)


# ────────────────────────────────
# Work Source
# ────────────────────────────────


class URLSource:
    """Finite stream of ``count`` copies of ``url`` shared by many consumers.

    A background task produces the tokens into a queue and then closes the
    stream. Every token goes to exactly one consumer; once the stream is
    closed and drained, ``get`` returns None for every consumer.
    """

    def __init__(self, url: str, count: int, maxsize: int = 0) -> None:
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        self.url = url
        self.count = count
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("URLSource can only be started once")
        self._task = asyncio.create_task(self._produce())
        logger.debug(f"URL source started: {self.count} x {self.url}")

    async def _produce(self) -> None:
        for _ in range(self.count):
            await self._queue.put(self.url)
        await self._queue.put(_EXHAUSTED)

    async def get(self) -> str | None:
        token = await self._queue.get()
        if token is _EXHAUSTED:
            # Leave the marker for the next consumer; the slot we just freed is enough.
            self._queue.put_nowait(_EXHAUSTED)
            return None
        return token

    async def wait_closed(self) -> None:
        if self._task is not None:
            await self._task

    async def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            logger.debug("URL source producer cancelled")

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        token = await self.get()
        if token is None:
            raise StopAsyncIteration
        return token


# ────────────────────────────────
# Collector
# ────────────────────────────────


async def collect(
    sink: asyncio.Queue,
    expected: int,
    on_result: ResultCallback | None = None,
) -> list[RequestOutcome]:
    """Block until exactly ``expected`` outcomes have been pulled from ``sink``."""
    results: list[RequestOutcome] = []
    for _ in range(expected):
        outcome = await sink.get()
        results.append(outcome)
        if on_result is not None:
            on_result(outcome)
    return results


# ────────────────────────────────
# Worker Pool
# ────────────────────────────────


class LoadTester:
    def __init__(
        self,
        options: Options,
        executor: Executor | None = None,
        use_progress_bar: bool = False,
    ) -> None:
        self.options = options
        self.executor = executor
        self.use_progress_bar = use_progress_bar

        logger.info(
            f"Initialized load test: url={options.url!r}, "
            f"requests={options.requests}, clients={options.clients}"
        )

    async def _worker(
        self,
        worker_id: int,
        source: URLSource,
        sink: asyncio.Queue,
        executor: Executor,
    ) -> None:
        async for url in source:
            outcome = await executor.execute(url)
            logger.debug(
                f"[W{worker_id}] {url} status={outcome.status_code} ({outcome.elapsed:.3f}s)"
            )
            await sink.put(outcome)
        logger.debug(f"Worker {worker_id} stopped")

    async def perform(self, executor: Executor) -> list[RequestOutcome]:
        """Dispatch every request across the worker pool and collect the outcomes."""
        requests, clients = self.options.requests, self.options.clients

        source = URLSource(self.options.url, requests, maxsize=clients)
        sink: asyncio.Queue = asyncio.Queue(maxsize=clients)
        await source.start()

        progress = None
        on_result = None
        tasks: list[asyncio.Task] = []
        try:
            if self.use_progress_bar:
                # stderr, so the report printed on stdout stays clean
                progress = Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    MofNCompleteColumn(),
                    TimeElapsedColumn(),
                    console=Console(stderr=True),
                )
                progress.start()
                task_id = progress.add_task("[cyan]Requesting...", total=requests)
                on_result = lambda _outcome: progress.advance(task_id)

            logger.info(f"Starting {requests} requests with {clients} workers")
            tasks.append(asyncio.create_task(collect(sink, requests, on_result)))
            tasks += [
                asyncio.create_task(self._worker(i, source, sink, executor))
                for i in range(clients)
            ]
            results, *_ = await asyncio.gather(*tasks)
            await source.wait_closed()
        except BaseException:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await source.stop()
            raise
        finally:
            if progress:
                progress.stop()

        logger.info(f"Collected {len(results)} outcomes")
        return results

    async def run(self) -> StatisticsTable:
        if self.executor is not None:
            results = await self.perform(self.executor)
        else:
            connector = aiohttp.TCPConnector(limit=0)
            async with aiohttp.ClientSession(connector=connector) as session:
                results = await self.perform(RequestExecutor(session))

        stats = calculate_statistics(results)
        logger.info(f"Run completed: {len(results)} requests across {len(stats)} url(s)")
        return stats
