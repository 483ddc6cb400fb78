"""Fixed-size worker pool for matching and reconciliation units.

A unit of work is a plain function call on immutable inputs. The caller
submits one or more units and blocks until all of them finished; results
come back in submission order and are merged by the caller. There is no
pipelining between phases: a phase's results are complete before the next
phase is submitted.

Waiting is bounded when a timeout is configured. An expired wait raises
MatchingTimeout, a cancelled future or a KeyboardInterrupt during the wait
raises MatchingInterrupted. Either way no partial results are returned and
pending units are cancelled.

Examples
--------
>>> with WorkerPool(threads=2) as pool:
...     squares = pool.run_all(lambda xs: [x * x for x in xs], [[1, 2], [3]])
>>> squares
[[1, 4], [9]]
"""

import logging
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Any, Callable, List, Optional, Sequence

from .constants import DEFAULT_THREADS
from .exceptions import ConfigurationError, MatchingInterrupted, MatchingTimeout

logger = logging.getLogger(__name__)


class WorkerPool:
    """Thread pool with blocking, optionally bounded, result collection.

    Parameters
    ----------
    threads : int
        Number of worker threads (default: 2)
    timeout : float, optional
        Seconds to wait for one batch of units; None waits forever
    """

    def __init__(self, threads: int = DEFAULT_THREADS, timeout: Optional[float] = None):
        if threads < 1:
            raise ConfigurationError(f"threads must be at least 1, got {threads}")
        if timeout is not None and timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {timeout}")

        self.threads = threads
        self.timeout = timeout
        self._executor: Optional[ThreadPoolExecutor] = None

    def __enter__(self) -> "WorkerPool":
        logger.debug(f"Starting worker pool with {self.threads} threads")
        self._executor = ThreadPoolExecutor(
            max_workers=self.threads, thread_name_prefix="peptidescan"
        )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=exc_type is None)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the pool; pending units are cancelled when not waiting."""
        if self._executor is None:
            return
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
        self._executor = None
        logger.debug("Worker pool shut down")

    @property
    def running(self) -> bool:
        return self._executor is not None

    def run(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run one unit of work and wait for its result."""
        return self._collect([self._submit(fn, *args)])[0]

    def run_all(self, fn: Callable[[Any], Any], shards: Sequence[Any]) -> List[Any]:
        """Run ``fn`` once per shard; results are returned in shard order."""
        futures = [self._submit(fn, shard) for shard in shards]
        return self._collect(futures)

    def _submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        if self._executor is None:
            raise RuntimeError("WorkerPool must be used as a context manager")
        return self._executor.submit(fn, *args)

    def _collect(self, futures: List[Future]) -> List[Any]:
        try:
            _, not_done = wait_futures(futures, timeout=self.timeout)
        except KeyboardInterrupt as e:
            self._cancel(futures)
            raise MatchingInterrupted("Interrupted while waiting for workers") from e

        if not_done:
            self._cancel(futures)
            raise MatchingTimeout(
                f"{len(not_done)} of {len(futures)} work units did not finish "
                f"within {self.timeout} seconds"
            )

        try:
            return [future.result() for future in futures]
        except CancelledError as e:
            raise MatchingInterrupted("A work unit was cancelled") from e

    @staticmethod
    def _cancel(futures: List[Future]) -> None:
        for future in futures:
            future.cancel()
