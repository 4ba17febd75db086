"""Thread pool helpers.

Used to run the validators of one benchmark concurrently and to post-process
independent benchmarks side by side.
"""

from __future__ import annotations

from concurrent.futures import (
    ThreadPoolExecutor,
    FIRST_COMPLETED,
    wait,
)
import logging
import time
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
    TypeVar,
)


T = TypeVar("T")
R = TypeVar("R")


@dataclass
class ParallelExecutor:
    """Thread pool that gathers results in submission order."""

    max_workers: Optional[int] = None
    logger: Optional[logging.Logger] = None
    cancel_on_error: bool = True

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = logging.getLogger("corecheck.parallel")
        self._pool = ThreadPoolExecutor(max_workers=self.max_workers)

    def submit(self, fn: Callable[..., R], *args: Any, **kwargs: Any):
        return self._pool.submit(fn, *args, **kwargs)

    def shutdown(
        self, wait_for_completion: bool = True, cancel_futures: bool = False
    ) -> None:
        self._pool.shutdown(wait=wait_for_completion, cancel_futures=cancel_futures)

    def run(
        self,
        fn: Callable[[T], R],
        items: Iterable[T],
        timeout: Optional[float] = None,
        *,
        return_exceptions: bool = False,
    ) -> List[R]:
        """Run fn over items and gather the results in submission order."""
        futures = [self.submit(fn, item) for item in items]
        return _gather_results(
            futures,
            timeout=timeout,
            logger=self.logger,
            cancel_on_error=self.cancel_on_error,
            return_exceptions=return_exceptions,
        )

    def __enter__(self) -> "ParallelExecutor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()


def parallel_map(
    fn: Callable[[T], R],
    items: Sequence[T],
    *,
    max_workers: Optional[int] = None,
    timeout: Optional[float] = None,
    return_exceptions: bool = False,
) -> List[R]:
    """Convenience parallel map over a sequence.

    Example:
        reports = parallel_map(process_pair, pairs, max_workers=8)
    """
    with ParallelExecutor(max_workers=max_workers) as ex:
        return ex.run(fn, items, timeout=timeout, return_exceptions=return_exceptions)


def _gather_results(
    futures: Sequence,
    *,
    timeout: Optional[float],
    logger: Optional[logging.Logger],
    cancel_on_error: bool,
    return_exceptions: bool,
) -> List:
    """Collect results in submission order.

    - On exception: optionally cancels remaining futures and re-raises
      (or returns the exception in place of the result)
    - On timeout: cancels remaining futures and raises TimeoutError
    """
    results: Dict[int, Any] = {}
    pending: Dict[Any, int] = {f: idx for idx, f in enumerate(futures)}
    deadline = None if timeout is None else time.time() + timeout

    def _remaining_time() -> Optional[float]:
        if deadline is None:
            return None
        return max(0.0, deadline - time.time())

    def _cancel_all() -> None:
        for rem in pending:
            if not rem.done():
                rem.cancel()

    while pending:
        done, _ = wait(pending.keys(), timeout=_remaining_time(),
                       return_when=FIRST_COMPLETED)
        if not done:
            _cancel_all()
            raise TimeoutError("parallel execution timed out")

        for fut in done:
            idx = pending.pop(fut)
            try:
                results[idx] = fut.result(timeout=0)
            except Exception as exc:
                if logger:
                    logger.error("task.error type=%s msg=%s", type(exc).__name__, exc)
                if return_exceptions:
                    results[idx] = exc
                    continue
                if cancel_on_error:
                    _cancel_all()
                raise

    return [results[i] for i in sorted(results)]
