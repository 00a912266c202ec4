"""Bounded-concurrency execution of independent async operations."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from pm_pipeline.orchestrator.errors import StageTimeoutError

logger = logging.getLogger(__name__)

Operation = Callable[[], Awaitable[Any]]


def with_timeout(operation: Operation, seconds: Optional[float], name: str = "operation") -> Operation:
    """Wrap an operation so it fails with StageTimeoutError after ``seconds``.

    The executor imposes no timeout of its own. Wrap before submission.
    """
    if seconds is None:
        return operation

    async def timed():
        try:
            return await asyncio.wait_for(operation(), timeout=seconds)
        except asyncio.TimeoutError:
            raise StageTimeoutError(f"{name} exceeded {seconds}s", timeout=seconds) from None

    return timed


class ParallelExecutor:
    """Runs batches of async operations with at most N in flight.

    Results come back in submission order. A failing operation yields its
    exception in its own slot and never cancels its siblings.
    """

    def __init__(self, max_concurrency: int = 4):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self.operations_total = 0
        self.in_flight = 0
        self.peak_in_flight = 0

    async def _run(self, semaphore: asyncio.Semaphore, operation: Operation) -> Any:
        async with semaphore:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                return await operation()
            finally:
                self.in_flight -= 1

    async def execute_parallel(self, operations: list[Operation]) -> list[Any]:
        """Run all operations concurrently, bounded by ``max_concurrency``.

        Returns:
            One entry per operation, either its result or the exception it raised
        """
        if not operations:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)
        self.operations_total += len(operations)

        results = await asyncio.gather(
            *(self._run(semaphore, op) for op in operations),
            return_exceptions=True,
        )

        failures = sum(1 for r in results if isinstance(r, BaseException))
        if failures:
            logger.debug(f"{failures}/{len(operations)} parallel operations failed")
        return list(results)

    async def execute_batched(self, operations: list[Operation], batch_size: int) -> list[Any]:
        """Run operations in sequential batches of ``batch_size``.

        Each batch runs concurrently and must fully settle before the next
        starts. Results are returned in submission order.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        results: list[Any] = []
        for start in range(0, len(operations), batch_size):
            batch = operations[start:start + batch_size]
            results.extend(await self.execute_parallel(batch))
        return results
