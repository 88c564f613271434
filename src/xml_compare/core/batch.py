from __future__ import annotations

import asyncio
import logging
import os
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Awaitable, Callable, Iterable, TypeVar

from xml_compare.core.comparison import compare_xml
from xml_compare.core.config import CompareSettings
from xml_compare.core.errors import XmlCompareError
from xml_compare.core.models import BatchItemOutcome, BatchResult, ComparisonRequest, ComparisonResult, ErrorDescriptor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BatchOrchestrator:
    """Runs comparisons on a bounded worker pool and reassembles results by index.

    A fixed number of asyncio workers pull ``(index, item)`` pairs from one
    shared iterator, so a batch of any size costs a bounded number of tasks and
    in-flight pool submissions. Each outcome is written to the slot of its
    original index, which keeps results in submission order whatever order the
    items finish in.
    """

    def __init__(
        self,
        *,
        settings: CompareSettings | None = None,
        executor: Executor | None = None,
    ) -> None:
        self._settings = settings or CompareSettings()
        self._max_workers = max(1, int(self._settings.max_workers or os.cpu_count() or 1))
        self._executor = executor
        self._owns_executor = executor is None

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def _get_executor(self) -> Executor:
        if self._executor is None:
            kind = (self._settings.executor or "process").strip().lower()
            if kind == "thread":
                self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="xml-compare")
            else:
                self._executor = ProcessPoolExecutor(max_workers=self._max_workers)
            logger.info("Started %s pool with %d workers", kind, self._max_workers)
        return self._executor

    async def compare(self, request: ComparisonRequest) -> ComparisonResult:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._get_executor(), compare_xml, request)

    async def run(self, requests: Iterable[ComparisonRequest]) -> BatchResult:
        # Twice the pool size keeps every worker fed without queueing the whole batch.
        return await self.run_items(requests, self.compare, concurrency=self._max_workers * 2)

    async def run_items(
        self,
        items: Iterable[T],
        handler: Callable[[T], Awaitable[ComparisonResult]],
        *,
        concurrency: int,
    ) -> BatchResult:
        pending = list(items)
        total = len(pending)
        outcomes: list[BatchItemOutcome | None] = [None] * total
        if not pending:
            return BatchResult.from_outcomes([])

        source = iter(enumerate(pending))
        done = 0
        progress_every = max(1, int(self._settings.progress_every))

        async def worker() -> None:
            nonlocal done
            for index, item in source:
                outcomes[index] = await self._run_one(index, item, handler)
                done += 1
                if done % progress_every == 0:
                    logger.info("Batch progress: %d/%d", done, total)

        workers = max(1, min(int(concurrency), total))
        await asyncio.gather(*(worker() for _ in range(workers)))

        result = BatchResult.from_outcomes([o for o in outcomes if o is not None])
        logger.info(
            "Batch finished: total=%d ok=%d failed=%d",
            result.total_comparisons,
            result.successful_comparisons,
            result.failed_comparisons,
        )
        return result

    @staticmethod
    async def _run_one(
        index: int,
        item: T,
        handler: Callable[[T], Awaitable[ComparisonResult]],
    ) -> BatchItemOutcome:
        try:
            result = await handler(item)
        except asyncio.CancelledError:
            raise
        except XmlCompareError as e:
            logger.debug("Batch item %d failed: %s", index, e)
            return BatchItemOutcome(index=index, error=ErrorDescriptor(index=index, error_type=e.error_type, message=e.message))
        except Exception as e:
            logger.exception("Batch item %d failed unexpectedly", index)
            return BatchItemOutcome(index=index, error=ErrorDescriptor(index=index, error_type="InternalError", message=str(e)))
        return BatchItemOutcome(index=index, result=result)

    def close(self) -> None:
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
