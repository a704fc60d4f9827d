"""Bounded background writer for audit records. Overflow falls back to a synchronous write."""

import asyncio
import logging
from typing import Optional

from gatekeeper.governance.audit_logger import AuditLogger
from gatekeeper.governance.audit_models import AuditRecord
from gatekeeper.observability.metrics import AUDIT_WRITE_FAILURES, MetricsCollector

DIAGNOSTICS_LOGGER_NAME = "gatekeeper.audit.diagnostics"


class AuditQueue:
    """
    Takes audit appends off the response path. One worker drains a bounded
    asyncio.Queue through AuditLogger. When the queue is full the record is
    written inline instead, so nothing is dropped and nothing waits forever
    for queue space. Worker write failures land on the diagnostics logger
    and in the audit_write_failures metric.
    """

    def __init__(
        self,
        audit_logger: AuditLogger,
        *,
        max_queued: int = 1000,
        diagnostics: Optional[logging.Logger] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self._audit_logger = audit_logger
        self._metrics = metrics
        self._queue: asyncio.Queue[AuditRecord] = asyncio.Queue(maxsize=max_queued)
        self._worker: asyncio.Task[None] | None = None
        self._diagnostics = diagnostics or logging.getLogger(DIAGNOSTICS_LOGGER_NAME)
        self._failures = 0
        self._overflows = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def failures(self) -> int:
        return self._failures

    @property
    def overflows(self) -> int:
        return self._overflows

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run_worker())

    async def start(self) -> None:
        self._ensure_worker()

    async def _run_worker(self) -> None:
        while True:
            record = await self._queue.get()
            try:
                await self._audit_logger.append(record)
            except Exception as e:
                self._record_failure(record, e)
            finally:
                self._queue.task_done()

    def _record_failure(self, record: AuditRecord, error: BaseException) -> None:
        self._failures += 1
        if self._metrics is not None:
            self._metrics.increment(AUDIT_WRITE_FAILURES)
        self._diagnostics.error(
            "audit_append_failed",
            extra={
                "audit_action": record.action,
                "audit_result": record.result.value,
                "error": str(error),
            },
        )

    async def submit(self, record: AuditRecord) -> None:
        """
        Enqueue record for the worker. If the queue is full, write it now;
        that write may raise AuditWriteError, which the caller handles.
        """
        self._ensure_worker()
        try:
            self._queue.put_nowait(record)
        except asyncio.QueueFull:
            self._overflows += 1
            self._diagnostics.warning(
                "audit_queue_overflow",
                extra={"audit_action": record.action, "queue_size": self._queue.maxsize},
            )
            await self._audit_logger.append(record)

    async def drain(self) -> None:
        """Wait until every queued record has been written (or has failed)."""
        if self._queue.empty():
            return
        self._ensure_worker()
        await self._queue.join()

    async def close(self) -> None:
        """Flush then stop the worker. Used on application shutdown."""
        await self.drain()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
