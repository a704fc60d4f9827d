"""Wraps every gated operation: gate, invoke, classify, append exactly one audit record."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar

from gatekeeper.governance.audit_logger import AuditLogger
from gatekeeper.governance.audit_models import AuditRecord, AuditResult
from gatekeeper.governance.audit_queue import DIAGNOSTICS_LOGGER_NAME, AuditQueue
from gatekeeper.observability.failure_classifier import FailureClassifier
from gatekeeper.observability.metrics import (
    AUDIT_RESULTS,
    AUDIT_WRITE_FAILURES,
    GATE_OUTCOMES,
    OPERATION_LATENCY_MS,
    MetricsCollector,
)
from gatekeeper.policy.gate import AccessGate, GateDecision, GateOutcome
from gatekeeper.policy.models import RequestContext
from gatekeeper.security.principal import Principal

T = TypeVar("T")


class AuditPipeline:
    """
    Orchestrates one gated operation:

    1. ask the AccessGate; on anything but Allowed record DENIED and raise the gate error;
    2. run the handler; record SUCCESS, or FAILURE/DENIED/ERROR from the raised exception
       (re-raised unchanged afterwards);
    3. append the record once, through the queue when one is configured.

    An append failure is logged on the diagnostics channel and never changes
    what the caller sees. Cancellation while the gate or handler is running
    propagates without a record; once the handler has returned, its record is
    written even if the calling task is cancelled.
    """

    def __init__(
        self,
        gate: AccessGate,
        audit_logger: AuditLogger,
        *,
        queue: Optional[AuditQueue] = None,
        metrics: Optional[MetricsCollector] = None,
        diagnostics: Optional[logging.Logger] = None,
    ) -> None:
        self._gate = gate
        self._audit_logger = audit_logger
        self._queue = queue
        self._metrics = metrics
        self._diagnostics = diagnostics or logging.getLogger(DIAGNOSTICS_LOGGER_NAME)

    async def wrap(
        self,
        operation_id: str,
        principal: Optional[Principal],
        context: RequestContext,
        handler: Callable[[], Awaitable[T]],
    ) -> T:
        start = time.perf_counter()
        try:
            decision = await self._gate.check(operation_id, principal, context)
        except Exception as e:
            # NotFoundError from a 404-first rule, or an unexpected gate fault.
            await self._finish(operation_id, principal, context, start, FailureClassifier.classify(e), error=e)
            raise

        self._count(GATE_OUTCOMES, decision.outcome.value)
        if not decision.allowed:
            await self._finish(
                operation_id,
                principal,
                context,
                start,
                AuditResult.DENIED,
                details=decision.message,
                error_message=self._internal_cause(decision),
            )
            raise decision.to_error()

        try:
            result = await handler()
        except Exception as e:
            await self._finish(operation_id, principal, context, start, FailureClassifier.classify(e), error=e)
            raise

        # the operation has taken effect; its record outlives a cancelled caller
        await asyncio.shield(
            self._finish(
                operation_id,
                principal,
                context,
                start,
                AuditResult.SUCCESS,
                resource_id=_result_id(result),
            )
        )
        return result

    async def _finish(
        self,
        operation_id: str,
        principal: Optional[Principal],
        context: RequestContext,
        start: float,
        result: AuditResult,
        *,
        details: Optional[str] = None,
        error_message: Optional[str] = None,
        error: Optional[BaseException] = None,
        resource_id: Optional[int] = None,
    ) -> None:
        latency_ms = (time.perf_counter() - start) * 1000
        if error is not None and error_message is None:
            error_message = getattr(error, "message", None) or str(error) or type(error).__name__
        record = AuditRecord(
            action=operation_id,
            result=result,
            timestamp=datetime.now(timezone.utc),
            latency_ms=round(latency_ms, 3),
            actor_id=principal.id if principal else None,
            tenant_id=principal.tenant_id if principal else None,
            resource_type=context.resource_type,
            resource_id=_context_resource_id(context) if resource_id is None else resource_id,
            http_method=context.http_method,
            endpoint=context.endpoint,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details=details,
            error_message=error_message,
            correlation_id=context.correlation_id,
        )
        self._count(AUDIT_RESULTS, result.value)
        if self._metrics is not None:
            self._metrics.observe_latency(OPERATION_LATENCY_MS, latency_ms, operation=operation_id)
        await self._append(record)

    async def _append(self, record: AuditRecord) -> None:
        try:
            if self._queue is not None:
                await self._queue.submit(record)
            else:
                await self._audit_logger.append(record)
        except Exception as e:
            if self._metrics is not None:
                self._metrics.increment(AUDIT_WRITE_FAILURES)
            self._diagnostics.error(
                "audit_append_failed",
                extra={
                    "audit_action": record.action,
                    "audit_result": record.result.value,
                    "error": str(e),
                },
            )

    def _count(self, name: str, category: str) -> None:
        if self._metrics is not None:
            self._metrics.increment(name, category=category)

    @staticmethod
    def _internal_cause(decision: GateDecision) -> Optional[str]:
        """Evaluation failures keep their cause in the audit trail, never in the response."""
        if decision.outcome is not GateOutcome.EVALUATION_FAILED or decision.verdict is None:
            return None
        cause = decision.verdict.cause
        if cause is None:
            return "policy evaluation failed"
        return f"policy evaluation failed: {type(cause).__name__}: {cause}"


def _context_resource_id(context: RequestContext) -> Optional[int]:
    if context.resource_id is not None:
        return context.resource_id
    raw = context.route_params.get("id")
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


def _result_id(result: Any) -> Optional[int]:
    """Id of a created/returned entity, when the handler returns one."""
    value = getattr(result, "id", None)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None
