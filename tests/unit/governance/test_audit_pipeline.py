"""Audit pipeline: one record per gated operation, outcome classification, audit non-interference."""

import asyncio
import logging
from types import SimpleNamespace

import pytest

from gatekeeper.application.task_lookup import TaskResourceLookup
from gatekeeper.application.task_service import TaskService
from gatekeeper.domain.exceptions import DomainValidationError, NotFoundError
from gatekeeper.domain.schemas.task import TaskUpdateRequest
from gatekeeper.governance.audit_logger import AuditLogger
from gatekeeper.governance.audit_models import AuditResult
from gatekeeper.governance.audit_pipeline import AuditPipeline
from gatekeeper.governance.audit_queue import AuditQueue
from gatekeeper.observability.metrics import MetricsCollector
from gatekeeper.policy import rules
from gatekeeper.policy.engine import PolicyEngine
from gatekeeper.policy.gate import GENERIC_DENY_MESSAGE, AccessGate
from gatekeeper.policy.models import MissingResource, PolicyRule, RequestContext
from gatekeeper.policy.registry import PolicyRegistry
from gatekeeper.policy.resolvers import ResourceResolver
from gatekeeper.security.exceptions import AccessDeniedError, TenantIsolationError, UnauthenticatedError


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def build_pipeline(task_repository, audit_repository, metrics):
    def _build(registry=None, repository=None, queue=None):
        resolver = ResourceResolver({rules.TASK: TaskResourceLookup(task_repository)})
        engine = PolicyEngine(registry or rules.default_registry(), resolver)
        audit_logger = AuditLogger(repository or audit_repository, retries=0, backoff_seconds=0)
        return AuditPipeline(AccessGate(engine), audit_logger, queue=queue, metrics=metrics)

    return _build


def _task_ctx(task_id, method="PATCH"):
    return RequestContext(
        http_method=method,
        endpoint=f"/tasks/{task_id}",
        route_params={"id": str(task_id)},
        resource_type=rules.TASK,
        resource_id=task_id,
        correlation_id="corr-test",
    )


async def _ok():
    return SimpleNamespace(id=42)


async def test_viewer_update_of_foreign_task_denied_and_audited(
    build_pipeline, task_repository, audit_repository, viewer
):
    task = task_repository.seed(created_by=7, tenant_id=1)
    ran = False

    async def handler():
        nonlocal ran
        ran = True

    with pytest.raises(AccessDeniedError) as exc_info:
        await build_pipeline().wrap(rules.TASKS_UPDATE, viewer, _task_ctx(task.id), handler)
    assert "insufficient permission" in exc_info.value.message
    assert not ran
    [record] = audit_repository.records
    assert record.result is AuditResult.DENIED
    assert record.details == exc_info.value.message
    assert (record.actor_id, record.tenant_id, record.resource_id) == (viewer.id, 1, task.id)
    assert record.correlation_id == "corr-test"


async def test_viewer_update_of_own_task_succeeds_and_audited(
    build_pipeline, task_repository, audit_repository, viewer
):
    task = task_repository.seed(created_by=viewer.id, tenant_id=1)
    result = await build_pipeline().wrap(rules.TASKS_UPDATE, viewer, _task_ctx(task.id), _ok)
    assert result.id == 42
    [record] = audit_repository.records
    assert record.result is AuditResult.SUCCESS
    assert record.action == rules.TASKS_UPDATE
    assert record.latency_ms >= 0


async def test_unauthenticated_resolves_nothing(build_pipeline, task_repository, audit_repository):
    task = task_repository.seed(created_by=1, tenant_id=1)
    with pytest.raises(UnauthenticatedError):
        await build_pipeline().wrap(rules.TASKS_UPDATE, None, _task_ctx(task.id), _ok)
    assert task_repository.get_calls == 0
    [record] = audit_repository.records
    assert record.result is AuditResult.DENIED
    assert record.actor_id is None


async def test_missing_task_not_found_first(build_pipeline, audit_repository, owner):
    pipeline = build_pipeline(rules.default_registry(missing_task=MissingResource.NOT_FOUND))
    with pytest.raises(NotFoundError):
        await pipeline.wrap(rules.TASKS_UPDATE, owner, _task_ctx(999), _ok)
    [record] = audit_repository.records
    assert record.result is AuditResult.FAILURE
    assert record.error_message == "Task with ID 999 not found"
    assert record.resource_id == 999


async def test_missing_task_denied_when_configured(build_pipeline, audit_repository, owner):
    pipeline = build_pipeline(rules.default_registry(missing_task=MissingResource.DENY))
    with pytest.raises(AccessDeniedError):
        await pipeline.wrap(rules.TASKS_UPDATE, owner, _task_ctx(999), _ok)
    [record] = audit_repository.records
    assert record.result is AuditResult.DENIED


async def test_evaluation_error_audited_with_internal_cause(build_pipeline, audit_repository, owner):
    def broken(p, c, r):
        raise KeyError("internal detail")

    registry = PolicyRegistry()
    registry.register_rule("op", PolicyRule(name="broken", predicate=broken))
    with pytest.raises(AccessDeniedError) as exc_info:
        await build_pipeline(registry.freeze()).wrap("op", owner, RequestContext(), _ok)
    assert exc_info.value.message == GENERIC_DENY_MESSAGE
    [record] = audit_repository.records
    assert record.result is AuditResult.DENIED
    assert "KeyError" in record.error_message


async def test_business_failure_recorded_and_reraised(build_pipeline, audit_repository, owner):
    async def handler():
        raise DomainValidationError("Task title is required")

    with pytest.raises(DomainValidationError):
        await build_pipeline().wrap(rules.TASKS_CREATE, owner, RequestContext(), handler)
    [record] = audit_repository.records
    assert record.result is AuditResult.FAILURE
    assert record.error_message == "Task title is required"


async def test_unexpected_error_recorded_as_error(build_pipeline, audit_repository, owner):
    async def handler():
        raise ZeroDivisionError("oops")

    with pytest.raises(ZeroDivisionError):
        await build_pipeline().wrap(rules.TASKS_CREATE, owner, RequestContext(), handler)
    assert audit_repository.records[0].result is AuditResult.ERROR


async def test_cancellation_propagates_without_record(build_pipeline, audit_repository, owner):
    async def handler():
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await build_pipeline().wrap(rules.TASKS_CREATE, owner, RequestContext(), handler)
    assert audit_repository.records == []


async def test_exactly_one_record_per_operation(
    build_pipeline, task_repository, audit_repository, owner, viewer
):
    pipeline = build_pipeline()
    own = task_repository.seed(created_by=viewer.id, tenant_id=1)
    foreign = task_repository.seed(created_by=owner.id, tenant_id=1)

    async def failing():
        raise DomainValidationError("bad")

    calls = [
        (rules.TASKS_LIST, owner, RequestContext(), _ok, AuditResult.SUCCESS),
        (rules.TASKS_CREATE, viewer, RequestContext(), _ok, AuditResult.DENIED),
        (rules.TASKS_UPDATE, viewer, _task_ctx(own.id), _ok, AuditResult.SUCCESS),
        (rules.TASKS_UPDATE, viewer, _task_ctx(foreign.id), _ok, AuditResult.DENIED),
        (rules.TASKS_CREATE, owner, RequestContext(), failing, AuditResult.FAILURE),
        (rules.TASKS_DELETE, None, _task_ctx(own.id, "DELETE"), _ok, AuditResult.DENIED),
        (rules.TASKS_READ, owner, _task_ctx(12345, "GET"), _ok, AuditResult.FAILURE),
        (rules.AUDIT_LOGS, viewer, RequestContext(), _ok, AuditResult.DENIED),
    ]
    for operation, principal, context, handler, _ in calls:
        try:
            await pipeline.wrap(operation, principal, context, handler)
        except Exception:
            pass
    assert len(audit_repository.records) == len(calls)
    assert [r.result for r in audit_repository.records] == [expected for *_, expected in calls]


async def test_audit_failure_does_not_change_result(
    build_pipeline, failing_audit_repository, metrics, owner, caplog
):
    pipeline = build_pipeline(repository=failing_audit_repository)
    with caplog.at_level(logging.ERROR, logger="gatekeeper.audit.diagnostics"):
        result = await pipeline.wrap(rules.TASKS_CREATE, owner, RequestContext(), _ok)
    assert result.id == 42
    assert failing_audit_repository.attempts == 1
    assert metrics.get_counter("audit_write_failures") == 1
    assert any(r.getMessage() == "audit_append_failed" for r in caplog.records)


async def test_audit_failure_does_not_mask_denial(build_pipeline, failing_audit_repository, viewer):
    pipeline = build_pipeline(repository=failing_audit_repository)
    with pytest.raises(AccessDeniedError):
        await pipeline.wrap(rules.TASKS_CREATE, viewer, RequestContext(), _ok)


async def test_writes_through_queue(build_pipeline, audit_repository, owner):
    queue = AuditQueue(AuditLogger(audit_repository))
    await queue.start()
    pipeline = build_pipeline(queue=queue)
    await pipeline.wrap(rules.TASKS_CREATE, owner, RequestContext(), _ok)
    await queue.close()
    [record] = audit_repository.records
    assert record.resource_id == 42


async def test_metrics_recorded(build_pipeline, metrics, owner, viewer):
    pipeline = build_pipeline()
    await pipeline.wrap(rules.TASKS_CREATE, owner, RequestContext(), _ok)
    with pytest.raises(AccessDeniedError):
        await pipeline.wrap(rules.TASKS_CREATE, viewer, RequestContext(), _ok)
    assert metrics.get_counter("gate_outcomes", category="allowed") == 1
    assert metrics.get_counter("gate_outcomes", category="denied") == 1
    assert metrics.get_counter("audit_results", category="success") == 1
    histograms = metrics.export_metrics()["histograms"]
    assert histograms[f"operation_latency_ms:operation={rules.TASKS_CREATE}"]["count"] == 2


class _BlockingAuditRepository:
    """Append waits until released, so a test can cancel the caller mid-write."""

    def __init__(self):
        self.records = []
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def append(self, record):
        self.started.set()
        await self.release.wait()
        self.records.append(record)


async def test_record_survives_cancellation_after_handler_returned(build_pipeline, task_repository, owner):
    repository = _BlockingAuditRepository()
    task = task_repository.seed(created_by=owner.id, tenant_id=1)

    async def handler():
        await task_repository.delete(task.id)

    call = asyncio.create_task(
        build_pipeline(repository=repository).wrap(rules.TASKS_DELETE, owner, _task_ctx(task.id, "DELETE"), handler)
    )
    await repository.started.wait()
    call.cancel()
    with pytest.raises(asyncio.CancelledError):
        await call
    repository.release.set()
    for _ in range(5):
        await asyncio.sleep(0)
    [record] = repository.records
    assert record.result is AuditResult.SUCCESS
    assert record.resource_id == task.id


async def test_request_origin_recorded(build_pipeline, audit_repository, owner):
    context = RequestContext(http_method="POST", endpoint="/tasks", ip_address="10.0.0.7", user_agent="curl/8.4")
    await build_pipeline().wrap(rules.TASKS_CREATE, owner, context, _ok)
    [record] = audit_repository.records
    assert (record.ip_address, record.user_agent) == ("10.0.0.7", "curl/8.4")
    assert record.signable_fields()["user_agent"] == "curl/8.4"


async def test_tenant_mismatch_in_handler_recorded_as_denied(build_pipeline, task_repository, audit_repository, owner):
    registry = PolicyRegistry()
    registry.register_rule(rules.TASKS_UPDATE, rules.RolePolicies.require_authenticated())
    foreign = task_repository.seed(created_by=10, tenant_id=2)
    service = TaskService(task_repository)

    async def handler():
        return await service.update_task(foreign.id, TaskUpdateRequest(title="x"), tenant_id=owner.tenant_id)

    with pytest.raises(TenantIsolationError):
        await build_pipeline(registry.freeze()).wrap(rules.TASKS_UPDATE, owner, _task_ctx(foreign.id), handler)
    [record] = audit_repository.records
    assert record.result is AuditResult.DENIED
    assert (await task_repository.get(foreign.id)).title == "Seeded task"
