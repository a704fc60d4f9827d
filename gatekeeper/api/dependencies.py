"""FastAPI dependency injection: repositories, policy stack, audit pipeline, principal, request context."""

import logging
from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Request

from gatekeeper.application.task_lookup import TaskResourceLookup
from gatekeeper.application.task_repository import TaskRepository
from gatekeeper.application.task_service import TaskService
from gatekeeper.config.settings import get_settings
from gatekeeper.governance.audit_logger import AuditLogger
from gatekeeper.governance.audit_pipeline import AuditPipeline
from gatekeeper.governance.audit_query import AuditQueryService
from gatekeeper.governance.audit_queue import AuditQueue
from gatekeeper.governance.audit_repository import AuditReader, AuditRepository
from gatekeeper.infrastructure.database.audit_repository_db import DbAuditRepository
from gatekeeper.infrastructure.database.session import get_session_factory
from gatekeeper.infrastructure.database.task_repository_db import DbTaskRepository
from gatekeeper.observability.metrics import MetricsCollector
from gatekeeper.policy.engine import PolicyEngine
from gatekeeper.policy.gate import AccessGate
from gatekeeper.policy.models import RequestContext
from gatekeeper.policy.registry import PolicyRegistry
from gatekeeper.policy.resolvers import ResourceResolver
from gatekeeper.policy.rules import TASK, default_registry
from gatekeeper.security.principal import Principal
from gatekeeper.security.signing import AuditSigner
from gatekeeper.security.tokens import TokenDecoder

_task_repository: TaskRepository | None = None
_audit_repository: DbAuditRepository | None = None
_audit_queue: AuditQueue | None = None


@lru_cache
def get_registry() -> PolicyRegistry:
    """Frozen default registry; linted once when first built."""
    registry = default_registry()
    registry.lint(logging.getLogger("gatekeeper.policy.registry"))
    return registry


@lru_cache
def get_metrics() -> MetricsCollector:
    return MetricsCollector()


@lru_cache
def get_token_decoder() -> TokenDecoder:
    settings = get_settings()
    return TokenDecoder(settings.jwt_secret, settings.jwt_algorithm)


@lru_cache
def get_signer() -> AuditSigner:
    return AuditSigner(get_settings().signing_key)


def get_task_repository() -> TaskRepository:
    """Return singleton DB-backed task repository."""
    global _task_repository
    if _task_repository is None:
        _task_repository = DbTaskRepository(get_session_factory())
    return _task_repository


def get_audit_repository() -> DbAuditRepository:
    """Return singleton DB-backed audit repository (writer and reader)."""
    global _audit_repository
    if _audit_repository is None:
        _audit_repository = DbAuditRepository(get_session_factory())
    return _audit_repository


def get_audit_reader(
    repository: Annotated[AuditRepository, Depends(get_audit_repository)],
) -> AuditReader:
    return repository


def build_audit_logger(repository: AuditRepository) -> AuditLogger:
    settings = get_settings()
    return AuditLogger(
        repository,
        signer=get_signer(),
        retries=settings.audit_append_retries,
        backoff_seconds=settings.audit_retry_backoff_seconds,
    )


async def start_audit_queue() -> Optional[AuditQueue]:
    """Create and start the background audit writer (called from app lifespan)."""
    global _audit_queue
    settings = get_settings()
    if not settings.audit_queue_enabled:
        return None
    if _audit_queue is None:
        _audit_queue = AuditQueue(
            build_audit_logger(get_audit_repository()),
            max_queued=settings.audit_queue_size,
            metrics=get_metrics(),
        )
    await _audit_queue.start()
    return _audit_queue


async def stop_audit_queue() -> None:
    """Drain pending records, then stop the worker."""
    global _audit_queue
    if _audit_queue is not None:
        await _audit_queue.close()
        _audit_queue = None


def get_audit_queue() -> Optional[AuditQueue]:
    """None until the lifespan has started the queue; the pipeline then writes inline."""
    return _audit_queue


def get_policy_engine(
    registry: Annotated[PolicyRegistry, Depends(get_registry)],
    tasks: Annotated[TaskRepository, Depends(get_task_repository)],
) -> PolicyEngine:
    resolver = ResourceResolver({TASK: TaskResourceLookup(tasks)})
    return PolicyEngine(
        registry,
        resolver,
        resolution_timeout=get_settings().resolution_timeout_seconds,
    )


def get_access_gate(
    engine: Annotated[PolicyEngine, Depends(get_policy_engine)],
) -> AccessGate:
    return AccessGate(engine)


def get_audit_pipeline(
    gate: Annotated[AccessGate, Depends(get_access_gate)],
    repository: Annotated[AuditRepository, Depends(get_audit_repository)],
    queue: Annotated[Optional[AuditQueue], Depends(get_audit_queue)],
    metrics: Annotated[MetricsCollector, Depends(get_metrics)],
) -> AuditPipeline:
    """Build AuditPipeline around the gate, writing through the queue when one is running."""
    return AuditPipeline(
        gate,
        build_audit_logger(repository),
        queue=queue,
        metrics=metrics,
    )


def get_task_service(
    repository: Annotated[TaskRepository, Depends(get_task_repository)],
) -> TaskService:
    return TaskService(repository=repository, logger=logging.getLogger("gatekeeper.tasks"))


def get_audit_query_service(
    reader: Annotated[AuditReader, Depends(get_audit_reader)],
) -> AuditQueryService:
    return AuditQueryService(reader)


def get_principal(request: Request) -> Optional[Principal]:
    """Principal decoded by PrincipalMiddleware; None for anonymous requests."""
    return getattr(request.state, "principal", None)


def get_correlation_id(request: Request) -> str:
    """Extract correlation_id from request.state (set by middleware)."""
    return getattr(request.state, "correlation_id", "") or ""


def build_request_context(
    request: Request,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
) -> RequestContext:
    """Snapshot of the request for rules and the audit record."""
    return RequestContext(
        http_method=request.method,
        endpoint=request.url.path,
        route_params=dict(request.path_params),
        query_params=dict(request.query_params),
        resource_type=resource_type,
        resource_id=resource_id,
        correlation_id=get_correlation_id(request) or None,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
