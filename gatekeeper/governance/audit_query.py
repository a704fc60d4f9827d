"""Tenant-scoped reads over the audit trail: log listing, summary and statistics."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

from gatekeeper.domain.exceptions import DomainValidationError
from gatekeeper.governance.audit_models import AuditRecord, AuditResult
from gatekeeper.governance.audit_repository import AuditQuery, AuditReader
from gatekeeper.policy.scope import ScopeResolver
from gatekeeper.security.principal import Principal

DEFAULT_LIMIT = 50
DEFAULT_RECENT = 20
MAX_LIMIT = 100
DEFAULT_DAYS = 7
MAX_DAYS = 365


@dataclass(frozen=True)
class AuditLogFilters:
    """Client-supplied filters. Deliberately has no tenant field."""

    action: Optional[str] = None
    result: Optional[AuditResult] = None
    actor_id: Optional[int] = None
    resource_type: Optional[str] = None
    resource_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


@dataclass(frozen=True)
class AuditLogPage:
    logs: Sequence[AuditRecord]
    limit: int
    offset: int

    @property
    def total(self) -> int:
        return len(self.logs)

    @property
    def has_more(self) -> bool:
        return len(self.logs) == self.limit


@dataclass(frozen=True)
class AuditSummary:
    total_logs: int
    success_count: int
    failure_count: int
    error_count: int
    denied_count: int
    top_actions: list[dict[str, Any]] = field(default_factory=list)
    top_actors: list[dict[str, Any]] = field(default_factory=list)
    recent_activity: list[AuditRecord] = field(default_factory=list)


@dataclass(frozen=True)
class AuditStats:
    period: str
    total_actions: int
    success_rate: float
    error_rate: float
    denied_rate: float
    average_latency_ms: float
    most_active_actor: dict[str, Any]
    most_accessed_resource: dict[str, Any]
    hourly_distribution: list[dict[str, int]]


def _validate_limit(limit: int) -> None:
    if limit < 1 or limit > MAX_LIMIT:
        raise DomainValidationError(f"Limit must be between 1 and {MAX_LIMIT}")


def _validate_days(days: int) -> None:
    if days < 1 or days > MAX_DAYS:
        raise DomainValidationError(f"Days must be a number between 1 and {MAX_DAYS}")


def _rate(count: int, total: int) -> float:
    return (count / total) * 100 if total else 0.0


class AuditQueryService:
    """
    Audit reads for admins and owners. The tenant always comes from the
    principal's scope, so a caller can never read another tenant's trail.
    """

    def __init__(self, reader: AuditReader) -> None:
        self._reader = reader

    async def list_logs(
        self,
        principal: Principal,
        filters: Optional[AuditLogFilters] = None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> AuditLogPage:
        _validate_limit(limit)
        if offset < 0:
            raise DomainValidationError("Offset must be non-negative")
        f = filters or AuditLogFilters()
        if f.start_date and f.end_date and f.start_date > f.end_date:
            raise DomainValidationError("start_date must not be after end_date")
        scope = ScopeResolver.tenant_scope(principal)
        query = AuditQuery(
            tenant_id=scope.tenant_id,
            action=f.action,
            result=f.result,
            actor_id=f.actor_id,
            resource_type=f.resource_type,
            resource_id=f.resource_id,
            start_date=f.start_date,
            end_date=f.end_date,
        )
        logs = await self._reader.query(query, limit, offset)
        return AuditLogPage(logs=list(logs), limit=limit, offset=offset)

    async def recent(self, principal: Principal, limit: int = DEFAULT_RECENT) -> list[AuditRecord]:
        """Latest records of the caller's tenant, newest first."""
        _validate_limit(limit)
        scope = ScopeResolver.tenant_scope(principal)
        return list(await self._reader.query(AuditQuery(tenant_id=scope.tenant_id), limit, 0))

    async def _window(self, principal: Principal, days: int) -> list[AuditRecord]:
        _validate_days(days)
        since = datetime.now(timezone.utc) - timedelta(days=days)
        scope = ScopeResolver.tenant_scope(principal)
        records = await self._reader.records_since(scope.tenant_id, since)
        return sorted(records, key=lambda r: r.timestamp, reverse=True)

    async def summary(self, principal: Principal, days: int = DEFAULT_DAYS) -> AuditSummary:
        logs = await self._window(principal, days)
        results = Counter(r.result for r in logs)
        actions = Counter(r.action for r in logs)
        actors = Counter(r.actor_id for r in logs if r.actor_id is not None)
        return AuditSummary(
            total_logs=len(logs),
            success_count=results[AuditResult.SUCCESS],
            failure_count=results[AuditResult.FAILURE],
            error_count=results[AuditResult.ERROR],
            denied_count=results[AuditResult.DENIED],
            top_actions=[{"action": a, "count": c} for a, c in actions.most_common(5)],
            top_actors=[{"actor_id": a, "count": c} for a, c in actors.most_common(5)],
            recent_activity=logs[:10],
        )

    async def stats(self, principal: Principal, days: int = DEFAULT_DAYS) -> AuditStats:
        logs = await self._window(principal, days)
        total = len(logs)
        results = Counter(r.result for r in logs)
        latencies = [r.latency_ms for r in logs if r.latency_ms is not None]
        actors = Counter(r.actor_id for r in logs if r.actor_id is not None)
        resources = Counter(r.resource_type for r in logs if r.resource_type)
        hours = Counter(r.timestamp.astimezone(timezone.utc).hour for r in logs)

        if actors:
            actor_id, actor_count = actors.most_common(1)[0]
            most_active = {"actor_id": actor_id, "count": actor_count}
        else:
            most_active = {"actor_id": None, "count": 0}
        if resources:
            resource_type, resource_count = resources.most_common(1)[0]
            most_accessed = {"resource_type": resource_type, "count": resource_count}
        else:
            most_accessed = {"resource_type": None, "count": 0}

        return AuditStats(
            period=f"{days} days",
            total_actions=total,
            success_rate=_rate(results[AuditResult.SUCCESS], total),
            error_rate=_rate(results[AuditResult.ERROR], total),
            denied_rate=_rate(results[AuditResult.DENIED], total),
            average_latency_ms=sum(latencies) / len(latencies) if latencies else 0.0,
            most_active_actor=most_active,
            most_accessed_resource=most_accessed,
            hourly_distribution=[{"hour": h, "count": hours.get(h, 0)} for h in range(24)],
        )
