"""Audit reads: validation, tenant scoping, summary and statistics."""

from datetime import datetime, timedelta, timezone

import pytest

from gatekeeper.domain.exceptions import DomainValidationError
from gatekeeper.governance.audit_models import AuditRecord, AuditResult
from gatekeeper.governance.audit_query import AuditLogFilters, AuditQueryService


def _record(action, result, *, tenant_id=1, actor_id=1, hours_ago=1, latency_ms=10.0, resource_type="task"):
    return AuditRecord(
        action=action,
        result=result,
        timestamp=datetime.now(timezone.utc) - timedelta(hours=hours_ago),
        latency_ms=latency_ms,
        actor_id=actor_id,
        tenant_id=tenant_id,
        resource_type=resource_type,
    )


@pytest.fixture
def service(audit_repository):
    audit_repository.records.extend(
        [
            _record("tasks.create", AuditResult.SUCCESS, actor_id=1, hours_ago=1, latency_ms=10.0),
            _record("tasks.create", AuditResult.SUCCESS, actor_id=1, hours_ago=2, latency_ms=20.0),
            _record("tasks.delete", AuditResult.DENIED, actor_id=2, hours_ago=3, latency_ms=30.0),
            _record("tasks.update", AuditResult.ERROR, actor_id=2, hours_ago=4, latency_ms=40.0),
            _record("tasks.read", AuditResult.SUCCESS, actor_id=1, hours_ago=24 * 30),
            _record("tasks.create", AuditResult.SUCCESS, tenant_id=2, actor_id=10),
        ]
    )
    return AuditQueryService(audit_repository)


async def test_logs_are_tenant_scoped(service, owner, foreign_owner):
    page = await service.list_logs(owner)
    assert page.total == 5
    assert all(r.tenant_id == 1 for r in page.logs)
    foreign = await service.list_logs(foreign_owner)
    assert [r.actor_id for r in foreign.logs] == [10]


async def test_logs_newest_first_with_filters(service, owner):
    page = await service.list_logs(owner, AuditLogFilters(action="tasks.create"))
    assert [r.latency_ms for r in page.logs] == [10.0, 20.0]
    page = await service.list_logs(owner, AuditLogFilters(result=AuditResult.DENIED))
    assert [r.action for r in page.logs] == ["tasks.delete"]


async def test_pagination(service, owner):
    page = await service.list_logs(owner, limit=2, offset=0)
    assert page.total == 2
    assert page.has_more
    last = await service.list_logs(owner, limit=2, offset=4)
    assert last.total == 1
    assert not last.has_more


@pytest.mark.parametrize("limit,offset", [(0, 0), (101, 0), (10, -1)])
async def test_invalid_paging_rejected(service, owner, limit, offset):
    with pytest.raises(DomainValidationError):
        await service.list_logs(owner, limit=limit, offset=offset)


async def test_inverted_date_range_rejected(service, owner):
    now = datetime.now(timezone.utc)
    with pytest.raises(DomainValidationError):
        await service.list_logs(owner, AuditLogFilters(start_date=now, end_date=now - timedelta(days=1)))


async def test_summary(service, owner):
    summary = await service.summary(owner, days=7)
    assert summary.total_logs == 4
    assert (summary.success_count, summary.denied_count, summary.error_count, summary.failure_count) == (2, 1, 1, 0)
    assert summary.top_actions[0] == {"action": "tasks.create", "count": 2}
    assert {"actor_id": 1, "count": 2} in summary.top_actors
    assert summary.recent_activity[0].action == "tasks.create"


async def test_stats(service, owner):
    stats = await service.stats(owner, days=7)
    assert stats.period == "7 days"
    assert stats.total_actions == 4
    assert stats.success_rate == 50.0
    assert stats.denied_rate == 25.0
    assert stats.error_rate == 25.0
    assert stats.average_latency_ms == 25.0
    assert stats.most_accessed_resource == {"resource_type": "task", "count": 4}
    assert len(stats.hourly_distribution) == 24
    assert sum(h["count"] for h in stats.hourly_distribution) == 4


async def test_stats_on_empty_window(audit_repository, admin):
    stats = await AuditQueryService(audit_repository).stats(admin, days=1)
    assert stats.total_actions == 0
    assert stats.success_rate == 0.0
    assert stats.most_active_actor == {"actor_id": None, "count": 0}


@pytest.mark.parametrize("days", [0, 366])
async def test_invalid_days_rejected(service, owner, days):
    with pytest.raises(DomainValidationError):
        await service.summary(owner, days=days)
    with pytest.raises(DomainValidationError):
        await service.stats(owner, days=days)


async def test_recent_is_tenant_scoped_newest_first(service, owner, foreign_owner):
    recent = await service.recent(owner, limit=3)
    assert [r.latency_ms for r in recent] == [10.0, 20.0, 30.0]
    assert [r.actor_id for r in await service.recent(foreign_owner)] == [10]


@pytest.mark.parametrize("limit", [0, 101])
async def test_recent_rejects_bad_limit(service, owner, limit):
    with pytest.raises(DomainValidationError):
        await service.recent(owner, limit=limit)
