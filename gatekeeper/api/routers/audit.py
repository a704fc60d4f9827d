"""Audit trail API: tenant-scoped logs, recent activity, summary and statistics (admin and owner only)."""

from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request

from gatekeeper.api.dependencies import (
    build_request_context,
    get_audit_pipeline,
    get_audit_query_service,
    get_principal,
)
from gatekeeper.domain.schemas.audit import (
    AuditLogPageResponse,
    AuditRecentResponse,
    AuditRecordResponse,
    AuditStatsResponse,
    AuditSummaryResponse,
)
from gatekeeper.governance.audit_models import AuditResult
from gatekeeper.governance.audit_pipeline import AuditPipeline
from gatekeeper.governance.audit_query import (
    DEFAULT_DAYS,
    DEFAULT_LIMIT,
    DEFAULT_RECENT,
    AuditLogFilters,
    AuditQueryService,
)
from gatekeeper.policy import rules
from gatekeeper.security.principal import Principal

router = APIRouter()

AUDIT_RESOURCE = "audit_log"
# actor and resource ids are BIGINT columns in audit_log
MAX_AUDIT_ID = 2**63 - 1

PrincipalDep = Annotated[Optional[Principal], Depends(get_principal)]
PipelineDep = Annotated[AuditPipeline, Depends(get_audit_pipeline)]
QueryDep = Annotated[AuditQueryService, Depends(get_audit_query_service)]
AuditId = Annotated[Optional[int], Query(ge=1, le=MAX_AUDIT_ID)]


@router.get("/logs", response_model=AuditLogPageResponse)
async def list_logs(
    request: Request,
    principal: PrincipalDep,
    pipeline: PipelineDep,
    queries: QueryDep,
    action: Optional[str] = None,
    result: Optional[AuditResult] = None,
    actor_id: AuditId = None,
    resource_type: Optional[str] = None,
    resource_id: AuditId = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
):
    """Newest first. Limit and offset are validated by the query service (422 when out of range)."""
    filters = AuditLogFilters(
        action=action,
        result=result,
        actor_id=actor_id,
        resource_type=resource_type,
        resource_id=resource_id,
        start_date=start_date,
        end_date=end_date,
    )
    context = build_request_context(request, AUDIT_RESOURCE)

    async def handler():
        page = await queries.list_logs(principal, filters, limit=limit, offset=offset)
        return AuditLogPageResponse(
            logs=[AuditRecordResponse.from_record(r) for r in page.logs],
            total=page.total,
            limit=page.limit,
            offset=page.offset,
            has_more=page.has_more,
        )

    return await pipeline.wrap(rules.AUDIT_LOGS, principal, context, handler)


@router.get("/recent", response_model=AuditRecentResponse)
async def recent(
    request: Request,
    principal: PrincipalDep,
    pipeline: PipelineDep,
    queries: QueryDep,
    limit: int = DEFAULT_RECENT,
):
    context = build_request_context(request, AUDIT_RESOURCE)

    async def handler():
        records = await queries.recent(principal, limit)
        return AuditRecentResponse(
            recent_activity=[AuditRecordResponse.from_record(r) for r in records],
            total=len(records),
        )

    return await pipeline.wrap(rules.AUDIT_RECENT, principal, context, handler)


@router.get("/summary", response_model=AuditSummaryResponse)
async def summary(
    request: Request,
    principal: PrincipalDep,
    pipeline: PipelineDep,
    queries: QueryDep,
    days: Annotated[int, Query()] = DEFAULT_DAYS,
):
    context = build_request_context(request, AUDIT_RESOURCE)

    async def handler():
        s = await queries.summary(principal, days)
        return AuditSummaryResponse(
            total_logs=s.total_logs,
            success_count=s.success_count,
            failure_count=s.failure_count,
            error_count=s.error_count,
            denied_count=s.denied_count,
            top_actions=s.top_actions,
            top_actors=s.top_actors,
            recent_activity=[AuditRecordResponse.from_record(r) for r in s.recent_activity],
        )

    return await pipeline.wrap(rules.AUDIT_SUMMARY, principal, context, handler)


@router.get("/stats", response_model=AuditStatsResponse)
async def stats(
    request: Request,
    principal: PrincipalDep,
    pipeline: PipelineDep,
    queries: QueryDep,
    days: Annotated[int, Query()] = DEFAULT_DAYS,
):
    context = build_request_context(request, AUDIT_RESOURCE)

    async def handler():
        s = await queries.stats(principal, days)
        return AuditStatsResponse(
            period=s.period,
            total_actions=s.total_actions,
            success_rate=s.success_rate,
            error_rate=s.error_rate,
            denied_rate=s.denied_rate,
            average_latency_ms=s.average_latency_ms,
            most_active_actor=s.most_active_actor,
            most_accessed_resource=s.most_accessed_resource,
            hourly_distribution=s.hourly_distribution,
        )

    return await pipeline.wrap(rules.AUDIT_STATS, principal, context, handler)
