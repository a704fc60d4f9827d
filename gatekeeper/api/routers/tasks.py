"""Tasks API: every route is gated and audited through AuditPipeline."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query, Request, Response

from gatekeeper.api.dependencies import (
    build_request_context,
    get_audit_pipeline,
    get_principal,
    get_task_service,
)
from gatekeeper.application.task_service import TaskService
from gatekeeper.domain.models.task import MAX_TASK_ID, TaskCategory, TaskStatus
from gatekeeper.domain.schemas.task import (
    TaskCreateRequest,
    TaskFilters,
    TaskResponse,
    TaskStatsResponse,
    TaskUpdateRequest,
)
from gatekeeper.governance.audit_pipeline import AuditPipeline
from gatekeeper.policy import rules
from gatekeeper.policy.scope import ScopeResolver
from gatekeeper.security.principal import Principal

router = APIRouter()

PrincipalDep = Annotated[Optional[Principal], Depends(get_principal)]
PipelineDep = Annotated[AuditPipeline, Depends(get_audit_pipeline)]
ServiceDep = Annotated[TaskService, Depends(get_task_service)]
TaskId = Annotated[int, Path(ge=1, le=MAX_TASK_ID)]
CreatorId = Annotated[Optional[int], Query(ge=1, le=MAX_TASK_ID)]


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    request: Request,
    principal: PrincipalDep,
    pipeline: PipelineDep,
    service: ServiceDep,
    status: Optional[TaskStatus] = None,
    category: Optional[TaskCategory] = None,
    created_by: CreatorId = None,
):
    """Tasks visible to the caller: whole tenant for owner/admin, own tasks for viewer."""
    filters = TaskFilters(status=status, category=category, created_by=created_by)
    context = build_request_context(request, rules.TASK)

    async def handler():
        return await service.list_tasks(ScopeResolver.scope_for(principal), filters)

    return await pipeline.wrap(rules.TASKS_LIST, principal, context, handler)


@router.get("/my-tasks", response_model=list[TaskResponse])
async def my_tasks(
    request: Request,
    principal: PrincipalDep,
    pipeline: PipelineDep,
    service: ServiceDep,
    status: Optional[TaskStatus] = None,
    category: Optional[TaskCategory] = None,
):
    """Tasks the caller created, whatever its role."""
    filters = TaskFilters(status=status, category=category)
    context = build_request_context(request, rules.TASK)

    async def handler():
        return await service.list_own_tasks(principal, filters)

    return await pipeline.wrap(rules.TASKS_MINE, principal, context, handler)


@router.get("/stats", response_model=TaskStatsResponse)
async def task_stats(
    request: Request,
    principal: PrincipalDep,
    pipeline: PipelineDep,
    service: ServiceDep,
):
    """Counts by status and category over the caller's scope, plus the most recent tasks."""
    context = build_request_context(request, rules.TASK)

    async def handler():
        return await service.stats(ScopeResolver.scope_for(principal))

    return await pipeline.wrap(rules.TASKS_STATS, principal, context, handler)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    request: Request,
    body: TaskCreateRequest,
    principal: PrincipalDep,
    pipeline: PipelineDep,
    service: ServiceDep,
):
    context = build_request_context(request, rules.TASK)

    async def handler():
        return await service.create_task(principal, body)

    return await pipeline.wrap(rules.TASKS_CREATE, principal, context, handler)


@router.get("/{id}", response_model=TaskResponse)
async def get_task(
    id: TaskId,
    request: Request,
    principal: PrincipalDep,
    pipeline: PipelineDep,
    service: ServiceDep,
):
    context = build_request_context(request, rules.TASK, id)

    async def handler():
        return await service.get_task(id, tenant_id=principal.tenant_id)

    return await pipeline.wrap(rules.TASKS_READ, principal, context, handler)


@router.patch("/{id}", response_model=TaskResponse)
async def update_task(
    id: TaskId,
    request: Request,
    body: TaskUpdateRequest,
    principal: PrincipalDep,
    pipeline: PipelineDep,
    service: ServiceDep,
):
    """Partial update. Owner and admin may update any task in their tenant."""
    context = build_request_context(request, rules.TASK, id)

    async def handler():
        return await service.update_task(id, body, tenant_id=principal.tenant_id)

    return await pipeline.wrap(rules.TASKS_UPDATE, principal, context, handler)


@router.delete("/{id}", status_code=204)
async def delete_task(
    id: TaskId,
    request: Request,
    principal: PrincipalDep,
    pipeline: PipelineDep,
    service: ServiceDep,
):
    """Owner only."""
    context = build_request_context(request, rules.TASK, id)

    async def handler():
        await service.delete_task(id, tenant_id=principal.tenant_id)

    await pipeline.wrap(rules.TASKS_DELETE, principal, context, handler)
    return Response(status_code=204)
