"""Task application service. Business rules only; authorization has already run at the gate."""

import logging
from collections import Counter
from typing import Optional

from gatekeeper.application.task_repository import TaskRepository
from gatekeeper.domain.exceptions import NotFoundError
from gatekeeper.domain.models.task import Task, TaskCategory, TaskStatus
from gatekeeper.domain.schemas.task import (
    TaskCreateRequest,
    TaskFilters,
    TaskResponse,
    TaskStatsResponse,
    TaskUpdateRequest,
)
from gatekeeper.domain.validators.task_validator import (
    validate_task_create_request,
    validate_task_update_request,
)
from gatekeeper.policy.scope import ScopeFilter, ScopeResolver
from gatekeeper.security.principal import Principal
from gatekeeper.security.tenant_context import TenantContext

RECENT_TASKS = 5


class TaskService:
    """
    CRUD over tasks. Lists always go through a ScopeFilter; new tasks take
    tenant and creator from the principal, never from the payload. Single-task
    calls given a tenant_id re-check it against the stored task and raise
    TenantIsolationError on mismatch, behind the gate's own tenant rule.
    """

    def __init__(self, repository: TaskRepository, logger: Optional[logging.Logger] = None) -> None:
        self._repository = repository
        self._logger = logger or logging.getLogger(__name__)

    async def list_tasks(
        self,
        scope: ScopeFilter,
        filters: Optional[TaskFilters] = None,
    ) -> list[TaskResponse]:
        tasks = await self._repository.list(scope, filters)
        self._logger.info("tasks_listed", extra={"count": len(tasks)})
        return [TaskResponse.from_task(t) for t in tasks]

    async def list_own_tasks(
        self,
        principal: Principal,
        filters: Optional[TaskFilters] = None,
    ) -> list[TaskResponse]:
        """Tasks the principal created, inside its tenant."""
        own = (filters or TaskFilters()).model_copy(update={"created_by": principal.id})
        return await self.list_tasks(ScopeResolver.scope_for(principal), own)

    async def _require(self, task_id: int, tenant_id: Optional[int] = None) -> Task:
        task = await self._repository.get(task_id)
        if task is None:
            raise NotFoundError(f"Task with ID {task_id} not found")
        if tenant_id is not None:
            TenantContext.validate_access(task.tenant_id, tenant_id)
        return task

    async def get_task(self, task_id: int, *, tenant_id: Optional[int] = None) -> TaskResponse:
        return TaskResponse.from_task(await self._require(task_id, tenant_id))

    async def create_task(self, principal: Principal, req: TaskCreateRequest) -> TaskResponse:
        validate_task_create_request(req)
        task = Task(
            id=None,
            title=req.title.strip(),
            description=req.description,
            status=req.status,
            category=req.category,
            created_by=principal.id,
            tenant_id=principal.tenant_id,
        )
        saved = await self._repository.add(task)
        self._logger.info("task_created", extra={"task_id": saved.id})
        return TaskResponse.from_task(saved)

    async def update_task(
        self,
        task_id: int,
        req: TaskUpdateRequest,
        *,
        tenant_id: Optional[int] = None,
    ) -> TaskResponse:
        task = await self._require(task_id, tenant_id)
        validate_task_update_request(req)
        if req.title is not None:
            task.title = req.title.strip()
        if req.description is not None:
            task.description = req.description
        if req.status is not None:
            task.status = req.status
        if req.category is not None:
            task.category = req.category
        saved = await self._repository.save(task)
        self._logger.info("task_updated", extra={"task_id": task_id})
        return TaskResponse.from_task(saved)

    async def delete_task(self, task_id: int, *, tenant_id: Optional[int] = None) -> None:
        await self._require(task_id, tenant_id)
        await self._repository.delete(task_id)
        self._logger.info("task_deleted", extra={"task_id": task_id})

    async def stats(self, scope: ScopeFilter) -> TaskStatsResponse:
        tasks = list(await self._repository.list(scope, None))
        by_status = Counter(t.status for t in tasks)
        by_category = Counter(t.category for t in tasks)
        # repository returns newest first
        recent = tasks[:RECENT_TASKS]
        return TaskStatsResponse(
            total=len(tasks),
            by_status={s.value: by_status.get(s, 0) for s in TaskStatus},
            by_category={c.value: by_category.get(c, 0) for c in TaskCategory},
            recent=[TaskResponse.from_task(t) for t in recent],
        )
