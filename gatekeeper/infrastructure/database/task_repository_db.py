"""DB-backed task repository. One session per call; every list is scope-filtered."""

from typing import Optional, Sequence

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gatekeeper.application.exceptions import ApplicationError
from gatekeeper.domain.models.task import Task, TaskCategory, TaskStatus
from gatekeeper.domain.schemas.task import TaskFilters
from gatekeeper.infrastructure.database.models import TaskRow, as_aware
from gatekeeper.policy.scope import ScopeFilter


def _to_domain(row: TaskRow) -> Task:
    return Task(
        id=row.id,
        title=row.title,
        description=row.description,
        status=TaskStatus(row.status),
        category=TaskCategory(row.category),
        created_by=row.created_by,
        tenant_id=row.tenant_id,
        created_at=as_aware(row.created_at),
        updated_at=as_aware(row.updated_at),
    )


def apply_scope(stmt: Select, scope: ScopeFilter) -> Select:
    """Constrain a TaskRow select to what scope admits."""
    stmt = stmt.where(TaskRow.tenant_id == scope.tenant_id)
    if scope.owner_id is not None:
        stmt = stmt.where(TaskRow.created_by == scope.owner_id)
    return stmt


class DbTaskRepository:
    """Implements TaskRepository on SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list(self, scope: ScopeFilter, filters: Optional[TaskFilters] = None) -> Sequence[Task]:
        stmt = apply_scope(select(TaskRow), scope)
        if filters is not None:
            if filters.status is not None:
                stmt = stmt.where(TaskRow.status == filters.status.value)
            if filters.category is not None:
                stmt = stmt.where(TaskRow.category == filters.category.value)
            if filters.created_by is not None:
                stmt = stmt.where(TaskRow.created_by == filters.created_by)
        stmt = stmt.order_by(TaskRow.created_at.desc(), TaskRow.id.desc())
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [_to_domain(row) for row in result.scalars().all()]

    async def get(self, task_id: int) -> Optional[Task]:
        async with self._session_factory() as session:
            row = await session.get(TaskRow, task_id)
            return _to_domain(row) if row is not None else None

    async def add(self, task: Task) -> Task:
        row = TaskRow(
            title=task.title,
            description=task.description,
            status=task.status.value,
            category=task.category.value,
            created_by=task.created_by,
            tenant_id=task.tenant_id,
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _to_domain(row)

    async def save(self, task: Task) -> Task:
        async with self._session_factory() as session:
            row = await session.get(TaskRow, task.id)
            if row is None:
                raise ApplicationError(f"Task {task.id} disappeared during update")
            row.title = task.title
            row.description = task.description
            row.status = task.status.value
            row.category = task.category.value
            await session.commit()
            await session.refresh(row)
            return _to_domain(row)

    async def delete(self, task_id: int) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(TaskRow).where(TaskRow.id == task_id))
            await session.commit()
