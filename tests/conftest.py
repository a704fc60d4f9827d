"""Shared fixtures: settings env, principals, in-memory task and audit repositories."""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-at-least-32-chars-long")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("AUDIT_QUEUE_ENABLED", "false")
os.environ.setdefault("AUDIT_RETRY_BACKOFF_SECONDS", "0")

import dataclasses
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import pytest

from gatekeeper.domain.models.task import Task, TaskCategory, TaskStatus
from gatekeeper.domain.schemas.task import TaskFilters
from gatekeeper.governance.audit_models import AuditRecord
from gatekeeper.governance.audit_repository import AuditQuery
from gatekeeper.policy.scope import ScopeFilter
from gatekeeper.security.principal import Principal, Role

TENANT_A = 1
TENANT_B = 2


class InMemoryTaskRepository:
    """TaskRepository for tests. Newest first, scope-filtered lists."""

    def __init__(self) -> None:
        self._tasks: dict[int, Task] = {}
        self._next_id = 1
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.get_calls = 0

    async def list(self, scope: ScopeFilter, filters: Optional[TaskFilters] = None) -> Sequence[Task]:
        tasks = [t for t in self._tasks.values() if scope.admits(t)]
        if filters is not None:
            if filters.status is not None:
                tasks = [t for t in tasks if t.status == filters.status]
            if filters.category is not None:
                tasks = [t for t in tasks if t.category == filters.category]
            if filters.created_by is not None:
                tasks = [t for t in tasks if t.created_by == filters.created_by]
        return sorted(tasks, key=lambda t: (t.created_at, t.id), reverse=True)

    async def get(self, task_id: int) -> Optional[Task]:
        self.get_calls += 1
        task = self._tasks.get(task_id)
        return dataclasses.replace(task) if task is not None else None

    async def add(self, task: Task) -> Task:
        self._clock += timedelta(seconds=1)
        stored = dataclasses.replace(
            task, id=self._next_id, created_at=self._clock, updated_at=self._clock
        )
        self._tasks[stored.id] = stored
        self._next_id += 1
        return dataclasses.replace(stored)

    async def save(self, task: Task) -> Task:
        self._clock += timedelta(seconds=1)
        stored = dataclasses.replace(task, updated_at=self._clock)
        self._tasks[stored.id] = stored
        return dataclasses.replace(stored)

    async def delete(self, task_id: int) -> None:
        self._tasks.pop(task_id, None)

    def seed(
        self,
        *,
        created_by: int,
        tenant_id: int,
        title: str = "Seeded task",
        status: TaskStatus = TaskStatus.TODO,
        category: TaskCategory = TaskCategory.WORK,
    ) -> Task:
        """Synchronous insert for test setup."""
        self._clock += timedelta(seconds=1)
        task = Task(
            id=self._next_id,
            title=title,
            status=status,
            category=category,
            created_by=created_by,
            tenant_id=tenant_id,
            created_at=self._clock,
            updated_at=self._clock,
        )
        self._tasks[task.id] = task
        self._next_id += 1
        return task


class InMemoryAuditRepository:
    """AuditRepository + AuditReader for tests."""

    def __init__(self) -> None:
        self.records: list[AuditRecord] = []

    async def append(self, record: AuditRecord) -> None:
        self.records.append(record)

    async def query(self, query: AuditQuery, limit: int, offset: int) -> Sequence[AuditRecord]:
        rows = [r for r in self.records if r.tenant_id == query.tenant_id]
        if query.action:
            rows = [r for r in rows if r.action == query.action]
        if query.result is not None:
            rows = [r for r in rows if r.result == query.result]
        if query.actor_id is not None:
            rows = [r for r in rows if r.actor_id == query.actor_id]
        if query.resource_type:
            rows = [r for r in rows if r.resource_type == query.resource_type]
        if query.resource_id is not None:
            rows = [r for r in rows if r.resource_id == query.resource_id]
        if query.start_date is not None:
            rows = [r for r in rows if r.timestamp >= query.start_date]
        if query.end_date is not None:
            rows = [r for r in rows if r.timestamp <= query.end_date]
        rows.sort(key=lambda r: r.timestamp, reverse=True)
        return rows[offset:offset + limit]

    async def records_since(self, tenant_id: int, since: datetime) -> Sequence[AuditRecord]:
        rows = [r for r in self.records if r.tenant_id == tenant_id and r.timestamp >= since]
        return sorted(rows, key=lambda r: r.timestamp, reverse=True)


class FailingAuditRepository:
    """Audit sink that is always down."""

    def __init__(self) -> None:
        self.attempts = 0

    async def append(self, record: AuditRecord) -> None:
        self.attempts += 1
        raise RuntimeError("audit store unavailable")


@pytest.fixture
def owner() -> Principal:
    return Principal(id=1, email="owner@a.example", role=Role.OWNER, tenant_id=TENANT_A)


@pytest.fixture
def admin() -> Principal:
    return Principal(id=2, email="admin@a.example", role=Role.ADMIN, tenant_id=TENANT_A)


@pytest.fixture
def viewer() -> Principal:
    return Principal(id=3, email="viewer@a.example", role=Role.VIEWER, tenant_id=TENANT_A)


@pytest.fixture
def other_viewer() -> Principal:
    return Principal(id=4, email="viewer2@a.example", role=Role.VIEWER, tenant_id=TENANT_A)


@pytest.fixture
def foreign_owner() -> Principal:
    return Principal(id=10, email="owner@b.example", role=Role.OWNER, tenant_id=TENANT_B)


@pytest.fixture
def task_repository() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def audit_repository() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def failing_audit_repository() -> FailingAuditRepository:
    return FailingAuditRepository()
