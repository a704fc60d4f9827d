"""Task repository protocol. Application layer depends on this; infrastructure implements it."""

from typing import Optional, Protocol, Sequence

from gatekeeper.domain.models.task import Task
from gatekeeper.domain.schemas.task import TaskFilters
from gatekeeper.policy.scope import ScopeFilter


class TaskRepository(Protocol):
    """
    Storage for tasks. Every list applies a ScopeFilter; it is the only
    sanctioned path for tenant/owner-scoped reads.
    """

    async def list(self, scope: ScopeFilter, filters: Optional[TaskFilters] = None) -> Sequence[Task]:
        """Tasks admitted by scope (and filters), newest first."""
        ...

    async def get(self, task_id: int) -> Optional[Task]:
        """Task by id regardless of tenant, or None. Authorization happens elsewhere."""
        ...

    async def add(self, task: Task) -> Task:
        """Insert and return the task with id and timestamps set."""
        ...

    async def save(self, task: Task) -> Task:
        """Persist changes to an existing task."""
        ...

    async def delete(self, task_id: int) -> None:
        ...
