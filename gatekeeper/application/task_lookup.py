"""Adapts the task repository to the policy layer's ResourceLookup protocol."""

from typing import Optional

from gatekeeper.application.task_repository import TaskRepository
from gatekeeper.policy.models import Resource


class TaskResourceLookup:
    """Resolve a task id to its policy Resource projection. None if it does not exist."""

    def __init__(self, repository: TaskRepository) -> None:
        self._repository = repository

    async def get_resource(self, resource_id: int) -> Optional[Resource]:
        task = await self._repository.get(resource_id)
        if task is None:
            return None
        return task.to_resource()
