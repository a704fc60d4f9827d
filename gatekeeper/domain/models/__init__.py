"""Domain models. Pure business entities."""

from gatekeeper.domain.models.task import (
    TASK_RESOURCE_TYPE,
    Task,
    TaskCategory,
    TaskStatus,
)

__all__ = [
    "TASK_RESOURCE_TYPE",
    "Task",
    "TaskCategory",
    "TaskStatus",
]
