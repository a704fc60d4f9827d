"""Domain model for tasks. Pure business semantics, no ORM or infrastructure."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from gatekeeper.policy.models import Resource

TASK_RESOURCE_TYPE = "task"

# tasks.id and tasks.created_by are 32-bit integer columns
MAX_TASK_ID = 2**31 - 1


class TaskStatus(str, Enum):
    TODO = "todo"
    DOING = "doing"
    DONE = "done"


class TaskCategory(str, Enum):
    WORK = "work"
    PERSONAL = "personal"


@dataclass
class Task:
    """A tenant-owned task. created_by and tenant_id are set once, from the creating principal."""

    id: Optional[int]
    title: str
    status: TaskStatus
    category: TaskCategory
    created_by: int
    tenant_id: int
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def owner_id(self) -> int:
        return self.created_by

    def to_resource(self) -> Resource:
        """Projection used by policy rules."""
        if self.id is None:
            raise ValueError("Unsaved task has no resource identity")
        return Resource(
            id=self.id,
            owner_id=self.created_by,
            tenant_id=self.tenant_id,
            resource_type=TASK_RESOURCE_TYPE,
        )
