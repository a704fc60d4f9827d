"""Pydantic schemas for the task API. Strict validation, no DB or infrastructure."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from gatekeeper.domain.models.task import Task, TaskCategory, TaskStatus

TITLE_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 1000


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class TaskCreateRequest(BaseModel):
    """Create payload. Tenant and creator are never accepted from the client."""

    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    category: TaskCategory = TaskCategory.WORK

    model_config = {"extra": "ignore"}


class TaskUpdateRequest(BaseModel):
    """Partial update. Omitted fields stay as they are."""

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    category: Optional[TaskCategory] = None

    model_config = {"extra": "ignore"}


class TaskFilters(BaseModel):
    status: Optional[TaskStatus] = None
    category: Optional[TaskCategory] = None
    created_by: Optional[int] = Field(None, ge=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    category: TaskCategory
    created_by: int
    tenant_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls.model_validate(task)


class TaskStatsResponse(BaseModel):
    total: int
    by_status: dict[str, int]
    by_category: dict[str, int]
    recent: list[TaskResponse]
