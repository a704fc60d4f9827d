"""Domain schemas. Request/response and validation."""

from gatekeeper.domain.schemas.task import (
    TaskCreateRequest,
    TaskFilters,
    TaskResponse,
    TaskStatsResponse,
    TaskUpdateRequest,
)

__all__ = [
    "TaskCreateRequest",
    "TaskFilters",
    "TaskResponse",
    "TaskStatsResponse",
    "TaskUpdateRequest",
]
