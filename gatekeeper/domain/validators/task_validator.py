"""Validators for task domain rules. Pure functions, no infrastructure or DB access."""

from typing import Optional

from gatekeeper.domain.exceptions import DomainValidationError
from gatekeeper.domain.schemas.task import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    TaskCreateRequest,
    TaskUpdateRequest,
)


def validate_title(title: Optional[str], *, required: bool) -> None:
    """Title must be non-blank and at most TITLE_MAX_LENGTH characters."""
    if title is None:
        if required:
            raise DomainValidationError("Task title is required")
        return
    if not title.strip():
        raise DomainValidationError(
            "Task title is required" if required else "Task title cannot be empty"
        )
    if len(title) > TITLE_MAX_LENGTH:
        raise DomainValidationError(
            f"Task title must be less than {TITLE_MAX_LENGTH} characters"
        )


def validate_description(description: Optional[str]) -> None:
    if description and len(description) > DESCRIPTION_MAX_LENGTH:
        raise DomainValidationError(
            f"Task description must be less than {DESCRIPTION_MAX_LENGTH} characters"
        )


def validate_task_create_request(req: TaskCreateRequest) -> None:
    """Raises DomainValidationError on the first violated rule."""
    validate_title(req.title, required=True)
    validate_description(req.description)


def validate_task_update_request(req: TaskUpdateRequest) -> None:
    validate_title(req.title, required=False)
    validate_description(req.description)
