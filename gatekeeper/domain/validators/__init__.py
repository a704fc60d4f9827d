"""Domain validators. Pure validation functions."""

from gatekeeper.domain.validators.task_validator import (
    validate_description,
    validate_task_create_request,
    validate_task_update_request,
    validate_title,
)

__all__ = [
    "validate_description",
    "validate_task_create_request",
    "validate_task_update_request",
    "validate_title",
]
