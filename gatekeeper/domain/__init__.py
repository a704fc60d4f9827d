"""Domain layer: models, schemas, validators, exceptions. Pure business logic only."""

from gatekeeper.domain.exceptions import (
    DomainError,
    DomainValidationError,
    NotFoundError,
)

__all__ = [
    "DomainError",
    "DomainValidationError",
    "NotFoundError",
]
