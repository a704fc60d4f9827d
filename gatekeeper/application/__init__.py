# Application layer: services that orchestrate domain and infrastructure.

from gatekeeper.application.exceptions import ApplicationError
from gatekeeper.application.task_lookup import TaskResourceLookup
from gatekeeper.application.task_repository import TaskRepository
from gatekeeper.application.task_service import TaskService

__all__ = [
    "ApplicationError",
    "TaskRepository",
    "TaskResourceLookup",
    "TaskService",
]
