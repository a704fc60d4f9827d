"""Fixtures for policy tests: resolver over the in-memory task repository, engine factory."""

import pytest

from gatekeeper.application.task_lookup import TaskResourceLookup
from gatekeeper.policy.engine import PolicyEngine
from gatekeeper.policy.models import RequestContext
from gatekeeper.policy.resolvers import ResourceResolver
from gatekeeper.policy.rules import TASK, default_registry


@pytest.fixture
def resolver(task_repository):
    return ResourceResolver({TASK: TaskResourceLookup(task_repository)})


@pytest.fixture
def make_engine(resolver):
    def _make(registry=None, **kwargs):
        return PolicyEngine(registry or default_registry(), resolver, **kwargs)

    return _make


@pytest.fixture
def task_context():
    """RequestContext for a single-task route."""

    def _ctx(task_id, method="PATCH"):
        return RequestContext(
            http_method=method,
            endpoint=f"/tasks/{task_id}",
            route_params={"id": str(task_id)},
            resource_type=TASK,
            resource_id=task_id,
        )

    return _ctx
