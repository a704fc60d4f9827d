"""Rule factories and the standard operation -> rules bindings."""

from typing import Iterable, Optional

from gatekeeper.policy.models import MissingResource, PolicyRule
from gatekeeper.policy.registry import PolicyRegistry
from gatekeeper.policy.resolvers import ByRouteParam, ResolverSpec
from gatekeeper.security import rbac
from gatekeeper.security.principal import Role

TASK = "task"

# Operation ids
TASKS_LIST = "tasks.list"
TASKS_MINE = "tasks.mine"
TASKS_STATS = "tasks.stats"
TASKS_READ = "tasks.read"
TASKS_CREATE = "tasks.create"
TASKS_UPDATE = "tasks.update"
TASKS_DELETE = "tasks.delete"
AUDIT_LOGS = "audit.logs"
AUDIT_SUMMARY = "audit.summary"
AUDIT_STATS = "audit.stats"
AUDIT_RECENT = "audit.recent"

ALL_OPERATIONS = (
    TASKS_LIST,
    TASKS_MINE,
    TASKS_STATS,
    TASKS_READ,
    TASKS_CREATE,
    TASKS_UPDATE,
    TASKS_DELETE,
    AUDIT_LOGS,
    AUDIT_SUMMARY,
    AUDIT_STATS,
    AUDIT_RECENT,
)

TASK_BY_ROUTE_ID = ByRouteParam(TASK, "id")

CROSS_TENANT_MESSAGE = "Access denied: Resource belongs to different organization"


class RolePolicies:
    """Context-only rules on the principal's role."""

    @staticmethod
    def require_owner(error_message: Optional[str] = None) -> PolicyRule:
        return PolicyRule(
            name="require_owner",
            predicate=lambda principal, context, resource: rbac.is_owner(principal),
            error_message=error_message or "Access denied: Owner role required",
        )

    @staticmethod
    def require_admin_or_owner(error_message: Optional[str] = None) -> PolicyRule:
        return PolicyRule(
            name="require_admin_or_owner",
            predicate=lambda principal, context, resource: rbac.is_admin_or_owner(principal),
            error_message=error_message or "Access denied: Admin or Owner role required",
        )

    @staticmethod
    def require_authenticated(error_message: Optional[str] = None) -> PolicyRule:
        return PolicyRule(
            name="require_authenticated",
            predicate=lambda principal, context, resource: principal is not None,
            error_message=error_message or "Access denied: Authentication required",
        )

    @staticmethod
    def require_roles(roles: Iterable[Role], error_message: Optional[str] = None) -> PolicyRule:
        allowed = frozenset(roles)
        names = ", ".join(sorted(r.value for r in allowed))
        return PolicyRule(
            name="require_roles",
            predicate=lambda principal, context, resource: principal.role in allowed,
            error_message=error_message or f"Access denied: Required roles: {names}",
        )


class TenantPolicies:
    @staticmethod
    def same_tenant(
        resolver: ResolverSpec,
        error_message: Optional[str] = None,
        on_missing: MissingResource = MissingResource.DENY,
    ) -> PolicyRule:
        """Deny whenever the resolved resource is in another tenant, or missing."""
        return PolicyRule(
            name="same_tenant",
            predicate=lambda principal, context, resource: rbac.is_same_tenant(principal, resource),
            error_message=error_message or CROSS_TENANT_MESSAGE,
            resolver=resolver,
            on_missing=on_missing,
        )


class TaskPolicies:
    @staticmethod
    def can_read_task(
        error_message: Optional[str] = None,
        on_missing: MissingResource = MissingResource.DENY,
    ) -> PolicyRule:
        return PolicyRule(
            name="can_read_task",
            predicate=lambda principal, context, resource: rbac.can_read_task(principal, resource),
            error_message=error_message or "Access denied: Cannot read this task",
            resolver=TASK_BY_ROUTE_ID,
            on_missing=on_missing,
        )

    @staticmethod
    def can_create_task(error_message: Optional[str] = None) -> PolicyRule:
        return PolicyRule(
            name="can_create_task",
            predicate=lambda principal, context, resource: rbac.can_create_task(principal),
            error_message=error_message or "Access denied: Cannot create tasks",
        )

    @staticmethod
    def can_update_task(
        error_message: Optional[str] = None,
        on_missing: MissingResource = MissingResource.DENY,
    ) -> PolicyRule:
        return PolicyRule(
            name="can_update_task",
            predicate=lambda principal, context, resource: rbac.can_update_task(principal, resource),
            error_message=error_message or "Access denied: insufficient permission to update this task",
            resolver=TASK_BY_ROUTE_ID,
            on_missing=on_missing,
        )

    @staticmethod
    def can_update_own_task(error_message: Optional[str] = None) -> PolicyRule:
        """Only the creator, whatever the role."""
        return PolicyRule(
            name="can_update_own_task",
            predicate=lambda principal, context, resource: (
                rbac.is_same_tenant(principal, resource) and rbac.is_creator(principal, resource)
            ),
            error_message=error_message or "Access denied: Can only update your own tasks",
            resolver=TASK_BY_ROUTE_ID,
        )

    @staticmethod
    def can_delete_task(
        error_message: Optional[str] = None,
        on_missing: MissingResource = MissingResource.DENY,
    ) -> PolicyRule:
        return PolicyRule(
            name="can_delete_task",
            predicate=lambda principal, context, resource: rbac.can_delete_task(principal, resource),
            error_message=error_message or "Access denied: Cannot delete tasks",
            resolver=TASK_BY_ROUTE_ID,
            on_missing=on_missing,
        )


class AuditPolicies:
    @staticmethod
    def can_view_audit_logs(error_message: Optional[str] = None) -> PolicyRule:
        return PolicyRule(
            name="can_view_audit_logs",
            predicate=lambda principal, context, resource: rbac.can_view_audit_logs(principal),
            error_message=error_message or "Access denied: Cannot view audit logs",
        )


def register_default_rules(
    registry: PolicyRegistry,
    *,
    missing_task: MissingResource = MissingResource.NOT_FOUND,
) -> PolicyRegistry:
    """
    Bind the standard task and audit operations. Single-task operations put the
    tenant check first so a cross-tenant request is denied before ownership is
    looked at. missing_task picks 404-before-authorization (NOT_FOUND) or
    deny-on-missing (DENY) for those operations.
    """
    registry.declare_operations(ALL_OPERATIONS)

    registry.register_rule(TASKS_LIST, RolePolicies.require_authenticated())
    registry.register_rule(TASKS_MINE, RolePolicies.require_authenticated())
    registry.register_rule(TASKS_STATS, RolePolicies.require_authenticated())

    registry.register_rule(TASKS_READ, TenantPolicies.same_tenant(TASK_BY_ROUTE_ID, on_missing=missing_task))
    registry.register_rule(TASKS_READ, TaskPolicies.can_read_task(on_missing=missing_task))

    registry.register_rule(TASKS_CREATE, TaskPolicies.can_create_task())

    registry.register_rule(TASKS_UPDATE, TenantPolicies.same_tenant(TASK_BY_ROUTE_ID, on_missing=missing_task))
    registry.register_rule(TASKS_UPDATE, TaskPolicies.can_update_task(on_missing=missing_task))

    registry.register_rule(TASKS_DELETE, TenantPolicies.same_tenant(TASK_BY_ROUTE_ID, on_missing=missing_task))
    registry.register_rule(TASKS_DELETE, TaskPolicies.can_delete_task(on_missing=missing_task))

    for operation_id in (AUDIT_LOGS, AUDIT_SUMMARY, AUDIT_STATS, AUDIT_RECENT):
        registry.register_rule(operation_id, AuditPolicies.can_view_audit_logs())

    return registry


def default_registry(*, missing_task: MissingResource = MissingResource.NOT_FOUND) -> PolicyRegistry:
    """Fresh registry with the standard bindings, frozen."""
    return register_default_rules(PolicyRegistry(), missing_task=missing_task).freeze()
