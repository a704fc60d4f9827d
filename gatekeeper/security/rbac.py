"""Role-based access control predicates. Pure functions, no FastAPI."""

from typing import Optional, Protocol

from gatekeeper.security.principal import Principal, Role
from gatekeeper.security.tenant_context import TenantContext


class OwnedResource(Protocol):
    """Anything carrying an owner and a tenant (e.g. policy Resource, domain Task)."""

    owner_id: Optional[int]
    tenant_id: Optional[int]


# Permission matrix (role-only actions; resource checks are layered on top):
# Role    Read  Create  UpdateAny  Delete  ViewAudit
# OWNER   ✓     ✓       ✓          ✓       ✓
# ADMIN   ✓     ✓       ✓          ✗       ✓
# VIEWER  ✓     ✗       ✗          ✗       ✗

_ACTION_PERMISSIONS: dict[tuple[Role, str], bool] = {
    (Role.OWNER, "read"): True,
    (Role.OWNER, "create"): True,
    (Role.OWNER, "update_any"): True,
    (Role.OWNER, "delete"): True,
    (Role.OWNER, "view_audit"): True,
    (Role.ADMIN, "read"): True,
    (Role.ADMIN, "create"): True,
    (Role.ADMIN, "update_any"): True,
    (Role.ADMIN, "delete"): False,
    (Role.ADMIN, "view_audit"): True,
    (Role.VIEWER, "read"): True,
    (Role.VIEWER, "create"): False,
    (Role.VIEWER, "update_any"): False,
    (Role.VIEWER, "delete"): False,
    (Role.VIEWER, "view_audit"): False,
}


def has_permission(role: Role, action: str) -> bool:
    return _ACTION_PERMISSIONS.get((role, action), False)


def has_role_or_higher(principal: Principal, required: Role) -> bool:
    return principal.role.rank >= required.rank


def is_owner(principal: Principal) -> bool:
    return principal.role is Role.OWNER


def is_admin_or_owner(principal: Principal) -> bool:
    return has_role_or_higher(principal, Role.ADMIN)


def is_viewer(principal: Principal) -> bool:
    return principal.role is Role.VIEWER


def is_same_tenant(principal: Principal, resource: Optional[OwnedResource]) -> bool:
    if resource is None:
        return False
    return TenantContext.is_same_tenant(resource.tenant_id, principal.tenant_id)


def is_creator(principal: Principal, resource: Optional[OwnedResource]) -> bool:
    if resource is None or resource.owner_id is None:
        return False
    return resource.owner_id == principal.id


def can_read_task(principal: Principal, task: Optional[OwnedResource]) -> bool:
    """
    Any role may read, but only inside its tenant, and viewers only what they
    created. Mirrors ScopeResolver so list and single reads agree.
    """
    if not is_same_tenant(principal, task):
        return False
    if not has_permission(principal.role, "read"):
        return False
    if has_permission(principal.role, "update_any"):
        return True
    return is_creator(principal, task)


def can_create_task(principal: Principal) -> bool:
    return has_permission(principal.role, "create")


def can_update_task(principal: Principal, task: Optional[OwnedResource]) -> bool:
    if not is_same_tenant(principal, task):
        return False
    if has_permission(principal.role, "update_any"):
        return True
    if is_viewer(principal):
        return is_creator(principal, task)
    return False


def can_delete_task(principal: Principal, task: Optional[OwnedResource]) -> bool:
    if not is_same_tenant(principal, task):
        return False
    return has_permission(principal.role, "delete")


def can_view_audit_logs(principal: Principal) -> bool:
    return has_permission(principal.role, "view_audit")
