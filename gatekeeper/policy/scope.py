"""Data-visibility filters for list/query paths. Tenant always comes from the principal."""

from dataclasses import dataclass
from typing import Optional

from gatekeeper.security.principal import Principal
from gatekeeper.security.rbac import OwnedResource, has_permission


@dataclass(frozen=True)
class ScopeFilter:
    """
    Restriction a storage collaborator must apply on every tenant-owned list.
    owner_id None means every resource of the tenant is visible.
    """

    tenant_id: int
    owner_id: Optional[int] = None

    def admits(self, resource: OwnedResource) -> bool:
        if resource.tenant_id != self.tenant_id:
            return False
        if self.owner_id is not None and resource.owner_id != self.owner_id:
            return False
        return True


class ScopeResolver:
    """
    Principal -> ScopeFilter. Pure: equal principals give equal filters.
    Must agree with the single-resource read rule (can_read_task).
    """

    @staticmethod
    def scope_for(principal: Principal) -> ScopeFilter:
        if has_permission(principal.role, "update_any"):
            return ScopeFilter(tenant_id=principal.tenant_id)
        return ScopeFilter(tenant_id=principal.tenant_id, owner_id=principal.id)

    @staticmethod
    def tenant_scope(principal: Principal) -> ScopeFilter:
        """Tenant-only filter for tenant-wide collections (e.g. audit logs)."""
        return ScopeFilter(tenant_id=principal.tenant_id)
