"""Security: principal, role predicates, tenant isolation, audit signing. No FastAPI."""

from gatekeeper.security.principal import Principal, Role
from gatekeeper.security.signing import AuditSigner
from gatekeeper.security.tenant_context import TenantContext

__all__ = [
    "AuditSigner",
    "Principal",
    "Role",
    "TenantContext",
]
