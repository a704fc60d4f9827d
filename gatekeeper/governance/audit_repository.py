"""Audit repository protocols. Governance layer depends on these; infrastructure implements them."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Sequence

from gatekeeper.governance.audit_models import AuditRecord, AuditResult


class AuditRepository(Protocol):
    """Append-only sink for immutable audit records. No update, no delete."""

    async def append(self, record: AuditRecord) -> None:
        """Persist record durably. Raise on failure; never mutate stored records."""
        ...


@dataclass(frozen=True)
class AuditQuery:
    """Read filters. tenant_id is mandatory and always comes from the caller's principal."""

    tenant_id: int
    action: Optional[str] = None
    result: Optional[AuditResult] = None
    actor_id: Optional[int] = None
    resource_type: Optional[str] = None
    resource_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class AuditReader(Protocol):
    """Tenant-scoped reads over the audit trail."""

    async def query(
        self,
        query: AuditQuery,
        limit: int,
        offset: int,
    ) -> Sequence[AuditRecord]:
        """Matching records, newest first."""
        ...

    async def records_since(self, tenant_id: int, since: datetime) -> Sequence[AuditRecord]:
        """All tenant records with timestamp >= since, newest first."""
        ...
