"""Governance: audit records, durable append, audit queue and audit reads. No FastAPI."""

from gatekeeper.governance.audit_logger import AuditLogger
from gatekeeper.governance.audit_models import AuditRecord, AuditResult
from gatekeeper.governance.audit_query import AuditQueryService
from gatekeeper.governance.audit_queue import AuditQueue

__all__ = [
    "AuditLogger",
    "AuditQueryService",
    "AuditQueue",
    "AuditRecord",
    "AuditResult",
]
