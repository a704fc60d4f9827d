"""Immutable audit record model. Domain-level immutability."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class AuditResult(str, Enum):
    SUCCESS = "success"
    DENIED = "denied"
    FAILURE = "failure"
    ERROR = "error"


@dataclass(frozen=True)
class AuditRecord:
    """
    Immutable audit record: who (actor, tenant), what (action, target),
    outcome, how long, when (UTC), and why (details / error_message).
    signature is the HMAC over every other field, set before persistence.
    """

    action: str
    result: AuditResult
    timestamp: datetime
    latency_ms: float
    actor_id: Optional[int] = None
    tenant_id: Optional[int] = None
    resource_type: Optional[str] = None
    resource_id: Optional[int] = None
    http_method: Optional[str] = None
    endpoint: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    details: Optional[str] = None
    error_message: Optional[str] = None
    correlation_id: Optional[str] = None
    signature: Optional[str] = field(default=None, compare=False)

    def signable_fields(self) -> Dict[str, Any]:
        """Everything except the signature, in JSON-friendly form."""
        return {
            "action": self.action,
            "result": self.result.value,
            "timestamp": self.timestamp.isoformat(),
            "latency_ms": self.latency_ms,
            "actor_id": self.actor_id,
            "tenant_id": self.tenant_id,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "http_method": self.http_method,
            "endpoint": self.endpoint,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "details": self.details,
            "error_message": self.error_message,
            "correlation_id": self.correlation_id,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for JSON logging and API responses."""
        return {**self.signable_fields(), "signature": self.signature}
