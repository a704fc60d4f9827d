"""Pydantic schemas for the audit API."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from gatekeeper.governance.audit_models import AuditRecord, AuditResult


class AuditRecordResponse(BaseModel):
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
    signature: Optional[str] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_record(cls, record: AuditRecord) -> "AuditRecordResponse":
        return cls.model_validate(record)


class AuditLogPageResponse(BaseModel):
    logs: list[AuditRecordResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class AuditRecentResponse(BaseModel):
    recent_activity: list[AuditRecordResponse]
    total: int


class AuditSummaryResponse(BaseModel):
    total_logs: int
    success_count: int
    failure_count: int
    error_count: int
    denied_count: int
    top_actions: list[dict[str, Any]]
    top_actors: list[dict[str, Any]]
    recent_activity: list[AuditRecordResponse]


class AuditStatsResponse(BaseModel):
    period: str
    total_actions: int
    success_rate: float
    error_rate: float
    denied_rate: float
    average_latency_ms: float
    most_active_actor: dict[str, Any]
    most_accessed_resource: dict[str, Any]
    hourly_distribution: list[dict[str, int]]
