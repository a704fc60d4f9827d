# gatekeeper/infrastructure/database/models.py

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Column, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.sql import func

from gatekeeper.infrastructure.database.session import Base


class TaskRow(Base):
    """ORM model for tasks. tenant_id and created_by are written once at insert."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(16), nullable=False)
    category = Column(String(16), nullable=False)
    created_by = Column(Integer, nullable=False, index=True)
    tenant_id = Column(Integer, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class AuditLogRow(Base):
    """ORM model for the append-only audit trail. Rows are inserted, never updated or deleted."""

    __tablename__ = "audit_log"
    __table_args__ = (Index("ix_audit_log_tenant_timestamp", "tenant_id", "timestamp"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(64), nullable=False, index=True)
    result = Column(String(16), nullable=False)
    actor_id = Column(BigInteger, nullable=True)
    tenant_id = Column(BigInteger, nullable=True)
    resource_type = Column(String(64), nullable=True)
    resource_id = Column(BigInteger, nullable=True)
    http_method = Column(String(16), nullable=True)
    # request-derived, unbounded
    endpoint = Column(Text, nullable=True)
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    latency_ms = Column(Float, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    details = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    correlation_id = Column(Text, nullable=True)
    signature = Column(String(128), nullable=True)


def as_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Some drivers (sqlite) hand back naive datetimes; pin them to local time."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=datetime.now().astimezone().tzinfo)
    return value
