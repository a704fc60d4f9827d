"""DB-backed audit repository. Insert-only writes; tenant-scoped reads."""

from datetime import datetime
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gatekeeper.governance.audit_models import AuditRecord, AuditResult
from gatekeeper.governance.audit_repository import AuditQuery
from gatekeeper.infrastructure.database.models import AuditLogRow, as_aware


def _to_record(row: AuditLogRow) -> AuditRecord:
    return AuditRecord(
        action=row.action,
        result=AuditResult(row.result),
        timestamp=as_aware(row.timestamp),
        latency_ms=row.latency_ms,
        actor_id=row.actor_id,
        tenant_id=row.tenant_id,
        resource_type=row.resource_type,
        resource_id=row.resource_id,
        http_method=row.http_method,
        endpoint=row.endpoint,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        details=row.details,
        error_message=row.error_message,
        correlation_id=row.correlation_id,
        signature=row.signature,
    )


class DbAuditRepository:
    """Implements AuditRepository (append) and AuditReader. Exposes no update or delete."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def append(self, record: AuditRecord) -> None:
        row = AuditLogRow(
            action=record.action,
            result=record.result.value,
            actor_id=record.actor_id,
            tenant_id=record.tenant_id,
            resource_type=record.resource_type,
            resource_id=record.resource_id,
            http_method=record.http_method,
            endpoint=record.endpoint,
            ip_address=record.ip_address,
            user_agent=record.user_agent,
            latency_ms=record.latency_ms,
            timestamp=record.timestamp,
            details=record.details,
            error_message=record.error_message,
            correlation_id=record.correlation_id,
            signature=record.signature,
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()

    async def query(self, query: AuditQuery, limit: int, offset: int) -> Sequence[AuditRecord]:
        stmt = select(AuditLogRow).where(AuditLogRow.tenant_id == query.tenant_id)
        if query.action:
            stmt = stmt.where(AuditLogRow.action == query.action)
        if query.result is not None:
            stmt = stmt.where(AuditLogRow.result == query.result.value)
        if query.actor_id is not None:
            stmt = stmt.where(AuditLogRow.actor_id == query.actor_id)
        if query.resource_type:
            stmt = stmt.where(AuditLogRow.resource_type == query.resource_type)
        if query.resource_id is not None:
            stmt = stmt.where(AuditLogRow.resource_id == query.resource_id)
        if query.start_date is not None:
            stmt = stmt.where(AuditLogRow.timestamp >= query.start_date)
        if query.end_date is not None:
            stmt = stmt.where(AuditLogRow.timestamp <= query.end_date)
        stmt = stmt.order_by(AuditLogRow.timestamp.desc(), AuditLogRow.id.desc())
        stmt = stmt.limit(limit).offset(offset)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [_to_record(row) for row in result.scalars().all()]

    async def records_since(self, tenant_id: int, since: datetime) -> Sequence[AuditRecord]:
        stmt = (
            select(AuditLogRow)
            .where(AuditLogRow.tenant_id == tenant_id, AuditLogRow.timestamp >= since)
            .order_by(AuditLogRow.timestamp.desc(), AuditLogRow.id.desc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [_to_record(row) for row in result.scalars().all()]
