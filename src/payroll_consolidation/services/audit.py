"""Audit trail recording shared by the mutating services."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_consolidation.models import AuditEvent


async def record_audit(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
    action: str,
    actor_id: UUID | None = None,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
) -> AuditEvent:
    """Add an audit event to the current unit of work."""
    event = AuditEvent(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_id=actor_id,
        before_json=before,
        after_json=after,
    )
    session.add(event)
    return event


async def list_audit_events(
    session: AsyncSession, entity_type: str, entity_id: UUID
) -> list[AuditEvent]:
    """Audit events for one entity, oldest first."""
    result = await session.execute(
        select(AuditEvent)
        .where(AuditEvent.entity_type == entity_type, AuditEvent.entity_id == entity_id)
        .order_by(AuditEvent.created_at, AuditEvent.audit_event_id)
    )
    return list(result.scalars().all())
