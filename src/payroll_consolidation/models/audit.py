"""Audit trail model."""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from payroll_consolidation.models.base import Base, JSONType, TimestampMixin


class AuditEvent(Base, TimestampMixin):
    """Audit trail entry."""

    __tablename__ = "audit_event"

    audit_event_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    actor_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True)
    entity_type: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    before_json: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    after_json: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    __table_args__ = (Index("ix_audit_event_entity", "entity_type", "entity_id"),)
