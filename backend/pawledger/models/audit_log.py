# backend/pawledger/models/audit_log.py
"""
Audit logging model capturing staff-initiated actions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from pawledger.database import Base
from pawledger.models._columns import JSON_TYPE, new_id, now_utc


class AuditLog(Base):
    """Persistence model for audit trail entries."""

    __tablename__ = "audit_log"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    staff_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("staff_users.id", ondelete="SET NULL")
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON_TYPE)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )

    __table_args__ = (Index("idx_audit_log_entity", "entity_type", "entity_id"),)

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"
