# backend/pawledger/repositories/audit_repository.py
"""Audit trail persistence for staff-initiated actions."""

from typing import Any, Dict, List, Optional, cast

from sqlalchemy.orm import Session

from pawledger.models.audit_log import AuditLog
from pawledger.repositories.base_repository import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    def __init__(self, db: Session):
        super().__init__(db, AuditLog)

    def record(
        self,
        *,
        staff_id: Optional[str],
        action: str,
        entity_type: str,
        entity_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        return self.create(
            staff_id=staff_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            details=details or {},
        )

    def list_for_entity(self, entity_type: str, entity_id: str) -> List[AuditLog]:
        query = (
            self._build_query()
            .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == str(entity_id))
            .order_by(AuditLog.created_at)
        )
        return cast(List[AuditLog], self._execute_query(query))
