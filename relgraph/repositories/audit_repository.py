"""
Repository for the audit log.
"""

import json
from typing import Any, Dict, List, Optional

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.models.audit import AuditLog


class AuditRepository:
    """Append-only audit entries for administrative changes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        changes: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        entry = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            changes_json=json.dumps(changes, default=str, sort_keys=True) if changes is not None else None,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def list_for_entity(self, entity_type: str, entity_id: str) -> List[AuditLog]:
        result = await self.db.execute(
            select(AuditLog)
            .where(and_(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id))
            .order_by(AuditLog.created_at.asc())
        )
        return list(result.scalars().all())
