"""
Audit log model.

Records administrative changes (merges, manual classification) for review.
"""

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from relgraph.models.base_model import TimestampedModel


class AuditLog(TimestampedModel):
    __tablename__ = "audit_log"

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # company, contact, meeting_company_link
    entity_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)  # create, update, delete
    changes_json: Mapped[Optional[str]] = mapped_column("changes", Text, nullable=True)
