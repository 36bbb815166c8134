"""
Emails router - participant ingestion for a message.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.core.config import Settings
from relgraph.core.dependencies import get_db, get_settings
from relgraph.schemas.email_ingest import EmailIngestRequest, EmailIngestResult, EmailParticipantInput
from relgraph.services.email_ingest_service import EmailIngestService

router = APIRouter(prefix="/emails", tags=["emails"])


class ParticipantsRequest(BaseModel):
    """Message header participants; the message id comes from the path."""
    participants: List[EmailParticipantInput] = Field(default_factory=list)
    company_id: Optional[str] = None
    confidence: float = Field(default=1.0, ge=0, le=1)
    reason: Optional[str] = None
    account_email: Optional[str] = None
    subject: Optional[str] = None
    sent_at: Optional[datetime] = None
    received_at: Optional[datetime] = None


@router.post("/{message_id}/participants", response_model=EmailIngestResult)
async def ingest_participants(
    message_id: str,
    data: ParticipantsRequest,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings),
):
    service = EmailIngestService(db, config=config)
    return await service.ingest_email_participants(EmailIngestRequest(message_id=message_id, **data.model_dump()))
