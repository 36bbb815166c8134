"""
Meetings router - company links for a meeting.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.core.config import Settings
from relgraph.core.dependencies import get_db, get_settings
from relgraph.schemas.links import MeetingCompanySyncRequest, MeetingCompanySyncResult
from relgraph.services.link_service import LinkService

router = APIRouter(prefix="/meetings", tags=["meetings"])


@router.post("/{meeting_id}/companies", response_model=MeetingCompanySyncResult)
async def sync_meeting_companies(
    meeting_id: str,
    data: MeetingCompanySyncRequest,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings),
):
    """Replace the meeting's company list and re-link it."""
    service = LinkService(db, config=config)
    return await service.sync_meeting_company_links(
        meeting_id,
        data.companies,
        data.attendee_emails,
        confidence=data.confidence,
        linked_by=data.linked_by,
    )
