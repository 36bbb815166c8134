"""
Contacts router - attendee sync and email management.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.core.config import Settings
from relgraph.core.dependencies import get_db, get_settings
from relgraph.schemas.contact import (
    AttendeeSyncRequest,
    AutoLinkResult,
    ContactCreate,
    ContactEmailAdd,
    ContactEmailRead,
    ContactRead,
    ContactSyncResult,
    ContactUpdate,
    MeetingContactSyncResult,
    PrimaryCompanyRequest,
)
from relgraph.services.contact_sync_service import ContactSyncService

router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.post("/sync/attendees", response_model=ContactSyncResult)
async def sync_attendees(
    data: AttendeeSyncRequest,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings),
):
    service = ContactSyncService(db, config=config)
    return await service.sync_contacts_from_attendees(data.attendees, data.attendee_emails)


@router.post("/sync/meetings", response_model=MeetingContactSyncResult)
async def sync_meetings(db: AsyncSession = Depends(get_db), config: Settings = Depends(get_settings)):
    """Rebuild contacts from every stored meeting."""
    service = ContactSyncService(db, config=config)
    return await service.sync_contacts_from_meetings()


@router.post("/auto-link", response_model=AutoLinkResult)
async def auto_link(
    limit: Optional[int] = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_settings),
):
    service = ContactSyncService(db, config=config)
    return AutoLinkResult(linked=await service.auto_link_contacts_by_domain(limit))


@router.post("", response_model=ContactRead, status_code=status.HTTP_201_CREATED)
async def create_contact(data: ContactCreate, db: AsyncSession = Depends(get_db)):
    service = ContactSyncService(db)
    return await service.create_contact(data)


@router.get("/{contact_id}", response_model=ContactRead)
async def get_contact(contact_id: str, db: AsyncSession = Depends(get_db)):
    service = ContactSyncService(db)
    return await service.get_contact(contact_id)


@router.patch("/{contact_id}", response_model=ContactRead)
async def update_contact(contact_id: str, changes: ContactUpdate, db: AsyncSession = Depends(get_db)):
    service = ContactSyncService(db)
    return await service.update_contact(contact_id, changes)


@router.put("/{contact_id}/primary-company", response_model=ContactRead)
async def set_primary_company(contact_id: str, data: PrimaryCompanyRequest, db: AsyncSession = Depends(get_db)):
    service = ContactSyncService(db)
    return await service.set_contact_primary_company(contact_id, data.company_id)


@router.get("/{contact_id}/emails", response_model=List[ContactEmailRead])
async def list_contact_emails(contact_id: str, db: AsyncSession = Depends(get_db)):
    service = ContactSyncService(db)
    return await service.list_contact_emails(contact_id)


@router.post("/{contact_id}/emails", response_model=List[ContactEmailRead])
async def add_contact_email(contact_id: str, data: ContactEmailAdd, db: AsyncSession = Depends(get_db)):
    """Attach an email; 409 when another contact owns it."""
    service = ContactSyncService(db)
    return await service.add_contact_email(contact_id, data.email, is_primary=data.is_primary)


@router.delete("/{contact_id}/emails/{email}", response_model=List[ContactEmailRead])
async def remove_contact_email(contact_id: str, email: str, db: AsyncSession = Depends(get_db)):
    """Detach an email; the oldest remaining address becomes primary."""
    service = ContactSyncService(db)
    return await service.remove_contact_email(contact_id, email)
