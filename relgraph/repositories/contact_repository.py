"""
Repository for contacts and their email addresses.

All email-set mutations go through this class. It keeps the primary-email
invariant inside the caller's transaction:

- at most one contact_emails row per contact has is_primary set
- contacts.email equals that row's email, or is None when no rows remain
- deleting the primary promotes the oldest remaining row (created_at, email)
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import select, update, delete, or_, and_, func, exists
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.errors import EmailOwnershipError
from relgraph.models.contact import Contact, ContactEmail, OrgCompanyContact

logger = logging.getLogger(__name__)


class ContactRepository:
    """Data access for contacts, contact_emails and company affiliations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, contact_id: str) -> Optional[Contact]:
        if not contact_id:
            return None
        return await self.db.get(Contact, contact_id)

    async def get_by_email(self, email: str) -> Optional[Contact]:
        """Contact whose primary email or any attached email matches (case-insensitive)."""
        key = (email or "").strip().lower()
        if not key:
            return None
        owns_email = exists().where(
            and_(
                ContactEmail.contact_id == Contact.id,
                func.lower(ContactEmail.email) == key,
            )
        )
        result = await self.db.execute(
            select(Contact)
            .where(or_(func.lower(Contact.email) == key, owns_email))
            .order_by(Contact.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def resolve_ids_by_emails(self, emails: List[str]) -> Dict[str, str]:
        keys = sorted({(e or "").strip().lower() for e in emails if e and e.strip()})
        if not keys:
            return {}
        mapping: Dict[str, str] = {}
        rows = await self.db.execute(
            select(ContactEmail.email, ContactEmail.contact_id).where(func.lower(ContactEmail.email).in_(keys))
        )
        for email, contact_id in rows.all():
            mapping.setdefault(email.lower(), contact_id)
        rows = await self.db.execute(
            select(Contact.email, Contact.id).where(func.lower(Contact.email).in_(keys))
        )
        for email, contact_id in rows.all():
            mapping.setdefault(email.lower(), contact_id)
        return mapping

    async def create(self, **values) -> Contact:
        contact = Contact(**values)
        self.db.add(contact)
        await self.db.flush()
        return contact

    async def list_without_primary_company(self, limit: int) -> List[Contact]:
        result = await self.db.execute(
            select(Contact)
            .where(Contact.primary_company_id.is_(None))
            .order_by(Contact.created_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Email set
    # ------------------------------------------------------------------
    async def list_emails(self, contact_id: str) -> List[ContactEmail]:
        """Primary first, then oldest first."""
        result = await self.db.execute(
            select(ContactEmail)
            .where(ContactEmail.contact_id == contact_id)
            .order_by(ContactEmail.is_primary.desc(), ContactEmail.created_at.asc(), ContactEmail.email.asc())
        )
        return list(result.scalars().all())

    async def get_email_row(self, email: str) -> Optional[ContactEmail]:
        result = await self.db.execute(
            select(ContactEmail).where(func.lower(ContactEmail.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def attach_email(self, contact: Contact, email: str, make_primary: bool = False) -> bool:
        """
        Attach a normalized email to the contact.

        Raises EmailOwnershipError when the address belongs to someone else.
        Returns True when a new row was written.
        """
        row = await self.get_email_row(email)
        if row is not None and row.contact_id != contact.id:
            raise EmailOwnershipError(email, row.contact_id)

        added = False
        if row is None:
            row = ContactEmail(contact_id=contact.id, email=email, is_primary=False)
            self.db.add(row)
            await self.db.flush()
            added = True

        if make_primary:
            await self.set_primary_email(contact, row.email)
        elif added and contact.email is None:
            # a contact with no primary adopts its first address
            await self.set_primary_email(contact, row.email)
        return added

    async def set_primary_email(self, contact: Contact, email: str) -> None:
        """Flag ``email`` as primary, clear the others and mirror it on contacts.email."""
        await self.db.execute(
            update(ContactEmail)
            .where(and_(ContactEmail.contact_id == contact.id, ContactEmail.email != email))
            .values(is_primary=False)
        )
        await self.db.execute(
            update(ContactEmail)
            .where(and_(ContactEmail.contact_id == contact.id, ContactEmail.email == email))
            .values(is_primary=True)
        )
        contact.email = email
        await self.db.flush()
        logger.debug("Contact %s primary email is now %s", contact.id, email)

    async def remove_email(self, contact: Contact, email: str) -> bool:
        """Delete one address; promote the oldest remaining row if it was primary."""
        result = await self.db.execute(
            select(ContactEmail).where(and_(ContactEmail.contact_id == contact.id, ContactEmail.email == email))
        )
        row = result.scalar_one_or_none()
        if row is None:
            return False

        was_primary = row.is_primary or contact.email == email
        await self.db.delete(row)
        await self.db.flush()

        if was_primary:
            result = await self.db.execute(
                select(ContactEmail)
                .where(ContactEmail.contact_id == contact.id)
                .order_by(ContactEmail.created_at.asc(), ContactEmail.email.asc())
                .limit(1)
            )
            successor = result.scalar_one_or_none()
            if successor is not None:
                await self.set_primary_email(contact, successor.email)
            else:
                contact.email = None
                await self.db.flush()
        return True

    # ------------------------------------------------------------------
    # Company affiliation
    # ------------------------------------------------------------------
    async def replace_company_edges(self, contact: Contact, company_id: Optional[str]) -> None:
        """Make ``company_id`` the only affiliation of the contact (or none)."""
        query = delete(OrgCompanyContact).where(OrgCompanyContact.contact_id == contact.id)
        if company_id:
            query = query.where(OrgCompanyContact.company_id != company_id)
        await self.db.execute(query)

        contact.primary_company_id = company_id
        if company_id:
            edge = await self.db.get(OrgCompanyContact, {"company_id": company_id, "contact_id": contact.id})
            if edge is None:
                self.db.add(OrgCompanyContact(company_id=company_id, contact_id=contact.id, is_primary=True))
            else:
                edge.is_primary = True
        await self.db.flush()
