"""
Contact resolution and attendee/email sync.

Meetings and messages name people loosely; this service folds those
signals into one contact per email address, keeps names improving
monotonically (explicit names beat inferred ones) and attaches each
contact to the company its email domain resolves to.
"""

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.core.config import Settings, settings as default_settings
from relgraph.errors import CompanyNotFoundError, ContactNotFoundError, ValidationError
from relgraph.models.contact import Contact
from relgraph.models.meeting import Meeting
from relgraph.repositories.company_repository import CompanyRepository
from relgraph.repositories.contact_repository import ContactRepository
from relgraph.repositories.link_repository import LinkRepository
from relgraph.schemas.contact import (
    ContactCreate,
    ContactEmailRead,
    ContactRead,
    ContactSyncResult,
    ContactUpdate,
    MeetingContactSyncResult,
)
from relgraph.services.company_resolver_service import CompanyResolverService
from relgraph.utils.attendees import CandidateBuilder, CandidateContact, build_candidates
from relgraph.utils.normalization import normalize_email, normalize_person_name, split_full_name_parts

logger = logging.getLogger(__name__)


class ContactSyncService:
    """Resolve-or-create for contacts and their email sets."""

    def __init__(self, db: AsyncSession, config: Optional[Settings] = None):
        self.db = db
        self.config = config or default_settings
        self.repo = ContactRepository(db)
        self.links = LinkRepository(db)
        self.companies = CompanyRepository(db)
        self.resolver = CompanyResolverService(db)

    # ------------------------------------------------------------------
    # Attendee sync
    # ------------------------------------------------------------------
    async def sync_contacts_from_attendees(
        self,
        attendees: Optional[Sequence[str]],
        attendee_emails: Optional[Sequence[str]],
    ) -> ContactSyncResult:
        candidate_set = build_candidates(attendees, attendee_emails)
        result = await self.apply_candidates(candidate_set.candidates)
        result.invalid = candidate_set.invalid
        await self.auto_link_contacts_by_domain()

        logger.info(
            "Attendee sync: candidates=%d inserted=%d updated=%d skipped=%d invalid=%d",
            result.candidates, result.inserted, result.updated, result.skipped, result.invalid,
        )
        return result

    async def sync_contacts_from_meetings(self) -> MeetingContactSyncResult:
        """Fold every meeting's attendees into one candidate map, then apply once."""
        rows = await self.db.execute(select(Meeting).order_by(Meeting.created_at.asc()))
        meetings = list(rows.scalars().all())

        builder = CandidateBuilder()
        for meeting in meetings:
            builder.add_meeting(meeting.attendees, meeting.attendee_emails)
        candidate_set = builder.build()

        applied = await self.apply_candidates(candidate_set.candidates)
        result = MeetingContactSyncResult(
            **applied.model_dump(exclude={"invalid"}),
            invalid=candidate_set.invalid,
            scanned_meetings=len(meetings),
        )
        await self.auto_link_contacts_by_domain()

        logger.info(
            "Meeting contact sync: meetings=%d candidates=%d inserted=%d updated=%d",
            result.scanned_meetings, result.candidates, result.inserted, result.updated,
        )
        return result

    async def apply_candidates(self, candidates: List[CandidateContact]) -> ContactSyncResult:
        """Upsert each candidate; all-or-nothing within one savepoint."""
        result = ContactSyncResult(candidates=len(candidates))
        async with self.db.begin_nested():
            for candidate in candidates:
                existing = await self.repo.get_by_email(candidate.email)
                if existing is None:
                    await self._insert_candidate(candidate)
                    result.inserted += 1
                    continue

                if await self._merge_candidate_into(existing, candidate):
                    result.updated += 1
                else:
                    result.skipped += 1
        return result

    async def _insert_candidate(self, candidate: CandidateContact) -> Contact:
        first_name, last_name = split_full_name_parts(candidate.full_name)
        contact = await self.repo.create(
            full_name=candidate.full_name,
            first_name=first_name,
            last_name=last_name,
            normalized_name=candidate.normalized_name,
        )
        await self.repo.attach_email(contact, candidate.email, make_primary=True)

        company_id = await self.resolver.find_company_id_by_email(candidate.email)
        if company_id:
            await self.ensure_primary_company_link(contact, company_id)
        logger.debug("Contact %s created for %s", contact.id, candidate.email)
        return contact

    async def _merge_candidate_into(self, contact: Contact, candidate: CandidateContact) -> bool:
        """Apply a candidate to an existing contact; True when the name changed."""
        next_name = contact.full_name
        next_normalized = contact.normalized_name

        if candidate.explicit_name and candidate.full_name != contact.full_name:
            next_name = candidate.full_name
            next_normalized = candidate.normalized_name
        elif not (contact.full_name or "").strip() or not contact.normalized_name:
            next_name = candidate.full_name
            next_normalized = candidate.normalized_name

        first_name, last_name = split_full_name_parts(next_name)
        name_changed = (
            next_name != contact.full_name
            or next_normalized != contact.normalized_name
            or first_name != contact.first_name
            or last_name != contact.last_name
        )
        if name_changed:
            contact.full_name = next_name
            contact.normalized_name = next_normalized
            contact.first_name = first_name
            contact.last_name = last_name
            await self.db.flush()

        current_primary = normalize_email(contact.email)
        await self.repo.attach_email(
            contact,
            candidate.email,
            make_primary=current_primary is None or current_primary == candidate.email,
        )

        if not contact.primary_company_id:
            company_id = await self.resolver.find_company_id_by_email(candidate.email)
            if company_id:
                await self.ensure_primary_company_link(contact, company_id)
        return name_changed

    async def ensure_primary_company_link(self, contact: Contact, company_id: str) -> None:
        """Set primary_company_id once and record the primary affiliation edge."""
        if contact.primary_company_id:
            return
        contact.primary_company_id = company_id
        await self.db.flush()
        await self.links.link_company_contact(company_id, contact.id, is_primary=True)

    async def auto_link_contacts_by_domain(self, limit: Optional[int] = None) -> int:
        """Give unaffiliated contacts the company their email domains resolve to."""
        limit = limit if limit is not None else self.config.CONTACT_AUTOLINK_LIMIT
        linked = 0
        async with self.db.begin_nested():
            for contact in await self.repo.list_without_primary_company(limit):
                emails = [row.email for row in await self.repo.list_emails(contact.id)]
                if contact.email and contact.email not in emails:
                    emails.insert(0, contact.email)
                for email in emails:
                    company_id = await self.resolver.find_company_id_by_email(email)
                    if company_id:
                        await self.ensure_primary_company_link(contact, company_id)
                        linked += 1
                        break
        if linked:
            logger.info("Auto-linked %d contacts by email domain", linked)
        return linked

    # ------------------------------------------------------------------
    # Contact CRUD
    # ------------------------------------------------------------------
    async def get_contact(self, contact_id: str) -> ContactRead:
        return ContactRead.model_validate(await self._require_contact(contact_id))

    async def create_contact(self, data: ContactCreate) -> ContactRead:
        full_name = data.full_name.strip()
        normalized_name = normalize_person_name(full_name)
        if not normalized_name:
            raise ValidationError("Contact name is required", {"full_name": data.full_name})

        email = None
        if data.email:
            email = normalize_email(data.email)
            if not email:
                raise ValidationError("Invalid email address", {"email": data.email})

        if data.primary_company_id and not await self.companies.get(data.primary_company_id):
            raise CompanyNotFoundError(data.primary_company_id)

        first_name, last_name = split_full_name_parts(full_name)
        async with self.db.begin_nested():
            contact = await self.repo.create(
                full_name=full_name,
                first_name=first_name,
                last_name=last_name,
                normalized_name=normalized_name,
                title=data.title,
                contact_type=data.contact_type,
                linkedin_url=data.linkedin_url,
            )
            if email:
                await self.repo.attach_email(contact, email, make_primary=True)

            company_id = data.primary_company_id
            if not company_id and email:
                company_id = await self.resolver.find_company_id_by_email(email)
            if company_id:
                await self.ensure_primary_company_link(contact, company_id)

        await self.db.refresh(contact)
        return ContactRead.model_validate(contact)

    async def update_contact(self, contact_id: str, changes: ContactUpdate) -> ContactRead:
        contact = await self._require_contact(contact_id)
        explicit = changes.model_fields_set

        if "full_name" in explicit:
            full_name = (changes.full_name or "").strip()
            normalized_name = normalize_person_name(full_name)
            if not normalized_name:
                raise ValidationError("Contact name is required", {"full_name": changes.full_name})
            contact.full_name = full_name
            contact.normalized_name = normalized_name
            contact.first_name, contact.last_name = split_full_name_parts(full_name)
        for field in ("title", "contact_type", "linkedin_url"):
            if field in explicit:
                setattr(contact, field, getattr(changes, field))

        await self.db.flush()
        await self.db.refresh(contact)
        return ContactRead.model_validate(contact)

    # ------------------------------------------------------------------
    # Email set
    # ------------------------------------------------------------------
    async def list_contact_emails(self, contact_id: str) -> List[ContactEmailRead]:
        await self._require_contact(contact_id)
        return [ContactEmailRead.model_validate(row) for row in await self.repo.list_emails(contact_id)]

    async def add_contact_email(self, contact_id: str, email: str, is_primary: bool = False) -> List[ContactEmailRead]:
        """Attach an address; raises EmailOwnershipError if another contact owns it."""
        contact = await self._require_contact(contact_id)
        normalized = self._require_email(email)
        async with self.db.begin_nested():
            await self.repo.attach_email(contact, normalized, make_primary=is_primary)
            if not contact.primary_company_id:
                company_id = await self.resolver.find_company_id_by_email(normalized)
                if company_id:
                    await self.ensure_primary_company_link(contact, company_id)
        return await self.list_contact_emails(contact_id)

    async def remove_contact_email(self, contact_id: str, email: str) -> List[ContactEmailRead]:
        contact = await self._require_contact(contact_id)
        normalized = normalize_email(email) or (email or "").strip().lower()
        async with self.db.begin_nested():
            await self.repo.remove_email(contact, normalized)
        return await self.list_contact_emails(contact_id)

    async def set_contact_primary_email(self, contact_id: str, email: str) -> List[ContactEmailRead]:
        contact = await self._require_contact(contact_id)
        normalized = self._require_email(email)
        async with self.db.begin_nested():
            await self.repo.attach_email(contact, normalized, make_primary=True)
        return await self.list_contact_emails(contact_id)

    async def set_contact_primary_company(self, contact_id: str, company_id: Optional[str]) -> ContactRead:
        """Replace the contact's company edges with ``company_id`` (or clear them)."""
        contact = await self._require_contact(contact_id)
        if company_id and not await self.companies.get(company_id):
            raise CompanyNotFoundError(company_id)
        async with self.db.begin_nested():
            await self.repo.replace_company_edges(contact, company_id)
        await self.db.refresh(contact)
        return ContactRead.model_validate(contact)

    async def resolve_contacts_by_emails(self, emails: Sequence[str]) -> Dict[str, str]:
        """Map each resolvable (normalized) email to its contact id."""
        normalized = [n for n in (normalize_email(e) for e in emails) if n]
        return await self.repo.resolve_ids_by_emails(normalized)

    async def _require_contact(self, contact_id: str) -> Contact:
        contact = await self.repo.get(contact_id)
        if not contact:
            raise ContactNotFoundError(contact_id)
        return contact

    @staticmethod
    def _require_email(email: str) -> str:
        normalized = normalize_email(email)
        if not normalized:
            raise ValidationError("Invalid email address", {"email": email})
        return normalized
