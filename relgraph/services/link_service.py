"""
Link maintenance between meetings, messages, companies and contacts.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.core.config import Settings, settings as default_settings
from relgraph.errors import CompanyNotFoundError, ContactNotFoundError, MeetingNotFoundError
from relgraph.models.meeting import Meeting
from relgraph.repositories.alias_repository import AliasRepository
from relgraph.repositories.company_repository import CompanyRepository
from relgraph.repositories.contact_repository import ContactRepository
from relgraph.repositories.link_repository import LinkRepository
from relgraph.schemas.company import CompanyCreate
from relgraph.schemas.links import MeetingCompanySyncResult
from relgraph.services.company_resolver_service import CompanyResolverService
from relgraph.utils.domains import candidates_for_domains, is_common_email_provider, registrable_domain
from relgraph.utils.normalization import extract_email_domain, normalize_company_name

logger = logging.getLogger(__name__)


class LinkService:
    """Writes relationship edges; all conflicts keep the higher confidence."""

    def __init__(self, db: AsyncSession, config: Optional[Settings] = None):
        self.db = db
        self.config = config or default_settings
        self.repo = LinkRepository(db)
        self.companies = CompanyRepository(db)
        self.contacts = ContactRepository(db)
        self.aliases = AliasRepository(db)
        self.resolver = CompanyResolverService(db)

    async def link_meeting_company(
        self,
        meeting_id: str,
        company_id: str,
        confidence: float = 1.0,
        linked_by: str = "manual",
    ) -> None:
        await self._require_meeting(meeting_id)
        await self._require_company(company_id)
        await self.repo.link_meeting_company(meeting_id, company_id, confidence, linked_by)

    async def unlink_meeting_company(self, meeting_id: str, company_id: str) -> bool:
        return await self.repo.unlink_meeting_company(meeting_id, company_id)

    async def link_email_company(
        self,
        message_id: str,
        company_id: str,
        confidence: float,
        reason: Optional[str] = None,
        linked_by: str = "auto",
    ) -> None:
        await self._require_company(company_id)
        await self.repo.link_email_company(message_id, company_id, confidence, reason, linked_by)

    async def link_email_contact(
        self,
        message_id: str,
        contact_id: str,
        confidence: float,
        linked_by: str = "auto",
    ) -> None:
        if not await self.contacts.get(contact_id):
            raise ContactNotFoundError(contact_id)
        await self.repo.link_email_contact(message_id, contact_id, confidence, linked_by)

    async def link_company_contact(self, company_id: str, contact_id: str, is_primary: bool = False) -> None:
        await self._require_company(company_id)
        if not await self.contacts.get(contact_id):
            raise ContactNotFoundError(contact_id)
        await self.repo.link_company_contact(company_id, contact_id, is_primary)

    async def sync_meeting_company_links(
        self,
        meeting_id: str,
        companies: Optional[Sequence[str]],
        attendee_emails: Optional[Sequence[str]] = None,
        confidence: Optional[float] = None,
        linked_by: str = "auto",
    ) -> MeetingCompanySyncResult:
        """
        Make the meeting's company links match ``companies``.

        Each distinct name is resolved (name, name alias, then attendee
        email domains) or created; links to companies no longer named are
        removed.
        """
        meeting = await self._require_meeting(meeting_id)
        confidence = self.config.MEETING_LINK_CONFIDENCE if confidence is None else confidence

        names: List[str] = []
        for raw in companies or []:
            name = (raw or "").strip()
            if name and name not in names:
                names.append(name)

        email_domains = self._company_email_domains(attendee_emails)
        result = MeetingCompanySyncResult(meeting_id=meeting_id)

        async with self.db.begin_nested():
            meeting.companies = names
            if attendee_emails is not None:
                meeting.attendee_emails = list(attendee_emails)

            for name in names:
                company_id = await self._find_meeting_company(name, email_domains)
                if company_id is None:
                    company_id = await self._create_meeting_company(name, email_domains)
                    if company_id is None:
                        continue
                    result.companies_created += 1
                if company_id not in result.company_ids:
                    result.company_ids.append(company_id)
                await self.repo.link_meeting_company(meeting_id, company_id, confidence, linked_by)

            result.links_removed = await self.repo.delete_meeting_links_except(meeting_id, result.company_ids)

        logger.info(
            "Meeting %s linked to %d companies (%d created, %d stale links removed)",
            meeting_id, len(result.company_ids), result.companies_created, result.links_removed,
        )
        return result

    @staticmethod
    def _company_email_domains(attendee_emails: Optional[Sequence[str]]) -> List[str]:
        """Attendee email domains (free-mail excluded), with their registrable domains."""
        domains: List[str] = []
        for email in attendee_emails or []:
            domain = extract_email_domain(email)
            if not domain or is_common_email_provider(domain):
                continue
            for value in (domain, registrable_domain(domain)):
                if value and value not in domains:
                    domains.append(value)
        return domains

    async def _find_meeting_company(self, name: str, email_domains: List[str]) -> Optional[str]:
        company_id = await self.resolver.resolve_company_id(name=name)
        if company_id:
            return company_id
        candidates = candidates_for_domains(email_domains)
        if not candidates:
            return None
        company_id = await self.companies.find_id_by_primary_domain(candidates)
        if company_id:
            return company_id
        return await self.aliases.find_company_id_by_domain_alias(candidates)

    async def _create_meeting_company(self, name: str, email_domains: List[str]) -> Optional[str]:
        if not normalize_company_name(name):
            return None
        primary_domain = registrable_domain(email_domains[0]) if email_domains else None
        company = await self.resolver.upsert_company(
            CompanyCreate(
                canonical_name=name,
                primary_domain=primary_domain,
                entity_type="unknown",
                include_in_companies_view=False,
                classification_source="auto",
                classification_confidence=None,
            )
        )
        logger.debug("Company %s created from meeting name %r", company.id, name)
        return company.id

    async def _require_meeting(self, meeting_id: str) -> Meeting:
        meeting = await self.db.get(Meeting, meeting_id)
        if meeting is None:
            raise MeetingNotFoundError(meeting_id)
        return meeting

    async def _require_company(self, company_id: str) -> None:
        if not await self.companies.get(company_id):
            raise CompanyNotFoundError(company_id)
