"""
Email participant ingestion.

Turns the addresses on a message header into contacts, participant rows
and message links. Message fetching and parsing happen upstream; this
service only sees (role, email, display name) triples.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.core.config import Settings, settings as default_settings
from relgraph.errors import CompanyNotFoundError
from relgraph.models.contact import Contact
from relgraph.models.meeting import EmailMessage, EmailMessageParticipant
from relgraph.repositories.company_repository import CompanyRepository
from relgraph.repositories.contact_repository import ContactRepository
from relgraph.repositories.link_repository import LinkRepository
from relgraph.repositories.merge_policies import apply_coalesce, upsert_by_key
from relgraph.schemas.email_ingest import EmailIngestRequest, EmailIngestResult
from relgraph.services.company_resolver_service import CompanyResolverService
from relgraph.services.contact_sync_service import ContactSyncService
from relgraph.services.enrichment_cache_service import EnrichmentCacheService
from relgraph.utils.domains import is_common_email_provider
from relgraph.utils.normalization import (
    compact_person_name,
    extract_email_domain,
    infer_name_from_email,
    normalize_email,
    normalize_person_name,
    sanitize_display_name,
    split_full_name_parts,
)

logger = logging.getLogger(__name__)


def should_promote_contact_name(existing_name: Optional[str], candidate_name: Optional[str]) -> bool:
    """
    Whether a header display name should replace the stored contact name.

    Only expansions of the same person are accepted: "Jane" -> "Jane Doe"
    yes, "Jane Doe" -> "Bob Smith" no, fewer tokens never.
    """
    existing_normalized = normalize_person_name(existing_name)
    candidate_normalized = normalize_person_name(candidate_name)
    if not candidate_normalized:
        return False
    if not existing_normalized:
        return True
    if candidate_normalized == existing_normalized:
        return False

    existing_compact = compact_person_name(existing_name)
    candidate_compact = compact_person_name(candidate_name)
    existing_tokens = len(existing_normalized.split())
    candidate_tokens = len(candidate_normalized.split())

    if candidate_tokens < existing_tokens:
        return False

    related_by_words = candidate_normalized in existing_normalized or existing_normalized in candidate_normalized
    related_by_compact = (
        candidate_compact == existing_compact
        or existing_compact in candidate_compact
        or candidate_compact in existing_compact
    )
    if not related_by_words and not related_by_compact and existing_tokens >= 2:
        return False

    if candidate_tokens > existing_tokens:
        return True
    return len(candidate_normalized) > len(existing_normalized)


class EmailIngestService:
    """Ingest the participants of one message."""

    def __init__(self, db: AsyncSession, config: Optional[Settings] = None):
        self.db = db
        self.config = config or default_settings
        self.contacts = ContactRepository(db)
        self.contact_sync = ContactSyncService(db, config=self.config)
        self.companies = CompanyRepository(db)
        self.links = LinkRepository(db)
        self.resolver = CompanyResolverService(db)
        self.enrichment = EnrichmentCacheService(db)

    async def ingest_email_participants(self, request: EmailIngestRequest) -> EmailIngestResult:
        account_email = normalize_email(request.account_email)
        result = EmailIngestResult(message_id=request.message_id)

        if request.company_id and not await self.companies.get(request.company_id):
            raise CompanyNotFoundError(request.company_id)

        async with self.db.begin_nested():
            await self._upsert_message(request)

            company_domains: List[str] = []
            ingested: List[Tuple[Contact, str]] = []
            for participant in request.participants:
                email = normalize_email(participant.email)
                if not email or email == account_email:
                    result.skipped += 1
                    continue

                display_name = sanitize_display_name(participant.display_name)
                contact, created, renamed = await self._ensure_contact(email, display_name)
                result.contacts_created += int(created)
                result.contacts_updated += int(renamed)
                ingested.append((contact, email))

                domain = extract_email_domain(email)
                values = {"display_name": display_name, "contact_id": contact.id, "domain": domain}
                await upsert_by_key(
                    self.db,
                    EmailMessageParticipant,
                    {"message_id": request.message_id, "role": participant.role, "email": email},
                    values,
                    lambda row, values=values: apply_coalesce(row, values),
                )
                await self.links.link_email_contact(
                    request.message_id, contact.id, self.config.EMAIL_CONTACT_LINK_CONFIDENCE
                )
                result.participants += 1
                result.contact_links += 1

                if domain and not is_common_email_provider(domain) and domain not in company_domains:
                    company_domains.append(domain)

            if request.company_id:
                company_ids = [request.company_id]
            else:
                account_domain = extract_email_domain(account_email)
                company_ids = []
                for domain in company_domains:
                    if domain == account_domain:
                        continue
                    company_id = await self._company_for_domain(domain)
                    if company_id and company_id not in company_ids:
                        company_ids.append(company_id)

            for company_id in company_ids:
                await self.links.link_email_company(
                    request.message_id, company_id, request.confidence, request.reason
                )
            result.company_ids = company_ids

            # contacts seen before their company existed
            for contact, email in ingested:
                if not contact.primary_company_id:
                    company_id = await self.resolver.find_company_id_by_email(email)
                    if company_id:
                        await self.contact_sync.ensure_primary_company_link(contact, company_id)

        logger.info(
            "Ingested message %s: participants=%d skipped=%d contacts_created=%d companies=%d",
            request.message_id, result.participants, result.skipped, result.contacts_created, len(result.company_ids),
        )
        return result

    async def _upsert_message(self, request: EmailIngestRequest) -> EmailMessage:
        sender = next((p for p in request.participants if p.role == "from"), None)
        values = {
            "subject": request.subject,
            "from_email": normalize_email(sender.email) if sender else None,
            "from_name": sanitize_display_name(sender.display_name) if sender else None,
            "sent_at": request.sent_at,
            "received_at": request.received_at,
        }
        return await upsert_by_key(
            self.db,
            EmailMessage,
            {"id": request.message_id},
            values,
            lambda row: apply_coalesce(row, values),
        )

    async def _ensure_contact(self, email: str, display_name: Optional[str]) -> Tuple[Contact, bool, bool]:
        """Find or create the contact for ``email``; returns (contact, created, renamed)."""
        candidate_name = display_name or infer_name_from_email(email) or email
        contact = await self.contacts.get_by_email(email)

        if contact is None:
            first_name, last_name = split_full_name_parts(candidate_name)
            contact = await self.contacts.create(
                full_name=candidate_name,
                first_name=first_name,
                last_name=last_name,
                normalized_name=normalize_person_name(candidate_name),
            )
            await self.contacts.attach_email(contact, email, make_primary=True)
            return contact, True, False

        current_primary = normalize_email(contact.email)
        await self.contacts.attach_email(
            contact, email, make_primary=current_primary is None or current_primary == email
        )

        renamed = False
        if should_promote_contact_name(contact.full_name, candidate_name):
            contact.full_name = candidate_name
            contact.normalized_name = normalize_person_name(candidate_name)
            contact.first_name, contact.last_name = split_full_name_parts(candidate_name)
            await self.db.flush()
            renamed = True
        return contact, False, renamed

    async def _company_for_domain(self, domain: str) -> Optional[str]:
        """Resolve the domain, or create a company for it named from the enrichment cache."""
        company_id = await self.resolver.find_company_id_by_domain(domain)
        if company_id:
            return company_id
        name = await self.enrichment.suggest_company_name(domain)
        company = await self.resolver.get_or_create_company_for_domain(domain, name)
        return company.id if company else None
