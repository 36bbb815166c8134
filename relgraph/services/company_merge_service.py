"""
Company merge.

Collapses a duplicate (source) company into the surviving (target) one.
Everything that references the source is re-pointed; rows that are unique
per (company, partner) are folded into the target's row instead, keeping
the higher confidence. The whole merge runs in one savepoint.
"""

import logging
from typing import Any, Callable, Dict, Type

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.errors import CompanyNotFoundError, InvalidMergeError
from relgraph.models.company import Company, CompanyAlias
from relgraph.models.company_history import (
    Artifact,
    CompanyConversation,
    CompanyIndustry,
    CompanyNote,
    CompanyTheme,
    Deal,
    InvestmentMemo,
    Thesis,
)
from relgraph.models.contact import Contact, OrgCompanyContact
from relgraph.models.links import EmailCompanyLink, MeetingCompanyLink
from relgraph.repositories.alias_repository import AliasRepository
from relgraph.repositories.audit_repository import AuditRepository
from relgraph.repositories.company_repository import CompanyRepository
from relgraph.repositories.merge_policies import apply_coalesce, keep_max
from relgraph.schemas.merge import MergeResult
from relgraph.services.company_resolver_service import DESCRIPTIVE_FIELDS

logger = logging.getLogger(__name__)

# Tables with a plain company_id column
HISTORY_MODELS = (Deal, CompanyNote, CompanyConversation, InvestmentMemo, Thesis, Artifact)


def _merge_confidence(target_row, source_row) -> None:
    keep_max(target_row, "confidence", source_row.confidence)


def _merge_company_contact(target_row, source_row) -> None:
    target_row.is_primary = bool(target_row.is_primary or source_row.is_primary)


def _merge_industry(target_row, source_row) -> None:
    keep_max(target_row, "confidence", source_row.confidence)
    target_row.is_primary = bool(target_row.is_primary or source_row.is_primary)


def _merge_theme(target_row, source_row) -> None:
    keep_max(target_row, "relevance_score", source_row.relevance_score)


# (model, partner column, conflict policy) for tables unique per pair
PAIR_MODELS = (
    (MeetingCompanyLink, "meeting_id", _merge_confidence),
    (EmailCompanyLink, "message_id", _merge_confidence),
    (OrgCompanyContact, "contact_id", _merge_company_contact),
    (CompanyIndustry, "industry_id", _merge_industry),
    (CompanyTheme, "theme_id", _merge_theme),
)


class CompanyMergeService:
    """Merge duplicate companies."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = CompanyRepository(db)
        self.aliases = AliasRepository(db)
        self.audit = AuditRepository(db)

    async def merge_companies(self, target_id: str, source_id: str) -> MergeResult:
        if not target_id or not source_id:
            raise InvalidMergeError("Both target and source company ids are required")
        if target_id == source_id:
            raise InvalidMergeError("Cannot merge a company into itself", {"company_id": target_id})

        target = await self.repo.get(target_id)
        if target is None:
            raise CompanyNotFoundError(target_id)
        source = await self.repo.get(source_id)
        if source is None:
            raise CompanyNotFoundError(source_id)

        relinked: Dict[str, int] = {}
        source_name = source.canonical_name
        source_domains = [source.primary_domain, source.website_url]

        async with self.db.begin_nested():
            for model, partner, policy in PAIR_MODELS:
                relinked[model.__tablename__] = await self._repoint_pairs(model, partner, policy, source_id, target_id)

            result = await self.db.execute(
                update(Contact).where(Contact.primary_company_id == source_id).values(primary_company_id=target_id)
            )
            relinked[Contact.__tablename__] = result.rowcount or 0

            for model in HISTORY_MODELS:
                result = await self.db.execute(
                    update(model).where(model.company_id == source_id).values(company_id=target_id)
                )
                relinked[model.__tablename__] = result.rowcount or 0

            relinked[CompanyAlias.__tablename__] = await self._repoint_aliases(source_id, target_id)

            apply_coalesce(target, {field: getattr(source, field) for field in DESCRIPTIVE_FIELDS})
            await self.db.flush()

            await self.db.execute(delete(Company).where(Company.id == source_id))

            # the old identity keeps resolving to the survivor
            await self.aliases.add_alias(target_id, source_name, "name")
            for domain in source_domains:
                await self.aliases.register_domain_aliases(target_id, domain)

            await self.audit.record(
                "company",
                target_id,
                "merge",
                {"source_id": source_id, "source_name": source_name, "relinked": relinked},
            )

        logger.info("Merged company %s into %s: %s", source_id, target_id, relinked)
        return MergeResult(target_id=target_id, source_id=source_id, relinked=relinked)

    async def _repoint_pairs(
        self,
        model: Type[Any],
        partner: str,
        policy: Callable[[Any, Any], None],
        source_id: str,
        target_id: str,
    ) -> int:
        """Fold overlapping rows into the target's, then move the rest."""
        partner_column = getattr(model, partner)
        result = await self.db.execute(select(model).where(model.company_id == source_id))
        source_rows = list(result.scalars().all())
        if not source_rows:
            return 0

        result = await self.db.execute(
            select(model).where(
                model.company_id == target_id,
                partner_column.in_([getattr(row, partner) for row in source_rows]),
            )
        )
        target_rows = {getattr(row, partner): row for row in result.scalars().all()}

        moving = []
        for row in source_rows:
            overlap = target_rows.get(getattr(row, partner))
            if overlap is not None:
                policy(overlap, row)
                await self.db.delete(row)
            else:
                moving.append(row)
        await self.db.flush()

        # company_id is part of the primary key: move rows at the table level
        # and drop the now stale identities from the session
        for row in moving:
            self.db.expunge(row)
        table = model.__table__
        await self.db.execute(
            update(table).where(table.c.company_id == source_id).values(company_id=target_id)
        )
        return len(source_rows)

    async def _repoint_aliases(self, source_id: str, target_id: str) -> int:
        """Move the source's aliases; ones the target already has are dropped."""
        result = await self.db.execute(select(CompanyAlias).where(CompanyAlias.company_id == source_id))
        source_aliases = list(result.scalars().all())
        if not source_aliases:
            return 0

        result = await self.db.execute(
            select(CompanyAlias.alias_type, CompanyAlias.alias_value).where(CompanyAlias.company_id == target_id)
        )
        existing = {(alias_type, value) for alias_type, value in result.all()}

        moved = 0
        for alias in source_aliases:
            if (alias.alias_type, alias.alias_value) in existing:
                await self.db.delete(alias)
            else:
                moved += 1
        await self.db.flush()

        await self.db.execute(
            update(CompanyAlias).where(CompanyAlias.company_id == source_id).values(company_id=target_id)
        )
        return moved
