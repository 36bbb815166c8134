"""
Company classification.

Infers an entity type for each company from its linked history and name.
Companies classified by hand are never touched by the batch classifier.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, func, exists
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.models.company import Company
from relgraph.models.company_history import CompanyNote, Deal, InvestmentMemo
from relgraph.models.links import MeetingCompanyLink
from relgraph.repositories.audit_repository import AuditRepository
from relgraph.repositories.company_repository import CompanyRepository
from relgraph.repositories.merge_policies import apply_unconditional
from relgraph.schemas.classification import Classification, ClassificationRunResult, ClassificationSignals

logger = logging.getLogger(__name__)

VC_HINTS = ("venture", "ventures", "capital", "vc", "fund", "partners", "seed", "angels", "angel")

PROSPECT_MEETING_THRESHOLD = 3


def infer_entity_type(
    company_name: Optional[str],
    primary_domain: Optional[str],
    signals: ClassificationSignals,
) -> Classification:
    """
    Rule-based entity type.

    Any prospect signal wins; otherwise a VC word anywhere in
    "name domain" marks a fund; otherwise unknown.
    """
    has_prospect_signals = (
        signals.has_memo
        or signals.has_deal
        or signals.has_notes
        or signals.stage_present
        or signals.meeting_count >= PROSPECT_MEETING_THRESHOLD
    )
    if has_prospect_signals:
        return Classification(entity_type="prospect", include_in_view=True, confidence=0.9)

    source_text = f"{company_name or ''} {primary_domain or ''}".lower()
    if any(hint in source_text for hint in VC_HINTS):
        return Classification(entity_type="vc_fund", include_in_view=False, confidence=0.9)

    return Classification(entity_type="unknown", include_in_view=False, confidence=0.4)


class ClassificationService:
    """Batch (re)classification of companies."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = CompanyRepository(db)
        self.audit = AuditRepository(db)

    async def collect_signals(self, company: Company) -> ClassificationSignals:
        memo = await self.db.execute(select(exists().where(InvestmentMemo.company_id == company.id)))
        deal = await self.db.execute(select(exists().where(Deal.company_id == company.id)))
        notes = await self.db.execute(select(exists().where(CompanyNote.company_id == company.id)))
        meetings = await self.db.execute(
            select(func.count()).select_from(MeetingCompanyLink).where(MeetingCompanyLink.company_id == company.id)
        )
        return ClassificationSignals(
            has_memo=bool(memo.scalar()),
            has_deal=bool(deal.scalar()),
            has_notes=bool(notes.scalar()),
            stage_present=bool((company.stage or "").strip()),
            meeting_count=meetings.scalar() or 0,
        )

    async def classify_company(self, company: Company) -> Classification:
        signals = await self.collect_signals(company)
        return infer_entity_type(company.canonical_name, company.primary_domain, signals)

    async def classify_companies(self, company_ids: Optional[List[str]] = None) -> ClassificationRunResult:
        """Write auto classifications; manual companies are skipped."""
        ids = company_ids if company_ids is not None else await self.repo.list_all_ids()
        result = ClassificationRunResult()

        async with self.db.begin_nested():
            for company_id in ids:
                company = await self.repo.get(company_id)
                if company is None:
                    continue
                result.scanned += 1
                if company.classification_source == "manual":
                    result.skipped_manual += 1
                    continue

                inferred = await self.classify_company(company)
                before = {
                    "entity_type": company.entity_type,
                    "include_in_companies_view": company.include_in_companies_view,
                    "classification_confidence": company.classification_confidence,
                }
                changed = apply_unconditional(
                    company,
                    {
                        "entity_type": inferred.entity_type,
                        "include_in_companies_view": inferred.include_in_view,
                        "classification_source": "auto",
                        "classification_confidence": inferred.confidence,
                    },
                )
                if changed:
                    await self.db.flush()
                    await self.audit.record("company", company.id, "classify", {"before": before, "after": inferred.model_dump()})
                    result.updated += 1
                    result.updated_ids.append(company.id)
                    logger.debug("Company %s classified as %s", company.id, inferred.entity_type)

        logger.info(
            "Classification run: scanned=%d updated=%d skipped_manual=%d",
            result.scanned, result.updated, result.skipped_manual,
        )
        return result
