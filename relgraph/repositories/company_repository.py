"""
Repository for company rows and their tag lookups.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select, or_, and_, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.models.company import Company
from relgraph.models.company_history import CompanyIndustry, CompanyTheme, Industry, Theme
from relgraph.schemas.company import CompanyListFilter, normalize_entity_type


def _stripped_domain_expr():
    """primary_domain lower-cased, trimmed and without a leading www."""
    cleaned = func.lower(func.trim(Company.primary_domain))
    return case(
        (cleaned.like("www.%"), func.substr(cleaned, 5)),
        else_=cleaned,
    )


class CompanyRepository:
    """Data access for org_companies."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, company_id: str) -> Optional[Company]:
        if not company_id:
            return None
        return await self.db.get(Company, company_id)

    async def get_by_normalized_name(self, normalized_name: str) -> Optional[Company]:
        if not normalized_name:
            return None
        result = await self.db.execute(select(Company).where(Company.normalized_name == normalized_name))
        return result.scalar_one_or_none()

    async def find_id_by_primary_domain(self, candidates: List[str]) -> Optional[str]:
        """
        First company whose primary_domain matches a candidate.

        Compares the stored value as-is and with www. stripped, trying the
        candidates in order.
        """
        stripped = _stripped_domain_expr()
        for candidate in candidates:
            if not candidate:
                continue
            result = await self.db.execute(
                select(Company.id)
                .where(
                    or_(
                        Company.primary_domain == candidate,
                        stripped == candidate,
                    )
                )
                .order_by(Company.created_at.asc())
                .limit(1)
            )
            company_id = result.scalar_one_or_none()
            if company_id:
                return company_id
        return None

    async def create(self, values: Dict[str, Any]) -> Company:
        company = Company(**values)
        self.db.add(company)
        await self.db.flush()
        await self.db.refresh(company)
        return company

    async def list_companies(self, filter: Optional[CompanyListFilter] = None) -> List[Company]:
        filter = filter or CompanyListFilter()
        conditions = []

        if filter.view != "all":
            conditions.append(Company.include_in_companies_view.is_(True))

        query_text = (filter.query or "").strip()
        if query_text:
            like = f"%{query_text}%"
            conditions.append(
                or_(
                    Company.canonical_name.ilike(like),
                    Company.primary_domain.ilike(like),
                    Company.description.ilike(like),
                )
            )

        if filter.entity_types:
            entity_types = sorted({normalize_entity_type(t) for t in filter.entity_types})
            conditions.append(Company.entity_type.in_(entity_types))

        query = select(Company)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(Company.canonical_name.asc()).limit(filter.limit).offset(filter.offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_all_ids(self) -> List[str]:
        result = await self.db.execute(select(Company.id).order_by(Company.created_at.asc()))
        return list(result.scalars().all())

    async def list_industry_names(self, company_id: str) -> List[str]:
        result = await self.db.execute(
            select(Industry.name)
            .join(CompanyIndustry, CompanyIndustry.industry_id == Industry.id)
            .where(CompanyIndustry.company_id == company_id)
            .order_by(CompanyIndustry.is_primary.desc(), Industry.name.asc())
        )
        return list(result.scalars().all())

    async def list_theme_names(self, company_id: str) -> List[str]:
        result = await self.db.execute(
            select(Theme.name)
            .join(CompanyTheme, CompanyTheme.theme_id == Theme.id)
            .where(CompanyTheme.company_id == company_id)
            .order_by(CompanyTheme.relevance_score.desc(), Theme.name.asc())
        )
        return list(result.scalars().all())
