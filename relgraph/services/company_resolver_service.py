"""
Company resolution: map a name or domain to one canonical company.

Resolution order is normalized name, then name alias, then the domain
candidates against primary domains and domain aliases. Creation paths
always register aliases so later lookups by the same signal converge.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.errors import CompanyNameConflictError, CompanyNotFoundError, ValidationError
from relgraph.models.company import Company
from relgraph.repositories.alias_repository import AliasRepository
from relgraph.repositories.audit_repository import AuditRepository
from relgraph.repositories.company_repository import CompanyRepository
from relgraph.repositories.merge_policies import apply_coalesce, apply_unconditional
from relgraph.schemas.company import (
    CompanyClassificationUpsert,
    CompanyCreate,
    CompanyDetail,
    CompanyListFilter,
    CompanyRead,
    CompanyUpdate,
)
from relgraph.utils.domains import domain_candidates, is_common_email_provider, registrable_domain
from relgraph.utils.normalization import extract_email_domain, normalize_company_name, normalize_domain

logger = logging.getLogger(__name__)

# Descriptive fields merged with the coalesce policy on create
DESCRIPTIVE_FIELDS = (
    "description",
    "primary_domain",
    "website_url",
    "city",
    "state",
    "stage",
    "priority",
    "post_money_valuation",
    "raise_size",
    "round",
    "pipeline_stage",
)

CLASSIFICATION_FIELDS = (
    "entity_type",
    "include_in_companies_view",
    "classification_source",
    "classification_confidence",
)


class CompanyResolverService:
    """Resolve-or-create for companies, plus the company CRUD around it."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = CompanyRepository(db)
        self.aliases = AliasRepository(db)
        self.audit = AuditRepository(db)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    async def resolve_company_id(self, name: Optional[str] = None, domain: Optional[str] = None) -> Optional[str]:
        if name and name.strip():
            company = await self.repo.get_by_normalized_name(normalize_company_name(name))
            if company:
                return company.id
            alias_hit = await self.aliases.find_company_id_by_name_alias(name)
            if alias_hit:
                return alias_hit

        if domain:
            candidates = domain_candidates(domain)
            if candidates:
                by_primary = await self.repo.find_id_by_primary_domain(candidates)
                if by_primary:
                    return by_primary
                return await self.aliases.find_company_id_by_domain_alias(candidates)

        return None

    async def find_company_id_by_domain(self, domain: Optional[str]) -> Optional[str]:
        return await self.resolve_company_id(domain=domain)

    async def find_company_id_by_email(self, email: Optional[str]) -> Optional[str]:
        """Company for the email's domain; free-mail addresses never match."""
        domain = extract_email_domain(email)
        if not domain or is_common_email_provider(domain):
            return None
        return await self.find_company_id_by_domain(domain)

    async def get_entity_type_by_name_or_domain(self, name: Optional[str], domain: Optional[str] = None) -> Optional[str]:
        company_id = await self.resolve_company_id(name=name, domain=domain)
        if not company_id:
            return None
        company = await self.repo.get(company_id)
        if not company or company.entity_type == "unknown":
            return None
        return company.entity_type

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def get_company(self, company_id: str) -> CompanyDetail:
        company = await self.repo.get(company_id)
        if not company:
            raise CompanyNotFoundError(company_id)
        return await self.to_detail(company)

    async def list_companies(self, filter: Optional[CompanyListFilter] = None) -> List[CompanyRead]:
        companies = await self.repo.list_companies(filter)
        return [CompanyRead.model_validate(c) for c in companies]

    async def to_detail(self, company: Company) -> CompanyDetail:
        base = CompanyRead.model_validate(company).model_dump()
        aliases = await self.aliases.list_aliases(company.id)
        return CompanyDetail(
            **base,
            industries=await self.repo.list_industry_names(company.id),
            themes=await self.repo.list_theme_names(company.id),
            aliases=[a.alias_value for a in aliases],
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def create_company(self, data: CompanyCreate) -> CompanyDetail:
        company = await self.upsert_company(data)
        return await self.to_detail(company)

    async def upsert_company(self, data: CompanyCreate) -> Company:
        """
        Create keyed on normalized name, or merge into the existing row.

        Existing rows only get empty fields filled; classification fields
        are written when the caller set them explicitly.
        """
        canonical_name = data.canonical_name.strip()
        normalized_name = normalize_company_name(canonical_name)
        if not normalized_name:
            raise ValidationError("Company name is required", {"canonical_name": data.canonical_name})

        explicit = data.model_fields_set
        descriptive = {field: getattr(data, field) for field in DESCRIPTIVE_FIELDS}
        descriptive["primary_domain"] = normalize_domain(data.primary_domain)

        async with self.db.begin_nested():
            company = await self.repo.get_by_normalized_name(normalized_name)
            created = False
            if company is None:
                entity_type = data.entity_type or "prospect"
                values: Dict[str, Any] = {
                    **descriptive,
                    "canonical_name": canonical_name,
                    "normalized_name": normalized_name,
                    "status": data.status or "active",
                    "entity_type": entity_type,
                    "include_in_companies_view": (
                        data.include_in_companies_view
                        if data.include_in_companies_view is not None
                        else entity_type == "prospect"
                    ),
                    "classification_source": data.classification_source or "manual",
                    "classification_confidence": (
                        data.classification_confidence if "classification_confidence" in explicit else 1.0
                    ),
                }
                try:
                    async with self.db.begin_nested():
                        company = await self.repo.create(values)
                    created = True
                except IntegrityError:
                    # another writer won the normalized_name race
                    company = await self.repo.get_by_normalized_name(normalized_name)
                    if company is None:
                        raise

            if not created:
                apply_coalesce(company, {**descriptive, "status": data.status})
                apply_unconditional(company, self._explicit_classification(data))
                await self.db.flush()

            await self.aliases.register_company_aliases(company)

        logger.debug("Company %s %s (%s)", company.id, "created" if created else "merged", normalized_name)
        return company

    async def update_company(self, company_id: str, changes: CompanyUpdate) -> CompanyDetail:
        company = await self.repo.get(company_id)
        if not company:
            raise CompanyNotFoundError(company_id)

        explicit = changes.model_fields_set
        values: Dict[str, Any] = {}
        old_name = company.canonical_name

        if "canonical_name" in explicit:
            new_name = (changes.canonical_name or "").strip()
            normalized_name = normalize_company_name(new_name)
            if not normalized_name:
                raise ValidationError("Company name is required", {"canonical_name": changes.canonical_name})
            clash = await self.repo.get_by_normalized_name(normalized_name)
            if clash and clash.id != company.id:
                raise CompanyNameConflictError(
                    f"Another company is already named {new_name!r}",
                    {"company_id": clash.id, "canonical_name": clash.canonical_name},
                )
            values["canonical_name"] = new_name
            values["normalized_name"] = normalized_name

        for field in DESCRIPTIVE_FIELDS + ("status",):
            if field in explicit:
                values[field] = getattr(changes, field)
        if "primary_domain" in explicit:
            values["primary_domain"] = normalize_domain(changes.primary_domain)

        values.update(self._explicit_classification(changes))
        if values.get("status") is None:
            values.pop("status", None)

        async with self.db.begin_nested():
            apply_unconditional(company, values)
            await self.db.flush()
            if "canonical_name" in values and old_name != company.canonical_name:
                # the previous name keeps resolving to this company
                await self.aliases.add_alias(company.id, old_name, "name")
            await self.aliases.register_company_aliases(company)

        await self.db.refresh(company)
        return await self.to_detail(company)

    async def get_or_create_company_by_name(self, name: Optional[str], domain: Optional[str] = None) -> CompanyDetail:
        company = await self.get_or_create_company(name, domain)
        return await self.to_detail(company)

    async def get_or_create_company(self, name: Optional[str], domain: Optional[str] = None) -> Company:
        company_name = (name or "").strip()
        if not normalize_company_name(company_name):
            raise ValidationError("Company name is required", {"canonical_name": name})

        existing_id = await self.resolve_company_id(name=company_name, domain=domain)
        if existing_id:
            company = await self.repo.get(existing_id)
            if company:
                return company

        primary_domain = registrable_domain(domain) if domain else None
        company = await self.upsert_company(
            CompanyCreate(
                canonical_name=company_name,
                primary_domain=primary_domain,
                entity_type="prospect",
                include_in_companies_view=True,
                classification_source="manual",
                classification_confidence=1.0,
            )
        )
        if domain:
            await self.aliases.register_domain_aliases(company.id, domain)
        logger.info("Created company %s for %r", company.id, company_name)
        return company

    async def get_or_create_company_for_domain(self, domain: Optional[str], name: Optional[str] = None) -> Optional[Company]:
        """
        Company keyed on a mail domain, named ``name`` when that name is free.

        A company already answering to ``name`` is reused only when it has no
        primary domain or the same registrable one; it then gains this domain.
        Otherwise the new company is named after the domain itself.
        """
        apex = registrable_domain(domain)
        if not apex or is_common_email_provider(apex):
            return None
        existing_id = await self.resolve_company_id(domain=domain)
        if existing_id:
            return await self.repo.get(existing_id)

        for candidate_name in dict.fromkeys(n for n in ((name or "").strip(), apex) if n):
            clash_id = await self.resolve_company_id(name=candidate_name)
            if not clash_id:
                company = await self.upsert_company(CompanyCreate(canonical_name=candidate_name, primary_domain=apex))
                await self.aliases.register_domain_aliases(company.id, domain)
                logger.info("Created company %s for domain %s", company.id, apex)
                return company

            clash = await self.repo.get(clash_id)
            if clash.primary_domain and registrable_domain(clash.primary_domain) != apex:
                logger.info(
                    "Name %r belongs to %s (%s); not reusing it for %s",
                    candidate_name, clash.id, clash.primary_domain, apex,
                )
                continue

            async with self.db.begin_nested():
                apply_coalesce(clash, {"primary_domain": apex})
                await self.db.flush()
                await self.aliases.register_company_aliases(clash)
                await self.aliases.register_domain_aliases(clash.id, domain)
            return clash

        logger.warning("No free company name for domain %s", apex)
        return None

    async def upsert_company_classification(self, data: CompanyClassificationUpsert) -> CompanyDetail:
        company_name = data.canonical_name.strip()
        if not normalize_company_name(company_name):
            raise ValidationError("Company name is required", {"canonical_name": data.canonical_name})

        include = (
            data.include_in_companies_view
            if data.include_in_companies_view is not None
            else data.entity_type == "prospect"
        )
        existing_id = await self.resolve_company_id(name=company_name, domain=data.primary_domain)
        if not existing_id:
            detail = await self.create_company(
                CompanyCreate(
                    canonical_name=company_name,
                    primary_domain=data.primary_domain,
                    entity_type=data.entity_type,
                    include_in_companies_view=include,
                    classification_source=data.classification_source,
                    classification_confidence=data.classification_confidence,
                )
            )
            await self._audit_classification(detail, "create")
            return detail

        existing = await self.repo.get(existing_id)
        requested_domain = normalize_domain(data.primary_domain)
        should_set_domain = bool(requested_domain) and (
            not existing.primary_domain or existing.primary_domain == requested_domain
        )
        changes: Dict[str, Any] = {
            "canonical_name": company_name,
            "entity_type": data.entity_type,
            "include_in_companies_view": include,
            "classification_source": data.classification_source,
            "classification_confidence": data.classification_confidence,
        }
        if should_set_domain:
            changes["primary_domain"] = requested_domain
        detail = await self.update_company(existing_id, CompanyUpdate(**changes))
        await self._audit_classification(detail, "update")
        return detail

    async def _audit_classification(self, detail: CompanyDetail, action: str) -> None:
        await self.audit.record(
            "company",
            detail.id,
            action,
            {
                "entity_type": detail.entity_type,
                "include_in_companies_view": detail.include_in_companies_view,
                "classification_source": detail.classification_source,
                "classification_confidence": detail.classification_confidence,
            },
        )

    @staticmethod
    def _explicit_classification(data) -> Dict[str, Any]:
        """Classification values the caller actually sent, with include realigned."""
        explicit = data.model_fields_set
        values: Dict[str, Any] = {}
        if "entity_type" in explicit and data.entity_type is not None:
            values["entity_type"] = data.entity_type
            if "include_in_companies_view" not in explicit or data.include_in_companies_view is None:
                values["include_in_companies_view"] = data.entity_type == "prospect"
        if "include_in_companies_view" in explicit and data.include_in_companies_view is not None:
            values["include_in_companies_view"] = data.include_in_companies_view
        if "classification_source" in explicit and data.classification_source is not None:
            values["classification_source"] = data.classification_source
        if "classification_confidence" in explicit:
            values["classification_confidence"] = data.classification_confidence
        return values
