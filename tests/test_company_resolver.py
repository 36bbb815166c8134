"""Company resolution, creation and update against an in-memory store."""

import json

import pytest

from relgraph.errors import CompanyNameConflictError, CompanyNotFoundError, ValidationError
from relgraph.repositories.alias_repository import AliasRepository
from relgraph.repositories.audit_repository import AuditRepository
from relgraph.schemas.company import CompanyClassificationUpsert, CompanyCreate, CompanyListFilter, CompanyUpdate
from relgraph.services.company_resolver_service import CompanyResolverService


@pytest.mark.db
@pytest.mark.asyncio
async def test_create_company_defaults_to_manual_prospect(db):
    service = CompanyResolverService(db)

    detail = await service.create_company(
        CompanyCreate(canonical_name="  Acme, Inc. ", primary_domain="https://www.acme.com/about")
    )

    assert detail.canonical_name == "Acme, Inc."
    assert detail.normalized_name == "acme inc"
    assert detail.primary_domain == "acme.com"
    assert detail.entity_type == "prospect"
    assert detail.include_in_companies_view is True
    assert detail.classification_source == "manual"
    assert detail.classification_confidence == 1.0
    assert "Acme, Inc." in detail.aliases
    assert "acme.com" in detail.aliases


@pytest.mark.db
@pytest.mark.asyncio
async def test_create_company_twice_merges_into_one_row(db):
    service = CompanyResolverService(db)

    first = await service.create_company(CompanyCreate(canonical_name="Acme Inc", description="Robots"))
    second = await service.create_company(
        CompanyCreate(canonical_name="ACME, inc.", description="Something else", city="Austin")
    )

    assert second.id == first.id
    assert second.canonical_name == "Acme Inc"
    # coalesce: stored values win, empty ones are filled
    assert second.description == "Robots"
    assert second.city == "Austin"


@pytest.mark.db
@pytest.mark.asyncio
async def test_create_company_applies_only_explicit_classification(db):
    service = CompanyResolverService(db)
    await service.create_company(CompanyCreate(canonical_name="Globex", entity_type="portfolio"))

    unchanged = await service.create_company(CompanyCreate(canonical_name="Globex"))
    assert unchanged.entity_type == "portfolio"
    assert unchanged.include_in_companies_view is False

    changed = await service.create_company(CompanyCreate(canonical_name="Globex", entity_type="prospect"))
    assert changed.entity_type == "prospect"
    assert changed.include_in_companies_view is True


@pytest.mark.db
@pytest.mark.asyncio
async def test_unrecognized_entity_type_becomes_unknown(db):
    service = CompanyResolverService(db)

    detail = await service.create_company(CompanyCreate(canonical_name="Initech", entity_type="Mystery"))

    assert detail.entity_type == "unknown"
    assert detail.include_in_companies_view is False


@pytest.mark.db
@pytest.mark.asyncio
async def test_create_company_requires_a_name(db):
    service = CompanyResolverService(db)

    with pytest.raises(ValidationError):
        await service.create_company(CompanyCreate(canonical_name="!!!"))


@pytest.mark.db
@pytest.mark.asyncio
async def test_resolve_by_name_alias_and_domain(db, make_company):
    service = CompanyResolverService(db)
    acme = await make_company("Acme Robotics", primary_domain="acme.com")
    await AliasRepository(db).add_alias(acme.id, "ACME Corp", "name")
    other = await make_company("Hooli")
    await AliasRepository(db).register_domain_aliases(other.id, "hooli.xyz")

    assert await service.resolve_company_id(name="acme robotics!") == acme.id
    assert await service.resolve_company_id(name="  acme corp ") == acme.id
    assert await service.resolve_company_id(domain="https://mail.acme.com") == acme.id
    assert await service.resolve_company_id(domain="www.hooli.xyz") == other.id
    assert await service.resolve_company_id(name="Nobody", domain="nowhere.io") is None


@pytest.mark.db
@pytest.mark.asyncio
async def test_resolve_falls_back_to_domain_after_name_miss(db, make_company):
    service = CompanyResolverService(db)
    acme = await make_company("Acme Robotics", primary_domain="www.acme.com")

    assert await service.resolve_company_id(name="Acme", domain="acme.com") == acme.id


@pytest.mark.db
@pytest.mark.asyncio
async def test_find_company_by_email_ignores_free_mail(db, make_company):
    service = CompanyResolverService(db)
    await make_company("Gmail", primary_domain="gmail.com")
    acme = await make_company("Acme", primary_domain="acme.com")

    assert await service.find_company_id_by_email("someone@gmail.com") is None
    assert await service.find_company_id_by_email("Jane@EU.acme.com") == acme.id
    assert await service.find_company_id_by_email("garbage") is None


@pytest.mark.db
@pytest.mark.asyncio
async def test_get_entity_type_hides_unknown(db, make_company):
    service = CompanyResolverService(db)
    await make_company("Mystery Co")
    await make_company("Seed Fund", entity_type="vc_fund")

    assert await service.get_entity_type_by_name_or_domain("Mystery Co") is None
    assert await service.get_entity_type_by_name_or_domain("seed fund") == "vc_fund"
    assert await service.get_entity_type_by_name_or_domain("nope") is None


@pytest.mark.db
@pytest.mark.asyncio
async def test_get_or_create_company_reuses_then_creates(db, make_company):
    service = CompanyResolverService(db)
    existing = await make_company("Acme", primary_domain="acme.com")

    found = await service.get_or_create_company("Acme Corporation", "acme.com")
    assert found.id == existing.id

    created = await service.get_or_create_company("Umbrella", "eu.umbrella.co.uk")
    assert created.id != existing.id
    assert created.primary_domain == "umbrella.co.uk"
    assert created.entity_type == "prospect"
    assert await service.resolve_company_id(domain="eu.umbrella.co.uk") == created.id

    again = await service.get_or_create_company("umbrella", None)
    assert again.id == created.id


@pytest.mark.db
@pytest.mark.asyncio
async def test_get_or_create_company_for_domain_respects_other_domains(db, make_company):
    service = CompanyResolverService(db)
    acme = await make_company("Acme", primary_domain="acme.com")

    assert await service.get_or_create_company_for_domain("gmail.com", "Gmail") is None

    same_apex = await service.get_or_create_company_for_domain("eu.acme.com", "Acme")
    assert same_apex.id == acme.id

    other = await service.get_or_create_company_for_domain("acme.io", "Acme")
    assert other.id != acme.id
    assert (other.canonical_name, other.primary_domain) == ("acme.io", "acme.io")

    fresh = await service.get_or_create_company_for_domain("hooli.xyz", "Hooli")
    assert (fresh.canonical_name, fresh.primary_domain, fresh.entity_type) == ("Hooli", "hooli.xyz", "prospect")
    assert await service.get_or_create_company_for_domain("mail.hooli.xyz", "Anything") == fresh


@pytest.mark.db
@pytest.mark.asyncio
async def test_update_company_rename_keeps_old_name_resolving(db):
    service = CompanyResolverService(db)
    company = await service.create_company(CompanyCreate(canonical_name="Old Name Ltd"))

    updated = await service.update_company(company.id, CompanyUpdate(canonical_name="New Name Ltd"))

    assert updated.canonical_name == "New Name Ltd"
    assert updated.normalized_name == "new name ltd"
    assert await service.resolve_company_id(name="Old Name Ltd") == company.id
    assert await service.resolve_company_id(name="new name ltd") == company.id


@pytest.mark.db
@pytest.mark.asyncio
async def test_update_company_rename_conflict(db):
    service = CompanyResolverService(db)
    await service.create_company(CompanyCreate(canonical_name="Taken"))
    other = await service.create_company(CompanyCreate(canonical_name="Free"))

    with pytest.raises(CompanyNameConflictError):
        await service.update_company(other.id, CompanyUpdate(canonical_name="TAKEN"))


@pytest.mark.db
@pytest.mark.asyncio
async def test_update_company_missing(db):
    service = CompanyResolverService(db)

    with pytest.raises(CompanyNotFoundError):
        await service.update_company("missing", CompanyUpdate(city="Paris"))


@pytest.mark.db
@pytest.mark.asyncio
async def test_classification_upsert_creates_then_updates_with_audit(db):
    service = CompanyResolverService(db)
    audit = AuditRepository(db)

    created = await service.upsert_company_classification(
        CompanyClassificationUpsert(canonical_name="Sequoia", entity_type="vc_fund", primary_domain="sequoiacap.com")
    )
    assert created.entity_type == "vc_fund"
    assert created.include_in_companies_view is False
    assert created.primary_domain == "sequoiacap.com"

    updated = await service.upsert_company_classification(
        CompanyClassificationUpsert(canonical_name="Sequoia", entity_type="partner", include_in_companies_view=True)
    )
    assert updated.id == created.id
    assert updated.entity_type == "partner"
    assert updated.include_in_companies_view is True
    assert updated.primary_domain == "sequoiacap.com"

    entries = await audit.list_for_entity("company", created.id)
    assert [e.action for e in entries] == ["create", "update"]
    assert json.loads(entries[-1].changes_json)["entity_type"] == "partner"


@pytest.mark.db
@pytest.mark.asyncio
async def test_classification_upsert_keeps_a_different_stored_domain(db):
    service = CompanyResolverService(db)
    await service.create_company(CompanyCreate(canonical_name="Initech", primary_domain="initech.com"))

    updated = await service.upsert_company_classification(
        CompanyClassificationUpsert(canonical_name="Initech", entity_type="customer", primary_domain="initech.io")
    )

    assert updated.primary_domain == "initech.com"


@pytest.mark.db
@pytest.mark.asyncio
async def test_list_companies_view_and_filters(db):
    service = CompanyResolverService(db)
    await service.create_company(CompanyCreate(canonical_name="Alpha", description="fintech"))
    await service.create_company(CompanyCreate(canonical_name="Beta Ventures", entity_type="vc_fund"))
    await service.create_company(CompanyCreate(canonical_name="Gamma", entity_type="customer"))

    default_view = await service.list_companies()
    assert [c.canonical_name for c in default_view] == ["Alpha"]

    everything = await service.list_companies(CompanyListFilter(view="all"))
    assert [c.canonical_name for c in everything] == ["Alpha", "Beta Ventures", "Gamma"]

    funds = await service.list_companies(CompanyListFilter(view="all", entity_types=["VC_FUND"]))
    assert [c.canonical_name for c in funds] == ["Beta Ventures"]

    searched = await service.list_companies(CompanyListFilter(view="all", query="FINTECH"))
    assert [c.canonical_name for c in searched] == ["Alpha"]


@pytest.mark.db
@pytest.mark.asyncio
async def test_get_company_not_found(db):
    with pytest.raises(CompanyNotFoundError):
        await CompanyResolverService(db).get_company("nope")
