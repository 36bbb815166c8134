"""Email participant ingestion."""

import pytest
from sqlalchemy import select

from relgraph.errors import CompanyNotFoundError
from relgraph.models.company import Company
from relgraph.models.links import EmailCompanyLink, EmailContactLink
from relgraph.models.meeting import EmailMessage, EmailMessageParticipant
from relgraph.schemas.contact import ContactCreate
from relgraph.schemas.email_ingest import EmailIngestRequest, EmailParticipantInput
from relgraph.services.contact_sync_service import ContactSyncService
from relgraph.services.email_ingest_service import EmailIngestService, should_promote_contact_name
from relgraph.services.enrichment_cache_service import EnrichmentCacheService


def _request(message_id="msg-1", **kwargs):
    participants = kwargs.pop(
        "participants",
        [
            EmailParticipantInput(role="from", email="Jane.Doe@Acme.com", display_name='"Jane Doe"'),
            EmailParticipantInput(role="to", email="me@mycorp.com", display_name="Me"),
            EmailParticipantInput(role="cc", email="bob@gmail.com", display_name="unknown"),
            EmailParticipantInput(role="cc", email="broken", display_name="Broken"),
        ],
    )
    return EmailIngestRequest(message_id=message_id, participants=participants, **kwargs)


@pytest.mark.unit
@pytest.mark.parametrize(
    "existing, candidate, expected",
    [
        (None, "Jane Doe", True),
        ("Jane", "Jane Doe", True),
        ("Jane Doe", "Jane Doe", False),
        ("Jane Doe", "Jane", False),
        ("Jane Doe", "Bob Smith", False),
        ("Jane Doe", "Jane Doe Smith", True),
        ("J", "Jane", True),
        ("Jane Doe", None, False),
    ],
)
def test_should_promote_contact_name(existing, candidate, expected):
    assert should_promote_contact_name(existing, candidate) is expected


@pytest.mark.db
@pytest.mark.asyncio
async def test_ingest_creates_contacts_participants_and_links(db, test_settings):
    service = EmailIngestService(db, config=test_settings)

    result = await service.ingest_email_participants(
        _request(account_email="me@mycorp.com", subject="Intro", reason="participant domain")
    )

    assert result.participants == 2
    assert result.skipped == 2
    assert result.contacts_created == 2
    assert result.contact_links == 2

    message = await db.get(EmailMessage, "msg-1")
    assert message.subject == "Intro"
    assert message.from_email == "jane.doe@acme.com"
    assert message.from_name == "Jane Doe"

    jane = await service.contacts.get_by_email("jane.doe@acme.com")
    assert jane.full_name == "Jane Doe"
    bob = await service.contacts.get_by_email("bob@gmail.com")
    assert bob.full_name == "Bob"

    participants = (await db.execute(select(EmailMessageParticipant))).scalars().all()
    assert {(p.role, p.email, p.contact_id) for p in participants} == {
        ("from", "jane.doe@acme.com", jane.id),
        ("cc", "bob@gmail.com", bob.id),
    }

    contact_links = (await db.execute(select(EmailContactLink))).scalars().all()
    assert {link.contact_id for link in contact_links} == {jane.id, bob.id}
    assert all(link.confidence == test_settings.EMAIL_CONTACT_LINK_CONFIDENCE for link in contact_links)

    # acme.com has no company yet: one is created from the domain, gmail is ignored
    assert len(result.company_ids) == 1
    company = await db.get(Company, result.company_ids[0])
    assert company.canonical_name == "Acme"
    assert company.primary_domain == "acme.com"
    assert jane.primary_company_id == company.id
    company_link = await db.get(EmailCompanyLink, {"message_id": "msg-1", "company_id": company.id})
    assert company_link.reason == "participant domain"


@pytest.mark.db
@pytest.mark.asyncio
async def test_ingest_uses_cached_enrichment_name(db, test_settings):
    await EnrichmentCacheService(db).record_enrichment("acme.com", "Acme Robotics")
    service = EmailIngestService(db, config=test_settings)

    result = await service.ingest_email_participants(_request())

    company = await db.get(Company, result.company_ids[0])
    assert company.canonical_name == "Acme Robotics"


@pytest.mark.db
@pytest.mark.asyncio
async def test_ingest_with_explicit_company(db, make_company, test_settings):
    target = await make_company("Chosen")
    service = EmailIngestService(db, config=test_settings)

    result = await service.ingest_email_participants(_request(company_id=target.id, confidence=0.6))

    assert result.company_ids == [target.id]
    link = await db.get(EmailCompanyLink, {"message_id": "msg-1", "company_id": target.id})
    assert link.confidence == 0.6
    assert (await db.execute(select(Company).where(Company.primary_domain == "acme.com"))).scalar() is None


@pytest.mark.db
@pytest.mark.asyncio
async def test_ingest_unknown_company_id_raises(db, test_settings):
    service = EmailIngestService(db, config=test_settings)

    with pytest.raises(CompanyNotFoundError):
        await service.ingest_email_participants(_request(company_id="missing"))
    assert await db.get(EmailMessage, "msg-1") is None


@pytest.mark.db
@pytest.mark.asyncio
async def test_ingest_skips_account_domain_for_companies(db, test_settings):
    service = EmailIngestService(db, config=test_settings)

    result = await service.ingest_email_participants(
        _request(
            account_email="me@acme.com",
            participants=[EmailParticipantInput(role="to", email="colleague@acme.com", display_name="Colleague")],
        )
    )

    assert result.participants == 1
    assert result.company_ids == []


@pytest.mark.db
@pytest.mark.asyncio
async def test_ingest_is_idempotent_and_improves_names(db, test_settings):
    contacts = ContactSyncService(db, config=test_settings)
    jane = await contacts.create_contact(ContactCreate(full_name="Jane", email="jane.doe@acme.com"))
    service = EmailIngestService(db, config=test_settings)

    first = await service.ingest_email_participants(_request(account_email="me@mycorp.com"))
    second = await service.ingest_email_participants(_request(account_email="me@mycorp.com"))

    assert first.contacts_created == 1
    assert first.contacts_updated == 1
    assert second.contacts_created == 0
    assert second.contacts_updated == 0
    refreshed = await contacts.get_contact(jane.id)
    assert refreshed.full_name == "Jane Doe"
    assert (refreshed.first_name, refreshed.last_name) == ("Jane", "Doe")

    participants = (await db.execute(select(EmailMessageParticipant))).scalars().all()
    assert len(participants) == 2
    assert len((await db.execute(select(EmailContactLink))).scalars().all()) == 2


@pytest.mark.db
@pytest.mark.asyncio
async def test_ingest_bracketed_address_maps_to_one_contact(db, test_settings):
    service = EmailIngestService(db, config=test_settings)

    result = await service.ingest_email_participants(
        _request(
            participants=[
                EmailParticipantInput(role="to", email="<bob@initech.com>;", display_name="Bob"),
                EmailParticipantInput(role="cc", email="bob@initech.com", display_name="Bob"),
            ]
        )
    )

    assert result.contacts_created == 1
    participants = (await db.execute(select(EmailMessageParticipant))).scalars().all()
    assert {p.email for p in participants} == {"bob@initech.com"}


@pytest.mark.db
@pytest.mark.asyncio
async def test_ingest_does_not_link_same_named_company_on_other_domain(db, make_company, test_settings):
    acme = await make_company("Acme", primary_domain="acme.com")
    service = EmailIngestService(db, config=test_settings)
    participants = [EmailParticipantInput(role="from", email="jane@acme.io", display_name="Jane")]

    result = await service.ingest_email_participants(_request(participants=participants))

    assert len(result.company_ids) == 1
    assert result.company_ids != [acme.id]
    created = await db.get(Company, result.company_ids[0])
    assert created.canonical_name == "acme.io"
    assert created.primary_domain == "acme.io"
    assert await service.resolver.resolve_company_id(domain="acme.io") == created.id
    assert acme.primary_domain == "acme.com"

    again = await service.ingest_email_participants(_request(message_id="msg-2", participants=participants))
    assert again.company_ids == [created.id]
    assert len((await db.execute(select(Company))).scalars().all()) == 2


@pytest.mark.db
@pytest.mark.asyncio
async def test_ingest_reuses_same_named_company_without_domain(db, make_company, test_settings):
    globex = await make_company("Globex")
    service = EmailIngestService(db, config=test_settings)

    result = await service.ingest_email_participants(
        _request(participants=[EmailParticipantInput(role="from", email="hank@mail.globex.io", display_name="Hank")])
    )

    assert result.company_ids == [globex.id]
    assert globex.primary_domain == "globex.io"
    assert await service.resolver.resolve_company_id(domain="globex.io") == globex.id
    hank = await service.contacts.get_by_email("hank@mail.globex.io")
    assert hank.primary_company_id == globex.id
