"""Attendee and meeting contact sync."""

import pytest
from sqlalchemy import select, func

from relgraph.errors import CompanyNotFoundError, ContactNotFoundError, ValidationError
from relgraph.models.contact import Contact, ContactEmail, OrgCompanyContact
from relgraph.schemas.contact import ContactCreate, ContactUpdate
from relgraph.services.contact_sync_service import ContactSyncService


async def _contact_count(db) -> int:
    return (await db.execute(select(func.count()).select_from(Contact))).scalar()


@pytest.mark.db
@pytest.mark.asyncio
async def test_sync_from_attendees_creates_contacts_with_primary_email(db, test_settings):
    service = ContactSyncService(db, config=test_settings)

    result = await service.sync_contacts_from_attendees(
        ["Jane Doe <jane@acme.com>", "bob.smith@acme.com", "Nameless"],
        ["not-an-email"],
    )

    assert result.candidates == 2
    assert result.inserted == 2
    assert result.invalid == 1

    jane = await service.repo.get_by_email("jane@acme.com")
    assert jane.full_name == "Jane Doe"
    assert (jane.first_name, jane.last_name) == ("Jane", "Doe")
    assert jane.email == "jane@acme.com"
    emails = await service.list_contact_emails(jane.id)
    assert [(e.email, e.is_primary) for e in emails] == [("jane@acme.com", True)]

    bob = await service.repo.get_by_email("BOB.SMITH@acme.com")
    assert bob.full_name == "Bob Smith"


@pytest.mark.db
@pytest.mark.asyncio
async def test_sync_is_idempotent(db, test_settings):
    service = ContactSyncService(db, config=test_settings)
    attendees = ["Jane Doe <jane@acme.com>", "bob@acme.com"]

    await service.sync_contacts_from_attendees(attendees, [])
    again = await service.sync_contacts_from_attendees(attendees, [])

    assert again.inserted == 0
    assert again.updated == 0
    assert again.skipped == 2
    assert await _contact_count(db) == 2


@pytest.mark.db
@pytest.mark.asyncio
async def test_explicit_name_replaces_inferred_but_not_the_reverse(db, test_settings):
    service = ContactSyncService(db, config=test_settings)

    await service.sync_contacts_from_attendees(["dan.ortiz@acme.com"], [])
    contact = await service.repo.get_by_email("dan.ortiz@acme.com")
    assert contact.full_name == "Dan Ortiz"

    upgraded = await service.sync_contacts_from_attendees(["Daniel Ortiz <dan.ortiz@acme.com>"], [])
    assert upgraded.updated == 1
    assert contact.full_name == "Daniel Ortiz"

    downgraded = await service.sync_contacts_from_attendees(["dan.ortiz@acme.com"], [])
    assert downgraded.updated == 0
    assert contact.full_name == "Daniel Ortiz"


@pytest.mark.db
@pytest.mark.asyncio
async def test_sync_links_contact_to_company_by_domain(db, make_company, test_settings):
    acme = await make_company("Acme", primary_domain="acme.com")
    service = ContactSyncService(db, config=test_settings)

    await service.sync_contacts_from_attendees(["Jane <jane@eu.acme.com>", "joe@gmail.com"], [])

    jane = await service.repo.get_by_email("jane@eu.acme.com")
    joe = await service.repo.get_by_email("joe@gmail.com")
    assert jane.primary_company_id == acme.id
    assert joe.primary_company_id is None

    edge = await db.get(OrgCompanyContact, {"company_id": acme.id, "contact_id": jane.id})
    assert edge is not None
    assert edge.is_primary is True


@pytest.mark.db
@pytest.mark.asyncio
async def test_auto_link_picks_up_companies_created_later(db, make_company, test_settings):
    service = ContactSyncService(db, config=test_settings)
    await service.sync_contacts_from_attendees(["jane@initech.com"], [])
    jane = await service.repo.get_by_email("jane@initech.com")
    assert jane.primary_company_id is None

    initech = await make_company("Initech", primary_domain="initech.com")
    linked = await service.auto_link_contacts_by_domain()

    assert linked == 1
    assert jane.primary_company_id == initech.id
    assert await service.auto_link_contacts_by_domain() == 0


@pytest.mark.db
@pytest.mark.asyncio
async def test_sync_from_meetings_folds_all_meetings(db, make_meeting, test_settings):
    await make_meeting(attendees=["carol@acme.com"])
    await make_meeting(attendees=["Carol Danvers (carol@acme.com)", "Eve <eve@acme.com>"])
    await make_meeting(attendees=["Frank"], attendee_emails=["frank@acme.com", "bad"])
    service = ContactSyncService(db, config=test_settings)

    result = await service.sync_contacts_from_meetings()

    assert result.scanned_meetings == 3
    assert result.candidates == 3
    assert result.inserted == 3
    assert result.invalid == 1
    carol = await service.repo.get_by_email("carol@acme.com")
    assert carol.full_name == "Carol Danvers"
    frank = await service.repo.get_by_email("frank@acme.com")
    assert frank.full_name == "Frank"


@pytest.mark.db
@pytest.mark.asyncio
async def test_new_email_for_existing_contact_is_not_stolen(db, test_settings):
    service = ContactSyncService(db, config=test_settings)
    jane = await service.create_contact(ContactCreate(full_name="Jane Doe", email="jane@acme.com"))
    await service.add_contact_email(jane.id, "jane@personal.dev")

    result = await service.sync_contacts_from_attendees(["Jane Doe <jane@personal.dev>"], [])

    assert result.inserted == 0
    assert await _contact_count(db) == 1
    rows = (await db.execute(select(ContactEmail).where(ContactEmail.contact_id == jane.id))).scalars().all()
    assert {r.email for r in rows} == {"jane@acme.com", "jane@personal.dev"}
    assert sum(1 for r in rows if r.is_primary) == 1


@pytest.mark.db
@pytest.mark.asyncio
async def test_create_contact_validation(db, test_settings):
    service = ContactSyncService(db, config=test_settings)

    with pytest.raises(ValidationError):
        await service.create_contact(ContactCreate(full_name="***"))
    with pytest.raises(ValidationError):
        await service.create_contact(ContactCreate(full_name="Jane", email="not-an-email"))
    with pytest.raises(CompanyNotFoundError):
        await service.create_contact(ContactCreate(full_name="Jane", primary_company_id="missing"))


@pytest.mark.db
@pytest.mark.asyncio
async def test_update_contact_and_primary_company(db, make_company, test_settings):
    service = ContactSyncService(db, config=test_settings)
    acme = await make_company("Acme", primary_domain="acme.com")
    globex = await make_company("Globex")
    contact = await service.create_contact(ContactCreate(full_name="Jane", email="jane@acme.com"))
    assert contact.primary_company_id == acme.id

    renamed = await service.update_contact(contact.id, ContactUpdate(full_name="Jane  Doe", title="CTO"))
    assert renamed.full_name == "Jane  Doe"
    assert renamed.normalized_name == "jane doe"
    assert (renamed.first_name, renamed.last_name) == ("Jane", "Doe")
    assert renamed.title == "CTO"

    moved = await service.set_contact_primary_company(contact.id, globex.id)
    assert moved.primary_company_id == globex.id
    edges = (
        await db.execute(select(OrgCompanyContact).where(OrgCompanyContact.contact_id == contact.id))
    ).scalars().all()
    assert [(e.company_id, e.is_primary) for e in edges] == [(globex.id, True)]

    cleared = await service.set_contact_primary_company(contact.id, None)
    assert cleared.primary_company_id is None


@pytest.mark.db
@pytest.mark.asyncio
async def test_resolve_contacts_by_emails(db, test_settings):
    service = ContactSyncService(db, config=test_settings)
    jane = await service.create_contact(ContactCreate(full_name="Jane", email="jane@acme.com"))
    await service.add_contact_email(jane.id, "j@side.io")

    mapping = await service.resolve_contacts_by_emails(["JANE@acme.com", "j@side.io", "who@acme.com", "junk"])

    assert mapping == {"jane@acme.com": jane.id, "j@side.io": jane.id}


@pytest.mark.db
@pytest.mark.asyncio
async def test_get_contact_not_found(db, test_settings):
    with pytest.raises(ContactNotFoundError):
        await ContactSyncService(db, config=test_settings).get_contact("nope")
