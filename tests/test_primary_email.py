"""Primary email invariants of a contact's email set."""

import pytest
from sqlalchemy import select

from relgraph.errors import EmailOwnershipError, ValidationError
from relgraph.models.contact import ContactEmail
from relgraph.schemas.contact import ContactCreate
from relgraph.services.contact_sync_service import ContactSyncService


async def _assert_single_primary(db, contact):
    rows = (await db.execute(select(ContactEmail).where(ContactEmail.contact_id == contact.id))).scalars().all()
    primaries = [r.email for r in rows if r.is_primary]
    if rows:
        assert primaries == [contact.email]
    else:
        assert contact.email is None


@pytest.mark.db
@pytest.mark.asyncio
async def test_first_email_becomes_primary(db, test_settings):
    service = ContactSyncService(db, config=test_settings)
    created = await service.create_contact(ContactCreate(full_name="Jane Doe"))
    assert created.email is None

    emails = await service.add_contact_email(created.id, "Jane@Acme.com")

    assert [(e.email, e.is_primary) for e in emails] == [("jane@acme.com", True)]
    contact = await service.repo.get(created.id)
    assert contact.email == "jane@acme.com"


@pytest.mark.db
@pytest.mark.asyncio
async def test_set_primary_switches_flag_and_mirror(db, test_settings):
    service = ContactSyncService(db, config=test_settings)
    created = await service.create_contact(ContactCreate(full_name="Jane Doe", email="a@acme.com"))
    await service.add_contact_email(created.id, "b@acme.com")

    emails = await service.set_contact_primary_email(created.id, "B@acme.com")

    assert [(e.email, e.is_primary) for e in emails] == [("b@acme.com", True), ("a@acme.com", False)]
    contact = await service.repo.get(created.id)
    assert contact.email == "b@acme.com"
    await _assert_single_primary(db, contact)


@pytest.mark.db
@pytest.mark.asyncio
async def test_add_as_primary(db, test_settings):
    service = ContactSyncService(db, config=test_settings)
    created = await service.create_contact(ContactCreate(full_name="Jane Doe", email="a@acme.com"))

    await service.add_contact_email(created.id, "new@acme.com", is_primary=True)

    contact = await service.repo.get(created.id)
    assert contact.email == "new@acme.com"
    await _assert_single_primary(db, contact)


@pytest.mark.db
@pytest.mark.asyncio
async def test_removing_primary_promotes_oldest_remaining(db, test_settings):
    service = ContactSyncService(db, config=test_settings)
    created = await service.create_contact(ContactCreate(full_name="Jane Doe", email="a@acme.com"))
    await service.add_contact_email(created.id, "b@acme.com")
    await service.add_contact_email(created.id, "c@acme.com")

    emails = await service.remove_contact_email(created.id, "a@acme.com")

    assert [(e.email, e.is_primary) for e in emails] == [("b@acme.com", True), ("c@acme.com", False)]
    contact = await service.repo.get(created.id)
    assert contact.email == "b@acme.com"
    await _assert_single_primary(db, contact)


@pytest.mark.db
@pytest.mark.asyncio
async def test_removing_last_email_clears_mirror(db, test_settings):
    service = ContactSyncService(db, config=test_settings)
    created = await service.create_contact(ContactCreate(full_name="Jane Doe", email="a@acme.com"))

    emails = await service.remove_contact_email(created.id, "a@acme.com")

    assert emails == []
    contact = await service.repo.get(created.id)
    assert contact.email is None
    await _assert_single_primary(db, contact)


@pytest.mark.db
@pytest.mark.asyncio
async def test_removing_secondary_keeps_primary(db, test_settings):
    service = ContactSyncService(db, config=test_settings)
    created = await service.create_contact(ContactCreate(full_name="Jane Doe", email="a@acme.com"))
    await service.add_contact_email(created.id, "b@acme.com")

    await service.remove_contact_email(created.id, "b@acme.com")

    contact = await service.repo.get(created.id)
    assert contact.email == "a@acme.com"
    await _assert_single_primary(db, contact)


@pytest.mark.db
@pytest.mark.asyncio
async def test_email_owned_by_other_contact_is_rejected(db, test_settings):
    service = ContactSyncService(db, config=test_settings)
    jane = await service.create_contact(ContactCreate(full_name="Jane Doe", email="shared@acme.com"))
    bob = await service.create_contact(ContactCreate(full_name="Bob Smith"))

    with pytest.raises(EmailOwnershipError) as exc_info:
        await service.add_contact_email(bob.id, "SHARED@acme.com")

    assert exc_info.value.status_code == 409
    assert exc_info.value.details["contact_id"] == jane.id
    assert await service.list_contact_emails(bob.id) == []


@pytest.mark.db
@pytest.mark.asyncio
async def test_invalid_email_is_rejected(db, test_settings):
    service = ContactSyncService(db, config=test_settings)
    created = await service.create_contact(ContactCreate(full_name="Jane Doe"))

    with pytest.raises(ValidationError):
        await service.add_contact_email(created.id, "nope")
    with pytest.raises(ValidationError):
        await service.set_contact_primary_email(created.id, "")
