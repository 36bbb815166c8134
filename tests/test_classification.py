import pytest

from relgraph.models.company_history import CompanyNote, Deal, InvestmentMemo
from relgraph.repositories.audit_repository import AuditRepository
from relgraph.repositories.link_repository import LinkRepository
from relgraph.schemas.classification import ClassificationSignals
from relgraph.services.classification_service import ClassificationService, infer_entity_type


@pytest.mark.unit
@pytest.mark.parametrize(
    "signals",
    [
        ClassificationSignals(has_memo=True),
        ClassificationSignals(has_deal=True),
        ClassificationSignals(has_notes=True),
        ClassificationSignals(stage_present=True),
        ClassificationSignals(meeting_count=3),
    ],
)
def test_any_prospect_signal_wins(signals):
    result = infer_entity_type("Blue Capital", "bluecap.com", signals)

    assert result.entity_type == "prospect"
    assert result.include_in_view is True
    assert result.confidence == 0.9


@pytest.mark.unit
@pytest.mark.parametrize(
    "name, domain",
    [
        ("Blue Ventures", None),
        ("Acme", "acmecapital.com"),
        ("Angel Syndicate", None),
    ],
)
def test_vc_hints_mark_funds(name, domain):
    result = infer_entity_type(name, domain, ClassificationSignals(meeting_count=2))

    assert result.entity_type == "vc_fund"
    assert result.include_in_view is False
    assert result.confidence == 0.9


@pytest.mark.unit
def test_no_signal_is_unknown():
    result = infer_entity_type("Acme", "acme.com", ClassificationSignals())

    assert result.entity_type == "unknown"
    assert result.include_in_view is False
    assert result.confidence == 0.4


@pytest.mark.db
@pytest.mark.asyncio
async def test_classify_companies_uses_history_and_skips_manual(db, make_company, make_meeting):
    with_deal = await make_company("Widgets")
    db.add(Deal(company_id=with_deal.id, stage="seed"))
    with_memo = await make_company("Gizmos")
    db.add(InvestmentMemo(company_id=with_memo.id, title="IC memo"))
    with_notes = await make_company("Doohickeys")
    db.add(CompanyNote(company_id=with_notes.id, content="call notes"))
    fund = await make_company("North Star Ventures")
    met_often = await make_company("Frequent")
    links = LinkRepository(db)
    for _ in range(3):
        meeting = await make_meeting()
        await links.link_meeting_company(meeting.id, met_often.id, 0.7, "auto")
    manual = await make_company(
        "Hand Picked Capital",
        entity_type="customer",
        classification_source="manual",
        include_in_companies_view=True,
        classification_confidence=1.0,
    )
    await db.flush()

    result = await ClassificationService(db).classify_companies()

    assert result.scanned == 6
    assert result.skipped_manual == 1
    assert result.updated == 5
    assert with_deal.entity_type == "prospect"
    assert with_memo.entity_type == "prospect"
    assert with_notes.entity_type == "prospect"
    assert met_often.entity_type == "prospect"
    assert met_often.include_in_companies_view is True
    assert fund.entity_type == "vc_fund"
    assert fund.classification_source == "auto"
    assert manual.entity_type == "customer"

    entries = await AuditRepository(db).list_for_entity("company", fund.id)
    assert [e.action for e in entries] == ["classify"]


@pytest.mark.db
@pytest.mark.asyncio
async def test_classify_is_stable_on_rerun(db, make_company):
    company = await make_company("Plain Co", stage="Series A")
    service = ClassificationService(db)

    first = await service.classify_companies([company.id, "missing"])
    second = await service.classify_companies([company.id])

    assert first.scanned == 1
    assert first.updated_ids == [company.id]
    assert second.updated == 0
    assert company.entity_type == "prospect"
