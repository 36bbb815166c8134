"""
Repository for relationship edges.

Every edge is an upsert on its pair: linked_by/reason take the incoming
value, confidence keeps the max.
"""

from typing import List, Optional

from sqlalchemy import select, delete, and_
from sqlalchemy.ext.asyncio import AsyncSession

from relgraph.models.contact import OrgCompanyContact
from relgraph.models.links import EmailCompanyLink, EmailContactLink, MeetingCompanyLink
from relgraph.repositories.merge_policies import apply_unconditional, keep_max, upsert_by_key


def _take_new_keep_max(confidence: float, **replace):
    def merge(row):
        apply_unconditional(row, replace)
        keep_max(row, "confidence", confidence)
    return merge


class LinkRepository:
    """Upserts and lookups for meeting, email and contact edges."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def link_meeting_company(
        self,
        meeting_id: str,
        company_id: str,
        confidence: float = 1.0,
        linked_by: str = "manual",
    ) -> MeetingCompanyLink:
        return await upsert_by_key(
            self.db,
            MeetingCompanyLink,
            {"meeting_id": meeting_id, "company_id": company_id},
            {"confidence": confidence, "linked_by": linked_by},
            _take_new_keep_max(confidence, linked_by=linked_by),
        )

    async def unlink_meeting_company(self, meeting_id: str, company_id: str) -> bool:
        result = await self.db.execute(
            delete(MeetingCompanyLink).where(
                and_(MeetingCompanyLink.meeting_id == meeting_id, MeetingCompanyLink.company_id == company_id)
            )
        )
        return (result.rowcount or 0) > 0

    async def list_meeting_company_ids(self, meeting_id: str) -> List[str]:
        result = await self.db.execute(
            select(MeetingCompanyLink.company_id).where(MeetingCompanyLink.meeting_id == meeting_id)
        )
        return list(result.scalars().all())

    async def delete_meeting_links_except(self, meeting_id: str, keep_company_ids: List[str]) -> int:
        """Drop the meeting's links to companies not in ``keep_company_ids``."""
        query = delete(MeetingCompanyLink).where(MeetingCompanyLink.meeting_id == meeting_id)
        if keep_company_ids:
            query = query.where(MeetingCompanyLink.company_id.not_in(keep_company_ids))
        result = await self.db.execute(query)
        return result.rowcount or 0

    async def link_email_company(
        self,
        message_id: str,
        company_id: str,
        confidence: float = 1.0,
        reason: Optional[str] = None,
        linked_by: str = "auto",
    ) -> EmailCompanyLink:
        return await upsert_by_key(
            self.db,
            EmailCompanyLink,
            {"message_id": message_id, "company_id": company_id},
            {"confidence": confidence, "linked_by": linked_by, "reason": reason},
            _take_new_keep_max(confidence, linked_by=linked_by, reason=reason),
        )

    async def link_email_contact(
        self,
        message_id: str,
        contact_id: str,
        confidence: float = 1.0,
        linked_by: str = "auto",
    ) -> EmailContactLink:
        return await upsert_by_key(
            self.db,
            EmailContactLink,
            {"message_id": message_id, "contact_id": contact_id},
            {"confidence": confidence, "linked_by": linked_by},
            _take_new_keep_max(confidence, linked_by=linked_by),
        )

    async def link_company_contact(self, company_id: str, contact_id: str, is_primary: bool = False) -> OrgCompanyContact:
        """Affiliation edge; is_primary is sticky once set."""

        def merge(row):
            row.is_primary = bool(row.is_primary or is_primary)

        return await upsert_by_key(
            self.db,
            OrgCompanyContact,
            {"company_id": company_id, "contact_id": contact_id},
            {"is_primary": is_primary},
            merge,
        )
