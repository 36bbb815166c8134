"""
Schemas package.

Import all schemas here for easy access.
"""

from relgraph.schemas.company import (
    CompanyCreate,
    CompanyUpdate,
    CompanyRead,
    CompanyDetail,
    CompanyListFilter,
    CompanyClassificationUpsert,
    CompanyResolveResult,
)
from relgraph.schemas.contact import (
    ContactCreate,
    ContactUpdate,
    ContactRead,
    ContactEmailRead,
    ContactEmailAdd,
    AttendeeSyncRequest,
    ContactSyncResult,
    MeetingContactSyncResult,
    AutoLinkResult,
    PrimaryCompanyRequest,
)
from relgraph.schemas.classification import (
    ClassificationSignals,
    Classification,
    ClassificationRunRequest,
    ClassificationRunResult,
)
from relgraph.schemas.merge import MergeRequest, MergeResult
from relgraph.schemas.links import MeetingCompanySyncRequest, MeetingCompanySyncResult
from relgraph.schemas.email_ingest import EmailParticipantInput, EmailIngestRequest, EmailIngestResult
from relgraph.schemas.enrichment import EnrichmentRecord, EnrichmentResult

__all__ = [
    "CompanyCreate",
    "CompanyUpdate",
    "CompanyRead",
    "CompanyDetail",
    "CompanyListFilter",
    "CompanyClassificationUpsert",
    "CompanyResolveResult",
    "ContactCreate",
    "ContactUpdate",
    "ContactRead",
    "ContactEmailRead",
    "ContactEmailAdd",
    "AttendeeSyncRequest",
    "ContactSyncResult",
    "MeetingContactSyncResult",
    "AutoLinkResult",
    "PrimaryCompanyRequest",
    "ClassificationSignals",
    "Classification",
    "ClassificationRunRequest",
    "ClassificationRunResult",
    "MergeRequest",
    "MergeResult",
    "MeetingCompanySyncRequest",
    "MeetingCompanySyncResult",
    "EmailParticipantInput",
    "EmailIngestRequest",
    "EmailIngestResult",
    "EnrichmentRecord",
    "EnrichmentResult",
]
