"""
Application Services (Use Cases)

Exports:
    - ProposalService: Submit, update, delete, view, list, top-rated, download
    - AdminProposalService: Status moderation and admin listing
    - ReviewService: Reviewer ratings
    - TagService: Tag creation and listing
    - FileUploadService: PDF signature and per-user quota guard
    - ProposalCache: Cache key layout and invalidation
"""

from talk_proposals.application.services.admin_proposal_service import (
    AdminProposalService,
)
from talk_proposals.application.services.file_upload_service import FileUploadService
from talk_proposals.application.services.proposal_cache import ProposalCache
from talk_proposals.application.services.proposal_service import (
    ProposalService,
    UploadedFile,
)
from talk_proposals.application.services.review_service import ReviewService
from talk_proposals.application.services.tag_service import TagService

__all__ = [
    "AdminProposalService",
    "FileUploadService",
    "ProposalCache",
    "ProposalService",
    "ReviewService",
    "TagService",
    "UploadedFile",
]
