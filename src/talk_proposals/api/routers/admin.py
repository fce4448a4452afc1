"""
API Router for Proposal Moderation

Admin-only endpoints: listing every proposal and changing status.
Authorization is enforced by AdminProposalService, not here.

Contains:
    - GET   /admin/proposals                Paginated listing (all speakers)
    - PATCH /admin/proposals/{id}/status    Change status, emits ProposalStatusChanged
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from talk_proposals.api.dependencies import get_admin_proposal_service, get_current_user
from talk_proposals.api.routers.proposals import page_payload, parse_tag_ids
from talk_proposals.api.schemas.common import ApiResponse
from talk_proposals.api.schemas.requests import StatusUpdateRequest
from talk_proposals.application.services import AdminProposalService
from talk_proposals.application.services.proposal_service import DEFAULT_PER_PAGE
from talk_proposals.domain.proposals.entities import User

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={
        401: {"model": ApiResponse, "description": "Unauthenticated"},
        403: {"model": ApiResponse, "description": "Forbidden - Admin only"},
        500: {"model": ApiResponse, "description": "Internal Server Error"},
    },
)


@router.get("/proposals", response_model=ApiResponse, summary="List all proposals (admin)")
def list_all_proposals(
    search: Optional[str] = Query(default=None, max_length=255),
    tags: List[str] = Query(default=[]),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    page: int = Query(default=1),
    per_page: int = Query(default=DEFAULT_PER_PAGE),
    user: User = Depends(get_current_user),
    service: AdminProposalService = Depends(get_admin_proposal_service),
) -> ApiResponse:
    result = service.list(
        user,
        search=search,
        status=status_filter,
        tag_ids=parse_tag_ids(tags),
        page=page,
        per_page=per_page,
    )
    return ApiResponse.success("Proposals retrieved successfully", page_payload(result))


@router.patch(
    "/proposals/{proposal_id}/status",
    response_model=ApiResponse,
    summary="Change proposal status",
    responses={
        404: {"model": ApiResponse, "description": "Proposal not found"},
        422: {"model": ApiResponse, "description": "Invalid status"},
    },
)
def update_proposal_status(
    proposal_id: int,
    body: StatusUpdateRequest,
    user: User = Depends(get_current_user),
    service: AdminProposalService = Depends(get_admin_proposal_service),
) -> ApiResponse:
    """
    Move a proposal to pending/approved/rejected.

    Setting the current status again succeeds without notifying anyone.
    """
    proposal = service.update_status(user, proposal_id, body.status)
    return ApiResponse.success(
        "Proposal status updated successfully", {"proposal": proposal.to_dict()}
    )
