"""
API Router for Reviews

Contains:
    - GET  /review/proposals                         Reviewer listing
    - GET  /proposals/{id}/reviews                   Reviews of a proposal
    - POST /proposals/{id}/reviews                   Rate a proposal (201)
    - GET  /proposals/{id}/reviews/{review_id}       Single review

One review per reviewer and proposal; a second attempt is rejected with 422.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from talk_proposals.api.dependencies import (
    get_current_user,
    get_proposal_service,
    get_review_service,
)
from talk_proposals.api.routers.proposals import page_payload, parse_tag_ids
from talk_proposals.api.schemas.common import ApiResponse
from talk_proposals.api.schemas.requests import ReviewCreateRequest
from talk_proposals.application.services import ProposalService, ReviewService
from talk_proposals.application.services.proposal_service import DEFAULT_PER_PAGE
from talk_proposals.domain.proposals.entities import User

router = APIRouter(
    tags=["reviews"],
    responses={
        401: {"model": ApiResponse, "description": "Unauthenticated"},
        403: {"model": ApiResponse, "description": "Forbidden - Reviewer only"},
        500: {"model": ApiResponse, "description": "Internal Server Error"},
    },
)


@router.get("/review/proposals", response_model=ApiResponse, summary="Proposals to review")
def list_proposals_for_review(
    search: Optional[str] = Query(default=None, max_length=255),
    tags: List[str] = Query(default=[]),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    page: int = Query(default=1),
    per_page: int = Query(default=DEFAULT_PER_PAGE),
    user: User = Depends(get_current_user),
    service: ProposalService = Depends(get_proposal_service),
) -> ApiResponse:
    result = service.list_for_review(
        user,
        search=search,
        status=status_filter,
        tag_ids=parse_tag_ids(tags),
        page=page,
        per_page=per_page,
    )
    return ApiResponse.success("Proposals retrieved successfully", page_payload(result))


@router.get(
    "/proposals/{proposal_id}/reviews",
    response_model=ApiResponse,
    summary="List reviews of a proposal",
)
def list_reviews(
    proposal_id: int,
    user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
) -> ApiResponse:
    reviews = service.list(proposal_id)
    return ApiResponse.success(
        "Reviews retrieved successfully", {"reviews": [r.to_dict() for r in reviews]}
    )


@router.post(
    "/proposals/{proposal_id}/reviews",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="Review a proposal",
    responses={
        404: {"model": ApiResponse, "description": "Proposal not found"},
        422: {"model": ApiResponse, "description": "Invalid rating or duplicate review"},
    },
)
def create_review(
    proposal_id: int,
    body: ReviewCreateRequest,
    user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
) -> ApiResponse:
    review = service.create(user, proposal_id, body.rating, body.comment)
    return ApiResponse.success("Review created successfully", {"review": review.to_dict()})


@router.get(
    "/proposals/{proposal_id}/reviews/{review_id}",
    response_model=ApiResponse,
    summary="Get a review",
    responses={404: {"model": ApiResponse, "description": "Review not found"}},
)
def get_review(
    proposal_id: int,
    review_id: int,
    user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
) -> ApiResponse:
    review = service.get(proposal_id, review_id)
    return ApiResponse.success("Review retrieved successfully", {"review": review.to_dict()})
