"""
API Router for Proposals

Responsibility:
    HTTP interface of the speaker-facing proposal workflow: submit,
    list, view, update, delete, top-rated listing and attachment download.
    Thin layer that delegates to ProposalService via dependency injection.

Architecture Notes:
    - Part of API Layer (Presentation)
    - Create/update are multipart/form-data (optional PDF attachment)
    - Request-level file checks (extension, MIME, size) run here;
      signature and quota checks run in FileUploadService
    - Per-user budgets: submissions and uploads per hour (on top of the
      router-wide requests per minute set in api.main)
    - Domain exceptions propagate to the global handlers in api.main

Contains:
    - POST   /proposals                  Submit proposal (201)
    - GET    /proposals                  Paginated listing
    - GET    /proposals/top-rated        Top-rated approved proposals
    - GET    /proposals/{id}             Single proposal
    - PATCH  /proposals/{id}             Update fields/tags/attachment
    - DELETE /proposals/{id}             Delete proposal and its file
    - GET    /proposals/{id}/file        Download attachment
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import Response

from talk_proposals.api.dependencies import (
    RateLimit,
    get_app_container,
    get_current_user,
    get_proposal_service,
    read_pdf_upload,
)
from talk_proposals.api.schemas.common import ApiResponse
from talk_proposals.application.models import Page
from talk_proposals.application.services import ProposalService
from talk_proposals.application.services.proposal_service import DEFAULT_PER_PAGE
from talk_proposals.bootstrap import Container
from talk_proposals.domain.proposals.entities import Proposal, User
from talk_proposals.domain.shared.exceptions import ValidationError

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255
MAX_SEARCH_LENGTH = 255
UPLOAD_LIMIT = RateLimit.file_uploads()


# ============================================================================
# ROUTER CONFIGURATION
# ============================================================================


router = APIRouter(
    prefix="/proposals",
    tags=["proposals"],
    responses={
        401: {"model": ApiResponse, "description": "Unauthenticated"},
        403: {"model": ApiResponse, "description": "Forbidden"},
        429: {"model": ApiResponse, "description": "Too Many Requests"},
        500: {"model": ApiResponse, "description": "Internal Server Error"},
    },
)


# ============================================================================
# HELPERS
# ============================================================================


def parse_tag_ids(values: List[str]) -> List[int]:
    """
    Parse tag filter values.

    Accepts repeated query params and comma-separated strings alike:
    ?tags=1,2&tags=3 -> [1, 2, 3]
    """
    tag_ids: List[int] = []
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if not part:
                continue
            if not part.isdigit():
                raise ValidationError(
                    "The tags must be an array or comma-separated string of ids.",
                    field_name="tags",
                )
            tag_ids.append(int(part))
    return tag_ids


def page_payload(page: Page[Proposal]) -> dict:
    return {
        "proposals": [proposal.to_dict() for proposal in page.items],
        "meta": page.meta(),
    }


def _check_title(title: Optional[str]) -> None:
    if title is None:
        return
    if not title.strip():
        raise ValidationError("The title field is required.", field_name="title")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(
            f"The title must not be greater than {MAX_TITLE_LENGTH} characters.",
            field_name="title",
        )


# ============================================================================
# ENDPOINTS
# ============================================================================


@router.get("", response_model=ApiResponse, summary="List proposals")
def list_proposals(
    search: Optional[str] = Query(default=None, max_length=MAX_SEARCH_LENGTH),
    tags: List[str] = Query(default=[]),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    page: int = Query(default=1),
    per_page: int = Query(default=DEFAULT_PER_PAGE),
    user: User = Depends(get_current_user),
    service: ProposalService = Depends(get_proposal_service),
) -> ApiResponse:
    """
    Paginated listing, newest first.

    Speakers see only their own proposals; reviewers and admins see all.
    """
    result = service.list(
        user,
        search=search,
        status=status_filter,
        tag_ids=parse_tag_ids(tags),
        page=page,
        per_page=per_page,
    )
    return ApiResponse.success("Proposals retrieved successfully", page_payload(result))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="Submit a proposal",
    dependencies=[Depends(RateLimit.proposal_submissions())],
    responses={422: {"model": ApiResponse, "description": "Validation error"}},
)
async def submit_proposal(
    response: Response,
    title: str = Form(...),
    description: str = Form(...),
    tags: Optional[List[str]] = Form(default=None),
    file: Optional[UploadFile] = File(default=None, description="PDF attachment"),
    user: User = Depends(get_current_user),
    service: ProposalService = Depends(get_proposal_service),
    container: Container = Depends(get_app_container),
) -> ApiResponse:
    """
    Submit a new proposal (status=pending).

    Process Flow:
        1. Request-level checks (title, .pdf extension, MIME type, size)
        2. ProposalService.submit: signature + quota, store, insert, commit
        3. Caches invalidated, ProposalSubmitted published (jobs queued)
    """
    _check_title(title)
    if not description.strip():
        raise ValidationError("The description field is required.", field_name="description")

    upload = await read_pdf_upload(file, container.settings.max_upload_size_bytes)
    if upload is not None:
        UPLOAD_LIMIT.check(container, response, user)
    proposal = service.submit(user, title, description, tags=tags, file=upload)
    return ApiResponse.success(
        "Proposal created successfully", {"proposal": proposal.to_dict()}
    )


@router.get("/top-rated", response_model=ApiResponse, summary="Top-rated proposals")
def top_rated_proposals(
    limit: Optional[int] = Query(default=None),
    user: User = Depends(get_current_user),
    service: ProposalService = Depends(get_proposal_service),
    container: Container = Depends(get_app_container),
) -> ApiResponse:
    rows = service.top_rated(
        limit if limit is not None else container.settings.top_rated_default_limit
    )
    return ApiResponse.success(
        "Top-rated proposals retrieved successfully",
        {"proposals": [row.to_dict() for row in rows]},
    )


@router.get(
    "/{proposal_id}",
    response_model=ApiResponse,
    summary="Get a proposal",
    responses={404: {"model": ApiResponse, "description": "Proposal not found"}},
)
def get_proposal(
    proposal_id: int,
    user: User = Depends(get_current_user),
    service: ProposalService = Depends(get_proposal_service),
) -> ApiResponse:
    proposal = service.get(user, proposal_id)
    return ApiResponse.success(
        "Proposal retrieved successfully", {"proposal": proposal.to_dict()}
    )


@router.patch(
    "/{proposal_id}",
    response_model=ApiResponse,
    summary="Update a proposal",
    responses={
        404: {"model": ApiResponse, "description": "Proposal not found"},
        422: {"model": ApiResponse, "description": "Validation error"},
    },
)
async def update_proposal(
    proposal_id: int,
    response: Response,
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    tags: Optional[List[str]] = Form(default=None),
    file: Optional[UploadFile] = File(default=None, description="Replacement PDF"),
    user: User = Depends(get_current_user),
    service: ProposalService = Depends(get_proposal_service),
    container: Container = Depends(get_app_container),
) -> ApiResponse:
    """
    Partial update.

    Omitted fields stay untouched. Sending `tags` with a single empty
    value clears every tag; omitting `tags` leaves them as they are.
    """
    _check_title(title)
    if description is not None and not description.strip():
        raise ValidationError("The description field is required.", field_name="description")

    upload = await read_pdf_upload(file, container.settings.max_upload_size_bytes)
    if upload is not None:
        UPLOAD_LIMIT.check(container, response, user)
    proposal = service.update(
        user,
        proposal_id,
        title=title,
        description=description,
        tags=tags,
        file=upload,
    )
    return ApiResponse.success(
        "Proposal updated successfully", {"proposal": proposal.to_dict()}
    )


@router.delete(
    "/{proposal_id}",
    response_model=ApiResponse,
    summary="Delete a proposal",
    responses={404: {"model": ApiResponse, "description": "Proposal not found"}},
)
def delete_proposal(
    proposal_id: int,
    user: User = Depends(get_current_user),
    service: ProposalService = Depends(get_proposal_service),
) -> ApiResponse:
    service.delete(user, proposal_id)
    return ApiResponse.success("Proposal deleted successfully")


@router.get(
    "/{proposal_id}/file",
    summary="Download the proposal attachment",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}, "description": "PDF attachment"},
        404: {"model": ApiResponse, "description": "File not found"},
    },
)
def download_proposal_file(
    proposal_id: int,
    user: User = Depends(get_current_user),
    service: ProposalService = Depends(get_proposal_service),
) -> Response:
    stored = service.open_file(user, proposal_id)
    return Response(
        content=stored.content,
        media_type=stored.media_type,
        headers={"Content-Disposition": f'attachment; filename="{stored.filename}"'},
    )
