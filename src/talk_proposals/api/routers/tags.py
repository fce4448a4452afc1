"""
API Router for Tags

Contains:
    - GET  /tags    All tags, optional ?search= substring filter (cached when unfiltered)
    - POST /tags    Create a tag; an existing name returns the existing tag
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from talk_proposals.api.dependencies import get_current_user, get_tag_service
from talk_proposals.api.schemas.common import ApiResponse
from talk_proposals.api.schemas.requests import TagCreateRequest
from talk_proposals.application.services import TagService
from talk_proposals.domain.proposals.entities import User

router = APIRouter(
    prefix="/tags",
    tags=["tags"],
    responses={401: {"model": ApiResponse, "description": "Unauthenticated"}},
)


@router.get("", response_model=ApiResponse, summary="List tags")
def list_tags(
    search: Optional[str] = Query(default=None, max_length=255),
    user: User = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
) -> ApiResponse:
    tags = service.list(search)
    return ApiResponse.success("Tags retrieved successfully", {"tags": [t.to_dict() for t in tags]})


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="Create a tag",
    responses={422: {"model": ApiResponse, "description": "Validation error"}},
)
def create_tag(
    body: TagCreateRequest,
    user: User = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
) -> ApiResponse:
    tag = service.create(body.name)
    return ApiResponse.success("Tag created successfully", {"tag": tag.to_dict()})
