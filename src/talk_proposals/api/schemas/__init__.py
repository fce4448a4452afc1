"""API request/response schemas."""

from talk_proposals.api.schemas.common import ApiResponse, HealthCheckResponse
from talk_proposals.api.schemas.requests import (
    ReviewCreateRequest,
    StatusUpdateRequest,
    TagCreateRequest,
)

__all__ = [
    "ApiResponse",
    "HealthCheckResponse",
    "ReviewCreateRequest",
    "StatusUpdateRequest",
    "TagCreateRequest",
]
