"""
JSON Request Bodies

Multipart bodies (proposal create/update) are declared directly on the
route with Form/File parameters; everything else is a JSON body here.
"""

from typing import Optional

from pydantic import BaseModel, Field

from talk_proposals.domain.proposals.entities import ProposalStatus, ReviewRating


class StatusUpdateRequest(BaseModel):
    """Admin status change. Value is checked against ProposalStatus by the service."""

    status: str = Field(description=f"One of: {', '.join(ProposalStatus.values())}")

    class Config:
        json_schema_extra = {"example": {"status": "approved"}}


class ReviewCreateRequest(BaseModel):
    rating: int = Field(
        description=f"One of: {', '.join(str(v) for v in ReviewRating.values())}"
    )
    comment: Optional[str] = Field(default=None, description="Optional free-text comment")

    class Config:
        json_schema_extra = {
            "example": {"rating": 5, "comment": "Clear outline, strong speaker."}
        }


class TagCreateRequest(BaseModel):
    name: str = Field(description="Tag name (case-sensitive, max 50 characters)")

    class Config:
        json_schema_extra = {"example": {"name": "python"}}
