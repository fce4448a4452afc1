"""
Common API Schemas

Shared Pydantic models used across all API routers.

Every JSON response uses one envelope:
    {"status": "success" | "error", "message": str, "data": object | null}
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """
    Standard response envelope for success and error responses.

    Attributes:
        status: "success" or "error"
        message: Human-readable message
        data: Payload (entity, listing with pagination meta, or error details)
    """

    status: Literal["success", "error"] = Field(description="Outcome of the request")
    message: str = Field(description="Human-readable message")
    data: Optional[Any] = Field(default=None, description="Response payload")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "success",
                "message": "Proposal created successfully",
                "data": {
                    "proposal": {
                        "id": 42,
                        "title": "Structured concurrency in practice",
                        "status": "pending",
                        "tags": [{"id": 1, "name": "python"}],
                    }
                },
            }
        }

    @classmethod
    def success(cls, message: str, data: Any = None) -> "ApiResponse":
        return cls(status="success", message=message, data=data)

    @classmethod
    def error(cls, message: str, data: Any = None) -> "ApiResponse":
        return cls(status="error", message=message, data=data)


class HealthCheckResponse(BaseModel):
    """
    Health check response model.

    Attributes:
        status: Health status (always "ok" if endpoint responds)
        version: API version
        timestamp: Unix timestamp of health check
        redis: "ok" or "unavailable" (cache store PING)
    """

    status: str = "ok"
    version: str
    timestamp: float
    redis: Literal["ok", "unavailable"] = "ok"
