"""
API Dependencies

FastAPI dependency providers: the wired container, the authenticated
user, the application services, per-user rate limits and the
request-level upload checks.

Architecture Notes:
    - Part of API Layer (Presentation)
    - Tests replace get_app_container through app.dependency_overrides
    - Identity is the X-User-Id header resolved through the users
      repository; token/session issuing is handled outside this service
    - Rate limits are fixed windows counted in Redis; the tightest
      budget of a request is reported in X-RateLimit-* headers
"""

import logging
from pathlib import PurePath
from typing import Optional

from fastapi import Depends, Header, Response, UploadFile

from talk_proposals.application.services import (
    AdminProposalService,
    ProposalService,
    ReviewService,
    TagService,
    UploadedFile,
)
from talk_proposals.bootstrap import Container, get_container
from talk_proposals.domain.proposals.entities import User
from talk_proposals.domain.shared.exceptions import (
    AuthenticationError,
    RateLimitExceededError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ALLOWED_EXTENSION = ".pdf"
ALLOWED_CONTENT_TYPE = "application/pdf"


# ============================================================================
# CONTAINER & SERVICES
# ============================================================================


def get_app_container() -> Container:
    return get_container()


def get_proposal_service(container: Container = Depends(get_app_container)) -> ProposalService:
    return container.proposal_service


def get_admin_proposal_service(
    container: Container = Depends(get_app_container),
) -> AdminProposalService:
    return container.admin_proposal_service


def get_review_service(container: Container = Depends(get_app_container)) -> ReviewService:
    return container.review_service


def get_tag_service(container: Container = Depends(get_app_container)) -> TagService:
    return container.tag_service


# ============================================================================
# IDENTITY
# ============================================================================


def get_current_user(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    container: Container = Depends(get_app_container),
) -> User:
    """
    Resolve the caller from the X-User-Id header.

    Raises:
        AuthenticationError: Header missing, not an integer, or unknown user
    """
    if not x_user_id or not x_user_id.strip().isdigit():
        raise AuthenticationError()

    with container.uow_factory() as uow:
        user = uow.users.get(int(x_user_id))

    if user is None:
        logger.info(f"Rejected request for unknown user id {x_user_id}")
        raise AuthenticationError()
    return user


# ============================================================================
# UPLOAD CHECKS
# ============================================================================


async def read_pdf_upload(
    file: Optional[UploadFile], max_size_bytes: int
) -> Optional[UploadedFile]:
    """
    Request-level checks on an uploaded attachment.

    Checks extension (.pdf), declared content type (application/pdf) and
    size. Content signature and quota are domain rules, checked later by
    FileUploadService.

    Returns:
        UploadedFile, or None when no file was sent

    Raises:
        ValidationError: Any check failed (field "file")
    """
    if file is None or not file.filename:
        return None

    if PurePath(file.filename).suffix.lower() != ALLOWED_EXTENSION:
        raise ValidationError("The file must be a file of type: pdf.", field_name="file")
    if file.content_type != ALLOWED_CONTENT_TYPE:
        raise ValidationError("The file must be a file of type: pdf.", field_name="file")

    content = await file.read()
    if len(content) > max_size_bytes:
        max_kb = max_size_bytes // 1024
        raise ValidationError(
            f"The file must not be greater than {max_kb} kilobytes.", field_name="file"
        )
    return UploadedFile(content=content, filename=file.filename)


# ============================================================================
# RATE LIMITING
# ============================================================================


def enforce_rate_limit(
    container: Container,
    response: Response,
    user: User,
    scope: str,
    limit: int,
    window_seconds: int,
    message: str,
) -> None:
    """
    Count one request of user against a budget.

    Raises:
        RateLimitExceededError: Budget used up for the current window
    """
    if not container.settings.rate_limit_enabled:
        return

    result = container.rate_limiter.hit(f"user:{user.id}:{scope}", limit, window_seconds)
    if not result.allowed:
        logger.warning(f"User {user.id} throttled on {scope} ({limit}/{window_seconds}s)")
        raise RateLimitExceededError(message, limit=limit, retry_after=result.reset_after)

    reported = response.headers.get("X-RateLimit-Remaining")
    if reported is None or result.remaining < int(reported):
        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)


class RateLimit:
    """
    Dependency applying one per-user budget to a route or router.

    Examples:
        >>> router = APIRouter(dependencies=[Depends(RateLimit.api())])
    """

    def __init__(self, scope: str, setting: str, window_seconds: int, message: str) -> None:
        self.scope = scope
        self.setting = setting
        self.window_seconds = window_seconds
        self.message = message

    @classmethod
    def api(cls) -> "RateLimit":
        return cls(
            "api", "rate_limit_per_minute", 60, "Too many requests. Please try again later."
        )

    @classmethod
    def proposal_submissions(cls) -> "RateLimit":
        return cls(
            "proposals",
            "rate_limit_proposals_per_hour",
            3600,
            "Too many proposal submissions. Please try again later.",
        )

    @classmethod
    def file_uploads(cls) -> "RateLimit":
        return cls(
            "uploads",
            "rate_limit_uploads_per_hour",
            3600,
            "Too many file uploads. Please try again later.",
        )

    def check(self, container: Container, response: Response, user: User) -> None:
        enforce_rate_limit(
            container,
            response,
            user,
            self.scope,
            getattr(container.settings, self.setting),
            self.window_seconds,
            self.message,
        )

    def __call__(
        self,
        response: Response,
        user: User = Depends(get_current_user),
        container: Container = Depends(get_app_container),
    ) -> None:
        self.check(container, response, user)
