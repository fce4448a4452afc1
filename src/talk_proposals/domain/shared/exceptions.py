"""
Domain Layer Exceptions

This module defines the exception hierarchy of the proposal domain.
All domain-specific exceptions inherit from DomainException.

Responsibility:
    - Base exception class for domain errors
    - Type-safe error handling across layers
    - Clear separation from framework exceptions

Architecture Notes:
    - Part of Shared Domain (used across all subdomains)
    - API Layer maps each class to one HTTP status code (see api.main)
    - Background jobs decide retry vs. permanent failure by exception class:
        * TransientInfraError -> retried up to the job budget
        * DomainValidationError / NotFoundError -> never retried

HTTP mapping:
    ValidationError         -> 422
    DomainValidationError   -> 422
    DuplicateReviewError    -> 422
    AuthenticationError     -> 401
    AuthorizationError      -> 403
    NotFoundError (family)  -> 404
    RateLimitExceededError  -> 429
    PersistenceError        -> 500
"""


class DomainException(Exception):
    """
    Base exception for all domain layer errors.

    This exception serves as the root of the domain exception hierarchy.
    All domain-specific exceptions should inherit from this class to enable
    type-safe error handling in Application and API layers.

    Usage:
        - Catch this in Application Layer to handle all domain errors
        - API Layer converts to appropriate HTTP status codes
        - `message` is the human-readable text returned to API clients

    Examples:
        >>> raise DomainException("Business rule violation")

        >>> try:
        ...     # domain operation
        ... except DomainException as e:
        ...     logger.error(f"Domain error: {e}")
    """

    def __init__(self, message: str) -> None:
        """
        Initialize domain exception with error message.

        Args:
            message: Human-readable error description
        """
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.__class__.__name__}: {self.message}"

    def __repr__(self) -> str:
        """Developer-friendly representation."""
        return f"{self.__class__.__name__}(message={self.message!r})"


class ValidationError(DomainException):
    """
    Raised when user input is malformed or out of range.

    Examples:
        >>> raise ValidationError("Invalid status 'archived'", field_name="status")
    """

    def __init__(self, message: str, field_name: str | None = None) -> None:
        self.field_name = field_name
        super().__init__(message)


class DomainValidationError(DomainException):
    """
    Raised when an uploaded file breaks a business rule.

    This exception is raised when:
    - File content does not start with the PDF signature
    - Owner's storage quota would be exceeded by the new file

    Any file already written for the failing request is removed
    before the error reaches the caller.
    """


class AuthenticationError(DomainException):
    """Raised when the caller identity is missing or unknown."""

    def __init__(self, message: str = "Unauthenticated") -> None:
        super().__init__(message)


class AuthorizationError(DomainException):
    """
    Raised when the caller lacks the role or ownership for an action.

    Examples:
        >>> raise AuthorizationError("Only admins can change proposal status")
    """

    def __init__(self, message: str = "This action is unauthorized") -> None:
        super().__init__(message)


class NotFoundError(DomainException):
    """
    Raised when a requested resource does not exist.

    Attributes:
        resource: Resource kind (e.g. "proposal")
        resource_id: Identifier that was looked up (optional)
    """

    resource = "resource"

    def __init__(self, message: str | None = None, resource_id: int | None = None) -> None:
        self.resource_id = resource_id
        if message is None:
            message = f"{self.resource.capitalize()} not found"
            if resource_id is not None:
                message = f"{message} (id={resource_id})"
        super().__init__(message)


class ProposalNotFoundError(NotFoundError):
    resource = "proposal"


class ReviewNotFoundError(NotFoundError):
    resource = "review"


class UserNotFoundError(NotFoundError):
    resource = "user"


class ProposalFileNotFoundError(NotFoundError):
    """
    Raised when a stored proposal file is missing from the disk.

    Attributes:
        file_path: Storage-relative path that was looked up (None when the
            proposal has no attachment at all)
    """

    resource = "file"

    def __init__(self, file_path: str | None = None, message: str | None = None) -> None:
        self.file_path = file_path
        super().__init__(message or f"File not found: {file_path}")

    @classmethod
    def no_attachment(cls, proposal_id: int) -> "ProposalFileNotFoundError":
        """Proposal exists but never had a file attached."""
        error = cls(message=f"Proposal {proposal_id} has no attached file")
        error.resource_id = proposal_id
        return error


class DuplicateReviewError(DomainException):
    """Raised when a reviewer rates the same proposal a second time."""

    def __init__(self, message: str = "You have already reviewed this proposal") -> None:
        super().__init__(message)


class RateLimitExceededError(DomainException):
    """
    Raised when a caller used up a request budget.

    Attributes:
        limit: Allowed requests per window
        retry_after: Seconds until the window resets
    """

    def __init__(
        self,
        message: str = "Too many requests. Please try again later.",
        limit: int = 0,
        retry_after: int = 0,
    ) -> None:
        self.limit = limit
        self.retry_after = retry_after
        super().__init__(message)


class TransientInfraError(DomainException):
    """
    Raised when storage, mail or search is temporarily unavailable.

    Only background jobs see this error. They retry it up to their
    attempt budget and then log a permanent failure.

    Attributes:
        original_error: Underlying infrastructure exception (optional)
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        self.original_error = original_error
        if original_error is not None:
            message = f"{message} | Original error: {type(original_error).__name__}: {original_error}"
        super().__init__(message)


class PersistenceError(DomainException):
    """
    Raised when a database transaction fails.

    The transaction is rolled back and any file written during the
    request is deleted before this error reaches the caller.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        self.original_error = original_error
        super().__init__(message)
