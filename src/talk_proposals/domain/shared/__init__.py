"""
Shared Domain Module

Shared domain concepts used across the application.

This module exports:
    - DomainException: Base exception for all domain errors
    - The error taxonomy mapped to HTTP codes by the API layer
"""

from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainException,
    DomainValidationError,
    DuplicateReviewError,
    NotFoundError,
    PersistenceError,
    ProposalFileNotFoundError,
    ProposalNotFoundError,
    ReviewNotFoundError,
    TransientInfraError,
    UserNotFoundError,
    ValidationError,
)

__all__ = [
    "DomainException",
    "ValidationError",
    "DomainValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ProposalNotFoundError",
    "ReviewNotFoundError",
    "UserNotFoundError",
    "ProposalFileNotFoundError",
    "DuplicateReviewError",
    "TransientInfraError",
    "PersistenceError",
]
