"""Application-level exception types.

This module defines domain errors used across the store adapters, the limiter
services and the HTTP layer, enabling consistent error handling, logging, and
API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    limiter: str
    host: str
    key: str
    limit: int
    count: int
    interval: int
    retry_after: float
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ConfigurationAppError(AppError):
    """Raised when limiter or store configuration is invalid at setup time."""


class ConnectionAppError(AppError):
    """Raised when the counter store is unreachable or rejects authentication."""


class StoreAppError(AppError):
    """Raised when a counter store command fails at runtime.

    The limiter state is unknown when this is raised; callers must not read it
    as "not exceeded".
    """


@dataclass
class RateLimitExceededAppError(AppError):
    """Raised by the HTTP guard when a requester is over its quota."""

    headers: dict[str, str] | None = None
