"""Counter store interfaces.

Limiters depend on this abstraction (not the concrete implementation) so the
shared Redis store can be swapped for the in-process store in development and
tests without touching the limiter logic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a single limiter evaluation.

    Attributes:
        exceeded: Whether the requester is over the limit for this window.
        count: Post-increment counter value for the window.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when exceeded).
    """

    exceeded: bool
    count: int
    limit: int
    remaining: int


class AbstractCounterStore(ABC):
    """Interface for shared counter stores."""

    @abstractmethod
    def increment_and_expire(self, key: str, ttl_seconds: int) -> int:
        """Increment the counter at ``key`` and start its window on first hit.

        The entry is created at 1 when absent. Only when the resulting count is
        exactly 1 is the entry scheduled to expire after ``ttl_seconds``, so the
        window is fixed at its first request.

        Args:
            key: Window key.
            ttl_seconds: Window length in seconds.

        Returns:
            The post-increment count.

        Raises:
            StoreAppError: On any I/O or protocol failure.
        """
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> bool:
        """Check store liveness.

        Raises:
            StoreAppError: When the store cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Release every resource held by the store."""
        raise NotImplementedError
