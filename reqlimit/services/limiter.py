"""Fixed-window request limiter.

A limiter counts requests per identity (usually the client IP) in windows of
``interval`` seconds that start at the identity's first request. The window
does not slide: two bursts straddling a window boundary can each pass even
when their sum exceeds ``limit`` over some ``interval``-long span.
"""

from __future__ import annotations

import hashlib
import logging

from reqlimit.adapters.rate_limit.base import AbstractCounterStore, RateLimitResult

logger = logging.getLogger(__name__)


def build_window_key(namespace: str, name: str, identity: str) -> str:
    """Build the counter key for one identity under one limiter.

    Examples:
        >>> build_window_key("Appname", "rps", "1.2.3.4")
        'Appname:limiter:rps:1.2.3.4'
        >>> build_window_key("", "rps", "1.2.3.4")
        'limiter:rps:1.2.3.4'
    """
    if not namespace:
        return f"limiter:{name}:{identity}"
    return f"{namespace}:limiter:{name}:{identity}"


def _hash_identity(identity: str) -> str:
    """Hash the identity for logging without exposing client addresses."""
    return hashlib.sha256(identity.encode()).hexdigest()[:16]


class RateLimiter:
    """Limit how many requests an identity can make per interval.

    Instances are created by ``LimiterRegistry.new_limiter`` and share the
    registry's store and namespace. The definition (name, interval, limit) is
    fixed for the limiter's lifetime.
    """

    def __init__(
        self,
        *,
        name: str,
        interval: int,
        limit: int,
        store: AbstractCounterStore,
        namespace: str = "",
    ) -> None:
        self._name = name
        self._interval = interval
        self._limit = limit
        self._store = store
        self._namespace = namespace

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"RateLimiter(name={self._name!r}, interval={self._interval}, limit={self._limit})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def interval(self) -> int:
        return self._interval

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def namespace(self) -> str:
        return self._namespace

    def window_key(self, identity: str) -> str:
        """Counter key for ``identity`` under this limiter."""
        return build_window_key(self._namespace, self._name, identity)

    def check(self, identity: str) -> RateLimitResult:
        """Count one request for ``identity`` and evaluate it.

        Args:
            identity: Requester identity, e.g. the client IP address.

        Returns:
            RateLimitResult with the post-increment count.

        Raises:
            StoreAppError: If the store fails. The limiter state is unknown in
                that case and the request must not be treated as allowed by
                default.
        """
        count = self._store.increment_and_expire(self.window_key(identity), self._interval)
        exceeded = count > self._limit

        log_extra = {
            "limiter": self._name,
            "identity_hash": _hash_identity(identity),
            "count": count,
            "limit": self._limit,
            "window_s": self._interval,
        }
        if exceeded:
            logger.warning("rate_limit.exceeded", extra=log_extra)
        else:
            logger.debug("rate_limit.allowed", extra=log_extra)

        return RateLimitResult(
            exceeded=exceeded,
            count=count,
            limit=self._limit,
            remaining=max(0, self._limit - count),
        )

    def exceed(self, identity: str) -> bool:
        """Return True if ``identity`` is over the limit, False otherwise.

        Raises:
            StoreAppError: If the store fails.
        """
        return self.check(identity).exceeded
