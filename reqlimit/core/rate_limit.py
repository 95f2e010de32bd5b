"""Request limiting dependency for FastAPI routes.

This module wires a ``RateLimiter`` into the HTTP layer.

Design goals:
- Explicit wiring: each guard wraps the limiter instance it is given; there is
  no module-level limiter.
- Conservative failure: a store error becomes a 500, never a silent pass.
- Safe logging: identities are hashed before they reach the logs.

Usage:
    guard = RateLimitGuard(registry.new_limiter("rps", 60, 20))
    app.include_router(router, dependencies=[Depends(guard)])
"""

import logging

from fastapi import Request, Response

from reqlimit.core.client_ip import real_ip_address
from reqlimit.core.config import LimiterSettings, settings
from reqlimit.core.errors import RateLimitExceededAppError, StoreAppError
from reqlimit.services.limiter import RateLimiter

logger = logging.getLogger(__name__)


class RateLimitGuard:
    """FastAPI dependency enforcing one limiter on the routes it guards.

    Declared as a plain (sync) callable so FastAPI runs it in its threadpool;
    the blocking store round trip never stalls the event loop.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        limiter_settings: LimiterSettings | None = None,
    ) -> None:
        self.limiter = limiter
        self._settings = limiter_settings or settings.limiter

    def __call__(self, request: Request, response: Response) -> None:
        """Count the request and reject it when over the limit.

        Args:
            request: Incoming request; its client IP is the identity.
            response: Outgoing response, used to attach rate limit headers.

        Raises:
            RateLimitExceededAppError: When the identity exceeded the limit
                (rendered as 403).
            StoreAppError: When the store fails (rendered as 500).
        """
        if not self._settings.enabled:
            return

        identity = real_ip_address(
            request,
            trust_proxy_headers=self._settings.trust_proxy_headers,
        )

        try:
            result = self.limiter.check(identity)
        except StoreAppError as exc:
            logger.error(
                "rate_limit.store_error",
                extra={
                    "limiter": self.limiter.name,
                    "error_code": exc.code,
                    "error_msg": exc.message,
                    "request_path": request.url.path,
                },
            )
            raise

        headers: dict[str, str] = {}
        if self._settings.include_headers:
            headers["X-RateLimit-Limit"] = str(result.limit)
            headers["X-RateLimit-Remaining"] = str(result.remaining)

        if not result.exceeded:
            response.headers.update(headers)
            return

        raise RateLimitExceededAppError(
            code="rate_limit_exceeded",
            message="Request limit exceeded",
            details={"limiter": self.limiter.name, "limit": result.limit},
            headers=headers or None,
        )
