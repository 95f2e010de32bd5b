from __future__ import annotations

import html

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from reqlimit.core.rate_limit import RateLimitGuard


def build_limit_router(guard: RateLimitGuard) -> APIRouter:
    """Build the demo router whose routes are guarded by ``guard``.

    The router is built per application so each app wires the limiter it
    owns instead of reaching for a shared global.
    """
    router = APIRouter(tags=["Limit"], dependencies=[Depends(guard)])

    @router.get("/limit", response_class=PlainTextResponse)
    def limited_greeting(request: Request) -> str:
        """Greet the caller; answered only while the caller is under its quota."""
        return f'Hello and welcome to "{html.escape(request.url.path)}"'

    return router
