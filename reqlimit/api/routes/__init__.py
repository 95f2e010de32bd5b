from __future__ import annotations

from reqlimit.api.routes.health import router as health_router
from reqlimit.api.routes.limit import build_limit_router

__all__ = ["build_limit_router", "health_router"]
