from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from reqlimit.core.errors import StoreAppError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns a simple status response to verify the API is operational.
    Used by load balancers and monitoring systems to determine service health.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/store")
def store_health_check(request: Request) -> JSONResponse:
    """Report whether the counter store answers a PING.

    Returns 503 with status "unavailable" when the store cannot be reached,
    since every guarded route would fail in that state.
    """

    registry = request.app.state.registry
    try:
        registry.ping()
    except StoreAppError as exc:
        logger.warning("health.store_unavailable", extra={"error_code": exc.code})
        return JSONResponse(status_code=503, content={"status": "unavailable"})

    return JSONResponse(content={"status": "ok"})
