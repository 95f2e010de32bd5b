"""Per-client request limiting over a shared Redis counter."""

from reqlimit.adapters.rate_limit.base import AbstractCounterStore, RateLimitResult
from reqlimit.adapters.rate_limit.in_memory import InMemoryCounterStore
from reqlimit.adapters.rate_limit.redis_store import RedisCounterStore
from reqlimit.core.errors import (
    AppError,
    ConfigurationAppError,
    ConnectionAppError,
    RateLimitExceededAppError,
    StoreAppError,
)
from reqlimit.services.limiter import RateLimiter, build_window_key
from reqlimit.services.registry import LimiterRegistry, RegistryConfig

__all__ = [
    "AbstractCounterStore",
    "AppError",
    "ConfigurationAppError",
    "ConnectionAppError",
    "InMemoryCounterStore",
    "LimiterRegistry",
    "RateLimitExceededAppError",
    "RateLimitResult",
    "RateLimiter",
    "RedisCounterStore",
    "RegistryConfig",
    "StoreAppError",
    "build_window_key",
]
