"""Limiter registry.

The registry owns the counter store connection and the key namespace, and
creates the limiters that share them. Limiter names are unique per registry.

Typical setup, once at process start:

    with LimiterRegistry(RegistryConfig(namespace="Appname")) as registry:
        rpm = registry.new_limiter("rps", interval=60, limit=20)
        serve(rpm)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from reqlimit.adapters.rate_limit.base import AbstractCounterStore
from reqlimit.adapters.rate_limit.redis_store import RedisCounterStore
from reqlimit.core.config import DEFAULT_POOL_SIZE, DEFAULT_STORE_HOST, StoreSettings
from reqlimit.core.errors import ConfigurationAppError
from reqlimit.services.limiter import RateLimiter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryConfig:
    """Registry construction options.

    Attributes:
        namespace: Key prefix for every limiter (empty = unscoped).
        host: Redis address as ``host:port``.
        password: Redis AUTH password, or None.
        pool_size: Maximum pooled connections; values <= 0 use the default.
        atomic_expire: Run INCR and the first-hit EXPIRE as one script.
    """

    namespace: str = ""
    host: str = DEFAULT_STORE_HOST
    password: str | None = None
    pool_size: int = DEFAULT_POOL_SIZE
    atomic_expire: bool = False

    def __post_init__(self) -> None:
        if self.pool_size <= 0:
            object.__setattr__(self, "pool_size", DEFAULT_POOL_SIZE)

    @classmethod
    def from_settings(cls, store_settings: StoreSettings) -> "RegistryConfig":
        return cls(
            namespace=store_settings.namespace,
            host=store_settings.host,
            password=store_settings.password,
            pool_size=store_settings.pool_size,
            atomic_expire=store_settings.atomic_expire,
        )


class LimiterRegistry:
    """Holds the shared store and namespace, and mints named limiters.

    The store connection is established eagerly. Call ``close`` exactly once
    when the registry is no longer needed, or use the registry as a context
    manager.
    """

    def __init__(
        self,
        config: RegistryConfig | None = None,
        *,
        store: AbstractCounterStore | None = None,
    ) -> None:
        """Create the registry and connect its store.

        Args:
            config: Registry options; defaults apply when omitted.
            store: Pre-built counter store. When omitted, a Redis store is
                connected using ``config``.

        Raises:
            ConfigurationAppError: If the store host is malformed.
            ConnectionAppError: If the store is unreachable or AUTH fails.
        """
        self._config = config or RegistryConfig()
        if store is None:
            store = RedisCounterStore.connect(
                self._config.host,
                self._config.password,
                self._config.pool_size,
                atomic_expire=self._config.atomic_expire,
            )
        self._store = store
        self._limiters: dict[str, RateLimiter] = {}
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        store_settings: StoreSettings,
        *,
        store: AbstractCounterStore | None = None,
    ) -> "LimiterRegistry":
        return cls(RegistryConfig.from_settings(store_settings), store=store)

    @property
    def namespace(self) -> str:
        return self._config.namespace

    @property
    def names(self) -> frozenset[str]:
        return frozenset(self._limiters)

    @property
    def limiters(self) -> Mapping[str, RateLimiter]:
        return MappingProxyType(self._limiters)

    def new_limiter(self, name: str, interval: int, limit: int) -> RateLimiter:
        """Register a limiter allowing ``limit`` requests per ``interval`` seconds.

        Registration is meant to run once at startup and is not safe against
        concurrent calls.

        Args:
            name: Limiter name, unique within this registry.
            interval: Window length in seconds.
            limit: Maximum requests per window and identity.

        Returns:
            The new RateLimiter.

        Raises:
            ConfigurationAppError: If ``name`` is already registered, empty, or
                ``interval``/``limit`` are not positive.
        """
        if name in self._limiters:
            raise ConfigurationAppError(
                code="duplicate_limiter_name",
                message=f"Limiter name {name!r} is already registered",
                details={"limiter": name},
            )
        if not name or interval < 1 or limit < 1:
            raise ConfigurationAppError(
                code="invalid_limiter_definition",
                message="Limiter needs a non-empty name and positive interval and limit",
                details={"limiter": name, "interval": interval, "limit": limit},
            )

        limiter = RateLimiter(
            name=name,
            interval=interval,
            limit=limit,
            store=self._store,
            namespace=self._config.namespace,
        )
        self._limiters[name] = limiter

        logger.info(
            "limiter.registered",
            extra={
                "limiter": name,
                "window_s": interval,
                "limit": limit,
                "namespace": self._config.namespace,
            },
        )
        return limiter

    def get(self, name: str) -> RateLimiter:
        """Return the limiter registered under ``name``.

        Raises:
            KeyError: If no limiter has that name.
        """
        return self._limiters[name]

    def ping(self) -> bool:
        return self._store.ping()

    def close(self) -> None:
        """Release the store connection pool."""
        if self._closed:
            logger.warning("registry.already_closed")
            return
        self._closed = True
        self._store.close()

    def __enter__(self) -> "LimiterRegistry":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
