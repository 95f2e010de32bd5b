"""Redis-backed counter store.

Provides the shared counter used by every limiter, over a blocking connection
pool. Each command borrows one pooled connection and returns it on completion
or failure.

Window handling:
- ``INCR`` creates the key at 1 when absent (also after a previous window
  expired, which is indistinguishable and handled identically).
- ``EXPIRE`` runs only when ``INCR`` returned 1. The two commands are separate
  round trips unless ``atomic_expire`` is set, in which case they run as one
  Lua script. A failure between them can leave a key without TTL.
"""

from __future__ import annotations

import logging

import redis

from reqlimit.adapters.rate_limit.base import AbstractCounterStore
from reqlimit.core.config import DEFAULT_POOL_SIZE
from reqlimit.core.errors import ConfigurationAppError, ConnectionAppError, StoreAppError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 6379

# Borrowed connections idle longer than this are PINGed before use
HEALTH_CHECK_INTERVAL_SECONDS = 25

_INCR_EXPIRE_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
end
return count
"""


def split_host_port(address: str) -> tuple[str, int]:
    """Split a ``host:port`` address.

    IPv6 hosts take a port only in brackets (``[::1]:6379``); an unbracketed
    value with several colons is a bare IPv6 host.

    Args:
        address: Store address; a bare host uses the default Redis port.

    Returns:
        Tuple of (host, port), brackets removed from IPv6 hosts.

    Raises:
        ConfigurationAppError: If the host is empty, a bracket is unbalanced,
            or the port is not a valid TCP port number.
    """
    text = address.strip()
    if text.startswith("["):
        host, closed, rest = text[1:].partition("]")
        if not closed or (rest and not rest.startswith(":")):
            raise ConfigurationAppError(
                code="invalid_store_host",
                message="Bracketed store host must look like [host]:port",
                details={"host": address},
            )
        port_text = rest[1:] if rest else str(DEFAULT_PORT)
    elif text.count(":") > 1:
        host, port_text = text, str(DEFAULT_PORT)
    else:
        host, sep, port_text = text.rpartition(":")
        if not sep:
            host, port_text = port_text, str(DEFAULT_PORT)

    if not host:
        raise ConfigurationAppError(
            code="invalid_store_host",
            message="Store host must be given as host:port",
            details={"host": address},
        )

    try:
        port = int(port_text)
    except ValueError:
        port = -1
    if not 0 < port < 65536:
        raise ConfigurationAppError(
            code="invalid_store_host",
            message="Store port must be an integer between 1 and 65535",
            details={"host": address},
        )

    return host, port


class RedisCounterStore(AbstractCounterStore):
    """Counter store over a pool of authenticated Redis connections."""

    def __init__(
        self,
        client: redis.Redis,
        *,
        pool: redis.ConnectionPool | None = None,
        atomic_expire: bool = False,
    ) -> None:
        self._client = client
        self._pool = pool
        self._atomic_expire = atomic_expire
        self._incr_expire = client.register_script(_INCR_EXPIRE_SCRIPT) if atomic_expire else None

    @classmethod
    def connect(
        cls,
        host: str,
        password: str | None = None,
        pool_size: int = DEFAULT_POOL_SIZE,
        *,
        atomic_expire: bool = False,
    ) -> "RedisCounterStore":
        """Open a connection pool and verify it with an eager PING.

        Workers block on pool acquisition when all ``pool_size`` connections
        are in use; there is no acquisition timeout.

        Args:
            host: Redis address as ``host:port``.
            password: AUTH password, or None when the server has none.
            pool_size: Maximum pooled connections; values <= 0 use the default.
            atomic_expire: Run INCR and the conditional EXPIRE as one script.

        Returns:
            A connected store.

        Raises:
            ConfigurationAppError: If ``host`` is malformed.
            ConnectionAppError: If the host is unreachable or AUTH fails.
        """
        hostname, port = split_host_port(host)
        if pool_size <= 0:
            pool_size = DEFAULT_POOL_SIZE

        pool = redis.BlockingConnectionPool(
            host=hostname,
            port=port,
            password=password or None,
            max_connections=pool_size,
            timeout=None,
            health_check_interval=HEALTH_CHECK_INTERVAL_SECONDS,
            decode_responses=True,
        )
        client = redis.Redis(connection_pool=pool)

        try:
            client.ping()
        except redis.RedisError as exc:
            pool.disconnect()
            logger.error(
                "store.connection_failed",
                extra={"host": host, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise ConnectionAppError(
                code="store_connection_failed",
                message="Could not connect to the counter store",
                details={"host": host},
            ) from exc

        logger.info(
            "store.connected",
            extra={"host": host, "pool_size": pool_size, "atomic_expire": atomic_expire},
        )
        return cls(client, pool=pool, atomic_expire=atomic_expire)

    def increment_and_expire(self, key: str, ttl_seconds: int) -> int:
        try:
            if self._incr_expire is not None:
                return int(self._incr_expire(keys=[key], args=[ttl_seconds]))

            count = int(self._client.incr(key))
            if count == 1:
                self._client.expire(key, ttl_seconds)
            return count
        except redis.RedisError as exc:
            raise StoreAppError(
                code="store_command_failed",
                message="Counter store command failed",
                details={"key": key, "context": {"error_type": type(exc).__name__}},
            ) from exc

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError as exc:
            raise StoreAppError(
                code="store_unavailable",
                message="Counter store did not answer PING",
            ) from exc

    def close(self) -> None:
        """Disconnect every pooled connection."""
        self._client.close()
        if self._pool is not None:
            self._pool.disconnect()
        logger.info("store.disconnected")
