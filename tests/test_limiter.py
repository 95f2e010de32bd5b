"""Unit tests for the fixed-window RateLimiter."""

from unittest.mock import MagicMock

import pytest

from reqlimit.adapters.rate_limit.redis_store import RedisCounterStore
from reqlimit.core.errors import StoreAppError
from reqlimit.services.limiter import RateLimiter, build_window_key
from reqlimit.services.registry import LimiterRegistry, RegistryConfig


class TestWindowKey:
    def test_namespaced_key(self) -> None:
        assert build_window_key("Appname", "rps", "1.2.3.4") == "Appname:limiter:rps:1.2.3.4"

    def test_unscoped_key(self) -> None:
        assert build_window_key("", "rps", "1.2.3.4") == "limiter:rps:1.2.3.4"

    def test_limiter_uses_registry_namespace(self, registry) -> None:
        limiter = registry.new_limiter("rps", interval=60, limit=20)

        assert limiter.window_key("1.2.3.4") == "Appname:limiter:rps:1.2.3.4"


def test_first_limit_calls_pass_then_exceeded(registry) -> None:
    limiter = registry.new_limiter("rps", interval=60, limit=20)

    results = [limiter.exceed("1.2.3.4") for _ in range(20)]
    assert results == [False] * 20

    assert limiter.exceed("1.2.3.4") is True
    assert limiter.exceed("1.2.3.4") is True


def test_check_reports_count_and_remaining(registry) -> None:
    limiter = registry.new_limiter("rps", interval=60, limit=2)

    first = limiter.check("1.2.3.4")
    assert (first.exceeded, first.count, first.remaining) == (False, 1, 1)

    limiter.check("1.2.3.4")
    third = limiter.check("1.2.3.4")
    assert (third.exceeded, third.count, third.remaining, third.limit) == (True, 3, 0, 2)


def test_identities_are_counted_independently(registry) -> None:
    limiter = registry.new_limiter("rps", interval=60, limit=1)

    assert limiter.exceed("A") is False
    assert limiter.exceed("A") is True
    assert limiter.exceed("B") is False


def test_limiter_names_are_counted_independently(registry) -> None:
    per_second = registry.new_limiter("rps", interval=1, limit=1)
    per_minute = registry.new_limiter("rpm", interval=60, limit=1)

    assert per_second.exceed("1.2.3.4") is False
    assert per_minute.exceed("1.2.3.4") is False
    assert per_second.exceed("1.2.3.4") is True


def test_namespaces_are_isolated(memory_store) -> None:
    first = LimiterRegistry(RegistryConfig(namespace="one"), store=memory_store)
    second = LimiterRegistry(RegistryConfig(namespace="two"), store=memory_store)
    a = first.new_limiter("rps", interval=60, limit=1)
    b = second.new_limiter("rps", interval=60, limit=1)

    assert a.exceed("1.2.3.4") is False
    assert b.exceed("1.2.3.4") is False
    assert a.exceed("1.2.3.4") is True


def test_window_resets_after_interval(registry, clock) -> None:
    limiter = registry.new_limiter("rps", interval=60, limit=1)

    assert limiter.check("1.2.3.4").count == 1
    clock.return_value = 1030.0
    assert limiter.exceed("1.2.3.4") is True

    clock.return_value = 1060.0
    result = limiter.check("1.2.3.4")
    assert result.count == 1
    assert result.exceeded is False


def test_window_is_fixed_not_sliding(registry, clock) -> None:
    limiter = registry.new_limiter("rps", interval=60, limit=2)

    limiter.check("1.2.3.4")
    clock.return_value = 1059.0
    limiter.check("1.2.3.4")

    # A burst right after the boundary starts a fresh window
    clock.return_value = 1060.0
    assert limiter.exceed("1.2.3.4") is False
    assert limiter.exceed("1.2.3.4") is False


def test_limiter_over_redis_store(fake_redis) -> None:
    registry = LimiterRegistry(store=RedisCounterStore(fake_redis))
    limiter = registry.new_limiter("rps", interval=60, limit=2)

    assert [limiter.exceed("1.2.3.4") for _ in range(3)] == [False, False, True]
    assert fake_redis.values == {"limiter:rps:1.2.3.4": 3}
    assert fake_redis.commands[1] == ("EXPIRE", "limiter:rps:1.2.3.4", 60)


def test_store_failure_propagates() -> None:
    store = MagicMock()
    store.increment_and_expire.side_effect = StoreAppError(
        code="store_command_failed",
        message="Counter store command failed",
    )
    limiter = RateLimiter(name="rps", interval=60, limit=20, store=store)

    with pytest.raises(StoreAppError):
        limiter.exceed("1.2.3.4")


def test_definition_is_read_only(registry) -> None:
    limiter = registry.new_limiter("rps", interval=60, limit=20)

    with pytest.raises(AttributeError):
        limiter.limit = 100  # type: ignore[misc]

    assert (limiter.name, limiter.interval, limiter.limit) == ("rps", 60, 20)
