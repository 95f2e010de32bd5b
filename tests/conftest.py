"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the TESTING environment variable so that no .env file is loaded
and settings come from the defaults below.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

os.environ.setdefault("STORE_NAMESPACE", "")
os.environ.setdefault("STORE_HOST", "localhost:6379")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock

import pytest

from reqlimit.adapters.rate_limit.in_memory import InMemoryCounterStore
from reqlimit.services.registry import LimiterRegistry, RegistryConfig


class FakeRedis:
    """Scripted stand-in for ``redis.Redis`` covering INCR/EXPIRE/PING.

    Keys without TTL never expire; keys with TTL expire against ``clock``.
    """

    def __init__(self, clock: Mock) -> None:
        self.clock = clock
        self.values: dict[str, int] = {}
        self.expires_at: dict[str, float] = {}
        self.commands: list[tuple] = []
        self.closed = False

    def _expire_if_due(self, key: str) -> None:
        deadline = self.expires_at.get(key)
        if deadline is not None and self.clock() >= deadline:
            self.values.pop(key, None)
            self.expires_at.pop(key, None)

    def incr(self, key: str) -> int:
        self.commands.append(("INCR", key))
        self._expire_if_due(key)
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    def expire(self, key: str, seconds: int) -> bool:
        self.commands.append(("EXPIRE", key, seconds))
        self.expires_at[key] = self.clock() + seconds
        return True

    def ping(self) -> bool:
        return True

    def register_script(self, script: str):
        def run(keys, args):
            count = self.incr(keys[0])
            if count == 1:
                self.expire(keys[0], int(args[0]))
            return count

        return run

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1000.0)


@pytest.fixture
def fake_redis(clock: Mock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def memory_store(clock: Mock) -> InMemoryCounterStore:
    return InMemoryCounterStore(clock=clock)


@pytest.fixture
def registry(memory_store: InMemoryCounterStore) -> LimiterRegistry:
    return LimiterRegistry(RegistryConfig(namespace="Appname"), store=memory_store)
