"""Counter store adapters.

Limiters count requests through a small store interface: Redis is the shared
store for real deployments, the in-memory store serves single-process
development and tests.
"""
