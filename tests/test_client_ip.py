"""Unit tests for client identity extraction."""

import pytest
from starlette.requests import Request

from reqlimit.core.client_ip import real_ip_address


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = ("10.0.0.7", 51234)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/limit",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_falls_back_to_remote_address() -> None:
    assert real_ip_address(_request()) == "10.0.0.7"


def test_unknown_without_client() -> None:
    assert real_ip_address(_request(client=None)) == "unknown"


@pytest.mark.parametrize(
    ("headers", "expected"),
    [
        ({"X-Real-IP": "1.1.1.1", "X-Forwarded-For": "2.2.2.2"}, "1.1.1.1"),
        ({"X-Forwarded-For": "2.2.2.2", "X-Forwarded": "3.3.3.3"}, "2.2.2.2"),
        ({"X-Forwarded": "3.3.3.3", "Client-IP": "4.4.4.4"}, "3.3.3.3"),
        ({"Client-IP": "4.4.4.4"}, "4.4.4.4"),
    ],
)
def test_proxy_header_priority(headers: dict[str, str], expected: str) -> None:
    assert real_ip_address(_request(headers)) == expected


def test_forwarded_for_value_is_kept_whole() -> None:
    request = _request({"X-Forwarded-For": "5.5.5.5, 10.0.0.1"})

    assert real_ip_address(request) == "5.5.5.5, 10.0.0.1"


def test_empty_header_is_skipped() -> None:
    request = _request({"X-Real-IP": "", "Client-IP": "4.4.4.4"})

    assert real_ip_address(request) == "4.4.4.4"


def test_proxy_headers_ignored_when_untrusted() -> None:
    request = _request({"X-Real-IP": "1.1.1.1"})

    assert real_ip_address(request, trust_proxy_headers=False) == "10.0.0.7"
