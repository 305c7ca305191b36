"""
Shared fixtures for the KYC gateway tests.

No test talks to a real provider: HTTP goes through httpx.MockTransport.
"""

import json
from collections.abc import Callable

import httpx
import pytest

from kycgate.config import Settings

# Smallest buffers that pass the integrity checker for each type
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00\x10JFIF" + b"\x01" * 200
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x01" * 200


def make_settings(**overrides) -> Settings:
    """Settings isolated from the developer's .env file and credentials."""
    defaults = {
        "api_key": None,
        "database_url": None,
        "google_vision_api_key": None,
        "finanalyz_pan_url": None,
        "finanalyz_ocr_url": None,
        "finanalyz_x_api_key": None,
        "zoop_pan_api_url": None,
        "zoop_gst_api_url": None,
        "zoop_api_key": None,
        "zoop_app_id": None,
        "digitap_client_id": None,
        "digitap_client_secret": None,
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


def json_response(status_code: int, payload) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode(), headers={"content-type": "application/json"})


class Recorder:
    """MockTransport handler that routes by URL substring and records every request."""

    def __init__(self, routes: dict[str, Callable[[httpx.Request], httpx.Response]]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for fragment, handler in self.routes.items():
            if fragment in str(request.url):
                return handler(request)
        return httpx.Response(404, text="no route")

    def hits(self, fragment: str) -> int:
        return sum(1 for request in self.requests if fragment in str(request.url))


def raise_timeout(request: httpx.Request) -> httpx.Response:
    raise httpx.ReadTimeout("timed out", request=request)


def raise_connect_error(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def jpeg_bytes() -> bytes:
    return JPEG_BYTES


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES
