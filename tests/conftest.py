"""Shared fixtures for streamclient tests.

HTTP servers are simulated in-process: :class:`EchoServer` is an
``httpx.MockTransport`` handler that decodes compressed uploads, echoes
methods and headers, redirects, sets cookies and serves fixed downloads.
"""

import bz2
import gzip
import json
import os
import zlib
from collections.abc import AsyncGenerator, Callable

import brotli
import httpx
import pytest

from streamclient.client import HTTPClient
from streamclient.config.settings import Settings
from streamclient.core.logging import setup_logging


BASE_URL = "https://testserver"
DOWNLOAD_SIZE = 1024 * 1024


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    setup_logging(json_logs=False, log_level_name="DEBUG")


def make_payload(size: int) -> bytes:
    """Deterministic, moderately compressible bytes."""
    pattern = bytes(range(251))
    return (pattern * (size // len(pattern) + 1))[:size]


def decode_body(body: bytes, encoding: str) -> bytes:
    if encoding == "gzip":
        return gzip.decompress(body)
    if encoding == "deflate":
        return zlib.decompress(body)
    if encoding == "br":
        return brotli.decompress(body)
    if encoding == "bzip2":
        return bz2.decompress(body)
    return body


def respond(
    status_code: int,
    content: bytes = b"",
    headers: list[tuple[str, str]] | dict[str, str] | None = None,
) -> httpx.Response:
    """Response with a streamed body, read by the client like network data.

    ``httpx.Response(content=...)`` loads the body eagerly, which leaves
    nothing for ``aiter_raw`` to read.
    """
    response_headers = httpx.Headers(headers or {})
    if content:
        response_headers.setdefault("Content-Length", str(len(content)))
    return httpx.Response(
        status_code, headers=response_headers, stream=httpx.ByteStream(content)
    )


class EchoServer:
    """Request handler for ``httpx.MockTransport`` recording every hit."""

    def __init__(self) -> None:
        self.hits: list[httpx.Request] = []
        self.bodies: list[bytes] = []

    def paths(self) -> list[str]:
        return [request.url.path for request in self.hits]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        body = await request.aread()
        self.hits.append(request)
        self.bodies.append(body)
        path = request.url.path

        if path == "/upload":
            encoding = request.headers.get("content-encoding", "")
            return respond(200, decode_body(body, encoding))

        if path == "/echo-method":
            return _json(200, {"method": request.method, "body_length": len(body)})

        if path == "/echo-headers":
            return _json(200, dict(request.headers.items()))

        if path == "/download":
            return respond(200, make_payload(DOWNLOAD_SIZE))

        if path.startswith("/download-"):
            encoding = path.removeprefix("/download-")
            encoders: dict[str, Callable[[bytes], bytes]] = {
                "gzip": gzip.compress,
                "deflate": zlib.compress,
                "br": brotli.compress,
                "bzip2": bz2.compress,
            }
            return respond(
                200,
                encoders[encoding](make_payload(DOWNLOAD_SIZE)),
                {"Content-Encoding": encoding},
            )

        if path == "/redirect":
            return respond(302, headers={"Location": "/echo-method"})

        if path == "/redirect-upload":
            return respond(307, headers={"Location": f"{BASE_URL}/upload"})

        if path == "/redirect-chain":
            return respond(301, headers={"Location": "/redirect"})

        if path == "/redirect-to":
            return respond(302, headers={"Location": request.url.params["to"]})

        if path == "/redirect-no-location":
            return respond(302)

        if path == "/loop":
            return respond(302, headers={"Location": "/loop"})

        if path == "/no-body":
            status_code = int(request.url.params.get("status", "200"))
            return respond(status_code, headers={"Content-Length": "1234"})

        if path == "/cookies":
            return respond(
                200,
                request.headers.get("cookie", "").encode(),
                [
                    ("Set-Cookie", "token=xyz; Path=/; HttpOnly"),
                    ("Set-Cookie", "theme=dark; Path=/"),
                ],
            )

        if path == "/json":
            return respond(
                200,
                json.dumps({"ok": True}).encode(),
                {"Content-Type": "application/json; charset=utf-8"},
            )

        return respond(404, b"not found")


def _json(status_code: int, data: object) -> httpx.Response:
    return respond(
        status_code, json.dumps(data).encode(), {"Content-Type": "application/json"}
    )


@pytest.fixture
def echo_server() -> EchoServer:
    return EchoServer()


@pytest.fixture
def transport(echo_server: EchoServer) -> httpx.MockTransport:
    return httpx.MockTransport(echo_server)


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings independent of the developer's environment."""
    for key in list(os.environ):
        if key.upper().startswith("STREAMCLIENT_"):
            monkeypatch.delenv(key)
    return Settings()


@pytest.fixture
async def client(
    settings: Settings, transport: httpx.MockTransport
) -> AsyncGenerator[HTTPClient, None]:
    async with HTTPClient(settings=settings, transport=transport) as http_client:
        yield http_client


class ProgressRecorder:
    """Progress callback collecting every ``(current, total)`` report."""

    def __init__(self) -> None:
        self.calls: list[tuple[int, int]] = []

    def __call__(self, current: int, total: int) -> None:
        self.calls.append((current, total))

    @property
    def last(self) -> tuple[int, int]:
        return self.calls[-1]

    def currents(self) -> list[int]:
        return [current for current, _ in self.calls]
