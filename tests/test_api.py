"""Tests for the one-shot request functions.

These go through the real ``httpx.AsyncHTTPTransport``, intercepted by
pytest-httpx.
"""

import gzip
from pathlib import Path

import httpx
import pytest
from conftest import BASE_URL, respond
from pytest_httpx import HTTPXMock

import streamclient
from streamclient.config.settings import Settings
from streamclient.core.errors import TransportError


def echo(request: httpx.Request) -> httpx.Response:
    body = request.content
    if request.headers.get("content-encoding") == "gzip":
        body = gzip.decompress(body)
    return respond(200, body, {"X-Method": request.method})


@pytest.mark.integration
class TestOneShotRequests:
    async def test_get(self, httpx_mock: HTTPXMock, settings: Settings) -> None:
        httpx_mock.add_callback(
            lambda request: respond(200, b"hello"), url=f"{BASE_URL}/hello"
        )

        response = await streamclient.get(f"{BASE_URL}/hello", settings=settings)

        assert response.status_code == 200
        assert response.text() == "hello"

    async def test_scheme_less_url(self, httpx_mock: HTTPXMock, settings: Settings) -> None:
        httpx_mock.add_callback(echo, url="https://example.com/path")
        response = await streamclient.head("example.com/path", settings=settings)
        assert response.headers["x-method"] == "HEAD"

    @pytest.mark.parametrize("verb", ["post", "put", "patch"])
    async def test_body_verbs(
        self, httpx_mock: HTTPXMock, settings: Settings, verb: str
    ) -> None:
        httpx_mock.add_callback(echo, url=f"{BASE_URL}/echo")

        response = await getattr(streamclient, verb)(
            f"{BASE_URL}/echo",
            b"payload",
            streamclient.RequestOptions(compression="gzip"),
            settings=settings,
        )

        assert response.body == b"payload"
        assert response.headers["x-method"] == verb.upper()

    async def test_custom(self, httpx_mock: HTTPXMock, settings: Settings) -> None:
        httpx_mock.add_callback(echo, url=f"{BASE_URL}/echo", method="DELETE")
        response = await streamclient.custom("delete", f"{BASE_URL}/echo", settings=settings)
        assert response.status_code == 200

    async def test_post_form(self, httpx_mock: HTTPXMock, settings: Settings) -> None:
        httpx_mock.add_callback(echo, url=f"{BASE_URL}/form")

        response = await streamclient.put_form(
            f"{BASE_URL}/form", {"q": "a b"}, settings=settings
        )

        assert response.body == b"q=a+b"
        request = httpx_mock.get_request()
        assert request is not None
        assert request.method == "PUT"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"

    async def test_post_file(
        self, httpx_mock: HTTPXMock, settings: Settings, tmp_path: Path
    ) -> None:
        path = tmp_path / "upload.bin"
        path.write_bytes(b"\x00\x01\x02" * 1000)
        httpx_mock.add_callback(echo, url=f"{BASE_URL}/files")

        response = await streamclient.patch_file(
            f"{BASE_URL}/files", path, settings=settings
        )

        assert response.body == path.read_bytes()
        assert response.headers["x-method"] == "PATCH"

    async def test_transport_error(self, httpx_mock: HTTPXMock, settings: Settings) -> None:
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"), url=f"{BASE_URL}/slow")

        with pytest.raises(TransportError) as exc_info:
            await streamclient.get(f"{BASE_URL}/slow", settings=settings)

        assert exc_info.value.error_type == "transport_error"
        assert "ReadTimeout" in exc_info.value.message
        assert exc_info.value.response is not None
