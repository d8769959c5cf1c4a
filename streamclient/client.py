"""Reusable HTTP client.

:class:`HTTPClient` holds one base :class:`RequestOptions`, one pooled
``httpx.AsyncClient`` and the list of responses it produced. Every call
merges the base options with the call's own options into a fresh copy, so
calls may run concurrently without sharing headers or redirect counters::

    async with HTTPClient() as client:
        response = await client.post("example.com/upload", b"data")
        print(response.status_code, response.text())
"""

import os
import threading
from collections.abc import Mapping
from typing import Any

import httpx

from streamclient import form
from streamclient.config.constants import FORM_URLENCODED
from streamclient.config.settings import Settings
from streamclient.core.errors import StreamClientError
from streamclient.core.logging import get_logger
from streamclient.options import RequestOptions
from streamclient.pipeline import RequestPipeline
from streamclient.response import ClientResponse
from streamclient.transport import HTTPClientFactory


logger = get_logger(__name__)


class HTTPClient:
    """HTTP client with shared base options and a response log."""

    def __init__(
        self,
        options: RequestOptions | None = None,
        *,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            options: Base options; defaults come from ``settings``
            settings: Transport settings and request defaults
            transport: Custom httpx transport for the owned client
            http_client: Externally managed httpx client, not closed by this client
        """
        self._settings = settings or Settings()
        self._options = (
            options.clone() if options is not None else self._settings.default_options()
        )
        if http_client is not None:
            self._http = http_client
            self._owns_http = False
        else:
            self._http = HTTPClientFactory.create_client(
                self._settings, transport=transport
            )
            self._owns_http = True

        self._pipeline = RequestPipeline(self._http)
        self._responses: list[ClientResponse] = []
        self._responses_lock = threading.Lock()

    async def __aenter__(self) -> "HTTPClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # Base options

    @property
    def global_options(self) -> RequestOptions:
        return self._options

    def add_global_options(self, options: RequestOptions) -> None:
        """Merge ``options`` into the base options."""
        self._options = self._options.merge(options)

    def update_global_options(self, options: RequestOptions) -> None:
        """Replace the base options."""
        self._options = options.clone()

    def clone_global_options(self) -> RequestOptions:
        return self._options.clone()

    # Response log

    def responses(self) -> list[ClientResponse]:
        with self._responses_lock:
            return list(self._responses)

    def clear(self) -> None:
        with self._responses_lock:
            self._responses.clear()

    def _record(self, response: ClientResponse) -> None:
        with self._responses_lock:
            self._responses.append(response)

    # Requests

    async def custom(
        self,
        method: str,
        url: str,
        payload: Any = None,
        options: RequestOptions | None = None,
    ) -> ClientResponse:
        """Send a request with any method.

        Raises:
            StreamClientError: on any failure. When the transport was reached,
                the partial response is on ``error.response`` and is also
                recorded in :meth:`responses`.
        """
        try:
            response = await self._pipeline.execute(
                method, url, payload, options, base=self._options
            )
        except StreamClientError as e:
            if e.response is not None:
                self._record(e.response)
            raise
        self._record(response)
        return response

    async def get(self, url: str, options: RequestOptions | None = None) -> ClientResponse:
        return await self.custom("GET", url, None, options)

    async def head(self, url: str, options: RequestOptions | None = None) -> ClientResponse:
        return await self.custom("HEAD", url, None, options)

    async def options(self, url: str, options: RequestOptions | None = None) -> ClientResponse:
        return await self.custom("OPTIONS", url, None, options)

    async def delete(self, url: str, options: RequestOptions | None = None) -> ClientResponse:
        return await self.custom("DELETE", url, None, options)

    async def trace(self, url: str, options: RequestOptions | None = None) -> ClientResponse:
        return await self.custom("TRACE", url, None, options)

    async def connect(self, url: str, options: RequestOptions | None = None) -> ClientResponse:
        return await self.custom("CONNECT", url, None, options)

    async def post(
        self, url: str, payload: Any = None, options: RequestOptions | None = None
    ) -> ClientResponse:
        return await self.custom("POST", url, payload, options)

    async def put(
        self, url: str, payload: Any = None, options: RequestOptions | None = None
    ) -> ClientResponse:
        return await self.custom("PUT", url, payload, options)

    async def patch(
        self, url: str, payload: Any = None, options: RequestOptions | None = None
    ) -> ClientResponse:
        return await self.custom("PATCH", url, payload, options)

    # Forms

    async def _send_form(
        self,
        method: str,
        url: str,
        fields: Mapping[str, str],
        options: RequestOptions | None,
    ) -> ClientResponse:
        overlay = options.clone() if options is not None else RequestOptions()
        overlay.set_header("Content-Type", FORM_URLENCODED)
        return await self.custom(method, url, form.encode(fields), overlay)

    async def post_form(
        self, url: str, fields: Mapping[str, str], options: RequestOptions | None = None
    ) -> ClientResponse:
        return await self._send_form("POST", url, fields, options)

    async def put_form(
        self, url: str, fields: Mapping[str, str], options: RequestOptions | None = None
    ) -> ClientResponse:
        return await self._send_form("PUT", url, fields, options)

    async def patch_form(
        self, url: str, fields: Mapping[str, str], options: RequestOptions | None = None
    ) -> ClientResponse:
        return await self._send_form("PATCH", url, fields, options)

    # Files

    async def _send_file(
        self,
        method: str,
        url: str,
        path: str | os.PathLike[str],
        options: RequestOptions | None,
    ) -> ClientResponse:
        overlay = options.clone() if options is not None else RequestOptions()
        payload = overlay.prepare_file(path)
        logger.debug(
            "file_upload_prepared",
            file_name=overlay.file_name,
            file_size=overlay.file_size,
        )
        return await self.custom(method, url, payload, overlay)

    async def post_file(
        self,
        url: str,
        path: str | os.PathLike[str],
        options: RequestOptions | None = None,
    ) -> ClientResponse:
        return await self._send_file("POST", url, path, options)

    async def put_file(
        self,
        url: str,
        path: str | os.PathLike[str],
        options: RequestOptions | None = None,
    ) -> ClientResponse:
        return await self._send_file("PUT", url, path, options)

    async def patch_file(
        self,
        url: str,
        path: str | os.PathLike[str],
        options: RequestOptions | None = None,
    ) -> ClientResponse:
        return await self._send_file("PATCH", url, path, options)
