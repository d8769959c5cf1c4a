"""One-shot request functions.

Each call opens a short-lived :class:`~streamclient.client.HTTPClient`,
sends one request and closes the client again. Use ``HTTPClient`` directly
to reuse connections and base options across calls.
"""

import os
from collections.abc import Mapping
from typing import Any

import httpx

from streamclient.client import HTTPClient
from streamclient.config.settings import Settings
from streamclient.options import RequestOptions
from streamclient.response import ClientResponse


async def request(
    method: str,
    url: str,
    payload: Any = None,
    options: RequestOptions | None = None,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientResponse:
    """Send one request with a temporary client.

    Args:
        method: HTTP method
        url: Target URL; scheme-less URLs default to https
        payload: Body for POST, PUT and PATCH
        options: Request options merged over the settings defaults
        settings: Settings for the temporary client
        transport: Custom httpx transport
    """
    async with HTTPClient(settings=settings, transport=transport) as client:
        return await client.custom(method, url, payload, options)


custom = request


async def get(url: str, options: RequestOptions | None = None, **kwargs: Any) -> ClientResponse:
    return await request("GET", url, None, options, **kwargs)


async def head(url: str, options: RequestOptions | None = None, **kwargs: Any) -> ClientResponse:
    return await request("HEAD", url, None, options, **kwargs)


async def options(url: str, options: RequestOptions | None = None, **kwargs: Any) -> ClientResponse:
    return await request("OPTIONS", url, None, options, **kwargs)


async def delete(url: str, options: RequestOptions | None = None, **kwargs: Any) -> ClientResponse:
    return await request("DELETE", url, None, options, **kwargs)


async def trace(url: str, options: RequestOptions | None = None, **kwargs: Any) -> ClientResponse:
    return await request("TRACE", url, None, options, **kwargs)


async def connect(url: str, options: RequestOptions | None = None, **kwargs: Any) -> ClientResponse:
    return await request("CONNECT", url, None, options, **kwargs)


async def post(
    url: str, payload: Any = None, options: RequestOptions | None = None, **kwargs: Any
) -> ClientResponse:
    return await request("POST", url, payload, options, **kwargs)


async def put(
    url: str, payload: Any = None, options: RequestOptions | None = None, **kwargs: Any
) -> ClientResponse:
    return await request("PUT", url, payload, options, **kwargs)


async def patch(
    url: str, payload: Any = None, options: RequestOptions | None = None, **kwargs: Any
) -> ClientResponse:
    return await request("PATCH", url, payload, options, **kwargs)


async def _form(
    method: str,
    url: str,
    fields: Mapping[str, str],
    options: RequestOptions | None,
    settings: Settings | None,
    transport: httpx.AsyncBaseTransport | None,
) -> ClientResponse:
    async with HTTPClient(settings=settings, transport=transport) as client:
        if method == "PUT":
            return await client.put_form(url, fields, options)
        if method == "PATCH":
            return await client.patch_form(url, fields, options)
        return await client.post_form(url, fields, options)


async def post_form(
    url: str,
    fields: Mapping[str, str],
    options: RequestOptions | None = None,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientResponse:
    return await _form("POST", url, fields, options, settings, transport)


async def put_form(
    url: str,
    fields: Mapping[str, str],
    options: RequestOptions | None = None,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientResponse:
    return await _form("PUT", url, fields, options, settings, transport)


async def patch_form(
    url: str,
    fields: Mapping[str, str],
    options: RequestOptions | None = None,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientResponse:
    return await _form("PATCH", url, fields, options, settings, transport)


async def _file(
    method: str,
    url: str,
    path: str | os.PathLike[str],
    options: RequestOptions | None,
    settings: Settings | None,
    transport: httpx.AsyncBaseTransport | None,
) -> ClientResponse:
    async with HTTPClient(settings=settings, transport=transport) as client:
        if method == "PUT":
            return await client.put_file(url, path, options)
        if method == "PATCH":
            return await client.patch_file(url, path, options)
        return await client.post_file(url, path, options)


async def post_file(
    url: str,
    path: str | os.PathLike[str],
    options: RequestOptions | None = None,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientResponse:
    return await _file("POST", url, path, options, settings, transport)


async def put_file(
    url: str,
    path: str | os.PathLike[str],
    options: RequestOptions | None = None,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientResponse:
    return await _file("PUT", url, path, options, settings, transport)


async def patch_file(
    url: str,
    path: str | os.PathLike[str],
    options: RequestOptions | None = None,
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientResponse:
    return await _file("PATCH", url, path, options, settings, transport)
