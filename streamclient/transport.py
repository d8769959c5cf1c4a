"""Shared httpx transport construction.

The request pipeline owns redirects, compression and cookies, so every
client built here has ``follow_redirects=False`` and no cookie jar of
interest. Pooling, TLS and HTTP/2 stay inside httpx.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from streamclient.config.settings import Settings
from streamclient.core.logging import get_logger


logger = get_logger(__name__)


class HTTPClientFactory:
    """Factory for the ``httpx.AsyncClient`` behind :class:`~streamclient.client.HTTPClient`."""

    @staticmethod
    def create_client(
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        """Create an ``httpx.AsyncClient`` from transport settings.

        Args:
            settings: Settings supplying timeouts, limits, http2 and TLS
                verification. Environment-derived defaults when omitted.
            transport: Transport to use instead of a pooled
                ``httpx.AsyncHTTPTransport`` (e.g. ``httpx.MockTransport``)
            **kwargs: Additional httpx.AsyncClient arguments

        Returns:
            Configured httpx.AsyncClient instance
        """
        http_settings = (settings or Settings()).http

        timeout = httpx.Timeout(
            connect=http_settings.timeout_connect,
            read=http_settings.timeout_read,
            write=http_settings.timeout_write,
            pool=http_settings.timeout_pool,
        )

        if transport is None:
            limits = httpx.Limits(
                max_keepalive_connections=http_settings.max_keepalive_connections,
                max_connections=http_settings.max_connections,
            )
            transport = httpx.AsyncHTTPTransport(
                limits=limits,
                http2=http_settings.http2,
                verify=http_settings.verify,
                trust_env=http_settings.trust_env,
            )

        client_config: dict[str, Any] = {
            "timeout": timeout,
            "transport": transport,
            "trust_env": http_settings.trust_env,
            **kwargs,
            "follow_redirects": False,
        }

        logger.debug(
            "http_client_created",
            timeout_connect=http_settings.timeout_connect,
            timeout_read=http_settings.timeout_read,
            max_keepalive_connections=http_settings.max_keepalive_connections,
            max_connections=http_settings.max_connections,
            http2=http_settings.http2,
            custom_transport=not isinstance(transport, httpx.AsyncHTTPTransport),
        )

        return httpx.AsyncClient(**client_config)

    @staticmethod
    @asynccontextmanager
    async def managed_client(
        settings: Settings | None = None, **kwargs: Any
    ) -> AsyncGenerator[httpx.AsyncClient, None]:
        """Create a managed HTTP client with automatic cleanup.

        Args:
            settings: Optional settings for configuration
            **kwargs: Additional client configuration

        Yields:
            Configured httpx.AsyncClient instance

        Example:
            async with HTTPClientFactory.managed_client() as client:
                pipeline = RequestPipeline(client)
        """
        client = HTTPClientFactory.create_client(settings, **kwargs)
        try:
            logger.debug("managed_http_client_created")
            yield client
        finally:
            try:
                await client.aclose()
                logger.debug("managed_http_client_closed")
            except Exception as e:
                logger.warning(
                    "managed_http_client_close_failed",
                    error=str(e),
                    exc_info=e,
                )
