"""HTTP transport configuration settings."""

from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_MAX_CONNECTIONS,
    DEFAULT_MAX_KEEPALIVE_CONNECTIONS,
    DEFAULT_TIMEOUT_CONNECT,
    DEFAULT_TIMEOUT_POOL,
    DEFAULT_TIMEOUT_READ,
    DEFAULT_TIMEOUT_WRITE,
)


class TransportSettings(BaseModel):
    """HTTP transport configuration settings.

    These values are handed to httpx when the shared transport is built.
    Pooling, TLS and HTTP/2 framing stay inside httpx.
    """

    timeout_connect: float = Field(
        default=DEFAULT_TIMEOUT_CONNECT,
        gt=0,
        description="Connection timeout in seconds",
    )

    timeout_read: float = Field(
        default=DEFAULT_TIMEOUT_READ,
        gt=0,
        description="Read timeout in seconds",
    )

    timeout_write: float = Field(
        default=DEFAULT_TIMEOUT_WRITE,
        gt=0,
        description="Write timeout in seconds",
    )

    timeout_pool: float = Field(
        default=DEFAULT_TIMEOUT_POOL,
        gt=0,
        description="Seconds to wait for a free connection from the pool",
    )

    max_connections: int = Field(
        default=DEFAULT_MAX_CONNECTIONS,
        ge=1,
        description="Maximum number of concurrent connections",
    )

    max_keepalive_connections: int = Field(
        default=DEFAULT_MAX_KEEPALIVE_CONNECTIONS,
        ge=0,
        description="Maximum number of idle keep-alive connections",
    )

    http2: bool = Field(
        default=True,
        description="Enable HTTP/2 when the server supports it (requires httpx[http2])",
    )

    verify: bool | str = Field(
        default=True,
        description="TLS verification: True/False or path to a CA bundle",
    )

    trust_env: bool = Field(
        default=True,
        description="Honour HTTP_PROXY/HTTPS_PROXY/NO_PROXY and SSL_CERT_FILE from the environment",
    )
