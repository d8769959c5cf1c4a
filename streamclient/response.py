"""Response record returned by every request."""

import json as jsonlib
from datetime import datetime, timedelta
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from streamclient.compression import CompressionType
from streamclient.config.constants import UNKNOWN_SIZE
from streamclient.options import Cookie


class TLSInfo(BaseModel):
    """Negotiated TLS parameters of the connection."""

    version: str = ""
    cipher: str = ""
    bits: int | None = None


class ClientResponse(BaseModel):
    """Everything known about one request attempt.

    The record is populated progressively: request metadata first, then
    status and headers once the transport answers, then the body once the
    sink is drained. When a call fails after reaching the transport, the
    partially populated record is attached to the raised error and ``error``
    holds that same exception.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    identifier: str = ""
    url: str = ""
    method: str = ""
    request_time: datetime | None = None
    response_time: datetime | None = None

    status: str = ""
    status_code: int = 0
    http_version: str = ""
    headers: httpx.Headers = Field(default_factory=httpx.Headers)
    content_length: int = UNKNOWN_SIZE
    transfer_encoding: list[str] = Field(default_factory=list)

    compression_type: CompressionType = CompressionType.NONE
    content_encoding: str = ""
    decompressed: bool = False

    cookies: list[Cookie] = Field(default_factory=list)
    elapsed: timedelta = timedelta(0)

    body: bytes = b""
    output_path: str | None = None
    error: Exception | None = Field(default=None, exclude=True)
    tls: TLSInfo | None = None

    redirected: bool = False
    location: str = ""
    history: list["ClientResponse"] = Field(default_factory=list)

    @field_validator("headers", mode="before")
    @classmethod
    def validate_headers(cls, v: Any) -> httpx.Headers:
        if isinstance(v, httpx.Headers):
            return v
        return httpx.Headers(v or {})

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    def length(self) -> int:
        """Body size: buffered bytes, or the size of the written file."""
        if self.output_path is not None:
            return self.content_length
        return len(self.body)

    def text(self, encoding: str | None = None) -> str:
        if encoding is None:
            encoding = _charset(self.headers.get("content-type", "")) or "utf-8"
        return self.body.decode(encoding, errors="replace")

    def json(self, **kwargs: Any) -> Any:  # type: ignore[override]
        return jsonlib.loads(self.body, **kwargs)

    def bytes(self) -> bytes:
        return self.body


def _charset(content_type: str) -> str | None:
    for part in content_type.split(";")[1:]:
        key, _, value = part.strip().partition("=")
        if key.lower() == "charset" and value:
            return value.strip("\"'")
    return None
