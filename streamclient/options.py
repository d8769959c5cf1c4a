"""Per-request configuration.

:class:`RequestOptions` carries everything the request pipeline reads:
headers, cookies, compression, redirect policy, identifier mode, response
sink and progress callbacks. A reusable client keeps one *base* instance and
every call works on a fresh merge of that base with the call's overlay, so
concurrent calls never see each other's headers or redirect counters.
"""

import mimetypes
import os
import threading
from collections.abc import Callable, Mapping
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from streamclient.compression import CompressionType
from streamclient.config.constants import (
    DEFAULT_DOWNLOAD_BUFFER_SIZE,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_UPLOAD_BUFFER_SIZE,
    DEFAULT_USER_AGENT,
    IDENTIFIER_HEADER,
    OCTET_STREAM,
)
from streamclient.core.errors import (
    ConfigurationError,
    FileAccessError,
    MaxRedirectsExceededError,
)
from streamclient.identifiers import IdentifierType
from streamclient.payload import FilePayload
from streamclient.progress import ProgressCallback, ProgressStage
from streamclient.sink import ResponseWriterType, validate_writer
from streamclient.url import normalize_scheme


class Cookie(BaseModel):
    """A cookie sent with a request or received in a response."""

    name: str
    value: str
    domain: str | None = None
    path: str | None = None
    secure: bool = False
    http_only: bool = False

    def header_value(self) -> str:
        return f"{self.name}={self.value}"


def _coerce_headers(value: Any) -> httpx.Headers:
    if value is None:
        return httpx.Headers()
    if isinstance(value, httpx.Headers):
        return value
    if isinstance(value, Mapping):
        return httpx.Headers(dict(value))
    return httpx.Headers(list(value))


class RequestOptions(BaseModel):
    """Configuration read by the request pipeline for one call."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    headers: httpx.Headers = Field(
        default_factory=httpx.Headers,
        description="Request headers (multimap)",
    )
    cookies: list[Cookie] = Field(default_factory=list)
    protocol_scheme: str = Field(
        default="",
        description="Scheme forced onto every URL, e.g. 'http://'. Empty keeps the URL's own scheme",
    )

    compression: CompressionType = CompressionType.NONE
    custom_compression_type: str = Field(
        default="",
        description="Content-Encoding label sent with custom compression",
    )
    custom_compressor: Callable[[], Any] | None = Field(
        default=None,
        description="Factory returning an object with compress(bytes) and flush()",
    )
    custom_decompressor: Callable[[], Any] | None = Field(
        default=None,
        description="Factory returning an object with decompress(bytes) and optionally flush()",
    )

    user_agent: str = DEFAULT_USER_AGENT

    follow_redirects: bool = True
    preserve_method_on_redirect: bool = False
    max_redirects: int = Field(default=DEFAULT_MAX_REDIRECTS, ge=0)

    identifier_type: IdentifierType = IdentifierType.UUID
    identifier_header: str = IDENTIFIER_HEADER

    writer_type: ResponseWriterType = ResponseWriterType.BUFFER
    output_path: str | None = None

    upload_buffer_size: int = Field(default=DEFAULT_UPLOAD_BUFFER_SIZE, gt=0)
    download_buffer_size: int = Field(default=DEFAULT_DOWNLOAD_BUFFER_SIZE, gt=0)
    upload_progress_stage: ProgressStage = ProgressStage.BEFORE_COMPRESSION
    on_upload_progress: ProgressCallback | None = None
    on_download_progress: ProgressCallback | None = None

    _redirect_count: int = PrivateAttr(default=0)
    _redirect_lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)
    _file_name: str | None = PrivateAttr(default=None)
    _file_size: int = PrivateAttr(default=0)

    @field_validator("headers", mode="before")
    @classmethod
    def validate_headers(cls, v: Any) -> httpx.Headers:
        return _coerce_headers(v)

    @field_validator("protocol_scheme")
    @classmethod
    def validate_protocol_scheme(cls, v: str) -> str:
        return normalize_scheme(v) if v.strip() else ""

    # Copying and merging

    def clone(self) -> "RequestOptions":
        """Copy with independent headers, cookies and redirect counter.

        Callbacks and compression hooks are shared by reference.
        """
        copied = self.model_copy()
        copied.headers = httpx.Headers(self.headers)
        copied.cookies = [cookie.model_copy() for cookie in self.cookies]
        copied._redirect_count = 0
        copied._redirect_lock = threading.Lock()
        return copied

    def merge(self, overlay: "RequestOptions | None") -> "RequestOptions":
        """Return a fresh copy of ``self`` with ``overlay`` applied on top.

        Scalar fields are taken from the overlay only when it set them
        explicitly. Overlay headers replace base headers of the same name,
        overlay cookies replace base cookies of the same name.
        """
        merged = self.clone()
        if overlay is None:
            return merged

        for name in overlay.model_fields_set - {"headers", "cookies"}:
            setattr(merged, name, getattr(overlay, name))

        if overlay.headers:
            replaced = {key.lower() for key in overlay.headers}
            items = [
                (key, value)
                for key, value in merged.headers.multi_items()
                if key.lower() not in replaced
            ]
            items.extend(overlay.headers.multi_items())
            merged.headers = httpx.Headers(items)

        for cookie in overlay.cookies:
            merged._put_cookie(cookie.model_copy())

        if overlay._file_name is not None:
            merged._file_name = overlay._file_name
            merged._file_size = overlay._file_size

        return merged

    # Headers and cookies

    def add_header(self, name: str, value: str) -> "RequestOptions":
        """Append a header value, keeping existing values of the same name."""
        self.headers = httpx.Headers([*self.headers.multi_items(), (name, value)])
        return self

    def set_header(self, name: str, value: str) -> "RequestOptions":
        """Set a header, replacing every existing value of the same name."""
        self.headers[name] = value
        return self

    def clear_headers(self) -> "RequestOptions":
        self.headers = httpx.Headers()
        return self

    def add_cookie(
        self, name: str, value: str, **attributes: Any
    ) -> "RequestOptions":
        self._put_cookie(Cookie(name=name, value=value, **attributes))
        return self

    def clear_cookies(self) -> "RequestOptions":
        self.cookies = []
        return self

    def _put_cookie(self, cookie: Cookie) -> None:
        self.cookies = [c for c in self.cookies if c.name != cookie.name]
        self.cookies.append(cookie)

    # Protocol and compression

    def set_protocol_scheme(self, scheme: str) -> "RequestOptions":
        """Force a scheme onto every URL; ``"http"`` becomes ``"http://"``."""
        self.protocol_scheme = normalize_scheme(scheme) if scheme.strip() else ""
        return self

    def set_compression(
        self,
        compression: CompressionType | str,
        *,
        custom_type: str | None = None,
        compressor: Callable[[], Any] | None = None,
        decompressor: Callable[[], Any] | None = None,
    ) -> "RequestOptions":
        """Select the request body compression.

        Args:
            compression: Algorithm name (``gzip``, ``deflate``, ``br``, ``custom``)
                or empty for none
            custom_type: Content-Encoding label for ``custom``
            compressor: Compressor factory for ``custom``
            decompressor: Decompressor factory for unknown response encodings
        """
        try:
            self.compression = CompressionType(compression)
        except ValueError as e:
            raise ConfigurationError(
                f"unsupported compression type: {compression}",
                error_type="unsupported_compression",
                details={"compression": str(compression)},
            ) from e
        if custom_type is not None:
            self.custom_compression_type = custom_type
        if compressor is not None:
            self.custom_compressor = compressor
        if decompressor is not None:
            self.custom_decompressor = decompressor
        return self

    # Redirects

    def redirects(
        self, follow: bool = True, preserve_method: bool = False
    ) -> "RequestOptions":
        self.follow_redirects = follow
        self.preserve_method_on_redirect = preserve_method
        return self

    def enable_redirects(self) -> "RequestOptions":
        self.follow_redirects = True
        return self

    def disable_redirects(self) -> "RequestOptions":
        self.follow_redirects = False
        return self

    def set_max_redirects(self, max_redirects: int) -> "RequestOptions":
        if max_redirects < 0:
            raise ConfigurationError(
                f"max redirects must not be negative: {max_redirects}"
            )
        self.max_redirects = max_redirects
        return self

    @property
    def redirect_count(self) -> int:
        return self._redirect_count

    def check_redirects(self, url: str = "") -> int:
        """Count one more redirect response for the current call chain.

        Returns:
            The updated redirect count.

        Raises:
            MaxRedirectsExceededError: once the count reaches ``max_redirects``.
        """
        with self._redirect_lock:
            self._redirect_count += 1
            if self._redirect_count >= self.max_redirects:
                raise MaxRedirectsExceededError(self.max_redirects, url)
            return self._redirect_count

    def reset_redirects(self) -> None:
        with self._redirect_lock:
            self._redirect_count = 0

    # Response output

    def set_output(
        self, writer_type: ResponseWriterType | str, path: str | None = None
    ) -> "RequestOptions":
        """Select the response sink.

        Raises:
            InvalidWriterError: for an unknown type, a file sink without a
                path, or a buffer sink with one.
        """
        validate_writer(writer_type, path)
        self.writer_type = ResponseWriterType(writer_type)
        self.output_path = path
        return self

    def set_file_output(self, path: str) -> "RequestOptions":
        return self.set_output(ResponseWriterType.FILE, path)

    def set_buffer_output(self) -> "RequestOptions":
        return self.set_output(ResponseWriterType.BUFFER, None)

    def set_upload_buffer_size(self, size: int) -> "RequestOptions":
        if size <= 0:
            raise ConfigurationError(f"upload buffer size must be positive: {size}")
        self.upload_buffer_size = size
        return self

    def set_download_buffer_size(self, size: int) -> "RequestOptions":
        if size <= 0:
            raise ConfigurationError(f"download buffer size must be positive: {size}")
        self.download_buffer_size = size
        return self

    # Progress

    def on_upload(
        self,
        callback: ProgressCallback | None,
        stage: ProgressStage | str | None = None,
    ) -> "RequestOptions":
        self.on_upload_progress = callback
        if stage is not None:
            self.upload_progress_stage = ProgressStage(stage)
        return self

    def on_download(self, callback: ProgressCallback | None) -> "RequestOptions":
        self.on_download_progress = callback
        return self

    # File uploads

    @property
    def file_name(self) -> str | None:
        return self._file_name

    @property
    def file_size(self) -> int:
        return self._file_size

    def prepare_file(self, path: str | os.PathLike[str]) -> FilePayload:
        """Describe a file upload and set its content headers.

        Content-Type is inferred from the extension, falling back to
        ``application/octet-stream``.

        Raises:
            FileAccessError: if the file does not exist or cannot be read.
        """
        path = os.fspath(path)
        if not os.path.isfile(path):
            raise FileAccessError(f"file does not exist: {path}", path)

        payload = FilePayload(path=path)
        file_name = os.path.basename(path)
        content_type, _ = mimetypes.guess_type(file_name)

        self._file_name = file_name
        self._file_size = payload.size
        self.set_header("Content-Type", content_type or OCTET_STREAM)
        self.set_header(
            "Content-Disposition", f'form-data; name="file"; filename="{file_name}"'
        )
        return payload
