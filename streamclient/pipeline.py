"""Request execution pipeline.

One call flows through::

    options merge -> identifier header -> URL normalization -> payload
    descriptor -> [upload progress] -> [compression] -> transport ->
    redirect controller (loop) -> [decompression] -> [download progress]
    -> response sink -> ClientResponse

Configuration and validation errors are raised before the transport is
contacted. Any later failure is raised with the partially populated
:class:`ClientResponse` attached on ``error.response``.
"""

import time
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
from structlog.typing import FilteringBoundLogger

from streamclient.compression import (
    CompressionPipe,
    CompressionType,
    content_encoding_for,
    decompress_stream,
    get_compressor,
    get_decompressor,
)
from streamclient.config.constants import BODY_METHODS, UNKNOWN_SIZE
from streamclient.core.errors import StreamClientError, TransferError, TransportError
from streamclient.core.logging import get_logger
from streamclient.identifiers import generate_identifier
from streamclient.options import Cookie, RequestOptions
from streamclient.payload import EmptyPayload, PayloadSource
from streamclient.progress import (
    ProgressCounter,
    ProgressReader,
    ProgressStage,
    ProgressWriter,
)
from streamclient.redirects import RedirectController
from streamclient.response import ClientResponse, TLSInfo
from streamclient.sink import BufferSink, FileSink, open_sink, validate_writer
from streamclient.url import normalize_url


logger = get_logger(__name__)

ACCEPT_ENCODING = "gzip, deflate, br"

# Headers describing a body that must not survive a downgrade to GET
_BODY_HEADERS = (
    "content-type",
    "content-length",
    "content-encoding",
    "content-disposition",
)

# Credentials that must not follow a redirect to another origin
_CREDENTIAL_HEADERS = ("authorization", "proxy-authorization", "cookie")

_DEFAULT_PORTS = {"http": 80, "https": 443}

# Responses whose Content-Length does not describe a transferred body
_BODYLESS_STATUS_CODES = frozenset({204, 304})


class _Upload:
    """Builds the request body for each attempt of one call."""

    def __init__(self, source: PayloadSource, options: RequestOptions) -> None:
        self.source = source
        self.options = options
        self.compressed = options.compression is not CompressionType.NONE
        self._reader: ProgressReader | None = None
        self._counter: ProgressCounter | None = None

        if options.on_upload_progress is not None:
            measure_wire = (
                self.compressed
                and options.upload_progress_stage is ProgressStage.AFTER_COMPRESSION
            )
            total = UNKNOWN_SIZE if measure_wire else source.size
            self._counter = ProgressCounter(total, options.on_upload_progress)

        # Fail before any I/O when the compressor cannot be built
        self._first_compressor = (
            get_compressor(options)
            if self.compressed and not source.is_empty
            else None
        )

    def replay(self) -> None:
        """Switch to a rehydrated payload for the next redirect hop."""
        self.source = self.source.rehydrate()

    def drop(self) -> None:
        self.source = EmptyPayload()

    def _track(self, stream: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        if self._counter is None:
            return stream
        if self._reader is None:
            self._reader = ProgressReader(stream, self._counter)
        else:
            self._reader = self._reader.clone_for_redirect(stream, self.source.size)
        return self._reader

    def body(self) -> tuple[AsyncIterator[bytes] | None, dict[str, str]]:
        """Return the body iterator and the headers describing it."""
        if self.source.is_empty:
            return None, {}

        chunks = self.source.chunks(self.options.upload_buffer_size)
        if not self.compressed:
            headers: dict[str, str] = {}
            if self.source.size != UNKNOWN_SIZE:
                headers["Content-Length"] = str(self.source.size)
            return self._track(chunks), headers

        compressor = self._first_compressor
        if compressor is None:
            compressor = get_compressor(self.options)
        self._first_compressor = None
        headers = {"Content-Encoding": content_encoding_for(self.options)}

        if self.options.upload_progress_stage is ProgressStage.BEFORE_COMPRESSION:
            return aiter(CompressionPipe(self._track(chunks), compressor)), headers
        return self._track(aiter(CompressionPipe(chunks, compressor))), headers


class RequestPipeline:
    """Executes requests over a shared ``httpx.AsyncClient``.

    The httpx client must not follow redirects itself; redirects are handled
    by :class:`~streamclient.redirects.RedirectController`.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def execute(
        self,
        method: str,
        url: str,
        payload: Any = None,
        options: RequestOptions | None = None,
        *,
        base: RequestOptions | None = None,
    ) -> ClientResponse:
        """Run one logical call, following redirects as configured.

        Args:
            method: HTTP method
            url: Target URL, normalized against ``protocol_scheme``
            payload: Request body (ignored unless the method is POST, PUT or PATCH)
            options: Per-call overlay, wins over ``base``
            base: Long-lived base configuration, never mutated

        Returns:
            The populated response record of the final attempt.

        Raises:
            StreamClientError: any configuration, validation, transport,
                redirect or transfer failure.
        """
        if base is not None:
            options = base.merge(options)
        elif options is not None:
            options = options.clone()
        else:
            options = RequestOptions()
        options.reset_redirects()

        method = method.upper()
        identifier = generate_identifier(options.identifier_type)
        if identifier:
            options.set_header(options.identifier_header, identifier)

        target = normalize_url(url, options.protocol_scheme)
        validate_writer(options.writer_type, options.output_path)

        if method in BODY_METHODS:
            source = PayloadSource.from_value(payload)
        else:
            source = EmptyPayload()
        upload = _Upload(source, options)

        log = logger.bind(request_id=identifier or None, method=method, url=target)
        record = ClientResponse(
            identifier=identifier,
            url=target,
            method=method,
            request_time=datetime.now(UTC),
            compression_type=(
                CompressionType.NONE if source.is_empty else options.compression
            ),
        )
        log.debug("request_started", payload=source.reader, size=source.size)
        started = time.perf_counter()

        response: httpx.Response | None = None
        try:
            response = await self._send(method, target, upload, options, record, log)
            await self._drain(response, options, record, log)
        except httpx.HTTPError as e:
            error = TransportError(
                f"{type(e).__name__}: {e}" if str(e) else type(e).__name__,
                details={"url": record.url, "method": record.method},
            )
            self._fail(record, error, started, log)
            raise error from e
        except OSError as e:
            error = TransferError(f"I/O error during transfer: {e}")
            self._fail(record, error, started, log)
            raise error from e
        except StreamClientError as e:
            self._fail(record, e, started, log)
            raise
        finally:
            if response is not None:
                await response.aclose()

        record.elapsed = timedelta(seconds=time.perf_counter() - started)
        log.info(
            "request_completed",
            status_code=record.status_code,
            content_length=record.content_length,
            redirected=record.redirected,
            elapsed_ms=round(record.elapsed.total_seconds() * 1000, 2),
        )
        return record

    async def _send(
        self,
        method: str,
        url: str,
        upload: _Upload,
        options: RequestOptions,
        record: ClientResponse,
        log: FilteringBoundLogger,
    ) -> httpx.Response:
        controller = RedirectController(options)
        original_url = url

        while True:
            content, body_headers = upload.body()
            request = httpx.Request(
                method,
                url,
                headers=self._request_headers(options, body_headers),
                content=content,
                extensions={"timeout": self._client.timeout.as_dict()},
            )

            controller.dispatched()
            try:
                response = await self._client.send(
                    request, stream=True, follow_redirects=False
                )
            except Exception:
                controller.failed()
                raise

            self._populate(record, response, url, method)
            log.debug(
                "response_received",
                status_code=response.status_code,
                http_version=response.http_version,
            )

            try:
                decision = controller.evaluate(
                    response.status_code, response.headers.get("location"), url, method
                )
            except StreamClientError:
                await response.aclose()
                raise

            if not decision.follow:
                record.redirected = url != original_url
                if record.redirected:
                    record.location = url
                elif decision.location:
                    record.location = decision.location
                return response

            hop = record.model_copy(deep=False)
            hop.history = []
            hop.location = decision.location or ""
            record.history.append(hop)
            await response.aclose()

            if decision.replay_payload:
                upload.replay()
            else:
                upload.drop()
                for name in _BODY_HEADERS:
                    if name in options.headers:
                        del options.headers[name]
            if not _same_origin(url, decision.url):
                _drop_credentials(options)
                log.debug("redirect_credentials_dropped", to_url=decision.url)
            url, method = decision.url, decision.method
            record.url, record.method = url, method

    def _request_headers(
        self, options: RequestOptions, body_headers: dict[str, str]
    ) -> httpx.Headers:
        headers = httpx.Headers(options.headers)
        headers.setdefault("User-Agent", options.user_agent)
        headers.setdefault("Accept-Encoding", ACCEPT_ENCODING)

        if options.cookies:
            pairs = [cookie.header_value() for cookie in options.cookies]
            existing = headers.get("Cookie")
            if existing:
                pairs.insert(0, existing)
            headers["Cookie"] = "; ".join(pairs)

        if "Content-Encoding" in body_headers and "Content-Length" in headers:
            del headers["Content-Length"]
        for name, value in body_headers.items():
            headers[name] = value
        return headers

    def _populate(
        self,
        record: ClientResponse,
        response: httpx.Response,
        url: str,
        method: str,
    ) -> None:
        record.url = url
        record.method = method
        record.response_time = datetime.now(UTC)
        record.status_code = response.status_code
        record.status = f"{response.status_code} {response.reason_phrase}".strip()
        record.http_version = response.http_version
        record.headers = response.headers
        record.content_encoding = response.headers.get("content-encoding", "")
        record.transfer_encoding = [
            value.strip()
            for value in response.headers.get("transfer-encoding", "").split(",")
            if value.strip()
        ]
        content_length = response.headers.get("content-length")
        record.content_length = (
            int(content_length) if content_length and content_length.isdigit() else UNKNOWN_SIZE
        )
        record.cookies = [
            Cookie(
                name=cookie.name,
                value=cookie.value or "",
                domain=cookie.domain or None,
                path=cookie.path or None,
                secure=bool(cookie.secure),
                http_only=cookie.has_nonstandard_attr("HttpOnly"),
            )
            for cookie in response.cookies.jar
        ]
        record.tls = _tls_info(response)

    async def _drain(
        self,
        response: httpx.Response,
        options: RequestOptions,
        record: ClientResponse,
        log: FilteringBoundLogger,
    ) -> None:
        encoding = record.content_encoding
        decompressor = get_decompressor(encoding, options)
        sink = await open_sink(options.writer_type, options.output_path)

        total = UNKNOWN_SIZE if decompressor is not None else record.content_length
        counter = ProgressCounter(total, options.on_download_progress)
        writer = ProgressWriter(sink, counter)

        stream: AsyncIterator[bytes] = response.aiter_raw(options.download_buffer_size)
        if decompressor is not None:
            stream = decompress_stream(stream, decompressor, encoding)
            record.decompressed = True

        try:
            async for chunk in stream:
                await writer.write(chunk)
        finally:
            await writer.close()
            log.debug("response_sink_closed", bytes_written=counter.transferred)

        counter.complete()

        if isinstance(sink, FileSink):
            record.output_path = sink.path
            record.content_length = await sink.size()
        elif isinstance(sink, BufferSink):
            record.body = sink.getvalue()
            if not _is_bodyless(record) and (
                record.decompressed or record.content_length == UNKNOWN_SIZE
            ):
                record.content_length = len(sink)

    def _fail(
        self,
        record: ClientResponse,
        error: StreamClientError,
        started: float,
        log: FilteringBoundLogger,
    ) -> None:
        record.elapsed = timedelta(seconds=time.perf_counter() - started)
        record.error = error
        error.response = record
        log.warning(
            "request_failed",
            error_type=error.error_type,
            error=error.message,
            status_code=record.status_code or None,
        )


def _same_origin(first: str, second: str) -> bool:
    a, b = httpx.URL(first), httpx.URL(second)
    return (a.scheme, a.host, a.port or _DEFAULT_PORTS.get(a.scheme)) == (
        b.scheme,
        b.host,
        b.port or _DEFAULT_PORTS.get(b.scheme),
    )


def _drop_credentials(options: RequestOptions) -> None:
    for name in _CREDENTIAL_HEADERS:
        if name in options.headers:
            del options.headers[name]
    options.cookies = []


def _is_bodyless(record: ClientResponse) -> bool:
    return (
        record.method == "HEAD"
        or record.status_code < 200
        or record.status_code in _BODYLESS_STATUS_CODES
    )


def _tls_info(response: httpx.Response) -> TLSInfo | None:
    network_stream = response.extensions.get("network_stream")
    if network_stream is None:
        return None
    ssl_object = network_stream.get_extra_info("ssl_object")
    if ssl_object is None:
        return None
    cipher = ssl_object.cipher()
    return TLSInfo(
        version=ssl_object.version() or "",
        cipher=cipher[0] if cipher else "",
        bits=cipher[2] if cipher else None,
    )
