"""Exception hierarchy for streamclient.

Every error raised by the request pipeline derives from
:class:`StreamClientError` and carries an ``error_type`` category plus a
``details`` mapping, so callers can assert on what went wrong and not only
that something did.

Errors raised after the transport was contacted also carry the partially
populated :class:`~streamclient.response.ClientResponse` on ``response``.
"""

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from streamclient.response import ClientResponse


class StreamClientError(Exception):
    """Base exception for streamclient errors."""

    def __init__(
        self,
        message: str,
        error_type: str = "client_error",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}
        self.response: ClientResponse | None = None


# Configuration errors (raised before any I/O)


class ConfigurationError(StreamClientError):
    """Invalid or incomplete request configuration."""

    def __init__(
        self,
        message: str,
        error_type: str = "configuration_error",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, error_type=error_type, details=details)


class InvalidWriterError(ConfigurationError):
    """Response writer configured with an unknown type."""

    def __init__(self, message: str = "invalid writer type") -> None:
        super().__init__(message=message, error_type="invalid_writer")


class MissingFilePathError(InvalidWriterError):
    """File output selected without a destination path."""

    def __init__(self) -> None:
        super().__init__("file path must be specified when writing to a file")


class UnexpectedFilePathError(InvalidWriterError):
    """Buffer output selected together with a destination path."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"file path should not be provided when writing to a buffer: {path}"
        )
        self.details = {"path": path}


class UnsupportedCompressionError(ConfigurationError):
    """Compression algorithm unknown or its hook is missing."""

    def __init__(self, compression: str, reason: str | None = None) -> None:
        message = reason or f"unsupported compression type: {compression}"
        super().__init__(
            message=message,
            error_type="unsupported_compression",
            details={"compression": compression},
        )


class UnsupportedPayloadError(ConfigurationError):
    """Payload value is not one of the supported shapes."""

    def __init__(self, payload: Any) -> None:
        type_name = type(payload).__name__
        super().__init__(
            message=f"unsupported payload type: {type_name}",
            error_type="unsupported_payload",
            details={"payload_type": type_name},
        )


# Validation errors


class URLValidationError(StreamClientError):
    """URL is malformed or could not be parsed."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(
            message=f"invalid URL {url!r}: {reason}",
            error_type="invalid_url",
            details={"url": url},
        )


# Transport errors


class TransportError(StreamClientError):
    """The underlying HTTP transport failed (connect, timeout, TLS, protocol)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, error_type="transport_error", details=details)


# Protocol policy errors


class RedirectError(StreamClientError):
    """Redirect could not be followed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, error_type="redirect_error", details=details)


class MissingLocationError(RedirectError):
    """Redirect response without a Location header."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(
            message=f"redirect response {status_code} from {url} has no Location header",
            details={"status_code": status_code, "url": url},
        )


class MaxRedirectsExceededError(RedirectError):
    """Redirect chain reached the configured maximum."""

    def __init__(self, max_redirects: int, url: str) -> None:
        super().__init__(
            message=f"maximum redirects exceeded: limit is {max_redirects}",
            details={"max_redirects": max_redirects, "url": url},
        )
        self.max_redirects = max_redirects


# Transfer I/O errors


class TransferError(StreamClientError):
    """Failure while moving bytes between payload, wire and sink."""

    def __init__(
        self,
        message: str,
        error_type: str = "transfer_error",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, error_type=error_type, details=details)


class CompressionError(TransferError):
    """Streaming compression of the request body failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, error_type="compression_error")


class DecompressionError(TransferError):
    """Decoding the response body failed."""

    def __init__(self, message: str, encoding: str | None = None) -> None:
        super().__init__(
            message=message,
            error_type="decompression_error",
            details={"encoding": encoding} if encoding else None,
        )


class SinkError(TransferError):
    """Response sink could not be opened or written."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(
            message=message,
            error_type="sink_error",
            details={"path": path} if path else None,
        )


class FileAccessError(TransferError):
    """File payload missing or unreadable."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(
            message=message, error_type="file_access_error", details={"path": path}
        )


class PayloadReplayError(TransferError):
    """Payload stream cannot be rewound for a redirect replay."""

    def __init__(self, reader: str) -> None:
        super().__init__(
            message=f"payload of type {reader} cannot be replayed after a redirect",
            error_type="payload_replay_error",
            details={"reader": reader},
        )
