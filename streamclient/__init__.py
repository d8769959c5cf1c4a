from ._version import __version__
from .api import (
    connect,
    custom,
    delete,
    get,
    head,
    options,
    patch,
    patch_file,
    patch_form,
    post,
    post_file,
    post_form,
    put,
    put_file,
    put_form,
    request,
    trace,
)
from .client import HTTPClient
from .compression import CompressionType
from .config.settings import Settings
from .core.errors import (
    CompressionError,
    ConfigurationError,
    DecompressionError,
    FileAccessError,
    InvalidWriterError,
    MaxRedirectsExceededError,
    MissingFilePathError,
    MissingLocationError,
    PayloadReplayError,
    RedirectError,
    SinkError,
    StreamClientError,
    TransferError,
    TransportError,
    UnexpectedFilePathError,
    UnsupportedCompressionError,
    UnsupportedPayloadError,
    URLValidationError,
)
from .identifiers import IdentifierType
from .options import Cookie, RequestOptions
from .pipeline import RequestPipeline
from .progress import ProgressStage
from .response import ClientResponse
from .sink import ResponseWriterType


__all__ = [
    "__version__",
    "ClientResponse",
    "CompressionError",
    "CompressionType",
    "ConfigurationError",
    "Cookie",
    "DecompressionError",
    "FileAccessError",
    "HTTPClient",
    "IdentifierType",
    "InvalidWriterError",
    "MaxRedirectsExceededError",
    "MissingFilePathError",
    "MissingLocationError",
    "PayloadReplayError",
    "ProgressStage",
    "RedirectError",
    "RequestOptions",
    "RequestPipeline",
    "ResponseWriterType",
    "Settings",
    "SinkError",
    "StreamClientError",
    "TransferError",
    "TransportError",
    "URLValidationError",
    "UnexpectedFilePathError",
    "UnsupportedCompressionError",
    "UnsupportedPayloadError",
    "connect",
    "custom",
    "delete",
    "get",
    "head",
    "options",
    "patch",
    "patch_file",
    "patch_form",
    "post",
    "post_file",
    "post_form",
    "put",
    "put_file",
    "put_form",
    "request",
    "trace",
]
