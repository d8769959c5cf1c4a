"""Configuration constants for streamclient."""

from streamclient._version import __version__


# Identity
DEFAULT_USER_AGENT = f"streamclient/{__version__}"
IDENTIFIER_HEADER = "X-Request-ID"

# URL schemes
SCHEME_HTTP = "http://"
SCHEME_HTTPS = "https://"
DEFAULT_SCHEME = SCHEME_HTTPS

# Redirects
DEFAULT_MAX_REDIRECTS = 10
REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})

# Methods that carry a request body
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

# Transfer sizes
UNKNOWN_SIZE = -1
DEFAULT_UPLOAD_BUFFER_SIZE = 32 * 1024  # 32 KiB
DEFAULT_DOWNLOAD_BUFFER_SIZE = 64 * 1024  # 64 KiB
COMPRESSION_PIPE_DEPTH = 8  # chunks buffered between producer and request body

# Transport defaults (seconds)
DEFAULT_TIMEOUT_CONNECT = 15.0
DEFAULT_TIMEOUT_READ = 30.0
DEFAULT_TIMEOUT_WRITE = 30.0
DEFAULT_TIMEOUT_POOL = 30.0
DEFAULT_MAX_CONNECTIONS = 50
DEFAULT_MAX_KEEPALIVE_CONNECTIONS = 10

# Content types
OCTET_STREAM = "application/octet-stream"
FORM_URLENCODED = "application/x-www-form-urlencoded"
