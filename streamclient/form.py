"""application/x-www-form-urlencoded encoding."""

from collections.abc import Mapping
from urllib.parse import urlencode


def encode(fields: Mapping[str, str]) -> bytes:
    """Encode ``fields`` as a URL-encoded form body."""
    return urlencode(list(fields.items())).encode("ascii")
