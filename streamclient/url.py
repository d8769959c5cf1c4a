"""Target URL normalization."""

import re

import httpx

from streamclient.config.constants import DEFAULT_SCHEME, SCHEME_HTTP, SCHEME_HTTPS
from streamclient.core.errors import URLValidationError


_SCHEME_PREFIX = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")


def normalize_scheme(scheme: str) -> str:
    """Return ``scheme`` with a ``://`` suffix (``"http"`` -> ``"http://"``)."""
    scheme = scheme.strip()
    if not scheme.endswith("://"):
        scheme += "://"
    return scheme


def _strip_http_scheme(url: str) -> str:
    lowered = url.lower()
    for prefix in (SCHEME_HTTP, SCHEME_HTTPS):
        if lowered.startswith(prefix):
            return url[len(prefix) :]
    return url


def normalize_url(url: str, protocol_scheme: str | None = None) -> str:
    """Validate and canonicalize ``url``.

    A string whose first colon is not followed by ``//`` is rejected, so that
    ``host:port`` or ``foo:bar`` is never mistaken for a scheme. With a
    ``protocol_scheme`` override any http/https prefix is replaced by the
    override; otherwise scheme-less input defaults to ``https://``.

    Raises:
        URLValidationError: if the input is ambiguous or does not parse.
    """
    raw = url
    url = url.strip()
    if not url:
        raise URLValidationError(raw, "URL is empty")

    colon = url.find(":")
    if colon != -1 and not url.startswith("//", colon + 1):
        raise URLValidationError(raw, "invalid URL format: missing // after scheme")

    if protocol_scheme:
        scheme = normalize_scheme(protocol_scheme)
        url = _strip_http_scheme(url)
        if not url.lower().startswith(scheme.lower()):
            url = scheme + url
    elif not _SCHEME_PREFIX.match(url):
        url = DEFAULT_SCHEME + url

    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError) as e:
        raise URLValidationError(raw, str(e)) from e

    if not parsed.host:
        raise URLValidationError(raw, "URL has no host")

    return url


def resolve_location(base_url: str, location: str) -> str:
    """Resolve a (possibly relative) ``Location`` value against ``base_url``."""
    try:
        return str(httpx.URL(base_url).join(location.strip()))
    except (httpx.InvalidURL, TypeError, ValueError) as e:
        raise URLValidationError(location, str(e)) from e
