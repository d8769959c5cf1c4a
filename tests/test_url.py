"""Tests for URL normalization."""

import pytest

from streamclient.core.errors import URLValidationError
from streamclient.url import normalize_scheme, normalize_url, resolve_location


@pytest.mark.unit
class TestNormalizeScheme:
    @pytest.mark.parametrize(
        ("scheme", "expected"),
        [("http", "http://"), ("https://", "https://"), (" http ", "http://")],
    )
    def test_appends_separator(self, scheme: str, expected: str) -> None:
        assert normalize_scheme(scheme) == expected


@pytest.mark.unit
class TestNormalizeURL:
    def test_defaults_to_https(self) -> None:
        assert normalize_url("example.com/path", "") == "https://example.com/path"

    def test_scheme_override(self) -> None:
        assert normalize_url("example.com", "http") == "http://example.com"

    def test_override_replaces_existing_scheme(self) -> None:
        assert normalize_url("https://example.com/a", "http://") == "http://example.com/a"

    def test_trims_whitespace(self) -> None:
        assert normalize_url("  https://example.com  ") == "https://example.com"

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com",
            "http://example.com:8080/a?b=c",
            "example.com/path",
        ],
    )
    def test_idempotent(self, url: str) -> None:
        once = normalize_url(url)
        assert normalize_url(once) == once

    def test_existing_scheme_untouched(self) -> None:
        assert normalize_url("http://example.com/x") == "http://example.com/x"

    @pytest.mark.parametrize("url", ["foo:bar", "localhost:8080/path", "mailto:me@example.com"])
    def test_rejects_colon_without_slashes(self, url: str) -> None:
        with pytest.raises(URLValidationError) as exc_info:
            normalize_url(url)
        assert "missing //" in exc_info.value.message

    @pytest.mark.parametrize("url", ["", "   "])
    def test_rejects_empty(self, url: str) -> None:
        with pytest.raises(URLValidationError):
            normalize_url(url)

    def test_rejects_missing_host(self) -> None:
        with pytest.raises(URLValidationError):
            normalize_url("https:///path-only")


@pytest.mark.unit
class TestResolveLocation:
    def test_relative(self) -> None:
        assert (
            resolve_location("https://example.com/a/b", "/c")
            == "https://example.com/c"
        )

    def test_sibling(self) -> None:
        assert (
            resolve_location("https://example.com/a/b", "c")
            == "https://example.com/a/c"
        )

    def test_absolute(self) -> None:
        assert (
            resolve_location("https://example.com/a", "http://other.org/x")
            == "http://other.org/x"
        )
