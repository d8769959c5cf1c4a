"""Tests for the streamclient exception hierarchy."""

import pytest

from streamclient.core.errors import (
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


@pytest.mark.unit
class TestStreamClientError:
    """Test StreamClientError base exception."""

    def test_init_with_defaults(self) -> None:
        """Test initialization with default values."""
        error = StreamClientError("Test message")
        assert str(error) == "Test message"
        assert error.message == "Test message"
        assert error.error_type == "client_error"
        assert error.details == {}
        assert error.response is None

    def test_init_with_custom_values(self) -> None:
        """Test initialization with custom values."""
        details = {"field": "value"}
        error = StreamClientError("Custom", error_type="custom_error", details=details)
        assert error.error_type == "custom_error"
        assert error.details == details


@pytest.mark.unit
class TestConfigurationErrors:
    """Test errors raised before any I/O."""

    def test_missing_file_path(self) -> None:
        error = MissingFilePathError()
        assert isinstance(error, InvalidWriterError)
        assert isinstance(error, ConfigurationError)
        assert "file path must be specified" in error.message
        assert error.error_type == "invalid_writer"

    def test_unexpected_file_path_names_path(self) -> None:
        error = UnexpectedFilePathError("/tmp/out.bin")
        assert "/tmp/out.bin" in error.message
        assert error.details == {"path": "/tmp/out.bin"}

    def test_unsupported_compression_default_message(self) -> None:
        error = UnsupportedCompressionError("zstd")
        assert error.message == "unsupported compression type: zstd"
        assert error.details == {"compression": "zstd"}

    def test_unsupported_compression_with_reason(self) -> None:
        error = UnsupportedCompressionError("custom", "no compressor provided")
        assert error.message == "no compressor provided"

    def test_unsupported_payload_names_type(self) -> None:
        error = UnsupportedPayloadError(3.14)
        assert error.message == "unsupported payload type: float"
        assert error.details == {"payload_type": "float"}


@pytest.mark.unit
class TestRuntimeErrors:
    """Test validation, transport, redirect and transfer errors."""

    def test_url_validation(self) -> None:
        error = URLValidationError("foo:bar", "missing //")
        assert "foo:bar" in error.message
        assert error.error_type == "invalid_url"

    def test_transport_error(self) -> None:
        error = TransportError("ConnectError: refused")
        assert error.error_type == "transport_error"

    def test_max_redirects_names_limit(self) -> None:
        error = MaxRedirectsExceededError(5, "https://example.com/loop")
        assert isinstance(error, RedirectError)
        assert "5" in error.message
        assert error.max_redirects == 5
        assert error.details["max_redirects"] == 5

    def test_missing_location(self) -> None:
        error = MissingLocationError(302, "https://example.com/")
        assert "302" in error.message
        assert "Location" in error.message

    @pytest.mark.parametrize(
        "error",
        [
            CompressionError("boom"),
            DecompressionError("bad gzip", encoding="gzip"),
            SinkError("disk full", path="/tmp/x"),
            FileAccessError("gone", "/tmp/x"),
            PayloadReplayError("generator"),
        ],
    )
    def test_transfer_errors_share_base(self, error: TransferError) -> None:
        assert isinstance(error, TransferError)
        assert isinstance(error, StreamClientError)
        assert error.error_type.endswith("_error")

    def test_payload_replay_names_reader(self) -> None:
        error = PayloadReplayError("generator")
        assert "generator" in error.message
        assert error.details == {"reader": "generator"}
