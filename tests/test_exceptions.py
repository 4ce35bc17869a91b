"""Tests for exception classes."""

import pytest

from crypto_toolkit.exceptions import (
    ConfigurationError,
    CryptoToolkitError,
    NetworkError,
    SigningError,
    SubmissionError,
    TransportError,
    UnknownWalletError,
    ValidationError,
    WalletError,
)


class TestCryptoToolkitError:
    """Tests for base CryptoToolkitError."""

    def test_basic_creation(self):
        """Test basic error creation."""
        error = CryptoToolkitError("Test message")

        assert str(error) == "Test message"
        assert error.message == "Test message"
        assert error.details == {}

    def test_with_details(self):
        """Test error with details."""
        error = CryptoToolkitError("Test message", {"key": "value"})

        assert error.details == {"key": "value"}

    def test_repr(self):
        """Test error repr."""
        error = CryptoToolkitError("Test", {"foo": "bar"})

        assert "CryptoToolkitError" in repr(error)
        assert "Test" in repr(error)


class TestValidationErrors:
    """Tests for configuration and validation errors."""

    def test_configuration_error(self):
        """Test ConfigurationError records the offending key."""
        error = ConfigurationError("Missing key", config_key="api_key")

        assert error.config_key == "api_key"
        assert error.details["config_key"] == "api_key"

    def test_validation_error(self):
        """Test ValidationError records field and value."""
        error = ValidationError("Invalid amount", field="amount", value=-1)

        assert error.field == "amount"
        assert error.value == -1
        assert error.details["field"] == "amount"
        assert error.details["value"] == "-1"


class TestWalletErrors:
    """Tests for wallet-related errors."""

    def test_unknown_wallet(self):
        """Test UnknownWalletError."""
        error = UnknownWalletError("addr")

        assert isinstance(error, WalletError)
        assert error.address == "addr"
        assert error.details["address"] == "addr"
        assert "wallet" in error.message.lower()

    def test_signing_error(self):
        """Test SigningError keeps the cause in details."""
        error = SigningError("addr", details={"cause": "ValueError: bad key"})

        assert isinstance(error, WalletError)
        assert error.details["cause"] == "ValueError: bad key"
        assert error.details["address"] == "addr"


class TestNetworkErrors:
    """Tests for network-related errors."""

    def test_transport_error_names_operation(self):
        """Test TransportError message names the failed operation."""
        error = TransportError("fetch portfolio value")

        assert isinstance(error, NetworkError)
        assert error.message == "Failed to fetch portfolio value"
        assert error.operation == "fetch portfolio value"
        assert error.status_code is None
        assert "status_code" not in error.details

    def test_transport_error_status(self):
        """Test TransportError with an HTTP status."""
        error = TransportError("fetch interest rates", status_code=503)

        assert error.status_code == 503
        assert error.details["status_code"] == 503
        assert error.details["operation"] == "fetch interest rates"

    def test_submission_error_defaults(self):
        """Test SubmissionError defaults to the submission operation."""
        error = SubmissionError()

        assert isinstance(error, TransportError)
        assert error.operation == "send transaction"
        assert error.message == "Failed to send transaction"

    def test_submission_error_catchable_as_transport(self):
        """Test SubmissionError is caught by TransportError handlers."""
        with pytest.raises(TransportError):
            raise SubmissionError("send crypto")
