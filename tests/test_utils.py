"""Tests for utility functions and data models."""

import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from crypto_toolkit.exceptions import ValidationError
from crypto_toolkit.utils import (
    DEFAULT_BLOCKCHAIN_EXPLORER_URL,
    DEFAULT_PAYMENT_GATEWAY_URL,
    DEFAULT_PRICES_URL,
    AddressBalance,
    ApiBase,
    OperationLogger,
    TransactionEnvelope,
    join_url,
    validate_addresses,
    validate_amount,
    validate_base_url,
    validate_identifier,
)


# =============================================================================
# Validation Tests
# =============================================================================


class TestValidateAmount:
    """Tests for validate_amount."""

    @pytest.mark.parametrize("amount", [1, 0.5, 1e-9, 10, 10**30, 123.456])
    def test_accepts_positive_finite(self, amount):
        """Test positive finite numbers pass through unchanged."""
        assert validate_amount(amount) == amount

    @pytest.mark.parametrize(
        "amount",
        [0, 0.0, -1, -0.5, float("nan"), float("inf"), float("-inf"), "10", None, True, [1]],
    )
    def test_rejects_invalid(self, amount):
        """Test zero, negatives, NaN, infinities and non-numbers are rejected."""
        with pytest.raises(ValidationError) as exc:
            validate_amount(amount)

        assert exc.value.field == "amount"
        assert exc.value.message == "Invalid amount"

    def test_custom_field_name(self):
        """Test the reported field name can be overridden."""
        with pytest.raises(ValidationError) as exc:
            validate_amount(-2, field="collateral")

        assert exc.value.field == "collateral"


class TestValidateAddresses:
    """Tests for validate_addresses and validate_identifier."""

    def test_accepts_non_empty_strings(self):
        """Test any non-empty string is a valid address."""
        validate_addresses("a", "0xabc", " ", "-----BEGIN PUBLIC KEY-----\n")

    @pytest.mark.parametrize("address", ["", None, 123, b"addr", ["addr"]])
    def test_rejects_invalid(self, address):
        """Test empty and non-string addresses are rejected."""
        with pytest.raises(ValidationError) as exc:
            validate_addresses("valid", address)

        assert exc.value.message == "Invalid address"
        assert exc.value.field == "address"

    def test_identifier_names_field(self):
        """Test validate_identifier reports its field."""
        assert validate_identifier("bitcoin", "crypto") == "bitcoin"

        with pytest.raises(ValidationError) as exc:
            validate_identifier("", "tx_hash")

        assert exc.value.message == "Invalid tx_hash"


class TestValidateBaseUrl:
    """Tests for validate_base_url."""

    def test_strips_trailing_slash(self):
        assert validate_base_url("https://api.example.com/") == "https://api.example.com"

    def test_rejects_bad_scheme(self):
        with pytest.raises(ValueError):
            validate_base_url("ftp://api.example.com")

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            validate_base_url("")


class TestJoinUrl:
    """Tests for join_url."""

    def test_plain_segments(self):
        assert join_url("https://x.io", "liquidity", "add") == "https://x.io/liquidity/add"

    def test_quotes_pem_address(self):
        """Test slashes and newlines in an address stay within one segment."""
        url = join_url("https://x.io", "address", "ab/c+d\n=", "balance")

        assert url == "https://x.io/address/ab%2Fc%2Bd%0A%3D/balance"


# =============================================================================
# Data Model Tests
# =============================================================================


class TestApiBase:
    """Tests for ApiBase."""

    def test_defaults(self):
        """Test every service has a documented default."""
        api_base = ApiBase()

        assert api_base.prices == DEFAULT_PRICES_URL
        assert api_base.payment_gateway == DEFAULT_PAYMENT_GATEWAY_URL
        assert api_base.blockchain_explorer == DEFAULT_BLOCKCHAIN_EXPLORER_URL

    def test_camel_case_overrides(self):
        """Test camelCase keys override individual services."""
        api_base = ApiBase.model_validate(
            {"blockchainExplorer": "http://localhost:8080/", "paymentGateway": "https://pay.local"}
        )

        assert api_base.blockchain_explorer == "http://localhost:8080"
        assert api_base.payment_gateway == "https://pay.local"
        assert api_base.prices == DEFAULT_PRICES_URL

    def test_snake_case_overrides(self):
        api_base = ApiBase.model_validate({"payment_gateway": "https://pay.local"})

        assert api_base.payment_gateway == "https://pay.local"

    def test_unknown_and_empty_keys(self):
        """Test unknown keys are ignored and empty ones fall back to defaults."""
        api_base = ApiBase.model_validate({"prices": "", "somethingElse": "https://x.io"})

        assert api_base.prices == DEFAULT_PRICES_URL
        assert not hasattr(api_base, "somethingElse")

    def test_invalid_url(self):
        with pytest.raises(PydanticValidationError):
            ApiBase.model_validate({"prices": "not-a-url"})


class TestTransactionEnvelope:
    """Tests for TransactionEnvelope."""

    def test_wire_format(self):
        """Test the payload is serialized under the transaction key."""
        envelope = TransactionEnvelope(payload='{"from":"A","to":"B","amount":10}', signature="ab")

        assert envelope.model_dump(by_alias=True) == {
            "transaction": '{"from":"A","to":"B","amount":10}',
            "signature": "ab",
        }

    def test_from_wire_format(self):
        envelope = TransactionEnvelope.model_validate(
            {"transaction": '{"from":"A","to":"B","amount":1.5}', "signature": "cd"}
        )

        assert envelope.decode() == {"from": "A", "to": "B", "amount": 1.5}

    def test_immutable(self):
        envelope = TransactionEnvelope(payload="{}", signature="ab")

        with pytest.raises(PydanticValidationError):
            envelope.signature = "cd"


class TestAddressBalance:
    """Tests for AddressBalance."""

    def test_from_explorer_response(self):
        balance = AddressBalance.model_validate({"balance": 5, "currency": "BTC"})

        assert balance.balance == 5
        assert balance.model_extra == {"currency": "BTC"}

    def test_missing_balance(self):
        with pytest.raises(PydanticValidationError):
            AddressBalance.model_validate({"amount": 5})

    @pytest.mark.parametrize("value", [float("nan"), float("-inf"), True, "5"])
    def test_rejects_non_numeric_balance(self, value):
        """Test NaN, infinities, booleans and numeric strings are rejected."""
        with pytest.raises(PydanticValidationError):
            AddressBalance.model_validate({"balance": value})


# =============================================================================
# Logging Tests
# =============================================================================


class TestOperationLogger:
    """Tests for OperationLogger."""

    def test_redact_url(self):
        assert OperationLogger._redact_url("https://x.io/p?key=1") == "https://x.io/p?[REDACTED]"
        assert OperationLogger._redact_url("https://x.io/p") == "https://x.io/p"

    def test_fingerprint_is_stable(self):
        assert OperationLogger.fingerprint("abc") == OperationLogger.fingerprint("abc")
        assert len(OperationLogger.fingerprint("abc")) == 16

    def test_fingerprint_non_string(self):
        assert OperationLogger.fingerprint(123) == OperationLogger.fingerprint("123")

    def test_log_failure(self, caplog):
        """Test failures are logged with their cause."""
        caplog.set_level(logging.WARNING, logger="test.operations")
        operation_logger = OperationLogger("test.operations")

        operation_logger.log_failure("fetch interest rates", RuntimeError("boom"), "https://x.io/rates")

        record = caplog.records[-1]
        assert record.event == "operation_failure"
        assert record.operation == "fetch interest rates"
        assert record.cause == "RuntimeError: boom"
        assert "fetch interest rates" in record.getMessage()

    def test_wallet_created_hides_key(self, caplog):
        """Test wallet creation logs only a fingerprint."""
        caplog.set_level(logging.INFO, logger="test.operations")
        operation_logger = OperationLogger("test.operations")

        operation_logger.log_wallet_created("-----BEGIN PUBLIC KEY-----secret")

        record = caplog.records[-1]
        assert record.event == "wallet_created"
        assert "BEGIN" not in record.getMessage()
        assert record.address_fingerprint == OperationLogger.fingerprint(
            "-----BEGIN PUBLIC KEY-----secret"
        )
