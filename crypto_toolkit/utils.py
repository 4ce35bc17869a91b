"""
CryptoToolkit - Utility Functions

Helper functions for:
- Response and envelope data models
- Argument validation
- URL construction
- Logging utilities
"""

import hashlib
import json
import logging
import math
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .exceptions import ValidationError

logger = logging.getLogger("crypto_toolkit")

DEFAULT_PRICES_URL = "https://api.cryptocurrencyprices.com"
DEFAULT_PAYMENT_GATEWAY_URL = "https://api.paymentgateway.com"
DEFAULT_BLOCKCHAIN_EXPLORER_URL = "https://api.blockchainexplorer.com"


# =============================================================================
# DATA MODELS
# =============================================================================


class ApiBase(BaseModel):
    """
    Base URLs of the three upstream services.

    Accepts the camelCase keys used by existing configs
    (``paymentGateway``, ``blockchainExplorer``) as well as snake_case.
    Unknown keys are ignored; missing or empty ones fall back to defaults.
    """

    prices: str = Field(default=DEFAULT_PRICES_URL, description="Prices service URL")
    payment_gateway: str = Field(
        default=DEFAULT_PAYMENT_GATEWAY_URL,
        alias="paymentGateway",
        description="Payment gateway URL",
    )
    blockchain_explorer: str = Field(
        default=DEFAULT_BLOCKCHAIN_EXPLORER_URL,
        alias="blockchainExplorer",
        description="Blockchain explorer URL",
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_empty(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value}
        return data

    @field_validator("prices", "payment_gateway", "blockchain_explorer")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return validate_base_url(value)


class TransactionEnvelope(BaseModel):
    """
    A signed, submission-ready transaction.

    The payload travels under the ``transaction`` key on the wire.
    """

    payload: str = Field(alias="transaction", description="Canonical JSON payload")
    signature: str = Field(description="Hex-encoded SHA-256/RSA signature")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def decode(self) -> dict[str, Any]:
        """Parse the payload back into ``{"from", "to", "amount"}``."""
        return json.loads(self.payload)  # type: ignore[no-any-return]


class AddressBalance(BaseModel):
    """Explorer balance response for a single address."""

    balance: float = Field(strict=True, allow_inf_nan=False, description="Address balance")

    model_config = ConfigDict(extra="allow")


# =============================================================================
# VALIDATION UTILITIES
# =============================================================================


def validate_amount(amount: Any, field: str = "amount") -> float:
    """
    Validate a transfer amount.

    Args:
        amount: Amount to validate.
        field: Argument name reported on failure.

    Returns:
        The amount, unchanged.

    Raises:
        ValidationError: If amount is not a positive finite number.
    """
    # bool is an int subclass but never an amount
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError("Invalid amount", field=field, value=amount)

    if isinstance(amount, float) and not math.isfinite(amount):
        raise ValidationError("Invalid amount", field=field, value=amount)

    if amount <= 0:
        raise ValidationError("Invalid amount", field=field, value=amount)

    return amount


def validate_identifier(value: Any, field: str) -> str:
    """
    Validate a string identifier (address, token, crypto id, tx hash).

    Raises:
        ValidationError: If value is not a non-empty string.
    """
    if not isinstance(value, str) or not value:
        raise ValidationError(f"Invalid {field}", field=field, value=value)
    return value


def validate_addresses(*addresses: Any) -> None:
    """
    Validate one or more wallet addresses.

    Raises:
        ValidationError: On the first address that is empty or not a string.
    """
    for address in addresses:
        validate_identifier(address, "address")


def validate_base_url(url: str) -> str:
    """
    Validate and normalize a service base URL.

    Args:
        url: The URL to validate.

    Returns:
        Normalized URL.

    Raises:
        ValueError: If URL is invalid.
    """
    if not url:
        raise ValueError("Base URL cannot be empty")

    # Remove trailing slash
    url = url.rstrip("/")

    # Validate scheme
    if not url.startswith(("http://", "https://")):
        raise ValueError(f"Invalid URL scheme: {url}")

    return url


def join_url(base: str, *segments: str) -> str:
    """
    Append path segments to a base URL, percent-encoding each one.

    PEM-encoded addresses contain ``/`` and newlines, so every segment
    is quoted in full to keep it a single path component.
    """
    return "/".join([base, *(quote(segment, safe="") for segment in segments)])


def describe_error(error: BaseException) -> str:
    """One-line ``Type: message`` summary of an exception."""
    return f"{type(error).__name__}: {error}"


# =============================================================================
# LOGGING UTILITIES
# =============================================================================


class OperationLogger:
    """
    Structured logger for toolkit operations.

    Logs requests, failures, wallet creation and signing in a format
    suitable for auditing while redacting sensitive data. Pass a custom
    instance to ``CryptoToolkit`` to route these events elsewhere.
    """

    def __init__(self, logger_name: str = "crypto_toolkit.operations") -> None:
        """
        Initialize the operation logger.

        Args:
            logger_name: Name for the logger instance.
        """
        self.logger = logging.getLogger(logger_name)

    def log_request(self, operation: str, method: str, url: str) -> None:
        """Log an outbound request."""
        self.logger.debug(
            "Request dispatched",
            extra={
                "event": "request",
                "operation": operation,
                "method": method,
                "url": self._redact_url(url),
            },
        )

    def log_failure(
        self,
        operation: str,
        cause: BaseException | str,
        url: str | None = None,
    ) -> None:
        """Log a failed operation together with its low-level cause."""
        if isinstance(cause, BaseException):
            cause = describe_error(cause)

        self.logger.warning(
            f"Error during {operation}: {cause}",
            extra={
                "event": "operation_failure",
                "operation": operation,
                "url": self._redact_url(url) if url else None,
                "cause": cause,
            },
        )

    def log_wallet_created(self, public_key: str) -> None:
        """Log creation of a wallet. Only a key fingerprint is recorded."""
        self.logger.info(
            "Wallet created",
            extra={
                "event": "wallet_created",
                "address_fingerprint": self.fingerprint(public_key),
            },
        )

    def log_transaction_signed(
        self,
        from_address: str,
        to_address: str,
        amount: float,
    ) -> None:
        """Log a signed transaction."""
        self.logger.info(
            "Transaction signed",
            extra={
                "event": "transaction_signed",
                "from_fingerprint": self.fingerprint(from_address),
                "to_fingerprint": self.fingerprint(to_address),
                "amount": amount,
            },
        )

    @staticmethod
    def fingerprint(address: Any) -> str:
        """Short, stable identifier for an address."""
        return hashlib.sha256(str(address).encode("utf-8")).hexdigest()[:16]

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of URLs for logging."""
        # Remove query parameters that might contain secrets
        if "?" in url:
            base, _ = url.split("?", 1)
            return f"{base}?[REDACTED]"
        return url
