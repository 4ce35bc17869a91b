"""
CryptoToolkit - Exception Classes

Typed exceptions for every failure the toolkit can surface, so callers
can branch on the kind of failure instead of matching message strings.

Every exception carries a human-readable ``message`` naming the failed
operation and a structured ``details`` dict. The low-level cause, when
there is one, is chained as ``__cause__`` and summarized under
``details["cause"]``.
"""

from typing import Any


class CryptoToolkitError(Exception):
    """Base exception for all CryptoToolkit errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Optional structured details for debugging.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details})"


# =============================================================================
# CONFIGURATION & VALIDATION ERRORS
# =============================================================================


class ConfigurationError(CryptoToolkitError):
    """
    Raised when the client is misconfigured or used before connect().

    Check environment variables and initialization parameters.
    """

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize with configuration context.

        Args:
            message: Description of the configuration issue.
            config_key: The problematic configuration key.
            details: Optional additional details.
        """
        self.config_key = config_key
        full_details = details or {}
        if config_key:
            full_details["config_key"] = config_key
        super().__init__(message, full_details)


class ValidationError(CryptoToolkitError):
    """
    Raised when an argument is rejected before any network call.

    Covers empty or non-string addresses and identifiers, and amounts
    that are not positive finite numbers.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.field = field
        self.value = value
        full_details = details or {}
        if field:
            full_details["field"] = field
        full_details["value"] = repr(value)
        super().__init__(message, full_details)


# =============================================================================
# WALLET & SIGNING ERRORS
# =============================================================================


class WalletError(CryptoToolkitError):
    """Base class for wallet-related errors."""

    pass


class UnknownWalletError(WalletError):
    """
    Raised when signing is requested for an address with no local wallet.

    No other key is tried and nothing is sent to the network.
    """

    def __init__(
        self,
        address: str,
        message: str = "No local wallet matches the sender address.",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.address = address
        full_details = details or {}
        full_details["address"] = address
        super().__init__(message, full_details)


class SigningError(WalletError):
    """Raised when a wallet's key material cannot produce a signature."""

    def __init__(
        self,
        address: str,
        message: str = "Failed to sign transaction.",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.address = address
        full_details = details or {}
        full_details["address"] = address
        super().__init__(message, full_details)


# =============================================================================
# NETWORK ERRORS
# =============================================================================


class NetworkError(CryptoToolkitError):
    """Base class for network-related errors."""

    pass


class TransportError(NetworkError):
    """
    Raised when an upstream call fails.

    Possible causes:
    - Connection or timeout failure
    - Non-2xx response status
    - Response body that cannot be decoded
    """

    def __init__(
        self,
        operation: str,
        message: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize with the failed operation.

        Args:
            operation: The high-level operation that failed (e.g. "fetch rates").
            message: Optional custom message.
            status_code: HTTP status of the upstream response, if any.
            details: Optional additional details.
        """
        self.operation = operation
        self.status_code = status_code
        full_details = details or {}
        full_details["operation"] = operation
        if status_code is not None:
            full_details["status_code"] = status_code
        super().__init__(message or f"Failed to {operation}", full_details)


class SubmissionError(TransportError):
    """Raised when a signed transaction envelope cannot be submitted."""

    def __init__(
        self,
        operation: str = "send transaction",
        message: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(operation, message, status_code, details)
