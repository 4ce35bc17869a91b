"""
CryptoToolkit - Core Module

The main CryptoToolkit implementation providing:
- An authenticated async HTTP transport for the three upstream services
- Price, balance, payment, exchange and lending pass-through calls
- In-memory wallets and signed transaction submission
- A blocking wrapper for callers without an event loop

Usage:
    from crypto_toolkit import CryptoToolkit

    async with CryptoToolkit(api_key="...") as toolkit:
        wallet = toolkit.create_wallet()
        prices = await toolkit.get_real_time_prices(["bitcoin", "ethereum"])
        receipt = await toolkit.send_crypto(wallet.address, recipient, 1.5)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Awaitable, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigurationError, TransportError, ValidationError
from .signing import TransactionSigner, verify_transaction
from .utils import (
    AddressBalance,
    ApiBase,
    OperationLogger,
    TransactionEnvelope,
    describe_error,
    join_url,
    validate_addresses,
    validate_amount,
    validate_identifier,
)
from .wallet import Wallet, WalletStore

logger = logging.getLogger("crypto_toolkit")

T = TypeVar("T")


# =============================================================================
# CONFIGURATION
# =============================================================================


def _api_base_from_env() -> dict[str, str]:
    env = {
        "prices": os.environ.get("CRYPTO_TOOLKIT_PRICES_URL"),
        "payment_gateway": os.environ.get("CRYPTO_TOOLKIT_PAYMENT_GATEWAY_URL"),
        "blockchain_explorer": os.environ.get("CRYPTO_TOOLKIT_EXPLORER_URL"),
    }
    return {key: value for key, value in env.items() if value}


@dataclass
class CryptoToolkitConfig:
    """
    Configuration for the CryptoToolkit.

    Can be set via constructor arguments or environment variables.

    Environment Variables:
        CRYPTO_TOOLKIT_API_KEY: Bearer credential sent on every request
        CRYPTO_TOOLKIT_PRICES_URL: Prices service base URL
        CRYPTO_TOOLKIT_PAYMENT_GATEWAY_URL: Payment gateway base URL
        CRYPTO_TOOLKIT_EXPLORER_URL: Blockchain explorer base URL
        CRYPTO_TOOLKIT_TIMEOUT: Request timeout in seconds
    """

    api_key: str = field(
        default_factory=lambda: os.environ.get("CRYPTO_TOOLKIT_API_KEY", "")
    )

    # Explicit entries override the environment, which overrides the defaults
    api_base: ApiBase | Mapping[str, Any] = field(default_factory=dict)

    timeout: float = field(
        default_factory=lambda: float(os.environ.get("CRYPTO_TOOLKIT_TIMEOUT", "30.0"))
    )

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not isinstance(self.api_key, str) or not self.api_key:
            raise ConfigurationError("An API key is required.", config_key="api_key")

        try:
            if isinstance(self.api_base, ApiBase):
                overrides = self.api_base.model_dump(exclude_unset=True)
            else:
                overrides = ApiBase.model_validate(dict(self.api_base)).model_dump(
                    exclude_unset=True
                )
            self.api_base = ApiBase.model_validate({**_api_base_from_env(), **overrides})
        except PydanticValidationError as e:
            raise ConfigurationError(
                "Invalid API base URL.",
                config_key="api_base",
                details={"cause": describe_error(e)},
            ) from e

        if self.timeout <= 0:
            raise ConfigurationError("Timeout must be positive.", config_key="timeout")


# =============================================================================
# HTTP INTERFACE
# =============================================================================


class HTTPInterface:
    """
    Authenticated JSON transport for the upstream services.

    Every request is issued once. Connection failures, non-2xx statuses
    and undecodable bodies all raise TransportError naming the
    high-level operation; the cause is chained and logged.
    """

    def __init__(self, client: CryptoToolkit) -> None:
        """
        Initialize the HTTP interface.

        Args:
            client: Parent CryptoToolkit instance.
        """
        self._client = client

    async def get(
        self,
        url: str,
        *,
        operation: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make a GET request and decode its JSON body.

        Args:
            url: Target URL.
            operation: Operation name used in errors and logs.
            params: Optional query parameters.

        Returns:
            The decoded response body.

        Raises:
            TransportError: If the request fails.
        """
        return await self._request("GET", url, operation=operation, params=params)

    async def post(
        self,
        url: str,
        *,
        operation: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make a POST request with a JSON body and decode the response.

        Raises:
            TransportError: If the request fails.
        """
        return await self._request("POST", url, operation=operation, json=json)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        **kwargs: Any,
    ) -> Any:
        http_client = self._client._http_client
        if http_client is None:
            raise ConfigurationError("Client not connected. Call connect() first.")

        operation_logger = self._client._operation_logger
        operation_logger.log_request(operation, method, url)

        try:
            response = await http_client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            operation_logger.log_failure(operation, e, url)
            raise TransportError(operation, details={"cause": describe_error(e)}) from e

        if not 200 <= response.status_code < 300:
            cause = f"HTTP {response.status_code}"
            operation_logger.log_failure(operation, cause, url)
            raise TransportError(
                operation,
                status_code=response.status_code,
                details={"cause": cause},
            )

        try:
            return response.json()
        except ValueError as e:
            operation_logger.log_failure(operation, e, url)
            raise TransportError(
                operation,
                status_code=response.status_code,
                details={"cause": describe_error(e)},
            ) from e


# =============================================================================
# MAIN CLIENT
# =============================================================================


class CryptoToolkit:
    """
    One façade over the prices service, payment gateway and explorer.

    This client provides:
    - Pass-through calls with local argument validation
    - In-memory wallets and transaction signing
    - Structured logging through an injectable OperationLogger

    Usage:
        # Async context manager (recommended)
        async with CryptoToolkit(api_key="...") as toolkit:
            value = await toolkit.get_portfolio_value(["addr1", "addr2"])

        # Manual lifecycle
        toolkit = CryptoToolkit(api_key="...")
        await toolkit.connect()
        try:
            # ... use toolkit ...
        finally:
            await toolkit.close()
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        api_base: ApiBase | Mapping[str, Any] | None = None,
        timeout: float | None = None,
        wallet_store: WalletStore | None = None,
        operation_logger: OperationLogger | None = None,
    ) -> None:
        """
        Initialize the toolkit.

        Args:
            api_key: Bearer credential (or use CRYPTO_TOOLKIT_API_KEY).
            api_base: Base URL overrides keyed ``prices``, ``paymentGateway``
                and ``blockchainExplorer``. Unknown keys are ignored.
            timeout: Request timeout in seconds.
            wallet_store: Wallets to sign with (default: a new, empty store).
            operation_logger: Structured logger for operation events.

        Raises:
            ConfigurationError: If the API key is missing or a URL is invalid.
        """
        overrides = {"api_key": api_key, "api_base": api_base, "timeout": timeout}
        self._config = CryptoToolkitConfig(
            **{key: value for key, value in overrides.items() if value is not None}
        )

        # Internal state
        self._http_client: httpx.AsyncClient | None = None
        self._operation_logger = operation_logger or OperationLogger()

        # Public interfaces
        self.http = HTTPInterface(self)
        self.wallets = (
            wallet_store if wallet_store is not None else WalletStore(self._operation_logger)
        )
        self.signer = TransactionSigner(
            self.wallets,
            self.http,
            self.api_base.blockchain_explorer,
            self._operation_logger,
        )

    @property
    def api_base(self) -> ApiBase:
        return self._config.api_base  # type: ignore[return-value]

    async def __aenter__(self) -> CryptoToolkit:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def connect(self) -> None:
        """Create the authenticated HTTP client."""
        if self._http_client is not None:
            return

        timeout = httpx.Timeout(
            timeout=self._config.timeout,
            connect=5.0,
            read=self._config.timeout,
            write=self._config.timeout,
            pool=5.0,
        )

        self._http_client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {self._config.api_key}"},
            timeout=timeout,
        )
        logger.info(
            f"CryptoToolkit connected (prices={self.api_base.prices}, "
            f"gateway={self.api_base.payment_gateway}, "
            f"explorer={self.api_base.blockchain_explorer})"
        )

    async def close(self) -> None:
        """Close the HTTP client and release its connections."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    # =========================================================================
    # PORTFOLIO
    # =========================================================================

    async def get_real_time_prices(self, cryptos: Sequence[str]) -> Any:
        """
        Get current prices for a list of crypto identifiers.

        Args:
            cryptos: Identifiers such as ``["bitcoin", "ethereum"]``.

        Raises:
            ValidationError: If the list is empty or holds a bad identifier.
            TransportError: If the prices service call fails.
        """
        if isinstance(cryptos, str) or not cryptos:
            raise ValidationError("Invalid crypto list", field="cryptos", value=cryptos)
        for crypto in cryptos:
            validate_identifier(crypto, "crypto")

        return await self.http.get(
            join_url(self.api_base.prices, "prices"),
            operation="fetch real-time prices",
            params={"cryptos": ",".join(cryptos)},
        )

    async def get_address_balance(self, address: str) -> Any:
        """Get the explorer's balance record for an address."""
        validate_addresses(address)
        return await self._fetch_address_balance(address, "fetch address balance")

    async def get_portfolio_value(self, wallet_addresses: Sequence[str]) -> float:
        """
        Sum the balances of several addresses.

        Lookups run concurrently. If any of them fails the whole call
        fails; partial sums are never returned.

        Raises:
            ValidationError: If any address is malformed.
            TransportError: If any lookup fails or returns no balance.
        """
        if isinstance(wallet_addresses, str):
            raise ValidationError(
                "Expected a sequence of addresses",
                field="wallet_addresses",
                value=wallet_addresses,
            )
        validate_addresses(*wallet_addresses)

        results = await asyncio.gather(
            *(self._fetch_portfolio_balance(address) for address in wallet_addresses),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, TransportError):
                self._operation_logger.log_failure("fetch portfolio value", result)
                raise TransportError(
                    "fetch portfolio value",
                    status_code=result.status_code,
                    details={"cause": result.message},
                ) from result
            if isinstance(result, BaseException):
                raise result

        return sum(result.balance for result in results)  # type: ignore[union-attr]

    # =========================================================================
    # WALLETS
    # =========================================================================

    def create_wallet(self) -> Wallet:
        """Generate a keypair wallet held in memory for this process."""
        return self.wallets.create()

    def sign_transaction(
        self, from_address: str, to_address: str, amount: float
    ) -> TransactionEnvelope:
        """
        Sign a transfer without sending it.

        Raises:
            ValidationError: If an address is empty or not a string.
            UnknownWalletError: If ``from_address`` has no local wallet.
        """
        validate_addresses(from_address, to_address)
        return self.signer.sign(from_address, to_address, amount)

    @staticmethod
    def verify_transaction(envelope: TransactionEnvelope, public_key: str) -> bool:
        """Check an envelope's signature against a PEM public key."""
        return verify_transaction(envelope, public_key)

    async def send_crypto(self, from_address: str, to_address: str, amount: float) -> Any:
        """
        Sign a transfer with a local wallet and submit it to the explorer.

        Nothing is sent if validation or signing fails.

        Raises:
            ValidationError: If an address or the amount is malformed.
            UnknownWalletError: If ``from_address`` has no local wallet.
            SubmissionError: If the submission fails.
        """
        return await self.signer.send_crypto(from_address, to_address, amount)

    # =========================================================================
    # PAYMENT GATEWAY
    # =========================================================================

    async def process_payment(self, from_address: str, to_address: str, amount: float) -> Any:
        """Forward a payment to the payment gateway."""
        validate_addresses(from_address, to_address)
        validate_amount(amount)

        return await self.http.post(
            join_url(self.api_base.payment_gateway, "process"),
            operation="process payment",
            json={"fromAddress": from_address, "toAddress": to_address, "amount": amount},
        )

    async def convert_to_fiat(self, crypto: str, amount: float) -> Any:
        """Convert an amount of ``crypto`` to fiat via the prices service."""
        validate_identifier(crypto, "crypto")
        validate_amount(amount)

        return await self.http.get(
            join_url(self.api_base.prices, "convert"),
            operation="convert to fiat",
            params={"crypto": crypto, "amount": amount},
        )

    # =========================================================================
    # DECENTRALIZED EXCHANGE
    # =========================================================================

    async def swap(self, from_token: str, to_token: str, amount: float) -> Any:
        """Swap ``amount`` of ``from_token`` for ``to_token``."""
        validate_identifier(from_token, "from_token")
        validate_identifier(to_token, "to_token")
        validate_amount(amount)

        return await self.http.post(
            join_url(self.api_base.blockchain_explorer, "swap"),
            operation="swap tokens",
            json={"fromToken": from_token, "toToken": to_token, "amount": amount},
        )

    async def add_liquidity(self, token: str, amount: float) -> Any:
        validate_identifier(token, "token")
        validate_amount(amount)

        return await self.http.post(
            join_url(self.api_base.blockchain_explorer, "liquidity", "add"),
            operation="add liquidity",
            json={"token": token, "amount": amount},
        )

    async def remove_liquidity(self, token: str, amount: float) -> Any:
        validate_identifier(token, "token")
        validate_amount(amount)

        return await self.http.post(
            join_url(self.api_base.blockchain_explorer, "liquidity", "remove"),
            operation="remove liquidity",
            json={"token": token, "amount": amount},
        )

    # =========================================================================
    # LENDING & BORROWING
    # =========================================================================

    async def lend(self, crypto: str, amount: float) -> Any:
        validate_identifier(crypto, "crypto")
        validate_amount(amount)

        return await self.http.post(
            join_url(self.api_base.blockchain_explorer, "lend"),
            operation="lend crypto",
            json={"crypto": crypto, "amount": amount},
        )

    async def borrow(self, crypto: str, amount: float, collateral: Any) -> Any:
        """
        Borrow ``amount`` of ``crypto``.

        ``collateral`` is forwarded as given; its shape is defined by the
        explorer.
        """
        validate_identifier(crypto, "crypto")
        validate_amount(amount)

        return await self.http.post(
            join_url(self.api_base.blockchain_explorer, "borrow"),
            operation="borrow crypto",
            json={"crypto": crypto, "amount": amount, "collateral": collateral},
        )

    async def get_rates(self) -> Any:
        """Get current lending and borrowing interest rates."""
        return await self.http.get(
            join_url(self.api_base.blockchain_explorer, "rates"),
            operation="fetch interest rates",
        )

    # =========================================================================
    # BLOCKCHAIN EXPLORER
    # =========================================================================

    async def get_transaction_details(self, tx_hash: str) -> Any:
        validate_identifier(tx_hash, "tx_hash")

        return await self.http.get(
            join_url(self.api_base.blockchain_explorer, "transaction", tx_hash),
            operation="fetch transaction details",
        )

    # =========================================================================
    # INTERNAL METHODS
    # =========================================================================

    async def _fetch_address_balance(self, address: str, operation: str) -> Any:
        return await self.http.get(
            join_url(self.api_base.blockchain_explorer, "address", address, "balance"),
            operation=operation,
        )

    async def _fetch_portfolio_balance(self, address: str) -> AddressBalance:
        """Fetch one balance and require a numeric ``balance`` field."""
        data = await self._fetch_address_balance(address, "fetch address balance")
        try:
            return AddressBalance.model_validate(data)
        except PydanticValidationError as e:
            raise TransportError(
                "fetch address balance",
                details={"cause": describe_error(e)},
            ) from e


# =============================================================================
# SYNCHRONOUS WRAPPER
# =============================================================================


class SyncCryptoToolkit:
    """
    Synchronous wrapper around CryptoToolkit.

    For callers that don't use async/await, this provides
    a blocking interface to the same operations.

    Usage:
        with SyncCryptoToolkit(api_key="...") as toolkit:
            wallet = toolkit.create_wallet()
            rates = toolkit.get_rates()
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Initialize the sync client (same args as CryptoToolkit)."""
        self._async_client = CryptoToolkit(*args, **kwargs)
        self._loop: asyncio.AbstractEventLoop | None = None

    def __enter__(self) -> SyncCryptoToolkit:
        """Sync context manager entry."""
        self._loop = asyncio.new_event_loop()
        self._loop.run_until_complete(self._async_client.connect())
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Sync context manager exit."""
        if self._loop:
            self._loop.run_until_complete(self._async_client.close())
            self._loop.close()
            self._loop = None

    def _run(self, coro: Awaitable[T]) -> T:
        """Run a coroutine synchronously."""
        if not self._loop:
            if asyncio.iscoroutine(coro):
                coro.close()
            raise ConfigurationError("Client not connected. Use with statement.")
        return self._loop.run_until_complete(coro)

    @property
    def wallets(self) -> WalletStore:
        return self._async_client.wallets

    def create_wallet(self) -> Wallet:
        return self._async_client.create_wallet()

    def sign_transaction(
        self, from_address: str, to_address: str, amount: float
    ) -> TransactionEnvelope:
        return self._async_client.sign_transaction(from_address, to_address, amount)

    def verify_transaction(self, envelope: TransactionEnvelope, public_key: str) -> bool:
        return self._async_client.verify_transaction(envelope, public_key)

    def send_crypto(self, from_address: str, to_address: str, amount: float) -> Any:
        """Sign and submit a transfer (blocking)."""
        return self._run(self._async_client.send_crypto(from_address, to_address, amount))

    def get_real_time_prices(self, cryptos: Sequence[str]) -> Any:
        return self._run(self._async_client.get_real_time_prices(cryptos))

    def get_address_balance(self, address: str) -> Any:
        return self._run(self._async_client.get_address_balance(address))

    def get_portfolio_value(self, wallet_addresses: Sequence[str]) -> float:
        """Sum address balances (blocking)."""
        return self._run(self._async_client.get_portfolio_value(wallet_addresses))

    def process_payment(self, from_address: str, to_address: str, amount: float) -> Any:
        return self._run(self._async_client.process_payment(from_address, to_address, amount))

    def convert_to_fiat(self, crypto: str, amount: float) -> Any:
        return self._run(self._async_client.convert_to_fiat(crypto, amount))

    def swap(self, from_token: str, to_token: str, amount: float) -> Any:
        return self._run(self._async_client.swap(from_token, to_token, amount))

    def add_liquidity(self, token: str, amount: float) -> Any:
        return self._run(self._async_client.add_liquidity(token, amount))

    def remove_liquidity(self, token: str, amount: float) -> Any:
        return self._run(self._async_client.remove_liquidity(token, amount))

    def lend(self, crypto: str, amount: float) -> Any:
        return self._run(self._async_client.lend(crypto, amount))

    def borrow(self, crypto: str, amount: float, collateral: Any) -> Any:
        return self._run(self._async_client.borrow(crypto, amount, collateral))

    def get_rates(self) -> Any:
        return self._run(self._async_client.get_rates())

    def get_transaction_details(self, tx_hash: str) -> Any:
        return self._run(self._async_client.get_transaction_details(tx_hash))


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


@asynccontextmanager
async def create_client(
    api_key: str | None = None,
    **kwargs: Any,
) -> AsyncIterator[CryptoToolkit]:
    """
    Convenience function to create a connected CryptoToolkit.

    Args:
        api_key: Bearer credential.
        **kwargs: Additional CryptoToolkit arguments.

    Yields:
        Connected CryptoToolkit.

    Usage:
        async with create_client("my-api-key") as toolkit:
            rates = await toolkit.get_rates()
    """
    client = CryptoToolkit(api_key, **kwargs)
    try:
        await client.connect()
        yield client
    finally:
        await client.close()
