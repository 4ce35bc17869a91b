"""
CryptoToolkit - Python SDK for Crypto Price, Payment and Explorer APIs

One client for a prices service, a payment gateway and a blockchain
explorer, plus in-memory RSA wallets for signing outgoing transfers.

Quick Start:
    from crypto_toolkit import CryptoToolkit

    async with CryptoToolkit(api_key="my-api-key") as toolkit:
        # Prices and balances
        prices = await toolkit.get_real_time_prices(["bitcoin", "ethereum"])
        total = await toolkit.get_portfolio_value(["addr1", "addr2"])

        # Create a wallet and send a signed transfer
        wallet = toolkit.create_wallet()
        receipt = await toolkit.send_crypto(wallet.address, recipient, 10)

Configuration:
    Set these environment variables or pass to constructor:
    - CRYPTO_TOOLKIT_API_KEY: Bearer credential (required)
    - CRYPTO_TOOLKIT_PRICES_URL: Prices service base URL
    - CRYPTO_TOOLKIT_PAYMENT_GATEWAY_URL: Payment gateway base URL
    - CRYPTO_TOOLKIT_EXPLORER_URL: Blockchain explorer base URL
    - CRYPTO_TOOLKIT_TIMEOUT: Request timeout in seconds
"""

from .core import (
    # Main client classes
    CryptoToolkit,
    CryptoToolkitConfig,
    HTTPInterface,
    SyncCryptoToolkit,
    # Convenience functions
    create_client,
)
from .exceptions import (
    # Configuration errors
    ConfigurationError,
    # Base
    CryptoToolkitError,
    # Network errors
    NetworkError,
    SigningError,
    SubmissionError,
    TransportError,
    UnknownWalletError,
    ValidationError,
    # Wallet errors
    WalletError,
)
from .signing import (
    TransactionSigner,
    canonicalize_transaction,
    sign_transaction,
    verify_transaction,
)
from .utils import (
    AddressBalance,
    ApiBase,
    OperationLogger,
    # Data models
    TransactionEnvelope,
    # Utilities
    validate_addresses,
    validate_amount,
)
from .wallet import Wallet, WalletStore, generate_keypair

__version__ = "0.1.0"
__all__ = [
    # Version
    "__version__",
    # Main client
    "CryptoToolkit",
    "CryptoToolkitConfig",
    "SyncCryptoToolkit",
    "create_client",
    # Interfaces
    "HTTPInterface",
    "TransactionSigner",
    # Wallets
    "Wallet",
    "WalletStore",
    "generate_keypair",
    # Signing
    "canonicalize_transaction",
    "sign_transaction",
    "verify_transaction",
    # Data models
    "TransactionEnvelope",
    "AddressBalance",
    "ApiBase",
    # Base exceptions
    "CryptoToolkitError",
    "ConfigurationError",
    "ValidationError",
    # Wallet exceptions
    "WalletError",
    "UnknownWalletError",
    "SigningError",
    # Network exceptions
    "NetworkError",
    "TransportError",
    "SubmissionError",
    # Utilities
    "OperationLogger",
    "validate_addresses",
    "validate_amount",
]
