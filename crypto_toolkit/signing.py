"""
CryptoToolkit - Transaction Signing

Builds the canonical transaction payload, signs it with the sender's
local wallet, and submits the resulting envelope to the explorer.

Pipeline for ``send_crypto``:
    validate -> canonicalize -> sign -> submit

Each stage short-circuits on failure, so nothing reaches the network
unless a signature was produced.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .exceptions import SigningError, SubmissionError, TransportError, UnknownWalletError, WalletError
from .utils import (
    OperationLogger,
    TransactionEnvelope,
    describe_error,
    join_url,
    validate_addresses,
    validate_amount,
)
from .wallet import WalletStore

if TYPE_CHECKING:
    from .core import HTTPInterface


def canonicalize_transaction(from_address: str, to_address: str, amount: float) -> str:
    """
    Serialize a transfer into its canonical JSON payload.

    Field order is fixed (from, to, amount), separators are compact and
    integral floats are written as integers, so ``10`` and ``10.0``
    produce the same bytes.
    """
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)

    return json.dumps(
        {"from": from_address, "to": to_address, "amount": amount},
        separators=(",", ":"),
        ensure_ascii=False,
    )


def sign_transaction(
    store: WalletStore,
    from_address: str,
    to_address: str,
    amount: float,
) -> TransactionEnvelope:
    """
    Sign a transfer with the sender's local wallet.

    Args:
        store: Wallet store holding the sender's private key.
        from_address: Sender address (a wallet public key).
        to_address: Recipient address.
        amount: Amount to transfer.

    Returns:
        The signed TransactionEnvelope.

    Raises:
        UnknownWalletError: If no wallet in ``store`` owns ``from_address``.
        SigningError: If the wallet's private key cannot be used.
    """
    payload = canonicalize_transaction(from_address, to_address, amount)

    wallet = store.find_by_address(from_address)
    if wallet is None:
        raise UnknownWalletError(from_address)

    try:
        key = serialization.load_pem_private_key(
            wallet.private_key.encode("ascii"), password=None
        )
        if not isinstance(key, rsa.RSAPrivateKey):
            raise TypeError(f"Unsupported key type: {type(key).__name__}")

        signature = key.sign(payload.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SigningError(
            from_address,
            details={"cause": describe_error(e)},
        ) from e

    return TransactionEnvelope(payload=payload, signature=signature.hex())


def verify_transaction(envelope: TransactionEnvelope, public_key: str) -> bool:
    """
    Check an envelope's signature against a PEM public key.

    Returns:
        True if the signature is valid for the payload, False otherwise,
        including when the key or signature is malformed.
    """
    try:
        key = serialization.load_pem_public_key(public_key.encode("ascii"))
        signature = bytes.fromhex(envelope.signature)
    except (ValueError, UnsupportedAlgorithm):
        return False

    if not isinstance(key, rsa.RSAPublicKey):
        return False

    try:
        key.verify(signature, envelope.payload.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
    except InvalidSignature:
        return False

    return True


class TransactionSigner:
    """
    Signs transfers from a wallet store and submits them to the explorer.

    The store is owned by the signer; several signers (and stores) can
    coexist in one process.
    """

    def __init__(
        self,
        store: WalletStore,
        http: HTTPInterface,
        explorer_url: str,
        operation_logger: OperationLogger | None = None,
    ) -> None:
        """
        Initialize the signer.

        Args:
            store: Wallets available for signing.
            http: Transport used for submission.
            explorer_url: Base URL of the blockchain explorer.
            operation_logger: Structured logger for signing events.
        """
        self._store = store
        self._http = http
        self._explorer_url = explorer_url
        self._operation_logger = operation_logger or OperationLogger()

    @property
    def store(self) -> WalletStore:
        return self._store

    def sign(self, from_address: str, to_address: str, amount: float) -> TransactionEnvelope:
        """Sign a transfer with a wallet from the owned store."""
        envelope = sign_transaction(self._store, from_address, to_address, amount)
        self._operation_logger.log_transaction_signed(from_address, to_address, amount)
        return envelope

    async def submit(self, envelope: TransactionEnvelope) -> Any:
        """
        POST a signed envelope to the explorer's submission endpoint.

        Returns:
            The explorer's decoded response.

        Raises:
            SubmissionError: If the submission request fails.
        """
        try:
            return await self._http.post(
                join_url(self._explorer_url, "transaction", "send"),
                operation="send transaction",
                json=envelope.model_dump(by_alias=True),
            )
        except TransportError as e:
            raise SubmissionError(status_code=e.status_code, details=dict(e.details)) from e

    async def send_crypto(self, from_address: str, to_address: str, amount: float) -> Any:
        """
        Validate, sign and submit a transfer.

        Raises:
            ValidationError: If an address or the amount is malformed.
            UnknownWalletError: If ``from_address`` has no local wallet.
            SigningError: If the wallet's key cannot sign.
            SubmissionError: If the explorer rejects or never receives it.
        """
        validate_addresses(from_address, to_address)
        validate_amount(amount)

        try:
            envelope = self.sign(from_address, to_address, amount)
        except WalletError as e:
            self._operation_logger.log_failure("send crypto", e)
            raise

        try:
            return await self.submit(envelope)
        except SubmissionError as e:
            raise SubmissionError(
                "send crypto",
                status_code=e.status_code,
                details={"cause": e.message},
            ) from e
