"""
CryptoToolkit - Wallets

In-memory RSA keypair wallets. A wallet's PEM public key doubles as its
address; the private key never leaves the process.
"""

from __future__ import annotations

from collections.abc import Iterator

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import WalletError
from .utils import OperationLogger

KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537


class Wallet(BaseModel):
    """A keypair. The public key is the wallet's address."""

    public_key: str = Field(description="SubjectPublicKeyInfo PEM")
    private_key: str = Field(repr=False, description="PKCS#8 PEM")

    model_config = ConfigDict(frozen=True)

    @property
    def address(self) -> str:
        return self.public_key


def generate_keypair() -> Wallet:
    """
    Generate a fresh 2048-bit RSA keypair.

    Returns:
        An unstored Wallet with both halves PEM-encoded.
    """
    key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=KEY_SIZE)

    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    return Wallet(public_key=public_pem.decode("ascii"), private_key=private_pem.decode("ascii"))


class WalletStore:
    """
    Wallets created during the lifetime of this process.

    Wallets are indexed by public key and kept in creation order.
    The store is only ever appended to, by ``create()``.
    """

    def __init__(self, operation_logger: OperationLogger | None = None) -> None:
        self._wallets: dict[str, Wallet] = {}
        self._operation_logger = operation_logger or OperationLogger()

    def create(self) -> Wallet:
        """
        Generate a keypair and add it to the store.

        Returns:
            The new wallet.
        """
        wallet = generate_keypair()
        if wallet.public_key in self._wallets:
            raise WalletError("Generated a public key that already exists in the store.")

        self._wallets[wallet.public_key] = wallet
        self._operation_logger.log_wallet_created(wallet.public_key)
        return wallet

    def find_by_address(self, address: str) -> Wallet | None:
        """Return the wallet whose public key is ``address``, or None."""
        if not isinstance(address, str):
            return None
        return self._wallets.get(address)

    def __len__(self) -> int:
        return len(self._wallets)

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and address in self._wallets

    def __iter__(self) -> Iterator[Wallet]:
        return iter(self._wallets.values())
