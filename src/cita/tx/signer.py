"""
Transaction Signer - handles transaction signing.

Holds a secp256k1 private key and signs transaction digests with it.
"""

import secrets
from pathlib import Path
from typing import Optional, Union

import structlog
from eth_keys import keys
from eth_utils import ValidationError

from cita.config import ClientConfig, HashAlgorithm, get_config
from cita.errors import MalformedInput
from cita.tx.transaction import SignedTransaction, UnsignedTransaction

logger = structlog.get_logger(__name__)


PRIVATE_KEY_SIZE = 32


def remove_0x(value: str) -> str:
    """Strip a leading 0x/0X prefix."""
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def parse_private_key(value: Union[str, bytes]) -> keys.PrivateKey:
    """
    Parse a 32-byte secp256k1 private key.

    Args:
        value: Raw key bytes, or hex with an optional 0x prefix

    Raises:
        MalformedInput: If the key is not valid hex or not a valid key
    """
    if isinstance(value, str):
        try:
            value = bytes.fromhex(remove_0x(value.strip()))
        except ValueError:
            raise MalformedInput("private key", "not valid hex") from None
    if len(value) != PRIVATE_KEY_SIZE:
        raise MalformedInput("private key", f"expected {PRIVATE_KEY_SIZE} bytes, got {len(value)}")
    try:
        return keys.PrivateKey(value)
    except ValidationError:
        raise MalformedInput("private key", "outside the secp256k1 key range") from None


class TransactionSigner:
    """
    Handles transaction signing with a secp256k1 key.

    Supports loading keys from:
    - Hex string (with or without 0x prefix)
    - File containing the hex key
    - Configuration (CITA_PRIVATE_KEY)

    Signatures are deterministic (RFC 6979): the same transaction and key
    always produce the same signature bytes.
    """

    def __init__(
        self,
        private_key: Optional[Union[str, bytes]] = None,
        config: Optional[ClientConfig] = None,
    ):
        """
        Initialize the transaction signer.

        Args:
            private_key: Key to load immediately (optional)
            config: Client configuration
        """
        self.config = config or get_config()
        self._private_key: Optional[keys.PrivateKey] = None
        if private_key is not None:
            self.load_key(private_key)

    def load_key(self, private_key: Union[str, bytes]) -> None:
        """Load a key from raw bytes or hex."""
        self._private_key = parse_private_key(private_key)
        logger.debug("signing_key_loaded", address=self.address)

    def load_key_from_file(self, key_path: str) -> None:
        """
        Load a hex-encoded key from a file.

        Args:
            key_path: Path to the key file
        """
        path = Path(key_path)
        if not path.exists():
            raise FileNotFoundError(f"Signing key file not found: {key_path}")
        self.load_key(path.read_text(encoding="utf-8").strip())

    def load_from_config(self) -> None:
        """Load signing key from configuration."""
        if not self.config.private_key:
            raise ValueError("No signing key configured")
        self.load_key(self.config.private_key)

    @property
    def is_loaded(self) -> bool:
        """Check if a signing key is loaded."""
        return self._private_key is not None

    @property
    def public_key(self) -> Optional[bytes]:
        """Uncompressed public key (64 bytes, no prefix)."""
        if self._private_key is None:
            return None
        return self._private_key.public_key.to_bytes()

    @property
    def address(self) -> Optional[str]:
        """0x-prefixed account address derived from the public key."""
        if self._private_key is None:
            return None
        return self._private_key.public_key.to_address()

    def export_key(self) -> str:
        """Return the key as 0x-prefixed hex, for writing to a key file."""
        if self._private_key is None:
            raise RuntimeError("No signing key loaded")
        return self._private_key.to_hex()

    def sign_hash(self, message_hash: bytes) -> bytes:
        """
        Sign a 32-byte digest.

        Returns:
            65-byte recoverable signature ``r || s || v``
        """
        if self._private_key is None:
            raise RuntimeError("No signing key loaded")
        return self._private_key.sign_msg_hash(message_hash).to_bytes()

    def sign_transaction(
        self,
        tx: UnsignedTransaction,
        algorithm: Optional[HashAlgorithm] = None,
    ) -> SignedTransaction:
        """
        Sign a transaction.

        Args:
            tx: The transaction to sign
            algorithm: Digest to sign over. Defaults to the configured one.

        Returns:
            Signed transaction
        """
        if self._private_key is None:
            raise RuntimeError("No signing key loaded")

        tx_hash = tx.hash(algorithm or self.config.hash_algorithm)
        signed_tx = SignedTransaction(transaction=tx, signature=self.sign_hash(tx_hash))

        logger.debug("transaction_signed", tx_hash=tx_hash.hex()[:16] + "...")

        return signed_tx


def generate_test_key(config: Optional[ClientConfig] = None) -> TransactionSigner:
    """
    Generate a new random signing key for testing.

    WARNING: Do not use in production. The key is not persisted.

    Returns:
        TransactionSigner with a new random key
    """
    signer = TransactionSigner(secrets.token_bytes(PRIVATE_KEY_SIZE), config=config)

    logger.warning("test_key_generated", address=signer.address)

    return signer
