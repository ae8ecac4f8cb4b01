"""
Transaction records and their wire encoding.

Records serialize to the chain's ``Transaction`` and ``UnverifiedTransaction``
protobuf messages (see ``cita.tx.proto``). Serialization is deterministic, so
equal records always encode to identical bytes.
"""

import hashlib
from dataclasses import dataclass
from typing import Any, Callable

from eth_hash.auto import keccak
from google.protobuf.message import DecodeError, EncodeError

from cita.config import HashAlgorithm
from cita.errors import EncodingInvariantViolation
from cita.tx import proto


# Blocks after the current height during which a transaction stays valid
VALID_UNTIL_OFFSET = 88

DEFAULT_QUOTA = 1_000_000

# Crypto tag carried by signed transactions (DEFAULT = secp256k1)
CRYPTO_SECP256K1 = proto.CRYPTO_DEFAULT

# Key the chain's BLAKE2b hasher is keyed with
BLAKE2B_KEY = b"CryptapeCryptape"


def _encode(build: Callable[[], Any]) -> bytes:
    try:
        return build().SerializeToString(deterministic=True)
    except (EncodeError, TypeError, ValueError) as e:
        raise EncodingInvariantViolation(f"Failed to encode transaction record: {e}") from e


def digest(data: bytes, algorithm: HashAlgorithm = HashAlgorithm.KECCAK) -> bytes:
    """Hash ``data`` to the 32-byte digest that gets signed."""
    if algorithm == HashAlgorithm.BLAKE2B:
        return hashlib.blake2b(data, digest_size=32, key=BLAKE2B_KEY).digest()
    return keccak(data)


@dataclass(frozen=True)
class UnsignedTransaction:
    """
    A transaction before signing.

    Attributes:
        to: Destination address as 40 lowercase hex chars; empty creates a contract
        nonce: Random 128-bit value as 32 hex chars
        quota: Resource bound for execution
        valid_until_block: Last block height at which the transaction is accepted
        data: Call data or contract code
        chain_id: Chain the transaction is bound to
    """

    to: str
    nonce: str
    quota: int
    valid_until_block: int
    data: bytes
    chain_id: int

    @property
    def creates_contract(self) -> bool:
        return self.to == ""

    def to_message(self):
        """Build the ``Transaction`` protobuf message."""
        return proto.Transaction(
            to=self.to,
            nonce=self.nonce,
            quota=self.quota,
            valid_until_block=self.valid_until_block,
            data=self.data,
            chain_id=self.chain_id,
        )

    @classmethod
    def from_message(cls, message) -> "UnsignedTransaction":
        return cls(
            to=message.to,
            nonce=message.nonce,
            quota=message.quota,
            valid_until_block=message.valid_until_block,
            data=bytes(message.data),
            chain_id=message.chain_id,
        )

    def encode(self) -> bytes:
        """Serialized ``Transaction`` message; this is what gets hashed and signed."""
        return _encode(self.to_message)

    def hash(self, algorithm: HashAlgorithm = HashAlgorithm.KECCAK) -> bytes:
        return digest(self.encode(), algorithm)


@dataclass(frozen=True)
class SignedTransaction:
    """A transaction together with the signature over its encoding."""

    transaction: UnsignedTransaction
    signature: bytes
    crypto: int = CRYPTO_SECP256K1

    def to_message(self):
        """Build the ``UnverifiedTransaction`` protobuf message."""
        return proto.UnverifiedTransaction(
            transaction=self.transaction.to_message(),
            signature=self.signature,
            crypto=self.crypto,
        )

    @classmethod
    def from_message(cls, message) -> "SignedTransaction":
        return cls(
            transaction=UnsignedTransaction.from_message(message.transaction),
            signature=bytes(message.signature),
            crypto=message.crypto,
        )

    def encode(self) -> bytes:
        return _encode(self.to_message)

    def to_hex(self) -> str:
        """Hex form handed to ``cita_sendRawTransaction``."""
        return self.encode().hex()

    @classmethod
    def from_hex(cls, value: str) -> "SignedTransaction":
        """
        Decode a hex ``UnverifiedTransaction`` (optional 0x prefix).

        Raises:
            ValueError: If the value is not hex or not a serialized transaction
        """
        raw = value[2:] if value.startswith("0x") else value
        try:
            message = proto.UnverifiedTransaction.FromString(bytes.fromhex(raw))
        except DecodeError as e:
            raise ValueError(f"Not a serialized transaction: {e}") from e
        return cls.from_message(message)
