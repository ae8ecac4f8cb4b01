"""
Transaction Builder - constructs signed transactions.

Turns a payload, a destination and a private key into the hex-encoded signed
transaction that ``cita_sendRawTransaction`` accepts.
"""

import re
import secrets
from typing import Optional, Union

import structlog

from cita.config import ClientConfig, get_config
from cita.errors import MalformedInput
from cita.rpc.dispatcher import RequestDispatcher
from cita.tx.signer import TransactionSigner, remove_0x
from cita.tx.transaction import (
    VALID_UNTIL_OFFSET,
    SignedTransaction,
    UnsignedTransaction,
)

logger = structlog.get_logger(__name__)


NONCE_BYTES = 16

MAX_CHAIN_ID = 2 ** 32 - 1

_ADDRESS_RE = re.compile(r"^[0-9a-fA-F]{40}$")


def decode_payload(payload: Union[str, bytes]) -> bytes:
    """
    Decode hex call data (optional 0x prefix). Bytes pass through unchanged.

    Raises:
        MalformedInput: If the payload is not valid hex
    """
    if isinstance(payload, bytes):
        return payload
    try:
        return bytes.fromhex(remove_0x(payload.strip()))
    except ValueError:
        raise MalformedInput("payload", "not valid hex", payload) from None


def normalize_address(address: Optional[str]) -> str:
    """
    Normalize a destination address to 40 lowercase hex chars.

    An empty or missing address stays empty and means contract creation.

    Raises:
        MalformedInput: If the address is not 20 bytes of hex
    """
    if not address:
        return ""
    raw = remove_0x(address.strip())
    if not _ADDRESS_RE.match(raw):
        raise MalformedInput("address", "expected 20 bytes of hex", address)
    return raw.lower()


def generate_nonce() -> str:
    """128 random bits as 32 hex chars."""
    return secrets.token_hex(NONCE_BYTES)


class TransactionBuilder:
    """
    Builds and signs transactions.

    The builder keeps no state between calls. It borrows a dispatcher only to
    resolve the chain id when the caller does not supply one; the dispatcher
    caches the id after the first resolution.
    """

    def __init__(
        self,
        dispatcher: Optional[RequestDispatcher] = None,
        config: Optional[ClientConfig] = None,
    ):
        """
        Initialize the transaction builder.

        Args:
            dispatcher: Dispatcher used to resolve the chain id (optional if
                every call passes ``chain_id``)
            config: Client configuration
        """
        self.dispatcher = dispatcher
        self.config = config or get_config()

    def assemble(
        self,
        payload: Union[str, bytes],
        destination: Optional[str],
        current_height: int,
        chain_id: int,
        quota: Optional[int] = None,
    ) -> UnsignedTransaction:
        """
        Assemble an unsigned transaction with a fresh nonce.

        Args:
            payload: Call data or contract code, as hex or bytes
            destination: Target address; empty creates a contract
            current_height: Latest block height
            chain_id: Chain the transaction is bound to
            quota: Quota override (defaults to the configured quota)

        Returns:
            The unsigned transaction
        """
        if current_height < 0:
            raise MalformedInput("current height", f"must not be negative, got {current_height}")
        if quota is not None and quota < 1:
            raise MalformedInput("quota", f"must be positive, got {quota}")
        if not 0 <= chain_id <= MAX_CHAIN_ID:
            raise MalformedInput("chain id", f"must fit in 32 bits, got {chain_id}")

        return UnsignedTransaction(
            to=normalize_address(destination),
            nonce=generate_nonce(),
            quota=self.config.default_quota if quota is None else quota,
            valid_until_block=current_height + VALID_UNTIL_OFFSET,
            data=decode_payload(payload),
            chain_id=chain_id,
        )

    def sign_and_encode(self, tx: UnsignedTransaction, signer: TransactionSigner) -> str:
        """Sign ``tx`` and return the hex of the signed record."""
        signed: SignedTransaction = signer.sign_transaction(tx, self.config.hash_algorithm)
        return signed.to_hex()

    async def build_and_sign(
        self,
        payload: Union[str, bytes],
        destination: Optional[str],
        private_key: Union[str, bytes, TransactionSigner],
        current_height: int,
        chain_id: Optional[int] = None,
        quota: Optional[int] = None,
    ) -> str:
        """
        Build a signed transaction ready for ``cita_sendRawTransaction``.

        Inputs are validated before the chain id is resolved, so malformed
        input never causes network activity or a signing attempt.

        Args:
            payload: Call data or contract code, as hex or bytes
            destination: Target address; empty creates a contract
            private_key: Key as hex/bytes, or a loaded signer
            current_height: Latest block height
            chain_id: Chain id override; resolved through the dispatcher if not given
            quota: Quota override

        Returns:
            Hex-encoded signed transaction (no 0x prefix)

        Raises:
            MalformedInput: For invalid payload, address or key
            EncodingInvariantViolation: If the record fails to encode
        """
        data = decode_payload(payload)
        to = normalize_address(destination)
        signer = (
            private_key
            if isinstance(private_key, TransactionSigner)
            else TransactionSigner(private_key, config=self.config)
        )

        if chain_id is None:
            if self.dispatcher is None:
                raise ValueError("A dispatcher is required when no chain id is given")
            chain_id = await self.dispatcher.resolve_chain_id()

        tx = self.assemble(data, to, current_height, chain_id, quota)
        encoded = self.sign_and_encode(tx, signer)

        logger.info(
            "transaction_built",
            to=tx.to or "<create>",
            chain_id=tx.chain_id,
            valid_until_block=tx.valid_until_block,
            quota=tx.quota,
            size=len(encoded) // 2,
        )

        return encoded
