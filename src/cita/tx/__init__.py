"""
Transaction module.

Handles transaction construction, signing, and encoding.
"""

from cita.tx.builder import TransactionBuilder
from cita.tx.signer import TransactionSigner
from cita.tx.transaction import SignedTransaction, UnsignedTransaction

__all__ = [
    "TransactionBuilder",
    "TransactionSigner",
    "SignedTransaction",
    "UnsignedTransaction",
]
