"""Abstract interface for the ledger RPC client.

This decouples the committer from the RPC transport. The pipeline needs
three operations: submit a transaction, fetch a transaction, get a balance.
"""

from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import base58
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerInstruction:
    """Instrucción decodificada de una transacción confirmada."""
    program_id: str
    accounts: Tuple[str, ...]
    data: bytes


@dataclass(frozen=True)
class LedgerTransaction:
    signature: str
    slot: Optional[int]
    instructions: Tuple[LedgerInstruction, ...]
    error: Optional[str] = None


class LedgerClient(ABC):
    """Abstract interface for ledger clients.

    Implementations:
    - SolanaLedgerClient: JSON-RPC against a Solana cluster
    - InMemoryLedgerClient: records transactions locally (dry runs, tests)
    """

    endpoint: str = ""

    @abstractmethod
    def submit(self, instructions: Sequence[Instruction], signer: Keypair) -> str:
        """Sign, submit and wait for confirmation.

        Returns:
            Transaction signature (base58)

        Raises:
            CommitRejected: the ledger rejected the transaction
            CommitTimeout: not confirmed before the deadline
        """
        pass

    @abstractmethod
    def fetch_transaction(self, signature: str) -> Optional[LedgerTransaction]:
        """Fetch a confirmed transaction, or None if unknown."""
        pass

    @abstractmethod
    def get_balance(self, pubkey: Pubkey) -> int:
        """Balance in lamports."""
        pass


@dataclass
class InMemoryLedgerClient(LedgerClient):
    """Ledger fake: firma determinista y transacciones en memoria."""

    endpoint: str = "memory://ledger"
    balances: Dict[str, int] = field(default_factory=dict)
    transactions: Dict[str, LedgerTransaction] = field(default_factory=dict)
    submitted: List[str] = field(default_factory=list)

    def submit(self, instructions: Sequence[Instruction], signer: Keypair) -> str:
        digest = hashlib.sha512()
        digest.update(bytes(signer.pubkey()))
        digest.update(len(self.submitted).to_bytes(8, "little"))
        decoded = []
        for ix in instructions:
            digest.update(bytes(ix.program_id))
            digest.update(bytes(ix.data))
            decoded.append(
                LedgerInstruction(
                    program_id=str(ix.program_id),
                    accounts=tuple(str(meta.pubkey) for meta in ix.accounts),
                    data=bytes(ix.data),
                )
            )
        signature = base58.b58encode(digest.digest()).decode("ascii")
        self.transactions[signature] = LedgerTransaction(
            signature=signature,
            slot=len(self.submitted) + 1,
            instructions=tuple(decoded),
        )
        self.submitted.append(signature)
        logger.debug("[LEDGER] in-memory submit sig=%s ixs=%d", signature, len(decoded))
        return signature

    def fetch_transaction(self, signature: str) -> Optional[LedgerTransaction]:
        return self.transactions.get(signature)

    def get_balance(self, pubkey: Pubkey) -> int:
        return self.balances.get(str(pubkey), 0)
