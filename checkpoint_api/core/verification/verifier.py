"""Verificación de lecturas divulgadas contra un checkpoint on-ledger.

La raíz se calcula sobre plaintext pero solo se almacena el ciphertext:
el verificador debe recibir las lecturas por otro canal y recalcula la
raíz para compararla con la commiteada en la transacción.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from solders.pubkey import Pubkey

from ..domain.reading import Reading
from ..hashing.merkle import calc_window_root
from ..ledger.client import LedgerClient, LedgerTransaction
from ..ledger.committer import COMMIT_CHECKPOINT, MEMO_PREFIX, MEMO_PROGRAM_ID, ROOT_SIZE
from ..ledger.discriminator import DISCRIMINATOR_SIZE, discriminator

logger = logging.getLogger(__name__)


def extract_committed_root(tx: LedgerTransaction, program_id: Pubkey) -> Optional[bytes]:
    """Raíz de la primera instrucción commit_checkpoint del programa."""
    prefix = discriminator(COMMIT_CHECKPOINT)
    for ix in tx.instructions:
        if ix.program_id != str(program_id):
            continue
        if ix.data[:DISCRIMINATOR_SIZE] != prefix:
            continue
        root = ix.data[DISCRIMINATOR_SIZE:DISCRIMINATOR_SIZE + ROOT_SIZE]
        if len(root) == ROOT_SIZE:
            return root
    return None


def extract_memo_cid(tx: LedgerTransaction) -> Optional[str]:
    for ix in tx.instructions:
        if ix.program_id != str(MEMO_PROGRAM_ID):
            continue
        try:
            text = ix.data.decode("utf-8")
        except UnicodeDecodeError:
            continue
        if text.startswith(MEMO_PREFIX):
            return text[len(MEMO_PREFIX):] or None
    return None


@dataclass(frozen=True)
class VerificationResult:
    signature: str
    expected_root: str
    committed_root: Optional[str]
    content_identifier: Optional[str]
    found: bool

    @property
    def matches(self) -> bool:
        return self.committed_root is not None and self.committed_root == self.expected_root

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature,
            "found": self.found,
            "matches": self.matches,
            "expectedRoot": self.expected_root,
            "committedRoot": self.committed_root,
            "contentIdentifier": self.content_identifier,
        }


def verify_readings(
    readings: Sequence[Reading],
    signature: str,
    ledger: LedgerClient,
    program_id: Pubkey,
) -> VerificationResult:
    """Recalcula la raíz y la compara con la commiteada en `signature`.

    Raises:
        EmptyBatch: readings vacío
        LedgerUnavailable: el ledger no respondió
    """
    expected_hex, _ = calc_window_root(readings)
    tx = ledger.fetch_transaction(signature)
    if tx is None:
        logger.info("[VERIFY] sig=%s not found", signature)
        return VerificationResult(signature, expected_hex, None, None, found=False)

    committed = extract_committed_root(tx, program_id)
    result = VerificationResult(
        signature=signature,
        expected_root=expected_hex,
        committed_root=committed.hex() if committed is not None else None,
        content_identifier=extract_memo_cid(tx),
        found=True,
    )
    logger.info("[VERIFY] sig=%s matches=%s", signature, result.matches)
    return result
