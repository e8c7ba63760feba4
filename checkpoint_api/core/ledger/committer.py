"""Committer de checkpoints on-ledger.

Una transacción por batch con dos instrucciones:
1. Memo con "CID:<content identifier>" (metadato auxiliar, no crítico)
2. commit_checkpoint(device, checkpoint, authority) con data =
   discriminador(8B) + merkle root(32B)
"""

from __future__ import annotations

import logging
from typing import List, Optional

from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ...errors import MissingReference
from .accounts import DeviceAccounts, ThresholdConfig, build_initialize_device_instruction, derive_device_accounts
from .client import LedgerClient
from .discriminator import discriminator

logger = logging.getLogger(__name__)

MEMO_PROGRAM_ID = Pubkey.from_string("MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr")
COMMIT_CHECKPOINT = "commit_checkpoint"
MEMO_PREFIX = "CID:"
ROOT_SIZE = 32


def parse_address(value: Optional[str], label: str) -> Pubkey:
    """Parsea una referencia de cuenta base58.

    Raises:
        MissingReference: vacía o no es una dirección válida
    """
    if not value or not value.strip():
        raise MissingReference(f"{label} is required")
    try:
        return Pubkey.from_string(value.strip())
    except ValueError as e:
        raise MissingReference(f"{label} is not a valid account address: {value!r}") from e


def build_memo_instruction(content_identifier: Optional[str]) -> Instruction:
    data = f"{MEMO_PREFIX}{content_identifier or ''}".encode("utf-8")
    return Instruction(MEMO_PROGRAM_ID, data, [])


def build_commit_instruction(
    program_id: Pubkey,
    device: Pubkey,
    checkpoint: Pubkey,
    authority: Pubkey,
    root: bytes,
) -> Instruction:
    """Instrucción commit_checkpoint; el orden de cuentas es parte del contrato."""
    if len(root) != ROOT_SIZE:
        raise ValueError(f"merkle root must be {ROOT_SIZE} bytes (got {len(root)})")
    accounts = [
        AccountMeta(device, is_signer=False, is_writable=False),
        AccountMeta(checkpoint, is_signer=False, is_writable=True),
        AccountMeta(authority, is_signer=True, is_writable=False),
    ]
    return Instruction(program_id, discriminator(COMMIT_CHECKPOINT) + bytes(root), accounts)


class CheckpointCommitter:
    """Construye y envía la transacción de checkpoint de un batch."""

    def __init__(self, ledger: LedgerClient, program_id: Pubkey) -> None:
        self._ledger = ledger
        self._program_id = program_id

    @property
    def ledger(self) -> LedgerClient:
        return self._ledger

    @property
    def program_id(self) -> Pubkey:
        return self._program_id

    def build_instructions(
        self,
        root: bytes,
        content_identifier: Optional[str],
        device: Pubkey,
        checkpoint: Pubkey,
        authority: Pubkey,
    ) -> List[Instruction]:
        return [
            build_memo_instruction(content_identifier),
            build_commit_instruction(self._program_id, device, checkpoint, authority, root),
        ]

    def commit(
        self,
        root: bytes,
        content_identifier: Optional[str],
        device_ref: str,
        checkpoint_ref: str,
        signer: Keypair,
    ) -> str:
        """Envía {root, CID} al ledger y devuelve la firma de la transacción.

        Bloquea hasta confirmación. Submit-once: un reintento es una
        transacción nueva.

        Raises:
            MissingReference: device/checkpoint inválidos
            CommitRejected: el ledger rechazó la transacción
            CommitTimeout: sin confirmación dentro del timeout
        """
        device = parse_address(device_ref, "deviceRef")
        checkpoint = parse_address(checkpoint_ref, "checkpointRef")
        instructions = self.build_instructions(root, content_identifier, device, checkpoint, signer.pubkey())

        signature = self._ledger.submit(instructions, signer)
        logger.info(
            "[COMMIT] checkpoint=%s root=%s cid=%s sig=%s",
            checkpoint,
            root.hex(),
            content_identifier,
            signature,
        )
        return signature

    def initialize_device(
        self,
        signer: Keypair,
        thresholds: Optional[ThresholdConfig] = None,
    ) -> tuple[str, DeviceAccounts]:
        """Crea las cuentas del dispositivo (device/feed/score/checkpoint)."""
        cfg = thresholds or ThresholdConfig()
        accounts = derive_device_accounts(signer.pubkey(), self._program_id)
        ix = build_initialize_device_instruction(self._program_id, signer.pubkey(), accounts, cfg)
        signature = self._ledger.submit([ix], signer)
        logger.info("[COMMIT] initialize_device device=%s sig=%s", accounts.device, signature)
        return signature, accounts
