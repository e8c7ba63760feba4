"""Ledger layer - firmante, instrucciones y cliente RPC."""

from .accounts import DeviceAccounts, ThresholdConfig, derive_device_accounts
from .client import InMemoryLedgerClient, LedgerClient, LedgerInstruction, LedgerTransaction
from .committer import (
    COMMIT_CHECKPOINT,
    MEMO_PROGRAM_ID,
    CheckpointCommitter,
    build_commit_instruction,
    build_memo_instruction,
    parse_address,
)
from .discriminator import discriminator
from .signer import SignerCredential, keypair_from_bytes, resolve_signer

__all__ = [
    "DeviceAccounts",
    "ThresholdConfig",
    "derive_device_accounts",
    "InMemoryLedgerClient",
    "LedgerClient",
    "LedgerInstruction",
    "LedgerTransaction",
    "COMMIT_CHECKPOINT",
    "MEMO_PROGRAM_ID",
    "CheckpointCommitter",
    "build_commit_instruction",
    "build_memo_instruction",
    "parse_address",
    "discriminator",
    "SignerCredential",
    "keypair_from_bytes",
    "resolve_signer",
]
