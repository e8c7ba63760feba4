"""Configuración inmutable del pipeline.

Se resuelve una sola vez desde Settings y se pasa explícitamente al
orquestador. Es de solo lectura después del arranque, por lo que varias
invocaciones concurrentes pueden compartirla sin locks.
"""

from __future__ import annotations

from dataclasses import dataclass

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from common.config import DEFAULT_CHUNK_SIZE, Settings

from ...errors import InvalidChunkSize
from ..crypto.envelope import load_key_b64
from ..ledger.committer import parse_address
from ..ledger.signer import SignerCredential, resolve_signer


@dataclass(frozen=True)
class PipelineConfig:
    encryption_key: bytes
    signer: Keypair
    program_id: Pubkey
    chunk_size: int = DEFAULT_CHUNK_SIZE

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        """Resuelve clave, firmante y programa.

        Raises:
            InvalidKey: DATA_ENC_KEY_B64 ausente o inválida
            MissingSigner / InvalidSigner: credencial de firma
            MissingReference: PROGRAM_ID ausente o inválido
            InvalidChunkSize: CHECKPOINT_CHUNK_SIZE <= 0
        """
        key = load_key_b64(settings.data_enc_key_b64)
        signer = resolve_signer(
            SignerCredential(
                secret_base58=settings.solana_secret_base58,
                secret_key_json=settings.solana_secret_key,
                secret_seed_json=settings.solana_secret_seed,
            )
        )
        program_id = parse_address(settings.program_id, "PROGRAM_ID")
        if settings.chunk_size <= 0:
            raise InvalidChunkSize(f"CHECKPOINT_CHUNK_SIZE must be > 0 (got {settings.chunk_size})")

        return cls(
            encryption_key=key,
            signer=signer,
            program_id=program_id,
            chunk_size=settings.chunk_size,
        )
