from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_CLUSTER_URL = "https://api.devnet.solana.com"
DEFAULT_PINATA_URL = "https://api.pinata.cloud/pinning/pinJSONToIPFS"
DEFAULT_CHUNK_SIZE = 128


def _default_env_file() -> str:
    # .env en la raíz del repo, junto a pyproject.toml.
    repo_root = Path(__file__).resolve().parents[1]
    return str(repo_root / ".env")


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class Settings:
    cluster_url: str
    program_id: Optional[str]

    data_enc_key_b64: Optional[str]

    pinata_jwt: Optional[str]
    pinata_api_url: str
    pinata_timeout_seconds: float

    solana_secret_base58: Optional[str]
    solana_secret_key: Optional[str]
    solana_secret_seed: Optional[str]

    chunk_size: int
    commit_timeout_seconds: float

    api_key: Optional[str]
    debug_errors: bool


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("CHECKPOINT_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    # MAGICBLOCK_ROUTER_URL se mantiene como alias para despliegues con router.
    cluster_url = (
        _optional("SOLANA_CLUSTER_URL")
        or _optional("MAGICBLOCK_ROUTER_URL")
        or DEFAULT_CLUSTER_URL
    )

    return Settings(
        cluster_url=cluster_url,
        program_id=_optional("PROGRAM_ID"),
        data_enc_key_b64=_optional("DATA_ENC_KEY_B64"),
        pinata_jwt=_optional("PINATA_JWT"),
        pinata_api_url=os.getenv("PINATA_API_URL", DEFAULT_PINATA_URL),
        pinata_timeout_seconds=float(os.getenv("PINATA_TIMEOUT_SECONDS", "30")),
        solana_secret_base58=_optional("SOLANA_SECRET_BASE58"),
        solana_secret_key=_optional("SOLANA_SECRET_KEY"),
        solana_secret_seed=_optional("SOLANA_SECRET_SEED"),
        chunk_size=int(os.getenv("CHECKPOINT_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE))),
        commit_timeout_seconds=float(os.getenv("COMMIT_TIMEOUT_SECONDS", "60")),
        api_key=_optional("CHECKPOINT_API_KEY"),
        debug_errors=os.getenv("CHECKPOINT_DEBUG_ERRORS", "").strip() == "1",
    )
