"""Resolución de la credencial de firma.

Cadena de parsers, el primero con credencial configurada gana:
1. SOLANA_SECRET_BASE58: secret key codificada en base58
2. SOLANA_SECRET_KEY: array JSON de 64 bytes (secret key) o 32 (seed)
3. SOLANA_SECRET_SEED: array JSON de 32 bytes (seed)

Si los bytes decodificados exceden 64 (p.ej. 68B con prefijo/sufijo
espurio) se prueba primero con los últimos 64 y después con los primeros 64.
Una secret key de 64 bytes solo es utilizable si su mitad pública coincide
con la clave derivada de la seed.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import base58
from solders.keypair import Keypair

from ...errors import InvalidSigner, MissingSigner

logger = logging.getLogger(__name__)

SECRET_KEY_SIZE = 64
SEED_SIZE = 32


@dataclass(frozen=True)
class SignerCredential:
    """Fuentes de credencial tal como vienen de configuración."""
    secret_base58: Optional[str] = None
    secret_key_json: Optional[str] = None
    secret_seed_json: Optional[str] = None

    @property
    def configured(self) -> bool:
        return any(v and v.strip() for v in (self.secret_base58, self.secret_key_json, self.secret_seed_json))


def _decode_json_array(raw: str, source: str) -> bytes:
    try:
        values = json.loads(raw)
        if not isinstance(values, list):
            raise ValueError("expected a JSON array")
        return bytes(values)
    except (ValueError, TypeError) as e:
        raise InvalidSigner(f"{source} is not a JSON byte array: {e}") from e


def _parse_base58(credential: SignerCredential) -> Optional[Tuple[str, bytes]]:
    if not credential.secret_base58 or not credential.secret_base58.strip():
        return None
    try:
        return "SOLANA_SECRET_BASE58", base58.b58decode(credential.secret_base58.strip())
    except ValueError as e:
        raise InvalidSigner(f"SOLANA_SECRET_BASE58 is not valid base58: {e}") from e


def _parse_secret_key_json(credential: SignerCredential) -> Optional[Tuple[str, bytes]]:
    if not credential.secret_key_json or not credential.secret_key_json.strip():
        return None
    return "SOLANA_SECRET_KEY", _decode_json_array(credential.secret_key_json, "SOLANA_SECRET_KEY")


def _parse_seed_json(credential: SignerCredential) -> Optional[Tuple[str, bytes]]:
    if not credential.secret_seed_json or not credential.secret_seed_json.strip():
        return None
    return "SOLANA_SECRET_SEED", _decode_json_array(credential.secret_seed_json, "SOLANA_SECRET_SEED")


CREDENTIAL_PARSERS: List[Callable[[SignerCredential], Optional[Tuple[str, bytes]]]] = [
    _parse_base58,
    _parse_secret_key_json,
    _parse_seed_json,
]


def _from_secret_key(raw: bytes) -> Optional[Keypair]:
    """Keypair desde 64 bytes seed||pubkey, o None si la pubkey no corresponde."""
    if len(raw) != SECRET_KEY_SIZE:
        return None
    keypair = Keypair.from_seed(raw[:SEED_SIZE])
    if bytes(keypair.pubkey()) != raw[SEED_SIZE:]:
        return None
    return keypair


def keypair_from_bytes(raw: bytes) -> Keypair:
    """Convierte bytes decodificados en un Keypair usable.

    Raises:
        InvalidSigner: si ninguna interpretación produce una clave válida
    """
    if len(raw) == SECRET_KEY_SIZE:
        keypair = _from_secret_key(raw)
        if keypair is None:
            raise InvalidSigner("64-byte secret key does not match its public key")
        return keypair

    if len(raw) == SEED_SIZE:
        return Keypair.from_seed(raw)

    if len(raw) > SECRET_KEY_SIZE:
        for label, candidate in (("tail64", raw[-SECRET_KEY_SIZE:]), ("head64", raw[:SECRET_KEY_SIZE])):
            keypair = _from_secret_key(candidate)
            if keypair is not None:
                logger.warning(
                    "[SIGNER] secret key len=%d -> use %s, pubkey=%s",
                    len(raw),
                    label,
                    keypair.pubkey(),
                )
                return keypair

    raise InvalidSigner(
        f"Unsupported key length: {len(raw)} (need 64 secretKey or 32 seed)"
    )


def resolve_signer(credential: SignerCredential) -> Keypair:
    """Resuelve el firmante recorriendo la cadena de parsers.

    Raises:
        MissingSigner: ninguna fuente configurada
        InvalidSigner: la primera fuente configurada no es utilizable
    """
    if not credential.configured:
        raise MissingSigner("Missing SOLANA_SECRET_BASE58 or SOLANA_SECRET_KEY/SEED")

    for parser in CREDENTIAL_PARSERS:
        decoded = parser(credential)
        if decoded is None:
            continue
        source, raw = decoded
        keypair = keypair_from_bytes(raw)
        logger.info("[SIGNER] resolved from %s pubkey=%s", source, keypair.pubkey())
        return keypair

    raise MissingSigner("Missing SOLANA_SECRET_BASE58 or SOLANA_SECRET_KEY/SEED")
