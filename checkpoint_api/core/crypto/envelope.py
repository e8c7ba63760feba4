"""Envelope de cifrado autenticado para payloads JSON.

Formato autodescriptivo (version + algoritmo) para que un lector detecte
migraciones de algoritmo. Lo que se pinea en IPFS es únicamente el
contenedor cifrado; el plaintext nunca sale del proceso.

Contenedor wire:
    {
        "__type": "enc+json",
        "v": 1,
        "alg": "AES-256-GCM",
        "iv_b64": "...",    # 12 bytes
        "tag_b64": "...",   # 16 bytes
        "ct_b64": "..."
    }
"""

from __future__ import annotations

import base64
import binascii
import json
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, TypeVar

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ...errors import AuthenticationFailed, InvalidKey, UnsupportedAlgorithm

ENVELOPE_VERSION = 1
ALGORITHM = "AES-256-GCM"
CONTAINER_TYPE = "enc+json"
KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16

Payload = TypeVar("Payload")


@dataclass(frozen=True)
class EncryptedEnvelope:
    version: int
    algorithm: str
    nonce: bytes
    tag: bytes
    ciphertext: bytes

    def to_container(self) -> dict[str, Any]:
        return {
            "__type": CONTAINER_TYPE,
            "v": self.version,
            "alg": self.algorithm,
            "iv_b64": base64.b64encode(self.nonce).decode("ascii"),
            "tag_b64": base64.b64encode(self.tag).decode("ascii"),
            "ct_b64": base64.b64encode(self.ciphertext).decode("ascii"),
        }

    @classmethod
    def from_container(cls, data: Mapping[str, Any]) -> "EncryptedEnvelope":
        try:
            return cls(
                version=int(data["v"]),
                algorithm=str(data["alg"]),
                nonce=base64.b64decode(data["iv_b64"], validate=True),
                tag=base64.b64decode(data["tag_b64"], validate=True),
                ciphertext=base64.b64decode(data["ct_b64"], validate=True),
            )
        except (KeyError, TypeError, ValueError, binascii.Error) as e:
            raise AuthenticationFailed(f"Malformed envelope container: {e}") from e


def _check_key(key: Optional[bytes]) -> bytes:
    if not key:
        raise InvalidKey("Missing encryption key (32 bytes required)")
    if len(key) != KEY_SIZE:
        raise InvalidKey(f"Encryption key must be {KEY_SIZE} bytes (got {len(key)})")
    return bytes(key)


def load_key_b64(value: Optional[str]) -> bytes:
    """Decodifica la clave base64 de configuración (DATA_ENC_KEY_B64)."""
    if not value or not value.strip():
        raise InvalidKey("Missing DATA_ENC_KEY_B64 (base64 32 bytes)")
    try:
        key = base64.b64decode(value.strip(), validate=True)
    except (ValueError, binascii.Error) as e:
        raise InvalidKey(f"DATA_ENC_KEY_B64 is not valid base64: {e}") from e
    return _check_key(key)


def seal(payload: Any, key: bytes) -> EncryptedEnvelope:
    """Cifra un payload JSON-serializable con AES-256-GCM.

    El nonce es aleatorio por llamada; nunca se persiste para reutilizarlo.
    """
    aead = AESGCM(_check_key(key))
    nonce = os.urandom(NONCE_SIZE)
    plaintext = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    sealed = aead.encrypt(nonce, plaintext, None)
    # AESGCM devuelve ciphertext || tag
    return EncryptedEnvelope(
        version=ENVELOPE_VERSION,
        algorithm=ALGORITHM,
        nonce=nonce,
        tag=sealed[-TAG_SIZE:],
        ciphertext=sealed[:-TAG_SIZE],
    )


def open_envelope(envelope: EncryptedEnvelope, key: bytes) -> Any:
    """Descifra y deserializa un envelope.

    Raises:
        InvalidKey: clave ausente o de longitud incorrecta
        UnsupportedAlgorithm: algoritmo o versión desconocidos
        AuthenticationFailed: el tag no verifica
    """
    checked = _check_key(key)
    if envelope.algorithm != ALGORITHM or envelope.version != ENVELOPE_VERSION:
        raise UnsupportedAlgorithm(envelope.algorithm, envelope.version)
    if len(envelope.nonce) != NONCE_SIZE or len(envelope.tag) != TAG_SIZE:
        raise AuthenticationFailed("Envelope nonce/tag has unexpected length")

    try:
        plaintext = AESGCM(checked).decrypt(envelope.nonce, envelope.ciphertext + envelope.tag, None)
    except InvalidTag as e:
        raise AuthenticationFailed("Envelope authentication tag did not verify") from e

    return json.loads(plaintext.decode("utf-8"))
