"""Codificación canónica de lecturas y hash de hoja."""

from __future__ import annotations

from Crypto.Hash import keccak

from ..domain.reading import NUMERIC_FIELDS, Reading, require_int

DELIMITER = "|"
LEAF_SIZE = 32


def keccak256(data: bytes) -> bytes:
    """Keccak-256 original (Ethereum), no SHA3-256 de NIST."""
    return keccak.new(digest_bits=256, data=data).digest()


def encode(reading: Reading) -> bytes:
    """Bytes canónicos: deviceId|ts|t_c_x100|rh_x100|p_pa|gas.

    device_id ausente se normaliza a cadena vacía. Los enteros se
    renderizan con str(int), sin separadores de miles ni locale.
    """
    parts = [reading.device_id or ""]
    for name in NUMERIC_FIELDS:
        parts.append(str(require_int(name, getattr(reading, name))))
    return DELIMITER.join(parts).encode("utf-8")


def hash_reading(reading: Reading) -> bytes:
    """Hoja Merkle (32 bytes) de una lectura."""
    return keccak256(encode(reading))
