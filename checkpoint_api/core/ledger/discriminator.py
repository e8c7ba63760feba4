"""Discriminador de instrucción del programa on-chain.

El programa identifica cada instrucción por los primeros 8 bytes de
sha256("global:<nombre_en_snake_case>"). Si no coincide exactamente, el
ledger rechaza la transacción.
"""

from __future__ import annotations

import hashlib

DISCRIMINATOR_SIZE = 8
NAMESPACE = "global"


def discriminator(ix_name: str) -> bytes:
    preimage = f"{NAMESPACE}:{ix_name}".encode("utf-8")
    return hashlib.sha256(preimage).digest()[:DISCRIMINATOR_SIZE]
