"""Merkle root determinista sobre hojas Keccak-256.

Reglas (deben coincidir con cualquier otro verificador):
- Los pares hermanos se ordenan lexicográficamente antes de hashear,
  por lo que combine(a, b) == combine(b, a).
- Las hojas NO se ordenan: el orden de lecturas sigue importando.
- Nodo impar al final de un nivel: sube sin cambios (no se duplica).
- Una sola hoja es su propia raíz.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from ...errors import EmptyBatch
from ..domain.reading import Reading
from .leaf_encoder import hash_reading, keccak256


def combine(left: bytes, right: bytes) -> bytes:
    """Hash de un par de nodos hermanos en orden canónico."""
    if right < left:
        left, right = right, left
    return keccak256(left + right)


def build_root(leaves: Sequence[bytes]) -> bytes:
    """Calcula la raíz Merkle de una secuencia ordenada de hojas.

    Raises:
        EmptyBatch: si no hay hojas
    """
    if not leaves:
        raise EmptyBatch()

    level: List[bytes] = list(leaves)
    while len(level) > 1:
        next_level: List[bytes] = []
        for i in range(0, len(level) - 1, 2):
            next_level.append(combine(level[i], level[i + 1]))
        if len(level) % 2 == 1:
            next_level.append(level[-1])
        level = next_level

    return level[0]


def calc_window_root(readings: Sequence[Reading]) -> Tuple[str, List[bytes]]:
    """Raíz (hex) y hojas de una ventana de lecturas."""
    leaves = [hash_reading(r) for r in readings]
    return build_root(leaves).hex(), leaves
