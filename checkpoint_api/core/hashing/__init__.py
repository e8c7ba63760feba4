"""Hashing layer - hojas canónicas y raíz Merkle."""

from .leaf_encoder import encode, hash_reading, keccak256
from .merkle import build_root, calc_window_root, combine

__all__ = ["encode", "hash_reading", "keccak256", "build_root", "calc_window_root", "combine"]
