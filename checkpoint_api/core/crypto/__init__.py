"""Crypto layer - envelope AES-256-GCM."""

from .envelope import EncryptedEnvelope, load_key_b64, open_envelope, seal

__all__ = ["EncryptedEnvelope", "load_key_b64", "open_envelope", "seal"]
