"""Módulo de autenticación para endpoints de checkpoints."""

from .api_key import require_api_key

__all__ = ["require_api_key"]
