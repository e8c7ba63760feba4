"""Módulo de endpoints HTTP.

Contiene los endpoints de la API de checkpoints organizados por función.
"""

from .checkpoints import router as checkpoints_router
from .devices import router as devices_router
from .health import router as health_router

__all__ = [
    "checkpoints_router",
    "devices_router",
    "health_router",
]
