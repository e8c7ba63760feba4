"""Dependencias FastAPI del servicio.

El orquestador se construye en la primera request y se reutiliza; la
configuración que contiene es inmutable.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException

from common.config import get_settings

from .core.pipeline import BatchOrchestrator, create_orchestrator
from .errors import InputError

logger = logging.getLogger(__name__)

_orchestrator_instance: Optional[BatchOrchestrator] = None


def debug_errors_enabled() -> bool:
    return get_settings().debug_errors


def error_detail(prefix: str, exc: BaseException) -> str:
    """Detalle para respuestas 5xx; el mensaje solo se expone en modo debug."""
    detail = f"{prefix}: {type(exc).__name__}"
    if debug_errors_enabled():
        detail = f"{detail}: {exc}"
    return detail


def build_orchestrator() -> BatchOrchestrator:
    """Construye el orquestador con la configuración actual.

    Raises:
        InputError: clave, firmante o programa no configurados
    """
    return create_orchestrator(get_settings())


def get_orchestrator() -> BatchOrchestrator:
    """Dependencia FastAPI: orquestador singleton.

    Un error de configuración es un fallo del servidor (500), no del llamador.
    """
    global _orchestrator_instance
    if _orchestrator_instance is None:
        try:
            _orchestrator_instance = build_orchestrator()
        except InputError as e:
            logger.error("[CONFIG] pipeline misconfigured err=%s: %s", type(e).__name__, e)
            raise HTTPException(status_code=500, detail=error_detail("Server misconfiguration", e))
    return _orchestrator_instance


def reset_orchestrator() -> None:
    """Resetea el orquestador singleton (útil para testing)."""
    global _orchestrator_instance
    _orchestrator_instance = None
