"""Autenticación por API Key para los endpoints de checkpoints.

SECURITY: En producción, CHECKPOINT_API_KEY debe estar configurado.
"""

from __future__ import annotations

import hmac
import logging
import os

from fastapi import Header, HTTPException

from common.config import get_settings

logger = logging.getLogger(__name__)


def _is_production() -> bool:
    return (
        os.getenv("NODE_ENV") == "production"
        or os.getenv("ENVIRONMENT") == "production"
    )


def require_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key")
) -> None:
    """Valida la API key del header X-API-Key.

    En modo desarrollo, sin CHECKPOINT_API_KEY se permite el acceso con warning.
    """
    expected = get_settings().api_key

    if not expected:
        if _is_production():
            logger.error("CRITICAL: CHECKPOINT_API_KEY not configured in production!")
            raise HTTPException(
                status_code=500,
                detail="Server misconfiguration: API key not set"
            )
        logger.warning(
            "[SECURITY WARNING] CHECKPOINT_API_KEY not set - "
            "allowing unauthenticated access (DEV ONLY)"
        )
        return

    if not x_api_key:
        raise HTTPException(status_code=401, detail="API key required")

    if not hmac.compare_digest(x_api_key.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Invalid API key attempt from request")
        raise HTTPException(status_code=401, detail="Invalid API key")
