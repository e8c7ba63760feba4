"""Health and readiness endpoints."""

import logging
import time

from fastapi import APIRouter, HTTPException

from ..dependencies import build_orchestrator

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    """Liveness probe: always returns ok if process is running."""
    return {"status": "ok"}


@router.get("/ready")
def ready():
    """Readiness probe: config resolves and the ledger answers a balance query.

    No expone detalles de error al cliente; solo se loguean.
    """
    try:
        orchestrator = build_orchestrator()
        authority = orchestrator.config.signer.pubkey()
        start_time = time.time()
        balance = orchestrator.committer.ledger.get_balance(authority)
        latency_ms = (time.time() - start_time) * 1000
    except Exception:
        logger.exception("Readiness check failed")
        raise HTTPException(status_code=503, detail="not ready")

    return {
        "status": "ready",
        "authority": str(authority),
        "balanceLamports": balance,
        "latency_ms": round(latency_ms, 2),
    }
