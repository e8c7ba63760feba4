"""Endpoints de checkpoints: finalize-bulk, finalize-window, commit, verify."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ..auth import require_api_key
from ..core.pipeline import BatchOrchestrator
from ..core.verification import verify_readings
from ..dependencies import error_detail, get_orchestrator
from ..errors import BatchError, InputError, LedgerUnavailable
from ..schemas import CommitIn, FinalizeBulkIn, FinalizeWindowIn, VerifyIn

router = APIRouter(prefix="/checkpoints", tags=["checkpoints"])
logger = logging.getLogger(__name__)


@router.post("/finalize-bulk", dependencies=[Depends(require_api_key)])
def finalize_bulk(
    payload: FinalizeBulkIn,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
):
    """Particiona las lecturas en batches y ancla cada uno.

    Un batch fallido no aborta el run: su error queda en `results`.
    """
    try:
        run = orchestrator.run(
            payload.to_domain(),
            payload.refs(),
            chunk_size=payload.chunk_size,
        )
    except InputError:
        raise
    except Exception as e:
        logger.exception("Pipeline error in /checkpoints/finalize-bulk err=%s", type(e).__name__)
        raise HTTPException(status_code=500, detail=error_detail("Pipeline error", e))

    return {"ok": True, **run.to_dict()}


@router.post("/finalize-window", dependencies=[Depends(require_api_key)])
def finalize_window(
    payload: FinalizeWindowIn,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
):
    """Ancla una única ventana de lecturas (sin particionar)."""
    try:
        result = orchestrator.run_window(payload.window_index, payload.to_domain(), payload.refs())
    except InputError:
        raise
    except Exception as e:
        logger.exception("Pipeline error in /checkpoints/finalize-window err=%s", type(e).__name__)
        raise HTTPException(status_code=500, detail=error_detail("Pipeline error", e))

    body = result.to_dict()
    body.pop("batch", None)
    return {"ok": result.ok, "windowIndex": payload.window_index, **body}


@router.post("/commit", dependencies=[Depends(require_api_key)])
def commit(
    payload: CommitIn,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
):
    """Solo el paso de commit: raíz + CID ya calculados por el llamador."""
    committer = orchestrator.committer
    signer = orchestrator.config.signer
    try:
        signature = committer.commit(
            payload.root,
            payload.cid,
            payload.device_ref,
            payload.checkpoint_ref,
            signer,
        )
    except BatchError as e:
        logger.warning("Commit failed err=%s: %s", type(e).__name__, e)
        return JSONResponse(status_code=502, content={"ok": False, "error": str(e)})

    return {
        "ok": True,
        "signature": signature,
        "routedVia": committer.ledger.endpoint,
        "authority": str(signer.pubkey()),
    }


@router.post("/verify", dependencies=[Depends(require_api_key)])
def verify(
    payload: VerifyIn,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
):
    """Recalcula la raíz de las lecturas divulgadas y la compara on-ledger."""
    committer = orchestrator.committer
    try:
        result = verify_readings(
            payload.to_domain(),
            payload.signature,
            committer.ledger,
            committer.program_id,
        )
    except LedgerUnavailable as e:
        logger.warning("Verify failed: %s", e)
        raise HTTPException(status_code=503, detail=error_detail("Ledger unavailable", e))

    return {"ok": True, **result.to_dict()}
