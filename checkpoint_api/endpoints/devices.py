"""Endpoints de cuentas de dispositivo (PDAs e inicialización)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..auth import require_api_key
from ..core.ledger import derive_device_accounts, parse_address
from ..core.pipeline import BatchOrchestrator
from ..dependencies import get_orchestrator
from ..errors import BatchError
from ..schemas import DeviceAccountsIn, InitializeDeviceIn

router = APIRouter(prefix="/devices", tags=["devices"])
logger = logging.getLogger(__name__)


@router.post("/accounts", dependencies=[Depends(require_api_key)])
def device_accounts(
    payload: DeviceAccountsIn,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
):
    """Deriva device/feed/score/checkpoint para una authority.

    Sin authority se usa la del firmante configurado.
    """
    if payload.authority:
        authority = parse_address(payload.authority, "authority")
    else:
        authority = orchestrator.config.signer.pubkey()

    accounts = derive_device_accounts(authority, orchestrator.committer.program_id)
    return {"ok": True, "programId": str(orchestrator.committer.program_id), **accounts.to_dict()}


@router.post("/initialize", dependencies=[Depends(require_api_key)])
def initialize_device(
    payload: InitializeDeviceIn,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
):
    """Crea las cuentas del dispositivo con los umbrales dados."""
    try:
        signature, accounts = orchestrator.committer.initialize_device(
            orchestrator.config.signer,
            payload.to_domain(),
        )
    except BatchError as e:
        logger.warning("initialize_device failed err=%s: %s", type(e).__name__, e)
        return JSONResponse(status_code=502, content={"ok": False, "error": str(e)})

    return {"ok": True, "signature": signature, **accounts.to_dict()}
