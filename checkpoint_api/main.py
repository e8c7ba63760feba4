from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .endpoints import checkpoints_router, devices_router, health_router
from .errors import InputError

logger = logging.getLogger(__name__)

app = FastAPI(title="Sensor Checkpoint Service", version="0.1.0")

app.include_router(health_router)
app.include_router(checkpoints_router)
app.include_router(devices_router)


@app.exception_handler(InputError)
def input_error_handler(request: Request, exc: InputError):
    # Defectos de entrada: abortan el run completo antes de cualquier batch.
    logger.info("Rejected %s err=%s: %s", request.url.path, type(exc).__name__, exc)
    return JSONResponse(status_code=400, content={"ok": False, "error": str(exc)})


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid request")
    return JSONResponse(
        status_code=400,
        content={"ok": False, "error": f"{location}: {message}" if location else message},
    )
