"""
Per-request transaction audit.

Routes attach a masked copy of the request and a summary of the response
to request.state; the middleware adds timing and status and writes one
ApiTransactionLog row per call.
"""

import json
import logging
import time
from typing import Any

from fastapi import FastAPI, Request

from kycgate.infrastructure.database import record_transaction

logger = logging.getLogger(__name__)

UNAUDITED_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


def note(
    request: Request,
    payload: dict[str, Any] | None = None,
    response: Any = None,
    success: bool | None = None,
) -> None:
    """Attach audit details for the current request."""
    if payload is not None:
        request.state.audit_payload = _dump(payload)
    if response is not None:
        request.state.audit_response = _dump(response)
    if success is not None:
        request.state.audit_success = success


def _dump(value: Any) -> str:
    if hasattr(value, "model_dump"):
        value = value.model_dump()
    return json.dumps(value, ensure_ascii=False, default=str)


def install(app: FastAPI) -> None:
    """Register the audit middleware on an application."""

    @app.middleware("http")
    async def audit_transactions(request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Served as a 500 by the application's catch-all handler
            await _record(request, started, status_code=500, succeeded=False)
            raise

        await _record(request, started, status_code=response.status_code)
        return response


async def _record(request: Request, started: float, status_code: int, succeeded: bool | None = None) -> None:
    path = request.url.path
    if path in UNAUDITED_PATHS:
        return

    duration_ms = int((time.perf_counter() - started) * 1000)
    state = request.state
    if succeeded is None:
        succeeded = getattr(state, "audit_success", status_code < 400)
    logger.info(f"{request.method} {path} -> {status_code} in {duration_ms}ms")

    await record_transaction(
        caller_id=getattr(state, "caller_id", None),
        service=path.strip("/").split("/")[0] or "root",
        endpoint=f"{request.method} {path}",
        request_payload=getattr(state, "audit_payload", None),
        response_data=getattr(state, "audit_response", None),
        status="success" if succeeded else "failure",
        duration_ms=duration_ms,
    )
