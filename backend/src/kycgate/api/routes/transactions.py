"""
Read access to the transaction audit log.
"""

from typing import Literal

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from kycgate.api.dependencies import CallerId
from kycgate.api.schemas import ApiResponse
from kycgate.domain.errors import ConfigurationMissingError
from kycgate.infrastructure.database import get_transaction, is_enabled, list_transactions

router = APIRouter(prefix="/api-transaction-logs", tags=["audit"])


def _require_audit_log() -> None:
    if not is_enabled():
        raise ConfigurationMissingError("Transaction audit log is disabled (DATABASE_URL not set)")


@router.get("", response_model=ApiResponse)
async def list_logs(
    caller_id: CallerId,
    caller: str | None = Query(default=None, alias="callerId"),
    service: str | None = Query(default=None),
    outcome: Literal["success", "failure"] | None = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=500),
) -> ApiResponse:
    """Most recent transactions first, filtered by caller, service or status."""
    _require_audit_log()
    rows = await list_transactions(caller_id=caller, service=service, status=outcome, limit=limit)
    return ApiResponse(
        success=True,
        message="Transactions retrieved successfully",
        data=[row.to_dict() for row in rows],
    )


@router.get("/{transaction_id}", response_model=ApiResponse)
async def get_log(transaction_id: str, caller_id: CallerId):
    _require_audit_log()
    row = await get_transaction(transaction_id)
    if row is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=ApiResponse(success=False, message="Transaction not found", error="Transaction not found").model_dump(),
        )
    return ApiResponse(success=True, message="Transaction found", data=row.to_dict())
