"""Token launch endpoints."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from launchproxy.api.deps import get_workflow, require_session
from launchproxy.crypto import SessionData
from launchproxy.ledger.database import get_db
from launchproxy.ledger.repository import BurnerRepository
from launchproxy.schemas import LaunchRequest
from launchproxy.workflow import LaunchWorkflow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Launch"])


class LaunchHistoryItem(BaseModel):
    """One past launch of the caller."""

    name: str
    symbol: str
    success: bool
    burner_address: Optional[str] = Field(default=None, serialization_alias="burnerAddress")
    tx_hash: Optional[str] = Field(default=None, serialization_alias="txHash")
    payment_tx_hash: Optional[str] = Field(default=None, serialization_alias="paymentTxHash")
    token_address: Optional[str] = Field(default=None, serialization_alias="tokenAddress")
    deployed_via_fallback: bool = Field(serialization_alias="deployedViaFallback")
    error: Optional[str] = None
    created_at: datetime = Field(serialization_alias="createdAt")


@router.post("/launch")
async def launch_token(
    request: LaunchRequest,
    session: SessionData = Depends(require_session),
    workflow: LaunchWorkflow = Depends(get_workflow),
) -> JSONResponse:
    """Launch a token through a burner wallet.

    200 on success (agent or fallback), 402 when payment could not be
    satisfied, 500 when funding or both launch paths failed.
    """
    outcome = await workflow.run(request, session)
    return JSONResponse(
        status_code=outcome.status_code,
        content=outcome.response.model_dump(by_alias=True, exclude_none=True),
    )


@router.get("/launches", response_model=list[LaunchHistoryItem], response_model_by_alias=True)
async def list_launches(
    limit: int = Query(50, ge=1, le=200),
    session: SessionData = Depends(require_session),
) -> list[LaunchHistoryItem]:
    """The caller's launches, newest first."""
    async with get_db() as db:
        records = await BurnerRepository(db).get_launches(session.address, limit=limit)

    return [
        LaunchHistoryItem(
            name=r.name,
            symbol=r.symbol,
            success=r.success,
            burner_address=r.burner_address,
            tx_hash=r.tx_hash,
            payment_tx_hash=r.payment_tx_hash,
            token_address=r.token_address,
            deployed_via_fallback=r.deployed_via_fallback,
            error=r.error,
            created_at=r.created_at,
        )
        for r in records
    ]
