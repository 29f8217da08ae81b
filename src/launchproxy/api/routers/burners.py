"""Burner recovery endpoints."""

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from launchproxy.api.deps import get_recovery, require_admin_token, require_session
from launchproxy.crypto import SessionData
from launchproxy.errors import SweepError
from launchproxy.services.recovery import RecoveryService
from launchproxy.services.sweeper import SweepRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/burners", tags=["Burners"])

PRIVATE_KEY_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")


class BurnerInfo(BaseModel):
    """Unswept burner as shown to its owner."""

    address: str
    status: str
    native_balance: Optional[str] = Field(default=None, serialization_alias="nativeBalance")
    recoverable: bool


class RecoverRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    burner_address: str = Field(..., alias="burnerAddress", pattern=r"^0x[a-fA-F0-9]{40}$")


class ManualSweepRequest(BaseModel):
    """Sweep with a key held by the owner."""

    model_config = ConfigDict(populate_by_name=True, hide_input_in_errors=True)

    # Format is checked in the handler so a malformed key is never echoed back
    private_key: str = Field(..., alias="privateKey", repr=False)


class SweepResponse(BaseModel):
    success: bool
    status: str
    wallet_address: str = Field(serialization_alias="walletAddress")
    native_swept: str = Field(serialization_alias="nativeSwept")
    stable_swept: str = Field(serialization_alias="stableSwept")
    native_tx_hash: Optional[str] = Field(default=None, serialization_alias="nativeTxHash")
    stable_tx_hash: Optional[str] = Field(default=None, serialization_alias="stableTxHash")

    @classmethod
    def from_record(cls, record: SweepRecord) -> "SweepResponse":
        return cls(
            success=True,
            status=record.status.value,
            wallet_address=record.wallet_address,
            native_swept=str(record.native_swept),
            stable_swept=str(record.stable_swept),
            native_tx_hash=record.native_tx_hash,
            stable_tx_hash=record.stable_tx_hash,
        )


class CleanupResponse(BaseModel):
    checked: int
    swept: int
    skipped: int
    failed: int
    errors: list[str]


@router.get("", response_model=list[BurnerInfo], response_model_by_alias=True)
async def list_burners(
    session: SessionData = Depends(require_session),
    recovery: RecoveryService = Depends(get_recovery),
) -> list[BurnerInfo]:
    """List the caller's burners that may still hold funds."""
    burners = await recovery.list_unswept(session.address)
    return [
        BurnerInfo(
            address=b.address,
            status=b.status,
            native_balance=str(b.native_balance) if b.native_balance is not None else None,
            recoverable=b.recoverable,
        )
        for b in burners
    ]


@router.post("/recover", response_model=SweepResponse, response_model_by_alias=True)
async def recover_burner(
    body: RecoverRequest,
    session: SessionData = Depends(require_session),
    recovery: RecoveryService = Depends(get_recovery),
) -> SweepResponse:
    """Sweep one of the caller's escrowed burners back to them."""
    try:
        record = await recovery.recover(body.burner_address, session.address)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SweepError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SweepResponse.from_record(record)


@router.post("/sweep", response_model=SweepResponse, response_model_by_alias=True)
async def sweep_burner(
    body: ManualSweepRequest,
    session: SessionData = Depends(require_session),
    recovery: RecoveryService = Depends(get_recovery),
) -> SweepResponse:
    """Sweep a burner with its key to the caller's wallet."""
    key = body.private_key if body.private_key.startswith("0x") else "0x" + body.private_key
    if not PRIVATE_KEY_RE.match(key):
        raise HTTPException(status_code=422, detail="Invalid private key format")
    try:
        record = await recovery.sweep_with_key(key, session.address)
    except SweepError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SweepResponse.from_record(record)


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_burners(
    _: bool = Depends(require_admin_token),
    recovery: RecoveryService = Depends(get_recovery),
) -> CleanupResponse:
    """Sweep every recoverable burner (cron/admin)."""
    summary = await recovery.cleanup()
    return CleanupResponse(
        checked=summary.checked,
        swept=summary.swept,
        skipped=summary.skipped,
        failed=summary.failed,
        errors=summary.errors,
    )
