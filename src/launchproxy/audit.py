"""Best-effort audit trail.

Persists burner lifecycle and launch events and mirrors them to the admin
log. A failing write is logged and swallowed; it never changes the outcome
of a launch.
"""

import logging
from contextlib import AbstractAsyncContextManager
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from launchproxy.errors import AuditError
from launchproxy.ledger.database import get_db
from launchproxy.ledger.models import BurnerStatus
from launchproxy.ledger.repository import BurnerRepository
from launchproxy.notifications.telegram import AdminNotifier
from launchproxy.services.funding import FundingRecord
from launchproxy.services.sweeper import SweepRecord, SweepStatus

logger = logging.getLogger(__name__)


def burner_status_for(record: SweepRecord) -> BurnerStatus:
    """Ledger status after a sweep.

    The ledger tracks custody: a burner is swept once nothing movable is
    left, whichever assets it happened to hold.
    """
    if record.status == SweepStatus.FAILED:
        return BurnerStatus.FAILED
    if record.disabled:
        return BurnerStatus.SWEEP_DISABLED
    if record.status == SweepStatus.SKIPPED:
        return BurnerStatus.SKIPPED
    if record.dust_remaining:
        return BurnerStatus.PARTIALLY_SWEPT
    return BurnerStatus.SWEPT


SessionProvider = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class AuditTrail:
    """Records launch events in the database and the admin log."""

    def __init__(
        self,
        notifier: Optional[AdminNotifier] = None,
        session_provider: SessionProvider = get_db,
    ):
        self.notifier = notifier or AdminNotifier()
        self._session = session_provider

    async def _persist(self, event: str, write: Callable[[BurnerRepository], Awaitable[object]]) -> bool:
        try:
            async with self._session() as session:
                await write(BurnerRepository(session))
            return True
        except Exception as e:
            logger.warning(str(AuditError(f"{event} not persisted: {e}")))
            return False

    async def _notify(self, event: str, details: dict) -> None:
        try:
            await self.notifier.send(event, details)
        except Exception as e:
            logger.warning(str(AuditError(f"{event} not sent to admin log: {e}")))

    async def record_burner_created(
        self,
        burner_address: str,
        requester_address: str,
        escrowed_key: Optional[str] = None,
    ) -> bool:
        ok = await self._persist(
            "burner_created",
            lambda repo: repo.create_burner(burner_address, requester_address, escrowed_key),
        )
        await self._notify(
            "Burner created",
            {"burner": burner_address, "requester": requester_address, "escrowed": bool(escrowed_key)},
        )
        return ok

    async def record_funding_confirmed(self, record: FundingRecord) -> bool:
        ok = await self._persist(
            "funding_confirmed",
            lambda repo: repo.mark_funded(
                record.wallet_address, record.funding_tx_hash, record.amount_requested
            ),
        )
        await self._notify(
            "Burner funded",
            {
                "burner": record.wallet_address,
                "amount_wei": record.amount_requested,
                "tx": record.funding_tx_hash,
            },
        )
        return ok

    async def record_dispatched(self, burner_address: str) -> bool:
        return await self._persist(
            "dispatched",
            lambda repo: repo.update_status(burner_address, BurnerStatus.DISPATCHED),
        )

    async def record_sweep_status(self, record: SweepRecord) -> bool:
        ok = await self._persist(
            "sweep_status",
            lambda repo: repo.update_status(
                record.wallet_address,
                burner_status_for(record),
                native_tx_hash=record.native_tx_hash,
                stable_tx_hash=record.stable_tx_hash,
                error=record.error,
            ),
        )
        await self._notify(
            f"Sweep {record.status.value}",
            {
                "burner": record.wallet_address,
                "to": record.destination,
                "native_wei": record.native_swept,
                "stable_units": record.stable_swept,
                "error": record.error or "-",
            },
        )
        return ok

    async def record_launch(
        self,
        name: str,
        symbol: str,
        requester_address: str,
        success: bool,
        burner_address: Optional[str] = None,
        tx_hash: Optional[str] = None,
        payment_tx_hash: Optional[str] = None,
        token_address: Optional[str] = None,
        deployed_via_fallback: bool = False,
        error: Optional[str] = None,
    ) -> bool:
        ok = await self._persist(
            "launch",
            lambda repo: repo.record_launch(
                name=name,
                symbol=symbol,
                requester_address=requester_address,
                success=success,
                burner_address=burner_address,
                tx_hash=tx_hash,
                payment_tx_hash=payment_tx_hash,
                token_address=token_address,
                deployed_via_fallback=deployed_via_fallback,
                error=error,
            ),
        )
        await self._notify(
            "Launch succeeded" if success else "Launch failed",
            {
                "name": name,
                "symbol": symbol,
                "requester": requester_address,
                "burner": burner_address or "-",
                "tx": tx_hash or "-",
                "fallback": deployed_via_fallback,
                "error": error or "-",
            },
        )
        return ok
