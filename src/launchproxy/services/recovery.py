"""Recovery of funds stranded in burner wallets.

A burner keeps funds when its sweep failed, left dust, or never ran (for
example the process stopped between funding and sweep). With key escrow
enabled the encrypted key is kept in the database and these burners can be
swept later by their requester or by the periodic cleanup.
"""

import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from typing import Callable, Optional

from cryptography.fernet import InvalidToken
from sqlalchemy.ext.asyncio import AsyncSession

from launchproxy.audit import AuditTrail
from launchproxy.chain.base import ChainClient
from launchproxy.chain.erc20 import address_of
from launchproxy.crypto import release_key
from launchproxy.errors import SweepError
from launchproxy.ledger.database import get_db
from launchproxy.ledger.repository import BurnerRepository
from launchproxy.services.sweeper import SweepEngine, SweepRecord, SweepStatus

logger = logging.getLogger(__name__)


@dataclass
class UnsweptBurner:
    """A burner that may still hold funds."""

    address: str
    requester_address: str
    status: str
    native_balance: Optional[int]
    recoverable: bool


@dataclass
class CleanupSummary:
    """Result of a cleanup run."""

    checked: int = 0
    swept: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


class RecoveryService:
    """Lists and sweeps burners that still hold funds."""

    def __init__(
        self,
        chain: ChainClient,
        sweeper: Optional[SweepEngine] = None,
        audit: Optional[AuditTrail] = None,
        session_provider: Callable[[], AbstractAsyncContextManager[AsyncSession]] = get_db,
    ):
        self.chain = chain
        self.sweeper = sweeper or SweepEngine(chain)
        self.audit = audit or AuditTrail()
        self._session = session_provider

    async def list_unswept(self, requester_address: Optional[str] = None) -> list[UnsweptBurner]:
        """Unswept burners with their current native balance."""
        async with self._session() as session:
            burners = await BurnerRepository(session).get_unswept(requester_address)

        result = []
        for burner in burners:
            try:
                balance = await self.chain.get_native_balance(burner.address)
            except Exception as e:
                logger.warning(f"Balance lookup failed for {burner.address}: {e}")
                balance = None

            result.append(
                UnsweptBurner(
                    address=burner.address,
                    requester_address=burner.requester_address,
                    status=burner.status,
                    native_balance=balance,
                    recoverable=burner.escrowed_key is not None,
                )
            )
        return result

    async def recover(self, burner_address: str, requester_address: Optional[str] = None) -> SweepRecord:
        """Sweep an escrowed burner back to its requester.

        Args:
            burner_address: Burner to sweep
            requester_address: If given, must own the burner

        Raises:
            LookupError: Unknown burner, or owned by someone else
            SweepError: No usable escrowed key, or the sweep failed
        """
        async with self._session() as session:
            burner = await BurnerRepository(session).get_burner(burner_address)

        if burner is None:
            raise LookupError(f"Unknown burner {burner_address}")
        if requester_address and burner.requester_address.lower() != requester_address.lower():
            raise LookupError(f"Burner {burner_address} does not belong to {requester_address}")
        if not burner.escrowed_key:
            raise SweepError(f"No escrowed key for {burner_address}")

        try:
            signing_key = release_key(burner.escrowed_key)
        except (InvalidToken, RuntimeError) as e:
            raise SweepError(f"Escrowed key for {burner_address} cannot be decrypted") from e

        record = await self.sweeper.sweep(signing_key, burner.requester_address)
        await self.audit.record_sweep_status(record)

        if record.status == SweepStatus.FAILED:
            raise SweepError(record.error or "Sweep failed")
        return record

    async def sweep_with_key(self, signing_key: str, destination: str) -> SweepRecord:
        """Sweep a burner using a key supplied by its owner."""
        try:
            burner_address = address_of(signing_key)
        except ValueError as e:
            raise SweepError("Invalid burner key") from e

        logger.info(f"Manual sweep of {burner_address} to {destination}")
        record = await self.sweeper.sweep(signing_key, destination)
        await self.audit.record_sweep_status(record)

        if record.status == SweepStatus.FAILED:
            raise SweepError(record.error or "Sweep failed")
        return record

    async def cleanup(self) -> CleanupSummary:
        """Sweep every recoverable unswept burner."""
        summary = CleanupSummary()

        for burner in await self.list_unswept():
            summary.checked += 1
            if not burner.recoverable:
                summary.skipped += 1
                continue

            try:
                record = await self.recover(burner.address)
            except (LookupError, SweepError) as e:
                summary.failed += 1
                summary.errors.append(f"{burner.address}: {e}")
                continue

            if record.status == SweepStatus.SKIPPED:
                summary.skipped += 1
            else:
                summary.swept += 1

        logger.info(
            f"Cleanup: checked {summary.checked}, swept {summary.swept}, "
            f"skipped {summary.skipped}, failed {summary.failed}"
        )
        await self.audit.notifier.send(
            "Burner cleanup",
            {"checked": summary.checked, "swept": summary.swept, "failed": summary.failed},
        )
        return summary
