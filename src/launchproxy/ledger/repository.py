"""Repository for burner wallet and launch records."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from launchproxy.ledger.models import (
    UNSWEPT_STATUSES,
    BurnerStatus,
    BurnerWallet,
    LaunchRecord,
)


class BurnerRepository:
    """Database operations for burners and launches."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # Burner operations
    async def create_burner(
        self,
        address: str,
        requester_address: str,
        escrowed_key: Optional[str] = None,
    ) -> BurnerWallet:
        """Record a freshly generated burner."""
        burner = BurnerWallet(
            address=address,
            requester_address=requester_address,
            status=BurnerStatus.CREATED.value,
            escrowed_key=escrowed_key,
        )
        self.session.add(burner)
        await self.session.flush()
        return burner

    async def get_burner(self, address: str) -> Optional[BurnerWallet]:
        stmt = select(BurnerWallet).where(func.lower(BurnerWallet.address) == address.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_funded(self, address: str, tx_hash: str, amount_wei: int) -> Optional[BurnerWallet]:
        burner = await self.get_burner(address)
        if burner is None:
            return None
        burner.status = BurnerStatus.FUNDED.value
        burner.funding_tx_hash = tx_hash
        burner.funding_amount_wei = Decimal(amount_wei)
        await self.session.flush()
        return burner

    async def update_status(
        self,
        address: str,
        status: BurnerStatus,
        native_tx_hash: Optional[str] = None,
        stable_tx_hash: Optional[str] = None,
        error: Optional[str] = None,
    ) -> Optional[BurnerWallet]:
        """Set a burner's status and any sweep details."""
        burner = await self.get_burner(address)
        if burner is None:
            return None

        burner.status = status.value
        if native_tx_hash:
            burner.sweep_native_tx_hash = native_tx_hash
        if stable_tx_hash:
            burner.sweep_stable_tx_hash = stable_tx_hash
        burner.sweep_error = error

        # Key is no longer needed once funds are out
        if status == BurnerStatus.SWEPT:
            burner.escrowed_key = None

        await self.session.flush()
        return burner

    async def get_unswept(self, requester_address: Optional[str] = None) -> list[BurnerWallet]:
        """Burners that may still hold funds, oldest first."""
        stmt = select(BurnerWallet).where(BurnerWallet.status.in_(UNSWEPT_STATUSES))
        if requester_address:
            stmt = stmt.where(func.lower(BurnerWallet.requester_address) == requester_address.lower())
        stmt = stmt.order_by(BurnerWallet.created_at, BurnerWallet.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # Launch history
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
    ) -> LaunchRecord:
        record = LaunchRecord(
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
        )
        self.session.add(record)
        await self.session.flush()
        return record

    async def get_launches(self, requester_address: str, limit: int = 50) -> list[LaunchRecord]:
        stmt = (
            select(LaunchRecord)
            .where(func.lower(LaunchRecord.requester_address) == requester_address.lower())
            .order_by(LaunchRecord.created_at.desc(), LaunchRecord.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
