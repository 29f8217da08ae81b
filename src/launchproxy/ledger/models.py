"""SQLAlchemy models for burner wallets and launch history."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class BurnerStatus(str, Enum):
    """Lifecycle of a burner wallet."""

    CREATED = "created"                  # Key generated, not yet funded
    FUNDED = "funded"                    # Funding transfer confirmed
    DISPATCHED = "dispatched"            # Agent or fallback finished
    SWEPT = "swept"                      # Residual funds returned
    PARTIALLY_SWEPT = "partially_swept"  # Dust left behind
    SKIPPED = "skipped"                  # Nothing could move
    SWEEP_DISABLED = "sweep_disabled"    # Sweep turned off, funds untouched
    FAILED = "failed"                    # Sweep raised; funds may remain


# Statuses whose wallets may still hold funds
UNSWEPT_STATUSES = (
    BurnerStatus.CREATED.value,
    BurnerStatus.FUNDED.value,
    BurnerStatus.DISPATCHED.value,
    BurnerStatus.PARTIALLY_SWEPT.value,
    BurnerStatus.SWEEP_DISABLED.value,
    BurnerStatus.FAILED.value,
)


class BurnerWallet(Base):
    """Durable record of a burner wallet.

    Never stores the cleartext key; escrowed_key is Fernet ciphertext and is
    only written when key escrow is enabled.
    """

    __tablename__ = "burner_wallets"
    __table_args__ = (Index("ix_burner_wallets_requester_status", "requester_address", "status"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(42), unique=True, nullable=False, index=True)
    requester_address: Mapped[str] = mapped_column(String(42), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=BurnerStatus.CREATED.value)

    # Funding
    funding_tx_hash: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)
    funding_amount_wei: Mapped[Optional[Decimal]] = mapped_column(Numeric(38, 0), nullable=True)

    # Sweep
    sweep_native_tx_hash: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)
    sweep_stable_tx_hash: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)
    sweep_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Recovery
    escrowed_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<BurnerWallet(address={self.address}, status={self.status})>"


class LaunchRecord(Base):
    """History of token launches."""

    __tablename__ = "launch_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    symbol: Mapped[str] = mapped_column(String(16), nullable=False)
    requester_address: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    burner_address: Mapped[Optional[str]] = mapped_column(String(42), nullable=True)
    tx_hash: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)
    payment_tx_hash: Mapped[Optional[str]] = mapped_column(String(66), nullable=True)
    token_address: Mapped[Optional[str]] = mapped_column(String(42), nullable=True)
    deployed_via_fallback: Mapped[bool] = mapped_column(Boolean, default=False)
    success: Mapped[bool] = mapped_column(Boolean, default=False)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<LaunchRecord(name={self.name}, success={self.success})>"
