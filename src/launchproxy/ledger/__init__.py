"""Persistence for burner wallets and launch history."""

from launchproxy.ledger.database import close_db, configure_engine, get_db, init_db
from launchproxy.ledger.models import BurnerStatus, BurnerWallet, LaunchRecord
from launchproxy.ledger.repository import BurnerRepository

__all__ = [
    # Models
    "BurnerWallet",
    "LaunchRecord",
    "BurnerStatus",
    # Database
    "close_db",
    "configure_engine",
    "get_db",
    "init_db",
    "BurnerRepository",
]
