#!/usr/bin/env python3
"""Stranded Burner Cleanup Script.

Sweeps every escrowed burner that still holds funds back to its requester.
Meant to run from cron next to the API (same DATABASE_URL and MASTER_KEY).

Usage:
    python scripts/cleanup_burners.py [--dry-run] [--requester 0x...]

Options:
    --dry-run    List unswept burners and their balances without sweeping
    --requester  Only list burners of this requester (dry run only)
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dotenv import load_dotenv

from launchproxy.chain import get_chain_client
from launchproxy.ledger.database import close_db, init_db
from launchproxy.services.recovery import RecoveryService

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


async def list_burners(recovery: RecoveryService, requester: Optional[str] = None) -> int:
    burners = await recovery.list_unswept(requester)
    if not burners:
        print("No unswept burners")
        return 0

    print(f"{'Address':<44} {'Requester':<44} {'Status':<16} {'Balance (wei)':>20}  Escrowed")
    for burner in burners:
        balance = "?" if burner.native_balance is None else str(burner.native_balance)
        print(
            f"{burner.address:<44} {burner.requester_address:<44} {burner.status:<16} "
            f"{balance:>20}  {'yes' if burner.recoverable else 'no'}"
        )
    return 0


async def run(args) -> int:
    await init_db()
    recovery = RecoveryService(get_chain_client())

    try:
        if args.dry_run:
            return await list_burners(recovery, args.requester)

        summary = await recovery.cleanup()
        print(
            f"Checked {summary.checked}: swept {summary.swept}, "
            f"skipped {summary.skipped}, failed {summary.failed}"
        )
        for error in summary.errors:
            print(f"  {error}")
        return 1 if summary.failed else 0
    finally:
        await close_db()


def main():
    parser = argparse.ArgumentParser(description="Sweep stranded burner wallets")
    parser.add_argument("--dry-run", action="store_true", help="List only, do not sweep")
    parser.add_argument("--requester", help="Filter the listing by requester address")
    args = parser.parse_args()

    if args.requester and not args.dry_run:
        parser.error("--requester only applies to --dry-run")

    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
