"""Burner sweeper - returns residual funds from a burner to the requester.

Runs after every launch whichever path produced the result. The stable token
goes first because its transfer needs native gas; the native balance follows,
less the EIP-1559 fee of the sweep transfer itself.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from launchproxy.chain.base import ChainClient
from launchproxy.chain.erc20 import address_of, get_token_balance, transfer_token
from launchproxy.config import Settings, get_settings

logger = logging.getLogger(__name__)


class SweepStatus(str, Enum):
    """Outcome of a sweep."""

    SWEPT = "swept"                      # Stable and native both moved
    PARTIALLY_SWEPT = "partially-swept"  # Only one asset moved
    SKIPPED = "skipped"                  # Disabled, or nothing could move
    FAILED = "failed"                    # An exception interrupted the sweep


@dataclass
class SweepRecord:
    """What a sweep moved.

    `dust_remaining` is set when a native balance existed but could not pay
    for its own transfer. `disabled` marks a sweep turned off by policy, in
    which case every balance is still in the burner.
    """

    wallet_address: str
    destination: str
    native_swept: int = 0
    stable_swept: int = 0
    native_tx_hash: Optional[str] = None
    stable_tx_hash: Optional[str] = None
    status: SweepStatus = SweepStatus.SKIPPED
    error: Optional[str] = None
    dust_remaining: bool = False
    disabled: bool = False


def native_sweep_fee(gas_limit: int, base_fee: int, priority_fee: int) -> int:
    """Fee reserved for the native transfer: gas_limit x (2 x base_fee + priority_fee)."""
    return gas_limit * (2 * base_fee + priority_fee)


def classify(record: SweepRecord) -> SweepStatus:
    """Status from the assets that moved."""
    moved = [tx for tx in (record.stable_tx_hash, record.native_tx_hash) if tx is not None]
    if len(moved) == 2:
        return SweepStatus.SWEPT
    if moved:
        return SweepStatus.PARTIALLY_SWEPT
    return SweepStatus.SKIPPED


class SweepEngine:
    """Moves stable token and native balance out of a burner."""

    def __init__(self, chain: ChainClient, settings: Optional[Settings] = None):
        self.chain = chain
        self.settings = settings or get_settings()

    async def sweep(self, signing_key: str, destination: str, enabled: bool = True) -> SweepRecord:
        """Sweep everything from the key's address to `destination`.

        Never raises; failures are logged and reported in the record.
        """
        record = SweepRecord(wallet_address="", destination=destination)

        try:
            address = address_of(signing_key)
            record.wallet_address = address

            if not enabled:
                logger.info(f"Sweep disabled, funds stay at {address}")
                record.disabled = True
                return record

            logger.info(f"Initiating sweep from burner {address} to {destination}")

            stable_balance = await get_token_balance(self.chain, self.settings.usdc_address, address)
            if stable_balance > 0:
                logger.info(f"Found {stable_balance} stable units. Sweeping...")
                tx_hash = await transfer_token(
                    self.chain, signing_key, self.settings.usdc_address, destination, stable_balance
                )
                await self.chain.wait_for_receipt(tx_hash, self.settings.confirmation_timeout)
                record.stable_swept = stable_balance
                record.stable_tx_hash = tx_hash
                logger.info(f"Stable sweep confirmed: {tx_hash}")

            native_balance = await self.chain.get_native_balance(address)
            if native_balance > 0:
                fees = await self.chain.get_fee_params()
                gas_limit = self.settings.sweep_gas_limit
                fee = native_sweep_fee(gas_limit, fees.base_fee, fees.priority_fee)

                if native_balance > fee:
                    amount = native_balance - fee
                    logger.info(f"Sweeping {amount} wei (balance {native_balance} - fee {fee})")
                    tx_hash = await self.chain.send_native(
                        signing_key,
                        destination,
                        amount,
                        gas=gas_limit,
                        max_fee_per_gas=fees.max_fee_per_gas(),
                        max_priority_fee_per_gas=fees.priority_fee,
                    )
                    await self.chain.wait_for_receipt(tx_hash, self.settings.confirmation_timeout)
                    record.native_swept = amount
                    record.native_tx_hash = tx_hash
                    logger.info(f"Native sweep confirmed: {tx_hash}")
                else:
                    record.dust_remaining = True
                    logger.info(
                        f"Native balance {native_balance} wei too low to cover gas ({fee} wei). Dust remains."
                    )

        except Exception as e:
            logger.error(f"Sweep error for {record.wallet_address or 'unknown burner'}: {e}")
            record.status = SweepStatus.FAILED
            record.error = str(e)
            return record

        record.status = classify(record)
        logger.info(f"Sweep of {record.wallet_address} complete: {record.status.value}")
        return record
