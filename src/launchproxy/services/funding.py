"""Burner wallet funding.

Moves a bounded native amount from the requester's wallet to the burner and
blocks until the transfer is mined. Nothing downstream runs against an
unfunded burner.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from eth_account import Account
from web3 import Web3

from launchproxy.chain.base import ChainClient
from launchproxy.config import FundingMode, Settings, get_settings
from launchproxy.errors import (
    ChainError,
    ConfirmationTimeoutError,
    FundingError,
    StaleNonceError,
    TransactionRevertedError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaticFunding:
    """Fixed funding amount."""

    amount_wei: int

    async def resolve(self, chain: ChainClient) -> int:
        return self.amount_wei


@dataclass(frozen=True)
class DynamicFunding:
    """Base budget plus a gas allowance priced at the current gas price.

    amount = base_budget + safety_multiplier * gas_units * gas_price
    """

    base_budget_wei: int
    gas_units: int
    safety_multiplier: Decimal

    async def resolve(self, chain: ChainClient) -> int:
        gas_price = await chain.get_gas_price()
        gas_allowance = Decimal(self.safety_multiplier) * self.gas_units * gas_price
        return self.base_budget_wei + math.ceil(gas_allowance)


FundingPolicy = Union[StaticFunding, DynamicFunding]


def funding_policy_from_settings(settings: Optional[Settings] = None) -> FundingPolicy:
    """Build the configured funding policy."""
    settings = settings or get_settings()
    if settings.funding_mode == FundingMode.DYNAMIC:
        return DynamicFunding(
            base_budget_wei=Web3.to_wei(settings.funding_base_budget_eth, "ether"),
            gas_units=settings.funding_gas_units,
            safety_multiplier=settings.funding_safety_multiplier,
        )
    return StaticFunding(amount_wei=Web3.to_wei(settings.funding_static_eth, "ether"))


@dataclass
class FundingRecord:
    """Outcome of funding one burner wallet."""

    wallet_address: str
    amount_requested: int
    funding_tx_hash: str
    confirmed_at: Optional[datetime] = None

    @property
    def confirmed(self) -> bool:
        return self.confirmed_at is not None


class FundingCoordinator:
    """Funds burner wallets from the requester's wallet."""

    def __init__(self, chain: ChainClient, confirmation_timeout: Optional[float] = None):
        self.chain = chain
        self.confirmation_timeout = (
            confirmation_timeout
            if confirmation_timeout is not None
            else get_settings().confirmation_timeout
        )

    async def fund(
        self,
        source_key: str,
        burner_address: str,
        policy: FundingPolicy,
    ) -> FundingRecord:
        """Transfer the policy amount to the burner and wait for the receipt.

        The nonce is read fresh right before submission so concurrent launches
        from the same requester cannot reuse one. A stale-nonce rejection is
        retried once.

        Raises:
            FundingError: On insufficient balance, broadcast failure,
                confirmation timeout or revert
        """
        source_address = Account.from_key(source_key).address

        try:
            amount = await policy.resolve(self.chain)
            balance = await self.chain.get_native_balance(source_address)
        except ChainError as e:
            raise FundingError(f"Could not price funding: {e}") from e

        if balance < amount:
            raise FundingError(
                f"Insufficient balance to fund burner: have {balance} wei, need {amount} wei"
            )

        logger.info(f"Funding burner {burner_address} with {amount} wei from {source_address}")

        tx_hash = await self._submit(source_key, source_address, burner_address, amount)

        try:
            await self.chain.wait_for_receipt(tx_hash, self.confirmation_timeout)
        except ConfirmationTimeoutError as e:
            raise FundingError(f"Funding transaction not confirmed: {e}", tx_hash=tx_hash) from e
        except TransactionRevertedError as e:
            raise FundingError(f"Funding transaction reverted: {tx_hash}") from e

        record = FundingRecord(
            wallet_address=burner_address,
            amount_requested=amount,
            funding_tx_hash=tx_hash,
            confirmed_at=datetime.now(timezone.utc),
        )
        logger.info(f"Burner {burner_address} funded. Tx: {tx_hash}")
        return record

    async def _submit(
        self,
        source_key: str,
        source_address: str,
        burner_address: str,
        amount: int,
    ) -> str:
        """Broadcast the funding transfer, retrying once on a stale nonce."""
        for attempt in (1, 2):
            try:
                nonce = await self.chain.get_nonce(source_address)
                return await self.chain.send_native(source_key, burner_address, amount, nonce=nonce)
            except StaleNonceError as e:
                if attempt == 2:
                    raise FundingError(f"Funding nonce rejected twice: {e}") from e
                logger.warning(f"Stale nonce for {source_address}, refetching: {e}")
            except ChainError as e:
                raise FundingError(f"Funding broadcast failed: {e}") from e

        raise FundingError("Funding was not submitted")
