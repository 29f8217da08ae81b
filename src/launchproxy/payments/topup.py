"""Stable token top-up for x402 payments.

When the burner holds less of the payment token than a challenge asks for, a
fixed native amount is swapped through the Uniswap V3 router with a
minimum-output floor.
"""

import logging
from typing import Optional

from launchproxy.chain.abis import SWAP_ROUTER_ABI
from launchproxy.chain.base import ChainClient
from launchproxy.chain.erc20 import address_of, get_token_balance
from launchproxy.config import Settings, get_settings
from launchproxy.errors import PaymentError

logger = logging.getLogger(__name__)


async def ensure_stable_balance(
    chain: ChainClient,
    signing_key: str,
    token: str,
    required_units: int,
    settings: Optional[Settings] = None,
) -> Optional[str]:
    """Make sure the key's address holds at least `required_units` of `token`.

    Returns:
        The swap tx hash if a top-up was needed, None otherwise

    Raises:
        PaymentError: If the balance is still short after the swap
    """
    settings = settings or get_settings()
    owner = address_of(signing_key)

    balance = await get_token_balance(chain, token, owner)
    if balance >= required_units:
        logger.info(f"Sufficient stable balance at {owner}: {balance} units")
        return None

    amount_in = settings.topup_swap_amount_wei
    logger.info(
        f"Stable balance {balance} < {required_units} at {owner}. "
        f"Swapping {amount_in} wei via router {settings.swap_router_address}"
    )

    params = (
        settings.weth_address,
        token,
        settings.swap_pool_fee,
        owner,
        amount_in,
        settings.topup_min_output_units,
        0,  # sqrtPriceLimitX96
    )
    tx_hash = await chain.transact(
        signing_key,
        settings.swap_router_address,
        SWAP_ROUTER_ABI,
        "exactInputSingle",
        [params],
        value=amount_in,
    )
    await chain.wait_for_receipt(tx_hash, settings.confirmation_timeout)
    logger.info(f"Top-up swap confirmed: {tx_hash}")

    balance = await get_token_balance(chain, token, owner)
    if balance < required_units:
        raise PaymentError(f"stable balance {balance} still below {required_units} after top-up")

    return tx_hash
