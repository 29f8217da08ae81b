"""ERC20 helpers on top of a ChainClient."""

from decimal import Decimal

from eth_account import Account
from web3 import Web3

from launchproxy.chain.abis import ERC20_ABI
from launchproxy.chain.base import ChainClient

# ERC20 transfers need more gas than native sends
ERC20_TRANSFER_GAS = 100_000


async def get_token_balance(chain: ChainClient, token: str, owner: str) -> int:
    """Token balance in smallest units."""
    return int(await chain.call(token, ERC20_ABI, "balanceOf", [Web3.to_checksum_address(owner)]))


async def transfer_token(
    chain: ChainClient,
    signing_key: str,
    token: str,
    to: str,
    amount: int,
) -> str:
    """Send `amount` token units from the key's address to `to`."""
    return await chain.transact(
        signing_key,
        token,
        ERC20_ABI,
        "transfer",
        [Web3.to_checksum_address(to), amount],
        gas=ERC20_TRANSFER_GAS,
    )


def to_units(amount: Decimal, decimals: int) -> int:
    """Convert a human amount into token units.

    Raises:
        ValueError: If the amount is finer than the token's smallest unit
    """
    units = Decimal(amount) * (Decimal(10) ** decimals)
    if units != units.to_integral_value():
        raise ValueError(f"{amount} has more than {decimals} decimals")
    return int(units)


def from_units(units: int, decimals: int) -> Decimal:
    """Convert token units into a human amount."""
    return Decimal(units) / (Decimal(10) ** decimals)


def address_of(signing_key: str) -> str:
    """Checksummed address of a private key."""
    return Account.from_key(signing_key).address
