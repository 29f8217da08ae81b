"""EVM chain access.

- ChainClient: abstract interface used by every on-chain step
- Web3ChainClient: async web3.py implementation
"""

from functools import lru_cache

from launchproxy.chain.base import ChainClient, FeeParams, TxReceipt
from launchproxy.chain.web3_client import Web3ChainClient


@lru_cache(maxsize=1)
def get_chain_client() -> ChainClient:
    """Get the process-wide chain client."""
    return Web3ChainClient()


__all__ = [
    "ChainClient",
    "FeeParams",
    "TxReceipt",
    "Web3ChainClient",
    "get_chain_client",
]
