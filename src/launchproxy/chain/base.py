"""Base interface for EVM chain access.

Every on-chain effect of a launch goes through a ChainClient:

1. Read balances, nonces and fee parameters
2. Build and sign a transaction with the caller's key
3. Broadcast it and return the hash
4. Block on the receipt when the caller needs the confirmed effect

Signing keys are passed per call and never stored on the client.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeeParams:
    """EIP-1559 fee inputs.

    Attributes:
        base_fee: Base fee of the latest block (wei)
        priority_fee: Suggested priority fee (wei)
    """
    base_fee: int
    priority_fee: int

    def max_fee_per_gas(self) -> int:
        """Standard EIP-1559 ceiling: 2 x base fee + priority fee."""
        return 2 * self.base_fee + self.priority_fee


@dataclass
class TxReceipt:
    """Minimal view of a mined transaction."""
    tx_hash: str
    block_number: int
    status: int
    gas_used: int = 0
    logs: Optional[list] = None


class ChainClient(ABC):
    """Abstract EVM client used by funding, payment, fallback and sweep."""

    @abstractmethod
    async def get_native_balance(self, address: str) -> int:
        """Native balance in wei."""
        pass

    @abstractmethod
    async def get_nonce(self, address: str) -> int:
        """Next transaction sequence number, including pending transactions."""
        pass

    @abstractmethod
    async def get_gas_price(self) -> int:
        """Current legacy gas price in wei."""
        pass

    @abstractmethod
    async def get_fee_params(self) -> FeeParams:
        """Current base fee and priority fee."""
        pass

    @abstractmethod
    async def send_native(
        self,
        signing_key: str,
        to: str,
        value: int,
        *,
        nonce: Optional[int] = None,
        gas: int = 21_000,
        max_fee_per_gas: Optional[int] = None,
        max_priority_fee_per_gas: Optional[int] = None,
    ) -> str:
        """Sign and broadcast a native transfer.

        Raises:
            StaleNonceError: If the node rejects the nonce as already used
        """
        pass

    @abstractmethod
    async def call(
        self,
        address: str,
        abi: Sequence[dict],
        fn_name: str,
        args: Sequence[Any] = (),
        *,
        from_address: Optional[str] = None,
        value: int = 0,
    ) -> Any:
        """Execute a read-only contract call (or simulate a write)."""
        pass

    @abstractmethod
    async def transact(
        self,
        signing_key: str,
        address: str,
        abi: Sequence[dict],
        fn_name: str,
        args: Sequence[Any] = (),
        *,
        value: int = 0,
        gas: Optional[int] = None,
        nonce: Optional[int] = None,
    ) -> str:
        """Sign and broadcast a contract call, returning the tx hash."""
        pass

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> TxReceipt:
        """Block until the transaction is mined.

        Raises:
            ConfirmationTimeoutError: If not mined within timeout
            TransactionRevertedError: If mined with status 0
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
