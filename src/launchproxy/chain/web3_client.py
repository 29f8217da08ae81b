"""web3.py-backed chain client.

Uses the async web3 provider so that a cancelled dispatch attempt also stops
its in-flight RPC calls instead of blocking the event loop.
"""

import logging
from typing import Any, Optional, Sequence

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import TimeExhausted

from launchproxy.chain.base import ChainClient, FeeParams, TxReceipt
from launchproxy.config import get_settings
from launchproxy.errors import (
    ChainError,
    ConfirmationTimeoutError,
    StaleNonceError,
    TransactionRevertedError,
)

logger = logging.getLogger(__name__)

# Node error fragments meaning "this nonce is already used"
STALE_NONCE_MARKERS = (
    "nonce too low",
    "already known",
    "replacement transaction underpriced",
    "invalid nonce",
)


def is_stale_nonce_error(error: Exception) -> bool:
    """Check whether a broadcast error is a nonce collision."""
    message = str(error).lower()
    return any(marker in message for marker in STALE_NONCE_MARKERS)


class Web3ChainClient(ChainClient):
    """EVM client backed by AsyncWeb3 over HTTP."""

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        chain_id: Optional[int] = None,
        base_fee_fallback: Optional[int] = None,
        poll_latency: float = 2.0,
    ):
        settings = get_settings()
        self.rpc_url = rpc_url or settings.rpc_url
        self.chain_id = chain_id or settings.chain_id
        self.base_fee_fallback = (
            base_fee_fallback if base_fee_fallback is not None else settings.sweep_base_fee_fallback
        )
        self.poll_latency = poll_latency
        self._web3: Optional[AsyncWeb3] = None

    @property
    def web3(self) -> AsyncWeb3:
        """Lazy load web3 instance."""
        if self._web3 is None:
            self._web3 = AsyncWeb3(AsyncHTTPProvider(self.rpc_url))
        return self._web3

    async def get_native_balance(self, address: str) -> int:
        return await self.web3.eth.get_balance(Web3.to_checksum_address(address))

    async def get_nonce(self, address: str) -> int:
        return await self.web3.eth.get_transaction_count(
            Web3.to_checksum_address(address), "pending"
        )

    async def get_gas_price(self) -> int:
        return await self.web3.eth.gas_price

    async def get_fee_params(self) -> FeeParams:
        block = await self.web3.eth.get_block("latest")
        base_fee = block.get("baseFeePerGas") or self.base_fee_fallback
        priority_fee = await self.web3.eth.max_priority_fee
        return FeeParams(base_fee=int(base_fee), priority_fee=int(priority_fee))

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
        account = Account.from_key(signing_key)

        if nonce is None:
            nonce = await self.get_nonce(account.address)

        if max_fee_per_gas is None or max_priority_fee_per_gas is None:
            fees = await self.get_fee_params()
            max_fee_per_gas = fees.max_fee_per_gas()
            max_priority_fee_per_gas = fees.priority_fee

        tx = {
            "to": Web3.to_checksum_address(to),
            "value": value,
            "gas": gas,
            "nonce": nonce,
            "maxFeePerGas": max_fee_per_gas,
            "maxPriorityFeePerGas": max_priority_fee_per_gas,
            "chainId": self.chain_id,
        }
        return await self._sign_and_send(account, tx)

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
        contract = self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
        fn = getattr(contract.functions, fn_name)(*args)

        params: dict = {}
        if from_address:
            params["from"] = Web3.to_checksum_address(from_address)
        if value:
            params["value"] = value
        return await fn.call(params)

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
        account = Account.from_key(signing_key)
        contract = self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
        fn = getattr(contract.functions, fn_name)(*args)

        fees = await self.get_fee_params()
        params = {
            "from": account.address,
            "value": value,
            "nonce": nonce if nonce is not None else await self.get_nonce(account.address),
            "chainId": self.chain_id,
            "maxFeePerGas": fees.max_fee_per_gas(),
            "maxPriorityFeePerGas": fees.priority_fee,
        }
        if gas is not None:
            params["gas"] = gas

        # Estimates gas when not provided
        try:
            tx = await fn.build_transaction(params)
        except Exception as e:
            raise ChainError(f"Failed to build {fn_name} transaction: {e}") from e

        return await self._sign_and_send(account, tx)

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> TxReceipt:
        try:
            receipt = await self.web3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=timeout, poll_latency=self.poll_latency
            )
        except TimeExhausted as e:
            raise ConfirmationTimeoutError(tx_hash, timeout) from e

        if receipt["status"] == 0:
            raise TransactionRevertedError(tx_hash)

        return TxReceipt(
            tx_hash=tx_hash,
            block_number=receipt["blockNumber"],
            status=receipt["status"],
            gas_used=receipt.get("gasUsed", 0),
            logs=list(receipt.get("logs", [])),
        )

    async def _sign_and_send(self, account, tx: dict) -> str:
        """Sign with the given account and broadcast."""
        signed_tx = account.sign_transaction(tx)

        # web3.py 6.x+ uses raw_transaction, older versions use rawTransaction
        raw_tx = getattr(signed_tx, "raw_transaction", None) or signed_tx.rawTransaction

        try:
            tx_hash = await self.web3.eth.send_raw_transaction(raw_tx)
        except Exception as e:
            if is_stale_nonce_error(e):
                raise StaleNonceError(f"Nonce {tx.get('nonce')} rejected for {account.address}: {e}") from e
            raise ChainError(f"Broadcast failed: {e}") from e

        return Web3.to_hex(tx_hash)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rpc={self.rpc_url}, chain_id={self.chain_id})"
