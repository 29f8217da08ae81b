"""Pytest configuration and fixtures."""

import hashlib
import os
from collections import defaultdict
from typing import Any, AsyncGenerator, Optional, Sequence

import pytest
import pytest_asyncio
from eth_account import Account
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["DEBUG"] = "false"
os.environ["MASTER_KEY"] = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA="
os.environ["ESCROW_BURNER_KEYS"] = "true"
os.environ["ADMIN_TOKEN"] = "test-admin-token"

from launchproxy.chain.base import ChainClient, FeeParams, TxReceipt
from launchproxy.config import Settings, SweepMode
from launchproxy.crypto import SessionData
from launchproxy.errors import ChainError, StaleNonceError, TransactionRevertedError
from launchproxy.ledger.database import close_db, configure_engine, init_db
from launchproxy.ledger.models import Base
from launchproxy.ledger.repository import BurnerRepository
from launchproxy.schemas import LaunchRequest

REQUESTER_KEY = "0x" + "11" * 32
REQUESTER_ADDRESS = Account.from_key(REQUESTER_KEY).address

USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
PAY_GATE = "0x" + "9a" * 20
FACTORY = "0x" + "fa" * 20
DEPLOYED_TOKEN = "0x" + "ab" * 20
AGENT_URL = "https://agent.test/v2"
REWARD_WALLET = "0x" + "cc" * 20

ONE_ETH = 10**18
GWEI = 10**9


class FakeChain(ChainClient):
    """In-memory EVM: balances, nonces, ERC20 transfers, swap and factory calls.

    Gas is not charged, only transferred values move.
    """

    def __init__(
        self,
        gas_price: int = GWEI,
        base_fee: int = GWEI,
        priority_fee: int = GWEI // 10,
        stable_per_eth: int = 3000 * 10**6,
    ):
        self.gas_price = gas_price
        self.base_fee = base_fee
        self.priority_fee = priority_fee
        self.stable_per_eth = stable_per_eth

        self.native: dict[str, int] = defaultdict(int)
        self.tokens: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self.nonces: dict[str, int] = defaultdict(int)

        self.transactions: list[dict] = []
        self.send_errors: list[Exception] = []
        self.revert_hashes: set[str] = set()
        self.receipt_error: Optional[Exception] = None
        self.receipt_errors: list[Exception] = []
        self.deploy_error: Optional[Exception] = None
        self._counter = 0

    # Helpers for tests

    def fund(self, address: str, wei: int) -> None:
        self.native[address.lower()] += wei

    def fund_token(self, token: str, address: str, units: int) -> None:
        self.tokens[token.lower()][address.lower()] += units

    def balance_of(self, address: str) -> int:
        return self.native[address.lower()]

    def token_balance_of(self, token: str, address: str) -> int:
        return self.tokens[token.lower()][address.lower()]

    def calls_to(self, fn_name: str) -> list[dict]:
        return [tx for tx in self.transactions if tx["fn"] == fn_name]

    def _next_hash(self) -> str:
        self._counter += 1
        return "0x" + hashlib.sha256(f"tx-{self._counter}".encode()).hexdigest()

    def _use_nonce(self, sender: str, nonce: Optional[int]) -> None:
        current = self.nonces[sender]
        if nonce is not None and nonce < current:
            raise StaleNonceError(f"nonce too low: {nonce} < {current}")
        self.nonces[sender] = current + 1

    # ChainClient

    async def get_native_balance(self, address: str) -> int:
        return self.native[address.lower()]

    async def get_nonce(self, address: str) -> int:
        return self.nonces[address.lower()]

    async def get_gas_price(self) -> int:
        return self.gas_price

    async def get_fee_params(self) -> FeeParams:
        return FeeParams(base_fee=self.base_fee, priority_fee=self.priority_fee)

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
        if self.send_errors:
            raise self.send_errors.pop(0)

        sender = Account.from_key(signing_key).address.lower()
        self._use_nonce(sender, nonce)
        if self.native[sender] < value:
            raise ChainError("insufficient funds for transfer")

        self.native[sender] -= value
        self.native[to.lower()] += value

        tx_hash = self._next_hash()
        self.transactions.append(
            {
                "fn": "native",
                "hash": tx_hash,
                "from": sender,
                "to": to.lower(),
                "value": value,
                "nonce": nonce,
                "gas": gas,
                "max_fee_per_gas": max_fee_per_gas,
            }
        )
        return tx_hash

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
        if fn_name == "balanceOf":
            return self.tokens[address.lower()][args[0].lower()]
        if fn_name == "deployToken":
            if self.deploy_error:
                raise self.deploy_error
            return DEPLOYED_TOKEN
        raise NotImplementedError(fn_name)

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
        if self.send_errors:
            raise self.send_errors.pop(0)

        sender = Account.from_key(signing_key).address.lower()
        tx_hash = self._next_hash()
        record = {"fn": fn_name, "hash": tx_hash, "from": sender, "to": address.lower(), "value": value, "args": args}

        if self.native[sender] < value:
            raise ChainError("insufficient funds for value")

        if fn_name == "transfer":
            recipient, amount = args
            token = self.tokens[address.lower()]
            if token[sender] < amount:
                raise ChainError("execution reverted: transfer amount exceeds balance")
            token[sender] -= amount
            token[recipient.lower()] += amount
        elif fn_name == "exactInputSingle":
            _, token_out, _, recipient, amount_in, min_out, _ = args[0]
            self.native[sender] -= value
            amount_out = amount_in * self.stable_per_eth // ONE_ETH
            if amount_out < min_out:
                self.native[sender] += value
                self.revert_hashes.add(tx_hash)
            else:
                self.tokens[token_out.lower()][recipient.lower()] += amount_out
        elif fn_name == "deployToken":
            if self.deploy_error:
                raise self.deploy_error
        else:
            raise NotImplementedError(fn_name)

        self._use_nonce(sender, nonce)
        self.transactions.append(record)
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> TxReceipt:
        if self.receipt_errors:
            raise self.receipt_errors.pop(0)
        if self.receipt_error:
            raise self.receipt_error
        if tx_hash in self.revert_hashes:
            raise TransactionRevertedError(tx_hash)
        return TxReceipt(tx_hash=tx_hash, block_number=self._counter, status=1, gas_used=21_000)


@pytest.fixture
def chain() -> FakeChain:
    """Fake chain with a funded requester."""
    fake = FakeChain()
    fake.fund(REQUESTER_ADDRESS, ONE_ETH)
    return fake


@pytest.fixture
def requester() -> SessionData:
    return SessionData(address=REQUESTER_ADDRESS, private_key=REQUESTER_KEY)


@pytest.fixture
def settings() -> Settings:
    """Settings tuned for fast tests."""
    return Settings(
        sweep_mode=SweepMode.INLINE,
        dispatch_max_attempts=3,
        dispatch_attempt_timeout=1.0,
        dispatch_retry_delay=0.0,
        confirmation_timeout=5.0,
        clanker_factory_address=FACTORY,
        agent_api_url=AGENT_URL,
        agent_api_key="",
    )


@pytest_asyncio.fixture
async def app_db() -> AsyncGenerator[None, None]:
    """Point the application database at a fresh in-memory sqlite."""
    configure_engine("sqlite+aiosqlite:///:memory:")
    await init_db()
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_engine():
    """Create in-memory database engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def burner_repo(db_session: AsyncSession) -> BurnerRepository:
    return BurnerRepository(db_session)


@pytest.fixture
def launch_request() -> LaunchRequest:
    return LaunchRequest(
        name="Moon Cat",
        symbol="MCAT",
        description="A cat on the moon",
        image="ipfs://QmMoonCat",
        launcherType="x",
        launcher="mooncat",
        feeType="wallet",
        fee=REWARD_WALLET,
    )
