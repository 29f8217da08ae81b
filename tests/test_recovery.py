"""Tests for stranded burner recovery and the audit trail."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from launchproxy.audit import AuditTrail
from launchproxy.crypto import escrow_key
from launchproxy.errors import ChainError, SweepError
from launchproxy.ledger.database import get_db
from launchproxy.ledger.models import BurnerStatus
from launchproxy.ledger.repository import BurnerRepository
from launchproxy.services.recovery import RecoveryService
from launchproxy.services.sweeper import SweepEngine, SweepRecord, SweepStatus
from launchproxy.wallets.keys import BurnerKeyFactory
from conftest import REQUESTER_ADDRESS

OTHER_REQUESTER = "0x" + "0e" * 20


def make_notifier() -> MagicMock:
    notifier = MagicMock()
    notifier.send = AsyncMock(return_value=False)
    return notifier


async def add_burner(requester: str, seed: bytes, escrow: bool = True):
    wallet = BurnerKeyFactory().create(seed=seed)
    async with get_db() as session:
        await BurnerRepository(session).create_burner(
            wallet.address, requester, escrow_key(wallet.signing_key) if escrow else None
        )
    return wallet


async def stored_status(address: str) -> str:
    async with get_db() as session:
        return (await BurnerRepository(session).get_burner(address)).status


@pytest.fixture
def recovery(chain, settings) -> RecoveryService:
    audit = AuditTrail(notifier=make_notifier())
    return RecoveryService(chain, sweeper=SweepEngine(chain, settings), audit=audit)


@pytest.mark.usefixtures("app_db")
class TestRecoveryService:
    """Tests for RecoveryService."""

    @pytest.mark.asyncio
    async def test_list_unswept_reports_balance(self, chain, recovery):
        wallet = await add_burner(REQUESTER_ADDRESS, b"one")
        await add_burner(OTHER_REQUESTER, b"two", escrow=False)
        chain.fund(wallet.address, 12345)

        mine = await recovery.list_unswept(REQUESTER_ADDRESS)
        everyone = await recovery.list_unswept()

        assert len(mine) == 1
        assert mine[0].address == wallet.address
        assert mine[0].native_balance == 12345
        assert mine[0].recoverable
        assert len(everyone) == 2

    @pytest.mark.asyncio
    async def test_recover_sweeps_to_requester(self, chain, recovery):
        wallet = await add_burner(REQUESTER_ADDRESS, b"one")
        chain.fund(wallet.address, 10**15)
        before = chain.balance_of(REQUESTER_ADDRESS)

        record = await recovery.recover(wallet.address, REQUESTER_ADDRESS)

        assert record.status == SweepStatus.PARTIALLY_SWEPT
        assert chain.balance_of(REQUESTER_ADDRESS) == before + record.native_swept
        assert await stored_status(wallet.address) == BurnerStatus.SWEPT.value

    @pytest.mark.asyncio
    async def test_list_unswept_ignores_address_case(self, recovery):
        wallet = await add_burner(REQUESTER_ADDRESS, b"one")

        listed = await recovery.list_unswept(REQUESTER_ADDRESS.lower())

        assert [b.address for b in listed] == [wallet.address]

    @pytest.mark.asyncio
    async def test_disabled_sweep_stays_recoverable(self, chain, recovery):
        wallet = await add_burner(REQUESTER_ADDRESS, b"disabled")
        chain.fund(wallet.address, 10**15)
        disabled = await recovery.sweeper.sweep(wallet.signing_key, REQUESTER_ADDRESS, enabled=False)
        await recovery.audit.record_sweep_status(disabled)

        listed = await recovery.list_unswept(REQUESTER_ADDRESS)
        assert [(b.address, b.status) for b in listed] == [
            (wallet.address, BurnerStatus.SWEEP_DISABLED.value)
        ]

        summary = await recovery.cleanup()

        assert summary.swept == 1
        assert chain.balance_of(wallet.address) < 10**14
        assert await stored_status(wallet.address) == BurnerStatus.SWEPT.value

    @pytest.mark.asyncio
    async def test_recover_unknown_or_foreign(self, recovery):
        wallet = await add_burner(OTHER_REQUESTER, b"theirs")

        with pytest.raises(LookupError):
            await recovery.recover("0x" + "12" * 20)
        with pytest.raises(LookupError):
            await recovery.recover(wallet.address, REQUESTER_ADDRESS)

    @pytest.mark.asyncio
    async def test_recover_without_escrow(self, recovery):
        wallet = await add_burner(REQUESTER_ADDRESS, b"plain", escrow=False)

        with pytest.raises(SweepError, match="No escrowed key"):
            await recovery.recover(wallet.address)

    @pytest.mark.asyncio
    async def test_recover_failed_sweep_raises(self, chain, recovery):
        wallet = await add_burner(REQUESTER_ADDRESS, b"one")
        chain.fund(wallet.address, 10**15)
        chain.send_errors.append(ChainError("rpc down"))

        with pytest.raises(SweepError, match="rpc down"):
            await recovery.recover(wallet.address)

        assert await stored_status(wallet.address) == BurnerStatus.FAILED.value

    @pytest.mark.asyncio
    async def test_cleanup(self, chain, recovery):
        funded = await add_burner(REQUESTER_ADDRESS, b"funded")
        await add_burner(REQUESTER_ADDRESS, b"empty")
        await add_burner(OTHER_REQUESTER, b"no-key", escrow=False)
        chain.fund(funded.address, 10**15)

        summary = await recovery.cleanup()

        assert summary.checked == 3
        assert summary.swept == 1
        assert summary.skipped == 2
        assert summary.failed == 0
        recovery.audit.notifier.send.assert_awaited()

    @pytest.mark.asyncio
    async def test_sweep_with_key(self, chain, recovery):
        wallet = BurnerKeyFactory().create(seed=b"manual")
        chain.fund(wallet.address, 10**15)

        record = await recovery.sweep_with_key(wallet.signing_key, REQUESTER_ADDRESS)

        assert record.status == SweepStatus.PARTIALLY_SWEPT

    @pytest.mark.asyncio
    async def test_sweep_with_invalid_key(self, recovery):
        with pytest.raises(SweepError):
            await recovery.sweep_with_key("0x1234", REQUESTER_ADDRESS)


class TestAuditTrail:
    """Tests for best-effort audit writes."""

    @pytest.mark.asyncio
    async def test_persistence_failure_is_swallowed(self):
        def broken_session():
            raise RuntimeError("database is locked")

        notifier = make_notifier()
        audit = AuditTrail(notifier=notifier, session_provider=broken_session)

        ok = await audit.record_burner_created("0x" + "be" * 20, REQUESTER_ADDRESS)

        assert ok is False
        notifier.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_notifier_failure_is_swallowed(self, app_db):
        notifier = make_notifier()
        notifier.send.side_effect = RuntimeError("telegram down")
        audit = AuditTrail(notifier=notifier)

        ok = await audit.record_launch(
            name="Moon Cat", symbol="MCAT", requester_address=REQUESTER_ADDRESS, success=True
        )

        assert ok is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "record_fields, expected",
        [
            ({"status": SweepStatus.SWEPT}, BurnerStatus.SWEPT),
            ({"status": SweepStatus.PARTIALLY_SWEPT}, BurnerStatus.SWEPT),
            ({"status": SweepStatus.PARTIALLY_SWEPT, "dust_remaining": True}, BurnerStatus.PARTIALLY_SWEPT),
            ({"status": SweepStatus.SKIPPED}, BurnerStatus.SKIPPED),
            ({"status": SweepStatus.SKIPPED, "disabled": True}, BurnerStatus.SWEEP_DISABLED),
            ({"status": SweepStatus.FAILED, "error": "rpc down"}, BurnerStatus.FAILED),
        ],
    )
    async def test_sweep_status_mapping(self, app_db, record_fields, expected):
        wallet = await add_burner(REQUESTER_ADDRESS, b"mapped")
        audit = AuditTrail(notifier=make_notifier())
        record = SweepRecord(wallet_address=wallet.address, destination=REQUESTER_ADDRESS, **record_fields)

        await audit.record_sweep_status(record)

        assert await stored_status(wallet.address) == expected.value
