"""Tests for the burner ledger repository."""

from decimal import Decimal

import pytest

from launchproxy.ledger.models import BurnerStatus
from launchproxy.ledger.repository import BurnerRepository

REQUESTER = "0x" + "11" * 20
OTHER = "0x" + "22" * 20


def burner_address(n: int) -> str:
    return "0x" + f"{n:040x}"


class TestBurnerRepository:
    """Tests for BurnerRepository."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, burner_repo: BurnerRepository):
        created = await burner_repo.create_burner(burner_address(1), REQUESTER, "gAAAA-escrowed")

        fetched = await burner_repo.get_burner(burner_address(1))

        assert fetched is not None
        assert fetched.id == created.id
        assert fetched.status == BurnerStatus.CREATED.value
        assert fetched.escrowed_key == "gAAAA-escrowed"

    @pytest.mark.asyncio
    async def test_get_unknown(self, burner_repo: BurnerRepository):
        assert await burner_repo.get_burner(burner_address(99)) is None
        assert await burner_repo.mark_funded(burner_address(99), "0xabc", 1) is None
        assert await burner_repo.update_status(burner_address(99), BurnerStatus.SWEPT) is None

    @pytest.mark.asyncio
    async def test_mark_funded(self, burner_repo: BurnerRepository):
        await burner_repo.create_burner(burner_address(1), REQUESTER)

        burner = await burner_repo.mark_funded(burner_address(1), "0xfund", 700_000_000_000_000)

        assert burner.status == BurnerStatus.FUNDED.value
        assert burner.funding_tx_hash == "0xfund"
        assert burner.funding_amount_wei == Decimal(700_000_000_000_000)

    @pytest.mark.asyncio
    async def test_swept_clears_escrowed_key(self, burner_repo: BurnerRepository):
        await burner_repo.create_burner(burner_address(1), REQUESTER, "gAAAA-escrowed")

        burner = await burner_repo.update_status(
            burner_address(1), BurnerStatus.SWEPT, native_tx_hash="0xnative", stable_tx_hash="0xstable"
        )

        assert burner.escrowed_key is None
        assert burner.sweep_native_tx_hash == "0xnative"
        assert burner.sweep_stable_tx_hash == "0xstable"

    @pytest.mark.asyncio
    async def test_partial_sweep_keeps_escrowed_key(self, burner_repo: BurnerRepository):
        await burner_repo.create_burner(burner_address(1), REQUESTER, "gAAAA-escrowed")

        burner = await burner_repo.update_status(burner_address(1), BurnerStatus.PARTIALLY_SWEPT)

        assert burner.escrowed_key == "gAAAA-escrowed"

    @pytest.mark.asyncio
    async def test_failed_sweep_records_error(self, burner_repo: BurnerRepository):
        await burner_repo.create_burner(burner_address(1), REQUESTER)

        burner = await burner_repo.update_status(burner_address(1), BurnerStatus.FAILED, error="rpc down")

        assert burner.sweep_error == "rpc down"

    @pytest.mark.asyncio
    async def test_get_unswept_filters_status_and_requester(self, burner_repo: BurnerRepository):
        await burner_repo.create_burner(burner_address(1), REQUESTER)
        await burner_repo.create_burner(burner_address(2), REQUESTER)
        await burner_repo.create_burner(burner_address(3), REQUESTER)
        await burner_repo.create_burner(burner_address(4), OTHER)
        await burner_repo.update_status(burner_address(2), BurnerStatus.SWEPT)
        await burner_repo.update_status(burner_address(3), BurnerStatus.FAILED)

        mine = await burner_repo.get_unswept(REQUESTER)
        everyone = await burner_repo.get_unswept()

        assert [b.address for b in mine] == [burner_address(1), burner_address(3)]
        assert {b.address for b in everyone} == {burner_address(1), burner_address(3), burner_address(4)}

    @pytest.mark.asyncio
    async def test_launch_history(self, burner_repo: BurnerRepository):
        await burner_repo.record_launch(
            name="First", symbol="ONE", requester_address=REQUESTER, success=False, error="boom"
        )
        await burner_repo.record_launch(
            name="Second",
            symbol="TWO",
            requester_address=REQUESTER,
            success=True,
            burner_address=burner_address(1),
            tx_hash="0xdeploy",
            deployed_via_fallback=True,
        )
        await burner_repo.record_launch(name="Theirs", symbol="THR", requester_address=OTHER, success=True)

        launches = await burner_repo.get_launches(REQUESTER)

        assert [launch.name for launch in launches] == ["Second", "First"]
        assert launches[0].deployed_via_fallback is True
        assert launches[1].error == "boom"

    @pytest.mark.asyncio
    async def test_address_lookups_ignore_case(self, burner_repo: BurnerRepository):
        checksummed = "0x" + "Ab" * 20
        await burner_repo.create_burner(burner_address(1), checksummed)
        await burner_repo.record_launch(name="Mixed", symbol="MIX", requester_address=checksummed, success=True)

        assert len(await burner_repo.get_unswept(checksummed.lower())) == 1
        assert len(await burner_repo.get_launches(checksummed.upper().replace("0X", "0x"))) == 1
        assert await burner_repo.get_burner(burner_address(1).upper().replace("0X", "0x")) is not None

    @pytest.mark.asyncio
    async def test_disabled_and_dusty_burners_count_as_unswept(self, burner_repo: BurnerRepository):
        await burner_repo.create_burner(burner_address(1), REQUESTER)
        await burner_repo.create_burner(burner_address(2), REQUESTER)
        await burner_repo.create_burner(burner_address(3), REQUESTER)
        await burner_repo.update_status(burner_address(1), BurnerStatus.SWEEP_DISABLED)
        await burner_repo.update_status(burner_address(2), BurnerStatus.PARTIALLY_SWEPT)
        await burner_repo.update_status(burner_address(3), BurnerStatus.SKIPPED)

        unswept = await burner_repo.get_unswept(REQUESTER)

        assert [b.address for b in unswept] == [burner_address(1), burner_address(2)]
