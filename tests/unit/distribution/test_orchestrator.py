"""Tests for DistributionOrchestrator -- step ordering, confirmation, partial failure."""

import pytest
from eth_abi import decode
from eth_utils import decode_hex

from allodisburse.distribution.orchestrator import DistributionOrchestrator
from allodisburse.domain.enums import SequenceState
from allodisburse.domain.models import ValidatedRow
from allodisburse.exceptions import (
    ChainMismatchError,
    EmptyInputError,
    PartialDistributionError,
    RpcError,
    TransactionRevertedError,
    UnsupportedStrategyError,
    UserRejectedError,
)
from allodisburse.infra.blockchain.evm.abi import (
    STRATEGY_ALLOCATE,
    STRATEGY_DISTRIBUTE,
    STRATEGY_DISTRIBUTE_AMOUNTS,
    STRATEGY_DISTRIBUTE_WITH_DATA,
    STRATEGY_UPDATE_DISTRIBUTION,
)
from allodisburse.merkle import builder

STRATEGY = "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB"
ADDR_A = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
ADDR_B = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"

DIRECT = "DirectGrantsSimpleStrategy"
MICRO = "MicroGrantsStrategy"
MERKLE = "DonationVotingMerkleDistributionDirectTransferStrategy"


def _tx(n: int) -> str:
    return "0x" + f"{n:064x}"


@pytest.fixture()
def rows():
    return [
        ValidatedRow(checksummed_address=ADDR_A, parsed_amount=100, source_row_number=2),
        ValidatedRow(checksummed_address=ADDR_B, parsed_amount=250, source_row_number=3),
    ]


@pytest.fixture()
def orchestrator(strategy_registry):
    return DistributionOrchestrator(strategy_registry, default_metadata_pointer="bafy-default")


def _args(data: str, types: list[str]) -> tuple:
    return decode(types, decode_hex(data)[4:])


class TestDirectGrants:
    async def test_allocate_then_distribute(self, orchestrator, signer, rows):
        hashes = await orchestrator.execute(DIRECT, STRATEGY.lower(), rows, signer, 10)

        assert hashes == [_tx(1), _tx(2)]
        (to1, data1), (to2, data2) = signer.sent
        assert to1 == to2 == STRATEGY
        assert data1.startswith(STRATEGY_ALLOCATE.selector)
        assert data2.startswith(STRATEGY_DISTRIBUTE_WITH_DATA.selector)
        addresses, amounts = _args(data1, ["address[]", "uint256[]"])
        assert [a.lower() for a in addresses] == [ADDR_A.lower(), ADDR_B.lower()]
        assert list(amounts) == [100, 250]

    async def test_waits_for_allocate_only(self, orchestrator, signer, rows):
        await orchestrator.execute(DIRECT, STRATEGY, rows, signer, 10)
        assert signer.events == [
            f"send:{STRATEGY_ALLOCATE.selector}",
            f"wait:{_tx(1)}",
            f"send:{STRATEGY_DISTRIBUTE_WITH_DATA.selector}",
        ]

    async def test_first_step_failure_sends_nothing(self, orchestrator, rows, make_signer):
        signer = make_signer()
        signer.fail_on[0] = UserRejectedError("User rejected the request")

        with pytest.raises(UserRejectedError):
            await orchestrator.execute(DIRECT, STRATEGY, rows, signer, 10)
        assert signer.sent == []

    async def test_distribute_failure_is_partial(self, orchestrator, rows, make_signer):
        signer = make_signer()
        signer.fail_on[1] = RpcError("connection reset")

        with pytest.raises(PartialDistributionError) as exc_info:
            await orchestrator.execute(DIRECT, STRATEGY, rows, signer, 10)

        err = exc_info.value
        assert err.failed_step == "distribute"
        assert err.sequence.state == SequenceState.ALLOCATED
        assert err.sequence.tx_hashes == [_tx(1)]
        assert err.sequence.is_partial
        assert err.retryable
        assert isinstance(err.cause, RpcError)

    async def test_reverted_allocate_stops_before_distribute(self, orchestrator, rows, make_signer):
        signer = make_signer()
        signer.fail_receipt[_tx(1)] = TransactionRevertedError(_tx(1))

        with pytest.raises(TransactionRevertedError):
            await orchestrator.execute(DIRECT, STRATEGY, rows, signer, 10)
        assert len(signer.sent) == 1

    async def test_unconfirmed_allocate_is_partial(self, orchestrator, rows, make_signer):
        signer = make_signer()
        signer.fail_receipt[_tx(1)] = RpcError("receipt poll timed out")

        with pytest.raises(PartialDistributionError) as exc_info:
            await orchestrator.execute(DIRECT, STRATEGY, rows, signer, 10)

        err = exc_info.value
        assert err.failed_step == "allocate"
        assert err.sequence.state == SequenceState.ALLOCATED
        assert err.sequence.tx_hashes == [_tx(1)]
        assert not err.sequence.steps[0].confirmed
        assert len(signer.sent) == 1

    async def test_confirmation_flags(self, orchestrator, signer, rows):
        sequence = await orchestrator.execute_sequence(DIRECT, STRATEGY, rows, signer, 10)
        assert [s.confirmed for s in sequence.steps] == [True, False]

    async def test_without_confirmation(self, strategy_registry, signer, rows):
        orchestrator = DistributionOrchestrator(strategy_registry, confirm_intermediate_steps=False)
        await orchestrator.execute(DIRECT, STRATEGY, rows, signer, 10)
        assert signer.confirmed == []
        assert len(signer.sent) == 2


class TestMicroGrants:
    async def test_distribute_without_data(self, orchestrator, signer, rows):
        sequence = await orchestrator.execute_sequence(MICRO, STRATEGY, rows, signer, 10)

        assert sequence.is_complete
        assert [s.name for s in sequence.steps] == ["allocate", "distribute"]
        assert signer.sent[1][1].startswith(STRATEGY_DISTRIBUTE.selector)
        (addresses,) = _args(signer.sent[1][1], ["address[]"])
        assert len(addresses) == 2


class TestMerkleDirectTransfer:
    async def test_root_then_distribute(self, orchestrator, signer, rows):
        sequence = await orchestrator.execute_sequence(MERKLE, STRATEGY, rows, signer, 10, metadata_pointer="bafy123")

        expected_root = builder.build(rows).root
        assert sequence.merkle_root == expected_root
        assert sequence.state == SequenceState.DISTRIBUTED
        assert signer.events[1] == f"wait:{_tx(1)}"

        update, distribute = (data for _, data in signer.sent)
        assert update.startswith(STRATEGY_UPDATE_DISTRIBUTION.selector)
        assert distribute.startswith(STRATEGY_DISTRIBUTE_AMOUNTS.selector)
        root, metadata = _args(update, ["bytes32", "(uint256,string)"])
        assert "0x" + root.hex() == expected_root
        assert metadata == (1, "bafy123")
        _, amounts, data = _args(distribute, ["address[]", "uint256[]", "bytes"])
        assert list(amounts) == [100, 250]
        assert data == b""

    async def test_default_pointer(self, orchestrator, signer, rows):
        await orchestrator.execute(MERKLE, STRATEGY, rows, signer, 10)
        _, metadata = _args(signer.sent[0][1], ["bytes32", "(uint256,string)"])
        assert metadata == (1, "bafy-default")

    async def test_update_failure_raises_original(self, orchestrator, rows, make_signer):
        signer = make_signer()
        signer.fail_on[0] = RpcError("timeout")
        with pytest.raises(RpcError):
            await orchestrator.execute(MERKLE, STRATEGY, rows, signer, 10)

    async def test_distribute_failure_keeps_root_state(self, orchestrator, rows, make_signer):
        signer = make_signer()
        signer.fail_on[1] = UserRejectedError("rejected")

        with pytest.raises(PartialDistributionError) as exc_info:
            await orchestrator.execute(MERKLE, STRATEGY, rows, signer, 10)

        assert exc_info.value.sequence.state == SequenceState.ROOT_SET
        assert not exc_info.value.retryable


class TestPreconditions:
    @pytest.mark.parametrize("identity", ["QVSimpleStrategy", "RFPSimpleStrategy", "SQFSuperFluidStrategy", None, "Nope"])
    async def test_unsupported(self, orchestrator, signer, rows, identity):
        with pytest.raises(UnsupportedStrategyError):
            await orchestrator.execute(identity, STRATEGY, rows, signer, 10)
        assert signer.attempts == 0

    async def test_chain_mismatch(self, orchestrator, rows, make_signer):
        signer = make_signer(chain_id=1)
        with pytest.raises(ChainMismatchError) as exc_info:
            await orchestrator.execute(DIRECT, STRATEGY, rows, signer, 10)
        assert exc_info.value.expected == 10
        assert exc_info.value.actual == 1
        assert signer.attempts == 0

    async def test_empty_rows(self, orchestrator, signer):
        with pytest.raises(EmptyInputError):
            await orchestrator.execute(DIRECT, STRATEGY, [], signer, 10)
        assert signer.attempts == 0

    async def test_alias_resolves_family(self, orchestrator, signer, rows):
        hashes = await orchestrator.execute("MicroGrantsv1", STRATEGY, rows, signer, 10)
        assert len(hashes) == 2


class TestPrepareDistributionData:
    def test_direct(self, orchestrator, rows):
        preview = orchestrator.prepare_distribution_data(DIRECT, rows)
        assert preview.can_distribute
        assert preview.requires_allocation
        assert not preview.requires_merkle_root
        assert preview.total_recipients == 2
        assert preview.total_amount == 350
        assert preview.rough_gas_estimate == (21_000 + 60_000 * 2) + (21_000 + 45_000 * 2)

    def test_merkle(self, orchestrator, rows):
        preview = orchestrator.prepare_distribution_data(MERKLE, rows)
        assert preview.requires_merkle_root
        assert not preview.requires_allocation
        assert preview.rough_gas_estimate == (21_000 + 60_000 * 2) + (21_000 + 50_000)

    def test_unsupported(self, orchestrator, rows):
        preview = orchestrator.prepare_distribution_data("QVSimpleStrategy", rows)
        assert not preview.can_distribute
        assert preview.rough_gas_estimate == 0
        assert preview.total_amount == 350

    def test_empty(self, orchestrator):
        preview = orchestrator.prepare_distribution_data(DIRECT, [])
        assert not preview.can_distribute
        assert preview.total_recipients == 0

    def test_does_not_touch_signer(self, orchestrator, signer, rows):
        orchestrator.prepare_distribution_data(MERKLE, rows)
        assert signer.attempts == 0
