"""DistributionOrchestrator -- per-family payout transaction sequences.

Dispatch is on the strategy family the registry resolves for a canonical
identity; each supported family has exactly one planner. Steps are sent
strictly in order and never retried here: once any step has been broadcast,
a failure surfaces as PartialDistributionError with the sequence attached.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, NoReturn

from eth_utils import decode_hex, to_checksum_address

from allodisburse.distribution.sequence import (
    STEP_ALLOCATE,
    STEP_DISTRIBUTE,
    STEP_UPDATE_DISTRIBUTION,
    DistributionSequence,
)
from allodisburse.domain.enums import StrategyFamily
from allodisburse.domain.models.distribution import DistributionPreview
from allodisburse.domain.models.ingest import ValidatedRow
from allodisburse.exceptions import (
    ChainMismatchError,
    DisbursementError,
    EmptyInputError,
    PartialDistributionError,
    TransactionRevertedError,
    UnsupportedStrategyError,
)
from allodisburse.infra.blockchain.base import TransactionSigner
from allodisburse.infra.blockchain.evm.abi import (
    STRATEGY_ALLOCATE,
    STRATEGY_DISTRIBUTE,
    STRATEGY_DISTRIBUTE_AMOUNTS,
    STRATEGY_DISTRIBUTE_WITH_DATA,
    STRATEGY_UPDATE_DISTRIBUTION,
    ContractFunction,
)
from allodisburse.ingest.csv_ingestor import calculate_total_amount
from allodisburse.merkle import builder
from allodisburse.strategy.registry import StrategyRegistry

logger = logging.getLogger(__name__)

# Allo Metadata.protocol value for IPFS pointers
IPFS_PROTOCOL = 1

# Rough preview constants, not a substitute for eth_estimateGas
BASE_TX_GAS = 21_000
ALLOCATE_GAS_PER_RECIPIENT = 45_000
DISTRIBUTE_GAS_PER_RECIPIENT = 60_000
UPDATE_DISTRIBUTION_GAS = 50_000


@dataclass(frozen=True)
class PlannedStep:
    name: str
    function: ContractFunction
    args: tuple[Any, ...]

    @property
    def calldata(self) -> str:
        return self.function.encode_call(*self.args)


@dataclass(frozen=True)
class DistributionPlan:
    steps: list[PlannedStep]
    merkle_root: str | None = None


def _columns(rows: list[ValidatedRow]) -> tuple[list[str], list[int]]:
    return [r.checksummed_address for r in rows], [r.parsed_amount for r in rows]


def plan_direct_grants(rows: list[ValidatedRow], metadata_pointer: str) -> DistributionPlan:
    addresses, amounts = _columns(rows)
    return DistributionPlan(steps=[
        PlannedStep(STEP_ALLOCATE, STRATEGY_ALLOCATE, (addresses, amounts)),
        PlannedStep(STEP_DISTRIBUTE, STRATEGY_DISTRIBUTE_WITH_DATA, (addresses, b"")),
    ])


def plan_micro_grants(rows: list[ValidatedRow], metadata_pointer: str) -> DistributionPlan:
    addresses, amounts = _columns(rows)
    return DistributionPlan(steps=[
        PlannedStep(STEP_ALLOCATE, STRATEGY_ALLOCATE, (addresses, amounts)),
        PlannedStep(STEP_DISTRIBUTE, STRATEGY_DISTRIBUTE, (addresses,)),
    ])


def plan_merkle_direct_transfer(rows: list[ValidatedRow], metadata_pointer: str) -> DistributionPlan:
    distribution = builder.build(rows)
    addresses, amounts = _columns(rows)
    return DistributionPlan(
        steps=[
            PlannedStep(
                STEP_UPDATE_DISTRIBUTION,
                STRATEGY_UPDATE_DISTRIBUTION,
                (decode_hex(distribution.root), (IPFS_PROTOCOL, metadata_pointer)),
            ),
            PlannedStep(STEP_DISTRIBUTE, STRATEGY_DISTRIBUTE_AMOUNTS, (addresses, amounts, b"")),
        ],
        merkle_root=distribution.root,
    )


Planner = Callable[[list[ValidatedRow], str], DistributionPlan]

PLANNERS: dict[StrategyFamily, Planner] = {
    StrategyFamily.DIRECT_GRANTS: plan_direct_grants,
    StrategyFamily.MICRO_GRANTS: plan_micro_grants,
    StrategyFamily.MERKLE_DIRECT_TRANSFER: plan_merkle_direct_transfer,
}


class DistributionOrchestrator:
    def __init__(
        self,
        registry: StrategyRegistry,
        confirm_intermediate_steps: bool = True,
        default_metadata_pointer: str = "",
    ) -> None:
        self._registry = registry
        self._confirm = confirm_intermediate_steps
        self._default_pointer = default_metadata_pointer

    def _family(self, canonical_identity: str | None) -> StrategyFamily:
        family = self._registry.family_for(canonical_identity)
        if family not in PLANNERS:
            raise UnsupportedStrategyError(canonical_identity)
        return family

    async def execute(
        self,
        canonical_identity: str,
        strategy_address: str,
        valid_rows: list[ValidatedRow],
        signer: TransactionSigner,
        chain_id: int,
        metadata_pointer: str = "",
    ) -> list[str]:
        """Run the payout sequence and return the submitted tx hashes in order."""
        sequence = await self.execute_sequence(
            canonical_identity, strategy_address, valid_rows, signer, chain_id, metadata_pointer,
        )
        return sequence.tx_hashes

    async def execute_sequence(
        self,
        canonical_identity: str,
        strategy_address: str,
        valid_rows: list[ValidatedRow],
        signer: TransactionSigner,
        chain_id: int,
        metadata_pointer: str = "",
    ) -> DistributionSequence:
        family = self._family(canonical_identity)
        if signer.chain_id != chain_id:
            raise ChainMismatchError(expected=chain_id, actual=signer.chain_id)
        if not valid_rows:
            raise EmptyInputError("No recipients to distribute to")

        strategy_address = to_checksum_address(strategy_address)
        plan = PLANNERS[family](valid_rows, metadata_pointer or self._default_pointer)
        sequence = DistributionSequence(
            canonical_identity=canonical_identity,
            family=family,
            chain_id=chain_id,
            strategy_address=strategy_address,
            merkle_root=plan.merkle_root,
        )

        logger.info(
            "Distributing to %d recipients via %s (%s) on chain %d: %s",
            len(valid_rows), canonical_identity, strategy_address, chain_id,
            " -> ".join(s.name for s in plan.steps),
        )

        last = len(plan.steps) - 1
        for i, step in enumerate(plan.steps):
            try:
                tx_hash = await signer.send_transaction(strategy_address, step.calldata)
            except DisbursementError as e:
                self._raise_step_failure(sequence, step.name, e)

            sequence.record(step.name, tx_hash)
            logger.info("Step %s submitted: %s", step.name, tx_hash)
            if i == last or not self._confirm:
                continue

            try:
                await signer.wait_for_receipt(tx_hash)
            except TransactionRevertedError as e:
                sequence.discard_last()
                self._raise_step_failure(sequence, step.name, e)
            except DisbursementError as e:
                # Broadcast but unconfirmed: the step stays recorded
                self._raise_step_failure(sequence, step.name, e)
            sequence.confirm(tx_hash)

        return sequence

    @staticmethod
    def _raise_step_failure(sequence: DistributionSequence, step_name: str, error: DisbursementError) -> NoReturn:
        if not sequence.steps:
            logger.warning("Step %s failed before anything reached the chain: %s", step_name, error)
            raise error
        logger.error(
            "Step %s failed in state %s; chain state may be partially advanced",
            step_name, sequence.state.value,
        )
        raise PartialDistributionError(sequence, step_name, error) from error

    def prepare_distribution_data(
        self, canonical_identity: str | None, valid_rows: list[ValidatedRow],
    ) -> DistributionPreview:
        """Read-only preview of what ``execute`` would submit."""
        family = self._registry.family_for(canonical_identity)
        can_distribute = family in PLANNERS and bool(valid_rows)
        requires_allocation = family in (StrategyFamily.DIRECT_GRANTS, StrategyFamily.MICRO_GRANTS)
        requires_merkle_root = family == StrategyFamily.MERKLE_DIRECT_TRANSFER
        n = len(valid_rows)

        gas = 0
        if can_distribute:
            gas = BASE_TX_GAS + DISTRIBUTE_GAS_PER_RECIPIENT * n
            if requires_allocation:
                gas += BASE_TX_GAS + ALLOCATE_GAS_PER_RECIPIENT * n
            if requires_merkle_root:
                gas += BASE_TX_GAS + UPDATE_DISTRIBUTION_GAS

        return DistributionPreview(
            can_distribute=can_distribute,
            requires_allocation=requires_allocation,
            requires_merkle_root=requires_merkle_root,
            total_recipients=n,
            total_amount=calculate_total_amount(valid_rows),
            rough_gas_estimate=gas,
        )
