"""In-memory state machine for one distribution attempt.

  direct / micro grants:  pending -> allocated -> distributed
  merkle direct transfer: pending -> root_set  -> distributed

A step is recorded as soon as its transaction is broadcast and marked
``confirmed`` once its receipt arrives. A step whose receipt shows a revert is
discarded, so after a failure ``state`` and ``steps`` list every transaction
that may have changed on-chain state.
"""

from dataclasses import dataclass, field

from allodisburse.domain.enums import SequenceState, StrategyFamily

STEP_ALLOCATE = "allocate"
STEP_UPDATE_DISTRIBUTION = "updateDistribution"
STEP_DISTRIBUTE = "distribute"

_TRANSITIONS: dict[tuple[SequenceState, str], SequenceState] = {
    (SequenceState.PENDING, STEP_ALLOCATE): SequenceState.ALLOCATED,
    (SequenceState.PENDING, STEP_UPDATE_DISTRIBUTION): SequenceState.ROOT_SET,
    (SequenceState.ALLOCATED, STEP_DISTRIBUTE): SequenceState.DISTRIBUTED,
    (SequenceState.ROOT_SET, STEP_DISTRIBUTE): SequenceState.DISTRIBUTED,
}


@dataclass
class SequenceStep:
    name: str
    tx_hash: str
    confirmed: bool = False


@dataclass
class DistributionSequence:
    canonical_identity: str
    family: StrategyFamily
    chain_id: int
    strategy_address: str
    state: SequenceState = SequenceState.PENDING
    steps: list[SequenceStep] = field(default_factory=list)
    merkle_root: str | None = None

    def record(self, step_name: str, tx_hash: str) -> SequenceState:
        """Mark ``step_name`` as submitted and advance the state."""
        next_state = _TRANSITIONS.get((self.state, step_name))
        if next_state is None:
            raise ValueError(f"Step '{step_name}' is not allowed in state '{self.state.value}'")
        self.steps.append(SequenceStep(name=step_name, tx_hash=tx_hash))
        self.state = next_state
        return next_state

    def confirm(self, tx_hash: str) -> None:
        for step in self.steps:
            if step.tx_hash == tx_hash:
                step.confirmed = True
                return
        raise ValueError(f"No step with transaction {tx_hash}")

    def discard_last(self) -> SequenceStep:
        """Drop the latest step (its transaction reverted) and restore the prior state."""
        if not self.steps:
            raise ValueError("No step to discard")
        step = self.steps.pop()
        state = SequenceState.PENDING
        for kept in self.steps:
            state = _TRANSITIONS[(state, kept.name)]
        self.state = state
        return step

    @property
    def tx_hashes(self) -> list[str]:
        return [s.tx_hash for s in self.steps]

    @property
    def is_complete(self) -> bool:
        return self.state == SequenceState.DISTRIBUTED

    @property
    def is_partial(self) -> bool:
        return bool(self.steps) and not self.is_complete
