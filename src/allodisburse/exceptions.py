"""Error taxonomy for the disbursement engine.

Every error carries a ``retryable`` flag so callers can tell transient
RPC/network trouble apart from terminal failures such as a rejected signature.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from allodisburse.distribution.sequence import DistributionSequence


class DisbursementError(Exception):
    """Base class for all engine errors."""

    retryable: bool = False


class ExternalServiceError(DisbursementError):
    """An external service (RPC node, HTTP API) failed in a way worth retrying."""

    retryable = True


class RpcError(ExternalServiceError):
    """JSON-RPC transport failure or node-side error unrelated to contract logic."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class ContractCallError(DisbursementError):
    """A contract call reverted or returned data that could not be decoded."""

    def __init__(self, message: str, address: str | None = None, function: str | None = None) -> None:
        super().__init__(message)
        self.address = address
        self.function = function


class UserRejectedError(DisbursementError):
    """The signer refused to sign (EIP-1193 code 4001). Never retried automatically."""


class TransactionRevertedError(DisbursementError):
    """A submitted transaction was mined with status 0."""

    def __init__(self, tx_hash: str) -> None:
        super().__init__(f"Transaction {tx_hash} reverted")
        self.tx_hash = tx_hash


class EmptyInputError(DisbursementError, ValueError):
    """An operation that needs at least one recipient row got none."""


class UnsupportedStrategyError(DisbursementError):
    def __init__(self, canonical_identity: str | None) -> None:
        super().__init__(f"Unsupported strategy: {canonical_identity or 'unknown'}")
        self.canonical_identity = canonical_identity


class ChainMismatchError(DisbursementError):
    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Signer is connected to chain {actual}, expected chain {expected}")
        self.expected = expected
        self.actual = actual


class UnknownNetworkError(DisbursementError):
    def __init__(self, chain_id: int) -> None:
        super().__init__(f"Unsupported chain id: {chain_id}")
        self.chain_id = chain_id


class PoolNotFoundError(DisbursementError):
    def __init__(self, pool_id: int, chain_id: int) -> None:
        super().__init__(f"Pool {pool_id} not found on chain {chain_id}")
        self.pool_id = pool_id
        self.chain_id = chain_id


class TokenResolutionError(DisbursementError):
    def __init__(self, token_address: str, reason: str) -> None:
        super().__init__(f"Could not resolve token {token_address}: {reason}")
        self.token_address = token_address


class PartialDistributionError(DisbursementError):
    """A distribution sequence failed after at least one step went through.

    On-chain state is partially advanced; ``sequence`` records exactly which
    steps were submitted and which one failed. Resuming is up to the caller.
    """

    def __init__(self, sequence: DistributionSequence, failed_step: str, cause: BaseException) -> None:
        completed = ", ".join(f"{s.name}={s.tx_hash}" for s in sequence.steps) or "none"
        super().__init__(
            f"Distribution stopped at step '{failed_step}' in state '{sequence.state.value}' "
            f"(completed: {completed}): {cause}"
        )
        self.sequence = sequence
        self.failed_step = failed_step
        self.cause = cause
        self.retryable = getattr(cause, "retryable", False)
