"""Collaborator interfaces supplied by the caller: a contract reader and a signer."""

from abc import ABC, abstractmethod
from typing import Any, Callable

from allodisburse.infra.blockchain.evm.abi import ContractFunction


class ContractReader(ABC):
    """Read-only access to one chain's contract state."""

    @abstractmethod
    async def read(self, address: str, function: ContractFunction, *args: Any) -> Any:
        """eth_call ``function`` on ``address`` and return the decoded result.

        Raises ContractCallError on revert/undecodable output and RpcError on
        transport failure.
        """

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        """Native balance in wei."""


class TransactionSigner(ABC):
    """Submits transactions on behalf of one account on one chain."""

    chain_id: int
    address: str

    @abstractmethod
    async def send_transaction(self, to: str, data: str) -> str:
        """Sign and broadcast a call. Returns the tx hash.

        Raises UserRejectedError if the signature is refused.
        """

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str) -> dict:
        """Block until mined. Raises TransactionRevertedError on status 0."""


ReaderFactory = Callable[[int], ContractReader]
