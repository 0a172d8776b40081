from typing import Any

import pytest

from allodisburse.exceptions import ContractCallError
from allodisburse.infra.blockchain.base import ContractReader, TransactionSigner
from allodisburse.infra.blockchain.evm.abi import ContractFunction
from allodisburse.networks import build_default_networks
from allodisburse.strategy.registry import build_default_registry


class FakeReader(ContractReader):
    """In-memory contract state keyed by (address, function).

    A value may be a plain result, an exception to raise, or a callable that
    receives the call arguments. Unset functions revert like a missing selector.
    """

    def __init__(self) -> None:
        self.responses: dict[tuple[str, ContractFunction], Any] = {}
        self.balances: dict[str, int] = {}
        self.calls: list[tuple[str, str, tuple]] = []

    def set(self, address: str, function: ContractFunction, value: Any) -> None:
        self.responses[(address.lower(), function)] = value

    async def read(self, address: str, function: ContractFunction, *args: Any) -> Any:
        self.calls.append((address.lower(), function.name, args))
        key = (address.lower(), function)
        if key not in self.responses:
            raise ContractCallError(f"{function.signature} reverted", address=address, function=function.name)
        value = self.responses[key]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(*args)
        return value

    async def get_balance(self, address: str) -> int:
        self.calls.append((address.lower(), "eth_getBalance", ()))
        return self.balances.get(address.lower(), 0)

    def called(self, function_name: str) -> int:
        return sum(1 for _, name, _ in self.calls if name == function_name)


class FakeSigner(TransactionSigner):
    """Records every submission; ``fail_on[i]`` makes the i-th send raise."""

    def __init__(self, chain_id: int = 10, address: str = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045") -> None:
        self.chain_id = chain_id
        self.address = address
        self.attempts = 0
        self.sent: list[tuple[str, str]] = []
        self.confirmed: list[str] = []
        self.events: list[str] = []
        self.fail_on: dict[int, Exception] = {}
        self.fail_receipt: dict[str, Exception] = {}

    async def send_transaction(self, to: str, data: str) -> str:
        index = self.attempts
        self.attempts += 1
        if index in self.fail_on:
            raise self.fail_on[index]
        self.sent.append((to, data))
        tx_hash = "0x" + f"{index + 1:064x}"
        self.events.append(f"send:{data[:10]}")
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> dict:
        if tx_hash in self.fail_receipt:
            raise self.fail_receipt[tx_hash]
        self.confirmed.append(tx_hash)
        self.events.append(f"wait:{tx_hash}")
        return {"transactionHash": tx_hash, "status": "0x1"}


@pytest.fixture()
def networks():
    return build_default_networks()


@pytest.fixture()
def strategy_registry(networks):
    return build_default_registry(networks)


@pytest.fixture()
def reader():
    return FakeReader()


@pytest.fixture()
def reader_factory(reader):
    return lambda chain_id: reader


@pytest.fixture()
def signer():
    return FakeSigner(chain_id=10)


@pytest.fixture()
def make_signer():
    return FakeSigner
