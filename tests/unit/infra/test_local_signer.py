from unittest.mock import AsyncMock

import pytest
from eth_account import Account

from allodisburse.exceptions import ContractCallError, RpcError, TransactionRevertedError
from allodisburse.infra.blockchain.evm.signer import LocalAccountSigner

PRIVATE_KEY = "0x" + "11" * 32
STRATEGY = "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB"


@pytest.fixture()
def rpc():
    mock = AsyncMock()
    mock.get_transaction_count.return_value = 7
    mock.gas_price.return_value = 1_000_000_000
    mock.estimate_gas.return_value = 100_000
    mock.send_raw_transaction.return_value = "0x" + "ab" * 32
    return mock


@pytest.fixture()
def signer(rpc):
    return LocalAccountSigner.from_private_key(PRIVATE_KEY, rpc, chain_id=10, poll_interval=0)


class TestSendTransaction:
    async def test_signs_and_broadcasts(self, signer, rpc):
        tx_hash = await signer.send_transaction(STRATEGY.lower(), "0x1234")

        assert tx_hash == "0x" + "ab" * 32
        rpc.get_transaction_count.assert_awaited_once_with(signer.address)
        call = rpc.estimate_gas.call_args[0][0]
        assert call == {"from": signer.address, "to": STRATEGY, "data": "0x1234"}
        raw = rpc.send_raw_transaction.call_args[0][0]
        assert isinstance(raw, bytes)

    async def test_signed_payload_matches_local_signature(self, signer, rpc):
        await signer.send_transaction(STRATEGY, "0x1234")
        expected = Account.from_key(PRIVATE_KEY).sign_transaction({
            "to": STRATEGY,
            "data": "0x1234",
            "value": 0,
            "nonce": 7,
            "gas": 120_000,
            "gasPrice": 1_000_000_000,
            "chainId": 10,
        })
        assert rpc.send_raw_transaction.call_args[0][0] == expected.raw_transaction

    async def test_estimate_revert_propagates(self, signer, rpc):
        rpc.estimate_gas.side_effect = ContractCallError("eth_estimateGas reverted")
        with pytest.raises(ContractCallError):
            await signer.send_transaction(STRATEGY, "0x1234")
        rpc.send_raw_transaction.assert_not_awaited()

    def test_address_from_key(self, signer):
        assert signer.address == Account.from_key(PRIVATE_KEY).address


class TestWaitForReceipt:
    async def test_polls_until_mined(self, signer, rpc):
        rpc.get_transaction_receipt.side_effect = [None, None, {"status": "0x1", "blockNumber": "0x10"}]
        receipt = await signer.wait_for_receipt("0x01")
        assert receipt["blockNumber"] == "0x10"
        assert rpc.get_transaction_receipt.await_count == 3

    async def test_reverted(self, signer, rpc):
        rpc.get_transaction_receipt.return_value = {"status": "0x0"}
        with pytest.raises(TransactionRevertedError) as exc_info:
            await signer.wait_for_receipt("0x02")
        assert exc_info.value.tx_hash == "0x02"
        assert not exc_info.value.retryable

    async def test_gives_up(self, rpc):
        signer = LocalAccountSigner.from_private_key(PRIVATE_KEY, rpc, chain_id=10, poll_interval=0, max_polls=2)
        rpc.get_transaction_receipt.return_value = None
        with pytest.raises(RpcError):
            await signer.wait_for_receipt("0x03")
        assert rpc.get_transaction_receipt.await_count == 2
