"""LocalAccountSigner -- signs with an eth-account key and broadcasts over JSON-RPC.

Browser wallets and custodial signers plug in by implementing
TransactionSigner directly; this one covers scripts and backends.
"""

import asyncio
import logging

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from allodisburse.exceptions import RpcError, TransactionRevertedError
from allodisburse.infra.blockchain.base import TransactionSigner
from allodisburse.infra.blockchain.evm.rpc_client import EvmRpcClient

logger = logging.getLogger(__name__)

GAS_LIMIT_MARGIN_PCT = 20  # headroom over eth_estimateGas


class LocalAccountSigner(TransactionSigner):
    def __init__(
        self,
        account: LocalAccount,
        rpc: EvmRpcClient,
        chain_id: int,
        poll_interval: float = 2.0,
        max_polls: int = 90,
    ) -> None:
        self._account = account
        self._rpc = rpc
        self.chain_id = chain_id
        self.address = account.address
        self._poll_interval = poll_interval
        self._max_polls = max_polls

    @classmethod
    def from_private_key(cls, private_key: str, rpc: EvmRpcClient, chain_id: int, **kwargs) -> "LocalAccountSigner":
        return cls(Account.from_key(private_key), rpc, chain_id, **kwargs)

    async def send_transaction(self, to: str, data: str) -> str:
        to = to_checksum_address(to)
        call = {"from": self.address, "to": to, "data": data}
        nonce, gas_price, gas = await asyncio.gather(
            self._rpc.get_transaction_count(self.address),
            self._rpc.gas_price(),
            self._rpc.estimate_gas(call),
        )

        tx = {
            "to": to,
            "data": data,
            "value": 0,
            "nonce": nonce,
            "gas": gas + gas * GAS_LIMIT_MARGIN_PCT // 100,
            "gasPrice": gas_price,
            "chainId": self.chain_id,
        }
        signed = self._account.sign_transaction(tx)
        tx_hash = await self._rpc.send_raw_transaction(signed.raw_transaction)
        logger.info("Sent TX %s to %s (nonce %d, chain %d)", tx_hash, to, nonce, self.chain_id)
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> dict:
        for _ in range(self._max_polls):
            receipt = await self._rpc.get_transaction_receipt(tx_hash)
            if receipt is not None:
                if int(receipt.get("status", "0x1"), 16) == 0:
                    raise TransactionRevertedError(tx_hash)
                return receipt
            await asyncio.sleep(self._poll_interval)
        raise RpcError(f"TX {tx_hash} not mined after {self._max_polls} polls")
