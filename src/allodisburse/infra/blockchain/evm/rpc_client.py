"""Ethereum JSON-RPC client -- eth_call reads plus the calls a local signer needs."""

import logging
from typing import Any

from eth_utils import decode_hex, keccak
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from allodisburse.exceptions import ContractCallError, RpcError, UnknownNetworkError, UserRejectedError
from allodisburse.infra.blockchain.base import ContractReader
from allodisburse.infra.blockchain.evm.abi import ContractFunction
from allodisburse.infra.http.rate_limited_client import RateLimitedClient

logger = logging.getLogger(__name__)

# JSON-RPC error codes with a fixed meaning
REVERT_CODE = 3
USER_REJECTED_CODE = 4001


def _classify_rpc_error(method: str, error: dict) -> Exception:
    code = error.get("code")
    msg = error.get("message", str(error))
    if code == USER_REJECTED_CODE:
        return UserRejectedError(f"User rejected {method}: {msg}")
    if code == REVERT_CODE or "revert" in msg.lower():
        return ContractCallError(f"{method} reverted: {msg}")
    return RpcError(f"RPC error ({method}): {msg}", code=code)


class EvmRpcClient(ContractReader):
    """JSON-RPC client for one EVM chain."""

    def __init__(self, rpc_url: str, http_client: RateLimitedClient, chain_id: int | None = None) -> None:
        self._rpc_url = rpc_url
        self._http = http_client
        self.chain_id = chain_id
        self._request_id = 0

    async def _request(self, method: str, params: list) -> Any:
        """Execute one JSON-RPC call and return the result field."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }
        data = await self._http.post_json(self._rpc_url, payload)

        if not isinstance(data, dict):
            raise RpcError(f"Malformed RPC response for {method}")
        if "error" in data:
            raise _classify_rpc_error(method, data["error"])

        return data.get("result")

    @retry(
        retry=retry_if_exception_type(RpcError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _call(self, method: str, params: list) -> Any:
        return await self._request(method, params)

    async def eth_call(self, to: str, data: str, block: str = "latest") -> bytes:
        result = await self._call("eth_call", [{"to": to, "data": data}, block])
        return decode_hex(result or "0x")

    async def read(self, address: str, function: ContractFunction, *args: Any) -> Any:
        calldata = function.encode_call(*args)
        try:
            raw = await self.eth_call(address, calldata)
            return function.decode_result(raw)
        except ContractCallError as e:
            e.address = address
            e.function = function.name
            logger.debug("%s on %s failed: %s", function.signature, address, e)
            raise

    async def get_balance(self, address: str) -> int:
        result = await self._call("eth_getBalance", [address, "latest"])
        return int(result, 16)

    async def get_chain_id(self) -> int:
        result = await self._call("eth_chainId", [])
        return int(result, 16)

    async def get_transaction_count(self, address: str) -> int:
        result = await self._call("eth_getTransactionCount", [address, "pending"])
        return int(result, 16)

    async def estimate_gas(self, tx: dict) -> int:
        result = await self._call("eth_estimateGas", [tx])
        return int(result, 16)

    async def gas_price(self) -> int:
        result = await self._call("eth_gasPrice", [])
        return int(result, 16)

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        """Broadcast once. A node that already holds the TX still yields its hash."""
        try:
            return await self._request("eth_sendRawTransaction", ["0x" + raw_tx.hex()])
        except RpcError as e:
            if "already known" not in str(e).lower():
                raise
            logger.info("Transaction already in the mempool, continuing with its hash")
            return "0x" + keccak(raw_tx).hex()

    async def get_transaction_receipt(self, tx_hash: str) -> dict | None:
        """Receipt for a mined TX, or None while pending."""
        return await self._call("eth_getTransactionReceipt", [tx_hash])


class RpcReaderFactory:
    """chain id -> EvmRpcClient, one client per configured chain, sharing one HTTP client."""

    def __init__(self, rpc_urls: dict[int, str], http_client: RateLimitedClient) -> None:
        self._rpc_urls = rpc_urls
        self._http = http_client
        self._clients: dict[int, EvmRpcClient] = {}

    def __call__(self, chain_id: int) -> EvmRpcClient:
        client = self._clients.get(chain_id)
        if client is None:
            url = self._rpc_urls.get(chain_id)
            if not url:
                raise UnknownNetworkError(chain_id)
            client = EvmRpcClient(url, self._http, chain_id=chain_id)
            self._clients[chain_id] = client
        return client
