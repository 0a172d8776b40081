"""TokenResolver -- token address -> TokenInfo.

Shortcuts before any contract read: the native sentinel (or zero address)
maps to the chain's native token, and configured well-known tokens come from
the network table. Everything else is read from the ERC20 contract, trying
the bytes32 variants of symbol()/name() used by older tokens such as MKR.
"""

import asyncio
import logging

from eth_utils import to_checksum_address

from allodisburse.domain.models.token import TokenInfo
from allodisburse.exceptions import ContractCallError, TokenResolutionError
from allodisburse.infra.blockchain.base import ContractReader, ReaderFactory
from allodisburse.infra.blockchain.evm.abi import (
    ERC20_DECIMALS,
    ERC20_NAME,
    ERC20_NAME_BYTES32,
    ERC20_SYMBOL,
    ERC20_SYMBOL_BYTES32,
    ContractFunction,
    bytes32_to_str,
)
from allodisburse.networks import NATIVE_TOKEN_ADDRESS, ZERO_ADDRESS, NetworkRegistry
from allodisburse.utils.addresses import is_valid_address

logger = logging.getLogger(__name__)

MAX_DECIMALS = 18


def is_native(token_address: str) -> bool:
    return token_address.lower() in (NATIVE_TOKEN_ADDRESS, ZERO_ADDRESS)


class TokenResolver:
    def __init__(self, networks: NetworkRegistry, reader_factory: ReaderFactory) -> None:
        self._networks = networks
        self._readers = reader_factory
        self._cache: dict[tuple[int, str], TokenInfo] = {}

    async def resolve(self, token_address: str, chain_id: int) -> TokenInfo:
        network = self._networks.get(chain_id)

        if is_native(token_address):
            return TokenInfo(
                address=to_checksum_address(NATIVE_TOKEN_ADDRESS),
                symbol=network.native_symbol,
                name=network.native_name,
                decimals=18,
                is_native=True,
            )

        if not is_valid_address(token_address):
            raise TokenResolutionError(token_address, "not a valid address")

        key = (chain_id, token_address.lower())
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        address = to_checksum_address(token_address)
        known = network.tokens.get(token_address.lower())
        if known is not None:
            info = TokenInfo(address=address, symbol=known.symbol, name=known.name, decimals=known.decimals)
        else:
            info = await self._read_token(self._readers(chain_id), address)

        self._cache[key] = info
        return info

    async def _read_token(self, reader: ContractReader, address: str) -> TokenInfo:
        symbol, name, decimals = await asyncio.gather(
            self._read_text(reader, address, ERC20_SYMBOL, ERC20_SYMBOL_BYTES32),
            self._read_text(reader, address, ERC20_NAME, ERC20_NAME_BYTES32),
            self._read_decimals(reader, address),
        )
        logger.info("Resolved token %s: %s (%d decimals)", address, symbol or "?", decimals)
        return TokenInfo(
            address=address,
            symbol=symbol or "UNKNOWN",
            name=name or symbol or "Unknown Token",
            decimals=decimals,
        )

    async def _read_text(
        self, reader: ContractReader, address: str, as_string: ContractFunction, as_bytes32: ContractFunction,
    ) -> str | None:
        try:
            return await reader.read(address, as_string)
        except ContractCallError:
            pass
        try:
            return bytes32_to_str(await reader.read(address, as_bytes32))
        except ContractCallError as e:
            logger.debug("%s() unreadable on %s: %s", as_string.name, address, e)
            return None

    async def _read_decimals(self, reader: ContractReader, address: str) -> int:
        try:
            decimals = await reader.read(address, ERC20_DECIMALS)
        except ContractCallError as e:
            raise TokenResolutionError(address, f"decimals() unreadable: {e}") from e
        if not 0 <= decimals <= MAX_DECIMALS:
            raise TokenResolutionError(address, f"unsupported decimals {decimals}")
        return decimals
