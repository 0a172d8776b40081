"""StrategyClassifier -- resolve a strategy contract to a canonical identity.

Fallback order, first hit wins:
  1. getStrategyId() -> (chain_id, id) lookup in the registry
  2. STRATEGY_NAME() -> canonical name / alias lookup
  3. unknown profile (category "other", no capabilities)

A revert or undecodable result on either read just moves on to the next
step. Transport failures (RpcError) propagate so callers can retry.
"""

import logging

from eth_utils import to_checksum_address

from allodisburse.domain.models.strategy import StrategyProfile
from allodisburse.exceptions import ContractCallError
from allodisburse.infra.blockchain.base import ContractReader, ReaderFactory
from allodisburse.infra.blockchain.evm.abi import (
    STRATEGY_GET_STRATEGY_ID,
    STRATEGY_NAME,
    is_zero_bytes32,
    to_hex32,
)
from allodisburse.strategy.registry import StrategyRegistry
from allodisburse.utils.addresses import is_valid_address

logger = logging.getLogger(__name__)


class StrategyClassifier:
    def __init__(self, registry: StrategyRegistry, reader_factory: ReaderFactory) -> None:
        self._registry = registry
        self._readers = reader_factory

    async def classify(self, strategy_address: str, chain_id: int) -> StrategyProfile:
        if not is_valid_address(strategy_address):
            logger.warning("Not a strategy address: %s", strategy_address)
            return StrategyProfile.unknown(strategy_address)

        address = to_checksum_address(strategy_address)
        reader = self._readers(chain_id)

        name = await self._from_strategy_id(reader, address, chain_id)
        if name is None:
            name = await self._from_strategy_name(reader, address)

        if name is None:
            logger.info("Strategy %s on chain %d is not a known strategy", address, chain_id)
            return StrategyProfile.unknown(address)

        logger.debug("Classified %s on chain %d as %s", address, chain_id, name)
        return self._registry.profile_for(address, name)

    async def _from_strategy_id(self, reader: ContractReader, address: str, chain_id: int) -> str | None:
        try:
            raw = await reader.read(address, STRATEGY_GET_STRATEGY_ID)
        except ContractCallError as e:
            logger.debug("getStrategyId unavailable on %s: %s", address, e)
            return None
        if is_zero_bytes32(raw):
            return None
        return self._registry.lookup_id(chain_id, to_hex32(raw))

    async def _from_strategy_name(self, reader: ContractReader, address: str) -> str | None:
        try:
            raw_name = await reader.read(address, STRATEGY_NAME)
        except ContractCallError as e:
            logger.debug("STRATEGY_NAME unavailable on %s: %s", address, e)
            return None
        if not raw_name:
            return None
        return self._registry.lookup_name(raw_name.strip())
