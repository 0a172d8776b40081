"""PoolInspector -- assemble a PoolView from Allo, the strategy and the pool token.

``total_amount`` is the strategy's accounted pool amount (getPoolAmount);
``available_amount`` is what the strategy actually holds in the pool token.
Sub-reads run concurrently and a failing one only degrades its own field.
"""

import asyncio
import logging
from typing import Any

from eth_utils import to_checksum_address

from allodisburse.domain.models.pool import PoolView
from allodisburse.domain.models.recipient import EnumeratedRecipients, EnumerationIncomplete, RecipientListing
from allodisburse.domain.models.strategy import StrategyProfile
from allodisburse.domain.models.token import TokenInfo
from allodisburse.exceptions import ContractCallError, DisbursementError, PoolNotFoundError
from allodisburse.infra.blockchain.base import ContractReader, ReaderFactory
from allodisburse.infra.blockchain.evm.abi import (
    ALLO_GET_POOL,
    ALLO_IS_POOL_MANAGER,
    ERC20_BALANCE_OF,
    STRATEGY_GET_POOL_AMOUNT,
    is_zero_bytes32,
    to_hex32,
)
from allodisburse.networks import ZERO_ADDRESS, NetworkRegistry
from allodisburse.recipients.directory import RecipientDirectory
from allodisburse.strategy.classifier import StrategyClassifier
from allodisburse.tokens.resolver import TokenResolver, is_native

logger = logging.getLogger(__name__)


def _unknown_token(address: str) -> TokenInfo:
    return TokenInfo(address=address, symbol="UNKNOWN", name="Unknown Token", decimals=18)


class PoolInspector:
    def __init__(
        self,
        networks: NetworkRegistry,
        reader_factory: ReaderFactory,
        token_resolver: TokenResolver,
        classifier: StrategyClassifier,
        directory: RecipientDirectory,
    ) -> None:
        self._networks = networks
        self._readers = reader_factory
        self._tokens = token_resolver
        self._classifier = classifier
        self._directory = directory

    async def get_pool_info(self, pool_id: int, chain_id: int) -> PoolView:
        network = self._networks.get(chain_id)
        reader = self._readers(chain_id)

        try:
            pool = await reader.read(network.allo_address, ALLO_GET_POOL, pool_id)
        except ContractCallError as e:
            raise PoolNotFoundError(pool_id, chain_id) from e

        profile_id, strategy_address, token_address, _metadata, _manager_role, _admin_role = pool
        if strategy_address.lower() == ZERO_ADDRESS:
            raise PoolNotFoundError(pool_id, chain_id)

        strategy_address = to_checksum_address(strategy_address)
        token_address = to_checksum_address(token_address)
        degraded: list[str] = []

        token, (strategy, listing), total_amount, available_amount = await asyncio.gather(
            self._degrade("token", degraded, self._tokens.resolve(token_address, chain_id),
                          _unknown_token(token_address)),
            self._strategy_and_recipients(pool_id, chain_id, strategy_address, degraded),
            self._degrade("total_amount", degraded, reader.read(strategy_address, STRATEGY_GET_POOL_AMOUNT), 0),
            self._degrade("available_amount", degraded, self._balance(reader, token_address, strategy_address), 0),
        )

        view = PoolView(
            pool_id=pool_id,
            chain_id=chain_id,
            profile_id=None if is_zero_bytes32(profile_id) else to_hex32(profile_id),
            token=token,
            strategy=strategy,
            total_amount=total_amount,
            available_amount=available_amount,
            approved_recipients=listing.records if isinstance(listing, EnumeratedRecipients) else [],
            recipients_incomplete=listing if isinstance(listing, EnumerationIncomplete) else None,
            degraded_fields=sorted(degraded),
        )
        if view.is_degraded:
            logger.warning("Pool %d on chain %d partially unreadable: %s", pool_id, chain_id, view.degraded_fields)
        return view

    async def check_distribution_permission(self, pool_id: int, chain_id: int, account: str) -> bool:
        """True if ``account`` is a manager (or admin) of the pool."""
        network = self._networks.get(chain_id)
        try:
            return bool(await self._readers(chain_id).read(
                network.allo_address, ALLO_IS_POOL_MANAGER, pool_id, to_checksum_address(account),
            ))
        except ContractCallError as e:
            logger.debug("isPoolManager(%d, %s) reverted: %s", pool_id, account, e)
            return False

    async def _strategy_and_recipients(
        self, pool_id: int, chain_id: int, strategy_address: str, degraded: list[str],
    ) -> tuple[StrategyProfile, RecipientListing]:
        strategy = await self._degrade(
            "strategy", degraded, self._classifier.classify(strategy_address, chain_id),
            StrategyProfile.unknown(strategy_address),
        )
        listing = await self._degrade(
            "approved_recipients", degraded,
            self._directory.list_approved(pool_id, chain_id, strategy_address, strategy.category, strategy.family),
            EnumerationIncomplete(reason="Recipient lookup failed"),
        )
        return strategy, listing

    @staticmethod
    async def _balance(reader: ContractReader, token_address: str, holder: str) -> int:
        if is_native(token_address):
            return await reader.get_balance(holder)
        return await reader.read(token_address, ERC20_BALANCE_OF, holder)

    @staticmethod
    async def _degrade(field: str, degraded: list[str], coro: Any, fallback: Any) -> Any:
        try:
            return await coro
        except DisbursementError as e:
            logger.warning("Could not read %s: %s", field, e)
            degraded.append(field)
            return fallback
