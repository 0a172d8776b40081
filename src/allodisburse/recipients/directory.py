"""RecipientDirectory -- approved recipients of a pool, per strategy category."""

import asyncio
import logging

from eth_utils import to_checksum_address

from allodisburse.domain.enums import AlloRecipientStatus, StrategyCategory, StrategyFamily
from allodisburse.domain.models.recipient import EnumeratedRecipients, RecipientListing, RecipientRecord
from allodisburse.domain.models.strategy import StrategyProfile
from allodisburse.exceptions import ContractCallError, PoolNotFoundError
from allodisburse.infra.blockchain.base import ContractReader, ReaderFactory
from allodisburse.infra.blockchain.evm.abi import ALLO_GET_STRATEGY, STRATEGY_GET_RECIPIENT_STATUS
from allodisburse.networks import ZERO_ADDRESS, NetworkRegistry
from allodisburse.recipients.readers import (
    DirectGrantsReader,
    IncompleteReader,
    MicroGrantsReader,
    ReadContext,
    RecipientReader,
    RfpReader,
    VotingReader,
    map_status,
    read_profile_id,
    read_recipient,
)
from allodisburse.strategy.classifier import StrategyClassifier
from allodisburse.utils.addresses import is_valid_address

logger = logging.getLogger(__name__)


class RecipientDirectory:
    def __init__(
        self,
        networks: NetworkRegistry,
        reader_factory: ReaderFactory,
        classifier: StrategyClassifier,
    ) -> None:
        self._networks = networks
        self._readers = reader_factory
        self._classifier = classifier
        self._direct = DirectGrantsReader()
        self._micro = MicroGrantsReader()
        self._by_category: dict[StrategyCategory, RecipientReader] = {
            StrategyCategory.RFP: RfpReader(),
            StrategyCategory.VOTING: VotingReader(),
            StrategyCategory.MERKLE: IncompleteReader("Merkle recipients are committed in the distribution tree"),
            StrategyCategory.STREAMING: IncompleteReader("Streaming recipients have no enumerable state"),
            StrategyCategory.OTHER: IncompleteReader("No recipient reader for unknown strategies"),
        }

    def reader_for(self, category: StrategyCategory, family: StrategyFamily | None = None) -> RecipientReader:
        if category == StrategyCategory.DIRECT:
            return self._micro if family == StrategyFamily.MICRO_GRANTS else self._direct
        return self._by_category.get(category, self._by_category[StrategyCategory.OTHER])

    async def list_approved(
        self,
        pool_id: int,
        chain_id: int,
        strategy_address: str,
        category: StrategyCategory,
        family: StrategyFamily | None = None,
    ) -> RecipientListing:
        ctx = ReadContext(
            reader=self._readers(chain_id),
            strategy_address=to_checksum_address(strategy_address),
            pool_id=pool_id,
            chain_id=chain_id,
            allo_address=self._networks.get(chain_id).allo_address,
        )
        reader = self.reader_for(category, family)
        listing = await reader.list_approved(ctx)
        logger.debug("%s for pool %d on chain %d -> %s", reader.READER_NAME, pool_id, chain_id, listing.kind)
        return listing

    async def validate_against_pool(
        self,
        pool_id: int,
        chain_id: int,
        candidates: list[str],
        strategy: StrategyProfile | None = None,
    ) -> dict[str, bool]:
        """candidate -> approved. Membership is case-insensitive."""
        if strategy is None:
            strategy = await self._pool_strategy(pool_id, chain_id)

        listing = await self.list_approved(pool_id, chain_id, strategy.address, strategy.category, strategy.family)
        if isinstance(listing, EnumeratedRecipients):
            approved = {r.recipient_address.lower() for r in listing.records}
            return {c: c.lower() in approved for c in candidates}

        # Could not enumerate: ask the strategy about each candidate directly
        logger.info(
            "Recipients of pool %d on chain %d not enumerable (%s); checking %d addresses directly",
            pool_id, chain_id, listing.reason, len(candidates),
        )
        reader = self._readers(chain_id)
        results = await asyncio.gather(*(self._is_accepted(reader, strategy.address, c) for c in candidates))
        return dict(zip(candidates, results))

    async def get_recipient_details(
        self, strategy_address: str, recipient: str, chain_id: int,
    ) -> RecipientRecord | None:
        reader = self._readers(chain_id)
        strategy_address = to_checksum_address(strategy_address)
        recipient = to_checksum_address(recipient)

        record = await read_recipient(reader, strategy_address, recipient)
        if record is None:
            try:
                status = await reader.read(strategy_address, STRATEGY_GET_RECIPIENT_STATUS, recipient)
            except ContractCallError:
                return None
            record = RecipientRecord(recipient_id=recipient, recipient_address=recipient, status=map_status(status))

        profile_id = await read_profile_id(reader, self._networks.get(chain_id).allo_address, recipient)
        return record.model_copy(update={"profile_id": profile_id})

    async def _pool_strategy(self, pool_id: int, chain_id: int) -> StrategyProfile:
        allo = self._networks.get(chain_id).allo_address
        address = await self._readers(chain_id).read(allo, ALLO_GET_STRATEGY, pool_id)
        if not address or address.lower() == ZERO_ADDRESS:
            raise PoolNotFoundError(pool_id, chain_id)
        return await self._classifier.classify(address, chain_id)

    @staticmethod
    async def _is_accepted(reader: ContractReader, strategy_address: str, candidate: str) -> bool:
        if not is_valid_address(candidate):
            return False
        try:
            status = await reader.read(strategy_address, STRATEGY_GET_RECIPIENT_STATUS, to_checksum_address(candidate))
        except ContractCallError:
            return False
        return status == AlloRecipientStatus.ACCEPTED
