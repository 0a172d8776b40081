"""Per-category approved-recipient readers.

Each reader turns one strategy family's on-chain shape into a
RecipientListing. When the full set would need event-log history a reader
returns EnumerationIncomplete with whatever counters it could read; it never
makes up records.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from eth_utils import to_checksum_address

from allodisburse.domain.enums import AlloRecipientStatus, RecipientStatus
from allodisburse.domain.models.recipient import (
    EnumeratedRecipients,
    EnumerationIncomplete,
    RecipientListing,
    RecipientRecord,
)
from allodisburse.exceptions import ContractCallError
from allodisburse.infra.blockchain.base import ContractReader
from allodisburse.infra.blockchain.evm.abi import (
    ALLO_GET_REGISTRY,
    REGISTRY_GET_PROFILE_BY_ANCHOR,
    STRATEGY_ACCEPTED_RECIPIENT_ID,
    STRATEGY_DISTRIBUTION_STARTED,
    STRATEGY_GET_RECIPIENT,
    STRATEGY_RECIPIENTS_COUNTER,
    STRATEGY_TOTAL_ALLOCATED,
    is_zero_bytes32,
    to_hex32,
)
from allodisburse.networks import ZERO_ADDRESS

logger = logging.getLogger(__name__)

_STATUS_MAP = {
    AlloRecipientStatus.ACCEPTED: RecipientStatus.APPROVED,
    AlloRecipientStatus.REJECTED: RecipientStatus.REJECTED,
    AlloRecipientStatus.CANCELED: RecipientStatus.REJECTED,
}


def map_status(raw: int) -> RecipientStatus:
    """Allo's 7-state enum collapsed to approved/pending/rejected."""
    try:
        return _STATUS_MAP.get(AlloRecipientStatus(raw), RecipientStatus.PENDING)
    except ValueError:
        return RecipientStatus.PENDING


@dataclass
class ReadContext:
    reader: ContractReader
    strategy_address: str
    pool_id: int
    chain_id: int
    allo_address: str


class RecipientReader(ABC):
    READER_NAME: str = "RecipientReader"

    async def list_approved(self, ctx: ReadContext) -> RecipientListing:
        try:
            return await self.read(ctx)
        except ContractCallError as e:
            logger.warning(
                "%s failed for pool %d on chain %d: %s", self.READER_NAME, ctx.pool_id, ctx.chain_id, e,
            )
            return EnumerationIncomplete(reason=f"{self.READER_NAME} read failed: {e}")

    @abstractmethod
    async def read(self, ctx: ReadContext) -> RecipientListing:
        """Read and normalise. May raise ContractCallError."""


class DirectGrantsReader(RecipientReader):
    READER_NAME = "DirectGrantsReader"

    async def read(self, ctx: ReadContext) -> RecipientListing:
        count = await ctx.reader.read(ctx.strategy_address, STRATEGY_RECIPIENTS_COUNTER)
        if count == 0:
            return EnumeratedRecipients()
        return EnumerationIncomplete(
            reason="Direct grants recipients are only listed through registration events",
            known_count=count,
        )


class MicroGrantsReader(RecipientReader):
    READER_NAME = "MicroGrantsReader"

    async def read(self, ctx: ReadContext) -> RecipientListing:
        allocated = await ctx.reader.read(ctx.strategy_address, STRATEGY_TOTAL_ALLOCATED)
        if allocated == 0:
            return EnumeratedRecipients()
        return EnumerationIncomplete(
            reason="Micro grants allocations are only listed through allocation events",
            allocated_total=allocated,
        )


class RfpReader(RecipientReader):
    """RFP strategies hold at most one accepted recipient."""

    READER_NAME = "RfpReader"

    async def read(self, ctx: ReadContext) -> RecipientListing:
        accepted = await ctx.reader.read(ctx.strategy_address, STRATEGY_ACCEPTED_RECIPIENT_ID)
        if not accepted or accepted.lower() == ZERO_ADDRESS:
            return EnumeratedRecipients()

        recipient_id = to_checksum_address(accepted)
        record = await read_recipient(ctx.reader, ctx.strategy_address, recipient_id)
        if record is None:
            # Bare accepted id: the id is the payout address
            record = RecipientRecord(recipient_id=recipient_id, recipient_address=recipient_id)

        profile_id = await read_profile_id(ctx.reader, ctx.allo_address, recipient_id)
        return EnumeratedRecipients(records=[
            record.model_copy(update={"profile_id": profile_id, "status": RecipientStatus.APPROVED}),
        ])


class VotingReader(RecipientReader):
    READER_NAME = "VotingReader"

    async def read(self, ctx: ReadContext) -> RecipientListing:
        started = await ctx.reader.read(ctx.strategy_address, STRATEGY_DISTRIBUTION_STARTED)
        return EnumerationIncomplete(
            reason="Voting recipients are only listed through registration events",
            details={"distribution_started": bool(started)},
        )


class IncompleteReader(RecipientReader):
    """Categories with no enumerable on-chain state."""

    READER_NAME = "IncompleteReader"

    def __init__(self, reason: str) -> None:
        self._reason = reason

    async def read(self, ctx: ReadContext) -> RecipientListing:
        return EnumerationIncomplete(reason=self._reason)


async def read_recipient(reader: ContractReader, strategy_address: str, recipient_id: str) -> RecipientRecord | None:
    """getRecipient(id) normalised, or None if the strategy has no such struct."""
    try:
        raw = await reader.read(strategy_address, STRATEGY_GET_RECIPIENT, recipient_id)
    except ContractCallError as e:
        logger.debug("getRecipient unavailable on %s: %s", strategy_address, e)
        return None

    _use_anchor, recipient_address, proposal_bid, status, _metadata = raw
    if recipient_address.lower() == ZERO_ADDRESS:
        return None
    return RecipientRecord(
        recipient_id=recipient_id,
        recipient_address=to_checksum_address(recipient_address),
        status=map_status(status),
        allocated_amount=proposal_bid or None,
    )


async def read_profile_id(reader: ContractReader, allo_address: str, anchor: str) -> str | None:
    """Registry profile id owning ``anchor``; None when the anchor is not a profile."""
    try:
        registry = await reader.read(allo_address, ALLO_GET_REGISTRY)
        profile = await reader.read(registry, REGISTRY_GET_PROFILE_BY_ANCHOR, anchor)
    except ContractCallError as e:
        logger.debug("Profile lookup for anchor %s failed: %s", anchor, e)
        return None
    profile_id = profile[0]
    return None if is_zero_bytes32(profile_id) else to_hex32(profile_id)
