"""Merkle commitment, payout preview and pre-flight review types."""

from pydantic import BaseModel


class DistributionEntry(BaseModel):
    index: int
    recipient_address: str
    amount: int
    proof: list[str]  # 0x-prefixed 32-byte hashes, leaf to root


class MerkleDistribution(BaseModel):
    root: str
    entries: list[DistributionEntry]

    def entry_for(self, address: str) -> DistributionEntry | None:
        for entry in self.entries:
            if entry.recipient_address.lower() == address.lower():
                return entry
        return None


class DistributionPreview(BaseModel):
    """Read-only summary of what ``execute`` would do. Never submits anything."""

    can_distribute: bool
    requires_allocation: bool
    requires_merkle_root: bool
    total_recipients: int
    total_amount: int
    rough_gas_estimate: int


class DistributionReview(BaseModel):
    total_recipients: int
    approved_count: int
    unapproved_addresses: list[str]
    has_unique_addresses: bool
    total_amount: int
    available_amount: int
    within_available: bool
    can_proceed: bool
    issues: list[str] = []  # what blocks can_proceed, empty when it is true
