from allodisburse.domain.models.distribution import (
    DistributionEntry,
    DistributionPreview,
    DistributionReview,
    MerkleDistribution,
)
from allodisburse.domain.models.ingest import CandidateRow, RowError, ValidatedRow, ValidationResult
from allodisburse.domain.models.pool import PoolView
from allodisburse.domain.models.recipient import (
    EnumeratedRecipients,
    EnumerationIncomplete,
    RecipientListing,
    RecipientRecord,
)
from allodisburse.domain.models.strategy import StrategyCapabilities, StrategyProfile
from allodisburse.domain.models.token import TokenInfo

__all__ = [
    "CandidateRow",
    "DistributionEntry",
    "DistributionPreview",
    "DistributionReview",
    "EnumeratedRecipients",
    "EnumerationIncomplete",
    "MerkleDistribution",
    "PoolView",
    "RecipientListing",
    "RecipientRecord",
    "RowError",
    "StrategyCapabilities",
    "StrategyProfile",
    "TokenInfo",
    "ValidatedRow",
    "ValidationResult",
]
