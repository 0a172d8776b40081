from enum import Enum, IntEnum


class RecipientStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"


class AlloRecipientStatus(IntEnum):
    """On-chain IStrategy.Status values (Allo v2)."""

    NONE = 0
    PENDING = 1
    ACCEPTED = 2
    REJECTED = 3
    APPEALED = 4
    IN_REVIEW = 5
    CANCELED = 6


class SequenceState(str, Enum):
    """Progress of one distribution attempt. Advances only after a step succeeds."""

    PENDING = "pending"
    ALLOCATED = "allocated"
    ROOT_SET = "root_set"
    DISTRIBUTED = "distributed"
