from enum import Enum


class StrategyCategory(str, Enum):
    """Coarse allocation policy of a strategy contract."""

    DIRECT = "direct"
    MERKLE = "merkle"
    VOTING = "voting"
    RFP = "rfp"
    STREAMING = "streaming"
    OTHER = "other"


class StrategyFamily(str, Enum):
    """Strategies sharing one payout call sequence. Resolved once at classification."""

    DIRECT_GRANTS = "direct_grants"
    MICRO_GRANTS = "micro_grants"
    MERKLE_DIRECT_TRANSFER = "merkle_direct_transfer"
    MERKLE_PAYOUT = "merkle_payout"
    RFP = "rfp"
    VOTING = "voting"
    STREAMING = "streaming"
    UNKNOWN = "unknown"
