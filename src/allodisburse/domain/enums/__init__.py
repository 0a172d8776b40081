from allodisburse.domain.enums.status import AlloRecipientStatus, RecipientStatus, SequenceState
from allodisburse.domain.enums.strategy import StrategyCategory, StrategyFamily

__all__ = [
    "AlloRecipientStatus",
    "RecipientStatus",
    "SequenceState",
    "StrategyCategory",
    "StrategyFamily",
]
