from pydantic import BaseModel

from allodisburse.domain.models.recipient import EnumerationIncomplete, RecipientRecord
from allodisburse.domain.models.strategy import StrategyProfile
from allodisburse.domain.models.token import TokenInfo


class PoolView(BaseModel):
    """Read-only view of a pool's disbursement state.

    ``degraded_fields`` lists every field that fell back to a zero/empty value
    because its read failed, so a partially unreadable pool is never mistaken
    for a healthy one.
    """

    pool_id: int
    chain_id: int
    profile_id: str | None = None
    token: TokenInfo
    strategy: StrategyProfile
    total_amount: int = 0
    available_amount: int = 0
    approved_recipients: list[RecipientRecord] = []
    recipients_incomplete: EnumerationIncomplete | None = None
    degraded_fields: list[str] = []

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_fields)
