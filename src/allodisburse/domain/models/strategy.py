from pydantic import BaseModel, ConfigDict

from allodisburse.domain.enums import StrategyCategory, StrategyFamily


class StrategyCapabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    supports_direct_distribution: bool = False
    requires_merkle_tree: bool = False
    requires_claiming: bool = False


class StrategyProfile(BaseModel):
    """Classification result. ``canonical_identity=None`` is the unknown-but-valid state."""

    model_config = ConfigDict(frozen=True)

    address: str
    canonical_identity: str | None = None
    category: StrategyCategory = StrategyCategory.OTHER
    family: StrategyFamily = StrategyFamily.UNKNOWN
    capabilities: StrategyCapabilities = StrategyCapabilities()

    @property
    def is_known(self) -> bool:
        return self.canonical_identity is not None

    @classmethod
    def unknown(cls, address: str) -> "StrategyProfile":
        return cls(address=address)
