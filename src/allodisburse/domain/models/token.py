from pydantic import BaseModel, ConfigDict, Field


class TokenInfo(BaseModel):
    """Resolved token metadata. ``decimals`` anchors every amount conversion."""

    model_config = ConfigDict(frozen=True)

    address: str
    symbol: str
    name: str
    decimals: int = Field(ge=0, le=18)
    is_native: bool = False
