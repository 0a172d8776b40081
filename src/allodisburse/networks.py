"""Per-chain static configuration: Allo deployment, native token, well-known tokens.

The core never reads these tables as globals; a ``NetworkRegistry`` is built
once (``build_default_networks()`` or ``load_networks(path)``) and injected.
"""

import json
import logging
from pathlib import Path

from eth_utils import to_checksum_address
from pydantic import BaseModel, Field, field_validator

from allodisburse.exceptions import UnknownNetworkError
from allodisburse.utils.addresses import is_valid_address

logger = logging.getLogger(__name__)

# Allo v2 uses the same addresses on every chain (all lowercase)
ALLO_V2_ADDRESS = "0x1133ea7af70876e64665ecd07c0a0476d09465a1"
NATIVE_TOKEN_ADDRESS = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class WellKnownToken(BaseModel):
    symbol: str
    name: str
    decimals: int


class NetworkConfig(BaseModel):
    chain_id: int
    name: str
    native_symbol: str = "ETH"
    native_name: str = "Ether"
    allo_address: str = Field(default=ALLO_V2_ADDRESS, validate_default=True)
    explorer_url: str = "https://etherscan.io"
    tokens: dict[str, WellKnownToken] = {}  # lowercase address -> metadata
    strategy_ids: dict[str, str] = {}  # extra bytes32 strategy id (lowercase hex) -> canonical name

    @field_validator("allo_address")
    @classmethod
    def _checksum_allo(cls, value: str) -> str:
        if not is_valid_address(value):
            raise ValueError(f"Invalid Allo address: {value}")
        return to_checksum_address(value)

    @field_validator("tokens")
    @classmethod
    def _lowercase_tokens(cls, value: dict[str, WellKnownToken]) -> dict[str, WellKnownToken]:
        return {addr.lower(): token for addr, token in value.items()}

    @field_validator("strategy_ids")
    @classmethod
    def _lowercase_ids(cls, value: dict[str, str]) -> dict[str, str]:
        return {h.lower(): name for h, name in value.items()}

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"

    def address_url(self, address: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/address/{address}"


class NetworkRegistry:
    """chain id -> NetworkConfig lookup."""

    def __init__(self, networks: list[NetworkConfig]) -> None:
        self._networks: dict[int, NetworkConfig] = {n.chain_id: n for n in networks}

    def get(self, chain_id: int) -> NetworkConfig:
        network = self._networks.get(chain_id)
        if network is None:
            raise UnknownNetworkError(chain_id)
        return network

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._networks

    def __iter__(self):
        return iter(self._networks.values())

    def chain_ids(self) -> list[int]:
        return sorted(self._networks)


DEFAULT_NETWORKS: list[dict] = [
    {
        "chain_id": 1,
        "name": "Ethereum",
        "explorer_url": "https://etherscan.io",
        "tokens": {
            "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48": {"symbol": "USDC", "name": "USD Coin", "decimals": 6},
            "0x6b175474e89094c44da98b954eedeac495271d0f": {"symbol": "DAI", "name": "Dai Stablecoin", "decimals": 18},
        },
    },
    {
        "chain_id": 10,
        "name": "Optimism",
        "explorer_url": "https://optimistic.etherscan.io",
        "tokens": {
            "0x0b2c639c533813f4aa9d7837caf62653d097ff85": {"symbol": "USDC", "name": "USD Coin", "decimals": 6},
            "0x4200000000000000000000000000000000000042": {"symbol": "OP", "name": "Optimism", "decimals": 18},
            "0xda10009cbd5d07dd0cecc66161fc93d7c9000da1": {"symbol": "DAI", "name": "Dai Stablecoin", "decimals": 18},
        },
    },
    {
        "chain_id": 42161,
        "name": "Arbitrum",
        "explorer_url": "https://arbiscan.io",
        "tokens": {
            "0xaf88d065e77c8cc2239327c5edb3a432268e5831": {"symbol": "USDC", "name": "USD Coin", "decimals": 6},
            "0x912ce59144191c1204e64559fe8253a0e49e6548": {"symbol": "ARB", "name": "Arbitrum", "decimals": 18},
        },
    },
    {
        "chain_id": 42220,
        "name": "Celo",
        "native_symbol": "CELO",
        "native_name": "Celo",
        "explorer_url": "https://celoscan.io",
        "tokens": {
            "0x765de816845861e75a25fca122bb6898b8b1282a": {"symbol": "cUSD", "name": "Celo Dollar", "decimals": 18},
        },
        "strategy_ids": {
            "0x9fa6890423649187b1f0e8bf4265f0305ce99523c3d11aa36b35a54617bb0ec0": (
                "DonationVotingMerkleDistributionDirectTransferStrategy"
            ),
        },
    },
    {
        "chain_id": 8453,
        "name": "Base",
        "explorer_url": "https://basescan.org",
        "tokens": {
            "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913": {"symbol": "USDC", "name": "USD Coin", "decimals": 6},
        },
    },
    {"chain_id": 11155111, "name": "Sepolia", "explorer_url": "https://sepolia.etherscan.io"},
    {"chain_id": 11155420, "name": "Optimism Sepolia", "explorer_url": "https://sepolia-optimism.etherscan.io"},
    {"chain_id": 84532, "name": "Base Sepolia", "explorer_url": "https://sepolia.basescan.org"},
]


def build_default_networks() -> NetworkRegistry:
    return NetworkRegistry([NetworkConfig.model_validate(n) for n in DEFAULT_NETWORKS])


def load_networks(path: str | Path) -> NetworkRegistry:
    """Load networks from a JSON list shaped like DEFAULT_NETWORKS."""
    raw = json.loads(Path(path).read_text())
    networks = [NetworkConfig.model_validate(n) for n in raw]
    logger.info("Loaded %d networks from %s", len(networks), path)
    return NetworkRegistry(networks)
