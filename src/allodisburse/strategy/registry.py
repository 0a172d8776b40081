"""StrategyRegistry -- canonical strategy names, capabilities and on-chain id lookup."""

from dataclasses import dataclass

from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from allodisburse.domain.enums import StrategyCategory, StrategyFamily
from allodisburse.domain.models.strategy import StrategyCapabilities, StrategyProfile
from allodisburse.networks import NetworkRegistry

UNKNOWN_CAPABILITIES = StrategyCapabilities()


@dataclass(frozen=True)
class StrategyDefinition:
    canonical_name: str
    category: StrategyCategory
    family: StrategyFamily
    capabilities: StrategyCapabilities
    description: str = ""
    aliases: tuple[str, ...] = ()  # versioned STRATEGY_NAME values seen on deployed contracts


def strategy_id_for(name: str) -> str:
    """bytes32 id an Allo v2 BaseStrategy derives from its name: keccak256(abi.encode(name))."""
    return "0x" + keccak(encode(["string"], [name])).hex()


class StrategyRegistry:
    """Maps canonical names, aliases and (chain, strategy id) pairs to definitions."""

    def __init__(self) -> None:
        self._definitions: dict[str, StrategyDefinition] = {}
        self._names: dict[str, str] = {}
        self._ids: dict[int, dict[str, str]] = {}

    def register(self, definition: StrategyDefinition, chain_ids: list[int]) -> None:
        name = definition.canonical_name
        self._definitions[name] = definition
        for alias in (name, *definition.aliases):
            self._names[alias] = name
            for chain_id in chain_ids:
                self.register_id(chain_id, strategy_id_for(alias), name)

    def register_id(self, chain_id: int, identifier_hash: str, canonical_name: str) -> None:
        self._ids.setdefault(chain_id, {})[identifier_hash.lower()] = canonical_name

    def lookup_id(self, chain_id: int, identifier_hash: str) -> str | None:
        return self._ids.get(chain_id, {}).get(identifier_hash.lower())

    def lookup_name(self, name: str) -> str | None:
        return self._names.get(name)

    def get(self, canonical_name: str | None) -> StrategyDefinition | None:
        if canonical_name is None:
            return None
        return self._definitions.get(self._names.get(canonical_name, canonical_name))

    def capabilities_for(self, canonical_name: str | None) -> StrategyCapabilities:
        definition = self.get(canonical_name)
        return definition.capabilities if definition else UNKNOWN_CAPABILITIES

    def family_for(self, canonical_name: str | None) -> StrategyFamily:
        definition = self.get(canonical_name)
        return definition.family if definition else StrategyFamily.UNKNOWN

    def profile_for(self, address: str, canonical_name: str | None) -> StrategyProfile:
        address = to_checksum_address(address)
        definition = self.get(canonical_name)
        if definition is None:
            return StrategyProfile.unknown(address)
        return StrategyProfile(
            address=address,
            canonical_identity=definition.canonical_name,
            category=definition.category,
            family=definition.family,
            capabilities=definition.capabilities,
        )

    def names(self) -> list[str]:
        return sorted(self._definitions)


DIRECT = StrategyCapabilities(supports_direct_distribution=True)
MERKLE_DIRECT = StrategyCapabilities(supports_direct_distribution=True, requires_merkle_tree=True)
MERKLE_CLAIM = StrategyCapabilities(requires_merkle_tree=True, requires_claiming=True)

DEFAULT_STRATEGIES: tuple[StrategyDefinition, ...] = (
    StrategyDefinition(
        "DirectGrantsSimpleStrategy", StrategyCategory.DIRECT, StrategyFamily.DIRECT_GRANTS, DIRECT,
        "Manager allocates fixed grants, then distributes them directly",
        aliases=("DirectGrantsSimpleStrategyv1", "DirectGrantsSimpleStrategyv1.0", "DirectGrantsSimpleStrategyv1.1"),
    ),
    StrategyDefinition(
        "DirectGrantsLiteStrategy", StrategyCategory.DIRECT, StrategyFamily.DIRECT_GRANTS, DIRECT,
        "Lightweight direct grants without milestones",
        aliases=("DirectGrantsLiteStrategyv1", "DirectGrantsLiteStrategyv1.0"),
    ),
    StrategyDefinition(
        "MicroGrantsStrategy", StrategyCategory.DIRECT, StrategyFamily.MICRO_GRANTS, DIRECT,
        "Small grants approved by allocator votes",
        aliases=("MicroGrantsv1", "MicroGrantsStrategyv1"),
    ),
    StrategyDefinition(
        "MicroGrantsGovStrategy", StrategyCategory.DIRECT, StrategyFamily.MICRO_GRANTS, DIRECT,
        "Micro grants gated by governance token holdings",
        aliases=("MicroGrantsGovv1",),
    ),
    StrategyDefinition(
        "MicroGrantsHatsStrategy", StrategyCategory.DIRECT, StrategyFamily.MICRO_GRANTS, DIRECT,
        "Micro grants gated by Hats protocol roles",
        aliases=("MicroGrantsHatsv1",),
    ),
    StrategyDefinition(
        "DonationVotingMerkleDistributionDirectTransferStrategy",
        StrategyCategory.MERKLE, StrategyFamily.MERKLE_DIRECT_TRANSFER, MERKLE_DIRECT,
        "Donation voting; payouts committed as a merkle root then transferred directly",
        aliases=(
            "DonationVotingMerkleDistributionDirectTransferStrategyv1",
            "DonationVotingMerkleDistributionDirectTransferStrategyv1.0",
            "DonationVotingMerkleDistributionDirectTransferStrategyv1.1",
        ),
    ),
    StrategyDefinition(
        "DonationVotingMerkleDistributionVaultStrategy",
        StrategyCategory.MERKLE, StrategyFamily.MERKLE_PAYOUT, MERKLE_CLAIM,
        "Donation voting; donations held in a vault and claimed by recipients",
        aliases=("DonationVotingMerkleDistributionVaultStrategyv1",),
    ),
    StrategyDefinition(
        "MerklePayoutStrategy", StrategyCategory.MERKLE, StrategyFamily.MERKLE_PAYOUT, MERKLE_CLAIM,
        "Recipients claim against a published merkle root",
    ),
    StrategyDefinition(
        "RFPSimpleStrategy", StrategyCategory.RFP, StrategyFamily.RFP, UNKNOWN_CAPABILITIES,
        "Single accepted proposal paid out per milestone",
        aliases=("RFPSimpleStrategyv1", "RFPSimpleStrategyv1.0"),
    ),
    StrategyDefinition(
        "RFPCommitteeStrategy", StrategyCategory.RFP, StrategyFamily.RFP, UNKNOWN_CAPABILITIES,
        "RFP with committee voting on the accepted proposal",
        aliases=("RFPCommitteeStrategyv1", "RFPCommitteeStrategyv1.0"),
    ),
    StrategyDefinition(
        "QVSimpleStrategy", StrategyCategory.VOTING, StrategyFamily.VOTING, UNKNOWN_CAPABILITIES,
        "Quadratic voting by allowlisted allocators",
        aliases=("QVSimpleStrategyv1", "QVSimpleStrategyv1.0"),
    ),
    StrategyDefinition(
        "SQFSuperFluidStrategy", StrategyCategory.STREAMING, StrategyFamily.STREAMING, UNKNOWN_CAPABILITIES,
        "Streaming quadratic funding over Superfluid",
        aliases=("SQFSuperFluidStrategyv1",),
    ),
)


def build_default_registry(networks: NetworkRegistry) -> StrategyRegistry:
    """Create a StrategyRegistry with every known strategy registered on every network."""
    registry = StrategyRegistry()
    chain_ids = networks.chain_ids()
    for definition in DEFAULT_STRATEGIES:
        registry.register(definition, chain_ids)

    # Deployment-specific ids that don't follow the keccak(name) rule
    for network in networks:
        for identifier_hash, name in network.strategy_ids.items():
            registry.register_id(network.chain_id, identifier_hash, name)

    return registry
