from eth_abi import encode
from eth_utils import keccak

from allodisburse.domain.enums import StrategyCategory, StrategyFamily
from allodisburse.networks import NetworkConfig, NetworkRegistry
from allodisburse.strategy.registry import (
    DEFAULT_STRATEGIES,
    StrategyDefinition,
    StrategyRegistry,
    build_default_registry,
    strategy_id_for,
)

CELO_DONATION_VOTING_ID = "0x9fa6890423649187b1f0e8bf4265f0305ce99523c3d11aa36b35a54617bb0ec0"


class TestStrategyIdFor:
    def test_abi_encoded_name(self):
        expected = "0x" + keccak(encode(["string"], ["DirectGrantsSimpleStrategyv1"])).hex()
        assert strategy_id_for("DirectGrantsSimpleStrategyv1") == expected

    def test_not_packed_hash(self):
        assert strategy_id_for("X") != "0x" + keccak(text="X").hex()


class TestDefaultRegistry:
    def test_lookup_by_alias(self, strategy_registry):
        assert strategy_registry.lookup_name("DirectGrantsSimpleStrategyv1") == "DirectGrantsSimpleStrategy"
        assert strategy_registry.lookup_name("DirectGrantsSimpleStrategy") == "DirectGrantsSimpleStrategy"
        assert strategy_registry.lookup_name("NotAStrategy") is None

    def test_lookup_by_id_on_every_chain(self, strategy_registry, networks):
        identifier = strategy_id_for("MicroGrantsv1")
        for chain_id in networks.chain_ids():
            assert strategy_registry.lookup_id(chain_id, identifier) == "MicroGrantsStrategy"

    def test_lookup_by_id_case_insensitive(self, strategy_registry):
        identifier = strategy_id_for("QVSimpleStrategyv1").upper().replace("0X", "0x")
        assert strategy_registry.lookup_id(10, identifier) == "QVSimpleStrategy"

    def test_unknown_chain(self, strategy_registry):
        assert strategy_registry.lookup_id(999, strategy_id_for("MicroGrantsv1")) is None

    def test_configured_chain_specific_id(self, strategy_registry):
        assert (
            strategy_registry.lookup_id(42220, CELO_DONATION_VOTING_ID)
            == "DonationVotingMerkleDistributionDirectTransferStrategy"
        )
        assert strategy_registry.lookup_id(10, CELO_DONATION_VOTING_ID) is None

    def test_every_definition_registered(self, strategy_registry):
        assert strategy_registry.names() == sorted(d.canonical_name for d in DEFAULT_STRATEGIES)

    def test_direct_grants_capabilities(self, strategy_registry):
        caps = strategy_registry.capabilities_for("DirectGrantsSimpleStrategy")
        assert caps.supports_direct_distribution
        assert not caps.requires_merkle_tree
        assert not caps.requires_claiming

    def test_merkle_capabilities(self, strategy_registry):
        direct = strategy_registry.capabilities_for("DonationVotingMerkleDistributionDirectTransferStrategy")
        assert direct.supports_direct_distribution and direct.requires_merkle_tree
        payout = strategy_registry.capabilities_for("MerklePayoutStrategy")
        assert payout.requires_claiming and not payout.supports_direct_distribution

    def test_unknown_capabilities_all_false(self, strategy_registry):
        for name in (None, "Whatever"):
            caps = strategy_registry.capabilities_for(name)
            assert not (caps.supports_direct_distribution or caps.requires_merkle_tree or caps.requires_claiming)
            assert strategy_registry.family_for(name) == StrategyFamily.UNKNOWN

    def test_profile_for_unknown(self, strategy_registry):
        profile = strategy_registry.profile_for("0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed", None)
        assert profile.canonical_identity is None
        assert profile.category == StrategyCategory.OTHER
        assert profile.address == "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


class TestCustomRegistry:
    def test_register_on_selected_chains(self):
        registry = StrategyRegistry()
        registry.register(
            StrategyDefinition("MyStrategy", StrategyCategory.DIRECT, StrategyFamily.DIRECT_GRANTS,
                               DEFAULT_STRATEGIES[0].capabilities, aliases=("MyStrategyv2",)),
            chain_ids=[10],
        )
        assert registry.lookup_id(10, strategy_id_for("MyStrategyv2")) == "MyStrategy"
        assert registry.lookup_id(1, strategy_id_for("MyStrategyv2")) is None

    def test_network_extra_ids(self):
        networks = NetworkRegistry([
            NetworkConfig(chain_id=5, name="Test", strategy_ids={"0xAB" + "00" * 31: "RFPSimpleStrategy"}),
        ])
        registry = build_default_registry(networks)
        assert registry.lookup_id(5, "0xab" + "00" * 31) == "RFPSimpleStrategy"
