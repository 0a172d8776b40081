from dependency_injector import containers, providers

from allodisburse.config import Settings
from allodisburse.distribution.orchestrator import DistributionOrchestrator
from allodisburse.infra.blockchain.evm.rpc_client import RpcReaderFactory
from allodisburse.infra.http.rate_limited_client import RateLimitedClient
from allodisburse.networks import NetworkRegistry, build_default_networks, load_networks
from allodisburse.pool.inspector import PoolInspector
from allodisburse.recipients.directory import RecipientDirectory
from allodisburse.strategy.classifier import StrategyClassifier
from allodisburse.strategy.registry import build_default_registry
from allodisburse.tokens.resolver import TokenResolver


def build_networks(networks_file: str) -> NetworkRegistry:
    return load_networks(networks_file) if networks_file else build_default_networks()


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["allodisburse.api.deps"])

    settings = providers.Singleton(Settings)

    networks = providers.Singleton(build_networks, networks_file=settings.provided.networks_file)

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.rpc_rate_per_second,
        timeout=settings.provided.rpc_timeout,
    )

    reader_factory = providers.Singleton(
        RpcReaderFactory,
        rpc_urls=settings.provided.rpc_urls,
        http_client=http_client,
    )

    strategy_registry = providers.Singleton(build_default_registry, networks=networks)

    classifier = providers.Singleton(
        StrategyClassifier,
        registry=strategy_registry,
        reader_factory=reader_factory,
    )

    token_resolver = providers.Singleton(TokenResolver, networks=networks, reader_factory=reader_factory)

    recipient_directory = providers.Singleton(
        RecipientDirectory,
        networks=networks,
        reader_factory=reader_factory,
        classifier=classifier,
    )

    pool_inspector = providers.Singleton(
        PoolInspector,
        networks=networks,
        reader_factory=reader_factory,
        token_resolver=token_resolver,
        classifier=classifier,
        directory=recipient_directory,
    )

    orchestrator = providers.Singleton(
        DistributionOrchestrator,
        registry=strategy_registry,
        confirm_intermediate_steps=settings.provided.confirm_intermediate_steps,
        default_metadata_pointer=settings.provided.default_metadata_pointer,
    )
