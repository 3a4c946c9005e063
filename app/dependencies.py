"""Dependency injection container for HomeNet.

Provides a centralized way to create and wire the discovery pipeline and
the DNS gatekeeper, making components easier to test and swap out.

Usage:
    from app.dependencies import create_dependencies
    from storage.settings import load_config

    deps = create_dependencies(load_config(path))
    deps.orchestrator.start()
    deps.gatekeeper.start()
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from config import STORAGE, get_logger
from discovery.alerts import AlertChannel
from discovery.arp import ArpEnricher
from discovery.mdns import MdnsEnricher
from discovery.orchestrator import DiscoveryOrchestrator
from discovery.prober import ActiveProber, detect_subnet
from gatekeeper.forwarders import create_forwarder
from gatekeeper.server import DNSGatekeeper
from storage.device_registry import DeviceRegistry
from storage.settings import AppConfig

logger = get_logger(__name__)


@dataclass
class AppDependencies:
    """Container for all application components.

    Using a dataclass makes dependencies explicit and easy to mock in tests.
    """

    config: AppConfig
    data_dir: Path
    devices_path: Path
    subnet: str

    registry: DeviceRegistry
    alerts: AlertChannel
    orchestrator: DiscoveryOrchestrator
    gatekeeper: DNSGatekeeper

    def __post_init__(self):
        logger.debug("AppDependencies container created")


def resolve_data_path(data_dir: Path, name: Union[str, Path]) -> Path:
    """Relative file names live in the data directory."""
    path = Path(name).expanduser()
    return path if path.is_absolute() else data_dir / path


def create_dependencies(config: AppConfig, data_dir: Optional[Path] = None) -> AppDependencies:
    """Create all application components from a configuration.

    Args:
        config: Loaded application configuration.
        data_dir: Override the default data directory (~/.homenet).

    Raises:
        ConfigurationError: If the configuration cannot be used.
    """
    config.validate()

    if data_dir is None:
        data_dir = Path.home() / STORAGE.DATA_DIR_NAME

    subnet = config.subnet or detect_subnet()
    devices_path = resolve_data_path(data_dir, config.devices_file)

    registry = DeviceRegistry()
    alerts = AlertChannel()
    orchestrator = DiscoveryOrchestrator(
        registry,
        subnet,
        devices_path,
        prober=ActiveProber(),
        arp_enricher=ArpEnricher(registry, subnet),
        mdns_enricher=MdnsEnricher(registry),
        alerts=alerts,
    )

    forwarder = create_forwarder(config.resolver_mode, config.upstream_address, config.doh_url)
    gatekeeper = DNSGatekeeper(config.block_list, forwarder, port=config.port)

    logger.info(f"Dependencies created: subnet {subnet}.0/24, resolver {forwarder!r}")
    return AppDependencies(
        config=config,
        data_dir=data_dir,
        devices_path=devices_path,
        subnet=subnet,
        registry=registry,
        alerts=alerts,
        orchestrator=orchestrator,
        gatekeeper=gatekeeper,
    )
