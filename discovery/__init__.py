"""Device discovery pipeline: probing, enrichment and change alerting."""

from .alerts import AlertChannel
from .arp import ArpEnricher
from .device import Device
from .mdns import MdnsEnricher, ServiceEntry
from .orchestrator import DiscoveryOrchestrator, ScanPhase
from .oui import lookup_vendor
from .prober import ActiveProber, ProbeResult, detect_subnet

__all__ = [
    "ActiveProber",
    "AlertChannel",
    "ArpEnricher",
    "Device",
    "DiscoveryOrchestrator",
    "MdnsEnricher",
    "ProbeResult",
    "ScanPhase",
    "ServiceEntry",
    "detect_subnet",
    "lookup_vendor",
]
