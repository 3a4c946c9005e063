"""Discovery orchestrator.

Runs one discovery cycle per tick:

1. Active probe of the whole subnet (each host in its own pool task)
2. Apply results: create new devices, refresh known ones, mark silent ones offline
3. ARP enrichment, then mDNS enrichment
4. Persist the registry snapshot

The first cycle after start-up is the priming cycle: devices it creates
(including ones already known from the snapshot) raise no alerts.
"""
import socket
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional, Union

from config import INTERVALS, LogContext, get_logger, log_exception
from discovery.alerts import AlertChannel
from discovery.arp import ArpEnricher
from discovery.device import Device
from discovery.mdns import MdnsEnricher
from discovery.prober import ActiveProber, ProbeResult, validate_prefix

if TYPE_CHECKING:
    from storage.device_registry import DeviceRegistry

logger = get_logger(__name__)


class ScanPhase(Enum):
    PRIMING = "priming"
    STEADY = "steady"


@dataclass
class CycleReport:
    """Summary of one discovery cycle."""
    alive: int = 0
    new_devices: List[str] = field(default_factory=list)
    passive_devices: int = 0
    saved: bool = False


def resolve_hostname(ip: str) -> str:
    """Reverse DNS lookup; empty string on any failure."""
    try:
        hostname, _, _ = socket.gethostbyaddr(ip)
    except (OSError, UnicodeError):
        return ""
    return hostname.rstrip(".")


class DiscoveryOrchestrator:
    """Drives the discovery pipeline and owns its background loop.

    Attributes:
        registry: Device registry shared with the presentation layer.
        alerts: Channel receiving "NEW DEVICE: <ip>" messages.
    """

    def __init__(
        self,
        registry: "DeviceRegistry",
        subnet: str,
        devices_file: Union[str, Path],
        prober: Optional[ActiveProber] = None,
        arp_enricher: Optional[ArpEnricher] = None,
        mdns_enricher: Optional[MdnsEnricher] = None,
        alerts: Optional[AlertChannel] = None,
        hostname_resolver: Callable[[str], str] = resolve_hostname,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.registry = registry
        self.subnet = validate_prefix(subnet)
        self.devices_file = Path(devices_file)
        self.prober = prober if prober is not None else ActiveProber()
        self.arp_enricher = (arp_enricher if arp_enricher is not None
                             else ArpEnricher(registry, self.subnet))
        self.mdns_enricher = (mdns_enricher if mdns_enricher is not None
                              else MdnsEnricher(registry))
        self.alerts = alerts if alerts is not None else AlertChannel()
        self._resolve_hostname = hostname_resolver
        self._clock = clock

        self._phase = ScanPhase.PRIMING
        self._cycle_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def phase(self) -> ScanPhase:
        return self._phase

    def get_devices(self) -> List[Device]:
        """Snapshot of every known device, ordered by IP."""
        return self.registry.snapshot()

    # ========================================================================
    # Cycle
    # ========================================================================

    def _apply_probe_result(self, result: ProbeResult, priming: bool,
                            report: CycleReport) -> None:
        """Apply one host's probe result; runs inside that host's pool task."""
        ip = result.ip

        if not result.alive:
            self.registry.update(ip, _mark_offline)
            return

        hostname = ""
        if not self.registry.contains(ip):
            hostname = self._resolve_hostname(ip)

        now = self._clock()
        services = list(result.services)

        def refresh(device: Device) -> None:
            device.last_seen = now
            device.is_online = True
            device.open_services = services

        created = self.registry.update(
            ip, refresh, factory=lambda: Device(ip=ip, hostname=hostname)
        )
        if created:
            report.new_devices.append(ip)
            if priming:
                logger.debug(f"Priming: registered {ip} without alert")
            else:
                logger.info(f"New device: {ip} {hostname}".rstrip())
                self.alerts.publish(f"NEW DEVICE: {ip}")

    def run_cycle(self) -> CycleReport:
        """Run one full discovery cycle.

        Enrichment starts only after every probe task has finished. Errors
        in any enrichment step are logged and the cycle carries on.
        """
        with self._cycle_lock, LogContext(logger, "Discovery cycle"):
            priming = self._phase is ScanPhase.PRIMING
            report = CycleReport()

            results = self.prober.probe_subnet(
                self.subnet,
                on_result=lambda r: self._apply_probe_result(r, priming, report),
            )
            report.alive = sum(1 for r in results.values() if r.alive)

            try:
                report.passive_devices = self.arp_enricher.enrich()
            except Exception as e:
                logger.error(f"ARP enrichment failed: {e}", exc_info=True)

            try:
                self.mdns_enricher.enrich()
            except Exception as e:
                logger.error(f"mDNS enrichment failed: {e}", exc_info=True)

            report.saved = self.registry.save(self.devices_file)

            self._phase = ScanPhase.STEADY
            logger.info(
                f"Cycle done: {report.alive} alive, {len(report.new_devices)} new, "
                f"{report.passive_devices} via ARP, {len(self.registry)} known"
            )
            return report

    # ========================================================================
    # Background loop
    # ========================================================================

    def _loop(self, interval: float) -> None:
        while not self._stop_event.is_set():
            try:
                self.run_cycle()
            except Exception as e:
                log_exception(logger, "Discovery cycle crashed", e)
            self._stop_event.wait(interval)

    def start(self, interval: float = INTERVALS.SCAN_SECONDS) -> None:
        """Start scanning in a daemon thread; cycles never overlap."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, args=(interval,), daemon=True, name="discovery"
        )
        self._thread.start()
        logger.info(f"Discovery started on {self.subnet}.0/24 every {interval:.0f}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the loop after the current cycle."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.debug("Discovery stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


def _mark_offline(device: Device) -> None:
    device.is_online = False
