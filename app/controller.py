"""Application controller for HomeNet.

Starts and stops the discovery pipeline and the DNS gatekeeper, and
provides the current state to the presentation layer.

Usage:
    from app.controller import AppController
    from app.dependencies import create_dependencies

    deps = create_dependencies(config)
    controller = AppController(deps)
    controller.start()
"""
from dataclasses import dataclass, field
from typing import List, Optional

from app.dependencies import AppDependencies
from config import get_logger
from config.exceptions import GatekeeperError
from discovery.device import Device

logger = get_logger(__name__)


@dataclass
class StatusSnapshot:
    """Point-in-time view for the presentation layer."""
    devices: List[Device] = field(default_factory=list)
    online: int = 0
    total_queries: int = 0
    blocked_queries: int = 0
    gatekeeper_running: bool = False
    alerts: List[str] = field(default_factory=list)


class AppController:
    """Central controller that owns the lifecycle of both subsystems.

    The two subsystems fail independently: a gatekeeper that cannot bind
    its port does not stop discovery, and vice versa.

    Attributes:
        deps: The dependency container with all components.
        gatekeeper_error: Why the gatekeeper did not start, if it didn't.
    """

    def __init__(self, deps: AppDependencies):
        self.deps = deps
        self.gatekeeper_error: Optional[GatekeeperError] = None
        self._running = False

    def start(self) -> None:
        """Load the persisted snapshot, then start discovery and the gatekeeper."""
        logger.info("Starting AppController...")
        self.deps.registry.load(self.deps.devices_path)

        self.deps.orchestrator.start(self.deps.config.scan_interval)

        try:
            self.deps.gatekeeper.start()
        except GatekeeperError as e:
            self.gatekeeper_error = e
            logger.error(f"DNS gatekeeper disabled: {e}")

        self._running = True
        logger.info("AppController started")

    def stop(self) -> None:
        """Stop both subsystems and persist the registry."""
        if not self._running:
            return
        logger.info("Stopping AppController...")
        self._running = False
        self.deps.gatekeeper.stop()
        self.deps.orchestrator.stop(timeout=5)
        self.deps.registry.save(self.deps.devices_path)
        logger.info("AppController stopped")

    def update(self) -> StatusSnapshot:
        """Collect the current state and any pending alerts."""
        devices = self.deps.orchestrator.get_devices()
        total, blocked = self.deps.gatekeeper.get_stats()
        return StatusSnapshot(
            devices=devices,
            online=sum(1 for d in devices if d.is_online),
            total_queries=total,
            blocked_queries=blocked,
            gatekeeper_running=self.deps.gatekeeper.is_running,
            alerts=self.deps.alerts.drain(),
        )


def format_status(status: StatusSnapshot) -> str:
    """One-line status summary."""
    dns = (f"DNS {status.total_queries} queries, {status.blocked_queries} blocked"
           if status.gatekeeper_running else "DNS off")
    return f"{status.online}/{len(status.devices)} devices online | {dns}"


def format_device(device: Device) -> str:
    state = "up  " if device.is_online else "down"
    parts = [f"{device.ip:<15}", state, device.display_name]
    if device.device_type and device.device_type != "Unknown":
        parts.append(f"[{device.device_type}]")
    if device.manufacturer:
        parts.append(f"({device.manufacturer})")
    if device.open_services:
        parts.append(",".join(device.open_services))
    return "  ".join(p for p in parts if p)
