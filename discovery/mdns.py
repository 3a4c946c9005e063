"""mDNS / DNS-SD enrichment.

Browses a fixed list of service types with zeroconf and attaches friendly
names, inferred device classes and TXT metadata to devices that are
already in the registry. mDNS never creates devices.
"""
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

from zeroconf import IPVersion, ServiceBrowser, ServiceStateChange, Zeroconf

from config import NETWORK, get_logger
from discovery.device import UNKNOWN_TYPE, Device, merge_device_type, merge_friendly_name

if TYPE_CHECKING:
    from storage.device_registry import DeviceRegistry

logger = get_logger(__name__)

MDNS_DOMAIN = ".local."

SERVICE_CLASS_MAP: Dict[str, str] = {
    "_googlecast._tcp": "Chromecast/Speaker",
    "_airplay._tcp": "Apple Device",
    "_printer._tcp": "Printer",
    "_ipp._tcp": "Printer",
    "_spotify-connect._tcp": "Speaker",
    "_hap._tcp": "Smart Home",
    "_workstation._tcp": "Computer/NAS",
    "_smb._tcp": "Computer/NAS",
    "_http._tcp": "Web Server",
}


@dataclass
class ServiceEntry:
    """One resolved mDNS service instance."""
    address: str
    instance: str
    service: str  # e.g. "_googlecast._tcp"
    text: List[str] = field(default_factory=list)


def infer_device_class(service: str) -> str:
    """Map a service type to a device class label."""
    return SERVICE_CLASS_MAP.get(service, UNKNOWN_TYPE)


def clean_instance_name(instance: str) -> str:
    """Drop an "@host" suffix: "Office@printer-7" -> "Office"."""
    return instance.split("@", 1)[0]


def _strip_domain(service_type: str) -> str:
    if service_type.endswith(MDNS_DOMAIN):
        return service_type[:-len(MDNS_DOMAIN)]
    return service_type.rstrip(".")


def _txt_records(properties: Dict[bytes, Optional[bytes]]) -> List[str]:
    records = []
    for key, value in properties.items():
        key_text = key.decode("utf-8", errors="replace")
        if value is None:
            records.append(key_text)
        else:
            records.append(f"{key_text}={value.decode('utf-8', errors='replace')}")
    return records


BrowseFunc = Callable[[Sequence[str], float, Callable[[ServiceEntry], None]], None]


def browse_services(
    service_types: Sequence[str],
    deadline: float,
    on_entry: Callable[[ServiceEntry], None],
) -> None:
    """Browse all `service_types` at once until `deadline` seconds pass.

    When the deadline fires every browser is cancelled and the zeroconf
    instance is closed, regardless of outstanding resolutions. Entries
    resolved after that point are dropped. Each resolution is capped at
    the time left in the pass, so cancelling never waits past the deadline.
    """
    stopped = threading.Event()
    ends_at = time.monotonic() + deadline

    def on_state_change(zeroconf: Zeroconf, service_type: str, name: str,
                        state_change: ServiceStateChange) -> None:
        if state_change is not ServiceStateChange.Added or stopped.is_set():
            return
        remaining_ms = int((ends_at - time.monotonic()) * 1000)
        if remaining_ms <= 0:
            return
        info = zeroconf.get_service_info(
            service_type, name, timeout=min(NETWORK.MDNS_INFO_TIMEOUT_MS, remaining_ms)
        )
        if info is None or stopped.is_set():
            return
        addresses = info.parsed_addresses(IPVersion.V4Only)
        if not addresses:
            return
        instance = name[:-len(service_type)].rstrip(".") if name.endswith(service_type) else name
        on_entry(ServiceEntry(
            address=addresses[0],
            instance=instance,
            service=_strip_domain(service_type),
            text=_txt_records(info.properties),
        ))

    zc = Zeroconf(ip_version=IPVersion.V4Only)
    browser = None
    try:
        browser = ServiceBrowser(
            zc,
            [f"{service}{MDNS_DOMAIN}" for service in service_types],
            handlers=[on_state_change],
        )
        stopped.wait(deadline)
    finally:
        stopped.set()
        if browser is not None:
            browser.cancel()
        zc.close()


class MdnsEnricher:
    """Applies mDNS service entries to devices already in the registry."""

    def __init__(
        self,
        registry: "DeviceRegistry",
        service_types: Sequence[str] = NETWORK.MDNS_SERVICES,
        deadline: float = NETWORK.MDNS_PASS_SECONDS,
        browse: Optional[BrowseFunc] = None,
    ):
        self.registry = registry
        self.service_types = tuple(service_types)
        self.deadline = deadline
        self._browse = browse if browse is not None else browse_services

    def apply_entry(self, entry: ServiceEntry) -> bool:
        """Merge one entry into its device.

        Returns:
            False if the address is not a known device (entry discarded).
        """
        name = clean_instance_name(entry.instance)
        device_class = infer_device_class(entry.service)

        def apply(device: Device) -> None:
            device.friendly_name = merge_friendly_name(
                device.friendly_name, name, device.hostname
            )
            device.device_type = merge_device_type(device.device_type, device_class)
            if entry.text:
                device.service_metadata[entry.service] = entry.text[0]

        applied = self.registry.update(entry.address, apply) is not None
        if applied:
            logger.debug(f"mDNS: {entry.address} is {name!r} ({entry.service})")
        return applied

    def _on_entry(self, entry: ServiceEntry) -> None:
        try:
            self.apply_entry(entry)
        except Exception as e:
            logger.error(f"Error applying mDNS entry for {entry.address}: {e}", exc_info=True)

    def enrich(self) -> None:
        """Run one browse pass bounded by the pass-wide deadline."""
        try:
            self._browse(self.service_types, self.deadline, self._on_entry)
        except OSError as e:
            # No multicast-capable interface, socket permissions, ...
            logger.warning(f"mDNS enrichment unavailable: {e}")
