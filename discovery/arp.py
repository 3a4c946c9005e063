"""Neighbor (ARP) table enrichment.

Attaches MAC addresses and vendors to known devices and passively adds
hosts that ignore every probed port but still show up in the kernel's
neighbor cache.
"""
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

from config import NETWORK, get_logger
from config.exceptions import SubprocessError
from config.subprocess_runner import safe_run
from discovery.device import Device
from discovery.oui import lookup_vendor, normalize_mac

if TYPE_CHECKING:
    from storage.device_registry import DeviceRegistry

logger = get_logger(__name__)

ArpEntry = Tuple[str, str]

# ? (192.168.1.1) at 0:11:22:33:44:55 on en0 ifscope [ethernet]
ARP_COMMAND_PATTERN = re.compile(r'\((\d+\.\d+\.\d+\.\d+)\)\s+at\s+([0-9a-fA-F:]+)')

INCOMPLETE_MACS = {"00:00:00:00:00:00", "FF:FF:FF:FF:FF:FF"}


def parse_proc_arp(content: str) -> List[ArpEntry]:
    """Parse /proc/net/arp text into (ip, mac) pairs.

    Format:
        IP address  HW type  Flags  HW address         Mask  Device
        10.0.0.5    0x1      0x2    aa:bb:cc:dd:ee:ff  *     eth0
    """
    entries = []
    for line in content.splitlines()[1:]:
        fields = line.split()
        if len(fields) < 4:
            continue
        entries.append((fields[0], fields[3]))
    return entries


def parse_arp_command(output: str) -> List[ArpEntry]:
    """Parse `arp -an` output into (ip, mac) pairs."""
    entries = []
    for line in output.splitlines():
        match = ARP_COMMAND_PATTERN.search(line)
        if match:
            entries.append((match.group(1), match.group(2)))
    return entries


def read_neighbor_table(proc_path: str = NETWORK.PROC_ARP_PATH) -> List[ArpEntry]:
    """Read the platform neighbor table; empty when unavailable."""
    if sys.platform.startswith("linux"):
        try:
            return parse_proc_arp(Path(proc_path).read_text())
        except OSError as e:
            logger.debug(f"Cannot read {proc_path}: {e}")
            return []

    try:
        result = safe_run(['arp', '-an'], timeout=NETWORK.ARP_TIMEOUT_SECONDS)
    except SubprocessError as e:
        logger.debug(f"ARP table unavailable: {e}")
        return []
    if result.returncode != 0:
        logger.debug(f"arp -an exited with {result.returncode}")
        return []
    return parse_arp_command(result.stdout)


class ArpEnricher:
    """Applies neighbor table entries inside one subnet to the registry."""

    def __init__(
        self,
        registry: "DeviceRegistry",
        subnet: str,
        table_reader: Optional[Callable[[], List[ArpEntry]]] = None,
    ):
        self.registry = registry
        self.subnet = subnet
        self._read_table = table_reader if table_reader is not None else read_neighbor_table

    def _in_subnet(self, ip: str) -> bool:
        return ip.startswith(f"{self.subnet}.")

    def enrich(self) -> int:
        """Run one pass over the neighbor table.

        Returns:
            Number of devices created passively by this pass.
        """
        created = 0
        for ip, raw_mac in self._read_table():
            if not self._in_subnet(ip):
                continue
            mac = normalize_mac(raw_mac)
            if mac in INCOMPLETE_MACS:
                continue
            manufacturer = lookup_vendor(mac)

            def apply(device: Device, mac=raw_mac, manufacturer=manufacturer) -> None:
                device.mac = mac
                device.manufacturer = manufacturer

            def passive_device(ip=ip) -> Device:
                return Device(ip=ip, last_seen=datetime.now(), is_online=True)

            if self.registry.update(ip, apply, factory=passive_device):
                created += 1
                logger.info(f"Passively discovered {ip} ({raw_mac}) via neighbor table")

        return created
