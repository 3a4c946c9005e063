"""Device record and the field merge rules applied during discovery."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from dateutil.parser import isoparse

from config import get_logger

logger = get_logger(__name__)


UNKNOWN_TYPE = "Unknown"


@dataclass
class Device:
    """A host seen on the local network, keyed by its IPv4 address."""
    ip: str
    hostname: str = ""
    mac: str = ""
    manufacturer: str = ""
    open_services: List[str] = field(default_factory=list)
    last_seen: Optional[datetime] = None
    is_online: bool = False
    friendly_name: str = ""
    device_type: str = ""
    service_metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Best name to show: friendly name > hostname > IP."""
        return self.friendly_name or self.hostname or self.ip

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted snapshot format (empty fields omitted)."""
        data: Dict[str, Any] = {"ip": self.ip}
        if self.hostname:
            data["hostname"] = self.hostname
        if self.mac:
            data["mac"] = self.mac
        if self.manufacturer:
            data["manufacturer"] = self.manufacturer
        if self.open_services:
            data["ports"] = list(self.open_services)
        data["last_seen"] = self.last_seen.isoformat() if self.last_seen else None
        data["is_online"] = self.is_online
        if self.friendly_name:
            data["friendly_name"] = self.friendly_name
        if self.device_type:
            data["device_type"] = self.device_type
        if self.service_metadata:
            data["mdns_info"] = dict(self.service_metadata)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Device':
        return cls(
            ip=data["ip"],
            hostname=data.get("hostname") or "",
            mac=data.get("mac") or "",
            manufacturer=data.get("manufacturer") or "",
            open_services=list(data.get("ports") or []),
            last_seen=parse_timestamp(data.get("last_seen")),
            is_online=bool(data.get("is_online", False)),
            friendly_name=data.get("friendly_name") or "",
            device_type=data.get("device_type") or "",
            service_metadata=dict(data.get("mdns_info") or {}),
        )


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, tolerating nanosecond precision."""
    if not value:
        return None
    try:
        return isoparse(value)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Unparseable timestamp {value!r}: {e}")
        return None


# ============================================================================
# Upgrade-only merge rules
# ============================================================================

def merge_friendly_name(current: str, candidate: str, hostname: str) -> str:
    """Return the friendly name to keep.

    The current name is replaced only when it is empty or still equal to
    the hostname placeholder.
    """
    if not candidate:
        return current
    if not current or current == hostname:
        return candidate
    return current


def merge_device_type(current: str, candidate: str) -> str:
    """Return the device type to keep.

    The current type is replaced only when it is empty or "Unknown".
    """
    if not candidate:
        return current
    if not current or current == UNKNOWN_TYPE:
        return candidate
    return current
