"""Centralized constants and defaults for HomeNet.

Every tunable number, port map and default path used by the discovery
pipeline and the DNS gatekeeper lives here, so the rest of the codebase
never carries magic values.

Usage:
    from config.constants import INTERVALS, NETWORK, GATEKEEPER

    timeout = NETWORK.PROBE_TIMEOUT_SECONDS
    port = GATEKEEPER.DEFAULT_PORT
"""
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Intervals:
    """Time intervals for background activities (in seconds)."""
    # Discovery loop: sleep between the end of one cycle and the next
    SCAN_SECONDS: float = 30.0

    # Presentation polling
    STATUS_REFRESH_SECONDS: float = 2.0

    # Subprocess timeouts
    SUBPROCESS_TIMEOUT_SECONDS: float = 5.0


@dataclass(frozen=True)
class NetworkConfig:
    """Discovery-related configuration."""
    FALLBACK_SUBNET: str = "192.168.1"

    # Active probing
    PROBE_TIMEOUT_SECONDS: float = 0.2
    PROBE_WORKERS: int = 50
    FIRST_HOST: int = 1
    LAST_HOST: int = 254

    # Port -> service label, probed in this order
    PROBE_PORTS: Tuple[Tuple[int, str], ...] = (
        (80, "HTTP"),
        (443, "HTTPS"),
        (22, "SSH"),
        (53, "DNS"),
        (8080, "HTTP-ALT"),
        (62078, "iOS-Sync"),
        (5353, "mDNS"),
        (3389, "RDP"),
        (5000, "UPnP"),
        (8000, "HTTP-ALT"),
    )

    # Neighbor table
    PROC_ARP_PATH: str = "/proc/net/arp"
    ARP_TIMEOUT_SECONDS: float = 5.0

    # mDNS enrichment: one deadline for the whole pass
    MDNS_PASS_SECONDS: float = 5.0
    MDNS_INFO_TIMEOUT_MS: int = 1500
    MDNS_SERVICES: Tuple[str, ...] = (
        "_workstation._tcp",
        "_googlecast._tcp",
        "_airplay._tcp",
        "_printer._tcp",
        "_ipp._tcp",
        "_spotify-connect._tcp",
        "_hap._tcp",  # HomeKit
        "_http._tcp",
        "_smb._tcp",
    )

    # New-device alerts
    ALERT_QUEUE_SIZE: int = 10


@dataclass(frozen=True)
class GatekeeperConfig:
    """DNS gatekeeper configuration."""
    DEFAULT_PORT: int = 53
    DEFAULT_UPSTREAM: str = "1.1.1.1:53"
    DEFAULT_MODE: str = "udp"
    MODES: Tuple[str, ...] = ("udp", "doh")
    DEFAULT_DOH_URL: str = "https://cloudflare-dns.com/dns-query"
    DOH_CONTENT_TYPE: str = "application/dns-message"
    DOH_TIMEOUT_SECONDS: float = 5.0
    UDP_TIMEOUT_SECONDS: float = 2.0
    MAX_DATAGRAM_BYTES: int = 4096

    DEFAULT_BLOCK_LIST: Tuple[str, ...] = (
        "ads.google.com.",
        "doubleclick.net.",
        "analytics.google.com.",
        "google-analytics.com.",
        "googlesyndication.com.",
        "adservice.google.com.",
        "facebook.com.",
        "graph.facebook.com.",
        "creative.ak.fbcdn.net.",
        "pixel.facebook.com.",
        "ad.doubleclick.net.",
        "pagead2.googlesyndication.com.",
        "tpc.googlesyndication.com.",
        "www.googleadservices.com.",
        "partner.googleadservices.com.",
        "telemetry.microsoft.com.",
        "vortex.data.microsoft.com.",
        "settings-win.data.microsoft.com.",
    )


@dataclass(frozen=True)
class StorageConfig:
    """Storage and file-related configuration."""
    DATA_DIR_NAME: str = ".homenet"
    CONFIG_FILE: str = "config.json"
    DEVICES_FILE: str = "devices.json"
    LOG_FILE: str = "homenet.log"

    # Log rotation
    LOG_MAX_BYTES: int = 5_000_000  # 5MB
    LOG_BACKUP_COUNT: int = 3


@dataclass(frozen=True)
class WakeOnLanConfig:
    """Wake-on-LAN magic packet settings."""
    BROADCAST_ADDRESS: str = "255.255.255.255"
    PORT: int = 9
    REPEAT: int = 16


# Global instances - import these
INTERVALS = Intervals()
NETWORK = NetworkConfig()
GATEKEEPER = GatekeeperConfig()
STORAGE = StorageConfig()
WOL = WakeOnLanConfig()


# Allowed commands for subprocess safety
ALLOWED_SUBPROCESS_COMMANDS = frozenset({
    'arp',
})
