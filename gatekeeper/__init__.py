"""DNS gatekeeper: blocklist filtering forwarder over UDP or DoH."""

from .forwarders import DohForwarder, UdpForwarder, create_forwarder
from .server import DNSGatekeeper

__all__ = [
    "DNSGatekeeper",
    "DohForwarder",
    "UdpForwarder",
    "create_forwarder",
]
