"""Wake-on-LAN magic packets."""
import re
import socket

from config import WOL, get_logger
from config.exceptions import WakeOnLanError
from discovery.oui import normalize_mac as _canonical_mac

logger = get_logger(__name__)

_MAC_PATTERN = re.compile(r'^([0-9a-f]{2}:){5}[0-9a-f]{2}$')


def normalize_mac(mac: str) -> str:
    """Lower-case a MAC address and use ':' as separator."""
    return _canonical_mac(mac).lower()


def parse_mac(mac: str) -> bytes:
    """Parse "aa:bb:cc:dd:ee:ff" or "AA-BB-CC-DD-EE-FF" into 6 raw bytes.

    Raises:
        WakeOnLanError: If the address does not have six hex octets.
    """
    normalized = normalize_mac(mac or "")
    if not _MAC_PATTERN.match(normalized):
        raise WakeOnLanError("Invalid MAC address", {"mac": mac})
    return bytes.fromhex(normalized.replace(":", ""))


def build_magic_packet(mac: str) -> bytes:
    """Six 0xFF bytes followed by the MAC repeated sixteen times."""
    return b'\xff' * 6 + parse_mac(mac) * WOL.REPEAT


def wake(mac: str, broadcast: str = WOL.BROADCAST_ADDRESS, port: int = WOL.PORT) -> None:
    """Broadcast a magic packet for `mac`.

    Raises:
        WakeOnLanError: On a malformed MAC or if the packet cannot be sent.
    """
    packet = build_magic_packet(mac)
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.sendto(packet, (broadcast, port))
    except OSError as e:
        raise WakeOnLanError(f"Cannot send magic packet: {e}", {"mac": mac}) from e
    logger.info(f"Sent Wake-on-LAN packet to {normalize_mac(mac)} via {broadcast}:{port}")
