"""Active TCP connect probing of a /24 subnet.

Every host address in the prefix is tried against a small map of
well-known ports. A host counts as alive when any port accepts a
connection. Probes run on a fixed-size worker pool so the number of
sockets in flight never exceeds the pool size.
"""
import ipaddress
import socket
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import psutil

from config import NETWORK, get_logger
from config.exceptions import ScannerError

logger = get_logger(__name__)


@dataclass
class ProbeResult:
    """Outcome of probing one host."""
    ip: str
    alive: bool = False
    services: List[str] = field(default_factory=list)


def validate_prefix(subnet: str) -> str:
    """Check that `subnet` is three dotted octets (e.g. "192.168.1")."""
    subnet = subnet.strip().rstrip(".")
    parts = subnet.split(".")
    if len(parts) != 3 or not all(p.isdigit() and 0 <= int(p) <= 255 for p in parts):
        raise ScannerError("Invalid subnet prefix", {"subnet": subnet})
    return subnet


def host_addresses(subnet: str) -> List[str]:
    """All host addresses of a /24 prefix, .1 through .254."""
    prefix = validate_prefix(subnet)
    return [f"{prefix}.{i}" for i in range(NETWORK.FIRST_HOST, NETWORK.LAST_HOST + 1)]


def detect_subnet() -> str:
    """Prefix of the first non-loopback IPv4 interface address.

    Falls back to NETWORK.FALLBACK_SUBNET when no usable address is found.
    """
    try:
        interfaces = psutil.net_if_addrs()
    except (OSError, RuntimeError) as e:
        logger.warning(f"Could not enumerate interfaces: {e}")
        return NETWORK.FALLBACK_SUBNET

    for iface, addrs in interfaces.items():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.IPv4Address(addr.address)
            except ValueError:
                continue
            if ip.is_loopback or ip.is_link_local:
                continue
            subnet = addr.address.rsplit(".", 1)[0]
            logger.info(f"Auto-detected subnet {subnet} on {iface}")
            return subnet

    logger.warning(f"No IPv4 interface found, using {NETWORK.FALLBACK_SUBNET}")
    return NETWORK.FALLBACK_SUBNET


def tcp_connect(ip: str, port: int, timeout: float) -> bool:
    """True if a TCP connection to ip:port is accepted within `timeout`."""
    try:
        with socket.create_connection((ip, port), timeout=timeout):
            return True
    except OSError:
        return False


class ActiveProber:
    """Probes a /24 subnet for live hosts and their open services.

    The prober never touches the device registry; callers apply results.

    Example:
        >>> prober = ActiveProber()
        >>> results = prober.probe_subnet("192.168.1")
        >>> [r.ip for r in results.values() if r.alive]
    """

    def __init__(
        self,
        ports: Sequence[Tuple[int, str]] = NETWORK.PROBE_PORTS,
        timeout: float = NETWORK.PROBE_TIMEOUT_SECONDS,
        max_workers: int = NETWORK.PROBE_WORKERS,
        connect: Callable[[str, int, float], bool] = tcp_connect,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.ports = tuple(ports)
        self.timeout = timeout
        self.max_workers = max_workers
        self._connect = connect

    def probe_host(self, ip: str) -> ProbeResult:
        """Try every configured port on one host, in order."""
        services = [
            label for port, label in self.ports
            if self._connect(ip, port, self.timeout)
        ]
        return ProbeResult(ip=ip, alive=bool(services), services=services)

    def probe_subnet(
        self,
        subnet: str,
        on_result: Optional[Callable[[ProbeResult], None]] = None,
    ) -> Dict[str, ProbeResult]:
        """Probe all 254 hosts of `subnet` on the worker pool.

        Args:
            subnet: First three octets, e.g. "192.168.1".
            on_result: Optional callback run inside the worker task right
                after a host is probed. Exceptions it raises are logged and
                do not affect other hosts.

        Returns:
            Mapping of every probed IP to its ProbeResult. The call returns
            only after every task has finished.
        """
        addresses = host_addresses(subnet)
        results: Dict[str, ProbeResult] = {}

        def task(ip: str) -> ProbeResult:
            result = self.probe_host(ip)
            if on_result is not None:
                try:
                    on_result(result)
                except Exception as e:
                    logger.error(f"Error applying probe result for {ip}: {e}", exc_info=True)
            return result

        with ThreadPoolExecutor(max_workers=self.max_workers,
                                thread_name_prefix="probe") as pool:
            for result in pool.map(task, addresses):
                results[result.ip] = result

        alive = sum(1 for r in results.values() if r.alive)
        logger.debug(f"Probed {len(results)} hosts in {subnet}.0/24, {alive} alive")
        return results
