"""Upstream forwarding: classic DNS over UDP and DNS-over-HTTPS (RFC 8484).

Both forwarders take the client's query bytes and return the parsed
upstream response, raising UpstreamError on any failure.
"""
import socket
import time
from typing import Optional, Tuple

import requests
from scapy.layers.dns import DNS

from config import GATEKEEPER, get_logger
from config.exceptions import ConfigurationError, UpstreamError
from gatekeeper.wire import parse_upstream

logger = get_logger(__name__)


class UdpForwarder:
    """Exchanges the exact client query with an upstream resolver over UDP."""

    mode = "udp"

    def __init__(self, upstream: Tuple[str, int],
                 timeout: float = GATEKEEPER.UDP_TIMEOUT_SECONDS):
        self.upstream = upstream
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"UdpForwarder({self.upstream[0]}:{self.upstream[1]})"

    def forward(self, query: bytes) -> DNS:
        host, port = self.upstream
        try:
            family, _, _, _, address = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)[0]
        except (OSError, IndexError) as e:
            raise UpstreamError(f"Cannot resolve upstream {host}: {e}") from e

        query_id = query[:2]
        deadline = time.monotonic() + self.timeout
        try:
            with socket.socket(family, socket.SOCK_DGRAM) as sock:
                sock.connect(address)
                sock.send(query)
                while True:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise socket.timeout("no matching response")
                    sock.settimeout(remaining)
                    data = sock.recv(GATEKEEPER.MAX_DATAGRAM_BYTES)
                    # Ignore stray datagrams for other transactions
                    if data[:2] == query_id:
                        break
                    logger.debug(f"Ignoring upstream datagram with foreign id from {host}")
        except OSError as e:
            raise UpstreamError(f"UDP exchange with {host}:{port} failed: {e}") from e

        return parse_upstream(data)


class DohForwarder:
    """Posts the query in wire format to a DNS-over-HTTPS endpoint."""

    mode = "doh"

    def __init__(self, url: str, timeout: float = GATEKEEPER.DOH_TIMEOUT_SECONDS,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def __repr__(self) -> str:
        return f"DohForwarder({self.url})"

    def forward(self, query: bytes) -> DNS:
        headers = {
            "Content-Type": GATEKEEPER.DOH_CONTENT_TYPE,
            "Accept": GATEKEEPER.DOH_CONTENT_TYPE,
        }
        try:
            response = self.session.post(self.url, data=query, headers=headers,
                                         timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"DoH request failed: {e}", {"url": self.url}) from e

        if response.status_code != 200:
            raise UpstreamError(
                f"DoH server returned status: {response.status_code}",
                {"url": self.url, "status": response.status_code},
            )
        return parse_upstream(response.content)

    def close(self) -> None:
        self.session.close()


def create_forwarder(mode: str, upstream: Tuple[str, int], doh_url: str):
    """Build the forwarder for a resolver mode ("udp" or "doh")."""
    mode = (mode or GATEKEEPER.DEFAULT_MODE).lower()
    if mode == "udp":
        return UdpForwarder(upstream)
    if mode == "doh":
        return DohForwarder(doh_url)
    raise ConfigurationError("Unknown resolver mode", {"mode": mode})
