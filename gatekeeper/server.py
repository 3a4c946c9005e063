"""DNS gatekeeper: blocklist filtering in front of an upstream resolver.

Each incoming datagram is handled on its own thread. Blocked names are
answered locally with NXDOMAIN; everything else is forwarded through the
configured forwarder and the upstream records are relayed back.
"""
import socketserver
import threading
from typing import Iterable, Optional, Tuple

from config import GATEKEEPER, get_logger
from config.exceptions import GatekeeperError, UpstreamError
from config.rwlock import ReadWriteLock
from gatekeeper.wire import (
    OPCODE_QUERY,
    RCODE_NOERROR,
    RCODE_NXDOMAIN,
    MalformedMessageError,
    build_reply,
    parse_message,
    question_names,
)

logger = get_logger(__name__)


class _DatagramHandler(socketserver.BaseRequestHandler):
    def handle(self):
        data, sock = self.request
        reply = self.server.gatekeeper.handle_query(data)
        if reply:
            try:
                sock.sendto(reply, self.client_address)
            except OSError as e:
                logger.warning(f"Cannot send reply to {self.client_address[0]}: {e}")


class _GatekeeperUDPServer(socketserver.ThreadingUDPServer):
    daemon_threads = True
    max_packet_size = GATEKEEPER.MAX_DATAGRAM_BYTES

    def __init__(self, address, gatekeeper: "DNSGatekeeper"):
        self.gatekeeper = gatekeeper
        super().__init__(address, _DatagramHandler)

    def handle_error(self, request, client_address):
        logger.error(f"Error handling DNS request from {client_address[0]}", exc_info=True)


class DNSGatekeeper:
    """Filtering DNS forwarder.

    Args:
        block_list: Exact question names to refuse, compared byte for byte
            (case and trailing dot matter).
        forwarder: Object with `forward(query_bytes)` returning the parsed
            upstream response or raising UpstreamError.
        port: UDP port to listen on (0 picks a free port).
        host: Address to bind.
    """

    def __init__(self, block_list: Iterable[str], forwarder, port: int = GATEKEEPER.DEFAULT_PORT,
                 host: str = "0.0.0.0"):
        self.block_list = frozenset(block_list)
        self.forwarder = forwarder
        self.host = host
        self.port = port

        self._total_queries = 0
        self._blocked_queries = 0
        self._stats_lock = ReadWriteLock()

        self._server: Optional[_GatekeeperUDPServer] = None
        self._thread: Optional[threading.Thread] = None

    # ========================================================================
    # Statistics
    # ========================================================================

    def get_stats(self) -> Tuple[int, int]:
        """Return (total_queries, blocked_queries)."""
        with self._stats_lock.read_locked():
            return self._total_queries, self._blocked_queries

    def _count(self, blocked: bool) -> None:
        with self._stats_lock.write_locked():
            self._total_queries += 1
            if blocked:
                self._blocked_queries += 1

    def is_blocked(self, name: str) -> bool:
        return name in self.block_list

    # ========================================================================
    # Query handling
    # ========================================================================

    def handle_query(self, data: bytes) -> Optional[bytes]:
        """Build the reply datagram for one client query.

        Returns None when the datagram is dropped (unparseable, or itself a
        response).
        """
        try:
            query = parse_message(data)
        except MalformedMessageError as e:
            logger.debug(f"Dropping malformed datagram: {e}")
            return None

        if query.qr:
            logger.debug("Dropping datagram with QR bit set")
            return None

        if query.opcode != OPCODE_QUERY:
            return build_reply(query)

        rcode = RCODE_NOERROR
        upstream = None
        for name in question_names(query):
            blocked = self.is_blocked(name)
            self._count(blocked)

            if blocked:
                logger.info(f"[BLOCKED] {name}")
                rcode = RCODE_NXDOMAIN
                continue

            try:
                upstream = self.forwarder.forward(data)
            except UpstreamError as e:
                logger.warning(f"[ERROR] Upstream failed for {name} via {self.forwarder!r}: {e}")
                continue
            if rcode != RCODE_NXDOMAIN:
                rcode = upstream.rcode

        return build_reply(query, rcode=rcode, upstream=upstream)

    # ========================================================================
    # Server lifecycle
    # ========================================================================

    @property
    def server_address(self) -> Optional[Tuple[str, int]]:
        if self._server is None:
            return None
        return self._server.server_address[:2]

    def start(self) -> None:
        """Bind the UDP socket and serve in a daemon thread.

        Raises:
            GatekeeperError: If the socket cannot be bound (port in use,
                insufficient privilege for port 53).
        """
        if self._server is not None:
            return
        try:
            self._server = _GatekeeperUDPServer((self.host, self.port), self)
        except OSError as e:
            raise GatekeeperError(
                f"Cannot bind DNS server on {self.host}:{self.port}: {e}",
                {"host": self.host, "port": self.port},
            ) from e

        self._thread = threading.Thread(
            target=self._server.serve_forever, daemon=True, name="dns-gatekeeper"
        )
        self._thread.start()
        host, port = self.server_address
        logger.info(
            f"DNS gatekeeper listening on {host}:{port} "
            f"({len(self.block_list)} blocked names, forwarding via {self.forwarder!r})"
        )

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=2)
        self._server = None
        self._thread = None
        logger.debug("DNS gatekeeper stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
