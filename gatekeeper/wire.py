"""DNS wire-format helpers built on scapy's DNS layer."""
from typing import List, Optional, Type

from scapy.layers.dns import DNS
from scapy.packet import Raw

from config.exceptions import HomeNetError, UpstreamError

DNS_HEADER_LEN = 12

OPCODE_QUERY = 0
RCODE_NOERROR = 0
RCODE_NXDOMAIN = 3


class MalformedMessageError(HomeNetError):
    """Datagram is not a parseable DNS message."""

    pass


def parse_message(data: bytes, error_cls: Type[HomeNetError] = MalformedMessageError) -> DNS:
    """Decode a DNS message, raising `error_cls` when it is malformed."""
    if len(data) < DNS_HEADER_LEN:
        raise error_cls("DNS message shorter than header", {"length": len(data)})
    try:
        message = DNS(data)
    except Exception as e:
        raise error_cls(f"Cannot decode DNS message: {e}", {"length": len(data)}) from e
    if Raw in message:
        raise error_cls("Trailing or undecodable bytes in DNS message", {"length": len(data)})
    return message


def parse_upstream(data: bytes) -> DNS:
    return parse_message(data, error_cls=UpstreamError)


def question_names(message: DNS) -> List[str]:
    """Question names exactly as received (case and trailing dot kept)."""
    names = []
    for question in message.qd or []:
        qname = question.qname
        if isinstance(qname, bytes):
            qname = qname.decode("utf-8", errors="backslashreplace")
        names.append(qname)
    return names


def build_reply(query: DNS, rcode: int = RCODE_NOERROR, upstream: Optional[DNS] = None) -> bytes:
    """Build a response to `query`.

    The question section is echoed. Answer, authority and additional
    sections come from `upstream` when given, otherwise they are empty.
    """
    reply = DNS(
        id=query.id,
        qr=1,
        opcode=query.opcode,
        rd=query.rd,
        cd=query.cd,
        ra=1,
        rcode=rcode,
        qd=list(query.qd or []),
        an=list(upstream.an or []) if upstream is not None else [],
        ns=list(upstream.ns or []) if upstream is not None else [],
        ar=list(upstream.ar or []) if upstream is not None else [],
    )
    return bytes(reply)
