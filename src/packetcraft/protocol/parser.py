"""Decode wire bytes back into a layer stack.

Decoded fields are pinned, so crafting a parsed packet leaves it exactly as
received. Malformed or truncated input yields ``None``.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..models.ip import IPv4
from ..models.raw import RawLayer
from ..models.udp import UDP, UDP_HEADER_SIZE, UDP_PROTO
from .layer import Layer
from .packet import Packet

logger = logging.getLogger(__name__)

IPV4_MIN_HEADER_SIZE = 20


def parse_udp(body: bytes) -> tuple[UDP, bytes] | None:
    """Split a UDP datagram into its header and the data it covers."""
    if len(body) < UDP_HEADER_SIZE:
        return None
    udp = UDP.from_bytes(body)
    if not UDP_HEADER_SIZE <= udp.length <= len(body):
        return None
    return udp, body[UDP_HEADER_SIZE : udp.length]


# Transport decoders keyed by the IPv4 protocol number.
TRANSPORT_PARSERS: dict[int, Callable[[bytes], tuple[Layer, bytes] | None]] = {
    UDP_PROTO: parse_udp,
}


def parse_packet(data: bytes) -> Packet | None:
    """Parse an IPv4 packet and whatever transport layer it carries.

    Returns:
        A ``Packet`` (IPv4, optional transport layer, optional RawLayer),
        or ``None`` if the bytes are not a well-formed option-less IPv4
        packet.
    """
    if len(data) < IPV4_MIN_HEADER_SIZE or data[0] >> 4 != 4:
        return None

    ip = IPv4.from_bytes(data)
    if ip.ihl != IPv4.WORDS:
        logger.debug("IPv4 options are not supported (ihl=%d)", ip.ihl)
        return None
    if not IPV4_MIN_HEADER_SIZE <= ip.total_length <= len(data):
        return None

    body = data[IPV4_MIN_HEADER_SIZE : ip.total_length]
    packet = Packet(ip)

    # Only an unfragmented datagram starts with a complete transport header.
    parser = None
    if not ip.is_fragment():
        parser = TRANSPORT_PARSERS.get(ip.protocol)
    if parser is not None:
        parsed = parser(body)
        if parsed is None:
            return None
        layer, body = parsed
        packet.push(layer)

    if body:
        packet.push(RawLayer(body))
    return packet


def verify_checksums(packet: Packet) -> dict[str, bool]:
    """Recompute every checksum field and compare with the stored value.

    A stored 0 in an optional checksum (UDP) means "not computed" and
    counts as valid. The packet itself is not modified.
    """
    clone = packet.copy()
    for layer in clone:
        if layer.CHECKSUM_FIELD is not None:
            layer.reset_field(layer.CHECKSUM_FIELD)
    clone.craft()

    results: dict[str, bool] = {}
    for original, recomputed in zip(packet, clone):
        name = original.CHECKSUM_FIELD
        if name is not None:
            stored = original.get(name)
            if stored == 0 and original.OPTIONAL_CHECKSUM:
                results[original.NAME] = True
            else:
                results[original.NAME] = stored == recomputed.get(name)
    return results
