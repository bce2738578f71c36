"""Internet (RFC 1071) ones'-complement checksum.

The sum is taken over 16-bit big-endian words. Odd-length input is padded
with a single zero byte before summing. Python integers never overflow, so
carries are folded back in once at the end.
"""

from __future__ import annotations

import ipaddress

PSEUDO_HEADER_SIZE = 12  # src(4) + dst(4) + zero(1) + protocol(1) + length(2)


def ones_complement_sum(data: bytes) -> int:
    """Return the 16-bit ones'-complement sum of ``data`` (not inverted)."""
    if len(data) % 2:
        data = bytes(data) + b"\x00"

    total = 0
    for i in range(0, len(data), 2):
        total += (data[i] << 8) | data[i + 1]

    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return total


def internet_checksum(data: bytes) -> int:
    """Compute the Internet checksum of ``data``.

    Returns:
        The checksum as an integer, to be stored in network byte order.
    """
    return ~ones_complement_sum(data) & 0xFFFF


def pseudo_header(src, dst, protocol: int, length: int) -> bytes:
    """Build the IPv4 pseudo-header used by transport-layer checksums.

    Args:
        src: Source address (dotted string, int, or 4 bytes).
        dst: Destination address (dotted string, int, or 4 bytes).
        protocol: Transport protocol number (e.g. 17 for UDP).
        length: Length of the transport header plus payload.
    """
    return (
        ipaddress.IPv4Address(src).packed
        + ipaddress.IPv4Address(dst).packed
        + bytes([0, protocol & 0xFF])
        + (length & 0xFFFF).to_bytes(2, "big")
    )
