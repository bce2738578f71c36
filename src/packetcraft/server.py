"""MCP server entry point for packetcraft.

Exposes packet crafting, decoding and checksum tools via the Model Context
Protocol using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .diagnostics import RecordingSink
from .models import LAYER_CLASSES, IPv4, UDP
from .protocol.packet import Packet
from .protocol.parser import parse_packet as decode_packet
from .protocol.parser import verify_checksums
from .utils.checksum import internet_checksum, ones_complement_sum

logger = logging.getLogger(__name__)

SERVER_NAME = "packetcraft"

mcp = FastMCP(
    SERVER_NAME,
    instructions="Craft and inspect IPv4/UDP packets with computed lengths and checksums",
)


def _decode_hex(data: str) -> bytes:
    """Accept hex with optional whitespace or ':' separators."""
    cleaned = "".join(data.replace(":", " ").split())
    return bytes.fromhex(cleaned)


# ─── CRAFTING TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def craft_udp(
    source_ip: str,
    destination_ip: str,
    src_port: int | None = None,
    dst_port: int | None = None,
    payload_hex: str = "",
    length: int | None = None,
    checksum: int | None = None,
    ttl: int | None = None,
) -> dict[str, Any]:
    """Craft an IPv4/UDP packet and return its fields and wire bytes.

    Fields left as None are computed (length, checksum) or take their
    defaults. Fields given explicitly are used as-is, even if inconsistent.

    Args:
        source_ip: IPv4 source address.
        destination_ip: IPv4 destination address.
        src_port: UDP source port (default 0).
        dst_port: UDP destination port (default 53).
        payload_hex: UDP payload as hex.
        length: Force the UDP length field.
        checksum: Force the UDP checksum field.
        ttl: IPv4 time to live (default 64).
    """
    try:
        payload = _decode_hex(payload_hex)
        ip = IPv4(source_ip=source_ip, destination_ip=destination_ip)
        if ttl is not None:
            ip.ttl = ttl
        udp = UDP()
        overrides = {
            "src_port": src_port,
            "dst_port": dst_port,
            "length": length,
            "checksum": checksum,
        }
        for name, value in overrides.items():
            if value is not None:
                udp.set(name, value)
    except ValueError as e:
        return {"error": str(e)}

    packet = Packet(ip, udp)
    if payload:
        packet.push(payload)

    with RecordingSink() as sink:
        packet.craft()

    result = packet.to_dict()
    result["diagnostics"] = [str(d) for d in sink.records]
    return result


@mcp.tool()
def parse_packet(hex_data: str) -> dict[str, Any]:
    """Decode an IPv4 packet (with optional UDP) and verify its checksums.

    Args:
        hex_data: Packet bytes as hex, starting at the IPv4 header.
    """
    try:
        data = _decode_hex(hex_data)
    except ValueError as e:
        return {"error": str(e)}

    packet = decode_packet(data)
    if packet is None:
        return {"error": "Not a well-formed IPv4 packet"}

    result = packet.to_dict()
    result["checksums_valid"] = verify_checksums(packet)
    return result


@mcp.tool()
def compute_checksum(hex_data: str) -> dict[str, Any]:
    """Compute the 16-bit Internet checksum of arbitrary bytes.

    Args:
        hex_data: Input bytes as hex. Odd lengths are zero-padded.
    """
    try:
        data = _decode_hex(hex_data)
    except ValueError as e:
        return {"error": str(e)}

    return {
        "length": len(data),
        "sum": f"0x{ones_complement_sum(data):04x}",
        "checksum": f"0x{internet_checksum(data):04x}",
    }


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("packetcraft://layers")
def resource_layers() -> str:
    """Field layout of every supported layer."""
    layers = {}
    for name, cls in LAYER_CLASSES.items():
        layers[name] = {
            "id": f"0x{cls.PROTO_ID:04x}",
            "header_size": cls.schema.size,
            "word_bits": cls.schema.word_bits,
            "fields": [
                {
                    "name": f.name,
                    "word": f.word,
                    "bits": [f.bit_start, f.bit_end],
                    "kind": f.kind.value,
                }
                for f in cls.schema
            ],
        }
    return json.dumps(layers, indent=2)


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
