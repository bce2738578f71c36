"""Layered packet crafting with deferred length and checksum computation."""

from .protocol import Packet
from .models import IPv4, RawLayer, UDP
