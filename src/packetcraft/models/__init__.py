"""Concrete protocol layers."""

from .ip import IPv4
from .raw import RawLayer
from .udp import UDP

# Layer classes by NAME, used to rebuild headers from logical fields.
LAYER_CLASSES = {
    IPv4.NAME: IPv4,
    UDP.NAME: UDP,
    RawLayer.NAME: RawLayer,
}
