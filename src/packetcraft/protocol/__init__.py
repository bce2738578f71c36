"""Protocol core: field descriptors, word storage, layers, and packets."""

from .fields import (
    Field,
    FieldKind,
    FieldLayoutError,
    HexField,
    IPv4Field,
    NumericField,
    truncate,
)
from .words import WordBuffer
from .layer import CraftState, FieldState, Layer, LayerSchema, LayerTypeError
from .packet import Packet
