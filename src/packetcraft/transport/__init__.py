"""Transmit contexts that receive crafted layers."""

from .context import BufferContext, BuiltHeader, TransmitContext, TransmitError
