"""MIDI variable-length quantities (write-only)."""

from __future__ import annotations

from typing import BinaryIO

VLQ_MAX = (1 << 28) - 1


def encode_vlq(value: int) -> bytes:
    """Encode *value* as 1-4 big-endian base-128 bytes.

    Every byte but the last has its high bit set.
    """
    if value < 0 or value > VLQ_MAX:
        raise ValueError(f"VLQ value out of range: {value}")
    out = bytearray([value & 0x7F])
    value >>= 7
    while value:
        out.append(0x80 | (value & 0x7F))
        value >>= 7
    out.reverse()
    return bytes(out)


def write_vlq(stream: BinaryIO, value: int) -> int:
    """Write *value* straight to a binary stream, return the byte count."""
    data = encode_vlq(value)
    stream.write(data)
    return len(data)
