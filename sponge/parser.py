"""Big-endian integer parsing and serialisation for network packets."""

from __future__ import annotations

import copy
import enum
from typing import Union

from sponge.buffer import Buffer, BytesLike


class ParseResult(enum.IntEnum):
    """The outcome of parsing a datagram, segment, frame or message."""

    NoError = 0
    BadChecksum = 1
    PacketTooShort = 2
    WrongIPVersion = 3
    HeaderTooShort = 4
    TruncatedPacket = 5
    Unsupported = 6


def as_string(result: ParseResult) -> str:
    """A readable name for a ParseResult."""
    return ParseResult(result).name


class NetParser:
    """Reads network-byte-order integers from the front of a Buffer.

    Errors are sticky: once `error` is set, every read returns 0 and
    consumes nothing.
    """

    def __init__(self, buffer: Union[Buffer, BytesLike]) -> None:
        self._buffer = copy.copy(buffer) if isinstance(buffer, Buffer) else Buffer(buffer)
        self.error = ParseResult.NoError

    @property
    def buffer(self) -> Buffer:
        """A copy of the data not yet parsed."""
        return copy.copy(self._buffer)

    @property
    def failed(self) -> bool:
        """Whether an error has been recorded."""
        return self.error != ParseResult.NoError

    def _check_size(self, size: int) -> None:
        if size > len(self._buffer):
            self.error = ParseResult.PacketTooShort

    def _parse_int(self, size: int) -> int:
        self._check_size(size)
        if self.failed:
            return 0
        value = int.from_bytes(bytes(self._buffer)[:size], "big")
        self._buffer.remove_prefix(size)
        return value

    def u32(self) -> int:
        """Parse a 32-bit integer."""
        return self._parse_int(4)

    def u16(self) -> int:
        """Parse a 16-bit integer."""
        return self._parse_int(2)

    def u8(self) -> int:
        """Parse an 8-bit integer."""
        return self._parse_int(1)

    def remove_prefix(self, n: int) -> None:
        """Skip `n` bytes."""
        self._check_size(n)
        if self.failed:
            return
        self._buffer.remove_prefix(n)


def pack_u32(value: int) -> bytes:
    """A 32-bit integer in network byte order (truncated to 32 bits)."""
    return (value & 0xFFFFFFFF).to_bytes(4, "big")


def pack_u16(value: int) -> bytes:
    """A 16-bit integer in network byte order (truncated to 16 bits)."""
    return (value & 0xFFFF).to_bytes(2, "big")


def pack_u8(value: int) -> bytes:
    """An 8-bit integer (truncated to 8 bits)."""
    return (value & 0xFF).to_bytes(1, "big")