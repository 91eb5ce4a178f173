"""Error helpers, timing, randomness, the Internet checksum and hexdumps."""

from __future__ import annotations

import contextlib
import os
import random
import sys
import time
from typing import IO, Iterator, Optional

_PROGRAM_START_NS = time.monotonic_ns()


class TaggedError(RuntimeError):
    """An error code together with a description of what was being attempted."""

    def __init__(self, attempt: str, code: int, message: str) -> None:
        super().__init__(f"{attempt}: {message}")
        self.attempt = attempt
        self.code = code
        self.message = message


class UnixError(TaggedError):
    """A TaggedError for a failed system call, described by its errno."""

    def __init__(self, attempt: str, code: int) -> None:
        super().__init__(attempt, code, os.strerror(code))


@contextlib.contextmanager
def system_call(attempt: str, allowed_errno: Optional[int] = None) -> Iterator[None]:
    """Turn an OSError raised in the block into a UnixError naming `attempt`.

    An OSError whose errno equals `allowed_errno` is swallowed instead.
    """
    try:
        yield
    except OSError as exc:
        if allowed_errno is not None and exc.errno == allowed_errno:
            return
        raise UnixError(attempt, exc.errno or 0) from exc


def get_random_generator() -> random.Random:
    """Return a Mersenne Twister generator seeded with plenty of OS entropy."""
    return random.Random(int.from_bytes(os.urandom(624 * 4), "big"))


def timestamp_ms() -> int:
    """Milliseconds elapsed since the program started."""
    return (time.monotonic_ns() - _PROGRAM_START_NS) // 1_000_000


class InternetChecksum:
    """The Internet checksum, returned in host byte order.

    Summing data that already holds a correct checksum yields zero.
    """

    def __init__(self, initial_sum: int = 0) -> None:
        self._sum = initial_sum & 0xFFFFFFFF
        self._parity = False

    def add(self, data) -> None:
        """Add bytes to the running sum; data may be split across calls."""
        total = self._sum
        parity = self._parity
        for byte in bytes(data):
            total += byte if parity else byte << 8
            parity = not parity
        self._sum = total & 0xFFFFFFFF
        self._parity = parity

    def value(self) -> int:
        """The 16-bit checksum of everything added so far."""
        ret = self._sum
        while ret > 0xFFFF:
            ret = (ret >> 16) + (ret & 0xFFFF)
        return ~ret & 0xFFFF


def _printable(byte: int) -> str:
    return chr(byte) if 0x20 <= byte < 0x7F else "."


def format_hexdump(data, indent: int = 0) -> str:
    """Render bytes as a hexdump: offset, hex pairs and printable characters."""
    data = bytes(data)
    pad = " " * indent
    out: list[str] = []
    chars: list[str] = []
    for offset, byte in enumerate(data):
        if offset % 16 == 0:
            if offset:
                out.append("    " + "".join(chars) + "\n")
                chars = []
            out.append(f"{pad}{offset:08x}:    ")
        elif offset % 2 == 0:
            out.append(" ")
        out.append(f"{byte:02x}")
        chars.append(_printable(byte))
    remainder = (16 - len(data) % 16) % 16
    out.append(" " * (2 * remainder + remainder // 2 + 4))
    out.append("".join(chars) if chars else " ")
    out.append("\n\n")
    return "".join(out)


def hexdump(data, indent: int = 0, file: Optional[IO[str]] = None) -> None:
    """Write a hexdump of `data` to `file` (standard output by default)."""
    stream = sys.stdout if file is None else file
    stream.write(format_hexdump(data, indent))
    stream.flush()