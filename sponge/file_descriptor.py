"""Reference-counted file descriptors that track EOF and read/write counts."""

from __future__ import annotations

import os
import sys
from typing import Optional, Union

from sponge.buffer import Buffer, BufferList, BufferViewList, BytesLike
from sponge.util import system_call

_MAX_READ = 1024 * 1024


class _FDWrapper:
    """Owns a kernel file descriptor; closes it when no handle refers to it."""

    def __init__(self, fd: int) -> None:
        if fd < 0:
            raise RuntimeError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.closed = False
        self.read_count = 0
        self.write_count = 0

    def close(self) -> None:
        with system_call("close"):
            os.close(self.fd)
        self.eof = self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except Exception as exc:  # never raise from a finalizer
            print(f"Exception destructing FDWrapper: {exc}", file=sys.stderr)


class FileDescriptor:
    """A handle to a file descriptor; copies made by duplicate() share its state."""

    def __init__(self, fd: Union[int, "FileDescriptor"]) -> None:
        if isinstance(fd, FileDescriptor):
            self._internal = fd._internal
        else:
            self._internal = _FDWrapper(fd)

    def _register_read(self) -> None:
        self._internal.read_count += 1

    def _register_write(self) -> None:
        self._internal.write_count += 1

    def duplicate(self) -> "FileDescriptor":
        """Another handle sharing the same descriptor and state."""
        return FileDescriptor(self)

    def read(self, limit: Optional[int] = None) -> bytes:
        """Read up to `limit` bytes (at most 1 MiB at a time)."""
        size = _MAX_READ if limit is None else min(_MAX_READ, limit)
        with system_call("read"):
            data = os.read(self.fd_num, size)
        if size > 0 and not data:
            self._internal.eof = True
        if len(data) > size:
            raise RuntimeError("read() read more than requested")
        self._register_read()
        return data

    def write(
        self,
        data: Union[BufferViewList, BufferList, Buffer, BytesLike, str],
        write_all: bool = True,
    ) -> int:
        """Write data, looping until everything is written when `write_all` is set."""
        if isinstance(data, str):
            data = data.encode()
        buffer = data if isinstance(data, BufferViewList) else BufferViewList(data)
        total = 0
        while True:
            with system_call("writev"):
                written = os.writev(self.fd_num, buffer.as_iovecs())
            remaining = len(buffer)
            if written == 0 and remaining != 0:
                raise RuntimeError("write returned 0 given non-empty input buffer")
            if written > remaining:
                raise RuntimeError("write wrote more than length of input buffer")
            self._register_write()
            buffer.remove_prefix(written)
            total += written
            if not (write_all and len(buffer)):
                return total

    def close(self) -> None:
        """Close the underlying descriptor."""
        self._internal.close()

    def set_blocking(self, blocking_state: bool) -> None:
        """Make the descriptor blocking (True) or non-blocking (False)."""
        with system_call("fcntl"):
            os.set_blocking(self.fd_num, blocking_state)

    @property
    def fd_num(self) -> int:
        """The descriptor number."""
        return self._internal.fd

    @property
    def eof(self) -> bool:
        """Whether a read has hit end of file."""
        return self._internal.eof

    @property
    def closed(self) -> bool:
        """Whether the descriptor has been closed."""
        return self._internal.closed

    @property
    def read_count(self) -> int:
        """How many times the descriptor has been read."""
        return self._internal.read_count

    @property
    def write_count(self) -> int:
        """How many times the descriptor has been written."""
        return self._internal.write_count

    def __enter__(self) -> "FileDescriptor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self.closed:
            self.close()