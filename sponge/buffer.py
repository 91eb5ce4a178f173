"""Shared read-only byte strings that can discard bytes from the front."""

from __future__ import annotations

import copy
from collections import deque
from typing import Optional, Union

BytesLike = Union[bytes, bytearray, memoryview]


class Buffer:
    """A read-only byte string whose copies share storage but not their offset."""

    __slots__ = ("_storage", "_offset")

    def __init__(self, data: BytesLike = b"") -> None:
        self._storage = bytes(data)
        self._offset = 0

    def _view(self) -> memoryview:
        return memoryview(self._storage)[self._offset:]

    def __bytes__(self) -> bytes:
        return self._storage[self._offset:]

    def __len__(self) -> int:
        return len(self._storage) - self._offset

    def __copy__(self) -> "Buffer":
        clone = Buffer.__new__(Buffer)
        clone._storage = self._storage
        clone._offset = self._offset
        return clone

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (Buffer, bytes, bytearray, memoryview)):
            return bytes(self) == bytes(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Buffer({bytes(self)!r})"

    def at(self, n: int) -> int:
        """The byte at position `n`."""
        if not 0 <= n < len(self):
            raise IndexError("Buffer::at")
        return self._storage[self._offset + n]

    def copy(self) -> bytes:
        """The remaining contents as a new bytes object."""
        return bytes(self)

    def remove_prefix(self, n: int) -> None:
        """Discard the first `n` bytes without copying the rest."""
        if n < 0 or n > len(self):
            raise IndexError("Buffer::remove_prefix")
        self._offset += n
        if self._storage and self._offset == len(self._storage):
            self._storage = b""
            self._offset = 0


class BufferList:
    """A discontiguous string made of Buffers, e.g. stacked headers and a payload."""

    def __init__(self, data: Union["BufferList", Buffer, BytesLike, None] = None) -> None:
        self._buffers: deque[Buffer] = deque()
        if data is None:
            return
        if isinstance(data, BufferList):
            self.append(data)
        elif isinstance(data, Buffer):
            self._buffers.append(copy.copy(data))
        else:
            self._buffers.append(Buffer(data))

    def buffers(self) -> tuple[Buffer, ...]:
        """The underlying Buffers, in order."""
        return tuple(copy.copy(buf) for buf in self._buffers)

    def append(self, other: Union["BufferList", Buffer, BytesLike]) -> None:
        """Append the Buffers of another BufferList (or a single Buffer or bytes)."""
        if not isinstance(other, BufferList):
            other = BufferList(other)
        self._buffers.extend(copy.copy(buf) for buf in other._buffers)

    def to_buffer(self) -> Buffer:
        """Return the contents as one Buffer; only possible when contiguous."""
        if not self._buffers:
            return Buffer()
        if len(self._buffers) == 1:
            return copy.copy(self._buffers[0])
        raise RuntimeError(
            "BufferList: please use concatenate() to combine a multi-Buffer BufferList into one Buffer"
        )

    def remove_prefix(self, n: int) -> None:
        """Discard the first `n` bytes, dropping Buffers that are used up."""
        if n < 0:
            raise IndexError("BufferList::remove_prefix")
        while n > 0:
            if not self._buffers:
                raise IndexError("BufferList::remove_prefix")
            front = self._buffers[0]
            if n < len(front):
                front.remove_prefix(n)
                n = 0
            else:
                n -= len(front)
                self._buffers.popleft()

    def __len__(self) -> int:
        return sum(len(buf) for buf in self._buffers)

    def concatenate(self) -> bytes:
        """Copy all the contents into one bytes object."""
        return b"".join(bytes(buf) for buf in self._buffers)

    def __repr__(self) -> str:
        return f"BufferList({list(self._buffers)!r})"


class BufferViewList:
    """A non-owning view of a discontiguous byte string."""

    def __init__(self, data: Union[BufferList, Buffer, BytesLike]) -> None:
        if isinstance(data, BufferList):
            views = [buf._view() for buf in data._buffers]
        elif isinstance(data, Buffer):
            views = [data._view()]
        else:
            views = [memoryview(data).cast("B")]
        self._views: deque[memoryview] = deque(views)

    def remove_prefix(self, n: int) -> None:
        """Discard the first `n` bytes of the view."""
        if n < 0:
            raise IndexError("BufferListView::remove_prefix")
        while n > 0:
            if not self._views:
                raise IndexError("BufferListView::remove_prefix")
            front = self._views[0]
            if n < len(front):
                self._views[0] = front[n:]
                n = 0
            else:
                n -= len(front)
                self._views.popleft()

    def __len__(self) -> int:
        return sum(len(view) for view in self._views)

    def as_iovecs(self) -> list[memoryview]:
        """The pieces as a list of memoryviews, suitable for os.writev or sendmsg."""
        return list(self._views)