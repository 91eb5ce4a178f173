"""Network sockets built on reference-counted file descriptors."""

from __future__ import annotations

import contextlib
import socket
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from sponge.address import Address
from sponge.buffer import Buffer, BufferList, BufferViewList, BytesLike
from sponge.file_descriptor import FileDescriptor
from sponge.util import system_call

Payload = Union[BufferViewList, BufferList, Buffer, BytesLike, str]

_MSG_TRUNC = getattr(socket, "MSG_TRUNC", 0)


def _as_view(payload: Payload) -> BufferViewList:
    if isinstance(payload, BufferViewList):
        return payload
    if isinstance(payload, str):
        payload = payload.encode()
    return BufferViewList(payload)


class Socket(FileDescriptor):
    """Base class for network sockets; normally used through a subclass."""

    def __init__(
        self,
        domain: int,
        sock_type: int,
        fd: Optional[Union[FileDescriptor, int]] = None,
    ) -> None:
        """Create a new socket, or wrap `fd` after checking its domain and type."""
        if fd is None:
            with system_call("socket"):
                fd = socket.socket(domain, sock_type).detach()
            super().__init__(fd)
            return
        super().__init__(fd)
        with system_call("getsockopt"), self._borrow() as sock:
            if hasattr(socket, "SO_DOMAIN"):
                actual_domain = sock.getsockopt(socket.SOL_SOCKET, socket.SO_DOMAIN)
            else:
                actual_domain = int(sock.family)
            actual_type = sock.getsockopt(socket.SOL_SOCKET, socket.SO_TYPE)
        if actual_domain != domain:
            raise RuntimeError("socket domain mismatch")
        if actual_type != sock_type:
            raise RuntimeError("socket type mismatch")

    @contextlib.contextmanager
    def _borrow(self) -> Iterator[socket.socket]:
        """A socket object over our descriptor that never closes it."""
        sock = socket.socket(fileno=self.fd_num)
        try:
            yield sock
        finally:
            sock.detach()

    def bind(self, address: Address) -> None:
        """Bind to a local address, usually before listen/accept."""
        with system_call("bind"), self._borrow() as sock:
            sock.bind(address.sockaddr)

    def connect(self, address: Address) -> None:
        """Connect to a peer address."""
        with system_call("connect"), self._borrow() as sock:
            sock.connect(address.sockaddr)

    def shutdown(self, how: int) -> None:
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        with system_call("shutdown"), self._borrow() as sock:
            sock.shutdown(how)
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise RuntimeError("Socket::shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        """The address this socket is bound to."""
        with system_call("getsockname"), self._borrow() as sock:
            return Address.from_sockaddr(sock.getsockname())

    def peer_address(self) -> Address:
        """The address of the connected peer."""
        with system_call("getpeername"), self._borrow() as sock:
            return Address.from_sockaddr(sock.getpeername())

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner."""
        with system_call("setsockopt"), self._borrow() as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)


@dataclass
class ReceivedDatagram:
    """A datagram payload and the address it came from."""

    source_address: Address
    payload: bytes


class UDPSocket(Socket):
    """An IPv4 UDP socket."""

    def __init__(self, fd: Optional[Union[FileDescriptor, int]] = None) -> None:
        """A new unbound socket, or one wrapping an existing UDP descriptor."""
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM, fd)

    def recv(self, mtu: int = 65536) -> ReceivedDatagram:
        """Receive one datagram; raises if it is larger than `mtu`."""
        buf = bytearray(mtu)
        with system_call("recvfrom"), self._borrow() as sock:
            length, source = sock.recvfrom_into(buf, mtu, _MSG_TRUNC)
        if length > mtu:
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return ReceivedDatagram(Address.from_sockaddr(source), bytes(buf[:length]))

    def _sendmsg(self, payload: Payload, destination: Optional[Address]) -> None:
        view = _as_view(payload)
        with system_call("sendmsg"), self._borrow() as sock:
            if destination is None:
                sent = sock.sendmsg(view.as_iovecs())
            else:
                sent = sock.sendmsg(view.as_iovecs(), [], 0, destination.sockaddr)
        if sent != len(view):
            raise RuntimeError("datagram payload too big for sendmsg()")
        self._register_write()

    def sendto(self, destination: Address, payload: Payload) -> None:
        """Send a datagram to `destination`."""
        self._sendmsg(payload, destination)

    def send(self, payload: Payload) -> None:
        """Send a datagram to the connected peer (connect() first)."""
        self._sendmsg(payload, None)


class TCPSocket(Socket):
    """An IPv4 TCP socket."""

    def __init__(self, fd: Optional[Union[FileDescriptor, int]] = None) -> None:
        """A new unbound socket, or one wrapping an existing TCP descriptor."""
        super().__init__(socket.AF_INET, socket.SOCK_STREAM, fd)

    def listen(self, backlog: int = 16) -> None:
        """Mark the socket as accepting connections."""
        with system_call("listen"), self._borrow() as sock:
            sock.listen(backlog)

    def accept(self) -> "TCPSocket":
        """Wait for and return a new connection."""
        self._register_read()
        with system_call("accept"), self._borrow() as sock:
            conn, _ = sock.accept()
        return TCPSocket(FileDescriptor(conn.detach()))


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket wrapping an existing descriptor."""

    def __init__(self, fd: Union[FileDescriptor, int]) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_STREAM, fd)