"""IPv4 socket addresses and name resolution."""

from __future__ import annotations

import ipaddress
import socket
from typing import Any, Union

from sponge.util import TaggedError

SockAddr = Union[tuple, str, bytes]

_EAI_FAMILY = getattr(socket, "EAI_FAMILY", -6)


def _getaddrinfo(node: str, service: str, flags: int) -> SockAddr:
    try:
        results = socket.getaddrinfo(node, service, socket.AF_INET, 0, 0, flags)
    except socket.gaierror as exc:
        raise TaggedError(
            f"getaddrinfo({node}, {service})", exc.errno or 0, exc.strerror or str(exc)
        ) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    return results[0][4]


def _family_of(sockaddr: Any) -> int:
    if isinstance(sockaddr, (str, bytes)):
        return socket.AF_UNIX
    if isinstance(sockaddr, tuple) and len(sockaddr) == 2:
        return socket.AF_INET
    if isinstance(sockaddr, tuple) and len(sockaddr) == 4:
        return socket.AF_INET6
    raise RuntimeError("invalid sockaddr size")


class Address:
    """A socket address, usually IPv4, with DNS helpers."""

    __slots__ = ("_family", "_sockaddr")

    def __init__(self, ip: str, port: int = 0) -> None:
        """Build from a dotted-quad string and a numeric port; nothing is resolved."""
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port out of range: {port}")
        flags = socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        self._set(_getaddrinfo(ip, str(port), flags))

    def _set(self, sockaddr: SockAddr) -> None:
        self._family = _family_of(sockaddr)
        self._sockaddr = tuple(sockaddr) if isinstance(sockaddr, tuple) else sockaddr

    @classmethod
    def resolve(cls, hostname: str, service: str) -> "Address":
        """Resolve a host name and a service name (e.g. "http") to an IPv4 address."""
        address = cls.__new__(cls)
        address._set(_getaddrinfo(hostname, service, getattr(socket, "AI_ALL", 0)))
        return address

    @classmethod
    def from_sockaddr(cls, sockaddr: SockAddr) -> "Address":
        """Wrap a socket address as returned by the socket module."""
        address = cls.__new__(cls)
        address._set(sockaddr)
        return address

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> "Address":
        """Build an address (port 0) from a 32-bit numeric IPv4 address."""
        return cls.from_sockaddr((str(ipaddress.IPv4Address(ip_address & 0xFFFFFFFF)), 0))

    @property
    def family(self) -> int:
        """The address family, e.g. socket.AF_INET."""
        return self._family

    def ip_port(self) -> tuple[str, int]:
        """The numeric IP address string and the port."""
        if self._family not in (socket.AF_INET, socket.AF_INET6):
            raise TaggedError("getnameinfo", _EAI_FAMILY, "ai_family not supported")
        return str(self._sockaddr[0]), int(self._sockaddr[1])

    @property
    def ip(self) -> str:
        """The numeric IP address string."""
        return self.ip_port()[0]

    @property
    def port(self) -> int:
        """The port number in host byte order."""
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as an integer in host byte order."""
        if self._family != socket.AF_INET:
            raise RuntimeError("ipv4_numeric called on non-IPV4 address")
        return int(ipaddress.IPv4Address(self._sockaddr[0]))

    @property
    def sockaddr(self) -> SockAddr:
        """The address in the form the socket module accepts."""
        return self._sockaddr

    def __str__(self) -> str:
        ip, port = self.ip_port()
        return f"{ip}:{port}"

    def __repr__(self) -> str:
        return f"Address({self._sockaddr!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((self._family, self._sockaddr))