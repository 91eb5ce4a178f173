"""Buffers, wire parsing, checksums, addresses, file descriptors, sockets, TUN/TAP devices and a poll-based event loop."""

__version__ = "0.1.0"
__all__ = [
    "util",
    "buffer",
    "parser",
    "address",
    "file_descriptor",
    "tun",
    "eventloop",
    "sockets",
]