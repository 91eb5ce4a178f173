"""File descriptors for Linux TUN and TAP devices."""

from __future__ import annotations

import fcntl
import os
import struct

from sponge.file_descriptor import FileDescriptor
from sponge.util import system_call

CLONEDEV = "/dev/net/tun"
TUNSETIFF = 0x400454CA
IFF_TUN = 0x0001
IFF_TAP = 0x0002
IFF_NO_PI = 0x1000
IFNAMSIZ = 16

_IFREQ = struct.Struct(f"{IFNAMSIZ}sH22x")


def _make_ifreq(devname: str, is_tun: bool) -> bytes:
    flags = (IFF_TUN if is_tun else IFF_TAP) | IFF_NO_PI
    name = devname.encode()[: IFNAMSIZ - 1]
    return _IFREQ.pack(name, flags)


class TunTapFD(FileDescriptor):
    """A descriptor for an existing persistent TUN or TAP device.

    The device must already exist, e.g. created with
    `ip tuntap add mode tun user <user> name <devname>`.
    """

    def __init__(self, devname: str, is_tun: bool) -> None:
        with system_call("open"):
            fd = os.open(CLONEDEV, os.O_RDWR)
        super().__init__(fd)
        try:
            with system_call("ioctl"):
                fcntl.ioctl(self.fd_num, TUNSETIFF, _make_ifreq(devname, is_tun))
        except BaseException:
            self.close()
            raise


class TunFD(TunTapFD):
    """A TUN device: reads and writes IP datagrams."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, True)


class TapFD(TunTapFD):
    """A TAP device: reads and writes Ethernet frames."""

    def __init__(self, devname: str) -> None:
        super().__init__(devname, False)