# sponge

Building blocks for user-space networking code on Linux: shared byte
buffers, big-endian wire parsing, the Internet checksum, IPv4 addresses,
reference-counted file descriptors, sockets, TUN/TAP devices and a
poll-based event loop. It uses only the standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

### `sponge.util`

- `InternetChecksum(initial_sum=0)`: the one's-complement checksum used by IP
  and TCP. `add(data)` may be called several times with pieces of the data;
  `value()` returns the 16-bit result. Summing data that already carries a
  correct checksum gives 0.
- `system_call(attempt, allowed_errno=None)`: a context manager that turns an
  `OSError` raised inside it into a `UnixError` whose message starts with
  `attempt`. An error with errno `allowed_errno` is swallowed.
- `TaggedError(attempt, code, message)` and `UnixError(attempt, code)`:
  `RuntimeError` subclasses carrying `attempt`, `code` and `message`.
- `timestamp_ms()`: milliseconds since the module was loaded (monotonic clock).
- `get_random_generator()`: a `random.Random` seeded from `os.urandom`.
- `format_hexdump(data, indent=0)` returns a hexdump (offset, hex pairs,
  printable characters) as a string; `hexdump(data, indent=0, file=None)`
  writes it to `file` or standard output.

### `sponge.buffer`

- `Buffer(data=b"")`: a read-only byte string. `remove_prefix(n)` drops bytes
  from the front without copying; `at(n)`, `copy()`, `len()` and `bytes()`
  read it. Out-of-range positions raise `IndexError`.
- `BufferList(data=None)`: a sequence of `Buffer`s, for packets built from
  several headers plus a payload. `append`, `remove_prefix`, `concatenate()`
  (all bytes joined), `buffers()` and `to_buffer()` (raises `RuntimeError` if
  the list holds more than one buffer).
- `BufferViewList(data)`: a non-owning view over bytes, a `Buffer` or a
  `BufferList`; `as_iovecs()` returns memoryviews suitable for `os.writev` or
  `socket.sendmsg`.

### `sponge.parser`

- `NetParser(buffer)` reads big-endian `u8()`, `u16()` and `u32()` values and
  skips bytes with `remove_prefix(n)`. Running short does not raise: it sets
  `error` to `ParseResult.PacketTooShort`, after which `failed` is true and
  every read returns 0. `buffer` is what is left unparsed.
- `ParseResult` lists the parse outcomes; `as_string(result)` names one.
- `pack_u8`, `pack_u16` and `pack_u32` serialise integers, truncating them to
  their width.

### `sponge.address`

`Address(ip, port=0)` is built from a numeric address without any lookup.
`Address.resolve(hostname, service)` does an IPv4 DNS lookup,
`Address.from_ipv4_numeric(n)` builds one from a 32-bit integer and
`Address.from_sockaddr(sockaddr)` wraps what the `socket` module returns.
It offers `ip`, `port`, `ip_port()`, `ipv4_numeric()`, `sockaddr`, `family`
and `str()` (`"1.2.3.4:80"`). Addresses compare equal and hash by value.
Lookup failures raise `TaggedError`.

### `sponge.file_descriptor`

`FileDescriptor(fd)` owns a kernel descriptor; `duplicate()` makes another
handle sharing it. The descriptor is closed by `close()`, by leaving a `with`
block, or when the last handle is garbage collected. `read(limit=None)` reads
at most 1 MiB at a time and sets `eof` on end of file; `write(data,
write_all=True)` accepts bytes, `str`, `Buffer`, `BufferList` or
`BufferViewList`. `set_blocking()`, `fd_num`, `closed`, `read_count` and
`write_count` complete it.

### `sponge.sockets`

`UDPSocket`, `TCPSocket` and `LocalStreamSocket` are `FileDescriptor`s. Each
can wrap an existing descriptor, whose domain and type are checked. All have
`bind`, `connect`, `shutdown`, `local_address`, `peer_address` and
`set_reuseaddr`. `UDPSocket.recv(mtu=65536)` returns a `ReceivedDatagram`
(`source_address`, `payload`); `sendto(destination, payload)` and
`send(payload)` send one datagram. `TCPSocket` adds `listen(backlog=16)` and
`accept()`.

### `sponge.tun`

`TunFD(devname)` and `TapFD(devname)` open an existing persistent TUN device
(IP datagrams) or TAP device (Ethernet frames) through `/dev/net/tun`.

### `sponge.eventloop`

`EventLoop.add_rule(fd, direction, callback, interest=..., cancel=...)`
registers a callback for `Direction.In` or `Direction.Out`.
`wait_next_event(timeout_ms)` polls once and returns `Result.Success`,
`Result.Timeout` or `Result.Exit` (nothing left to poll, or the poll was
interrupted). Rules are cancelled on end of file, closure or hangup. A
callback that neither reads nor writes its descriptor while the rule stays
interested raises `RuntimeError` (busy wait).

## Examples

```python
from sponge.parser import NetParser, ParseResult, pack_u16, pack_u32
from sponge.util import InternetChecksum, format_hexdump

raw = pack_u16(0x1234) + pack_u32(0xDEADBEEF)
parser = NetParser(raw)
assert parser.u16() == 0x1234
assert parser.u32() == 0xDEADBEEF
assert parser.u8() == 0
assert parser.failed and parser.error == ParseResult.PacketTooShort

checksum = InternetChecksum()
checksum.add(raw)
print(hex(checksum.value()))
print(format_hexdump(raw))
```

```python
import os
from sponge.eventloop import Direction, EventLoop
from sponge.file_descriptor import FileDescriptor

read_end, write_end = (FileDescriptor(n) for n in os.pipe())
loop = EventLoop()
loop.add_rule(read_end, Direction.In, lambda: print(read_end.read()))
write_end.write(b"hello")
loop.wait_next_event(1000)   # prints b'hello'
```

```python
from sponge.address import Address
from sponge.sockets import UDPSocket

with UDPSocket() as sock:
    sock.bind(Address("127.0.0.1", 0))
    print(sock.local_address())
```

## What this package does not do

It provides the plumbing only. There is no TCP implementation (no byte
stream, reassembler, sender, receiver or connection state machine), no
IP, Ethernet or ARP packet types beyond the integer parser, and no command
to run: everything is used from Python code.