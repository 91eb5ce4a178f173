import os
import select

import pytest

from sponge.eventloop import Direction, EventLoop, Result
from sponge.file_descriptor import FileDescriptor


@pytest.fixture
def pipe():
    r, w = os.pipe()
    reader, writer = FileDescriptor(r), FileDescriptor(w)
    yield reader, writer
    for fd in (reader, writer):
        if not fd.closed:
            fd.close()


def test_direction_values_match_poll_flags(pipe):
    reader, writer = pipe
    assert Direction(select.POLLIN) is Direction.In
    state = {"pending": True}

    def callback():
        writer.write(b"q")
        state["pending"] = False

    loop = EventLoop()
    loop.add_rule(writer, Direction(select.POLLOUT), callback, interest=lambda: state["pending"])
    assert loop.wait_next_event(1000) is Result.Success
    assert reader.read(10) == b"q"


def test_no_rules_exits():
    assert EventLoop().wait_next_event(0) is Result.Exit


def test_readable_pipe_runs_callback(pipe):
    reader, writer = pipe
    writer.write(b"abc")
    received = []
    loop = EventLoop()
    loop.add_rule(reader, Direction.In, lambda: received.append(reader.read()))
    assert loop.wait_next_event(1000) is Result.Success
    assert received == [b"abc"]
    assert reader.read_count == 1


def test_timeout_when_nothing_ready(pipe):
    reader, _ = pipe
    calls = []
    loop = EventLoop()
    loop.add_rule(reader, Direction.In, lambda: calls.append(reader.read()))
    assert loop.wait_next_event(0) is Result.Timeout
    assert calls == []


def test_uninterested_rule_exits(pipe):
    reader, writer = pipe
    writer.write(b"x")
    calls = []
    loop = EventLoop()
    loop.add_rule(reader, Direction.In, lambda: calls.append(1), interest=lambda: False)
    assert loop.wait_next_event(0) is Result.Exit
    assert calls == []


def test_busy_wait_detected(pipe):
    reader, writer = pipe
    writer.write(b"x")
    loop = EventLoop()
    loop.add_rule(reader, Direction.In, lambda: None)
    with pytest.raises(RuntimeError, match="busy wait"):
        loop.wait_next_event(1000)


def test_callback_may_lose_interest_without_reading(pipe):
    reader, writer = pipe
    writer.write(b"x")
    state = {"interested": True}

    def callback():
        state["interested"] = False

    loop = EventLoop()
    loop.add_rule(reader, Direction.In, callback, interest=lambda: state["interested"])
    assert loop.wait_next_event(1000) is Result.Success
    assert state["interested"] is False


def test_hangup_cancels_rule(pipe):
    reader, writer = pipe
    writer.close()
    cancelled = []
    loop = EventLoop()
    loop.add_rule(reader, Direction.In, lambda: reader.read(), cancel=lambda: cancelled.append(True))
    assert loop.wait_next_event(1000) is Result.Success
    assert cancelled == [True]
    assert loop.wait_next_event(0) is Result.Exit


def test_eof_rule_cancelled_before_polling(pipe):
    reader, writer = pipe
    writer.close()
    assert reader.read() == b""
    assert reader.eof is True
    cancelled = []
    loop = EventLoop()
    loop.add_rule(reader, Direction.In, lambda: reader.read(), cancel=lambda: cancelled.append(True))
    assert loop.wait_next_event(0) is Result.Exit
    assert cancelled == [True]


def test_closed_fd_rule_cancelled(pipe):
    reader, _ = pipe
    cancelled = []
    loop = EventLoop()
    loop.add_rule(reader, Direction.In, lambda: reader.read(), cancel=lambda: cancelled.append(True))
    reader.close()
    assert loop.wait_next_event(0) is Result.Exit
    assert cancelled == [True]


def test_writable_direction(pipe):
    reader, writer = pipe
    state = {"pending": True}

    def callback():
        writer.write(b"x")
        state["pending"] = False

    loop = EventLoop()
    loop.add_rule(writer, Direction.Out, callback, interest=lambda: state["pending"])
    assert loop.wait_next_event(1000) is Result.Success
    assert reader.read(10) == b"x"
    assert writer.write_count == 1
    assert loop.wait_next_event(0) is Result.Exit