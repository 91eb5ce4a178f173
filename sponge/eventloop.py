"""Waits for events on file descriptors and runs the matching callbacks."""

from __future__ import annotations

import enum
import select
from dataclasses import dataclass
from typing import Callable

from sponge.file_descriptor import FileDescriptor
from sponge.util import system_call

Callback = Callable[[], object]
Interest = Callable[[], bool]


class Direction(enum.IntEnum):
    """Whether a rule waits for its descriptor to be readable or writable."""

    In = select.POLLIN
    Out = select.POLLOUT


class Result(enum.Enum):
    """The outcome of one call to EventLoop.wait_next_event."""

    Success = enum.auto()
    Timeout = enum.auto()
    Exit = enum.auto()


def _always() -> bool:
    return True


def _nothing() -> None:
    return None


@dataclass(eq=False)
class _Rule:
    fd: FileDescriptor
    direction: Direction
    callback: Callback
    interest: Interest
    cancel: Callback

    def service_count(self) -> int:
        if self.direction is Direction.In:
            return self.fd.read_count
        return self.fd.write_count


class EventLoop:
    """Polls registered descriptors and calls each rule's callback when it is ready.

    Every callback must read from or write to its descriptor, or the rule's
    interest must turn false; otherwise a busy wait is reported.
    """

    def __init__(self) -> None:
        self._rules: list[_Rule] = []

    def add_rule(
        self,
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Interest = _always,
        cancel: Callback = _nothing,
    ) -> None:
        """Call `callback` whenever `fd` is ready in `direction` and `interest()` is true.

        `cancel` is called when the rule is dropped (EOF, hangup or closure).
        """
        self._rules.append(_Rule(fd.duplicate(), Direction(direction), callback, interest, cancel))

    def _drop(self, rule: _Rule) -> None:
        rule.cancel()
        self._rules.remove(rule)

    def wait_next_event(self, timeout_ms: int) -> Result:
        """Poll once, waiting at most `timeout_ms` (negative waits forever), and run callbacks."""
        polled: list[tuple[_Rule, int]] = []
        masks: dict[int, int] = {}
        something_to_poll = False

        for rule in list(self._rules):
            if (rule.direction is Direction.In and rule.fd.eof) or rule.fd.closed:
                self._drop(rule)
                continue
            # an uninterested rule is still registered, so errors are reported
            events = int(rule.direction) if rule.interest() else 0
            something_to_poll = something_to_poll or bool(events)
            polled.append((rule, events))
            masks[rule.fd.fd_num] = masks.get(rule.fd.fd_num, 0) | events

        if not something_to_poll:
            return Result.Exit

        poller = select.poll()
        for fd_num, mask in masks.items():
            poller.register(fd_num, mask)

        with system_call("poll"):
            try:
                ready = poller.poll(timeout_ms)
            except InterruptedError:
                return Result.Exit
        if not ready:
            return Result.Timeout

        revents_by_fd: dict[int, int] = {}
        for fd_num, revents in ready:
            revents_by_fd[fd_num] = revents_by_fd.get(fd_num, 0) | revents

        for rule, events in polled:
            revents = revents_by_fd.get(rule.fd.fd_num, 0)
            if revents & (select.POLLERR | select.POLLNVAL):
                raise RuntimeError("EventLoop: error on polled file descriptor")

            poll_ready = bool(revents & events)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and events and not poll_ready:
                # the only condition was a hangup: this descriptor is defunct
                self._drop(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if count_before == rule.service_count() and rule.interest():
                    raise RuntimeError(
                        "EventLoop: busy wait detected: callback did not read/write fd and is still interested"
                    )

        return Result.Success