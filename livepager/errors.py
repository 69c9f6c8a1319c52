"""Exception types raised by the pager engine.

Structural failures (terminal setup, lock poisoning, producer crashes) unwind
the runners and reach the caller. ``InvalidSearchPattern`` is absorbed by the
input state machine and only surfaces as a status message.
"""

from __future__ import annotations


class PagerError(Exception):
    """Base class for all pager engine errors."""


class TerminalSetupFailed(PagerError):
    """Entering or leaving interactive terminal mode failed."""


class LockInconsistentError(PagerError):
    """The shared state was abandoned mid-operation by a failing participant."""


class InvalidSearchPattern(PagerError):
    """A search pattern could not be compiled into a matcher."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid search pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class ProducerTaskFailed(PagerError):
    """The background producer ended with an exception."""


class PagerAlreadyRunning(PagerError):
    """Another pager is active in this process."""


__all__ = [
    "InvalidSearchPattern",
    "LockInconsistentError",
    "PagerAlreadyRunning",
    "PagerError",
    "ProducerTaskFailed",
    "TerminalSetupFailed",
]
