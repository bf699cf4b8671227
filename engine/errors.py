from __future__ import annotations


class IllegalMoveError(ValueError):
    """A placement, reveal or play request broke a legality rule.

    Recoverable: the pending request stays open and the originator resubmits.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ProviderFailure(Exception):
    """The opponent move provider errored or answered with a non-conforming move."""


class InvariantViolation(AssertionError):
    """Engine state reached a condition the phase guards should make impossible."""
