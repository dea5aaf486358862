from __future__ import annotations

from typing import Any


class RegionKitError(RuntimeError):
    """Base class for all regkit-specific errors."""


class InvalidArgumentError(RegionKitError, ValueError):
    """Raised when a caller passes malformed weights, vectors or events."""


class StructureError(RegionKitError):
    """Raised when a transition system lacks required structure (e.g. an initial state)."""


class UnreachableError(RegionKitError):
    """
    Raised when a state has no path from the initial state.

    :param state: The offending state id.
    :type state: Any
    """

    def __init__(self, state: Any) -> None:
        super().__init__(f"State {state!r} is unreachable from the initial state")
        self.state = state


class NoSuchNodeError(RegionKitError, KeyError):
    """
    Raised when a state id is not part of the transition system.

    :param state: The unknown state id.
    :type state: Any
    """

    def __init__(self, state: Any) -> None:
        super().__init__(f"No state with id {state!r}")
        self.state = state

    def __str__(self) -> str:
        return str(self.args[0])
