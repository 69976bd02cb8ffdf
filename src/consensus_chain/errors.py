"""Error types raised by the consensus chain generator.

Two kinds of failure exist, and both are programming errors in the caller
rather than transient conditions:

- ConfigurationError: the generator was constructed from an invalid
  participant registry or acceptance specification.
- PreconditionError: the focus/query protocol was violated (a query before
  any focus, an out-of-bounds state, an unknown index).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ConsensusChainError(Exception):
    """Base class for all consensus chain errors.

    Attributes:
        message: Error message
        context: Structured details about the failing input
    """

    message: str
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v!r}" for k, v in sorted(self.context.items()))
        return f"{self.message} ({details})"


@dataclass
class ConfigurationError(ConsensusChainError, ValueError):
    """Invalid generator configuration.

    Raised at construction when the probability count differs from the
    participant count, a probability lies outside [0, 1], or a pattern
    does not have exactly one 0/1 entry per participant.
    """


@dataclass
class PreconditionError(ConsensusChainError):
    """Out-of-protocol query against a generator.

    Raised when a query is issued before any focus call, when a focused
    state violates the step/reply bounds, or when an index is out of range.
    """


__all__ = [
    "ConsensusChainError",
    "ConfigurationError",
    "PreconditionError",
]
