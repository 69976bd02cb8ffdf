"""
Foundation types shared by the model generator and the checking engine.

These enumerations and declarations describe a model to an engine without
tying either side to the other's implementation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ModelType(str, Enum):
    """
    Kinds of probabilistic model a generator can describe.

    Types:
        DTMC: Discrete-time Markov chain - one choice per state, purely stochastic
        MDP: Markov decision process - nondeterministic choice between distributions
    """

    DTMC = "dtmc"
    """Discrete-time Markov chain."""

    MDP = "mdp"
    """Markov decision process."""

    @property
    def is_nondeterministic(self) -> bool:
        """True if states may offer more than one choice."""
        return self is ModelType.MDP


class VariableKind(str, Enum):
    """Value domains for state variables."""

    BOUNDED_INT = "bounded_int"
    BINARY = "binary"


@dataclass(frozen=True)
class VariableDeclaration:
    """Declaration of a single state variable.

    Attributes:
        name: Variable name as reported to the engine
        kind: Value domain
        low: Smallest admissible value (inclusive)
        high: Largest admissible value (inclusive)
    """

    name: str
    kind: VariableKind
    low: int = 0
    high: int = 1

    def admits(self, value: int) -> bool:
        """Check whether a value lies within the declared bounds."""
        return self.low <= value <= self.high

    def __repr__(self) -> str:
        return f"{self.name}: [{self.low}..{self.high}]"


__all__ = [
    "ModelType",
    "VariableKind",
    "VariableDeclaration",
]
