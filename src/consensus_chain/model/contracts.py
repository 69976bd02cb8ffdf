"""Abstract contracts between a model generator and a checking engine.

An engine explores a model on the fly through three groups of operations:

- ModelInfo: static description (model type, variables, labels)
- ModelGenerator: initial state, focus, and per-state transition queries
- RewardGenerator: named reward structures over states and actions

The engine focuses a state, then asks for the number of choices, the
number of transitions of each choice, and each transition's probability and
target, followed by label truth and rewards.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from consensus_chain.types import ModelType, VariableDeclaration

S = TypeVar("S")


class ModelInfo(ABC):
    """Static description of a model."""

    @property
    @abstractmethod
    def model_type(self) -> ModelType:
        """Kind of model described."""
        ...

    @abstractmethod
    def variable_types(self) -> list[VariableDeclaration]:
        """Ordered declarations of the state variables."""
        ...

    def variable_names(self) -> list[str]:
        return [decl.name for decl in self.variable_types()]

    @abstractmethod
    def label_names(self) -> list[str]:
        """Names of the atomic propositions, in label-index order."""
        ...

    def label_index(self, name: str) -> int:
        """Index of a label name.

        Raises:
            KeyError: If the label is not defined.
        """
        names = self.label_names()
        if name not in names:
            raise KeyError(f"Unknown label '{name}', expected one of {names}")
        return names.index(name)


class ModelGenerator(ModelInfo, Generic[S]):
    """On-the-fly state space of a model.

    All transition and label queries refer to the most recently focused
    state.
    """

    @abstractmethod
    def initial_state(self) -> S:
        ...

    @abstractmethod
    def focus(self, state: S) -> Any:
        """Bind subsequent queries to ``state``."""
        ...

    @abstractmethod
    def num_choices(self) -> int:
        ...

    @abstractmethod
    def num_transitions(self, choice: int) -> int:
        ...

    @abstractmethod
    def transition_probability(self, choice: int, offset: int) -> float:
        ...

    @abstractmethod
    def transition_target(self, choice: int, offset: int) -> S:
        ...

    @abstractmethod
    def transition_action(self, choice: int, offset: int) -> object | None:
        ...

    @abstractmethod
    def is_label_true(self, label_index: int) -> bool:
        ...


class RewardGenerator(ABC, Generic[S]):
    """Named reward structures."""

    @abstractmethod
    def reward_struct_names(self) -> list[str]:
        ...

    @abstractmethod
    def state_reward(self, reward_index: int, state: S) -> float:
        ...

    @abstractmethod
    def state_action_reward(self, reward_index: int, state: S, action: object | None) -> float:
        ...


__all__ = [
    "ModelInfo",
    "ModelGenerator",
    "RewardGenerator",
]
