"""Model generator for the sequential consensus chain.

n participants reply one at a time, in a fixed order. Participant i
confirms with probability p[i] and refuses otherwise. Once all n have
replied the chain stays in its final state forever.

The reachable state space is a complete binary tree of depth n:

    step 0            (_ _)
                     /     \\
    step 1      (0 _)       (1 _)          refuse: 1 - p[0], confirm: p[0]
               /    \\      /    \\
    step 2  (0 0) (0 1) (1 0) (1 1)        refuse: 1 - p[1], confirm: p[1]
              ↺     ↺     ↺     ↺          absorbing, probability 1

A leaf is labelled "end" when its reply vector equals one of the acceptance
patterns. Every state earns reward 1 under reward structure "r", so the
expected reward accumulated before absorption is the expected number of
steps.

The generator is split into three cooperating parts that share the same
immutable ConsensusConfig:

- ConsensusModelInfo: model type, variables, labels
- ConsensusTransitionGenerator: initial state and focus, returning a
  FocusedState that answers every transition and label query
- ConsensusRewardGenerator: the "r" reward structure

ConsensusModelGenerator bundles them behind the engine-facing protocol.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from consensus_chain.errors import ConfigurationError, PreconditionError
from consensus_chain.model.configuration import (
    AcceptanceSpecification,
    ConsensusConfig,
)
from consensus_chain.model.contracts import ModelGenerator, ModelInfo, RewardGenerator
from consensus_chain.model.state import CONFIRM, REFUSE, ProcessState
from consensus_chain.types import ModelType, VariableDeclaration, VariableKind

logger = logging.getLogger(__name__)

LABEL_END = "end"
"""Label of resolved states whose outcome is accepted."""

REWARD_STEPS = "r"
"""Reward structure assigning 1 to every state."""

STEP_VARIABLE = "step"

# Transition offsets at a non-absorbing state
OFFSET_REFUSE = 0
OFFSET_CONFIRM = 1


def reply_variable(participant: int) -> str:
    return f"reply_{participant}"


# =============================================================================
# Model Info
# =============================================================================


class ConsensusModelInfo(ModelInfo):
    """Variables and labels of the consensus chain."""

    def __init__(self, config: ConsensusConfig):
        self.config = config

    @property
    def model_type(self) -> ModelType:
        return ModelType.DTMC

    def variable_types(self) -> list[VariableDeclaration]:
        n = self.config.num_participants
        declarations = [VariableDeclaration(STEP_VARIABLE, VariableKind.BOUNDED_INT, 0, n)]
        declarations.extend(
            VariableDeclaration(reply_variable(i), VariableKind.BINARY, 0, 1) for i in range(n)
        )
        return declarations

    def label_names(self) -> list[str]:
        return [LABEL_END]


# =============================================================================
# Transitions
# =============================================================================


@dataclass(frozen=True)
class FocusedState:
    """Query context for one focused state.

    Holds the state together with the values every query needs, computed
    once at focus time.

    Attributes:
        state: The focused state.
        confirm_probability: Confirmation probability of the participant
            replying next, or None once all participants have replied.
        accepted: True if the state is resolved and its outcome matches an
            acceptance pattern.
    """

    state: ProcessState
    confirm_probability: float | None
    accepted: bool

    @property
    def is_absorbing(self) -> bool:
        return self.confirm_probability is None

    def num_choices(self) -> int:
        # Purely stochastic: never more than one choice
        return 1

    def num_transitions(self, choice: int = 0) -> int:
        self._check_choice(choice)
        return 1 if self.is_absorbing else 2

    def transition_probability(self, choice: int, offset: int) -> float:
        self._check_offset(choice, offset)
        if self.confirm_probability is None:
            return 1.0
        if offset == OFFSET_REFUSE:
            return 1.0 - self.confirm_probability
        return self.confirm_probability

    def transition_target(self, choice: int, offset: int) -> ProcessState:
        self._check_offset(choice, offset)
        if self.is_absorbing:
            # Self-loop
            return ProcessState(step=self.state.step, replies=self.state.replies)
        return self.state.with_reply(REFUSE if offset == OFFSET_REFUSE else CONFIRM)

    def transition_action(self, choice: int, offset: int) -> object | None:
        self._check_offset(choice, offset)
        return None

    def transitions(self) -> list[tuple[float, ProcessState]]:
        """All (probability, target) pairs of the single choice."""
        return [
            (self.transition_probability(0, k), self.transition_target(0, k))
            for k in range(self.num_transitions(0))
        ]

    def is_label_true(self, label_index: int) -> bool:
        if label_index != 0:
            raise PreconditionError("Unknown label index", {"label_index": label_index})
        return self.accepted

    def _check_choice(self, choice: int) -> None:
        if choice != 0:
            raise PreconditionError(
                "Choice index out of range for a DTMC", {"choice": choice}
            )

    def _check_offset(self, choice: int, offset: int) -> None:
        self._check_choice(choice)
        count = 1 if self.is_absorbing else 2
        if not 0 <= offset < count:
            raise PreconditionError(
                "Transition offset out of range",
                {"offset": offset, "transitions": count, "step": self.state.step},
            )


class ConsensusTransitionGenerator:
    """Initial state and focus for the consensus chain."""

    def __init__(self, config: ConsensusConfig):
        self.config = config

    def initial_state(self) -> ProcessState:
        return ProcessState.initial(self.config.num_participants)

    def focus(self, state: ProcessState) -> FocusedState:
        """Validate a state and build its query context.

        Args:
            state: State to explore.

        Returns:
            The FocusedState answering all transition and label queries.

        Raises:
            PreconditionError: If the state does not fit the configured
                participant count or its values are out of bounds.
        """
        n = self.config.num_participants
        if not isinstance(state, ProcessState):
            raise PreconditionError(
                "Focused state must be a ProcessState", {"type": type(state).__name__}
            )
        if not isinstance(state.replies, tuple):
            raise PreconditionError(
                "Reply vector must be a tuple", {"type": type(state.replies).__name__}
            )
        if len(state.replies) != n:
            raise PreconditionError(
                "Reply vector length does not match participant count",
                {"replies": len(state.replies), "participants": n},
            )
        step = state.step
        if isinstance(step, bool) or not isinstance(step, int) or not 0 <= step <= n:
            raise PreconditionError(
                "Step out of bounds", {"step": state.step, "participants": n}
            )
        for position, reply in enumerate(state.replies):
            if isinstance(reply, bool) or not isinstance(reply, int):
                raise PreconditionError(
                    "Reply is not an integer", {"position": position, "reply": reply}
                )
            if reply not in (REFUSE, CONFIRM):
                raise PreconditionError(
                    "Reply out of bounds", {"position": position, "reply": reply}
                )

        if state.is_resolved:
            return FocusedState(
                state=state,
                confirm_probability=None,
                accepted=self.config.specification.accepts(state.replies),
            )
        return FocusedState(
            state=state,
            confirm_probability=self.config.registry.confirmation_probability(state.step),
            accepted=False,
        )


# =============================================================================
# Rewards
# =============================================================================


class ConsensusRewardGenerator(RewardGenerator[ProcessState]):
    """Reward structure "r": 1 per state, nothing per action."""

    def reward_struct_names(self) -> list[str]:
        return [REWARD_STEPS]

    def state_reward(self, reward_index: int, state: ProcessState) -> float:
        self._check_index(reward_index)
        return 1.0

    def state_action_reward(
        self, reward_index: int, state: ProcessState, action: object | None
    ) -> float:
        self._check_index(reward_index)
        return 0.0

    def _check_index(self, reward_index: int) -> None:
        if reward_index != 0:
            raise PreconditionError(
                "Unknown reward structure index", {"reward_index": reward_index}
            )


# =============================================================================
# Facade
# =============================================================================


class ConsensusModelGenerator(ModelGenerator[ProcessState], RewardGenerator[ProcessState]):
    """Engine-facing generator for the consensus chain.

    Example:
        >>> gen = ConsensusModelGenerator.create(2, [0.5, 0.5], [[1, 1]])
        >>> ctx = gen.focus(gen.initial_state())
        >>> [ctx.transition_probability(0, k) for k in range(ctx.num_transitions(0))]
        [0.5, 0.5]

    Queries made on the generator itself are answered by the context of the
    most recent focus call; a later focus replaces it.
    """

    def __init__(self, config: ConsensusConfig):
        if not isinstance(config, ConsensusConfig):
            raise ConfigurationError(
                "Generator needs a ConsensusConfig", {"type": type(config).__name__}
            )
        self.config = config
        self.info = ConsensusModelInfo(config)
        self.transitions = ConsensusTransitionGenerator(config)
        self.rewards = ConsensusRewardGenerator()
        self._focused: FocusedState | None = None
        logger.debug(
            f"Consensus generator: {config.num_participants} participants, "
            f"{len(config.specification)} acceptance patterns"
        )

    @classmethod
    def create(
        cls,
        num_participants: int,
        probabilities: Iterable[float],
        patterns: Iterable[Sequence[int] | str],
    ) -> ConsensusModelGenerator:
        """Build a generator from raw construction parameters.

        Raises:
            ConfigurationError: If any parameter is invalid.
        """
        return cls(ConsensusConfig.create(num_participants, probabilities, patterns))

    @property
    def num_participants(self) -> int:
        return self.config.num_participants

    @property
    def specification(self) -> AcceptanceSpecification:
        return self.config.specification

    # -- model info --

    @property
    def model_type(self) -> ModelType:
        return self.info.model_type

    def variable_types(self) -> list[VariableDeclaration]:
        return self.info.variable_types()

    def label_names(self) -> list[str]:
        return self.info.label_names()

    # -- exploration --

    def initial_state(self) -> ProcessState:
        return self.transitions.initial_state()

    def focus(self, state: ProcessState) -> FocusedState:
        self._focused = None
        self._focused = self.transitions.focus(state)
        return self._focused

    @property
    def focused(self) -> FocusedState:
        """Context of the most recent focus call.

        Raises:
            PreconditionError: If no state has been focused yet.
        """
        if self._focused is None:
            raise PreconditionError("Query issued before any focus call")
        return self._focused

    def num_choices(self) -> int:
        # Defined without a focus: a DTMC never offers more than one choice
        return 1

    def num_transitions(self, choice: int = 0) -> int:
        return self.focused.num_transitions(choice)

    def transition_probability(self, choice: int, offset: int) -> float:
        return self.focused.transition_probability(choice, offset)

    def transition_target(self, choice: int, offset: int) -> ProcessState:
        return self.focused.transition_target(choice, offset)

    def transition_action(self, choice: int, offset: int) -> object | None:
        return self.focused.transition_action(choice, offset)

    def is_label_true(self, label_index: int) -> bool:
        return self.focused.is_label_true(label_index)

    # -- rewards --

    def reward_struct_names(self) -> list[str]:
        return self.rewards.reward_struct_names()

    def state_reward(self, reward_index: int, state: ProcessState) -> float:
        return self.rewards.state_reward(reward_index, state)

    def state_action_reward(
        self, reward_index: int, state: ProcessState, action: object | None
    ) -> float:
        return self.rewards.state_action_reward(reward_index, state, action)


__all__ = [
    "LABEL_END",
    "REWARD_STEPS",
    "STEP_VARIABLE",
    "OFFSET_REFUSE",
    "OFFSET_CONFIRM",
    "reply_variable",
    "ConsensusModelInfo",
    "FocusedState",
    "ConsensusTransitionGenerator",
    "ConsensusRewardGenerator",
    "ConsensusModelGenerator",
]
