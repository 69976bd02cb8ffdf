"""State space construction from an on-the-fly model generator.

The explorer drives a generator exactly as a checking engine does: it
focuses each discovered state and asks for its choices, transitions,
labels and rewards. The result is an explicit DTMC that the analysis
functions in ``consensus_chain.verification.probabilistic`` operate on.

States are discovered breadth-first and numbered in discovery order, so
the same generator always yields the same numbering.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from consensus_chain.model.contracts import ModelGenerator, RewardGenerator
from consensus_chain.types import ModelType
from consensus_chain.verification.probabilistic import (
    DTMC,
    ExpectedRewardResult,
    ProbabilisticResult,
    check_reachability,
    expected_reward,
)

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Hashable)


@dataclass
class ExploredModel(Generic[S]):
    """An explicitly constructed model.

    Attributes:
        dtmc: The chain over integer state IDs.
        states: State ID -> generator state.
        state_ids: Generator state -> state ID.
        rewards: Reward structure name -> per-state reward.
    """

    dtmc: DTMC
    states: dict[int, S] = field(default_factory=dict)
    state_ids: dict[S, int] = field(default_factory=dict)
    rewards: dict[str, dict[int, float]] = field(default_factory=dict)

    @property
    def num_states(self) -> int:
        return self.dtmc.num_states

    def state_id(self, state: S) -> int:
        return self.state_ids[state]

    def probability_of(self, label: str) -> ProbabilisticResult:
        """P=? [F label]"""
        return check_reachability(self.dtmc, target_labels={label})

    def expected_reward_to_absorption(self, reward: str) -> ExpectedRewardResult:
        """R{reward}=? [F absorbing]"""
        if reward not in self.rewards:
            raise KeyError(f"Unknown reward structure '{reward}'")
        return expected_reward(
            self.dtmc,
            self.rewards[reward],
            target_states=self.dtmc.absorbing_states(),
        )


class StateSpaceExplorer:
    """Builds a DTMC from a model generator by breadth-first exploration."""

    def __init__(self, max_states: int = 100_000):
        """Initialize the explorer.

        Args:
            max_states: Maximum number of states to construct
        """
        self.max_states = max_states

    def explore(self, generator: ModelGenerator[Any]) -> ExploredModel[Any]:
        """Construct the reachable state space of a generator.

        Zero-probability transitions are dropped. Every other transition is
        recorded, and a self-loop is accepted only as the sole transition of
        an absorbing state.

        Args:
            generator: The generator to explore. If it is also a
                RewardGenerator, its state rewards are recorded.

        Returns:
            The explored model.

        Raises:
            ValueError: If the model is not a DTMC, exceeds ``max_states``,
                has a non-absorbing self-loop, or fails DTMC validation.
        """
        if generator.model_type is not ModelType.DTMC:
            raise ValueError(f"Only DTMC models can be explored, got {generator.model_type}")

        label_names = generator.label_names()
        reward_names = (
            generator.reward_struct_names() if isinstance(generator, RewardGenerator) else []
        )

        initial = generator.initial_state()
        model: ExploredModel[Any] = ExploredModel(dtmc=DTMC(initial_state=0))
        model.rewards = {name: {} for name in reward_names}
        queue: deque[Any] = deque()

        def discover(state: Any) -> int:
            if state in model.state_ids:
                return model.state_ids[state]
            if len(model.state_ids) >= self.max_states:
                raise ValueError(f"State space exceeds max_states={self.max_states}")
            state_id = len(model.state_ids)
            model.state_ids[state] = state_id
            model.states[state_id] = state
            queue.append(state)
            return state_id

        discover(initial)
        pending: list[tuple[int, int, float]] = []
        dropped = 0

        while queue:
            state = queue.popleft()
            source = model.state_ids[state]
            generator.focus(state)

            labels = {name for i, name in enumerate(label_names) if generator.is_label_true(i)}
            model.dtmc.add_state(source, labels)
            for r, name in enumerate(reward_names):
                model.rewards[name][source] = generator.state_reward(r, state)

            num_choices = generator.num_choices()
            if num_choices != 1:
                raise ValueError(f"State {state!r} offers {num_choices} choices in a DTMC")

            count = generator.num_transitions(0)
            for offset in range(count):
                probability = generator.transition_probability(0, offset)
                target = generator.transition_target(0, offset)
                if probability == 0.0:
                    dropped += 1
                    logger.debug(f"Dropping zero-probability transition {state!r} -> {target!r}")
                    continue
                if target == state and count != 1:
                    raise ValueError(f"Self-loop at non-absorbing state {state!r}")
                pending.append((source, discover(target), probability))

        for source, target, probability in pending:
            model.dtmc.add_transition(source, target, probability)
        model.dtmc.validate()

        logger.info(
            f"Explored {model.dtmc.num_states} states, "
            f"{model.dtmc.num_transitions} transitions, "
            f"{len(model.dtmc.absorbing_states())} absorbing"
            + (f" ({dropped} zero-probability transitions dropped)" if dropped else "")
        )
        return model


def explore(generator: ModelGenerator[Any], max_states: int = 100_000) -> ExploredModel[Any]:
    """Construct the reachable state space of a generator.

    Convenience wrapper around :class:`StateSpaceExplorer`.
    """
    return StateSpaceExplorer(max_states=max_states).explore(generator)


__all__ = [
    "ExploredModel",
    "StateSpaceExplorer",
    "explore",
]
