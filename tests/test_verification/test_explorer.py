"""Tests for state space exploration and end-to-end consensus checking."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from consensus_chain.model.generator import ConsensusModelGenerator
from consensus_chain.model.state import ProcessState
from consensus_chain.types import ModelType
from consensus_chain.verification.explorer import StateSpaceExplorer, explore


@pytest.fixture
def two_party_model():
    """Explored chain for n=2, p=[0.5, 0.5], spec={[1, 1]}."""
    gen = ConsensusModelGenerator.create(2, [0.5, 0.5], [[1, 1]])
    return explore(gen)


class TestExploration:
    def test_state_space_shape(self, two_party_model):
        assert two_party_model.num_states == 7
        assert two_party_model.dtmc.num_transitions == 6 + 4
        assert len(two_party_model.dtmc.absorbing_states()) == 4

    def test_initial_state_is_zero(self, two_party_model):
        assert two_party_model.states[0] == ProcessState.initial(2)
        assert two_party_model.dtmc.initial_state == 0

    def test_breadth_first_numbering(self, two_party_model):
        steps = [two_party_model.states[i].step for i in range(7)]
        assert steps == [0, 1, 1, 2, 2, 2, 2]
        # refuse branch is discovered before confirm
        assert two_party_model.states[1].outcome == (0,)
        assert two_party_model.states[2].outcome == (1,)

    def test_deterministic(self):
        gen = ConsensusModelGenerator.create(3, [0.9, 0.8, 0.6], ["110", "011"])
        first = explore(gen)
        second = explore(gen)
        assert first.states == second.states
        assert first.dtmc.transitions == second.dtmc.transitions

    def test_leaves_each_reached_with_quarter(self, two_party_model):
        matrix, order = two_party_model.dtmc.transition_matrix()
        two_step = np.linalg.matrix_power(matrix, 2)
        for leaf in [(0, 0), (0, 1), (1, 0), (1, 1)]:
            leaf_id = two_party_model.state_id(ProcessState(step=2, replies=leaf))
            assert two_step[order.index(0), order.index(leaf_id)] == pytest.approx(0.25)

    def test_only_accepted_leaf_is_labelled(self, two_party_model):
        labelled = two_party_model.dtmc.states_with_label("end")
        assert [two_party_model.states[s] for s in labelled] == [
            ProcessState(step=2, replies=(1, 1))
        ]

    def test_rewards_recorded(self, two_party_model):
        assert set(two_party_model.rewards) == {"r"}
        assert all(r == 1.0 for r in two_party_model.rewards["r"].values())
        assert len(two_party_model.rewards["r"]) == 7

    def test_zero_probability_branches_dropped(self):
        gen = ConsensusModelGenerator.create(2, [1.0, 0.5], [[1, 1]])
        model = explore(gen)
        assert model.num_states == 4
        assert all(s.outcome[:1] != (0,) for s in model.states.values())

    def test_max_states(self):
        gen = ConsensusModelGenerator.create(4, [0.5] * 4, [])
        with pytest.raises(ValueError, match="max_states"):
            StateSpaceExplorer(max_states=10).explore(gen)

    def test_rejects_nondeterministic_models(self, monkeypatch):
        gen = ConsensusModelGenerator.create(1, [0.5], [[1]])
        monkeypatch.setattr(type(gen.info), "model_type", property(lambda self: ModelType.MDP))
        with pytest.raises(ValueError, match="Only DTMC"):
            explore(gen)

    def test_logs_summary(self, caplog):
        gen = ConsensusModelGenerator.create(1, [0.5], [[1]])
        with caplog.at_level(logging.INFO, logger="consensus_chain.verification.explorer"):
            explore(gen)
        assert "Explored 3 states" in caplog.text


class TestConsensusProperties:
    def test_probability_of_end(self, two_party_model):
        result = two_party_model.probability_of("end")
        assert result.probability == pytest.approx(0.25)

    def test_expected_steps_to_absorption(self, two_party_model):
        result = two_party_model.expected_reward_to_absorption("r")
        assert result.expected == pytest.approx(2.0)
        leaf = two_party_model.state_id(ProcessState(step=2, replies=(0, 1)))
        assert result.per_state[leaf] == 0.0

    def test_unknown_reward_structure(self, two_party_model):
        with pytest.raises(KeyError):
            two_party_model.expected_reward_to_absorption("cost")

    def test_empty_model_is_accepted(self):
        gen = ConsensusModelGenerator.create(0, [], [[]])
        model = explore(gen)
        assert model.num_states == 1
        assert model.dtmc.is_absorbing(0)
        assert model.probability_of("end").is_certain
        assert model.expected_reward_to_absorption("r").expected == 0.0

    def test_disjunction_of_patterns(self):
        gen = ConsensusModelGenerator.create(3, [0.9, 0.8, 0.6], ["110", "011"])
        result = explore(gen).probability_of("end")
        assert result.probability == pytest.approx(0.9 * 0.8 * 0.4 + 0.1 * 0.8 * 0.6)

    def test_exact_match_semantics(self):
        # Under subset reading "10" would also accept "11"; exact reading does not
        gen = ConsensusModelGenerator.create(2, [0.5, 0.5], ["10"])
        assert explore(gen).probability_of("end").probability == pytest.approx(0.25)

    def test_no_patterns(self):
        gen = ConsensusModelGenerator.create(2, [0.5, 0.5], [])
        assert explore(gen).probability_of("end").is_impossible

    def test_expected_steps_independent_of_probabilities(self):
        gen = ConsensusModelGenerator.create(4, [0.1, 0.7, 0.3, 0.95], ["1111"])
        model = explore(gen)
        assert model.expected_reward_to_absorption("r").expected == pytest.approx(4.0)
        assert model.probability_of("end").probability == pytest.approx(0.1 * 0.7 * 0.3 * 0.95)
