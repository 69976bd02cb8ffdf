"""Test fixtures for the consensus chain model."""

from __future__ import annotations

import pytest

from consensus_chain.model import ConsensusModelGenerator, ProcessState


@pytest.fixture
def two_party_generator() -> ConsensusModelGenerator:
    """n=2, p=[0.5, 0.5], only [1, 1] accepted."""
    return ConsensusModelGenerator.create(2, [0.5, 0.5], [[1, 1]])


@pytest.fixture
def skewed_generator() -> ConsensusModelGenerator:
    """n=3 with distinct probabilities, accepting 110 and 011."""
    return ConsensusModelGenerator.create(3, [0.9, 0.8, 0.6], ["110", "011"])


@pytest.fixture
def empty_generator() -> ConsensusModelGenerator:
    """n=0 with the empty pattern."""
    return ConsensusModelGenerator.create(0, [], [[]])


@pytest.fixture
def resolved_state() -> ProcessState:
    """Both parties confirmed."""
    return ProcessState(step=2, replies=(1, 1))
