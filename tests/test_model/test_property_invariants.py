"""Property-based tests for the structural contracts of the consensus chain.

Generates random participant registries and acceptance specifications and
checks, over the whole reachable state space, that:
- outgoing probabilities of every state sum to 1
- self-loops occur only at resolved states, with probability 1
- the reachable graph is a binary tree of depth n with 2^n leaves
- "end" holds exactly at resolved states whose outcome is a pattern
"""

from __future__ import annotations

from collections import deque

from hypothesis import given, settings
from hypothesis import strategies as st

from consensus_chain.model.generator import ConsensusModelGenerator
from consensus_chain.model.state import ProcessState

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

MAX_PARTICIPANTS = 5


@st.composite
def consensus_generator(
    draw: st.DrawFn, open_interval: bool = False
) -> ConsensusModelGenerator:
    """A generator with 0..MAX_PARTICIPANTS participants."""
    n = draw(st.integers(min_value=0, max_value=MAX_PARTICIPANTS))
    if open_interval:
        probability = st.floats(min_value=0.01, max_value=0.99)
    else:
        probability = st.floats(min_value=0.0, max_value=1.0)
    probabilities = draw(st.lists(probability, min_size=n, max_size=n))
    pattern = st.lists(st.integers(min_value=0, max_value=1), min_size=n, max_size=n)
    patterns = draw(st.lists(pattern, max_size=4))
    return ConsensusModelGenerator.create(n, probabilities, patterns)


def _reachable(gen: ConsensusModelGenerator) -> set[ProcessState]:
    seen = {gen.initial_state()}
    queue = deque(seen)
    while queue:
        state = queue.popleft()
        ctx = gen.focus(state)
        for _, target in ctx.transitions():
            if target not in seen:
                seen.add(target)
                queue.append(target)
    return seen


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


@given(consensus_generator())
@settings(max_examples=60)
def test_probabilities_sum_to_one(gen: ConsensusModelGenerator) -> None:
    for state in _reachable(gen):
        ctx = gen.focus(state)
        total = sum(p for p, _ in ctx.transitions())
        assert abs(total - 1.0) <= 1e-12
        assert all(0.0 <= p <= 1.0 for p, _ in ctx.transitions())


@given(consensus_generator())
@settings(max_examples=60)
def test_self_loops_only_at_resolved_states(gen: ConsensusModelGenerator) -> None:
    for state in _reachable(gen):
        ctx = gen.focus(state)
        transitions = ctx.transitions()
        if state.is_resolved:
            assert transitions == [(1.0, state)]
        else:
            assert len(transitions) == 2
            assert all(target != state for _, target in transitions)
            assert all(target.step == state.step + 1 for _, target in transitions)


@given(consensus_generator(open_interval=True))
@settings(max_examples=40)
def test_reachable_graph_is_complete_binary_tree(gen: ConsensusModelGenerator) -> None:
    n = gen.num_participants
    states = _reachable(gen)
    leaves = [s for s in states if s.is_resolved]
    assert len(leaves) == 2**n
    assert len(states) == 2 ** (n + 1) - 1
    assert {s.outcome for s in leaves} == {
        tuple((i >> (n - 1 - k)) & 1 for k in range(n)) for i in range(2**n)
    }


@given(consensus_generator())
@settings(max_examples=60)
def test_end_label_is_exact_membership(gen: ConsensusModelGenerator) -> None:
    for state in _reachable(gen):
        ctx = gen.focus(state)
        expected = state.is_resolved and state.replies in gen.specification.patterns
        assert ctx.is_label_true(0) == expected


@given(consensus_generator())
@settings(max_examples=30)
def test_focus_is_idempotent(gen: ConsensusModelGenerator) -> None:
    for state in _reachable(gen):
        first = gen.focus(state)
        second = gen.focus(state)
        assert first == second
        assert first.transitions() == second.transitions()
        assert first.is_label_true(0) == second.is_label_true(0)
