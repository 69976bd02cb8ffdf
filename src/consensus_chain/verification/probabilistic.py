"""Probabilistic analysis of explored Discrete-Time Markov Chains (DTMC).

This module provides:
- DTMC representation with labeled states and probabilistic transitions
- DTMC validation (outgoing probabilities sum to 1.0 per state)
- Reachability probability computation, P=? [F target]
- Expected cumulative state reward until a target, R=? [F target]
- Dense transition matrix view (numpy)

Algorithms from Baier & Katoen, "Principles of Model Checking", Chapter 10.

Linear systems are solved in pure Python:
- Gaussian elimination for small systems (< 100 unknowns)
- Value iteration fallback for larger systems
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field

import numpy as np

# =============================================================================
# Core Types
# =============================================================================

_EPSILON = 1e-10
"""Tolerance for floating-point comparisons."""

_MAX_ITERATIONS = 10000
"""Maximum iterations for value iteration."""

_CONVERGENCE_THRESHOLD = 1e-12
"""Convergence threshold for iterative methods."""

_PROBABILITY_SUM_TOLERANCE = 1e-6
"""Tolerance for checking probability sums equal 1.0."""

_GAUSSIAN_ELIMINATION_THRESHOLD = 100
"""Use Gaussian elimination for systems smaller than this."""


@dataclass(frozen=True)
class ProbabilisticTransition:
    """A probabilistic transition: source ─p→ target.

    Attributes:
        source: Source state ID.
        target: Target state ID.
        probability: Transition probability (0 < p <= 1).
    """

    source: int
    target: int
    probability: float

    def __repr__(self) -> str:
        return f"{self.source} --{self.probability:.4f}--> {self.target}"


@dataclass
class DTMCState:
    """A state in a DTMC.

    Attributes:
        id: State identifier.
        labels: Set of atomic propositions holding in this state.
    """

    id: int
    labels: set[str] = field(default_factory=set)

    def __hash__(self) -> int:
        return self.id

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DTMCState):
            return self.id == other.id
        return False


@dataclass
class DTMC:
    """Discrete-Time Markov Chain with a single initial state.

    Attributes:
        states: Mapping from state IDs to DTMCState objects.
        transitions: List of probabilistic transitions, in insertion order.
        initial_state: ID of the initial state.
    """

    states: dict[int, DTMCState] = field(default_factory=dict)
    transitions: list[ProbabilisticTransition] = field(default_factory=list)
    initial_state: int = 0
    _outgoing: dict[int, list[ProbabilisticTransition]] = field(
        default_factory=dict, repr=False, compare=False
    )

    def add_state(self, state_id: int, labels: set[str] | None = None) -> DTMCState:
        """Add a state to the DTMC.

        Args:
            state_id: Unique state identifier.
            labels: Set of atomic propositions for this state.

        Returns:
            The created DTMCState.
        """
        state = DTMCState(id=state_id, labels=labels or set())
        self.states[state_id] = state
        self._outgoing.setdefault(state_id, [])
        return state

    def add_transition(
        self,
        source: int,
        target: int,
        probability: float,
    ) -> ProbabilisticTransition:
        """Add a probabilistic transition.

        Args:
            source: Source state ID.
            target: Target state ID.
            probability: Transition probability (must be in (0, 1]).

        Returns:
            The created ProbabilisticTransition.

        Raises:
            ValueError: If probability is not in (0, 1] or states don't exist.
        """
        if probability <= 0 or probability > 1.0 + _EPSILON:
            raise ValueError(f"Probability must be in (0, 1], got {probability}")
        if source not in self.states:
            raise ValueError(f"Source state {source} does not exist")
        if target not in self.states:
            raise ValueError(f"Target state {target} does not exist")

        trans = ProbabilisticTransition(
            source=source, target=target, probability=probability
        )
        self.transitions.append(trans)
        self._outgoing[source].append(trans)
        return trans

    def get_transitions_from(self, state_id: int) -> list[ProbabilisticTransition]:
        """Get all transitions from a state, in insertion order."""
        return list(self._outgoing.get(state_id, ()))

    def successors(self, state_id: int) -> list[tuple[int, float]]:
        """Get successor states with their probabilities.

        Args:
            state_id: The source state.

        Returns:
            List of (target_state, probability) tuples.
        """
        return [(t.target, t.probability) for t in self._outgoing.get(state_id, ())]

    def predecessors(self) -> dict[int, set[int]]:
        """Reverse adjacency: target -> set of sources."""
        preds: dict[int, set[int]] = {s: set() for s in self.states}
        for t in self.transitions:
            preds[t.target].add(t.source)
        return preds

    def states_with_label(self, label: str) -> set[int]:
        """Get all states with a given label."""
        return {s.id for s in self.states.values() if label in s.labels}

    def states_with_labels(self, labels: set[str]) -> set[int]:
        """Get all states with any of the given labels."""
        return {s.id for s in self.states.values() if s.labels & labels}

    @property
    def num_states(self) -> int:
        """Number of states."""
        return len(self.states)

    @property
    def num_transitions(self) -> int:
        """Number of transitions."""
        return len(self.transitions)

    def is_absorbing(self, state_id: int) -> bool:
        """Check if a state is absorbing (self-loop with probability 1).

        Args:
            state_id: The state to check.

        Returns:
            True if the state is absorbing.
        """
        transitions = self._outgoing.get(state_id, ())
        return (
            len(transitions) == 1
            and transitions[0].target == state_id
            and abs(transitions[0].probability - 1.0) < _EPSILON
        )

    def absorbing_states(self) -> set[int]:
        return {s for s in self.states if self.is_absorbing(s)}

    def validate(self) -> None:
        """Validate the DTMC.

        Checks that:
        1. All states have outgoing transitions
        2. Outgoing probabilities sum to 1.0 for each state
        3. The initial state exists

        Raises:
            ValueError: If the DTMC is malformed.
        """
        if self.initial_state not in self.states:
            raise ValueError(f"Initial state {self.initial_state} does not exist")

        for state_id in self.states:
            transitions = self._outgoing.get(state_id, ())
            if not transitions:
                raise ValueError(f"State {state_id} has no outgoing transitions")

            prob_sum = math.fsum(t.probability for t in transitions)
            if abs(prob_sum - 1.0) > _PROBABILITY_SUM_TOLERANCE:
                raise ValueError(
                    f"State {state_id}: outgoing probabilities sum to "
                    f"{prob_sum:.6f}, expected 1.0"
                )

    def transition_matrix(self) -> tuple[np.ndarray, list[int]]:
        """Dense transition probability matrix.

        Returns:
            (matrix, order): ``matrix[i, j]`` is the probability of moving
            from ``order[i]`` to ``order[j]``; ``order`` lists state IDs in
            ascending order.
        """
        order = sorted(self.states)
        index = {s: i for i, s in enumerate(order)}
        matrix = np.zeros((len(order), len(order)), dtype=float)
        for t in self.transitions:
            matrix[index[t.source], index[t.target]] += t.probability
        return matrix, order


# =============================================================================
# Results
# =============================================================================


@dataclass
class ProbabilisticResult:
    """Result of a probabilistic verification query.

    Attributes:
        probability: The probability for the initial state.
        per_state: Probability for each state.
    """

    probability: float
    per_state: dict[int, float] = field(default_factory=dict)

    @property
    def is_certain(self) -> bool:
        """True if probability is 1.0 (within tolerance)."""
        return abs(self.probability - 1.0) < _EPSILON

    @property
    def is_impossible(self) -> bool:
        """True if probability is 0.0 (within tolerance)."""
        return abs(self.probability) < _EPSILON


@dataclass
class ExpectedRewardResult:
    """Result of an expected cumulative reward computation.

    Attributes:
        expected: Expected reward from the initial state.
        per_state: Expected reward from each state.
    """

    expected: float
    per_state: dict[int, float] = field(default_factory=dict)

    @property
    def is_infinite(self) -> bool:
        """True if the target is not reached almost surely."""
        return math.isinf(self.expected)


# =============================================================================
# Linear System Solving (Pure Python)
# =============================================================================


def _gaussian_elimination(
    a_matrix: list[list[float]],
    b_vector: list[float],
) -> list[float]:
    """Solve Ax = b via Gaussian elimination with partial pivoting.

    Args:
        a_matrix: Coefficient matrix (n × n), modified in place.
        b_vector: Right-hand side vector (n), modified in place.

    Returns:
        Solution vector x. Variables with a zero pivot are set to 0.
    """
    n = len(b_vector)

    # Forward elimination with partial pivoting
    for col in range(n):
        max_row = col
        max_val = abs(a_matrix[col][col])
        for row in range(col + 1, n):
            if abs(a_matrix[row][col]) > max_val:
                max_val = abs(a_matrix[row][col])
                max_row = row

        if max_row != col:
            a_matrix[col], a_matrix[max_row] = a_matrix[max_row], a_matrix[col]
            b_vector[col], b_vector[max_row] = b_vector[max_row], b_vector[col]

        pivot = a_matrix[col][col]
        if abs(pivot) < _EPSILON:
            continue

        for row in range(col + 1, n):
            factor = a_matrix[row][col] / pivot
            if factor == 0.0:
                continue
            for j in range(col, n):
                a_matrix[row][j] -= factor * a_matrix[col][j]
            b_vector[row] -= factor * b_vector[col]

    # Back substitution
    x = [0.0] * n
    for row in range(n - 1, -1, -1):
        if abs(a_matrix[row][row]) < _EPSILON:
            x[row] = 0.0
            continue
        x[row] = b_vector[row]
        for col in range(row + 1, n):
            x[row] -= a_matrix[row][col] * x[col]
        x[row] /= a_matrix[row][row]

    return x


def _value_iteration(
    dtmc: DTMC,
    fixed: Mapping[int, float],
    unknown_states: list[int],
    bonus: Mapping[int, float] | None = None,
    max_iterations: int = _MAX_ITERATIONS,
) -> dict[int, float]:
    """Iterate x(s) = bonus(s) + Σ P(s,s') × x(s') over the unknown states.

    Args:
        dtmc: The DTMC.
        fixed: States whose value is known.
        unknown_states: States to solve for.
        bonus: Per-state constant term (0 if absent).
        max_iterations: Maximum iterations.

    Returns:
        Mapping from state ID to value, for every state.
    """
    values: dict[int, float] = {s: 0.0 for s in dtmc.states}
    values.update(fixed)
    bonus = bonus or {}

    for _ in range(max_iterations):
        max_diff = 0.0
        for s in unknown_states:
            new_val = bonus.get(s, 0.0) + sum(
                p * values[t] for t, p in dtmc.successors(s)
            )
            diff = abs(new_val - values[s])
            if diff > max_diff:
                max_diff = diff
            values[s] = new_val

        if max_diff < _CONVERGENCE_THRESHOLD:
            break

    return values


def _solve(
    dtmc: DTMC,
    fixed: Mapping[int, float],
    unknown_states: list[int],
    bonus: Mapping[int, float] | None = None,
) -> dict[int, float]:
    """Solve x(s) = bonus(s) + Σ P(s,s') × x(s') for the unknown states.

    Rearranged: x(s) - Σ_{s' unknown} P(s,s') × x(s')
                = bonus(s) + Σ_{s' fixed} P(s,s') × fixed(s')
    """
    if len(unknown_states) > _GAUSSIAN_ELIMINATION_THRESHOLD:
        return _value_iteration(dtmc, fixed, unknown_states, bonus)

    n = len(unknown_states)
    state_to_idx = {s: i for i, s in enumerate(unknown_states)}
    bonus = bonus or {}

    a_matrix = [[0.0] * n for _ in range(n)]
    b_vector = [bonus.get(s, 0.0) for s in unknown_states]

    for i, s in enumerate(unknown_states):
        a_matrix[i][i] += 1.0
        for target, prob in dtmc.successors(s):
            if target in state_to_idx:
                a_matrix[i][state_to_idx[target]] -= prob
            else:
                b_vector[i] += prob * fixed.get(target, 0.0)

    solution = _gaussian_elimination(a_matrix, b_vector)

    values = dict(fixed)
    for s, idx in state_to_idx.items():
        values[s] = solution[idx]
    return values


# =============================================================================
# Reachability Analysis
# =============================================================================


def _resolve_targets(
    dtmc: DTMC,
    target_labels: set[str] | None,
    target_states: set[int] | None,
) -> set[int]:
    if target_labels is None and target_states is None:
        raise ValueError("Must specify target_labels or target_states")

    targets: set[int] = set()
    if target_labels:
        targets |= dtmc.states_with_labels(target_labels)
    if target_states:
        targets |= target_states & dtmc.states.keys()
    return targets


def _backward_reachable(dtmc: DTMC, targets: set[int]) -> set[int]:
    """All states from which some target state is reachable."""
    preds = dtmc.predecessors()
    reached = set(targets)
    queue = deque(targets)

    while queue:
        state_id = queue.popleft()
        for source in preds[state_id]:
            if source not in reached:
                reached.add(source)
                queue.append(source)

    return reached


def check_reachability(
    dtmc: DTMC,
    target_labels: set[str] | None = None,
    target_states: set[int] | None = None,
) -> ProbabilisticResult:
    """Compute reachability probabilities for target states.

    Computes Pr(◇ target), the probability of eventually reaching a state
    with the given labels, from each state.

    The algorithm:
    1. Partition states into:
       - target states: prob = 1.0
       - states that can't reach target: prob = 0.0
       - remaining: solve linear system p(s) = Σ P(s,s') × p(s')
    2. Solve via Gaussian elimination (small) or value iteration (large).

    Args:
        dtmc: The DTMC to analyze.
        target_labels: Labels identifying target states (at least one must match).
        target_states: Explicit set of target state IDs. If both are given,
            the union is used.

    Returns:
        ProbabilisticResult with probabilities per state.

    Raises:
        ValueError: If neither target_labels nor target_states is provided.
    """
    targets = _resolve_targets(dtmc, target_labels, target_states)

    if not targets:
        per_state = {s: 0.0 for s in dtmc.states}
        return ProbabilisticResult(probability=0.0, per_state=per_state)

    can_reach = _backward_reachable(dtmc, targets)
    fixed: dict[int, float] = {}
    for s in dtmc.states:
        if s in targets:
            fixed[s] = 1.0
        elif s not in can_reach:
            fixed[s] = 0.0

    unknown = [s for s in dtmc.states if s not in fixed]
    values = _solve(dtmc, fixed, unknown) if unknown else fixed

    per_state = {s: max(0.0, min(1.0, values[s])) for s in dtmc.states}
    return ProbabilisticResult(
        probability=per_state.get(dtmc.initial_state, 0.0),
        per_state=per_state,
    )


# =============================================================================
# Expected Rewards
# =============================================================================


def expected_reward(
    dtmc: DTMC,
    state_rewards: Mapping[int, float],
    target_labels: set[str] | None = None,
    target_states: set[int] | None = None,
) -> ExpectedRewardResult:
    """Compute expected cumulative state reward until reaching a target.

    Solves: e(s) = r(s) + Σ P(s,s') × e(s') for non-target states.
    Target states: e(s) = 0.
    States reaching the target with probability < 1: e(s) = ∞.

    Args:
        dtmc: The DTMC.
        state_rewards: Reward earned in each state (0 if absent).
        target_labels: Labels identifying target states.
        target_states: Explicit set of target state IDs.

    Returns:
        ExpectedRewardResult with expected reward per state.

    Raises:
        ValueError: If neither target_labels nor target_states is provided.
    """
    targets = _resolve_targets(dtmc, target_labels, target_states)
    reach = check_reachability(dtmc, target_states=targets) if targets else None

    fixed: dict[int, float] = {}
    for s in dtmc.states:
        if s in targets:
            fixed[s] = 0.0
        elif reach is None or abs(reach.per_state[s] - 1.0) > _PROBABILITY_SUM_TOLERANCE:
            fixed[s] = float("inf")

    unknown = [s for s in dtmc.states if s not in fixed]
    if unknown:
        # Unknown states reach the target almost surely, so they never move
        # to an infinite state and the system stays finite.
        finite = {s: v for s, v in fixed.items() if not math.isinf(v)}
        bonus = {s: state_rewards.get(s, 0.0) for s in unknown}
        values = _solve(dtmc, finite, unknown, bonus)
    else:
        values = {}

    per_state: dict[int, float] = {}
    for s in dtmc.states:
        per_state[s] = fixed[s] if s in fixed else max(0.0, values[s])

    return ExpectedRewardResult(
        expected=per_state.get(dtmc.initial_state, float("inf")),
        per_state=per_state,
    )


def expected_steps(
    dtmc: DTMC,
    target_labels: set[str] | None = None,
    target_states: set[int] | None = None,
) -> ExpectedRewardResult:
    """Compute expected number of steps to reach target states.

    Equivalent to :func:`expected_reward` with reward 1 in every state.
    """
    return expected_reward(
        dtmc,
        {s: 1.0 for s in dtmc.states},
        target_labels=target_labels,
        target_states=target_states,
    )


__all__ = [
    # Core types
    "ProbabilisticTransition",
    "DTMCState",
    "DTMC",
    # Results
    "ProbabilisticResult",
    "ExpectedRewardResult",
    # Functions
    "check_reachability",
    "expected_reward",
    "expected_steps",
]
