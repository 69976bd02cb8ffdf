"""Reference checking engine for on-the-fly model generators.

This module provides:
- Breadth-first state space construction from a model generator
- DTMC representation and validation
- Reachability probabilities and expected cumulative rewards
"""

from __future__ import annotations

from consensus_chain.verification.explorer import (
    ExploredModel,
    StateSpaceExplorer,
    explore,
)
from consensus_chain.verification.probabilistic import (
    DTMC,
    DTMCState,
    ExpectedRewardResult,
    ProbabilisticResult,
    ProbabilisticTransition,
    check_reachability,
    expected_reward,
    expected_steps,
)

__all__ = [
    # --- Exploration ---
    "ExploredModel",
    "StateSpaceExplorer",
    "explore",
    # --- Probabilistic ---
    "ProbabilisticTransition",
    "DTMCState",
    "DTMC",
    "ProbabilisticResult",
    "ExpectedRewardResult",
    "check_reachability",
    "expected_reward",
    "expected_steps",
]
