"""Probabilistic model of the sequential consensus chain.

This module provides:
- Static run configuration (participant registry, acceptance specification)
- Immutable process states
- Abstract generator contracts for on-the-fly model checking
- The consensus chain generator (transitions, labels, rewards)
"""

from __future__ import annotations

from consensus_chain.model.configuration import (
    AcceptanceSpecification,
    ConsensusConfig,
    ParticipantRegistry,
    Pattern,
    config_from_dict,
    config_to_dict,
    load_config,
)
from consensus_chain.model.contracts import (
    ModelGenerator,
    ModelInfo,
    RewardGenerator,
)
from consensus_chain.model.generator import (
    LABEL_END,
    OFFSET_CONFIRM,
    OFFSET_REFUSE,
    REWARD_STEPS,
    ConsensusModelGenerator,
    ConsensusModelInfo,
    ConsensusRewardGenerator,
    ConsensusTransitionGenerator,
    FocusedState,
)
from consensus_chain.model.state import CONFIRM, REFUSE, ProcessState

__all__ = [
    # --- Configuration ---
    "Pattern",
    "ParticipantRegistry",
    "AcceptanceSpecification",
    "ConsensusConfig",
    "config_to_dict",
    "config_from_dict",
    "load_config",
    # --- State ---
    "REFUSE",
    "CONFIRM",
    "ProcessState",
    # --- Contracts ---
    "ModelInfo",
    "ModelGenerator",
    "RewardGenerator",
    # --- Generator ---
    "LABEL_END",
    "REWARD_STEPS",
    "OFFSET_REFUSE",
    "OFFSET_CONFIRM",
    "ConsensusModelInfo",
    "FocusedState",
    "ConsensusTransitionGenerator",
    "ConsensusRewardGenerator",
    "ConsensusModelGenerator",
]
