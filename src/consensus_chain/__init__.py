"""
consensus-chain -- Probabilistic model of a sequential multi-party
consensus protocol, built on the fly for probabilistic model checking.

n participants confirm or refuse in turn; the resulting DTMC answers
"how likely is an accepted outcome?" and "how many steps until it ends?".
"""

from consensus_chain._version import __version__
from consensus_chain.errors import (
    ConfigurationError,
    ConsensusChainError,
    PreconditionError,
)
from consensus_chain.model import (
    LABEL_END,
    REWARD_STEPS,
    AcceptanceSpecification,
    ConsensusConfig,
    ConsensusModelGenerator,
    FocusedState,
    ParticipantRegistry,
    ProcessState,
    load_config,
)
from consensus_chain.types import ModelType, VariableDeclaration, VariableKind
from consensus_chain.verification import ExploredModel, explore

# NOTE: Full subpackage APIs are accessible via direct imports:
#   from consensus_chain.model import ModelGenerator, config_from_dict, ...
#   from consensus_chain.verification import check_reachability, expected_reward, ...

__all__ = [
    "__version__",
    # Errors
    "ConsensusChainError",
    "ConfigurationError",
    "PreconditionError",
    # Types
    "ModelType",
    "VariableKind",
    "VariableDeclaration",
    # Model
    "ParticipantRegistry",
    "AcceptanceSpecification",
    "ConsensusConfig",
    "ProcessState",
    "FocusedState",
    "ConsensusModelGenerator",
    "LABEL_END",
    "REWARD_STEPS",
    "load_config",
    # Verification
    "ExploredModel",
    "explore",
]
