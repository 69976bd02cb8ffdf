"""Command-line harness for checking a consensus chain.

Builds a generator from command-line parameters or a JSON configuration,
explores it, and prints the probability of reaching an accepted outcome
and the expected number of steps until the chain is absorbed.

Example:
    consensus-chain --probabilities 0.5 0.5 --pattern 11
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from consensus_chain.errors import ConsensusChainError
from consensus_chain.model import (
    LABEL_END,
    REWARD_STEPS,
    ConsensusConfig,
    ConsensusModelGenerator,
    load_config,
)
from consensus_chain.verification import StateSpaceExplorer

logger = logging.getLogger(__name__)

DEFAULT_PROBABILITIES = (0.5, 0.5)
DEFAULT_PATTERNS = ("11",)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="consensus-chain",
        description="Check a sequential consensus chain: P(accepted outcome) and expected steps.",
    )
    parser.add_argument("--config", default=None, help="Path to a JSON configuration file.")
    parser.add_argument(
        "--probabilities",
        type=float,
        nargs="*",
        default=None,
        help="Confirmation probability of each participant, in reply order.",
    )
    parser.add_argument(
        "--pattern",
        action="append",
        default=None,
        help="Accepted outcome as a bit-string, e.g. 101. Repeat for several patterns.",
    )
    parser.add_argument(
        "--participants",
        type=int,
        default=None,
        help="Participant count (defaults to the number of probabilities).",
    )
    parser.add_argument(
        "--max-states",
        type=int,
        default=100_000,
        help="Upper bound on the number of explored states.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def _resolve_config(args: argparse.Namespace) -> ConsensusConfig:
    if args.config is not None:
        return load_config(args.config)

    probabilities = (
        list(args.probabilities) if args.probabilities is not None else list(DEFAULT_PROBABILITIES)
    )
    patterns = list(args.pattern) if args.pattern is not None else list(DEFAULT_PATTERNS)
    participants = args.participants if args.participants is not None else len(probabilities)
    return ConsensusConfig.create(participants, probabilities, patterns)


def run_check_cli(argv: Sequence[str] | None = None) -> int:
    """Run the consensus chain check.

    Args:
        argv: CLI argument list. When None, process arguments are used.

    Returns:
        Exit code (0 on success, 1 on a configuration or model error).
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _resolve_config(args)
        generator = ConsensusModelGenerator(config)
        model = StateSpaceExplorer(max_states=args.max_states).explore(generator)
    except (ConsensusChainError, ValueError, OSError) as e:
        logger.error(f"Error: {e}")
        return 1

    reachability = model.probability_of(LABEL_END)
    reward = model.expected_reward_to_absorption(REWARD_STEPS)

    print(f"States: {model.num_states}")
    print(f'P=?[F "{LABEL_END}"]:')
    print(reachability.probability)
    print(f'R{{"{REWARD_STEPS}"}}=?[F absorbing]:')
    print(reward.expected)
    return 0


def main() -> None:
    sys.exit(run_check_cli())


__all__ = [
    "build_parser",
    "run_check_cli",
    "main",
]
