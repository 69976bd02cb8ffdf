"""Static configuration of a consensus chain run.

A run is fixed by the participants' confirmation probabilities and the set
of acceptance patterns. Both are validated once, at construction, and never
change afterwards.

Round-trip guarantee: ``config_from_dict(config_to_dict(c)) == c``.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from consensus_chain.errors import ConfigurationError

Pattern = tuple[int, ...]


@dataclass(frozen=True)
class ParticipantRegistry:
    """Confirmation probability of each participant, in reply order.

    Attributes:
        probabilities: p[i] is the probability that participant i confirms.
    """

    probabilities: tuple[float, ...]

    @classmethod
    def create(cls, num_participants: int, probabilities: Iterable[float]) -> ParticipantRegistry:
        """Build a validated registry.

        Args:
            num_participants: Expected participant count n.
            probabilities: One confirmation probability per participant.

        Returns:
            The registry.

        Raises:
            ConfigurationError: If the count differs from n or a value lies
                outside [0, 1].
        """
        if num_participants < 0:
            raise ConfigurationError(
                "Participant count must be non-negative",
                {"participants": num_participants},
            )
        values = tuple(probabilities)
        if len(values) != num_participants:
            raise ConfigurationError(
                "Probability count does not match participant count",
                {"participants": num_participants, "probabilities": len(values)},
            )
        checked: list[float] = []
        for index, value in enumerate(values):
            try:
                checked.append(float(value))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    "Probability is not a number",
                    {"participant": index, "value": value},
                ) from e
        return cls(tuple(checked))

    def __post_init__(self) -> None:
        if not isinstance(self.probabilities, tuple):
            raise ConfigurationError(
                "Probabilities must be a tuple",
                {"type": type(self.probabilities).__name__},
            )
        for index, p in enumerate(self.probabilities):
            if isinstance(p, bool) or not isinstance(p, (int, float)):
                raise ConfigurationError(
                    "Probability is not a number", {"participant": index, "value": p}
                )
            if math.isnan(p) or p < 0.0 or p > 1.0:
                raise ConfigurationError(
                    "Probability must be in [0, 1]", {"participant": index, "value": p}
                )

    def __len__(self) -> int:
        return len(self.probabilities)

    def confirmation_probability(self, participant: int) -> float:
        return self.probabilities[participant]

    def refusal_probability(self, participant: int) -> float:
        return 1.0 - self.probabilities[participant]


def _coerce_pattern(raw: Sequence[int] | str, num_participants: int) -> Pattern:
    if isinstance(raw, str):
        entries: list[Any] = [int(c) if c in "01" else c for c in raw]
    else:
        try:
            entries = list(raw)
        except TypeError as e:
            raise ConfigurationError(
                "Pattern must be a sequence of 0/1 entries or a bit-string",
                {"pattern": raw},
            ) from e
    for position, entry in enumerate(entries):
        if isinstance(entry, bool) or entry not in (0, 1):
            raise ConfigurationError(
                "Pattern entries must be 0 or 1",
                {"pattern": raw, "position": position},
            )
    if len(entries) != num_participants:
        raise ConfigurationError(
            "Pattern length does not match participant count",
            {"pattern": raw, "participants": num_participants},
        )
    return tuple(int(e) for e in entries)


@dataclass(frozen=True)
class AcceptanceSpecification:
    """Disjunction of exact outcome patterns.

    Each pattern is one complete reply vector. An outcome is accepted when it
    equals any pattern element for element; a 0 in a pattern demands a
    refusal at that position, it is not a wildcard.

    Attributes:
        patterns: The accepted outcomes.
    """

    patterns: frozenset[Pattern]

    @classmethod
    def create(
        cls,
        num_participants: int,
        patterns: Iterable[Sequence[int] | str],
    ) -> AcceptanceSpecification:
        """Build a validated specification.

        Args:
            num_participants: Expected pattern length n.
            patterns: Patterns as 0/1 sequences or bit-strings such as "101".

        Raises:
            ConfigurationError: If a pattern has the wrong length or an entry
                other than 0/1.
        """
        return cls(frozenset(_coerce_pattern(p, num_participants) for p in patterns))

    def __post_init__(self) -> None:
        if not isinstance(self.patterns, frozenset):
            raise ConfigurationError(
                "Patterns must be a frozenset", {"type": type(self.patterns).__name__}
            )
        for pattern in self.patterns:
            if not isinstance(pattern, tuple) or any(
                isinstance(e, bool) or not isinstance(e, int) or e not in (0, 1)
                for e in pattern
            ):
                raise ConfigurationError(
                    "Pattern entries must be 0 or 1", {"pattern": pattern}
                )
        if len({len(p) for p in self.patterns}) > 1:
            raise ConfigurationError(
                "Patterns differ in length",
                {"lengths": sorted({len(p) for p in self.patterns})},
            )

    @property
    def pattern_length(self) -> int | None:
        """Common length of the patterns, or None if there are none."""
        return next((len(p) for p in self.patterns), None)

    def __len__(self) -> int:
        return len(self.patterns)

    def accepts(self, outcome: Sequence[int]) -> bool:
        """Check whether an outcome equals some pattern exactly."""
        return tuple(outcome) in self.patterns

    def sorted_patterns(self) -> list[Pattern]:
        return sorted(self.patterns)


@dataclass(frozen=True)
class ConsensusConfig:
    """Complete, validated configuration of one generator.

    Attributes:
        registry: Participant confirmation probabilities.
        specification: Accepted outcomes.
    """

    registry: ParticipantRegistry
    specification: AcceptanceSpecification

    @classmethod
    def create(
        cls,
        num_participants: int,
        probabilities: Iterable[float],
        patterns: Iterable[Sequence[int] | str],
    ) -> ConsensusConfig:
        """Validate all construction parameters at once.

        Nothing is built unless every parameter is valid.
        """
        registry = ParticipantRegistry.create(num_participants, probabilities)
        specification = AcceptanceSpecification.create(num_participants, patterns)
        return cls(registry=registry, specification=specification)

    def __post_init__(self) -> None:
        if not isinstance(self.registry, ParticipantRegistry) or not isinstance(
            self.specification, AcceptanceSpecification
        ):
            raise ConfigurationError(
                "Configuration needs a ParticipantRegistry and an AcceptanceSpecification"
            )
        length = self.specification.pattern_length
        if length is not None and length != len(self.registry):
            raise ConfigurationError(
                "Pattern length does not match participant count",
                {"pattern_length": length, "participants": len(self.registry)},
            )

    @property
    def num_participants(self) -> int:
        return len(self.registry)


# ── Dict / JSON conversion ─────────────────────────────────────────────


def config_to_dict(config: ConsensusConfig) -> dict[str, Any]:
    """Serialize a configuration to a JSON-compatible dict.

    Patterns are written as bit-strings in sorted order so that the output
    is deterministic.
    """
    return {
        "participants": config.num_participants,
        "probabilities": list(config.registry.probabilities),
        "patterns": [
            "".join(str(bit) for bit in pattern)
            for pattern in config.specification.sorted_patterns()
        ],
    }


def config_from_dict(data: dict[str, Any]) -> ConsensusConfig:
    """Deserialize a configuration produced by :func:`config_to_dict`.

    ``participants`` may be omitted, in which case it defaults to the number
    of probabilities.

    Raises:
        ConfigurationError: If a key is missing or a value is invalid.
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Configuration must be a mapping", {"type": type(data).__name__}
        )
    missing = [key for key in ("probabilities", "patterns") if key not in data]
    if missing:
        raise ConfigurationError("Configuration is missing keys", {"missing": missing})

    probabilities = data["probabilities"]
    patterns = data["patterns"]
    if not isinstance(probabilities, list) or not isinstance(patterns, list):
        raise ConfigurationError("'probabilities' and 'patterns' must be lists")

    participants = data.get("participants", len(probabilities))
    if isinstance(participants, bool) or not isinstance(participants, int):
        raise ConfigurationError(
            "'participants' must be an integer", {"participants": participants}
        )
    return ConsensusConfig.create(participants, probabilities, patterns)


def load_config(path: str | Path) -> ConsensusConfig:
    """Load a configuration from a JSON file.

    Raises:
        ConfigurationError: If the file is not valid JSON or the content is
            invalid.
        OSError: If the file cannot be read.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            "Configuration file is not valid JSON", {"path": str(path), "error": e.msg}
        ) from e
    return config_from_dict(data)


__all__ = [
    "Pattern",
    "ParticipantRegistry",
    "AcceptanceSpecification",
    "ConsensusConfig",
    "config_to_dict",
    "config_from_dict",
    "load_config",
]
