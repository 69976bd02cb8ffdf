"""Process states of the consensus chain.

A state records how many participants have replied so far (``step``) and
the reply of each of them. Positions at or beyond ``step`` are placeholders
holding 0 and take no part in equality.
"""

from __future__ import annotations

from dataclasses import dataclass

REFUSE = 0
"""Reply value for a refusal."""

CONFIRM = 1
"""Reply value for a confirmation."""


@dataclass(frozen=True, eq=False)
class ProcessState:
    """An immutable state of the consensus chain.

    Attributes:
        step: Number of participants that have replied, in [0, n].
        replies: One value in {0, 1} per participant.
    """

    step: int
    replies: tuple[int, ...]

    @classmethod
    def initial(cls, num_participants: int) -> ProcessState:
        """State before any participant has replied."""
        return cls(step=0, replies=(REFUSE,) * num_participants)

    @property
    def num_participants(self) -> int:
        return len(self.replies)

    @property
    def is_resolved(self) -> bool:
        """True once every participant has replied."""
        return self.step == len(self.replies)

    @property
    def outcome(self) -> tuple[int, ...]:
        """The meaningful prefix of the reply vector."""
        return self.replies[: self.step]

    def with_reply(self, reply: int) -> ProcessState:
        """Record the next participant's reply in a new state."""
        replies = list(self.replies)
        replies[self.step] = reply
        return ProcessState(step=self.step + 1, replies=tuple(replies))

    def _state_key(self) -> tuple[object, ...]:
        return (len(self.replies), self.step, self.outcome)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ProcessState):
            return self._state_key() == other._state_key()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._state_key())

    def __repr__(self) -> str:
        shown = "".join(str(r) for r in self.outcome)
        pending = "_" * (len(self.replies) - self.step)
        return f"ProcessState(step={self.step}, replies=[{shown}{pending}])"


__all__ = [
    "REFUSE",
    "CONFIRM",
    "ProcessState",
]
