"""
Operation Results - Outcome of every write against Kafka Connect.

A closed set of four variants. Code that handles a result checks each
variant explicitly and raises ``TypeError`` for anything else, so adding a
variant shows up everywhere it is handled.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Success:
    """The operation was applied."""


@dataclass(frozen=True)
class Unchanged:
    """No change was necessary."""


@dataclass(frozen=True)
class Rejected:
    """Kafka Connect permanently refused the configuration."""

    reason: str


@dataclass(frozen=True)
class TransientFailure:
    """Kafka Connect signalled a temporary condition (e.g. a rebalance)."""

    reason: str


OperationResult = Union[Success, Unchanged, Rejected, TransientFailure]

SUCCESS = Success()
UNCHANGED = Unchanged()


def is_success(result: OperationResult) -> bool:
    """Return True for results that leave the connector in the desired state."""
    if isinstance(result, (Success, Unchanged)):
        return True
    if isinstance(result, (Rejected, TransientFailure)):
        return False
    raise TypeError(f"Unhandled operation result: {result!r}")
