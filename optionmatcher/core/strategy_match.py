"""
Strategy Match Containers

A strategy matcher recognizes multi-leg option combinations in a position
collection and reports each recognition as an OptionStrategyDefinitionMatch:
the strategy's name and the legs it consumed. OptionPositionCollection.accept()
deducts those legs from the collection.
"""

from dataclasses import dataclass, field
from typing import Iterator, Tuple

from optionmatcher.core.option_position import OptionPosition


@dataclass(frozen=True)
class OptionStrategyLegMatch:
    """One matched leg: the position the strategy consumes."""

    position: OptionPosition


@dataclass(frozen=True)
class OptionStrategyDefinitionMatch:
    """A recognized strategy and its ordered legs."""

    name: str
    legs: Tuple[OptionStrategyLegMatch, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # accept lists for convenience, store a tuple
        object.__setattr__(self, 'legs', tuple(self.legs))

    @classmethod
    def from_positions(cls, name: str, *positions: OptionPosition) -> "OptionStrategyDefinitionMatch":
        """Build a match whose legs are the given positions, in order."""
        return cls(name, tuple(OptionStrategyLegMatch(p) for p in positions))

    def __iter__(self) -> Iterator[OptionStrategyLegMatch]:
        return iter(self.legs)

    def __len__(self) -> int:
        return len(self.legs)


__all__ = [
    'OptionStrategyLegMatch',
    'OptionStrategyDefinitionMatch',
]
