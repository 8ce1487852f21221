"""
Binary Comparisons for Range Filtering

This module provides BinaryComparison, the relational test used to slice an
option position collection by strike price or expiration date. A comparison
can evaluate two operands directly, or filter an ImmutableSortedMap down to
the entries whose keys satisfy `key <op> reference`.

Supported Operators:
    ==  EQUAL
    !=  NOT_EQUAL
    <   LESS_THAN
    <=  LESS_THAN_OR_EQUAL
    >   GREATER_THAN
    >=  GREATER_THAN_OR_EQUAL

Usage:
    from optionmatcher.core.binary_comparison import BinaryComparison, GREATER_THAN

    GREATER_THAN.evaluate(100, 95)                 # True
    GREATER_THAN.filter(strikes, Decimal('95'))    # strikes above 95
    GREATER_THAN.invert()                          # LESS_THAN_OR_EQUAL
    GREATER_THAN.flip_operands()                   # LESS_THAN
    BinaryComparison.parse('<=')                   # LESS_THAN_OR_EQUAL

Filtering Semantics:
    Filtering is total. A reference below the smallest key or above the
    largest key yields either an empty map or the whole map, never an error.
"""

import operator
from enum import Enum
from typing import Any, Callable, Dict

from optionmatcher.core.sorted_map import ImmutableSortedMap


# =============================================================================
# Operators
# =============================================================================

class ComparisonOperator(str, Enum):
    """Relational operators, valued by their source token."""

    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="


_EVALUATORS: Dict[ComparisonOperator, Callable[[Any, Any], bool]] = {
    ComparisonOperator.EQUAL: operator.eq,
    ComparisonOperator.NOT_EQUAL: operator.ne,
    ComparisonOperator.LESS_THAN: operator.lt,
    ComparisonOperator.LESS_THAN_OR_EQUAL: operator.le,
    ComparisonOperator.GREATER_THAN: operator.gt,
    ComparisonOperator.GREATER_THAN_OR_EQUAL: operator.ge,
}

# not (a op b)
_INVERSES: Dict[ComparisonOperator, ComparisonOperator] = {
    ComparisonOperator.EQUAL: ComparisonOperator.NOT_EQUAL,
    ComparisonOperator.NOT_EQUAL: ComparisonOperator.EQUAL,
    ComparisonOperator.LESS_THAN: ComparisonOperator.GREATER_THAN_OR_EQUAL,
    ComparisonOperator.LESS_THAN_OR_EQUAL: ComparisonOperator.GREATER_THAN,
    ComparisonOperator.GREATER_THAN: ComparisonOperator.LESS_THAN_OR_EQUAL,
    ComparisonOperator.GREATER_THAN_OR_EQUAL: ComparisonOperator.LESS_THAN,
}

# (a op b) == (b flipped a)
_FLIPPED: Dict[ComparisonOperator, ComparisonOperator] = {
    ComparisonOperator.EQUAL: ComparisonOperator.EQUAL,
    ComparisonOperator.NOT_EQUAL: ComparisonOperator.NOT_EQUAL,
    ComparisonOperator.LESS_THAN: ComparisonOperator.GREATER_THAN,
    ComparisonOperator.LESS_THAN_OR_EQUAL: ComparisonOperator.GREATER_THAN_OR_EQUAL,
    ComparisonOperator.GREATER_THAN: ComparisonOperator.LESS_THAN,
    ComparisonOperator.GREATER_THAN_OR_EQUAL: ComparisonOperator.LESS_THAN_OR_EQUAL,
}


# =============================================================================
# BinaryComparison
# =============================================================================

class BinaryComparison:
    """
    A relational test between a key and a reference value.

    Instances are immutable and compare equal when they wrap the same
    operator. Use the module constants (EQUAL, LESS_THAN, ...) rather than
    constructing new instances.
    """

    __slots__ = ('_operator',)

    def __init__(self, comparison_operator: ComparisonOperator) -> None:
        self._operator = ComparisonOperator(comparison_operator)

    @property
    def operator(self) -> ComparisonOperator:
        """Get the wrapped operator."""
        return self._operator

    @classmethod
    def parse(cls, token: str) -> "BinaryComparison":
        """
        Parse an operator token such as '<=' or '=='.

        Raises:
            ValueError: If the token is not a supported operator
        """
        try:
            return _BY_OPERATOR[ComparisonOperator(token.strip())]
        except ValueError:
            raise ValueError(f"Unsupported comparison operator: {token!r}")

    def evaluate(self, left: Any, right: Any) -> bool:
        """Evaluate `left <op> right`."""
        return _EVALUATORS[self._operator](left, right)

    def invert(self) -> "BinaryComparison":
        """Return the logical negation of this comparison."""
        return _BY_OPERATOR[_INVERSES[self._operator]]

    def flip_operands(self) -> "BinaryComparison":
        """Return the comparison that yields the same result with operands swapped."""
        return _BY_OPERATOR[_FLIPPED[self._operator]]

    def filter(self, sorted_map: ImmutableSortedMap, reference: Any) -> ImmutableSortedMap:
        """
        Return the entries of sorted_map whose key satisfies `key <op> reference`.

        Args:
            sorted_map: Map with ordered keys (strikes, expirations)
            reference: Pivot key to compare against

        Returns:
            Sub-map of sorted_map (possibly empty, possibly sorted_map itself)
        """
        op = self._operator
        if op is ComparisonOperator.EQUAL:
            return sorted_map.key_slice(
                sorted_map.index_left(reference), sorted_map.index_right(reference)
            )
        if op is ComparisonOperator.NOT_EQUAL:
            return sorted_map.remove(reference)
        if op is ComparisonOperator.LESS_THAN:
            return sorted_map.key_slice(None, sorted_map.index_left(reference))
        if op is ComparisonOperator.LESS_THAN_OR_EQUAL:
            return sorted_map.key_slice(None, sorted_map.index_right(reference))
        if op is ComparisonOperator.GREATER_THAN:
            return sorted_map.key_slice(sorted_map.index_right(reference), None)
        return sorted_map.key_slice(sorted_map.index_left(reference), None)

    # =========================================================================
    # Special Methods
    # =========================================================================

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BinaryComparison):
            return NotImplemented
        return self._operator is other._operator

    def __hash__(self) -> int:
        return hash(self._operator)

    def __repr__(self) -> str:
        return f"BinaryComparison({self._operator.name})"

    def __str__(self) -> str:
        return self._operator.value


_BY_OPERATOR: Dict[ComparisonOperator, BinaryComparison] = {
    op: BinaryComparison(op) for op in ComparisonOperator
}

EQUAL = _BY_OPERATOR[ComparisonOperator.EQUAL]
NOT_EQUAL = _BY_OPERATOR[ComparisonOperator.NOT_EQUAL]
LESS_THAN = _BY_OPERATOR[ComparisonOperator.LESS_THAN]
LESS_THAN_OR_EQUAL = _BY_OPERATOR[ComparisonOperator.LESS_THAN_OR_EQUAL]
GREATER_THAN = _BY_OPERATOR[ComparisonOperator.GREATER_THAN]
GREATER_THAN_OR_EQUAL = _BY_OPERATOR[ComparisonOperator.GREATER_THAN_OR_EQUAL]


__all__ = [
    'BinaryComparison',
    'ComparisonOperator',
    'EQUAL',
    'NOT_EQUAL',
    'LESS_THAN',
    'LESS_THAN_OR_EQUAL',
    'GREATER_THAN',
    'GREATER_THAN_OR_EQUAL',
]
