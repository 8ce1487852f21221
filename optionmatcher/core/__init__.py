"""
Core Module for Option Position Indexing

This module provides the building blocks a strategy matcher works with:
instrument identities, the position value type, range comparisons, and the
immutable, indexed position collection.

Components:
    - symbol: OptionRight, Symbol and SecurityHolding
    - option_position: OptionPosition value type
    - sorted_map: ImmutableSortedMap persistent ordered map
    - binary_comparison: BinaryComparison relational filters
    - strategy_match: Matched strategy legs consumed by accept()
    - position_collection: OptionPositionCollection

Usage:
    from datetime import date
    from optionmatcher.core import (
        OptionPositionCollection,
        OptionRight,
        SecurityHolding,
        Symbol,
        GREATER_THAN,
    )

    xyz = Symbol.create_equity('XYZ')
    call = Symbol.create_option(xyz, 100, date(2024, 6, 21), OptionRight.CALL)
    put = Symbol.create_option(xyz, 95, date(2024, 6, 21), OptionRight.PUT)

    positions = OptionPositionCollection.create(xyz, 100, [
        SecurityHolding(xyz, 100),
        SecurityHolding(call, 1),
        SecurityHolding(put, -1),
    ])

    positions.strikes                                   # (Decimal('95'), Decimal('100'))
    positions.slice_by_right(OptionRight.CALL).count    # 2
    positions.slice_by_strike(GREATER_THAN, 95).count   # 2
"""

from optionmatcher.core.symbol import (
    OptionRight,
    SecurityType,
    Symbol,
    SecurityHolding,
    SymbolError,
)

from optionmatcher.core.option_position import (
    OptionPosition,
    OptionPositionError,
)

from optionmatcher.core.sorted_map import ImmutableSortedMap

from optionmatcher.core.binary_comparison import (
    BinaryComparison,
    ComparisonOperator,
    EQUAL,
    NOT_EQUAL,
    LESS_THAN,
    LESS_THAN_OR_EQUAL,
    GREATER_THAN,
    GREATER_THAN_OR_EQUAL,
)

from optionmatcher.core.strategy_match import (
    OptionStrategyLegMatch,
    OptionStrategyDefinitionMatch,
)

from optionmatcher.core.position_collection import (
    OptionPositionCollection,
    OptionPositionCollectionError,
    OptionPositionCollectionValidationError,
    FRAME_COLUMNS,
)

__all__ = [
    # =========================================================================
    # Identity Types
    # =========================================================================
    "OptionRight",
    "SecurityType",
    "Symbol",
    "SecurityHolding",
    "SymbolError",
    # =========================================================================
    # Positions
    # =========================================================================
    "OptionPosition",
    "OptionPositionError",
    # =========================================================================
    # Comparisons and Ordered Maps
    # =========================================================================
    "ImmutableSortedMap",
    "BinaryComparison",
    "ComparisonOperator",
    "EQUAL",
    "NOT_EQUAL",
    "LESS_THAN",
    "LESS_THAN_OR_EQUAL",
    "GREATER_THAN",
    "GREATER_THAN_OR_EQUAL",
    # =========================================================================
    # Strategy Matches
    # =========================================================================
    "OptionStrategyLegMatch",
    "OptionStrategyDefinitionMatch",
    # =========================================================================
    # Collection
    # =========================================================================
    "OptionPositionCollection",
    "OptionPositionCollectionError",
    "OptionPositionCollectionValidationError",
    "FRAME_COLUMNS",
]
