"""
OptionPositionCollection for Option Strategy Matching

This module provides the OptionPositionCollection class: an immutable,
multiply-indexed collection of option positions on a single underlying.
It is the structure a strategy matcher walks when it recognizes multi-leg
option combinations, and the structure it deducts matched legs from.

Key Features:
    - Primary map from Symbol to OptionPosition (quantities never zero)
    - Secondary indices by option right, strike price and expiration date
    - Persistent updates: add/subtract/slice return new collections and
      never modify the receiver
    - Range slicing by strike or expiration using BinaryComparison
    - Invariant validation, run on construction when the environment's
      verify_collections setting is enabled

Index Invariants:
    1. Every held option symbol is present in the right, strike and
       expiration bucket matching its own contract attributes
    2. No stored position has quantity 0
    3. The right index always has both CALL and PUT keys
    4. The strike and expiration indices never hold an empty bucket
    5. At most one position is held in the underlying itself

Usage:
    from optionmatcher.core.position_collection import OptionPositionCollection
    from optionmatcher.core.binary_comparison import GREATER_THAN

    positions = OptionPositionCollection.create(xyz, 100, holdings)

    positions.count                                  # underlying + options
    positions.strikes                                # (Decimal('95'), Decimal('100'))
    calls = positions.slice_by_right(OptionRight.CALL)
    upper = positions.slice_by_strike(GREATER_THAN, Decimal('95'))

    # deduct a recognized strategy
    remaining = positions.accept(match)

References:
    - OCC/OSI option symbology for contract identity
"""

import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from types import MappingProxyType
from typing import (
    Any, Callable, Dict, FrozenSet, Iterable, Iterator, Mapping, Optional, Tuple, Union
)

import pandas as pd

from optionmatcher.config.environment import get_settings
from optionmatcher.core.binary_comparison import BinaryComparison
from optionmatcher.core.option_position import OptionPosition
from optionmatcher.core.sorted_map import ImmutableSortedMap
from optionmatcher.core.strategy_match import OptionStrategyDefinitionMatch
from optionmatcher.core.symbol import OptionRight, SecurityHolding, Symbol

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Columns of the to_frame() view
FRAME_COLUMNS = ['symbol', 'quantity', 'is_underlying', 'right', 'strike', 'expiration']

# Outcomes of merging an incoming position into its slot
_UPDATE = 'update'
_REMOVE = 'remove'
_INSERT = 'insert'
_NOOP = 'noop'


# =============================================================================
# Exceptions
# =============================================================================

class OptionPositionCollectionError(Exception):
    """Base exception for OptionPositionCollection errors."""
    pass


class OptionPositionCollectionValidationError(OptionPositionCollectionError):
    """Exception raised when a collection's index invariants are violated."""

    def __init__(self, message: str, errors: Optional[list] = None):
        self.errors = errors or []
        super().__init__(message)


# =============================================================================
# Helpers
# =============================================================================

SymbolSet = FrozenSet[Symbol]

_NO_SYMBOLS: SymbolSet = frozenset()


def _merge(existing: Optional[OptionPosition], position: OptionPosition) -> Tuple[str, OptionPosition]:
    """
    Decide how an incoming position lands in its slot.

    Held symbols and the underlying are merged by quantity; a merge that
    nets to zero removes the slot. New option symbols are inserted.
    """
    if existing is not None or not position.symbol.has_underlying:
        merged = position.combine(existing) if existing is not None else position
        if merged.exists:
            return _UPDATE, merged
        return (_NOOP if existing is None else _REMOVE), merged

    if not position.exists:
        return _NOOP, position

    return _INSERT, position


def _bucket_add(index: ImmutableSortedMap, key: Any, symbol: Symbol) -> ImmutableSortedMap:
    return index.set_item(key, index.get(key, _NO_SYMBOLS) | {symbol})


def _bucket_remove(index: ImmutableSortedMap, key: Any, symbol: Symbol) -> ImmutableSortedMap:
    bucket = index.get(key, _NO_SYMBOLS) - {symbol}
    return index.set_item(key, bucket) if bucket else index.remove(key)


def _discard(buckets: Dict[Any, SymbolSet], key: Any, symbol: Symbol) -> None:
    bucket = buckets.get(key, _NO_SYMBOLS) - {symbol}
    if bucket:
        buckets[key] = bucket
    else:
        buckets.pop(key, None)


def _group(symbols: Iterable[Symbol], key_of: Callable[[Symbol], Any]) -> Dict[Any, SymbolSet]:
    groups = defaultdict(set)
    for symbol in symbols:
        groups[key_of(symbol)].add(symbol)
    return {key: frozenset(members) for key, members in groups.items()}


def _freeze(mapping: Mapping) -> Mapping:
    if isinstance(mapping, MappingProxyType):
        return mapping
    return MappingProxyType(dict(mapping))


def _as_sorted_map(index: Union[ImmutableSortedMap, Mapping, None]) -> ImmutableSortedMap:
    if index is None:
        return ImmutableSortedMap.EMPTY
    if isinstance(index, ImmutableSortedMap):
        return index
    return ImmutableSortedMap({key: frozenset(value) for key, value in index.items()})


class _PositionSequence:
    """Lazy view of the positions held for a sequence of symbols."""

    __slots__ = ('_positions', '_symbols')

    def __init__(self, positions: Mapping[Symbol, OptionPosition], symbols: Iterable[Symbol]) -> None:
        self._positions = positions
        self._symbols = symbols

    def __iter__(self) -> Iterator[OptionPosition]:
        for symbol in self._symbols:
            position = self._positions.get(symbol)
            if position is not None:
                yield position


# =============================================================================
# OptionPositionCollection
# =============================================================================

class OptionPositionCollection:
    """
    Immutable, indexed collection of positions on one underlying.

    The collection holds at most one position in the underlying (counted in
    lots) plus any number of option positions (counted in contracts). Every
    operation that changes content returns a new collection; previously
    returned collections are never affected.

    Attributes:
        underlying (Symbol): Underlying symbol (Symbol.EMPTY when empty)
        underlying_position (Optional[OptionPosition]): Position in the underlying
        count (int): Number of held symbols, including the underlying
        strikes (Tuple[Decimal, ...]): Distinct strikes, ascending
        expirations (Tuple[date, ...]): Distinct expirations, chronological

    Example:
        >>> positions = OptionPositionCollection.EMPTY
        >>> positions = positions.add(OptionPosition(xyz, 1))
        >>> positions = positions.add(OptionPosition(call_100, 1))
        >>> positions.count, positions.unique_calls
        (2, 1)
        >>> positions.subtract(OptionPosition(call_100, 1)).unique_calls
        0
    """

    __slots__ = (
        '_positions',
        '_rights',
        '_strikes',
        '_expirations',
        '_underlying_position',
    )

    EMPTY: "OptionPositionCollection"

    def __init__(
        self,
        positions: Mapping[Symbol, OptionPosition],
        rights: Mapping[OptionRight, Iterable[Symbol]],
        strikes: Union[ImmutableSortedMap, Mapping[Decimal, Iterable[Symbol]]],
        expirations: Union[ImmutableSortedMap, Mapping[date, Iterable[Symbol]]],
        verify: Optional[bool] = None
    ) -> None:
        """
        Initialize an OptionPositionCollection from prepared indices.

        Args:
            positions: Map of symbol to position
            rights: Index of option symbols by right (missing rights are
                   added with empty buckets)
            strikes: Index of option symbols by strike price
            expirations: Index of option symbols by expiration date
            verify: Run validate() and raise on violations. If None, the
                   current environment's verify_collections setting decides.

        Raises:
            OptionPositionCollectionValidationError: If verification is
                enabled and any index invariant is violated
        """
        self._positions: Mapping[Symbol, OptionPosition] = _freeze(positions)

        # both rights are always indexed, even when empty
        self._rights: Mapping[OptionRight, SymbolSet] = MappingProxyType({
            right: frozenset(rights.get(right, _NO_SYMBOLS)) for right in OptionRight
        })

        self._strikes: ImmutableSortedMap = _as_sorted_map(strikes)
        self._expirations: ImmutableSortedMap = _as_sorted_map(expirations)

        # every held symbol is either the underlying or an option on it, so
        # any symbol leads to the underlying
        self._underlying_position: Optional[OptionPosition] = None
        if self._positions:
            underlying = next(iter(self._positions))
            if underlying.has_underlying:
                underlying = underlying.underlying
            existing = self._positions.get(underlying)
            quantity = existing.quantity if existing is not None else 0
            self._underlying_position = OptionPosition(underlying, quantity)

        if verify is None:
            verify = get_settings().verify_collections

        if verify:
            errors = list(self.validate())
            if errors:
                logger.error(
                    f"OptionPositionCollection validation failed with {len(errors)} error(s)"
                )
                raise OptionPositionCollectionValidationError(
                    "OptionPositionCollection validation failed:\n" + "\n".join(errors),
                    errors=errors
                )

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def create(
        cls,
        underlying: Symbol,
        contract_multiplier: Optional[Union[int, Decimal]],
        holdings: Iterable[SecurityHolding]
    ) -> "OptionPositionCollection":
        """
        Create a collection from brokerage holdings, filtered to one underlying.

        The underlying holding is converted from shares to lots by truncating
        division by the contract multiplier. Option holdings on the
        underlying are added as whole contracts. Holdings in other
        underlyings, or in options on other underlyings, are skipped.

        Args:
            underlying: Symbol of the underlying to collect
            contract_multiplier: Shares per contract. If None, the current
                               environment's default_contract_multiplier.
            holdings: Holdings to index

        Returns:
            New OptionPositionCollection

        Raises:
            OptionPositionCollectionError: If the contract multiplier is not positive

        Example:
            >>> holdings = [
            ...     SecurityHolding(xyz, 100),
            ...     SecurityHolding(call_100, 1),
            ...     SecurityHolding(put_95, -1),
            ... ]
            >>> positions = OptionPositionCollection.create(xyz, 100, holdings)
            >>> positions.count
            3
        """
        if contract_multiplier is None:
            contract_multiplier = get_settings().default_contract_multiplier
        if contract_multiplier <= 0:
            raise OptionPositionCollectionError(
                f"contract_multiplier must be positive, got {contract_multiplier}"
            )
        multiplier = _as_decimal(contract_multiplier)

        positions = cls.EMPTY
        skipped = 0
        for holding in holdings:
            symbol = holding.symbol
            if not symbol.has_underlying:
                if symbol == underlying:
                    lots = int(_as_decimal(holding.quantity) / multiplier)
                    positions = positions.add(OptionPosition(symbol, lots))
                else:
                    skipped += 1
                continue

            if symbol.underlying != underlying:
                skipped += 1
                continue

            positions = positions.add(OptionPosition(symbol, int(_as_decimal(holding.quantity))))

        logger.debug(
            f"Created OptionPositionCollection for {underlying}: "
            f"{positions.count} positions, {skipped} holdings skipped"
        )

        return positions

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def underlying(self) -> Symbol:
        """Get the underlying symbol (Symbol.EMPTY for an empty collection)."""
        if self._underlying_position is None:
            return Symbol.EMPTY
        return self._underlying_position.symbol

    @property
    def underlying_position(self) -> Optional[OptionPosition]:
        """Get the position held in the underlying (None when empty)."""
        return self._underlying_position

    @property
    def underlying_quantity(self) -> int:
        """Get the number of underlying lots held."""
        if self._underlying_position is None:
            return 0
        return self._underlying_position.quantity

    @property
    def has_underlying(self) -> bool:
        """Check if a non-zero underlying position is held."""
        return self.underlying_quantity != 0

    @property
    def count(self) -> int:
        """Get the number of held symbols, including the underlying."""
        return len(self._positions)

    @property
    def is_empty(self) -> bool:
        """Check if the collection holds no positions."""
        return self._underlying_position is None

    @property
    def unique_calls(self) -> int:
        """Get the number of distinct call contracts held (long or short)."""
        return len(self._rights[OptionRight.CALL])

    @property
    def unique_puts(self) -> int:
        """Get the number of distinct put contracts held (long or short)."""
        return len(self._rights[OptionRight.PUT])

    @property
    def unique_expirations(self) -> int:
        """Get the number of distinct expiration dates."""
        return len(self._expirations)

    @property
    def strikes(self) -> Tuple[Decimal, ...]:
        """Get all distinct strikes in ascending order."""
        return self._strikes.keys()

    @property
    def expirations(self) -> Tuple[date, ...]:
        """Get all distinct expirations in chronological order."""
        return self._expirations.keys()

    # =========================================================================
    # Lookup
    # =========================================================================

    def has_position(self, symbol: Symbol) -> bool:
        """Check if a non-zero position is held in symbol."""
        found, position = self.try_get_position(symbol)
        return found and position.exists

    def try_get_position(self, symbol: Symbol) -> Tuple[bool, Optional[OptionPosition]]:
        """
        Look up the position held in symbol.

        Returns:
            (True, position) if held, otherwise (False, None)
        """
        position = self._positions.get(symbol)
        return position is not None, position

    def get_underlying_position(self) -> OptionPosition:
        """
        Get the underlying position, tolerating an empty collection.

        Returns:
            The held underlying position, or a zero quantity position for the
            underlying (Symbol.EMPTY if the collection is empty)
        """
        underlying = self.underlying
        return self._positions.get(underlying, OptionPosition.none(underlying))

    def for_symbols(self, symbols: Iterable[Symbol]) -> Iterable[OptionPosition]:
        """
        Lazily yield the positions held for symbols, in input order.

        Symbols without a position are skipped. The result can be iterated
        again as long as symbols can.
        """
        return _PositionSequence(self._positions, symbols)

    def for_strike(self, strike: Union[Decimal, int, float]) -> Iterable[OptionPosition]:
        """
        Positions at a strike, ordered by symbol (empty if none).

        The bucket is looked up and sorted at call time; positions are
        resolved lazily during iteration.
        """
        return _PositionSequence(self._positions, sorted(self._strikes.get(_as_strike(strike), _NO_SYMBOLS)))

    def for_expiration(self, expiration: Union[date, datetime]) -> Iterable[OptionPosition]:
        """Positions expiring on a date, ordered by symbol (looked up at call time)."""
        return _PositionSequence(self._positions, sorted(self._expirations.get(_as_date(expiration), _NO_SYMBOLS)))

    # =========================================================================
    # Persistent Updates
    # =========================================================================

    def add(self, position: OptionPosition) -> "OptionPositionCollection":
        """
        Return a new collection with position added.

        An existing position in the same symbol (or the underlying) is
        merged by summing quantities. If the merged quantity is zero the
        symbol is removed from the collection and from its strike and
        expiration buckets; empty strike/expiration buckets are dropped
        while both right buckets remain. A new option symbol is inserted
        into its right, strike and expiration buckets.

        Args:
            position: Position to add

        Returns:
            New OptionPositionCollection (self when nothing changes)

        Raises:
            OptionPositionCollectionError: If position has no symbol
        """
        _require_symbol(position)
        symbol = position.symbol
        action, merged = _merge(self._positions.get(symbol), position)

        if action == _NOOP:
            return self

        if action == _UPDATE:
            # already indexed (or the underlying, which is never indexed)
            return OptionPositionCollection(
                MappingProxyType({**self._positions, symbol: merged}),
                self._rights,
                self._strikes,
                self._expirations,
            )

        if action == _REMOVE:
            positions = MappingProxyType(
                {key: value for key, value in self._positions.items() if key != symbol}
            )
            if not symbol.has_underlying:
                return OptionPositionCollection(
                    positions, self._rights, self._strikes, self._expirations
                )

            # right buckets are bounded to two keys and are kept even when empty
            return OptionPositionCollection(
                positions,
                {**self._rights, merged.right: self._rights[merged.right] - {symbol}},
                _bucket_remove(self._strikes, merged.strike, symbol),
                _bucket_remove(self._expirations, merged.expiration, symbol),
            )

        return OptionPositionCollection(
            MappingProxyType({**self._positions, symbol: merged}),
            {**self._rights, merged.right: self._rights[merged.right] | {symbol}},
            _bucket_add(self._strikes, merged.strike, symbol),
            _bucket_add(self._expirations, merged.expiration, symbol),
        )

    def add_range(self, positions: Iterable[OptionPosition]) -> "OptionPositionCollection":
        """
        Return a new collection with every position added in order.

        Produces the same result as calling add() for each position, but
        builds the indices once.

        Args:
            positions: Positions to add

        Returns:
            New OptionPositionCollection
        """
        held = dict(self._positions)
        rights = dict(self._rights)
        strikes = self._strikes.to_dict()
        expirations = self._expirations.to_dict()

        changed = False
        for position in positions:
            _require_symbol(position)
            symbol = position.symbol
            action, merged = _merge(held.get(symbol), position)

            if action == _NOOP:
                continue
            changed = True

            if action == _UPDATE:
                held[symbol] = merged
            elif action == _REMOVE:
                del held[symbol]
                if symbol.has_underlying:
                    rights[merged.right] = rights[merged.right] - {symbol}
                    _discard(strikes, merged.strike, symbol)
                    _discard(expirations, merged.expiration, symbol)
            else:
                held[symbol] = merged
                rights[merged.right] = rights[merged.right] | {symbol}
                strikes[merged.strike] = strikes.get(merged.strike, _NO_SYMBOLS) | {symbol}
                expirations[merged.expiration] = (
                    expirations.get(merged.expiration, _NO_SYMBOLS) | {symbol}
                )

        if not changed:
            return self

        return OptionPositionCollection(
            MappingProxyType(held),
            rights,
            ImmutableSortedMap(strikes),
            ImmutableSortedMap(expirations),
        )

    def subtract(self, position: OptionPosition) -> "OptionPositionCollection":
        """Return a new collection with position deducted."""
        return self.add(position.negate())

    def accept(self, match: OptionStrategyDefinitionMatch) -> "OptionPositionCollection":
        """
        Deduct the legs of a matched strategy.

        Args:
            match: Strategy match whose legs carry the positions to remove

        Returns:
            New OptionPositionCollection without the matched quantities
        """
        positions = self
        for leg in match.legs:
            positions = positions.subtract(leg.position)

        logger.debug(
            f"Accepted {match.name} ({len(match.legs)} legs): "
            f"{self.count} -> {positions.count} positions"
        )

        return positions

    # =========================================================================
    # Slicing
    # =========================================================================

    def slice(
        self,
        criterion: Union[OptionRight, BinaryComparison],
        reference: Optional[Union[Decimal, int, float, date]] = None,
        include_underlying: bool = True
    ) -> "OptionPositionCollection":
        """
        Slice by right, or by comparison against a strike or expiration.

        Dispatches to slice_by_right(), slice_by_strike() or
        slice_by_expiration() based on the argument types.

        Raises:
            TypeError: If the arguments don't select a slice
        """
        if isinstance(criterion, OptionRight):
            if reference is not None:
                raise TypeError("slicing by right takes no reference value")
            return self.slice_by_right(criterion, include_underlying)

        if not isinstance(criterion, BinaryComparison):
            raise TypeError(f"cannot slice by {type(criterion).__name__}")

        if isinstance(reference, date):
            return self.slice_by_expiration(criterion, reference, include_underlying)
        if isinstance(reference, (Decimal, int, float)) and not isinstance(reference, bool):
            return self.slice_by_strike(criterion, reference, include_underlying)

        raise TypeError(f"cannot compare against {type(reference).__name__}")

    def slice_by_right(
        self,
        right: OptionRight,
        include_underlying: bool = True
    ) -> "OptionPositionCollection":
        """
        Return a new collection with only the positions of one right.

        Args:
            right: OptionRight to keep
            include_underlying: Keep the underlying position. Default True.
        """
        symbols = self._rights[right]
        positions = self._retained(symbols, include_underlying)

        return OptionPositionCollection(
            MappingProxyType(positions),
            {right: symbols},
            ImmutableSortedMap(_group(symbols, lambda s: s.strike)),
            ImmutableSortedMap(_group(symbols, lambda s: s.expiration)),
        )

    def slice_by_strike(
        self,
        comparison: BinaryComparison,
        strike: Union[Decimal, int, float],
        include_underlying: bool = True
    ) -> "OptionPositionCollection":
        """
        Return a new collection with only the positions whose strike
        satisfies `position.strike <comparison> strike`.

        Args:
            comparison: Relational test, e.g. GREATER_THAN
            strike: Reference strike
            include_underlying: Keep the underlying position. Default True.

        Example:
            >>> # strikes 90, 95, 100, 105
            >>> positions.slice_by_strike(GREATER_THAN, 95).strikes
            (Decimal('100'), Decimal('105'))
        """
        strikes = comparison.filter(self._strikes, _as_strike(strike))
        if strikes.is_empty:
            return self._empty_slice(include_underlying)

        symbols = frozenset().union(*strikes.values())
        positions = self._retained(symbols, include_underlying)

        return OptionPositionCollection(
            MappingProxyType(positions),
            _group(symbols, lambda s: s.right),
            strikes,
            ImmutableSortedMap(_group(symbols, lambda s: s.expiration)),
        )

    def slice_by_expiration(
        self,
        comparison: BinaryComparison,
        expiration: Union[date, datetime],
        include_underlying: bool = True
    ) -> "OptionPositionCollection":
        """
        Return a new collection with only the positions whose expiration
        satisfies `position.expiration <comparison> expiration`.

        Args:
            comparison: Relational test, e.g. LESS_THAN_OR_EQUAL
            expiration: Reference date
            include_underlying: Keep the underlying position. Default True.
        """
        expirations = comparison.filter(self._expirations, _as_date(expiration))
        if expirations.is_empty:
            return self._empty_slice(include_underlying)

        symbols = frozenset().union(*expirations.values())
        positions = self._retained(symbols, include_underlying)

        return OptionPositionCollection(
            MappingProxyType(positions),
            _group(symbols, lambda s: s.right),
            ImmutableSortedMap(_group(symbols, lambda s: s.strike)),
            expirations,
        )

    def _retained(self, symbols: SymbolSet, include_underlying: bool) -> Dict[Symbol, OptionPosition]:
        positions: Dict[Symbol, OptionPosition] = {}
        if include_underlying and self.has_underlying:
            positions[self.underlying] = self._underlying_position
        for symbol, position in self._positions.items():
            if symbol in symbols:
                positions[symbol] = position
        return positions

    def _empty_slice(self, include_underlying: bool) -> "OptionPositionCollection":
        if include_underlying and self.has_underlying:
            return OptionPositionCollection.EMPTY.add(self._underlying_position)
        return OptionPositionCollection.EMPTY

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self) -> Iterator[str]:
        """
        Lazily yield a description of every index invariant violation.

        No output means the collection is consistent. This is run by the
        constructor when verify_collections is enabled and is otherwise
        meant for tests.
        """
        underlying = self.underlying

        for symbol, position in self._positions.items():
            if position.quantity == 0:
                yield f"{position}: Quantity == 0"

            if not symbol.has_underlying:
                if symbol != underlying:
                    yield f"{position}: Second underlying position (underlying is {underlying})"
                continue

            if symbol.underlying != underlying:
                yield f"{position}: Option on {symbol.underlying}, not on {underlying}"

            if symbol not in self._strikes.get(position.strike, _NO_SYMBOLS):
                yield f"{position}: Not indexed by strike price"

            if symbol not in self._expirations.get(position.expiration, _NO_SYMBOLS):
                yield f"{position}: Not indexed by expiration date"

            if symbol not in self._rights[position.right]:
                yield f"{position}: Not indexed by option right"

        for name, buckets in (('strike price', self._strikes), ('expiration date', self._expirations)):
            for key, bucket in buckets.items():
                if not bucket:
                    yield f"Empty {name} bucket: {key}"
                for symbol in bucket:
                    if symbol not in self._positions:
                        yield f"{symbol}: Indexed by {name} {key} but not held"

        for right, bucket in self._rights.items():
            for symbol in bucket:
                if symbol not in self._positions:
                    yield f"{symbol}: Indexed by option right {right.value} but not held"

    # =========================================================================
    # Conversion
    # =========================================================================

    def to_frame(self) -> pd.DataFrame:
        """
        Get a DataFrame with one row per held position.

        Returns:
            DataFrame with columns symbol, quantity, is_underlying, right,
            strike and expiration, in collection order
        """
        records = [
            {
                'symbol': position.symbol.value,
                'quantity': position.quantity,
                'is_underlying': position.is_underlying,
                'right': position.right.value if position.right is not None else None,
                'strike': position.strike,
                'expiration': position.expiration,
            }
            for position in self
        ]

        if not records:
            return pd.DataFrame(columns=FRAME_COLUMNS)

        return pd.DataFrame(records, columns=FRAME_COLUMNS)

    # =========================================================================
    # Operators and Special Methods
    # =========================================================================

    def __add__(self, position: OptionPosition) -> "OptionPositionCollection":
        if not isinstance(position, OptionPosition):
            return NotImplemented
        return self.add(position)

    def __sub__(self, position: OptionPosition) -> "OptionPositionCollection":
        if not isinstance(position, OptionPosition):
            return NotImplemented
        return self.subtract(position)

    def __iter__(self) -> Iterator[OptionPosition]:
        """Iterate over held positions in collection order."""
        return iter(self._positions.values())

    def __len__(self) -> int:
        """Return number of held symbols."""
        return len(self._positions)

    def __contains__(self, symbol: object) -> bool:
        """Check if a position is held in symbol."""
        return isinstance(symbol, Symbol) and self.has_position(symbol)

    def __eq__(self, other: object) -> bool:
        """Check equality of held positions and index membership."""
        if not isinstance(other, OptionPositionCollection):
            return NotImplemented
        return (
            dict(self._positions) == dict(other._positions) and
            dict(self._rights) == dict(other._rights) and
            self._strikes == other._strikes and
            self._expirations == other._expirations
        )

    __hash__ = None

    def __repr__(self) -> str:
        """Return detailed string representation."""
        return (
            f"OptionPositionCollection("
            f"underlying={self.underlying.value!r}, "
            f"count={self.count}, "
            f"calls={self.unique_calls}, "
            f"puts={self.unique_puts}, "
            f"strikes={len(self._strikes)}, "
            f"expirations={len(self._expirations)}"
            f")"
        )

    def __str__(self) -> str:
        """Return human-readable string."""
        if self.is_empty:
            return "OptionPositionCollection: empty"
        return f"OptionPositionCollection: [{', '.join(str(p) for p in self)}]"


OptionPositionCollection.EMPTY = OptionPositionCollection(
    MappingProxyType({}),
    {},
    ImmutableSortedMap.EMPTY,
    ImmutableSortedMap.EMPTY,
    verify=False,
)


def _require_symbol(position: OptionPosition) -> None:
    if position.symbol is None:
        raise OptionPositionCollectionError(
            f"Cannot add a position without a symbol: {position}"
        )


def _as_strike(strike: Union[Decimal, int, float]) -> Union[Decimal, int]:
    # floats go through str() so 97.5 matches Decimal('97.5') exactly
    return Decimal(str(strike)) if isinstance(strike, float) else strike


def _as_decimal(value: Union[Decimal, int, float]) -> Decimal:
    # exact for ints of any size, and floats keep their shortest repr
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    # Main class
    'OptionPositionCollection',

    # Exceptions
    'OptionPositionCollectionError',
    'OptionPositionCollectionValidationError',

    # Constants
    'FRAME_COLUMNS',
]
