"""
Unit Tests for OptionPositionCollection

This module contains tests for the immutable, indexed option position
collection, ensuring the primary map and the right/strike/expiration
indices stay consistent through every operation.

Test Categories:
    1. Construction Tests
        - Empty collection
        - Right index normalization
        - Verification on construction

    2. Create From Holdings Tests
        - Underlying lot conversion
        - Filtering other underlyings

    3. Add / Subtract Tests
        - New symbols, merges, zero removal
        - Additive identity
        - Immutability of prior instances

    4. AddRange Tests
        - Equivalence with sequential add

    5. Query Tests
        - Lookup, lazy position sequences

    6. Slicing Tests
        - By right, strike and expiration
        - Boundary semantics

    7. Accept Tests
        - Deducting matched strategy legs

    8. Invariant Preservation Tests
        - Random operation sequences
"""

import itertools
import random
from datetime import date, datetime
from decimal import Decimal

import pandas as pd
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from optionmatcher.config.environment import Environment, EnvironmentManager, set_environment
from optionmatcher.core.binary_comparison import (
    EQUAL,
    NOT_EQUAL,
    LESS_THAN,
    LESS_THAN_OR_EQUAL,
    GREATER_THAN,
    GREATER_THAN_OR_EQUAL,
)
from optionmatcher.core.option_position import OptionPosition
from optionmatcher.core.position_collection import (
    FRAME_COLUMNS,
    OptionPositionCollection,
    OptionPositionCollectionError,
    OptionPositionCollectionValidationError,
)
from optionmatcher.core.sorted_map import ImmutableSortedMap
from optionmatcher.core.strategy_match import OptionStrategyDefinitionMatch
from optionmatcher.core.symbol import OptionRight, SecurityHolding, Symbol


XYZ = Symbol.create_equity('XYZ')
ABC = Symbol.create_equity('ABC')

JUN = date(2024, 6, 21)
JUL = date(2024, 7, 19)
SEP = date(2024, 9, 20)

EMPTY = OptionPositionCollection.EMPTY


def option(strike, right=OptionRight.CALL, expiration=JUN, underlying=XYZ):
    """Create an option symbol on XYZ by default."""
    return Symbol.create_option(underlying, strike, expiration, right)


def quantities(collection):
    """Map of symbol to quantity for comparisons."""
    return {position.symbol: position.quantity for position in collection}


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def verified_environment():
    """Run with verification enabled and restore state afterwards."""
    EnvironmentManager.reset()
    set_environment(Environment.TEST)
    yield
    EnvironmentManager.reset()


@pytest.fixture
def call_100():
    return option(100, OptionRight.CALL)


@pytest.fixture
def put_95():
    return option(95, OptionRight.PUT)


@pytest.fixture
def scenario(call_100, put_95):
    """XYZ: 100 shares, long 1 call 100, short 1 put 95, all June expiry."""
    holdings = [
        SecurityHolding(XYZ, 100),
        SecurityHolding(call_100, 1),
        SecurityHolding(put_95, -1),
    ]
    return OptionPositionCollection.create(XYZ, 100, holdings)


@pytest.fixture
def strike_ladder():
    """Underlying plus puts at 90/95 and calls at 100/105."""
    return OptionPositionCollection.EMPTY.add_range([
        OptionPosition(XYZ, 2),
        OptionPosition(option(90, OptionRight.PUT), 1),
        OptionPosition(option(95, OptionRight.PUT), -1),
        OptionPosition(option(100, OptionRight.CALL), -1),
        OptionPosition(option(105, OptionRight.CALL), 1),
    ])


@pytest.fixture
def expiration_ladder():
    """Underlying plus calls expiring in June, July and September."""
    return OptionPositionCollection.EMPTY.add_range([
        OptionPosition(XYZ, 1),
        OptionPosition(option(100, expiration=JUN), -1),
        OptionPosition(option(100, expiration=JUL), 1),
        OptionPosition(option(110, OptionRight.PUT, expiration=JUL), 2),
        OptionPosition(option(100, expiration=SEP), 1),
    ])


# =============================================================================
# Construction Tests
# =============================================================================

class TestConstruction:
    """Tests for construction and the EMPTY instance."""

    def test_empty_collection(self):
        assert EMPTY.count == 0
        assert len(EMPTY) == 0
        assert EMPTY.is_empty
        assert not EMPTY.has_underlying
        assert EMPTY.underlying == Symbol.EMPTY
        assert EMPTY.underlying_position is None
        assert EMPTY.underlying_quantity == 0
        assert EMPTY.unique_calls == 0
        assert EMPTY.unique_puts == 0
        assert EMPTY.unique_expirations == 0
        assert EMPTY.strikes == ()
        assert EMPTY.expirations == ()
        assert list(EMPTY) == []
        assert list(EMPTY.validate()) == []

    def test_missing_rights_are_normalized(self, call_100):
        collection = OptionPositionCollection(
            {call_100: OptionPosition(call_100, 1)},
            {OptionRight.CALL: {call_100}},
            {Decimal('100'): {call_100}},
            {JUN: {call_100}},
        )

        assert collection.unique_calls == 1
        assert collection.unique_puts == 0
        assert list(collection.validate()) == []

    def test_underlying_derived_from_option(self, call_100):
        collection = EMPTY.add(OptionPosition(call_100, 1))

        assert collection.underlying == XYZ
        assert collection.underlying_position == OptionPosition(XYZ, 0)
        assert not collection.has_underlying
        assert not collection.is_empty

    def test_verification_failure_raises(self, call_100):
        with pytest.raises(OptionPositionCollectionValidationError) as exc_info:
            OptionPositionCollection(
                {call_100: OptionPosition(call_100, 1)},
                {OptionRight.CALL: {call_100}},
                {},
                {JUN: {call_100}},
                verify=True,
            )

        assert any("Not indexed by strike price" in e for e in exc_info.value.errors)
        assert "validation failed" in str(exc_info.value)

    def test_verification_can_be_disabled(self, call_100):
        collection = OptionPositionCollection(
            {call_100: OptionPosition(call_100, 0)},
            {},
            {},
            {},
            verify=False,
        )

        errors = list(collection.validate())
        assert f"0 {call_100.value}: Quantity == 0" in errors
        assert any("Not indexed by expiration date" in e for e in errors)
        assert any("Not indexed by option right" in e for e in errors)

    def test_production_skips_verification(self, call_100):
        set_environment(Environment.PRODUCTION)

        collection = OptionPositionCollection(
            {call_100: OptionPosition(call_100, 1)}, {}, {}, {}
        )

        assert collection.count == 1
        assert len(list(collection.validate())) > 0

    def test_validate_reports_stale_and_empty_buckets(self, call_100, put_95):
        collection = OptionPositionCollection(
            {},
            {OptionRight.PUT: {put_95}},
            ImmutableSortedMap({Decimal('100'): frozenset({call_100}), Decimal('95'): frozenset()}),
            {},
            verify=False,
        )

        errors = list(collection.validate())
        assert any("Indexed by strike price 100 but not held" in e for e in errors)
        assert any("Empty strike price bucket: 95" in e for e in errors)
        assert any("Indexed by option right put but not held" in e for e in errors)

    def test_validate_reports_second_underlying(self):
        collection = OptionPositionCollection(
            {XYZ: OptionPosition(XYZ, 1), ABC: OptionPosition(ABC, 1)},
            {}, {}, {},
            verify=False,
        )

        errors = list(collection.validate())
        assert len(errors) == 1
        assert "Second underlying position" in errors[0]


# =============================================================================
# Create From Holdings Tests
# =============================================================================

class TestCreate:
    """Tests for OptionPositionCollection.create()."""

    def test_end_to_end_scenario(self, scenario, call_100, put_95):
        assert scenario.count == 3
        assert scenario.unique_calls == 1
        assert scenario.unique_puts == 1
        assert scenario.unique_expirations == 1
        assert scenario.strikes == (Decimal('95'), Decimal('100'))
        assert scenario.expirations == (JUN,)
        assert scenario.underlying == XYZ
        assert scenario.underlying_quantity == 1
        assert scenario.has_underlying
        assert quantities(scenario) == {XYZ: 1, call_100: 1, put_95: -1}

    def test_underlying_lots_truncate(self):
        collection = OptionPositionCollection.create(XYZ, 100, [SecurityHolding(XYZ, 250)])
        assert collection.underlying_quantity == 2

        short = OptionPositionCollection.create(XYZ, 100, [SecurityHolding(XYZ, -150)])
        assert short.underlying_quantity == -1

    def test_decimal_holding_quantities(self, call_100):
        collection = OptionPositionCollection.create(XYZ, Decimal('100'), [
            SecurityHolding(XYZ, Decimal('300')),
            SecurityHolding(call_100, Decimal('2')),
        ])

        assert collection.underlying_quantity == 3
        assert quantities(collection)[call_100] == 2

    def test_float_holding_with_decimal_multiplier(self, call_100):
        collection = OptionPositionCollection.create(XYZ, Decimal('100'), [
            SecurityHolding(XYZ, 300.0),
            SecurityHolding(call_100, -2.0),
        ])

        assert collection.underlying_quantity == 3
        assert quantities(collection)[call_100] == -2

    def test_large_share_count_is_exact(self):
        shares = 10 ** 18 + 100
        collection = OptionPositionCollection.create(XYZ, 100, [SecurityHolding(XYZ, shares)])

        assert collection.underlying_quantity == 10 ** 16 + 1

    def test_negative_float_lots_truncate_toward_zero(self):
        collection = OptionPositionCollection.create(XYZ, Decimal('100'), [SecurityHolding(XYZ, -250.0)])
        assert collection.underlying_quantity == -2

    def test_less_than_one_lot_is_not_held(self):
        collection = OptionPositionCollection.create(XYZ, 100, [SecurityHolding(XYZ, 50)])

        assert collection.count == 0
        assert collection.is_empty

    def test_other_underlyings_are_skipped(self, call_100):
        abc_call = option(100, underlying=ABC)
        collection = OptionPositionCollection.create(XYZ, 100, [
            SecurityHolding(ABC, 500),
            SecurityHolding(abc_call, 3),
            SecurityHolding(call_100, 1),
        ])

        assert collection.count == 1
        assert collection.has_position(call_100)
        assert not collection.has_position(abc_call)
        assert not collection.has_position(ABC)

    def test_default_multiplier_from_settings(self):
        collection = OptionPositionCollection.create(XYZ, None, [SecurityHolding(XYZ, 300)])
        assert collection.underlying_quantity == 3

    def test_invalid_multiplier(self):
        with pytest.raises(OptionPositionCollectionError):
            OptionPositionCollection.create(XYZ, 0, [SecurityHolding(XYZ, 100)])

    def test_duplicate_holdings_merge(self, call_100):
        collection = OptionPositionCollection.create(XYZ, 100, [
            SecurityHolding(call_100, 2),
            SecurityHolding(call_100, -2),
        ])

        assert collection.count == 0
        assert collection.strikes == ()


# =============================================================================
# Add / Subtract Tests
# =============================================================================

class TestAdd:
    """Tests for add(), subtract() and the + / - operators."""

    def test_add_new_option_indexes_it(self, scenario):
        call_105 = option(105, OptionRight.CALL, expiration=JUL)
        result = scenario.add(OptionPosition(call_105, 2))

        assert result.count == scenario.count + 1
        assert result.unique_calls == 2
        assert result.unique_puts == 1
        assert result.strikes == (Decimal('95'), Decimal('100'), Decimal('105'))
        assert result.expirations == (JUN, JUL)
        assert list(result.for_strike(105)) == [OptionPosition(call_105, 2)]
        assert list(result.for_expiration(JUL)) == [OptionPosition(call_105, 2)]
        assert list(result.validate()) == []

    def test_add_merges_existing(self, scenario, call_100):
        result = scenario.add(OptionPosition(call_100, 2))

        assert result.count == scenario.count
        found, position = result.try_get_position(call_100)
        assert found
        assert position.quantity == 3

    def test_merge_to_zero_removes_symbol(self, scenario, call_100, put_95):
        result = scenario.add(OptionPosition(call_100, -1))

        assert result.count == 2
        assert not result.has_position(call_100)
        assert result.unique_calls == 0
        assert result.unique_puts == 1
        assert result.strikes == (Decimal('95'),)
        assert result.expirations == (JUN,)
        assert list(result.for_expiration(JUN)) == [OptionPosition(put_95, -1)]
        assert list(result.validate()) == []

    def test_zero_removal_keeps_shared_buckets(self, call_100):
        put_100 = option(100, OptionRight.PUT)
        collection = EMPTY.add(OptionPosition(call_100, 1)).add(OptionPosition(put_100, 1))

        result = collection.subtract(OptionPosition(put_100, 1))

        assert result.strikes == (Decimal('100'),)
        assert list(result.for_strike(100)) == [OptionPosition(call_100, 1)]
        assert result.unique_puts == 0

    def test_underlying_merges_and_removes(self):
        collection = EMPTY.add(OptionPosition(XYZ, 1)).add(OptionPosition(XYZ, 2))
        assert collection.underlying_quantity == 3
        assert collection.count == 1

        removed = collection.subtract(OptionPosition(XYZ, 3))
        assert removed.count == 0
        assert removed.is_empty
        assert list(removed.validate()) == []

    def test_underlying_is_not_indexed(self):
        collection = EMPTY.add(OptionPosition(XYZ, 1))

        assert collection.strikes == ()
        assert collection.expirations == ()
        assert collection.unique_calls == 0
        assert collection.unique_puts == 0

    def test_adding_nothing_returns_same_instance(self, scenario, call_100):
        new_put = option(80, OptionRight.PUT)

        assert scenario.add(OptionPosition(new_put, 0)) is scenario
        assert EMPTY.add(OptionPosition(XYZ, 0)) is EMPTY

    def test_position_without_symbol_raises(self, scenario):
        with pytest.raises(OptionPositionCollectionError):
            scenario.add(OptionPosition())

    def test_operators(self, scenario, call_100):
        added = scenario + OptionPosition(call_100, 1)
        subtracted = scenario - OptionPosition(call_100, 1)

        assert quantities(added)[call_100] == 2
        assert not subtracted.has_position(call_100)
        assert subtracted == scenario.subtract(OptionPosition(call_100, 1))

    def test_additive_identity(self, scenario):
        position = OptionPosition(option(120, OptionRight.PUT, expiration=SEP), -3)

        result = scenario.add(position).add(position.negate())

        assert result == scenario
        assert quantities(result) == quantities(scenario)
        assert result.strikes == scenario.strikes
        assert result.expirations == scenario.expirations

    def test_prior_instances_are_unchanged(self, scenario, call_100, put_95):
        before = quantities(scenario)
        strikes = scenario.strikes

        scenario.add(OptionPosition(option(110), 1))
        scenario.subtract(OptionPosition(call_100, 1))
        scenario.add_range([OptionPosition(put_95, 1), OptionPosition(XYZ, -1)])
        scenario.slice_by_right(OptionRight.PUT)

        assert quantities(scenario) == before
        assert scenario.strikes == strikes
        assert scenario.unique_calls == 1
        assert scenario.unique_puts == 1
        assert list(scenario.validate()) == []

    def test_empty_singleton_is_unchanged(self, call_100):
        EMPTY.add(OptionPosition(call_100, 1))

        assert OptionPositionCollection.EMPTY.count == 0
        assert OptionPositionCollection.EMPTY.unique_calls == 0

    def test_end_to_end_remove_call_leg(self, scenario, call_100, put_95):
        result = scenario.add(OptionPosition(call_100, 1).negate())

        assert result.count == 2
        assert result.unique_calls == 0
        assert result.unique_puts == 1
        assert result.unique_expirations == 1
        assert list(result.for_expiration(JUN)) == [OptionPosition(put_95, -1)]


# =============================================================================
# AddRange Tests
# =============================================================================

class TestAddRange:
    """Tests for add_range() equivalence with sequential add()."""

    def test_permutations_match_sequential_add(self):
        positions = [
            OptionPosition(XYZ, 1),
            OptionPosition(option(95, OptionRight.PUT), -1),
            OptionPosition(option(100, OptionRight.CALL), 1),
            OptionPosition(option(100, OptionRight.PUT, expiration=JUL), 2),
        ]

        for ordering in itertools.permutations(positions):
            batched = EMPTY.add_range(ordering)

            sequential = EMPTY
            for position in ordering:
                sequential = sequential.add(position)

            assert batched.count == sequential.count
            assert batched.strikes == sequential.strikes
            assert batched.expirations == sequential.expirations
            assert quantities(batched) == quantities(sequential)
            assert batched == sequential
            assert list(batched.validate()) == []

    def test_merges_and_zero_removal(self, scenario, call_100, put_95):
        positions = [
            OptionPosition(call_100, 2),
            OptionPosition(put_95, 1),
            OptionPosition(call_100, -3),
            OptionPosition(option(90, OptionRight.PUT), 1),
        ]

        batched = scenario.add_range(positions)

        sequential = scenario
        for position in positions:
            sequential = sequential.add(position)

        assert batched == sequential
        assert batched.count == 2
        assert batched.strikes == (Decimal('90'),)
        assert batched.unique_calls == 0
        assert list(batched.validate()) == []

    def test_empty_range_returns_same_instance(self, scenario):
        assert scenario.add_range([]) is scenario

    def test_accepts_generators(self, call_100):
        result = EMPTY.add_range(OptionPosition(call_100, q) for q in (1, 1, 1))
        assert quantities(result) == {call_100: 3}


# =============================================================================
# Query Tests
# =============================================================================

class TestQueries:
    """Tests for lookups and lazy position sequences."""

    def test_has_position(self, scenario, call_100):
        assert scenario.has_position(call_100)
        assert scenario.has_position(XYZ)
        assert not scenario.has_position(option(200))
        assert call_100 in scenario
        assert option(200) not in scenario
        assert "XYZ" not in scenario

    def test_try_get_position(self, scenario, put_95):
        found, position = scenario.try_get_position(put_95)
        assert found
        assert position == OptionPosition(put_95, -1)

        found, position = scenario.try_get_position(option(200))
        assert not found
        assert position is None

    def test_get_underlying_position(self, scenario, call_100):
        assert scenario.get_underlying_position() == OptionPosition(XYZ, 1)
        assert EMPTY.get_underlying_position() == OptionPosition(Symbol.EMPTY, 0)

        options_only = EMPTY.add(OptionPosition(call_100, 1))
        assert options_only.get_underlying_position() == OptionPosition(XYZ, 0)

    def test_for_symbols_skips_missing_and_keeps_order(self, scenario, call_100, put_95):
        symbols = [put_95, option(200), call_100, XYZ]
        result = scenario.for_symbols(symbols)

        expected = [
            OptionPosition(put_95, -1),
            OptionPosition(call_100, 1),
            OptionPosition(XYZ, 1),
        ]
        assert list(result) == expected
        # restartable
        assert list(result) == expected

    def test_for_strike_and_expiration(self, strike_ladder):
        assert [p.strike for p in strike_ladder.for_strike(Decimal('95'))] == [Decimal('95')]
        assert list(strike_ladder.for_strike(97)) == []
        assert len(list(strike_ladder.for_expiration(JUN))) == 4
        assert len(list(strike_ladder.for_expiration(datetime(2024, 6, 21, 16, 0)))) == 4
        assert list(strike_ladder.for_expiration(SEP)) == []

    def test_iteration_yields_primary_map(self, scenario, call_100, put_95):
        assert set(scenario) == {
            OptionPosition(XYZ, 1),
            OptionPosition(call_100, 1),
            OptionPosition(put_95, -1),
        }
        assert len(scenario) == 3

    def test_to_frame(self, scenario):
        frame = scenario.to_frame()

        assert isinstance(frame, pd.DataFrame)
        assert list(frame.columns) == FRAME_COLUMNS
        assert len(frame) == 3
        assert frame['quantity'].sum() == 1
        assert frame['is_underlying'].sum() == 1

    def test_to_frame_empty(self):
        frame = EMPTY.to_frame()
        assert list(frame.columns) == FRAME_COLUMNS
        assert len(frame) == 0

    def test_string_representations(self, scenario):
        assert "count=3" in repr(scenario)
        assert "underlying='XYZ'" in repr(scenario)
        assert "1 XYZ" in str(scenario)
        assert str(EMPTY) == "OptionPositionCollection: empty"


# =============================================================================
# Slicing Tests
# =============================================================================

class TestSliceByRight:
    """Tests for slice_by_right()."""

    def test_slice_calls(self, scenario, call_100):
        calls = scenario.slice_by_right(OptionRight.CALL)

        assert calls.count == 2
        assert quantities(calls) == {XYZ: 1, call_100: 1}
        assert calls.unique_calls == 1
        assert calls.unique_puts == 0
        assert calls.strikes == (Decimal('100'),)
        assert list(calls.validate()) == []

    def test_slice_without_underlying(self, scenario, put_95):
        puts = scenario.slice_by_right(OptionRight.PUT, include_underlying=False)

        assert quantities(puts) == {put_95: -1}
        assert not puts.has_underlying
        assert puts.underlying == XYZ

    def test_slice_then_inverse_is_empty(self, scenario):
        for right in OptionRight:
            result = scenario.slice_by_right(right).slice_by_right(
                right.invert(), include_underlying=False
            )
            assert result.is_empty
            assert result == EMPTY

    def test_only_matching_rights(self, strike_ladder):
        puts = strike_ladder.slice_by_right(OptionRight.PUT)

        for position in puts:
            assert position.is_underlying or position.right is OptionRight.PUT
        assert puts.strikes == (Decimal('90'), Decimal('95'))

    def test_dispatch(self, scenario):
        assert scenario.slice(OptionRight.CALL) == scenario.slice_by_right(OptionRight.CALL)
        assert scenario.slice(OptionRight.PUT, include_underlying=False).count == 1

        with pytest.raises(TypeError):
            scenario.slice(OptionRight.CALL, 100)


class TestSliceByStrike:
    """Tests for slice_by_strike() boundary semantics."""

    @pytest.mark.parametrize("comparison,strike,expected", [
        (GREATER_THAN, 95, ('100', '105')),
        (GREATER_THAN_OR_EQUAL, 95, ('95', '100', '105')),
        (LESS_THAN, 95, ('90',)),
        (LESS_THAN_OR_EQUAL, 95, ('90', '95')),
        (EQUAL, 100, ('100',)),
        (NOT_EQUAL, 100, ('90', '95', '105')),
        (GREATER_THAN, 97.5, ('100', '105')),
        (LESS_THAN, Decimal('1000'), ('90', '95', '100', '105')),
    ])
    def test_strike_boundaries(self, strike_ladder, comparison, strike, expected):
        result = strike_ladder.slice_by_strike(comparison, strike)

        assert result.strikes == tuple(Decimal(s) for s in expected)
        assert result.underlying_quantity == 2
        assert result.count == len(expected) + 1
        assert list(result.validate()) == []

    def test_rebuilds_other_indices(self, strike_ladder):
        result = strike_ladder.slice_by_strike(GREATER_THAN, 95)

        assert result.unique_calls == 2
        assert result.unique_puts == 0
        assert result.expirations == (JUN,)

    def test_pivot_above_maximum(self, strike_ladder):
        with_underlying = strike_ladder.slice_by_strike(GREATER_THAN, 200)
        assert quantities(with_underlying) == {XYZ: 2}
        assert with_underlying.strikes == ()

        without = strike_ladder.slice_by_strike(GREATER_THAN, 200, include_underlying=False)
        assert without is OptionPositionCollection.EMPTY

    def test_pivot_below_minimum(self, strike_ladder):
        result = strike_ladder.slice_by_strike(LESS_THAN_OR_EQUAL, 50)
        assert quantities(result) == {XYZ: 2}

    def test_empty_slice_without_underlying_held(self, call_100):
        collection = EMPTY.add(OptionPosition(call_100, 1))
        assert collection.slice_by_strike(LESS_THAN, 100) is OptionPositionCollection.EMPTY

    def test_excludes_underlying(self, strike_ladder):
        result = strike_ladder.slice_by_strike(GREATER_THAN_OR_EQUAL, 100, include_underlying=False)

        assert result.count == 2
        assert not result.has_underlying

    def test_dispatch(self, strike_ladder):
        assert strike_ladder.slice(GREATER_THAN, 95) == strike_ladder.slice_by_strike(GREATER_THAN, 95)
        assert strike_ladder.slice(EQUAL, Decimal('90'), include_underlying=False).count == 1


class TestSliceByExpiration:
    """Tests for slice_by_expiration()."""

    def test_less_than_or_equal(self, expiration_ladder):
        result = expiration_ladder.slice_by_expiration(LESS_THAN_OR_EQUAL, JUL)

        assert result.expirations == (JUN, JUL)
        assert result.count == 4
        assert result.strikes == (Decimal('100'), Decimal('110'))
        assert result.unique_calls == 2
        assert result.unique_puts == 1
        assert list(result.validate()) == []

    def test_greater_than(self, expiration_ladder):
        result = expiration_ladder.slice_by_expiration(GREATER_THAN, JUL, include_underlying=False)

        assert result.expirations == (SEP,)
        assert result.count == 1
        assert result.strikes == (Decimal('100'),)

    def test_equal_with_datetime(self, expiration_ladder):
        result = expiration_ladder.slice_by_expiration(EQUAL, datetime(2024, 7, 19, 16, 0))

        assert result.expirations == (JUL,)
        assert result.count == 3

    def test_outside_range(self, expiration_ladder):
        result = expiration_ladder.slice_by_expiration(LESS_THAN, date(2024, 1, 1))
        assert quantities(result) == {XYZ: 1}

        none = expiration_ladder.slice_by_expiration(
            GREATER_THAN, date(2030, 1, 1), include_underlying=False
        )
        assert none is OptionPositionCollection.EMPTY

    def test_dispatch(self, expiration_ladder):
        assert expiration_ladder.slice(NOT_EQUAL, JUL) == \
            expiration_ladder.slice_by_expiration(NOT_EQUAL, JUL)

        with pytest.raises(TypeError):
            expiration_ladder.slice(EQUAL, "2024-07-19")
        with pytest.raises(TypeError):
            expiration_ladder.slice("call")


# =============================================================================
# Accept Tests
# =============================================================================

class TestAccept:
    """Tests for deducting matched strategy legs."""

    def test_accept_removes_matched_legs(self, scenario, call_100, put_95):
        match = OptionStrategyDefinitionMatch.from_positions(
            "Risk Reversal",
            OptionPosition(call_100, 1),
            OptionPosition(put_95, -1),
        )

        result = scenario.accept(match)

        assert quantities(result) == {XYZ: 1}
        assert result.strikes == ()
        assert result.expirations == ()
        assert result.underlying_quantity == scenario.underlying_quantity
        assert list(result.validate()) == []

    def test_leg_order_does_not_matter(self, strike_ladder):
        legs = [
            OptionPosition(option(90, OptionRight.PUT), 1),
            OptionPosition(option(95, OptionRight.PUT), -1),
            OptionPosition(option(100, OptionRight.CALL), -1),
            OptionPosition(option(105, OptionRight.CALL), 1),
        ]

        forward = strike_ladder.accept(OptionStrategyDefinitionMatch.from_positions("Iron Condor", *legs))
        backward = strike_ladder.accept(
            OptionStrategyDefinitionMatch.from_positions("Iron Condor", *reversed(legs))
        )

        assert forward == backward
        assert quantities(forward) == {XYZ: 2}

    def test_leg_targeting_underlying(self, scenario, call_100):
        match = OptionStrategyDefinitionMatch.from_positions(
            "Covered Call",
            OptionPosition(XYZ, 1),
            OptionPosition(call_100, -1).negate(),
        )

        result = scenario.accept(match)

        assert not result.has_underlying
        assert not result.has_position(call_100)
        assert result.count == 1

    def test_partial_deduction(self, call_100):
        collection = EMPTY.add(OptionPosition(call_100, 5))
        match = OptionStrategyDefinitionMatch.from_positions("Long Call", OptionPosition(call_100, 2))

        result = collection.accept(match)

        assert quantities(result) == {call_100: 3}
        assert quantities(collection) == {call_100: 5}

    def test_empty_match(self, scenario):
        assert scenario.accept(OptionStrategyDefinitionMatch("Nothing")) is scenario


# =============================================================================
# Invariant Preservation Tests
# =============================================================================

class TestInvariantPreservation:
    """Random operation sequences never violate the index invariants."""

    SYMBOLS = [XYZ] + [
        option(strike, right, expiration)
        for strike in (90, 95, 100, 105)
        for right in OptionRight
        for expiration in (JUN, JUL)
    ]

    COMPARISONS = [EQUAL, NOT_EQUAL, LESS_THAN, LESS_THAN_OR_EQUAL, GREATER_THAN, GREATER_THAN_OR_EQUAL]

    def _random_position(self, rng):
        return OptionPosition(rng.choice(self.SYMBOLS), rng.randint(-2, 2))

    @pytest.mark.parametrize("seed", range(5))
    def test_random_sequences(self, seed):
        rng = random.Random(seed)
        collection = OptionPositionCollection.EMPTY
        history = []

        for _ in range(200):
            history.append((collection, quantities(collection)))
            operation = rng.randrange(6)

            if operation == 0:
                collection = collection.add(self._random_position(rng))
            elif operation == 1:
                collection = collection.subtract(self._random_position(rng))
            elif operation == 2:
                collection = collection.add_range(
                    [self._random_position(rng) for _ in range(rng.randint(0, 4))]
                )
            elif operation == 3:
                collection = collection.slice_by_right(rng.choice(list(OptionRight)), rng.random() < 0.5)
            elif operation == 4:
                collection = collection.slice_by_strike(
                    rng.choice(self.COMPARISONS), rng.choice((85, 95, 100, 110)), rng.random() < 0.5
                )
            else:
                collection = collection.slice_by_expiration(
                    rng.choice(self.COMPARISONS), rng.choice((JUN, JUL, SEP)), rng.random() < 0.5
                )

            assert list(collection.validate()) == []
            assert all(position.exists for position in collection)
            assert collection.unique_calls + collection.unique_puts == \
                sum(1 for position in collection if not position.is_underlying)

        # no later operation changed an earlier snapshot
        for snapshot, expected in history:
            assert quantities(snapshot) == expected
