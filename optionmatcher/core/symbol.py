"""
Instrument Identity Types for Option Position Indexing

This module provides the identity types consumed by the position collection:
the option right, the tradable symbol, and the brokerage holding. They are
small frozen value objects so they can be used freely as dictionary keys and
shared between immutable collections.

Key Classes:
    - OptionRight: CALL or PUT, with invert() to map one to the other
    - SecurityType: Equity, future or option
    - Symbol: Instrument identity (underlying reference, strike, expiration, right)
    - SecurityHolding: A symbol together with a signed quantity

Usage:
    from datetime import date
    from decimal import Decimal
    from optionmatcher.core.symbol import OptionRight, Symbol, SecurityHolding

    xyz = Symbol.create_equity('XYZ')
    call = Symbol.create_option(xyz, Decimal('100'), date(2024, 6, 21), OptionRight.CALL)

    call.has_underlying   # True
    call.underlying       # Symbol('XYZ')
    xyz.has_underlying    # False

    holding = SecurityHolding(call, 1)

Symbol Conventions:
    Option values follow the OSI layout: the root padded to six characters,
    the expiration as YYMMDD, the right as C/P and the strike times 1000
    padded to eight digits, e.g. 'XYZ   240621C00100000'.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import total_ordering
from typing import Optional, Union


# =============================================================================
# Constants
# =============================================================================

# OSI root symbol width and strike scaling
OSI_ROOT_WIDTH = 6
OSI_STRIKE_SCALE = 1000


# =============================================================================
# Exceptions
# =============================================================================

class SymbolError(Exception):
    """Exception raised when a symbol cannot be constructed."""
    pass


# =============================================================================
# Enums
# =============================================================================

class OptionRight(str, Enum):
    """Option right: the holder's right to buy (call) or sell (put)."""

    CALL = "call"
    PUT = "put"

    def invert(self) -> "OptionRight":
        """Return the opposite right (call <-> put)."""
        return OptionRight.PUT if self is OptionRight.CALL else OptionRight.CALL

    def __invert__(self) -> "OptionRight":
        return self.invert()

    @property
    def code(self) -> str:
        """Single letter code used in OSI symbols."""
        return 'C' if self is OptionRight.CALL else 'P'


class SecurityType(str, Enum):
    """Supported security types."""

    BASE = "base"
    EQUITY = "equity"
    FUTURE = "future"
    OPTION = "option"


# =============================================================================
# Symbol
# =============================================================================

@total_ordering
@dataclass(frozen=True, eq=False)
class Symbol:
    """
    Identity of a tradable instrument.

    Underlying instruments (equities, futures) carry only a ticker value.
    Derivatives additionally reference their underlying symbol and carry the
    contract's strike, expiration and right.

    Equality, hashing and ordering all use value alone, so two symbols with
    the same value are the same key whatever their other fields say.

    Attributes:
        value (str): Ticker or OSI option symbol
        security_type (SecurityType): Kind of instrument
        underlying (Optional[Symbol]): Underlying symbol for derivatives
        strike (Optional[Decimal]): Strike price for options
        expiration (Optional[date]): Expiration date for options
        right (Optional[OptionRight]): Call or put for options

    Example:
        >>> xyz = Symbol.create_equity('XYZ')
        >>> put = Symbol.create_option(xyz, 95, date(2024, 6, 21), OptionRight.PUT)
        >>> str(put)
        'XYZ   240621P00095000'
    """

    value: str
    security_type: SecurityType = SecurityType.BASE
    underlying: Optional["Symbol"] = None
    strike: Optional[Decimal] = None
    expiration: Optional[date] = None
    right: Optional[OptionRight] = None

    @property
    def has_underlying(self) -> bool:
        """True if this symbol is a derivative of another symbol."""
        return self.underlying is not None

    @property
    def root(self) -> "Symbol":
        """Resolve the root underlying of this symbol (itself for underlyings)."""
        symbol = self
        while symbol.underlying is not None:
            symbol = symbol.underlying
        return symbol

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def create_equity(cls, ticker: str) -> "Symbol":
        """Create an equity symbol."""
        return cls(_normalize_ticker(ticker), SecurityType.EQUITY)

    @classmethod
    def create_future(cls, ticker: str) -> "Symbol":
        """Create a future symbol."""
        return cls(_normalize_ticker(ticker), SecurityType.FUTURE)

    @classmethod
    def create_option(
        cls,
        underlying: "Symbol",
        strike: Union[Decimal, int, float, str],
        expiration: Union[date, datetime],
        right: OptionRight
    ) -> "Symbol":
        """
        Create an option contract symbol on the given underlying.

        Args:
            underlying: Underlying symbol (must not itself be empty)
            strike: Strike price, converted to Decimal
            expiration: Expiration date (datetimes are truncated to the date)
            right: OptionRight.CALL or OptionRight.PUT

        Returns:
            Option Symbol with an OSI-style value

        Raises:
            SymbolError: If any contract attribute is invalid
        """
        if underlying is None or not underlying.value:
            raise SymbolError("option underlying must be a non-empty symbol")
        if not isinstance(right, OptionRight):
            raise SymbolError(f"right must be an OptionRight, got {right!r}")
        if expiration is None:
            raise SymbolError("expiration cannot be None")
        if isinstance(expiration, datetime):
            expiration = expiration.date()

        try:
            # floats go through str() so 97.5 stays 97.5 instead of its binary expansion
            strike = strike if isinstance(strike, Decimal) else Decimal(str(strike))
        except InvalidOperation:
            raise SymbolError(f"strike must be numeric, got {strike!r}")
        if not strike.is_finite() or strike <= 0:
            raise SymbolError(f"strike must be positive and finite, got {strike}")

        value = (
            f"{underlying.value:<{OSI_ROOT_WIDTH}}"
            f"{expiration:%y%m%d}"
            f"{right.code}"
            f"{int(strike * OSI_STRIKE_SCALE):08d}"
        )

        return cls(
            value=value,
            security_type=SecurityType.OPTION,
            underlying=underlying,
            strike=strike,
            expiration=expiration,
            right=right,
        )

    # =========================================================================
    # Special Methods
    # =========================================================================

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Symbol):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Symbol):
            return NotImplemented
        return self.value < other.value

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"Symbol({self.value!r})"


Symbol.EMPTY = Symbol("")


def _normalize_ticker(ticker: str) -> str:
    if not ticker or not isinstance(ticker, str):
        raise SymbolError("ticker must be a non-empty string")
    return ticker.upper().strip()


# =============================================================================
# SecurityHolding
# =============================================================================

@dataclass(frozen=True)
class SecurityHolding:
    """
    A brokerage holding: a symbol and a signed quantity.

    Quantities are in the security's natural units, so equity holdings are
    in shares and option holdings are in contracts.
    """

    symbol: Symbol
    quantity: Union[Decimal, int, float] = 0


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    'OptionRight',
    'SecurityType',
    'Symbol',
    'SecurityHolding',
    'SymbolError',
]
