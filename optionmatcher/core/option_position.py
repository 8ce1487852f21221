"""
OptionPosition Value Type

This module provides OptionPosition, the value stored in an
OptionPositionCollection: a symbol and a signed integer quantity. Positions
are immutable; arithmetic always produces a new position.

Quantity Conventions:
    - Option positions are counted in contracts (positive = long, negative = short)
    - The underlying position is counted in lots (shares / contract multiplier)
    - A quantity of zero means the position does not exist

Usage:
    from optionmatcher.core.option_position import OptionPosition

    long_call = OptionPosition(call_symbol, 2)
    long_call + OptionPosition(call_symbol, -1)   # OptionPosition(call, 1)
    long_call.negate()                            # OptionPosition(call, -2)
    long_call * 3                                 # OptionPosition(call, 6)
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from optionmatcher.core.symbol import OptionRight, Symbol


# =============================================================================
# Exceptions
# =============================================================================

class OptionPositionError(Exception):
    """Exception raised for invalid position arithmetic."""
    pass


# =============================================================================
# OptionPosition
# =============================================================================

@dataclass(frozen=True)
class OptionPosition:
    """
    A signed quantity held in a single symbol.

    A position with symbol None is the "none" position: the neutral element
    used when a slot has no entry. Combining with it returns the other
    operand unchanged.

    Attributes:
        symbol (Optional[Symbol]): The position's symbol
        quantity (int): Signed number of contracts (or lots for the underlying)
    """

    symbol: Optional[Symbol] = None
    quantity: int = 0

    @classmethod
    def none(cls, symbol: Symbol) -> "OptionPosition":
        """Create a zero quantity position for the given symbol."""
        return cls(symbol, 0)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def exists(self) -> bool:
        """True if the quantity is non-zero."""
        return self.quantity != 0

    @property
    def is_underlying(self) -> bool:
        """True if this position is held in the underlying itself."""
        return self.symbol is not None and not self.symbol.has_underlying

    @property
    def strike(self) -> Optional[Decimal]:
        """Strike price of the option (None for the underlying)."""
        return self.symbol.strike if self.symbol is not None else None

    @property
    def expiration(self) -> Optional[date]:
        """Expiration date of the option (None for the underlying)."""
        return self.symbol.expiration if self.symbol is not None else None

    @property
    def right(self) -> Optional[OptionRight]:
        """Call or put (None for the underlying)."""
        return self.symbol.right if self.symbol is not None else None

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def negate(self) -> "OptionPosition":
        """Return a position with the same symbol and the opposite quantity."""
        return OptionPosition(self.symbol, -self.quantity)

    def combine(self, other: "OptionPosition") -> "OptionPosition":
        """
        Sum two positions held in the same symbol.

        Raises:
            OptionPositionError: If both positions have symbols and they differ
        """
        if other.symbol is None:
            return self
        if self.symbol is None:
            return other
        if self.symbol != other.symbol:
            raise OptionPositionError(
                f"Cannot combine positions in different symbols: "
                f"{self.symbol} and {other.symbol}"
            )
        return OptionPosition(self.symbol, self.quantity + other.quantity)

    def subtract(self, other: "OptionPosition") -> "OptionPosition":
        """Combine with the negation of another position."""
        return self.combine(other.negate())

    def __add__(self, other: "OptionPosition") -> "OptionPosition":
        if not isinstance(other, OptionPosition):
            return NotImplemented
        return self.combine(other)

    def __sub__(self, other: "OptionPosition") -> "OptionPosition":
        if not isinstance(other, OptionPosition):
            return NotImplemented
        return self.subtract(other)

    def __neg__(self) -> "OptionPosition":
        return self.negate()

    def __mul__(self, factor: int) -> "OptionPosition":
        if not isinstance(factor, int):
            return NotImplemented
        return OptionPosition(self.symbol, self.quantity * factor)

    def __rmul__(self, factor: int) -> "OptionPosition":
        return self.__mul__(factor)

    # =========================================================================
    # Special Methods
    # =========================================================================

    def __str__(self) -> str:
        value = self.symbol.value if self.symbol is not None else "<none>"
        return f"{self.quantity} {value}"


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    'OptionPosition',
    'OptionPositionError',
]
