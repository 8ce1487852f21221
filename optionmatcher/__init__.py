"""
Option Position Matcher Package

Immutable, indexed option position collections for recognizing and
deducting multi-leg option strategies.

Modules:
    core: Symbols, positions, comparisons and the position collection
    config: Environment selection, settings and logging configuration
"""

__version__ = "1.0.0"
__author__ = "Options Backtester Team"

from optionmatcher.config import (
    Environment,
    get_environment,
    set_environment,
    configure_logging,
)

from optionmatcher.core import (
    OptionRight,
    Symbol,
    SecurityHolding,
    OptionPosition,
    BinaryComparison,
    OptionStrategyDefinitionMatch,
    OptionPositionCollection,
)

__all__ = [
    "__version__",
    "__author__",
    "Environment",
    "get_environment",
    "set_environment",
    "configure_logging",
    "OptionRight",
    "Symbol",
    "SecurityHolding",
    "OptionPosition",
    "BinaryComparison",
    "OptionStrategyDefinitionMatch",
    "OptionPositionCollection",
]
