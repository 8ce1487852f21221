"""
Test Suite for Option Position Matcher

Test modules:
    - test_symbol: Symbol, OptionRight and OptionPosition value types
    - test_binary_comparison: BinaryComparison filters and ImmutableSortedMap
    - test_position_collection: OptionPositionCollection indexing, slicing and deduction
    - test_environment: Environment selection, settings and logging configuration

Run all tests:
    pytest tests/ -v

Run with coverage:
    pytest tests/ --cov=optionmatcher --cov-report=term-missing
"""
