"""
Configuration Package for Option Position Indexing

Selects the runtime environment and exposes its settings.

Usage:
    from optionmatcher.config import Environment, set_environment, configure_logging

    set_environment(Environment.PRODUCTION)   # skips collection verification
    configure_logging()
"""

from optionmatcher.config.environment import (
    Environment,
    EnvironmentSettings,
    EnvironmentManager,
    EnvironmentConfigError,
    DEFAULT_SETTINGS,
    get_environment,
    get_settings,
    set_environment,
    configure_logging,
)

__all__ = [
    "Environment",
    "EnvironmentSettings",
    "EnvironmentManager",
    "EnvironmentConfigError",
    "DEFAULT_SETTINGS",
    "get_environment",
    "get_settings",
    "set_environment",
    "configure_logging",
]
