"""
Environment Management for Option Position Indexing

Selects the runtime environment (development, staging, production, test)
and resolves the settings the collection layer reads:

    verify_collections           run validate() in every collection constructor
    default_contract_multiplier  shares per contract when create() gets None
    log_level / log_file         used by configure_logging()

Resolution Order:
    1. Per-environment defaults (DEFAULT_SETTINGS)
    2. The first YAML file found on CONFIG_PATHS: <env>.yaml, <env>.yml,
       config.yaml or config.yml. A file may hold the settings directly or
       nest them under the environment name.
    3. EnvironmentManager.override() at runtime

Config files are shared territory (config.yaml in particular), so a
document that is not a mapping is skipped with a warning. A recognised key
with an unusable value raises EnvironmentConfigError instead of being
guessed at.

Usage:
    from optionmatcher.config import Environment, set_environment, get_settings

    set_environment(Environment.PRODUCTION)
    get_settings().verify_collections     # False

Example config/production.yaml:
    verify_collections: true
    default_contract_multiplier: 10
    log_level: INFO
"""

import os
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

import yaml

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class EnvironmentConfigError(ValueError):
    """Exception raised when a setting has an unusable value."""
    pass


# =============================================================================
# Environments and Settings
# =============================================================================

class Environment(str, Enum):
    """Available environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


@dataclass(frozen=True)
class EnvironmentSettings:
    """Resolved settings for one environment."""

    name: Environment
    verify_collections: bool = True
    default_contract_multiplier: int = 100
    log_level: str = "INFO"
    log_file: Optional[str] = None


# Values that differ from the EnvironmentSettings defaults
DEFAULT_SETTINGS: Dict[Environment, Dict[str, Any]] = {
    Environment.DEVELOPMENT: {"log_level": "DEBUG", "verify_collections": True},
    Environment.STAGING: {"log_level": "INFO", "verify_collections": False},
    Environment.PRODUCTION: {"log_level": "WARNING", "verify_collections": False},
    Environment.TEST: {"log_level": "DEBUG", "verify_collections": True},
}


# =============================================================================
# Value Parsing
# =============================================================================

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0"}


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise EnvironmentConfigError(f"{key} must be true or false, got {value!r}")


def _parse_multiplier(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise EnvironmentConfigError(f"{key} must be a positive integer, got {value!r}")
    try:
        multiplier = int(value)
    except ValueError:
        raise EnvironmentConfigError(f"{key} must be a positive integer, got {value!r}")
    if multiplier <= 0:
        raise EnvironmentConfigError(f"{key} must be a positive integer, got {value!r}")
    return multiplier


def _parse_log_level(key: str, value: Any) -> str:
    level = str(value).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise EnvironmentConfigError(f"{key} must be a logging level name, got {value!r}")
    return level


def _parse_log_file(key: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, (str, os.PathLike)):
        raise EnvironmentConfigError(f"{key} must be a path, got {value!r}")
    return str(value)


_PARSERS: Dict[str, Callable[[str, Any], Any]] = {
    "verify_collections": _parse_bool,
    "default_contract_multiplier": _parse_multiplier,
    "log_level": _parse_log_level,
    "log_file": _parse_log_file,
}


def _parse_settings(values: Dict[str, Any], source: str) -> Dict[str, Any]:
    """Parse the recognised keys of values; unknown keys are logged and dropped."""
    parsed = {}
    for key, value in values.items():
        parser = _PARSERS.get(key)
        if parser is None:
            logger.warning(f"Ignoring unknown setting '{key}' in {source}")
            continue
        parsed[key] = parser(key, value)
    return parsed


# =============================================================================
# Environment Manager
# =============================================================================

class EnvironmentManager:
    """Resolves and caches the settings of the current environment."""

    ENV_VAR = "OPTIONMATCHER_ENV"

    CONFIG_PATHS: List[Path] = [
        Path.cwd() / "config",
        Path.cwd() / ".config",
        Path.home() / ".optionmatcher",
        Path("/etc/optionmatcher"),
    ]

    _current_env: Optional[Environment] = None
    _settings: Optional[EnvironmentSettings] = None

    @classmethod
    def get_environment(cls) -> Environment:
        """
        Get the current environment.

        set_environment() wins over the OPTIONMATCHER_ENV variable; an unset
        or unknown variable means DEVELOPMENT.
        """
        if cls._current_env is not None:
            return cls._current_env

        name = os.environ.get(cls.ENV_VAR, Environment.DEVELOPMENT.value).strip().lower()
        try:
            return Environment(name)
        except ValueError:
            logger.warning(f"Unknown {cls.ENV_VAR} '{name}', using development")
            return Environment.DEVELOPMENT

    @classmethod
    def set_environment(cls, env: Environment) -> None:
        """Select env and drop the cached settings."""
        cls._current_env = Environment(env)
        cls._settings = None
        logger.info(f"Environment set to: {cls._current_env.value}")

    @classmethod
    def get_settings(cls) -> EnvironmentSettings:
        """
        Get the settings of the current environment.

        Resolved once per environment and cached until set_environment(),
        override() or reset().

        Raises:
            EnvironmentConfigError: If a config file holds an unusable value
        """
        if cls._settings is None:
            env = cls.get_environment()
            values = dict(DEFAULT_SETTINGS.get(env, {}))
            found = cls._find_config(env)
            if found is not None:
                path, overrides = found
                values.update(_parse_settings(overrides, str(path)))
            cls._settings = EnvironmentSettings(name=env, **values)
        return cls._settings

    @classmethod
    def override(cls, **values: Any) -> EnvironmentSettings:
        """
        Replace individual settings of the current environment.

        Values are parsed like config file values. The override lasts until
        the environment changes or reset() is called.

        Raises:
            ValueError: If a name is not a setting, or its value is unusable
        """
        settable = {f.name for f in fields(EnvironmentSettings)} - {"name"}
        unknown = set(values) - settable
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

        cls._settings = replace(cls.get_settings(), **_parse_settings(values, "override()"))
        return cls._settings

    @classmethod
    def reset(cls) -> None:
        """Forget the selected environment and cached settings."""
        cls._current_env = None
        cls._settings = None

    @classmethod
    def _find_config(cls, env: Environment) -> Optional[Tuple[Path, Dict[str, Any]]]:
        """Return (path, settings mapping) from the first usable config file."""
        names = (f"{env.value}.yaml", f"{env.value}.yml", "config.yaml", "config.yml")

        for directory in cls.CONFIG_PATHS:
            for name in names:
                path = Path(directory) / name
                if not path.is_file():
                    continue

                document = _read_yaml(path)
                if document is None:
                    continue

                # settings may be nested under the environment name
                if env.value in document:
                    document = document[env.value]
                    if not isinstance(document, dict):
                        logger.warning(
                            f"Ignoring {path}: '{env.value}' section is not a mapping"
                        )
                        continue

                logger.debug(f"Loaded {env.value} settings from {path}")
                return path, document

        return None


def _read_yaml(path: Path) -> Optional[Dict[str, Any]]:
    """Load a YAML mapping, or None (with a warning) if that isn't possible."""
    try:
        with open(path) as f:
            document = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to load {path}: {e}")
        return None

    if document is None:
        return {}
    if not isinstance(document, dict):
        logger.warning(
            f"Ignoring {path}: expected a mapping, got {type(document).__name__}"
        )
        return None
    return document


# =============================================================================
# Module Functions
# =============================================================================

def get_environment() -> Environment:
    """Get current environment."""
    return EnvironmentManager.get_environment()


def get_settings() -> EnvironmentSettings:
    """Get current environment settings."""
    return EnvironmentManager.get_settings()


def set_environment(env: Environment) -> None:
    """Set current environment."""
    EnvironmentManager.set_environment(env)


# Names given to the handlers configure_logging() installs
CONSOLE_HANDLER_NAME = "optionmatcher.console"
FILE_HANDLER_NAME = "optionmatcher.file"


def configure_logging() -> None:
    """
    Configure the root logger from the current settings.

    Safe to call repeatedly: handlers installed by a previous call are
    replaced, not duplicated. A console handler is only added when the
    root logger has no other handlers.
    """
    settings = get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        if handler.get_name() in (CONSOLE_HANDLER_NAME, FILE_HANDLER_NAME):
            root_logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    handlers: List[logging.Handler] = []
    if not root_logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.set_name(CONSOLE_HANDLER_NAME)
        handlers.append(console_handler)

    if settings.log_file:
        file_handler = logging.FileHandler(settings.log_file)
        file_handler.set_name(FILE_HANDLER_NAME)
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logger.info(f"Logging configured for {settings.name.value} environment")


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
