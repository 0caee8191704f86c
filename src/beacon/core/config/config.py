"""
Static configuration for Beacon.

Purpose
-------
Centralized configuration loaded from environment variables (with `.env`
support) with defaults, type validation and bounds checking. Values are read
once at bootstrap; the event bus copies the relevant ones into its own
mutable `BusConfiguration`, so runtime toggles never write back here.

Responsibilities
----------------
- Load configuration from environment variables with .env support
- Provide typed access to logging and event bus settings
- Validate settings on bootstrap and fail loudly in production
- Track which values came from the environment versus defaults

Architecture Notes
------------------
- Class-level attributes + class methods (no instantiation)
- Loaded on module import via `Config.load()`; `Config.validate()` is called
  by the event system bootstrap
- Invalid values fall back to defaults with a warning, except in production
  where `validate()` raises `ConfigurationError`

Environment Variables
---------------------
- ENVIRONMENT: development | testing | staging | production (default: development)
- DEBUG: Debug mode flag (default: False)
- LOG_LEVEL: Logging level (default: INFO)
- LOG_JSON: Force JSON console logs (default: production only)
- LOG_COLORS: Colored console logs in a TTY (default: True)
- LOG_TO_FILE: Also write a rotating JSON log file (default: False)
- LOGS_DIR: Directory for log files (default: ./logs)
- EVENT_BUS_MAX_LISTENERS: Soft per-pattern listener cap (default: 50)
- EVENT_BUS_MAX_HISTORY: Emission history capacity (default: 100)
- EVENT_BUS_LOGGING: Verbose bus logging (default: development only)
- EVENT_BUS_LISTENER_TIMEOUT_SECONDS: Per-listener timeout for suspending
  delivery, 0 disables (default: 0)
"""

import logging
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from beacon.core.exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

# Bootstrap logger; the structured logging stack reads its settings from this
# module, so it cannot be used here.
_bootstrap_log = logging.getLogger(__name__)


class Environment(Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse environment string safely with fallback.

        Example
        -------
        >>> Environment.from_string("Production") is Environment.PRODUCTION
        True
        >>> Environment.from_string("invalid") is Environment.DEVELOPMENT
        True
        """
        try:
            return cls(value.lower())
        except ValueError:
            _bootstrap_log.warning(
                f"Unknown environment '{value}', defaulting to development"
            )
            return cls.DEVELOPMENT


class _ConfigLoadMetrics:
    """Tracks which configuration values came from the environment."""

    def __init__(self) -> None:
        self.env_vars_loaded: Dict[str, bool] = {}
        self.validation_errors: Dict[str, str] = {}
        self.defaults_used: Dict[str, Any] = {}
        self.last_reload: Optional[str] = None

    def record_env_load(self, key: str, from_env: bool, default: Any) -> None:
        self.env_vars_loaded[key] = from_env
        if not from_env:
            self.defaults_used[key] = default

    def record_validation_error(self, key: str, error: str) -> None:
        self.validation_errors[key] = error

    def get_summary(self) -> Dict[str, Any]:
        return {
            "total_configs": len(self.env_vars_loaded),
            "from_environment": sum(1 for v in self.env_vars_loaded.values() if v),
            "from_defaults": sum(1 for v in self.env_vars_loaded.values() if not v),
            "validation_errors": len(self.validation_errors),
            "defaults_used": list(self.defaults_used.keys()),
            "last_reload": self.last_reload,
        }


class Config:
    """
    Centralized static configuration for Beacon.

    Usage
    -----
    >>> Config.EVENT_BUS_MAX_LISTENERS
    50
    >>> if Config.is_development():
    ...     print("verbose bus logging on by default")
    """

    _metrics: Optional[_ConfigLoadMetrics] = None
    _validated: bool = False

    # =========================================================================
    # Environment
    # =========================================================================

    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # =========================================================================
    # Logging
    # =========================================================================

    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True
    LOG_TO_FILE: bool = False
    LOGS_DIR: Path = Path("logs")

    # =========================================================================
    # Event Bus
    # =========================================================================

    EVENT_BUS_MAX_LISTENERS: int = 50
    EVENT_BUS_MAX_HISTORY: int = 100
    EVENT_BUS_LOGGING: bool = True
    EVENT_BUS_LISTENER_TIMEOUT_SECONDS: float = 0.0

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @classmethod
    def _init_metrics(cls) -> None:
        if cls._metrics is None:
            cls._metrics = _ConfigLoadMetrics()

    @classmethod
    def _reject(cls, key: str, error: str) -> None:
        _bootstrap_log.warning(error)
        if cls._metrics:
            cls._metrics.record_validation_error(key, error)

    @classmethod
    def _safe_int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        Safely parse integer from environment with validation.

        Example
        -------
        >>> Config._safe_int("EVENT_BUS_MAX_HISTORY", 100, min_val=0)
        100
        """
        cls._init_metrics()
        raw_value = os.getenv(key)

        if raw_value is None:
            cls._metrics.record_env_load(key, False, default)
            return default

        try:
            value = int(raw_value)
        except ValueError:
            cls._reject(key, f"{key}='{raw_value}' is not a valid integer, using default {default}")
            return default

        if min_val is not None and value < min_val:
            cls._reject(key, f"{key}={value} is below minimum {min_val}, using default {default}")
            return default

        if max_val is not None and value > max_val:
            cls._reject(key, f"{key}={value} exceeds maximum {max_val}, using default {default}")
            return default

        cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _safe_float(cls, key: str, default: float, min_val: float = 0.0) -> float:
        cls._init_metrics()
        raw_value = os.getenv(key)

        if raw_value is None:
            cls._metrics.record_env_load(key, False, default)
            return default

        try:
            value = float(raw_value)
        except ValueError:
            cls._reject(key, f"{key}='{raw_value}' is not a valid number, using default {default}")
            return default

        if value < min_val:
            cls._reject(key, f"{key}={value} is below minimum {min_val}, using default {default}")
            return default

        cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _safe_bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        """
        Safely parse boolean from environment.

        Recognizes: true/false, yes/no, 1/0, on/off (case-insensitive).

        Example
        -------
        >>> Config._safe_bool("DEBUG", False)
        False
        """
        cls._init_metrics()
        raw_value = os.getenv(key)

        if raw_value is None:
            cls._metrics.record_env_load(key, False, default)
            return default

        normalized = raw_value.lower().strip()
        if normalized in {"true", "yes", "1", "on"}:
            value = True
        elif normalized in {"false", "no", "0", "off"}:
            value = False
        else:
            cls._reject(key, f"{key}='{raw_value}' is not a valid boolean, using default {default}")
            return default

        cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _safe_str(cls, key: str, default: str) -> str:
        cls._init_metrics()
        value = os.getenv(key, default)
        cls._metrics.record_env_load(key, key in os.environ, default)
        return value

    # =========================================================================
    # Configuration Loading
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """
        Load all configuration from environment variables.

        Called on module import; call again to pick up changed variables
        (tests do this after monkeypatching the environment).
        """
        cls._metrics = _ConfigLoadMetrics()

        cls.ENVIRONMENT = Environment.from_string(
            cls._safe_str("ENVIRONMENT", "development")
        ).value
        cls.DEBUG = bool(cls._safe_bool("DEBUG", False))

        cls.LOG_LEVEL = cls._safe_str("LOG_LEVEL", "INFO").upper()
        cls.LOG_JSON = cls._safe_bool("LOG_JSON", None)
        cls.LOG_COLORS = bool(cls._safe_bool("LOG_COLORS", True))
        cls.LOG_TO_FILE = bool(cls._safe_bool("LOG_TO_FILE", False))
        cls.LOGS_DIR = Path(cls._safe_str("LOGS_DIR", "logs"))

        cls.EVENT_BUS_MAX_LISTENERS = cls._safe_int(
            "EVENT_BUS_MAX_LISTENERS", 50, min_val=1, max_val=10_000
        )
        cls.EVENT_BUS_MAX_HISTORY = cls._safe_int(
            "EVENT_BUS_MAX_HISTORY", 100, min_val=0, max_val=100_000
        )
        # Verbose bus logging follows the environment unless set explicitly
        cls.EVENT_BUS_LOGGING = bool(
            cls._safe_bool("EVENT_BUS_LOGGING", cls.is_development())
        )
        cls.EVENT_BUS_LISTENER_TIMEOUT_SECONDS = cls._safe_float(
            "EVENT_BUS_LISTENER_TIMEOUT_SECONDS", 0.0
        )

        cls._validated = False
        cls._metrics.last_reload = datetime.now(timezone.utc).isoformat()

    @classmethod
    def validate(cls) -> None:
        """
        Validate configuration on bootstrap.

        Outside production, rejected values are logged and their defaults
        kept. In production any rejected value is fatal.

        Raises
        ------
        ConfigurationError:
            In production, when any environment value was rejected.
        """
        if cls._validated:
            return

        cls._init_metrics()

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if cls.LOG_LEVEL not in valid_log_levels:
            cls._reject("LOG_LEVEL", f"Invalid LOG_LEVEL '{cls.LOG_LEVEL}', using INFO")
            cls.LOG_LEVEL = "INFO"

        errors = dict(cls._metrics.validation_errors)
        if errors and cls.is_production():
            key, message = next(iter(errors.items()))
            raise ConfigurationError(key, message)

        if cls.is_production() and cls.DEBUG:
            _bootstrap_log.warning("DEBUG mode enabled in production")

        cls._validated = True
        _bootstrap_log.info(f"Configuration loaded: {cls._metrics.get_summary()}")

    # =========================================================================
    # Environment Checks
    # =========================================================================

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION.value

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENVIRONMENT == Environment.DEVELOPMENT.value

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == Environment.TESTING.value

    # =========================================================================
    # Metrics & Summary
    # =========================================================================

    @classmethod
    def get_metrics(cls) -> Optional[_ConfigLoadMetrics]:
        """Get configuration loading metrics."""
        return cls._metrics

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """
        Get configuration summary for debugging.

        Example
        -------
        >>> Config.get_config_summary()["event_bus_max_history"]
        100
        """
        return {
            "environment": cls.ENVIRONMENT,
            "debug": cls.DEBUG,
            "log_level": cls.LOG_LEVEL,
            "log_to_file": cls.LOG_TO_FILE,
            "event_bus_max_listeners": cls.EVENT_BUS_MAX_LISTENERS,
            "event_bus_max_history": cls.EVENT_BUS_MAX_HISTORY,
            "event_bus_logging": cls.EVENT_BUS_LOGGING,
            "event_bus_listener_timeout_seconds": cls.EVENT_BUS_LISTENER_TIMEOUT_SECONDS,
        }


Config.load()
