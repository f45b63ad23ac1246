"""
dokcsr Config - Configuration System

Property-based configuration for display and validation behavior. Settings
can be changed globally or overridden for the current thread inside a
``config.local(...)`` block, without touching function signatures.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

logger = logging.getLogger("dokcsr.config")


def _env_flag(name: str) -> bool:
    """Check whether an environment flag is switched on."""
    return os.environ.get(name, '').lower() in ('1', 'true', 'yes')


# =============================================================================
# Configuration Classes
# =============================================================================

@dataclass
class DisplayConfig:
    """Configuration for the boxed text rendering."""
    width: int = 6                 # Right-aligned field width per value
    precision: int = 2             # Digits after the decimal point
    indent: str = "\t"             # Prefix of every rendered line

    def __post_init__(self):
        if self.width < 1:
            raise ValueError(f"width must be positive, got {self.width}")
        if self.precision < 0:
            raise ValueError(f"precision must be non-negative, got {self.precision}")

    @property
    def cell_width(self) -> int:
        """Characters per column inside the box (value + ', ' separator)."""
        return self.width + 2


@dataclass
class ValidationConfig:
    """Configuration for value checks on insert."""
    check_finite: bool = True      # Reject NaN and +/-inf

    @classmethod
    def from_env(cls) -> "ValidationConfig":
        return cls(check_finite=not _env_flag('DOKCSR_ALLOW_NONFINITE'))


# =============================================================================
# Global Configuration Manager
# =============================================================================

class DokcsrConfig:
    """
    Global configuration manager for dokcsr.

    Provides thread-local configuration with context manager support.

    Example:
        # Global configuration
        dokcsr.config.display = DisplayConfig(precision=3)

        # Local configuration (context manager)
        with dokcsr.config.local(display=DisplayConfig(width=10)):
            print(matrix)
        # Back to global config
    """

    def __init__(self):
        self._global_display = DisplayConfig()
        self._global_validation = ValidationConfig.from_env()

        # Thread-local storage for context overrides
        self._local = threading.local()

        # Callbacks for config changes
        self._callbacks: Dict[str, List[Callable]] = {
            "display": [],
            "validation": [],
        }

    # -------------------------------------------------------------------------
    # Property Accessors (with thread-local override support)
    # -------------------------------------------------------------------------

    @property
    def display(self) -> DisplayConfig:
        """Get display configuration."""
        if getattr(self._local, "display", None) is not None:
            return self._local.display
        return self._global_display

    @display.setter
    def display(self, value: DisplayConfig):
        """Set global display configuration."""
        self._global_display = value
        self._notify("display", value)

    @property
    def validation(self) -> ValidationConfig:
        """Get validation configuration."""
        if getattr(self._local, "validation", None) is not None:
            return self._local.validation
        return self._global_validation

    @validation.setter
    def validation(self, value: ValidationConfig):
        """Set global validation configuration."""
        self._global_validation = value
        self._notify("validation", value)

    @property
    def check_finite(self) -> bool:
        """Whether inserted values must be finite."""
        return self.validation.check_finite

    @check_finite.setter
    def check_finite(self, value: bool):
        """Set finite checking on the active override, else globally."""
        if getattr(self._local, "validation", None) is not None:
            self._local.validation = ValidationConfig(check_finite=value)
        else:
            self.validation = ValidationConfig(check_finite=value)

    # -------------------------------------------------------------------------
    # Context Manager Support
    # -------------------------------------------------------------------------

    def local(self, **kwargs) -> "_LocalConfigContext":
        """
        Create a local configuration context.

        Args:
            **kwargs: Configuration overrides (display, validation)

        Returns:
            Context manager
        """
        unknown = set(kwargs) - set(self._callbacks)
        if unknown:
            raise TypeError(f"Unknown config section(s): {sorted(unknown)}")
        return _LocalConfigContext(self, **kwargs)

    def _set_local(self, **kwargs):
        """Set thread-local configuration."""
        for key, value in kwargs.items():
            if value is not None:
                setattr(self._local, key, value)

    def _clear_local(self, keys: List[str]):
        """Clear thread-local configuration."""
        for key in keys:
            if hasattr(self._local, key):
                setattr(self._local, key, None)

    # -------------------------------------------------------------------------
    # Callback Registration
    # -------------------------------------------------------------------------

    def on_change(self, config_name: str, callback: Callable):
        """
        Register callback for configuration changes.

        Args:
            config_name: Name of config ("display" or "validation")
            callback: Function to call with the new value
        """
        if config_name not in self._callbacks:
            raise KeyError(f"Unknown config section: {config_name}")
        self._callbacks[config_name].append(callback)

    def _notify(self, config_name: str, value: Any):
        """Notify callbacks of configuration change."""
        for callback in self._callbacks.get(config_name, []):
            try:
                callback(value)
            except Exception:
                logger.exception("Config callback for %r failed", config_name)

    # -------------------------------------------------------------------------
    # Reset / Serialization
    # -------------------------------------------------------------------------

    def reset(self):
        """Reset all configurations to defaults."""
        self._global_display = DisplayConfig()
        self._global_validation = ValidationConfig.from_env()

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary."""
        return {
            "display": {
                "width": self.display.width,
                "precision": self.display.precision,
                "indent": self.display.indent,
            },
            "validation": {
                "check_finite": self.validation.check_finite,
            },
        }

    def __repr__(self) -> str:
        return f"DokcsrConfig({self.to_dict()})"


class _LocalConfigContext:
    """Context manager for local configuration override."""

    def __init__(self, config: DokcsrConfig, **kwargs):
        self._config = config
        self._kwargs = kwargs
        self._keys = list(kwargs.keys())

    def __enter__(self):
        self._config._set_local(**self._kwargs)
        return self._config

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._config._clear_local(self._keys)
        return False


# =============================================================================
# Global Instance
# =============================================================================

config = DokcsrConfig()


def get_config() -> DokcsrConfig:
    """Get the global configuration instance."""
    return config


def set_display(width: int = 6, precision: int = 2, indent: str = "\t"):
    """
    Configure the text rendering globally.

    Args:
        width: Field width per value
        precision: Digits after the decimal point
        indent: Prefix of every rendered line
    """
    config.display = DisplayConfig(width=width, precision=precision, indent=indent)


__all__ = [
    "DisplayConfig",
    "ValidationConfig",
    "DokcsrConfig",
    "config",
    "get_config",
    "set_display",
]
