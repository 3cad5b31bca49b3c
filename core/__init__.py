"""
Core Module Package.

Shared infrastructure for the valuation risk and cash
allocation engines.

Components:
- exceptions: Custom exception hierarchy
- config_utils: Env / YAML loading and read-only tables
"""

from .exceptions import (
    Severity,
    EngineException,
    ConfigurationError,
    MissingConfigError,
    InvalidConfigError,
)


__all__ = [
    "Severity",
    "EngineException",
    "ConfigurationError",
    "MissingConfigError",
    "InvalidConfigError",
]
