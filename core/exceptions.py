"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Exception hierarchy shared by the valuation and cash
allocation engines.

Scoring never raises for missing or partial market data;
an absent indicator is reported in-band through confidence
and data completeness. The only failure these engines raise
is a configuration that cannot be used.

============================================================
EXCEPTION HIERARCHY
============================================================
EngineException (base)
└── ConfigurationError
    ├── MissingConfigError     required table or entry absent
    └── InvalidConfigError     value out of range / unparsable

============================================================
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class Severity(Enum):
    """How loudly an engine error should be reported."""

    MEDIUM = "medium"
    HIGH = "high"


# ============================================================
# BASE EXCEPTION
# ============================================================

class EngineException(Exception):
    """
    Base class for engine errors.

    Carries a severity, a free-form context dict, the
    underlying exception (if any) and the time it was raised.
    """

    default_severity: Severity = Severity.MEDIUM

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity or self.default_severity
        self.context: Dict[str, Any] = dict(context or {})
        self.cause = cause
        self.raised_at = datetime.now(timezone.utc)

        if cause is not None:
            self.context.setdefault("cause_type", type(cause).__name__)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "context": dict(self.context),
            "raised_at": self.raised_at.isoformat(),
            "cause": str(self.cause) if self.cause is not None else None,
        }

    def to_log_format(self) -> str:
        """One-line rendering used by the config loaders."""
        line = f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
        if not self.context:
            return line
        details = ", ".join(f"{key}={value}" for key, value in sorted(self.context.items()))
        return f"{line} | {details}"


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(EngineException):
    """A configuration table or value cannot be used."""

    default_severity = Severity.HIGH

    def __init__(
        self,
        message: str,
        config_key: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        context = dict(context or {})
        context["config_key"] = config_key
        super().__init__(message, context=context, cause=cause)
        self.config_key = config_key


class MissingConfigError(ConfigurationError):
    """A required table or table entry is absent."""

    def __init__(self, key: str, source: str = "config"):
        super().__init__(
            f"Missing required configuration: {key}",
            config_key=key,
            context={"source": source},
        )


class InvalidConfigError(ConfigurationError):
    """A configuration value is out of range or unparsable."""

    def __init__(
        self,
        key: str,
        value: Any,
        reason: str,
        cause: Optional[BaseException] = None,
    ):
        context: Dict[str, Any] = {"reason": reason}
        if value is not None:
            # Long tables are truncated to keep log lines readable
            context["actual_value"] = str(value)[:100]
        super().__init__(
            f"Invalid configuration for {key}: {reason}",
            config_key=key,
            context=context,
            cause=cause,
        )
        self.reason = reason
