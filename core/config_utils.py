"""
Core Module - Configuration Loading Helpers.

============================================================
RESPONSIBILITY
============================================================
Loader plumbing shared by the valuation and cash allocation
configurations:

- env_float:          numeric environment variable or None
- load_yaml_mapping:  YAML document that must be a mapping
- read_only:          immutable view over a lookup table

Loader failures are logged in the exception's log format
before they propagate to the caller.

============================================================
"""

import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, TypeVar, Union

import yaml

from .exceptions import InvalidConfigError


logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


def _fail(error: InvalidConfigError) -> InvalidConfigError:
    logger.error(error.to_log_format())
    return error


def env_float(name: str) -> Optional[float]:
    """Read a numeric environment variable; unset or blank -> None."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise _fail(InvalidConfigError(name, raw, "must be numeric", cause=e)) from e


def load_yaml_mapping(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Parse a YAML config file.

    An empty document yields {}. A missing file, a parse error
    or a top level that is not a mapping raises InvalidConfigError.
    """
    path = Path(path)
    if not path.exists():
        raise _fail(InvalidConfigError("config_path", str(path), "file does not exist"))

    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise _fail(InvalidConfigError("config_path", str(path), "not valid YAML", cause=e)) from e

    if not isinstance(data, dict):
        raise _fail(InvalidConfigError("config_path", str(path), "top level must be a mapping"))

    logger.debug(f"Loaded configuration from {path}")
    return data


def read_only(table: Mapping[K, V]) -> Mapping[K, V]:
    """Snapshot a table into a read-only mapping."""
    return MappingProxyType(dict(table))
