"""
Interpreter configuration.

Settings come from, in increasing priority: built-in defaults, a YAML
file (``--config FILE`` or ``EMBER_CONFIG``), and ``EMBER_*`` environment
variables. Example file::

    prompt: "ember> "
    exit_keyword: quit
    max_errors: 10
    recursion_limit: 5000
"""

from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional

CONFIG_ENV_VAR = "EMBER_CONFIG"

# Each Ember call costs about ten Python frames
DEFAULT_RECURSION_LIMIT = 10000

# Environment variable -> config field
ENV_OVERRIDES = {
    "EMBER_PROMPT": "prompt",
    "EMBER_EXIT_KEYWORD": "exit_keyword",
    "EMBER_MAX_ERRORS": "max_errors",
    "EMBER_SHOW_SOURCE": "show_source",
    "EMBER_RECURSION_LIMIT": "recursion_limit",
}


class ConfigError(ValueError):
    """Invalid configuration file or value."""
    pass


@dataclass(frozen=True)
class EmberConfig:
    prompt: str = ">> "
    exit_keyword: str = "exit"
    max_errors: int = 20
    show_source: bool = True
    recursion_limit: int = DEFAULT_RECURSION_LIMIT

    def merged(self, values: Mapping[str, Any]) -> "EmberConfig":
        """Copy with the given raw values coerced and applied."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"unknown configuration key(s): {', '.join(unknown)}")
        coerced = {name: _coerce(name, value) for name, value in values.items()}
        return replace(self, **coerced)


def _coerce(name: str, value: Any) -> Any:
    if name in ("prompt", "exit_keyword"):
        if not isinstance(value, str):
            raise ConfigError(f"{name} must be a string, got {value!r}")
        return value
    if name == "show_source":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("1", "true", "yes", "on"):
            return True
        if isinstance(value, str) and value.lower() in ("0", "false", "no", "off"):
            return False
        raise ConfigError(f"show_source must be a boolean, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if isinstance(value, bool) or number < 1:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return number


def read_config_file(path: Path | str) -> Dict[str, Any]:
    """Load the raw mapping from a YAML config file."""
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"config file not found: {config_path}")
    import yaml

    with config_path.open("r", encoding="utf-8") as fp:
        try:
            data = yaml.safe_load(fp) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")
    return data


def load_config(path: Optional[Path | str] = None,
                environ: Optional[Mapping[str, str]] = None) -> EmberConfig:
    """
    Build the effective configuration.

    Args:
        path: YAML file to read; defaults to $EMBER_CONFIG when set
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigError: on a missing file, unknown keys or bad values
    """
    environ = os.environ if environ is None else environ
    config = EmberConfig()

    path = path or environ.get(CONFIG_ENV_VAR)
    if path:
        config = config.merged(read_config_file(path))

    overrides = {
        field_name: environ[var]
        for var, field_name in ENV_OVERRIDES.items()
        if var in environ
    }
    if overrides:
        config = config.merged(overrides)
    return config


@contextmanager
def recursion_limit(limit: Optional[int]) -> Iterator[None]:
    """
    Raise Python's recursion limit to at least ``limit`` inside the block.

    The previous limit is restored on exit. A limit at or below the current
    one leaves it untouched.
    """
    previous = sys.getrecursionlimit()
    if limit is None or limit <= previous:
        yield
        return
    sys.setrecursionlimit(limit)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)
