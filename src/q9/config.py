"""Interpreter configuration and logging setup."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import error_invalid_config

DEFAULT_MAX_CALL_DEPTH = 100

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass
class InterpreterConfig:
    """Tunable limits for one interpreter run."""
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if isinstance(self.max_call_depth, bool) or not isinstance(self.max_call_depth, int) \
                or self.max_call_depth < 1:
            raise error_invalid_config(
                f"max_call_depth must be a positive integer, got {self.max_call_depth!r}"
            )
        if not isinstance(self.log_level, str) or \
                not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise error_invalid_config(f"unknown log_level {self.log_level!r}")
        self.log_level = self.log_level.upper()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InterpreterConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise error_invalid_config(f"unknown configuration key(s): {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_config(path: Optional[Union[str, Path]] = None) -> InterpreterConfig:
    """Read an InterpreterConfig from a YAML file; defaults when path is None."""
    if path is None:
        return InterpreterConfig()

    import yaml

    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except OSError as e:
        raise error_invalid_config(f"cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise error_invalid_config(f"invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise error_invalid_config(f"configuration file {path} must contain a mapping")
    return InterpreterConfig.from_dict(data)


def configure_logging(level: Union[str, int] = "WARNING") -> None:
    """Install a stderr handler on the root logger. Only the CLI calls this."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
