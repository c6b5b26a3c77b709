"""Settings read from CODEGRAPH_* environment variables."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Mapping

from codegraph.core.errors import ConfigError
from codegraph.core.golist import DEFAULT_TIMEOUT

ENGINES = ("source", "golist")


@dataclass(frozen=True)
class Settings:
    """Runtime settings. CLI flags override these."""

    engine: str = "source"
    go_binary: str = "go"
    go_list_timeout: float = DEFAULT_TIMEOUT
    log_level: str = "WARNING"

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from the environment; unset or empty variables keep their defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()

        engine = env.get("CODEGRAPH_ENGINE", "").strip().lower() or defaults.engine
        if engine not in ENGINES:
            raise ConfigError(f"CODEGRAPH_ENGINE must be one of {', '.join(ENGINES)}, got {engine!r}")

        raw_timeout = env.get("CODEGRAPH_GO_LIST_TIMEOUT", "").strip()
        timeout = defaults.go_list_timeout
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise ConfigError(f"CODEGRAPH_GO_LIST_TIMEOUT is not a number: {raw_timeout!r}") from None
            if not math.isfinite(timeout) or timeout <= 0:
                raise ConfigError(f"CODEGRAPH_GO_LIST_TIMEOUT must be a positive number, got {raw_timeout!r}")

        level = env.get("CODEGRAPH_LOG_LEVEL", "").strip().upper() or defaults.log_level
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigError(f"CODEGRAPH_LOG_LEVEL is not a logging level: {level!r}")

        return cls(
            engine=engine,
            go_binary=env.get("CODEGRAPH_GO", "").strip() or defaults.go_binary,
            go_list_timeout=timeout,
            log_level=level,
        )
