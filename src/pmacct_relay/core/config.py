from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from .pipeline import DEFAULT_MAX_LINE_BYTES

DEFAULT_BATCH_PERIOD = 1.0

ENV_BATCH_PERIOD = "PMACCT_RELAY_BATCH_PERIOD"
ENV_MAX_LINE_BYTES = "PMACCT_RELAY_MAX_LINE_BYTES"
ENV_LOG_LEVEL = "PMACCT_RELAY_LOG_LEVEL"
ENV_TRANSPORTS = "PMACCT_RELAY_TRANSPORTS"


class ConfigError(ValueError):
    """
    A command line option or environment variable has an unusable value.
    """


@dataclass
class RelayConfig:
    """
    Runtime settings for one relay run.

    collection_point
      Label attached to every point, usually the site name, e.g. syd1.

    endpoint
      Transport URI, e.g. tcp://localhost:1234.

    batch_period
      Max seconds the transport may hold points before sending them.

    max_line_bytes
      Longest input line accepted. Longer lines are skipped.

    transports
      Extra transport import strings, "module.path:factory".
    """

    collection_point: str
    endpoint: str
    batch_period: float = DEFAULT_BATCH_PERIOD
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES
    log_level: str = "INFO"
    transports: List[str] = field(default_factory=list)

    def validate(self) -> "RelayConfig":
        if not self.collection_point.strip():
            raise ConfigError("collection point must not be empty")
        if not self.endpoint.strip():
            raise ConfigError("endpoint must not be empty")
        if not math.isfinite(self.batch_period) or self.batch_period <= 0:
            raise ConfigError(f"batch period must be a positive number of seconds, got {self.batch_period}")
        if self.max_line_bytes <= 0:
            raise ConfigError(f"max line bytes must be positive, got {self.max_line_bytes}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError(f"unknown log level {self.log_level}")
        return self

    @classmethod
    def from_env(
        cls,
        collection_point: str,
        endpoint: str,
        environ: Optional[Mapping[str, str]] = None,
        batch_period: Optional[float] = None,
        max_line_bytes: Optional[int] = None,
        log_level: Optional[str] = None,
    ) -> "RelayConfig":
        """
        Build a config from explicit values, falling back to environment
        variables and then to defaults.

        Example:
          export PMACCT_RELAY_BATCH_PERIOD=0.5
          export PMACCT_RELAY_TRANSPORTS='["mysite.relay.kafka:build_transport"]'
        """
        env = os.environ if environ is None else environ

        if batch_period is None:
            batch_period = _env_number(env, ENV_BATCH_PERIOD, float, DEFAULT_BATCH_PERIOD)
        if max_line_bytes is None:
            max_line_bytes = _env_number(env, ENV_MAX_LINE_BYTES, int, DEFAULT_MAX_LINE_BYTES)
        if log_level is None:
            log_level = env.get(ENV_LOG_LEVEL, "INFO")

        return cls(
            collection_point=collection_point,
            endpoint=endpoint,
            batch_period=float(batch_period),
            max_line_bytes=int(max_line_bytes),
            log_level=log_level.upper(),
            transports=_env_import_list(env, ENV_TRANSPORTS),
        ).validate()


def _env_number(env: Mapping[str, str], name: str, cast, default):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name}={raw!r} is not a valid {cast.__name__}") from exc


def _env_import_list(env: Mapping[str, str], name: str) -> List[str]:
    raw = env.get(name, "[]") or "[]"
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{name} is not valid JSON: {exc}") from exc
    if not isinstance(value, list) or not all(isinstance(v, str) and ":" in v for v in value):
        raise ConfigError(f'{name} must be a JSON list of "module:factory" strings')
    return value
