#!/usr/bin/env python3

"""
Tunable parameters for the body composition trend pipeline.

Defaults can be overridden per process through environment variables
(BODYCOMP_SIGMA_OBS, BODYCOMP_HAMPEL_WINDOW, ...) or per run via the CLI.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace as _dc_replace
from typing import Dict, Mapping, Optional


# Trend filter: observation noise standard deviation (kg)
DEFAULT_SIGMA_OBS = 0.3
# Trend filter: process noise standard deviation (kg/day)
DEFAULT_SIGMA_PROC = 0.25
# Hampel filter: trailing window size (days, one-sided)
DEFAULT_HAMPEL_WINDOW = 6
# Hampel filter: threshold as a multiple of the MAD
DEFAULT_HAMPEL_THRESHOLD = 2.5
# Trend filter: largest plausible daily trend movement (kg)
DEFAULT_MAX_DAILY_CHANGE = 0.19
# EMA spans in days
DEFAULT_EMA_SPAN_SHORT = 5
DEFAULT_EMA_SPAN_LONG = 28

ENV_PREFIX = "BODYCOMP_"


@dataclass(frozen=True)
class TrendConfig:
    sigma_obs: float = DEFAULT_SIGMA_OBS
    sigma_proc: float = DEFAULT_SIGMA_PROC
    hampel_window: int = DEFAULT_HAMPEL_WINDOW
    hampel_threshold: float = DEFAULT_HAMPEL_THRESHOLD
    max_daily_change: float = DEFAULT_MAX_DAILY_CHANGE
    ema_span_short: int = DEFAULT_EMA_SPAN_SHORT
    ema_span_long: int = DEFAULT_EMA_SPAN_LONG

    def validate(self) -> "TrendConfig":
        """Raise ValueError if any parameter is outside its usable range."""
        for name in ("hampel_window", "ema_span_short", "ema_span_long"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if self.sigma_obs <= 0:
            raise ValueError(f"sigma_obs must be positive, got {self.sigma_obs}")
        if self.sigma_proc <= 0:
            raise ValueError(f"sigma_proc must be positive, got {self.sigma_proc}")
        if self.hampel_window < 0:
            raise ValueError(f"hampel_window must be >= 0, got {self.hampel_window}")
        if self.hampel_threshold <= 0:
            raise ValueError(f"hampel_threshold must be positive, got {self.hampel_threshold}")
        if self.max_daily_change <= 0:
            raise ValueError(f"max_daily_change must be positive, got {self.max_daily_change}")
        if self.ema_span_short < 1 or self.ema_span_long < 1:
            raise ValueError(
                f"EMA spans must be >= 1, got {self.ema_span_short} and {self.ema_span_long}"
            )
        return self

    def replace(self, **overrides: Optional[float]) -> "TrendConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return _dc_replace(self, **changes)

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, environ: Optional[Mapping[str, str]] = None) -> "TrendConfig":
        """Build a config from defaults plus any PREFIX_<FIELD> environment overrides."""
        env = os.environ if environ is None else environ
        values: Dict[str, object] = {}
        for f in fields(cls):
            raw = env.get(prefix + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            caster = int if f.type in (int, "int") else float
            try:
                values[f.name] = caster(raw.strip())
            except ValueError as e:
                raise ValueError(f"Invalid value for {prefix}{f.name.upper()}: '{raw}'") from e
        return cls(**values)
