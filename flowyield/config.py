"""
flowyield.config — runtime configuration for the FlowYield engine.

This module centralizes knobs for:
  • Epoch-gated limits (oracle reporting interval, staleness window, claim period
    length, distribution interval, minimum pool deposit)
  • Feature flags (relaying oracle flows to the calculator, posting claims to the
    distribution ledger)
  • Logging level/format

Configuration may be provided via environment variables. Safe defaults reproduce
the deployed contracts' behavior, so a local run works out of the box.

Environment variables (all optional):
  FLOWYIELD_MIN_REPORT_INTERVAL    -> epochs between oracle submissions (default: 6)
  FLOWYIELD_MAX_STALENESS          -> max epochs a submitted timestamp may lag (default: 100)
  FLOWYIELD_EPOCHS_PER_DAY         -> epochs per claim-period day (default: 144)
  FLOWYIELD_MIN_DEPOSIT            -> smallest accepted pool deposit (default: 1000)
  FLOWYIELD_DISTRIBUTION_INTERVAL  -> epochs between distribution triggers (default: 10)
  FLOWYIELD_RELAY_FLOWS            -> 0/1/true/false (default: 1)
  FLOWYIELD_POST_CLAIMS            -> 0/1/true/false (default: 1)
  FLOWYIELD_LOG_LEVEL              -> DEBUG/INFO/... (default: INFO)
  FLOWYIELD_LOG_FORMAT             -> text|json (default: text)

Programmatic usage:
    from flowyield.config import get_config
    cfg = get_config()
    if cfg.features.relay_flows:
        ...
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, replace
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

# ----------------------------- helpers -------------------------------------


_BOOL_TRUE = {"1", "true", "t", "yes", "y", "on"}
_BOOL_FALSE = {"0", "false", "f", "no", "n", "off"}


def _bool_env(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    v = value.strip().lower()
    if v in _BOOL_TRUE:
        return True
    if v in _BOOL_FALSE:
        return False
    return bool(v) if v != "" else default


def _int_env(value: Optional[str], default: int, *, name: str, minimum: int = 0) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        n = int(value.strip(), 10)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
    if n < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {n}")
    return n


# ----------------------------- dataclasses ---------------------------------


@dataclass(frozen=True)
class Limits:
    min_report_interval: int = 6
    max_staleness: int = 100
    epochs_per_day: int = 144
    min_deposit: int = 1000
    distribution_interval: int = 10


@dataclass(frozen=True)
class Features:
    # Oracle Ingest forwards accepted flows to its configured calculator.
    relay_flows: bool = True
    # Yield Calculator posts positive claim deltas to its configured ledger.
    post_claims: bool = True


@dataclass(frozen=True)
class Config:
    limits: Limits = field(default_factory=Limits)
    features: Features = field(default_factory=Features)
    log_level: str = "INFO"
    log_format: str = "text"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def with_limits(self, **overrides: int) -> "Config":
        """Return a copy with selected limits replaced (handy in tests)."""
        return replace(self, limits=replace(self.limits, **overrides))

    def with_features(self, **overrides: bool) -> "Config":
        return replace(self, features=replace(self.features, **overrides))


# ----------------------------- loading -------------------------------------


def load_config(env: Optional[Mapping[str, str]] = None) -> Config:
    """
    Build a Config from an environment mapping (defaults to os.environ).
    Raises ValueError on malformed numeric values.
    """
    e = os.environ if env is None else env
    d = Limits()
    limits = Limits(
        min_report_interval=_int_env(
            e.get("FLOWYIELD_MIN_REPORT_INTERVAL"), d.min_report_interval,
            name="FLOWYIELD_MIN_REPORT_INTERVAL",
        ),
        max_staleness=_int_env(
            e.get("FLOWYIELD_MAX_STALENESS"), d.max_staleness,
            name="FLOWYIELD_MAX_STALENESS",
        ),
        epochs_per_day=_int_env(
            e.get("FLOWYIELD_EPOCHS_PER_DAY"), d.epochs_per_day,
            name="FLOWYIELD_EPOCHS_PER_DAY", minimum=1,
        ),
        min_deposit=_int_env(
            e.get("FLOWYIELD_MIN_DEPOSIT"), d.min_deposit,
            name="FLOWYIELD_MIN_DEPOSIT",
        ),
        distribution_interval=_int_env(
            e.get("FLOWYIELD_DISTRIBUTION_INTERVAL"), d.distribution_interval,
            name="FLOWYIELD_DISTRIBUTION_INTERVAL",
        ),
    )
    features = Features(
        relay_flows=_bool_env(e.get("FLOWYIELD_RELAY_FLOWS"), True),
        post_claims=_bool_env(e.get("FLOWYIELD_POST_CLAIMS"), True),
    )
    fmt = (e.get("FLOWYIELD_LOG_FORMAT") or "text").strip().lower()
    if fmt not in ("text", "json"):
        raise ValueError(f"FLOWYIELD_LOG_FORMAT must be 'text' or 'json', got {fmt!r}")
    return Config(
        limits=limits,
        features=features,
        log_level=(e.get("FLOWYIELD_LOG_LEVEL") or "INFO").strip().upper(),
        log_format=fmt,
    )


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Process-wide configuration resolved once from the environment."""
    return load_config()


def reload_config() -> Config:
    """Drop the cached configuration and re-read the environment."""
    get_config.cache_clear()
    return get_config()


__all__ = [
    "Limits",
    "Features",
    "Config",
    "load_config",
    "get_config",
    "reload_config",
]
