"""
FlowYield — flow-indexed yield accounting.

Three modules run on a shared host:

    OracleIngest        accepts flow readings from registered reporters
    YieldCalculator     turns readings into bounded yield rates and claim amounts
    DistributionLedger  holds pooled funds and pays investor claims

Every operation goes through `Host.call`, which runs it atomically and returns a
`CallResult` (success value + events, or a typed error with nothing changed).
"""

from __future__ import annotations

from .config import Config, get_config, load_config
from .contracts import DistributionLedger, OracleIngest, YieldCalculator
from .errors import CallError, ErrorKind
from .runtime import Host, Pipeline, deploy_pipeline
from .types import CallResult, CallStatus, LogEvent
from .version import __version__

__all__ = [
    "__version__",
    "CallError",
    "CallResult",
    "CallStatus",
    "Config",
    "DistributionLedger",
    "ErrorKind",
    "Host",
    "LogEvent",
    "OracleIngest",
    "Pipeline",
    "YieldCalculator",
    "deploy_pipeline",
    "get_config",
    "load_config",
]
