"""
flowyield.types — dependency-light dataclasses shared across the engine.
"""

from __future__ import annotations

from .context import CallContext
from .events import Address, LogEvent
from .records import (
    RECORD_TYPES,
    DistributionHistory,
    FlowData,
    FlowReading,
    InvestorClaim,
    InvestorYield,
    Project,
    ProjectPool,
    ProjectSource,
    Record,
)
from .result import CallResult
from .status import CallStatus

__all__ = [
    "Address",
    "CallContext",
    "CallResult",
    "CallStatus",
    "LogEvent",
    "Record",
    "RECORD_TYPES",
    "Project",
    "FlowReading",
    "InvestorYield",
    "ProjectSource",
    "FlowData",
    "ProjectPool",
    "InvestorClaim",
    "DistributionHistory",
]
