"""
flowyield.contracts — the three accounting modules.

    OracleIngest        (leaf)       trusted flow intake
    YieldCalculator     (← oracle)   rates, investments, claim timing
    DistributionLedger  (← calc)     pooled funds and payouts
"""

from __future__ import annotations

from typing import Dict, Type

from .base import Module, OperationSpec, operation
from .distribution_ledger import DistributionLedger
from .oracle_ingest import OracleIngest
from .yield_calculator import YieldCalculator, compute_yield_rate

MODULES: Dict[str, Type[Module]] = {
    OracleIngest.kind: OracleIngest,
    YieldCalculator.kind: YieldCalculator,
    DistributionLedger.kind: DistributionLedger,
}

__all__ = [
    "MODULES",
    "Module",
    "OperationSpec",
    "operation",
    "OracleIngest",
    "YieldCalculator",
    "DistributionLedger",
    "compute_yield_rate",
]
