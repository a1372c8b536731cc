"""
flowyield.types.records — keyed records owned by the three modules.

All records are frozen dataclasses: a module reads a record, builds an updated
copy with `dataclasses.replace`, and writes it back through its journaled
store. Nothing holds a mutable handle into another module's state.

Keys
----
Composite keys are plain tuples, never concatenated strings:

    (project_id, epoch)     FlowReading, FlowData, DistributionHistory
    (project_id, investor)  InvestorYield, InvestorClaim
    project_id              Project, ProjectSource, ProjectPool
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Type, TypeVar

from .events import Address

R = TypeVar("R", bound="Record")


class Record:
    """Mixin giving records a stable dict form for encoding."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]

    @classmethod
    def from_dict(cls: Type[R], d: Mapping[str, Any]) -> R:
        names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        unknown = set(d) - names
        if unknown:
            raise ValueError(f"{cls.__name__}: unknown fields {sorted(unknown)}")
        return cls(**dict(d))  # type: ignore[call-arg]


# ---------------------------------------------------------------------------
# Yield Calculator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Project(Record):
    baseline_flow: int
    base_yield_rate: int
    period_days: int
    start_epoch: int
    total_invested: int = 0
    accumulated_yield: int = 0
    last_calc_epoch: int = 0
    active: bool = True


@dataclass(frozen=True)
class FlowReading(Record):
    flow: int
    timestamp: int


@dataclass(frozen=True)
class InvestorYield(Record):
    invested: int = 0
    claimed: int = 0
    last_claim_epoch: int = 0


# ---------------------------------------------------------------------------
# Oracle Ingest
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectSource(Record):
    source_hash: bytes
    last_update: int = 0
    update_count: int = 0


@dataclass(frozen=True)
class FlowData(Record):
    flow: int
    source_hash: bytes
    timestamp: int
    oracle: Address


# ---------------------------------------------------------------------------
# Distribution Ledger
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectPool(Record):
    total_yield_pool: int = 0
    claimed_total: int = 0
    last_distribution: int = 0
    locked: bool = False

    @property
    def outstanding(self) -> int:
        return max(self.total_yield_pool - self.claimed_total, 0)


@dataclass(frozen=True)
class InvestorClaim(Record):
    pending_yield: int = 0
    last_claim_epoch: int = 0
    claimed_total: int = 0


@dataclass(frozen=True)
class DistributionHistory(Record):
    total_yield: int
    investors_count: int
    timestamp: int


RECORD_TYPES: Dict[str, Type[Record]] = {
    cls.__name__: cls
    for cls in (
        Project,
        FlowReading,
        InvestorYield,
        ProjectSource,
        FlowData,
        ProjectPool,
        InvestorClaim,
        DistributionHistory,
    )
}


__all__ = [
    "Address",
    "Record",
    "Project",
    "FlowReading",
    "InvestorYield",
    "ProjectSource",
    "FlowData",
    "ProjectPool",
    "InvestorClaim",
    "DistributionHistory",
    "RECORD_TYPES",
]
