"""
flowyield.contracts.yield_calculator — flow-indexed yield rates and accrual.

Registers investment projects, records investments, turns the latest flow
reading into a bounded yield rate (basis points), and computes per-investor
entitlement on a fixed claim period.

Rate arithmetic
---------------
    ratio    = clamp(flow * 100 // baseline, 50, 300)   (percent of baseline)
    adjusted = min(base_yield_rate * ratio, 5000)

`ratio` is never divided back out of the percent scale before it multiplies the
already-bps `base_yield_rate`. With base rates >= 100 and ratios >= 50 the
product is always >= 5000, so every valid input lands on the 5000 bps ceiling.
That is the deployed behavior and `estimate_yield`/`claim_yield` build on it.

Claims
------
Only the investor may claim, and never for more than the amount it has
recorded through `record_investment`. A claim is ready once
`period_days * epochs_per_day` epochs have passed since the investor's last
claim (or since project start when nothing is recorded yet). The investor's
entitlement is `amount * rate // total_invested`; the amount due is the
entitlement minus what was already claimed, checked so that a shrinking
entitlement fails with CALCULATION_OVERFLOW instead of wrapping.

Stores
------
    config     admin, oracle, distribution_ledger
    projects   project_id -> Project
    readings   (project_id, epoch) -> FlowReading
    investors  (project_id, investor) -> InvestorYield
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from ..errors import InsufficientData, NotFound, TimingFailure, Unauthorized, ValidationFailure
from ..math import BPS, DAYS_PER_YEAR, U128_MAX, CheckedMath, clamp, in_range, is_u128
from ..types import Address, CallContext, FlowReading, InvestorYield, Project
from .base import Module, operation

# Error codes
ERR_NOT_AUTHORIZED = 100
ERR_PROJECT_NOT_FOUND = 101
ERR_INVALID_FLOW = 102
ERR_INVALID_BASELINE = 103
ERR_INVALID_RATE = 104
ERR_CALCULATION_OVERFLOW = 105
ERR_ORACLE_NOT_SET = 106
ERR_INSUFFICIENT_DATA = 107
ERR_YIELD_NOT_READY = 108
ERR_INVALID_PERIOD = 109

MIN_FLOW, MAX_FLOW = 1, 1_000_000
MIN_BASELINE, MAX_BASELINE = 10, 500_000
MIN_RATE, MAX_RATE = 100, 5000
MIN_PERIOD, MAX_PERIOD = 1, 365

RATIO_SCALE = 100
RATIO_CAP = 300
RATIO_FLOOR = 50
RATE_CEILING = 5000


class YieldCalculator(Module):
    kind = "yield_calculator"

    _math = CheckedMath(ERR_CALCULATION_OVERFLOW)

    def init(
        self,
        ctx: CallContext,
        admin: Optional[Address] = None,
        oracle: Optional[Address] = None,
    ) -> None:
        self.settings.put("admin", admin if admin is not None else ctx.caller)
        if oracle is not None:
            self.settings.put("oracle", oracle)

    # ------------------------------------------------------------------ #
    # Administration
    # ------------------------------------------------------------------ #

    @operation
    def set_oracle(self, ctx: CallContext, new_oracle: Address) -> bool:
        self.require_admin(ctx, ERR_NOT_AUTHORIZED)
        self.settings.put("oracle", new_oracle)
        self.emit("OracleSet", oracle=new_oracle)
        return True

    @operation
    def set_admin(self, ctx: CallContext, new_admin: Address) -> bool:
        self.require_admin(ctx, ERR_NOT_AUTHORIZED)
        self.settings.put("admin", new_admin)
        self.emit("AdminSet", admin=new_admin)
        return True

    @operation
    def set_distribution_ledger(self, ctx: CallContext, ledger: Address) -> bool:
        self.require_admin(ctx, ERR_NOT_AUTHORIZED)
        self.settings.put("distribution_ledger", ledger)
        self.emit("DistributionLedgerSet", ledger=ledger)
        return True

    @operation
    def register_project(
        self,
        ctx: CallContext,
        project_id: int,
        baseline_flow: int,
        base_yield_rate: int,
        period_days: int,
    ) -> bool:
        self.require_admin(ctx, ERR_NOT_AUTHORIZED)
        projects = self.store("projects")
        if project_id in projects:
            raise NotFound(ERR_PROJECT_NOT_FOUND, "PROJECT_NOT_FOUND", f"project {project_id} already registered")
        if not in_range(baseline_flow, MIN_BASELINE, MAX_BASELINE):
            raise ValidationFailure(
                ERR_INVALID_BASELINE, "INVALID_BASELINE", f"baseline must be in [{MIN_BASELINE}, {MAX_BASELINE}]"
            )
        if not in_range(base_yield_rate, MIN_RATE, MAX_RATE):
            raise ValidationFailure(ERR_INVALID_RATE, "INVALID_RATE", f"rate must be in [{MIN_RATE}, {MAX_RATE}] bps")
        if not in_range(period_days, MIN_PERIOD, MAX_PERIOD):
            raise ValidationFailure(
                ERR_INVALID_PERIOD, "INVALID_PERIOD", f"period must be in [{MIN_PERIOD}, {MAX_PERIOD}] days"
            )

        projects.put(
            project_id,
            Project(
                baseline_flow=baseline_flow,
                base_yield_rate=base_yield_rate,
                period_days=period_days,
                start_epoch=ctx.epoch,
            ),
        )
        self.emit(
            "ProjectRegistered",
            project_id=project_id,
            baseline_flow=baseline_flow,
            base_yield_rate=base_yield_rate,
            period_days=period_days,
        )
        return True

    @operation
    def deactivate_project(self, ctx: CallContext, project_id: int) -> bool:
        project = self._project(project_id)
        self.require_admin(ctx, ERR_NOT_AUTHORIZED)
        self.store("projects").put(project_id, replace(project, active=False))
        self.emit("ProjectDeactivated", project_id=project_id)
        return True

    # ------------------------------------------------------------------ #
    # Data intake
    # ------------------------------------------------------------------ #

    @operation
    def submit_flow_reading(self, ctx: CallContext, project_id: int, flow: int) -> bool:
        project = self._project(project_id)
        oracle = self.settings.get("oracle")
        if oracle is None:
            raise Unauthorized(ERR_ORACLE_NOT_SET, "ORACLE_NOT_SET", "no oracle configured")
        if ctx.caller != oracle:
            raise Unauthorized(ERR_NOT_AUTHORIZED, "NOT_AUTHORIZED", "caller is not the designated oracle")
        self._require_active(project_id, project)
        if not in_range(flow, MIN_FLOW, MAX_FLOW):
            raise ValidationFailure(ERR_INVALID_FLOW, "INVALID_FLOW", f"flow must be in [{MIN_FLOW}, {MAX_FLOW}]")

        anchor = self._math.sub(ctx.epoch, 1)
        self.store("readings").put((project_id, anchor), FlowReading(flow=flow, timestamp=ctx.epoch))
        self.emit("FlowRecorded", project_id=project_id, epoch=anchor, flow=flow)
        return True

    @operation
    def record_investment(self, ctx: CallContext, project_id: int, amount: int, investor: Address) -> bool:
        project = self._project(project_id)
        self._require_active(project_id, project)
        if not in_range(amount, 1, U128_MAX):
            raise ValidationFailure(ERR_INVALID_FLOW, "INVALID_AMOUNT", "investment amount must be positive")

        m = self._math
        self.store("projects").put(project_id, replace(project, total_invested=m.add(project.total_invested, amount)))
        investors = self.store("investors")
        key = (project_id, investor)
        record = investors.get(key)
        if record is None:
            record = InvestorYield(invested=amount, claimed=0, last_claim_epoch=ctx.epoch)
        else:
            record = replace(record, invested=m.add(record.invested, amount))
        investors.put(key, record)
        self.emit("InvestmentRecorded", project_id=project_id, investor=investor, amount=amount)
        return True

    # ------------------------------------------------------------------ #
    # Rates & claims
    # ------------------------------------------------------------------ #

    @operation(readonly=True)
    def calculate_current_yield_rate(self, ctx: CallContext, project_id: int) -> int:
        project = self._project(project_id)
        return self._current_rate(ctx, project_id, project)

    @operation(readonly=True)
    def estimate_yield(self, ctx: CallContext, project_id: int, investment: int, days: int) -> int:
        project = self._project(project_id)
        _require_amount(investment, "investment")
        if not is_u128(days):
            raise ValidationFailure(ERR_INVALID_PERIOD, "INVALID_PERIOD", "days must be a non-negative integer")
        rate = self._current_rate(ctx, project_id, project)
        m = self._math
        annual = m.mul_div(investment, rate, BPS)
        daily = annual // DAYS_PER_YEAR
        return m.mul(daily, days)

    @operation
    def claim_yield(self, ctx: CallContext, project_id: int, investor: Address, investment_amount: int) -> int:
        """
        Compute and record the investor's due amount for this period.

        Only the investor may claim, and only against what it has recorded
        through `record_investment`; when a distribution ledger is wired the
        due amount is posted there.
        """
        project = self._project(project_id)
        if ctx.caller != investor:
            raise Unauthorized(ERR_NOT_AUTHORIZED, "NOT_AUTHORIZED", "only the investor may claim its yield")
        _require_amount(investment_amount, "investment_amount")

        m = self._math
        investors = self.store("investors")
        key = (project_id, investor)
        record = investors.get(key)
        since = record.last_claim_epoch if record is not None else project.start_epoch

        period = m.mul(project.period_days, self.config.limits.epochs_per_day)
        elapsed = m.sub(ctx.epoch, since)
        if elapsed < period:
            raise TimingFailure(
                ERR_YIELD_NOT_READY, "YIELD_NOT_READY", f"claim period not elapsed ({elapsed}/{period} epochs)",
                data={"elapsed": elapsed, "period": period},
            )

        rate = self._current_rate(ctx, project_id, project)
        if project.total_invested == 0:
            return 0
        if record is None:
            raise NotFound(
                ERR_PROJECT_NOT_FOUND,
                "INVESTOR_NOT_FOUND",
                f"no investment recorded for {investor!r} in project {project_id}",
            )
        if investment_amount > record.invested:
            raise ValidationFailure(
                ERR_INVALID_FLOW, "INVALID_AMOUNT", "investment amount exceeds the recorded investment",
                data={"investment_amount": investment_amount, "invested": record.invested},
            )

        share = m.mul_div(investment_amount, rate, project.total_invested)
        due = m.sub(share, record.claimed)

        investors.put(key, replace(record, claimed=share, last_claim_epoch=ctx.epoch))
        self.store("projects").put(
            project_id,
            replace(project, accumulated_yield=m.add(project.accumulated_yield, due), last_calc_epoch=ctx.epoch),
        )
        self.emit("YieldClaimed", project_id=project_id, investor=investor, rate=rate, share=share, due=due)

        ledger = self.settings.get("distribution_ledger")
        if due > 0 and ledger is not None and self.config.features.post_claims:
            ctx.call(ledger, "record_yield_for_investor", project_id, investor, due)
        return due

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @operation(readonly=True)
    def get_project(self, ctx: CallContext, project_id: int) -> Optional[Project]:
        return self.store("projects").get(project_id)

    @operation(readonly=True)
    def get_flow_reading(self, ctx: CallContext, project_id: int, epoch: int) -> Optional[FlowReading]:
        return self.store("readings").get((project_id, epoch))

    @operation(readonly=True)
    def get_investor_yield(self, ctx: CallContext, project_id: int, investor: Address) -> Optional[InvestorYield]:
        return self.store("investors").get((project_id, investor))

    @operation(readonly=True)
    def get_oracle(self, ctx: CallContext) -> Optional[Address]:
        return self.settings.get("oracle")

    @operation(readonly=True)
    def get_admin(self, ctx: CallContext) -> Optional[Address]:
        return self.settings.get("admin")

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _project(self, project_id: int) -> Project:
        project = self.store("projects").get(project_id)
        if project is None:
            raise NotFound(ERR_PROJECT_NOT_FOUND, "PROJECT_NOT_FOUND", f"unknown project {project_id}")
        return project

    @staticmethod
    def _require_active(project_id: int, project: Project) -> None:
        if not project.active:
            raise NotFound(ERR_PROJECT_NOT_FOUND, "PROJECT_NOT_FOUND", f"project {project_id} is inactive")

    def _current_rate(self, ctx: CallContext, project_id: int, project: Project) -> int:
        m = self._math
        reading = self.store("readings").get((project_id, m.sub(ctx.epoch, 1)))
        if reading is None:
            raise InsufficientData(
                ERR_INSUFFICIENT_DATA, "INSUFFICIENT_DATA", f"no flow reading for project {project_id}"
            )
        return compute_yield_rate(reading.flow, project.baseline_flow, project.base_yield_rate, m)


def _require_amount(value: int, name: str) -> None:
    if not is_u128(value):
        raise ValidationFailure(ERR_INVALID_FLOW, "INVALID_AMOUNT", f"{name} must be a non-negative integer")


def compute_yield_rate(flow: int, baseline: int, base_rate: int, m: Optional[CheckedMath] = None) -> int:
    """Flow-indexed rate in bps, clamped as described in the module docstring."""
    m = m or YieldCalculator._math
    ratio = clamp(m.mul_div(flow, RATIO_SCALE, baseline), RATIO_FLOOR, RATIO_CAP)
    return min(m.mul(base_rate, ratio), RATE_CEILING)


__all__ = ["YieldCalculator", "compute_yield_rate"]
