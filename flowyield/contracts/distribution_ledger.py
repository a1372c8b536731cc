"""
flowyield.contracts.distribution_ledger — pooled funds and investor payouts.

Holds a pooled balance per project, accepts yield postings from the configured
Yield Calculator, and pays investor claims out of the module's aggregate
balance with double-claim protection: a claim zeroes `pending_yield` in the
same atomic step that moves the funds, so an immediate repeat claim finds
nothing to pay.

Administration belongs to the treasury identity; `set_treasury` hands it over.
`trigger_distribution` is a timing gate only and never moves funds.

Stores
------
    config     treasury, yield_calculator, distribution_active,
               contract_balance, total_distributed, last_distribution_epoch
    pools      project_id -> ProjectPool
    claims     (project_id, investor) -> InvestorClaim
    history    (project_id, epoch) -> DistributionHistory
    investors  project_id -> number of investors with a claim record
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from ..errors import InsufficientBalance, NotFound, TimingFailure, Unauthorized, ValidationFailure
from ..math import CheckedMath
from ..types import Address, CallContext, DistributionHistory, InvestorClaim, ProjectPool
from .base import Module, operation

# Error codes
ERR_NOT_AUTHORIZED = 100
ERR_PROJECT_NOT_FOUND = 101
ERR_INSUFFICIENT_BALANCE = 103
ERR_ALREADY_CLAIMED = 105
ERR_INVALID_AMOUNT = 106
ERR_DISTRIBUTION_LOCKED = 107
ERR_ARITHMETIC = 110


def _locked(message: str) -> TimingFailure:
    return TimingFailure(ERR_DISTRIBUTION_LOCKED, "DISTRIBUTION_LOCKED", message)


class DistributionLedger(Module):
    kind = "distribution_ledger"

    _math = CheckedMath(ERR_ARITHMETIC)

    def init(
        self,
        ctx: CallContext,
        treasury: Optional[Address] = None,
        yield_calculator: Optional[Address] = None,
    ) -> None:
        s = self.settings
        s.put("treasury", treasury if treasury is not None else ctx.caller)
        if yield_calculator is not None:
            s.put("yield_calculator", yield_calculator)
        s.put("distribution_active", True)
        s.put("contract_balance", 0)
        s.put("total_distributed", 0)
        s.put("last_distribution_epoch", 0)

    # ------------------------------------------------------------------ #
    # Administration
    # ------------------------------------------------------------------ #

    def _require_treasury(self, ctx: CallContext) -> None:
        self.require_caller(
            ctx,
            self.settings.get("treasury"),
            Unauthorized(ERR_NOT_AUTHORIZED, "NOT_AUTHORIZED", "caller is not the treasury"),
        )

    @operation
    def set_yield_calculator(self, ctx: CallContext, calculator: Address) -> bool:
        self._require_treasury(ctx)
        self.settings.put("yield_calculator", calculator)
        self.emit("YieldCalculatorSet", calculator=calculator)
        return True

    @operation
    def set_treasury(self, ctx: CallContext, new_treasury: Address) -> bool:
        self._require_treasury(ctx)
        self.settings.put("treasury", new_treasury)
        self.emit("TreasurySet", treasury=new_treasury)
        return True

    @operation
    def toggle_distribution(self, ctx: CallContext, active: bool) -> bool:
        self._require_treasury(ctx)
        self.settings.put("distribution_active", bool(active))
        self.emit("DistributionToggled", active=bool(active))
        return True

    @operation
    def set_pool_lock(self, ctx: CallContext, project_id: int, locked: bool) -> bool:
        self._require_treasury(ctx)
        pool = self._pool(project_id)
        self.store("pools").put(project_id, replace(pool, locked=bool(locked)))
        self.emit("PoolLockSet", project_id=project_id, locked=bool(locked))
        return True

    # ------------------------------------------------------------------ #
    # Funding & timing
    # ------------------------------------------------------------------ #

    @operation
    def deposit_yield_pool(self, ctx: CallContext, project_id: int, amount: int) -> bool:
        self._require_treasury(ctx)
        minimum = self.config.limits.min_deposit
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < minimum:
            raise ValidationFailure(ERR_INVALID_AMOUNT, "INVALID_AMOUNT", f"deposit must be at least {minimum}")
        pools = self.store("pools")
        pool = pools.get(project_id) or ProjectPool()
        if pool.locked:
            raise _locked(f"pool {project_id} is locked")

        m = self._math
        self.settings.put("contract_balance", m.add(self.settings.get("contract_balance", 0), amount))
        pools.put(project_id, replace(pool, total_yield_pool=m.add(pool.total_yield_pool, amount)))
        self.emit("PoolDeposited", project_id=project_id, amount=amount)
        return True

    @operation
    def trigger_distribution(self, ctx: CallContext, project_id: int) -> bool:
        pool = self._pool(project_id)
        if not self.settings.get("distribution_active", True):
            raise _locked("distribution is globally inactive")
        if pool.locked:
            raise _locked(f"pool {project_id} is locked")
        interval = self.config.limits.distribution_interval
        if self._math.sub(ctx.epoch, pool.last_distribution) < interval:
            raise TimingFailure(
                ERR_ALREADY_CLAIMED, "ALREADY_CLAIMED", f"distribution triggered within {interval} epochs",
                data={"last_distribution": pool.last_distribution},
            )

        self.store("pools").put(project_id, replace(pool, last_distribution=ctx.epoch))
        self.settings.put("last_distribution_epoch", ctx.epoch)
        self.store("history").put(
            (project_id, ctx.epoch),
            DistributionHistory(
                total_yield=pool.outstanding,
                investors_count=self.store("investors").get(project_id, 0),
                timestamp=ctx.epoch,
            ),
        )
        self.emit("DistributionTriggered", project_id=project_id, epoch=ctx.epoch)
        return True

    # ------------------------------------------------------------------ #
    # Postings & claims
    # ------------------------------------------------------------------ #

    @operation
    def record_yield_for_investor(self, ctx: CallContext, project_id: int, investor: Address, amount: int) -> bool:
        self.require_caller(
            ctx,
            self.settings.get("yield_calculator"),
            Unauthorized(ERR_NOT_AUTHORIZED, "NOT_AUTHORIZED", "caller is not the yield calculator"),
        )
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationFailure(ERR_INVALID_AMOUNT, "INVALID_AMOUNT", "posting amount must be positive")

        claims = self.store("claims")
        key = (project_id, investor)
        claim = claims.get(key)
        if claim is None:
            claim = InvestorClaim()
            counts = self.store("investors")
            counts.put(project_id, counts.get(project_id, 0) + 1)
        claims.put(key, replace(claim, pending_yield=self._math.add(claim.pending_yield, amount)))
        self.emit("YieldPosted", project_id=project_id, investor=investor, amount=amount)
        return True

    @operation
    def claim_pending_yield(self, ctx: CallContext, project_id: int, investor: Address) -> int:
        claims = self.store("claims")
        key = (project_id, investor)
        claim = claims.get(key)
        if claim is None or claim.pending_yield == 0:
            raise InsufficientBalance(ERR_INSUFFICIENT_BALANCE, "INSUFFICIENT_BALANCE", "nothing pending")
        amount = claim.pending_yield
        balance = self.settings.get("contract_balance", 0)
        if amount > balance:
            raise InsufficientBalance(
                ERR_INSUFFICIENT_BALANCE, "INSUFFICIENT_BALANCE", "pending yield exceeds ledger balance",
                data={"pending": amount, "balance": balance},
            )

        m = self._math
        self.settings.put("contract_balance", m.sub(balance, amount))
        self.settings.put("total_distributed", m.add(self.settings.get("total_distributed", 0), amount))
        claims.put(
            key,
            InvestorClaim(
                pending_yield=0,
                last_claim_epoch=ctx.epoch,
                claimed_total=m.add(claim.claimed_total, amount),
            ),
        )
        pools = self.store("pools")
        pool = pools.get(project_id)
        if pool is not None:
            pools.put(project_id, replace(pool, claimed_total=m.add(pool.claimed_total, amount)))
        self.emit("YieldPaid", project_id=project_id, investor=investor, amount=amount)
        return amount

    @operation
    def emergency_withdraw(self, ctx: CallContext, amount: int) -> bool:
        """Unconditional sink that bypasses per-project accounting."""
        self._require_treasury(ctx)
        balance = self.settings.get("contract_balance", 0)
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValidationFailure(ERR_INVALID_AMOUNT, "INVALID_AMOUNT", "withdrawal must be a non-negative int")
        if balance < amount:
            raise InsufficientBalance(
                ERR_INSUFFICIENT_BALANCE, "INSUFFICIENT_BALANCE", "withdrawal exceeds ledger balance",
                data={"amount": amount, "balance": balance},
            )
        self.settings.put("contract_balance", balance - amount)
        self.emit("EmergencyWithdrawal", amount=amount, treasury=ctx.caller)
        self.log.warning("emergency withdrawal", extra={"amount": amount, "remaining": balance - amount})
        return True

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @operation(readonly=True)
    def estimate_pending_yield(self, ctx: CallContext, project_id: int, investor: Address) -> int:
        claim = self.store("claims").get((project_id, investor))
        return claim.pending_yield if claim is not None else 0

    @operation(readonly=True)
    def get_pool(self, ctx: CallContext, project_id: int) -> Optional[ProjectPool]:
        return self.store("pools").get(project_id)

    @operation(readonly=True)
    def get_investor_claim(self, ctx: CallContext, project_id: int, investor: Address) -> Optional[InvestorClaim]:
        return self.store("claims").get((project_id, investor))

    @operation(readonly=True)
    def get_contract_balance(self, ctx: CallContext) -> int:
        return self.settings.get("contract_balance", 0)

    @operation(readonly=True)
    def get_total_distributed(self, ctx: CallContext) -> int:
        return self.settings.get("total_distributed", 0)

    @operation(readonly=True)
    def get_distribution_history(self, ctx: CallContext, project_id: int, epoch: int) -> Optional[DistributionHistory]:
        return self.store("history").get((project_id, epoch))

    @operation(readonly=True)
    def is_distribution_active(self, ctx: CallContext) -> bool:
        return bool(self.settings.get("distribution_active", True))

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _pool(self, project_id: int) -> ProjectPool:
        pool = self.store("pools").get(project_id)
        if pool is None:
            raise NotFound(ERR_PROJECT_NOT_FOUND, "PROJECT_NOT_FOUND", f"no pool for project {project_id}")
        return pool


__all__ = ["DistributionLedger"]
