from __future__ import annotations

import pytest

from flowyield.contracts import YieldCalculator, compute_yield_rate
from flowyield.errors import ErrorKind
from flowyield.types import FlowReading, InvestorYield

from .conftest import ADMIN, ALICE, BOB, MALLORY, ORACLE, START_EPOCH

DAY = 144


def _register(host, calc, project=1, baseline=100, rate=500, period=1):
    res = host.call(ADMIN, calc, "registerProject", project, baseline, rate, period)
    assert res.ok, res
    return project


def _reading(host, calc, flow=120, project=1):
    res = host.call(ORACLE, calc, "submitFlowReading", project, flow)
    assert res.ok, res


# -----------------------------------------------------------------------------
# Rate formula
# -----------------------------------------------------------------------------


def test_rate_example_hits_ceiling(host, calc):
    _register(host, calc, baseline=100, rate=500, period=30)
    _reading(host, calc, 120)
    assert host.view(calc, "calculateCurrentYieldRate", 1).value == 5000


@pytest.mark.parametrize(
    "flow, baseline, base_rate",
    [
        (1, 500_000, 100),
        (10, 10, 100),
        (1_000_000, 10, 5000),
        (49, 100, 100),
        (100, 100, 100),
    ],
)
def test_rate_is_always_ceiling_for_valid_inputs(flow, baseline, base_rate):
    assert compute_yield_rate(flow, baseline, base_rate) == 5000


def test_rate_clamps_below_ceiling():
    # Below the valid base-rate range the clamps themselves become visible.
    assert compute_yield_rate(10, 100, 1) == 50
    assert compute_yield_rate(100, 100, 1) == 100
    assert compute_yield_rate(900, 100, 1) == 300


def test_rate_needs_reading_for_previous_epoch(host, calc):
    _register(host, calc)
    res = host.view(calc, "calculateCurrentYieldRate", 1)
    assert res.kind is ErrorKind.INSUFFICIENT_DATA and res.code == 107

    _reading(host, calc)
    host.advance()
    assert host.view(calc, "calculateCurrentYieldRate", 1).code == 107


def test_estimate_yield(host, calc):
    _register(host, calc, period=30)
    _reading(host, calc)
    # annual = 1_000_000 * 5000 // 10_000; daily = annual // 365
    assert host.view(calc, "estimateYield", 1, 1_000_000, 30).value == (500_000 // 365) * 30


@pytest.mark.parametrize(
    "investment, days, code",
    [(-1, 30, 102), (True, 30, 102), (1.5, 30, 102), (1000, -1, 109), (1000, "30", 109)],
)
def test_estimate_yield_rejects_bad_numbers(host, calc, investment, days, code):
    _register(host, calc)
    _reading(host, calc)
    res = host.view(calc, "estimateYield", 1, investment, days)
    assert res.kind is ErrorKind.VALIDATION and res.code == code


# -----------------------------------------------------------------------------
# Registration
# -----------------------------------------------------------------------------


def test_register_project_records_start_epoch(host, calc):
    res = host.call(ADMIN, calc, "registerProject", 7, 1000, 800, 90)
    assert res.ok and res.event_names() == ("ProjectRegistered",)
    project = host.view(calc, "getProject", 7).value
    assert project.start_epoch == START_EPOCH
    assert project.total_invested == 0 and project.active


def test_register_requires_admin(host, calc):
    res = host.call(MALLORY, calc, "registerProject", 1, 100, 500, 30)
    assert res.kind is ErrorKind.AUTHORIZATION and res.code == 100


def test_duplicate_project_fails_without_mutation(host, calc):
    _register(host, calc, baseline=100)
    root = host.state_root()
    res = host.call(ADMIN, calc, "registerProject", 1, 200, 600, 10)
    assert res.kind is ErrorKind.NOT_FOUND and res.code == 101
    assert host.state_root() == root
    assert host.view(calc, "getProject", 1).value.baseline_flow == 100


@pytest.mark.parametrize(
    "baseline, rate, period, code",
    [
        (9, 500, 30, 103),
        (500_001, 500, 30, 103),
        (100, 99, 30, 104),
        (100, 5001, 30, 104),
        (100, 500, 0, 109),
        (100, 500, 366, 109),
    ],
)
def test_register_bounds(host, calc, baseline, rate, period, code):
    res = host.call(ADMIN, calc, "registerProject", 1, baseline, rate, period)
    assert res.kind is ErrorKind.VALIDATION and res.code == code
    assert host.view(calc, "getProject", 1).value is None


# -----------------------------------------------------------------------------
# Flow readings
# -----------------------------------------------------------------------------


def test_flow_reading_stored_at_previous_epoch(host, calc):
    _register(host, calc)
    _reading(host, calc, 321)
    assert host.view(calc, "getFlowReading", 1, START_EPOCH - 1).value == FlowReading(flow=321, timestamp=START_EPOCH)


def test_flow_reading_requires_designated_oracle(host, calc):
    _register(host, calc)
    res = host.call(MALLORY, calc, "submitFlowReading", 1, 120)
    assert res.kind is ErrorKind.AUTHORIZATION and res.code == 100


def test_flow_reading_without_oracle_configured(host):
    host.deploy("bare", YieldCalculator, deployer=ADMIN)
    _register(host, "bare")
    res = host.call(ORACLE, "bare", "submitFlowReading", 1, 120)
    assert res.kind is ErrorKind.AUTHORIZATION and res.code == 106


@pytest.mark.parametrize("flow", [0, 1_000_001])
def test_flow_reading_bounds(host, calc, flow):
    _register(host, calc)
    res = host.call(ORACLE, calc, "submitFlowReading", 1, flow)
    assert res.kind is ErrorKind.VALIDATION and res.code == 102


def test_deactivated_project_rejects_readings_and_investments(host, calc):
    _register(host, calc)
    assert host.call(ADMIN, calc, "deactivateProject", 1).ok
    assert host.call(ORACLE, calc, "submitFlowReading", 1, 120).code == 101
    assert host.call(ALICE, calc, "recordInvestment", 1, 500, ALICE).code == 101


# -----------------------------------------------------------------------------
# Investments & claims
# -----------------------------------------------------------------------------


def test_record_investment(host, calc):
    _register(host, calc)
    assert host.call(ALICE, calc, "recordInvestment", 1, 1000, ALICE).ok
    assert host.call(BOB, calc, "recordInvestment", 1, 3000, BOB).ok
    assert host.view(calc, "getProject", 1).value.total_invested == 4000
    assert host.view(calc, "getInvestorYield", 1, ALICE).value == InvestorYield(
        invested=1000, claimed=0, last_claim_epoch=START_EPOCH
    )


def test_record_investment_rejects_zero(host, calc):
    _register(host, calc)
    res = host.call(ALICE, calc, "recordInvestment", 1, 0, ALICE)
    assert res.kind is ErrorKind.VALIDATION and res.code == 102


def test_repeat_investment_keeps_claim_clock(host, calc):
    _register(host, calc)
    host.call(ALICE, calc, "recordInvestment", 1, 1000, ALICE)
    host.advance(50)
    host.call(ALICE, calc, "recordInvestment", 1, 1000, ALICE)
    record = host.view(calc, "getInvestorYield", 1, ALICE).value
    assert record.last_claim_epoch == START_EPOCH and record.invested == 2000


def test_claim_boundary_is_exact(host, calc):
    _register(host, calc, period=1)
    host.call(ALICE, calc, "recordInvestment", 1, 1000, ALICE)

    host.advance_to(START_EPOCH + DAY - 1)
    _reading(host, calc)
    early = host.call(ALICE, calc, "claimYield", 1, ALICE, 1000)
    assert early.kind is ErrorKind.TIMING and early.code == 108

    host.advance_to(START_EPOCH + DAY)
    _reading(host, calc)
    res = host.call(ALICE, calc, "claimYield", 1, ALICE, 1000)
    assert res.ok and res.value == 5000
    assert res.event_names() == ("YieldClaimed",)

    project = host.view(calc, "getProject", 1).value
    assert project.accumulated_yield == 5000 and project.last_calc_epoch == START_EPOCH + DAY
    assert host.view(calc, "getInvestorYield", 1, ALICE).value == InvestorYield(
        invested=1000, claimed=5000, last_claim_epoch=START_EPOCH + DAY
    )


def test_claim_without_reading_fails(host, calc):
    _register(host, calc)
    host.call(ALICE, calc, "recordInvestment", 1, 1000, ALICE)
    host.advance(DAY)
    res = host.call(ALICE, calc, "claimYield", 1, ALICE, 1000)
    assert res.kind is ErrorKind.INSUFFICIENT_DATA and res.code == 107


def test_claim_with_nothing_invested_returns_zero(host, calc):
    _register(host, calc)
    host.advance(DAY)
    _reading(host, calc)
    res = host.call(ALICE, calc, "claimYield", 1, ALICE, 1000)
    assert res.ok and res.value == 0 and res.logs == ()
    assert host.view(calc, "getInvestorYield", 1, ALICE).value is None


def test_second_claim_with_same_entitlement_is_zero(host, calc):
    _register(host, calc)
    host.call(ALICE, calc, "recordInvestment", 1, 1000, ALICE)
    host.advance(DAY)
    _reading(host, calc)
    assert host.call(ALICE, calc, "claimYield", 1, ALICE, 1000).value == 5000

    host.advance(DAY)
    _reading(host, calc)
    assert host.call(ALICE, calc, "claimYield", 1, ALICE, 1000).value == 0


def test_claim_is_investor_only(host, calc):
    _register(host, calc)
    host.call(ALICE, calc, "recordInvestment", 1, 1000, ALICE)
    host.advance(DAY)
    _reading(host, calc)
    res = host.call(MALLORY, calc, "claimYield", 1, ALICE, 1000)
    assert res.kind is ErrorKind.AUTHORIZATION and res.code == 100
    assert host.view(calc, "getInvestorYield", 1, ALICE).value.claimed == 0


def test_claim_without_investment_record_is_not_found(host, calc):
    _register(host, calc)
    host.call(ALICE, calc, "recordInvestment", 1, 1000, ALICE)
    host.advance(DAY)
    _reading(host, calc)
    res = host.call(MALLORY, calc, "claimYield", 1, MALLORY, 2000)
    assert res.kind is ErrorKind.NOT_FOUND and res.code == 101
    assert res.error.reason == "INVESTOR_NOT_FOUND"
    assert host.view(calc, "getInvestorYield", 1, MALLORY).value is None
    assert host.view(calc, "getProject", 1).value.accumulated_yield == 0


def test_claim_above_recorded_investment_is_rejected(host, calc):
    _register(host, calc)
    host.call(ALICE, calc, "recordInvestment", 1, 1000, ALICE)
    host.advance(DAY)
    _reading(host, calc)
    res = host.call(ALICE, calc, "claimYield", 1, ALICE, 1001)
    assert res.kind is ErrorKind.VALIDATION and res.code == 102
    assert host.call(ALICE, calc, "claimYield", 1, ALICE, 500).value == 2500


@pytest.mark.parametrize("amount", [-1, True, "1000", None])
def test_claim_rejects_malformed_amount(host, calc, amount):
    _register(host, calc)
    host.call(ALICE, calc, "recordInvestment", 1, 1000, ALICE)
    host.advance(DAY)
    _reading(host, calc)
    res = host.call(ALICE, calc, "claimYield", 1, ALICE, amount)
    assert res.kind is ErrorKind.VALIDATION and res.code == 102


def test_shrinking_entitlement_is_an_arithmetic_failure(host, calc):
    _register(host, calc)
    host.call(ALICE, calc, "recordInvestment", 1, 1000, ALICE)
    host.advance(DAY)
    _reading(host, calc)
    assert host.call(ALICE, calc, "claimYield", 1, ALICE, 1000).value == 5000

    host.call(BOB, calc, "recordInvestment", 1, 1000, BOB)
    host.advance(DAY)
    _reading(host, calc)
    res = host.call(ALICE, calc, "claimYield", 1, ALICE, 1000)
    assert res.kind is ErrorKind.ARITHMETIC and res.code == 105
    assert host.view(calc, "getInvestorYield", 1, ALICE).value.claimed == 5000


def test_set_oracle_requires_admin(host, calc):
    assert host.call(MALLORY, calc, "setOracle", MALLORY).code == 100
    assert host.call(ADMIN, calc, "setOracle", MALLORY).ok
    assert host.view(calc, "getOracle").value == MALLORY
