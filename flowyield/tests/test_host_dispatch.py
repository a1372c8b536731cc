from __future__ import annotations

import pytest

from flowyield.contracts import Module, OracleIngest, operation
from flowyield.errors import ErrorKind, ValidationFailure
from flowyield.runtime import Host, normalize_operation_name
from flowyield.types import CallStatus

from .conftest import ADMIN, HASH, MALLORY, REPORTER, START_EPOCH


class Scratch(Module):
    """Test module: writes, then fails in configurable ways."""

    kind = "scratch"

    def init(self, ctx, **kwargs):
        self.settings.put("admin", ctx.caller)

    @operation
    def write(self, ctx, key, value):
        self.store("kv").put(key, value)
        self.emit("Written", key=key, value=value)
        return value

    @operation
    def write_then_fail(self, ctx, key, value):
        self.write(ctx, key, value)
        raise ValidationFailure(1, "NOPE")

    @operation
    def write_then_crash(self, ctx, key, value):
        self.write(ctx, key, value)
        raise RuntimeError("bug")

    @operation
    def forward(self, ctx, target, method, *args):
        self.write(ctx, "forwarded", method)
        return ctx.call(target, method, *args)

    @operation(readonly=True)
    def read(self, ctx, key):
        return self.store("kv").get(key)

    def helper(self, ctx):
        return "not exported"


@pytest.fixture
def scratch(host):
    host.deploy("scratch", Scratch, deployer=ADMIN)
    return "scratch"


# -----------------------------------------------------------------------------
# Name resolution
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("submitFlow", "submit_flow"),
        ("submit_flow", "submit_flow"),
        ("calculateCurrentYieldRate", "calculate_current_yield_rate"),
        ("claim-pending-yield", "claim_pending_yield"),
    ],
)
def test_normalize_operation_name(raw, expected):
    assert normalize_operation_name(raw) == expected


def test_snake_and_camel_names_reach_the_same_operation(host, scratch):
    assert host.call(ADMIN, scratch, "write", "a", 1).ok
    assert host.view(scratch, "read", "a").value == 1
    assert host.call(ADMIN, scratch, "writeThenFail", "a", 2).code == 1


@pytest.mark.parametrize("method", ["helper", "init", "store", "_journal", "nope", ""])
def test_non_operations_are_unknown(host, scratch, method):
    res = host.call(ADMIN, scratch, method)
    assert res.kind is ErrorKind.NOT_FOUND and res.code == 404
    assert res.error.reason == "UNKNOWN_OPERATION"


def test_unknown_module(host):
    res = host.call(ADMIN, "nowhere", "write", "a", 1)
    assert res.kind is ErrorKind.NOT_FOUND and res.error.reason == "UNKNOWN_MODULE"


def test_bad_arguments_are_a_validation_result(host, scratch):
    res = host.call(ADMIN, scratch, "write", "only-key")
    assert res.kind is ErrorKind.VALIDATION and res.code == 400
    res = host.call(ADMIN, scratch, "write", "k", 1, unexpected=True)
    assert res.code == 400


# -----------------------------------------------------------------------------
# Atomicity
# -----------------------------------------------------------------------------


def test_success_commits_and_returns_events(host, scratch):
    res = host.call(ADMIN, scratch, "write", "k", 7)
    assert res.status is CallStatus.SUCCESS and res.value == 7
    assert res.epoch == START_EPOCH
    assert len(res.logs) == 1 and res.logs[0].emitter == scratch
    assert res.logs[0].get("value") == 7


def test_failure_reverts_writes_and_events(host, scratch):
    root = host.state_root()
    res = host.call(ADMIN, scratch, "writeThenFail", "k", 7)
    assert res.status is CallStatus.REVERT and res.logs == ()
    assert res.value is None
    assert host.view(scratch, "read", "k").value is None
    assert host.state_root() == root
    assert len(host.events) == 0


def test_unexpected_exception_reverts_and_propagates(host, scratch):
    root = host.state_root()
    with pytest.raises(RuntimeError):
        host.call(ADMIN, scratch, "writeThenCrash", "k", 7)
    assert host.journal.depth() == 0
    assert host.state_root() == root
    assert host.call(ADMIN, scratch, "write", "k", 8).ok


def test_nested_failure_fails_the_outer_call(host, scratch):
    host.deploy("other", Scratch, deployer=ADMIN)
    res = host.call(ADMIN, scratch, "forward", "other", "write_then_fail", "x", 1)
    assert res.code == 1
    assert host.view(scratch, "read", "forwarded").value is None
    assert host.view("other", "read", "x").value is None


def test_nested_success_sees_module_as_caller(host, scratch):
    host.deploy("ingest", OracleIngest, deployer=scratch)
    res = host.call(MALLORY, scratch, "forward", "ingest", "registerOracle", REPORTER)
    assert res.ok
    assert res.event_names() == ("Written", "OracleRegistered")
    assert host.view("ingest", "isOracle", REPORTER).value is True


def test_view_discards_writes(host, scratch):
    res = host.view(scratch, "write", "k", 9, sender=ADMIN)
    assert res.ok and res.value == 9 and res.logs == ()
    assert host.view(scratch, "read", "k").value is None


def test_readonly_operation_through_call_writes_nothing(host, oracle):
    host.call(ADMIN, oracle, "registerOracle", REPORTER)
    host.call(ADMIN, oracle, "registerProjectSource", 1, HASH)
    root = host.state_root()
    res = host.call(MALLORY, oracle, "getProjectSource", 1)
    assert res.ok and res.value.source_hash == HASH
    assert host.state_root() == root


def test_unwrap_reraises(host, scratch):
    res = host.call(ADMIN, scratch, "writeThenFail", "k", 1)
    with pytest.raises(ValidationFailure):
        res.unwrap()
    assert res.to_dict()["error"]["reason"] == "NOPE"


# -----------------------------------------------------------------------------
# Clock & deployment
# -----------------------------------------------------------------------------


def test_clock_only_moves_forward(host):
    assert host.advance(3) == START_EPOCH + 3
    assert host.advance_to(START_EPOCH + 10) == START_EPOCH + 10
    with pytest.raises(ValueError):
        host.advance_to(START_EPOCH)
    with pytest.raises(ValueError):
        host.advance(-1)


def test_duplicate_deploy_rejected(host, scratch):
    with pytest.raises(ValueError):
        host.deploy(scratch, Scratch, deployer=ADMIN)


def test_deploy_by_kind_name(host):
    module = host.deploy("ingest", "oracle_ingest", deployer=ADMIN)
    assert isinstance(module, OracleIngest)
    assert host.deployments == {"ingest": "oracle_ingest"}
    assert host.view("ingest", "getAdmin").value == ADMIN


def test_negative_epoch_rejected():
    with pytest.raises(ValueError):
        Host(epoch=-1)


def test_result_helpers(host, scratch):
    from flowyield.errors import error_to_result_fields
    from flowyield.types import LogEvent

    ok = host.call(ADMIN, scratch, "write", "k", 3)
    assert LogEvent.from_dict(ok.logs[0].to_dict()) == ok.logs[0]
    assert CallStatus.from_str("ok") is CallStatus.SUCCESS
    assert CallStatus.from_str("failed") is CallStatus.REVERT
    with pytest.raises(ValueError):
        CallStatus.from_str("maybe")

    bad = host.call(ADMIN, scratch, "writeThenFail", "k", 4)
    fields = error_to_result_fields(bad.error)
    assert fields["status"] == "revert" and fields["error"]["kind"] == "validation"
