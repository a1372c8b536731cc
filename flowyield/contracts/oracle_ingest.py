"""
flowyield.contracts.oracle_ingest — trusted flow-measurement intake.

Registers a data source per project and accepts flow submissions from a set of
authorized reporters. A submission is accepted only if:

* the project has a registered source and the caller is a registered oracle,
* the flow lies in [1, 1_000_000],
* the submitted source hash equals the registered one (a tamper check, not a
  cryptographic proof),
* the timestamp is nonzero and not in the future,
* at least `min_report_interval` epochs separate this reading's anchor epoch
  from the previous one,
* the timestamp lags the current epoch by at most `max_staleness` epochs.

An accepted reading is anchored to `epoch - 1`: it describes the epoch that just
closed, whatever the submission latency. When a yield calculator is configured
and tracks the project as active, the flow is relayed to it in the same atomic
call; a relay the calculator rejects fails the whole submission.

Stores
------
    config    admin, yield_calculator
    oracles   identity -> True
    sources   project_id -> ProjectSource
    flows     (project_id, epoch) -> FlowData
    latest    project_id -> int
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional

from ..errors import NotFound, TimingFailure, Unauthorized, ValidationFailure
from ..math import CheckedMath, in_range
from ..types import Address, CallContext, FlowData, ProjectSource
from .base import Module, operation

# Error codes
ERR_NOT_AUTHORIZED = 100
ERR_PROJECT_NOT_FOUND = 101
ERR_INVALID_FLOW = 102
ERR_ORACLE_EXISTS = 103
ERR_INVALID_TIMESTAMP = 104
ERR_TOO_FREQUENT = 105
ERR_INVALID_SOURCE = 106
ERR_DATA_STALE = 108
ERR_ARITHMETIC = 110

MIN_FLOW = 1
MAX_FLOW = 1_000_000
SOURCE_HASH_LEN = 32


def _source_hash(value: Any) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise ValidationFailure(ERR_INVALID_SOURCE, "INVALID_SOURCE", "source hash must be bytes")
    b = bytes(value)
    if len(b) != SOURCE_HASH_LEN:
        raise ValidationFailure(
            ERR_INVALID_SOURCE,
            "INVALID_SOURCE",
            f"source hash must be exactly {SOURCE_HASH_LEN} bytes (got {len(b)})",
        )
    return b


class OracleIngest(Module):
    kind = "oracle_ingest"

    _math = CheckedMath(ERR_ARITHMETIC)

    def init(
        self,
        ctx: CallContext,
        admin: Optional[Address] = None,
        yield_calculator: Optional[Address] = None,
    ) -> None:
        self.settings.put("admin", admin if admin is not None else ctx.caller)
        if yield_calculator is not None:
            self.settings.put("yield_calculator", yield_calculator)

    # ------------------------------------------------------------------ #
    # Administration
    # ------------------------------------------------------------------ #

    @operation
    def set_admin(self, ctx: CallContext, new_admin: Address) -> bool:
        self.require_admin(ctx, ERR_NOT_AUTHORIZED)
        self.settings.put("admin", new_admin)
        self.emit("AdminSet", admin=new_admin)
        return True

    @operation
    def set_yield_calculator(self, ctx: CallContext, calculator: Address) -> bool:
        self.require_admin(ctx, ERR_NOT_AUTHORIZED)
        self.settings.put("yield_calculator", calculator)
        self.emit("YieldCalculatorSet", calculator=calculator)
        return True

    @operation
    def register_oracle(self, ctx: CallContext, oracle: Address) -> bool:
        self.require_admin(ctx, ERR_NOT_AUTHORIZED)
        oracles = self.store("oracles")
        if oracle in oracles:
            raise NotFound(ERR_ORACLE_EXISTS, "ORACLE_EXISTS", f"oracle {oracle!r} already registered")
        oracles.put(oracle, True)
        self.emit("OracleRegistered", oracle=oracle)
        self.log.info("oracle registered", extra={"oracle": oracle})
        return True

    @operation
    def remove_oracle(self, ctx: CallContext, oracle: Address) -> bool:
        self.require_admin(ctx, ERR_NOT_AUTHORIZED)
        oracles = self.store("oracles")
        if oracle not in oracles:
            raise Unauthorized(ERR_NOT_AUTHORIZED, "NOT_AUTHORIZED", f"{oracle!r} is not a registered oracle")
        oracles.delete(oracle)
        self.emit("OracleRemoved", oracle=oracle)
        self.log.info("oracle removed", extra={"oracle": oracle})
        return True

    @operation
    def register_project_source(self, ctx: CallContext, project_id: int, source_hash: bytes) -> bool:
        self.require_admin(ctx, ERR_NOT_AUTHORIZED)
        digest = _source_hash(source_hash)
        sources = self.store("sources")
        if project_id in sources:
            raise NotFound(ERR_PROJECT_NOT_FOUND, "PROJECT_NOT_FOUND", f"project {project_id} already has a source")
        sources.put(project_id, ProjectSource(source_hash=digest))
        self.emit("SourceRegistered", project_id=project_id, source_hash=digest)
        return True

    @operation
    def emergency_pause_source(self, ctx: CallContext, project_id: int) -> bool:
        """
        Reset the source's `last_update` to 0.

        This does not deactivate anything: it forces the next submission past
        the frequency gate so a corrected reading can land immediately.
        """
        source = self._source(project_id)
        self.require_admin(ctx, ERR_NOT_AUTHORIZED)
        self.store("sources").put(project_id, replace(source, last_update=0))
        self.emit("SourcePaused", project_id=project_id)
        self.log.warning("source paused", extra={"project_id": project_id})
        return True

    # ------------------------------------------------------------------ #
    # Submission
    # ------------------------------------------------------------------ #

    @operation
    def submit_flow(
        self,
        ctx: CallContext,
        project_id: int,
        flow: int,
        source_hash: bytes,
        timestamp: int,
    ) -> bool:
        limits = self.config.limits
        source = self._source(project_id)
        if ctx.caller not in self.store("oracles"):
            raise Unauthorized(ERR_NOT_AUTHORIZED, "NOT_AUTHORIZED", "caller is not a registered oracle")
        if not in_range(flow, MIN_FLOW, MAX_FLOW):
            raise ValidationFailure(
                ERR_INVALID_FLOW, "INVALID_FLOW", f"flow must be in [{MIN_FLOW}, {MAX_FLOW}]", data={"flow": flow}
            )
        if not isinstance(source_hash, (bytes, bytearray, memoryview)) or bytes(source_hash) != source.source_hash:
            raise ValidationFailure(ERR_INVALID_SOURCE, "INVALID_SOURCE", "source hash does not match registration")
        if not isinstance(timestamp, int) or timestamp <= 0 or timestamp > ctx.epoch:
            raise TimingFailure(
                ERR_INVALID_TIMESTAMP, "INVALID_TIMESTAMP", "timestamp must be nonzero and not in the future",
                data={"timestamp": timestamp, "epoch": ctx.epoch},
            )

        anchor = self._math.sub(ctx.epoch, 1)
        if self._math.sub(anchor, source.last_update) < limits.min_report_interval:
            raise TimingFailure(
                ERR_TOO_FREQUENT, "TOO_FREQUENT", "submission too soon after the previous reading",
                data={"last_update": source.last_update, "anchor": anchor},
            )
        if ctx.epoch - timestamp > limits.max_staleness:
            raise TimingFailure(
                ERR_DATA_STALE, "DATA_STALE", f"timestamp older than {limits.max_staleness} epochs",
                data={"timestamp": timestamp, "epoch": ctx.epoch},
            )

        self.store("flows").put(
            (project_id, anchor),
            FlowData(flow=flow, source_hash=source.source_hash, timestamp=timestamp, oracle=ctx.caller),
        )
        self.store("latest").put(project_id, flow)
        self.store("sources").put(
            project_id,
            replace(source, last_update=anchor, update_count=self._math.add(source.update_count, 1)),
        )
        self.emit("FlowSubmitted", project_id=project_id, epoch=anchor, flow=flow, oracle=ctx.caller)

        calculator = self.settings.get("yield_calculator")
        if calculator is not None and self.config.features.relay_flows:
            self._relay(ctx, calculator, project_id, flow)
        return True

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @operation(readonly=True)
    def get_admin(self, ctx: CallContext) -> Optional[Address]:
        return self.settings.get("admin")

    @operation(readonly=True)
    def is_oracle(self, ctx: CallContext, identity: Address) -> bool:
        return identity in self.store("oracles")

    @operation(readonly=True)
    def get_project_source(self, ctx: CallContext, project_id: int) -> Optional[ProjectSource]:
        return self.store("sources").get(project_id)

    @operation(readonly=True)
    def get_flow_data(self, ctx: CallContext, project_id: int, epoch: int) -> Optional[FlowData]:
        return self.store("flows").get((project_id, epoch))

    @operation(readonly=True)
    def get_latest_flow(self, ctx: CallContext, project_id: int) -> Optional[int]:
        return self.store("latest").get(project_id)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _relay(self, ctx: CallContext, calculator: Address, project_id: int, flow: int) -> None:
        # Projects the calculator does not track (or has deactivated) keep the reading here only.
        project = ctx.call(calculator, "get_project", project_id)
        if project is None or not project.active:
            self.log.info("relay skipped", extra={"project_id": project_id, "calculator": calculator})
            return
        ctx.call(calculator, "submit_flow_reading", project_id, flow)

    def _source(self, project_id: int) -> ProjectSource:
        source = self.store("sources").get(project_id)
        if source is None:
            raise NotFound(ERR_PROJECT_NOT_FOUND, "PROJECT_NOT_FOUND", f"no source registered for project {project_id}")
        return source


__all__ = ["OracleIngest"]
