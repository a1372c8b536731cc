"""
flowyield.runtime.host — the execution host for the accounting modules.

The host is the "external collaborator" the modules assume:

* it owns the epoch clock (monotonically nondecreasing, never touched by
  modules),
* it owns one shared `Journal`; every module's stores are namespaces in it,
* it serializes operations: one `call` at a time, each inside its own
  checkpoint, committed on success and reverted on failure,
* it converts `CallError`s into `CallResult`s at the boundary, so callers get
  a tagged success/failure value and never a raised error.

Cross-module calls (`ctx.call(...)` inside an operation) run in nested
checkpoints with the calling module's address as the caller. A failing callee
fails the whole outer call; nothing it or the caller wrote survives.

Usage
-----
    host = Host(epoch=1000)
    host.deploy("oracle", OracleIngest, deployer="ADMIN")
    host.call("ADMIN", "oracle", "registerOracle", "REPORTER")
    res = host.call("REPORTER", "oracle", "submitFlow", 1, 150, h, 995)
    assert res.ok
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union

from .. import logging as flog
from ..config import Config, get_config
from ..contracts import MODULES, Module
from ..encoding import state_from_cbor, state_root, state_to_cbor
from ..errors import CallError, unknown_module
from ..state import Journal
from ..types import Address, CallContext, CallResult
from .dispatcher import bind_arguments, resolve
from .event_sink import EventSink

log = flog.get_logger(__name__)

# Host-level bookkeeping lives in the journal like everything else.
_DEPLOYMENTS_NS = ("__host__", "deployments")
_CLOCK_NS = ("__host__", "clock")


class Host:
    def __init__(
        self,
        *,
        epoch: int = 0,
        config: Optional[Config] = None,
        journal: Optional[Journal] = None,
    ) -> None:
        if not isinstance(epoch, int) or epoch < 0:
            raise ValueError("epoch must be a non-negative int")
        self.config = config or get_config()
        self.journal = journal or Journal()
        self.events = EventSink()
        self._modules: Dict[Address, Module] = {}
        self._epoch = epoch

    # ------------------------------------------------------------------ #
    # Clock
    # ------------------------------------------------------------------ #

    @property
    def epoch(self) -> int:
        return self._epoch

    def advance(self, epochs: int = 1) -> int:
        if epochs < 0:
            raise ValueError("epochs only move forward")
        self._epoch += epochs
        return self._epoch

    def advance_to(self, epoch: int) -> int:
        if epoch < self._epoch:
            raise ValueError(f"cannot move clock back from {self._epoch} to {epoch}")
        self._epoch = epoch
        return self._epoch

    # ------------------------------------------------------------------ #
    # Deployment
    # ------------------------------------------------------------------ #

    def deploy(
        self,
        address: Address,
        module: Union[str, Type[Module]],
        *,
        deployer: Optional[Address] = None,
        config: Optional[Config] = None,
        **init: Any,
    ) -> Module:
        """
        Instantiate `module` at `address` and run its initializer.

        `deployer` becomes the caller seen by `init` (and therefore the default
        admin/treasury). Raises ValueError on a duplicate address.
        """
        if address in self._modules:
            raise ValueError(f"address {address!r} already in use")
        cls = MODULES[module] if isinstance(module, str) else module
        instance = cls(address, self.journal, self.events, config or self.config)
        ctx = CallContext(caller=deployer if deployer is not None else address, epoch=self._epoch, address=address, host=self)
        mark = self.events.mark()
        try:
            with self.journal.checkpoint():
                instance.init(ctx, **init)
                self.journal.set(_DEPLOYMENTS_NS, address, cls.kind)
        except BaseException:
            self.events.rollback(mark)
            raise
        self.events.rollback(mark)
        self._modules[address] = instance
        log.info("module deployed", extra={"address": address, "kind": cls.kind})
        return instance

    def module(self, address: Address) -> Module:
        found = self._modules.get(address)
        if found is None:
            raise unknown_module(address)
        return found

    @property
    def deployments(self) -> Dict[Address, str]:
        return {addr: m.kind for addr, m in self._modules.items()}

    # ------------------------------------------------------------------ #
    # Calls
    # ------------------------------------------------------------------ #

    def call(self, sender: Address, target: Address, method: str, *args: Any, **kwargs: Any) -> CallResult:
        """Run one operation atomically and return its tagged result."""
        return self._top_level(sender, target, method, args, kwargs, simulate=False)

    def view(
        self, target: Address, method: str, *args: Any, sender: Optional[Address] = None, **kwargs: Any
    ) -> CallResult:
        """Run an operation and discard every write it makes (dry run)."""
        return self._top_level(sender if sender is not None else target, target, method, args, kwargs, simulate=True)

    def invoke(
        self,
        sender: Address,
        target: Address,
        method: str,
        args: Sequence[Any],
        kwargs: Mapping[str, Any],
        *,
        depth: int = 0,
    ) -> Any:
        """
        Execute one operation inside a nested checkpoint and return its raw
        value. `CallError`s propagate; this is the path for cross-module calls.
        """
        instance = self.module(target)
        fn, spec = resolve(instance, method)
        ctx = CallContext(caller=sender, epoch=self._epoch, address=target, depth=depth, host=self)
        bind_arguments(fn, ctx, args, kwargs)

        mark = self.events.mark()
        self.journal.begin()
        try:
            value = fn(ctx, *args, **kwargs)
        except BaseException:
            self.journal.revert()
            self.events.rollback(mark)
            raise
        if spec.readonly:
            self.journal.revert()
            self.events.rollback(mark)
        else:
            self.journal.commit()
        return value

    def _top_level(
        self,
        sender: Address,
        target: Address,
        method: str,
        args: Tuple[Any, ...],
        kwargs: Mapping[str, Any],
        *,
        simulate: bool,
    ) -> CallResult:
        if self.journal.depth() != 0:
            raise RuntimeError("host calls are serialized; a call is already in progress")

        mark = self.events.mark()
        with flog.bound(epoch=self._epoch, target=target, method=method, caller=sender):
            self.journal.begin()
            try:
                value = self.invoke(sender, target, method, args, kwargs, depth=0)
            except CallError as err:
                self.journal.revert()
                self.events.rollback(mark)
                log.info("call reverted", extra={"code": err.code, "reason": err.reason})
                return CallResult.revert(err, epoch=self._epoch)
            except BaseException:
                self.journal.revert()
                self.events.rollback(mark)
                raise

            if simulate:
                self.journal.revert()
                self.events.rollback(mark)
                logs: Tuple[Any, ...] = ()
            else:
                self.journal.commit()
                logs = self.events.take(mark)
            log.debug("call ok", extra={"events": len(logs)})
            return CallResult.success(value, logs, epoch=self._epoch)

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def state_root(self) -> bytes:
        return state_root(self._snapshot())

    def export_state(self) -> bytes:
        return state_to_cbor(self._snapshot())

    def _snapshot(self) -> Dict[Any, Any]:
        entries = self.journal.committed()
        entries[(_CLOCK_NS, "epoch")] = self._epoch
        return entries

    @classmethod
    def from_state(cls, blob: bytes, *, config: Optional[Config] = None) -> "Host":
        """Rebuild a host (clock, deployments and all stores) from `export_state()`."""
        entries = state_from_cbor(blob)
        epoch = int(entries.pop((_CLOCK_NS, "epoch"), 0))
        host = cls(epoch=epoch, config=config, journal=Journal(entries))
        restored: List[Tuple[Address, str]] = [
            (key, kind) for (ns, key), kind in entries.items() if ns == _DEPLOYMENTS_NS
        ]
        for address, kind in restored:
            module_cls = MODULES[kind]
            host._modules[address] = module_cls(address, host.journal, host.events, host.config)
        return host


__all__ = ["Host"]
