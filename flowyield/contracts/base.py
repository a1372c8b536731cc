"""
flowyield.contracts.base — the shared surface of every accounting module.

A module is a small state machine:

* keyed stores it owns exclusively (namespaced under its address in the host
  journal),
* a `config` store holding its administering identities,
* public operations, marked with `@operation`, each taking a `CallContext`
  first and raising a `CallError` to fail.

Modules never touch another module's stores; they go through `ctx.call(...)`.

    class Counter(Module):
        @operation
        def inc(self, ctx):
            n = self.store("n").get("v", 0) + 1
            self.store("n").put("v", n)
            self.emit("Inc", value=n)
            return n
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Optional, TypeVar

from ..config import Config, get_config
from ..errors import CallError, Unauthorized
from ..logging import get_logger
from ..state import Journal, KeyedStore
from ..types import Address, CallContext, LogEvent

if TYPE_CHECKING:  # pragma: no cover
    from ..runtime.event_sink import EventSink

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class OperationSpec:
    name: str
    readonly: bool = False


def operation(fn: Optional[F] = None, *, readonly: bool = False) -> Any:
    """
    Export a method as a callable operation.

    `readonly=True` marks views; the host still runs them in a checkpoint but
    always discards it.
    """

    def wrap(f: F) -> F:
        f.__operation__ = OperationSpec(name=f.__name__, readonly=readonly)  # type: ignore[attr-defined]
        return f

    if fn is not None:
        return wrap(fn)
    return wrap


class Module:
    """Base class for the three accounting modules."""

    kind: ClassVar[str] = "module"

    def __init__(
        self,
        address: Address,
        journal: Journal,
        sink: "EventSink",
        config: Optional[Config] = None,
    ) -> None:
        self.address = address
        self.config = config or get_config()
        self._journal = journal
        self._sink = sink
        self._stores: Dict[str, KeyedStore] = {}
        self.log: logging.Logger = get_logger(f"flowyield.contracts.{self.kind}")

    def init(self, ctx: CallContext, **kwargs: Any) -> None:
        """Deploy-time initializer; runs once inside the deploy checkpoint."""
        raise NotImplementedError

    # ------------------------------------------------------------------ #
    # Operation registry
    # ------------------------------------------------------------------ #

    @classmethod
    def operations(cls) -> Dict[str, OperationSpec]:
        out: Dict[str, OperationSpec] = {}
        for klass in reversed(cls.__mro__):
            for attr, value in vars(klass).items():
                spec = getattr(value, "__operation__", None)
                if isinstance(spec, OperationSpec):
                    out[attr] = spec
        return out

    # ------------------------------------------------------------------ #
    # State & events
    # ------------------------------------------------------------------ #

    def store(self, name: str) -> KeyedStore:
        st = self._stores.get(name)
        if st is None:
            st = KeyedStore(self._journal, (self.address, name))
            self._stores[name] = st
        return st

    @property
    def settings(self) -> KeyedStore:
        return self.store("config")

    def emit(self, name: str, **args: Any) -> None:
        self._sink.emit(LogEvent.make(self.address, name, args))

    # ------------------------------------------------------------------ #
    # Guards
    # ------------------------------------------------------------------ #

    def require_caller(self, ctx: CallContext, identity: Any, error: CallError) -> None:
        """Fail with `error` unless the caller is exactly `identity`."""
        if identity is None or ctx.caller != identity:
            raise error

    def require_admin(self, ctx: CallContext, code: int = 100) -> None:
        self.require_caller(
            ctx, self.settings.get("admin"), Unauthorized(code, "NOT_AUTHORIZED", "caller is not admin")
        )

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"{type(self).__name__}(address={self.address!r})"


__all__ = ["Module", "OperationSpec", "operation"]
