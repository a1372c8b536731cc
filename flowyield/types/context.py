"""
flowyield.types.context — the per-call execution context.

Every operation receives a `CallContext` carrying the two things the host
supplies and the core never mutates:

* `caller` — opaque identity, compared for equality against stored
  admin/oracle/calculator identities.
* `epoch`  — the host's monotonically nondecreasing logical clock.

It also knows which module is executing (`address`) and can make cross-module
calls through the host; the callee then sees `address` as its caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

from .events import Address

if TYPE_CHECKING:  # pragma: no cover
    from ..runtime.host import Host


@dataclass(frozen=True)
class CallContext:
    caller: Address
    epoch: int
    address: Address
    depth: int = 0
    host: Optional["Host"] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.epoch, int) or self.epoch < 0:
            raise ValueError("epoch must be a non-negative int")
        if self.depth < 0:
            raise ValueError("depth must be >= 0")

    def call(self, target: Address, method: str, *args: Any, **kwargs: Any) -> Any:
        """
        Invoke another module's operation as this module.

        Failures propagate as `CallError`, failing the enclosing operation.
        """
        if self.host is None:
            raise RuntimeError("cross-module call outside a host")
        return self.host.invoke(self.address, target, method, args, kwargs, depth=self.depth + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {"caller": self.caller, "epoch": self.epoch, "address": self.address, "depth": self.depth}


__all__ = ["CallContext"]
