"""
flowyield.types.events — event records emitted by modules.

`LogEvent` is a compact, immutable container. `emitter` is the address of the
module that emitted it, `name` a CamelCase event name, and `args` an ordered
tuple of (field, value) pairs so the event stays hashable and deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple, Union

Address = Union[str, bytes]


@dataclass(frozen=True)
class LogEvent:
    emitter: Address
    name: str
    args: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def make(cls, emitter: Address, name: str, args: Mapping[str, Any]) -> "LogEvent":
        if not name:
            raise ValueError("event name must not be empty")
        return cls(emitter=emitter, name=name, args=tuple(args.items()))

    def get(self, key: str, default: Any = None) -> Any:
        for k, v in self.args:
            if k == key:
                return v
        return default

    def to_dict(self) -> Dict[str, Any]:
        return {"emitter": self.emitter, "name": self.name, "args": dict(self.args)}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "LogEvent":
        return cls.make(d["emitter"], d["name"], d.get("args") or {})


__all__ = ["Address", "LogEvent"]
