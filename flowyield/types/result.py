"""
flowyield.types.result — CallResult container returned by the host.

`CallResult` is the tagged success/failure value every operation produces:

* status : CallStatus — SUCCESS / REVERT
* value  : Any        — the operation's return value (None on REVERT)
* error  : CallError  — the failure (None on SUCCESS)
* logs   : tuple[LogEvent, ...] — events emitted, empty on REVERT
* epoch  : int        — the epoch the call executed in

Utilities
---------
* `.ok`, `.kind`, `.code` conveniences for assertions.
* `.unwrap()` returns the value or re-raises the error (for scripting).
* `.to_dict()` JSON-friendly form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from ..errors import CallError, ErrorKind
from .events import LogEvent
from .status import CallStatus


@dataclass(frozen=True)
class CallResult:
    status: CallStatus
    value: Any = None
    error: Optional[CallError] = None
    logs: Tuple[LogEvent, ...] = ()
    epoch: int = 0

    def __post_init__(self) -> None:
        if self.status is CallStatus.SUCCESS and self.error is not None:
            raise ValueError("successful result cannot carry an error")
        if self.status is CallStatus.REVERT and self.error is None:
            raise ValueError("reverted result must carry an error")
        if not isinstance(self.logs, tuple):
            object.__setattr__(self, "logs", tuple(self.logs))

    @classmethod
    def success(cls, value: Any, logs: Iterable[LogEvent] = (), *, epoch: int = 0) -> "CallResult":
        return cls(status=CallStatus.SUCCESS, value=value, logs=tuple(logs), epoch=epoch)

    @classmethod
    def revert(cls, error: CallError, *, epoch: int = 0) -> "CallResult":
        return cls(status=CallStatus.REVERT, error=error, epoch=epoch)

    # ----------------------------- conveniences ------------------------------

    @property
    def ok(self) -> bool:
        return self.status.is_success

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    @property
    def code(self) -> Optional[int]:
        return self.error.code if self.error is not None else None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value

    def event_names(self) -> Tuple[str, ...]:
        return tuple(ev.name for ev in self.logs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": str(self.status),
            "value": self.value,
            "error": self.error.to_dict() if self.error is not None else None,
            "logs": [ev.to_dict() for ev in self.logs],
            "epoch": self.epoch,
        }

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        if self.ok:
            return f"CallResult(ok, value={self.value!r}, logs={len(self.logs)}, epoch={self.epoch})"
        return f"CallResult(revert, {self.error.reason}={self.error.code}, epoch={self.epoch})"


__all__ = ["CallResult"]
