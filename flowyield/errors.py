"""
flowyield.errors — call-layer exceptions for the FlowYield engine.

Modules communicate failures via *typed exceptions* that the host converts into
`CallResult`s at the call boundary. Nothing outside the host ever sees a raised
`CallError`; callers only ever get a tagged result carrying the error.

Hierarchy
---------
CallError (base)
 ├─ Unauthorized         : caller is not the required admin / oracle / calculator
 ├─ NotFound             : project/source/pool missing, or already present where
 │                         absence was required (duplicate registration)
 ├─ ValidationFailure    : numeric input outside its declared bound
 ├─ TimingFailure        : too frequent, not ready yet, stale or future-dated
 ├─ InsufficientData     : a computation needs a reading that does not exist
 ├─ InsufficientBalance  : a claim or withdrawal exceeds available funds
 └─ ArithmeticFailure    : checked unsigned arithmetic overflowed/underflowed

Every error carries the module-specific numeric `code` and a short symbolic
`reason` (e.g. 105 / "TOO_FREQUENT"), so results stay comparable with the codes
used by the deployed contracts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    TIMING = "timing"
    INSUFFICIENT_DATA = "insufficient_data"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    ARITHMETIC = "arithmetic"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


@dataclass
class CallError(Exception):
    """
    Base call error.

    Attributes:
        message: Human-readable explanation.
        kind:    ErrorKind category.
        code:    Numeric code declared by the raising module.
        reason:  Stable symbolic name for the code (e.g. 'DATA_STALE').
        data:    Optional structured details (kept JSON/CBOR-serializable).
    """
    message: str = "call failed"
    kind: ErrorKind = ErrorKind.VALIDATION
    code: int = 0
    reason: str = "CALL_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.reason}({self.code}): {self.message} ({self.data})"
        return f"{self.reason}({self.code}): {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for results/logs."""
        out: Dict[str, Any] = {
            "kind": self.kind.value,
            "code": self.code,
            "reason": self.reason,
            "message": self.message,
        }
        if self.data is not None:
            out["data"] = self.data
        return out


def _mk(kind: ErrorKind):
    def __init__(
        self,
        code: int,
        reason: str,
        message: Optional[str] = None,
        *,
        data: Optional[Dict[str, Any]] = None,
    ):
        CallError.__init__(
            self,
            message=message or reason.lower().replace("_", " "),
            kind=kind,
            code=int(code),
            reason=reason,
            data=data,
        )

    return __init__


class Unauthorized(CallError):
    """Caller identity does not match the required admin/oracle/calculator."""
    __init__ = _mk(ErrorKind.AUTHORIZATION)


class NotFound(CallError):
    """
    Referenced record does not exist.

    Also used for duplicate registrations ("already exists where absence was
    required"), matching how the deployed contracts reuse codes.
    """
    __init__ = _mk(ErrorKind.NOT_FOUND)


class ValidationFailure(CallError):
    __init__ = _mk(ErrorKind.VALIDATION)


class TimingFailure(CallError):
    """Epoch-gated precondition not met; retry in a later epoch."""
    __init__ = _mk(ErrorKind.TIMING)


class InsufficientData(CallError):
    __init__ = _mk(ErrorKind.INSUFFICIENT_DATA)


class InsufficientBalance(CallError):
    __init__ = _mk(ErrorKind.INSUFFICIENT_BALANCE)


class ArithmeticFailure(CallError):
    """
    Checked unsigned arithmetic left its domain.

    Raised instead of wrapping, e.g. when an investor's entitlement shrinks
    between claims and `share - claimed` would go negative.
    """
    __init__ = _mk(ErrorKind.ARITHMETIC)


# -------- host-level codes ----------------------------------------------------

UNKNOWN_TARGET = 404


def unknown_operation(target: Any, method: str) -> NotFound:
    return NotFound(
        UNKNOWN_TARGET,
        "UNKNOWN_OPERATION",
        f"no operation {method!r} on {target!r}",
        data={"method": method},
    )


def unknown_module(target: Any) -> NotFound:
    return NotFound(UNKNOWN_TARGET, "UNKNOWN_MODULE", f"nothing deployed at {target!r}")


# -------- helper utilities ----------------------------------------------------


def error_to_result_fields(err: CallError) -> Dict[str, Any]:
    """
    Map a CallError to canonical result-like fields:

        {"status": "revert", "error": {kind, code, reason, message, data?}}
    """
    return {"status": "revert", "error": err.to_dict()}


__all__ = [
    "ErrorKind",
    "CallError",
    "Unauthorized",
    "NotFound",
    "ValidationFailure",
    "TimingFailure",
    "InsufficientData",
    "InsufficientBalance",
    "ArithmeticFailure",
    "UNKNOWN_TARGET",
    "unknown_operation",
    "unknown_module",
    "error_to_result_fields",
]
