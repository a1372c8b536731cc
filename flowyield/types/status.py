"""
flowyield.types.status — canonical call status enum.

CallStatus models the *logical* outcome of one operation:
  - SUCCESS : the operation committed its full state change
  - REVERT  : the operation failed and left all state unchanged

String forms:
  - str(CallStatus.SUCCESS) -> "success"
  - CallStatus.SUCCESS.code -> "SUCCESS"
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class CallStatus(str, Enum):
    SUCCESS = "success"
    REVERT = "revert"

    @property
    def code(self) -> str:
        return self.value.upper()

    @property
    def is_success(self) -> bool:
        return self is CallStatus.SUCCESS

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value

    @classmethod
    def from_str(cls, s: str, *, default: Optional["CallStatus"] = None) -> "CallStatus":
        """Lenient parse: accepts 'success'/'ok' and 'revert'/'failed'/'fail'."""
        norm = (s or "").strip().lower()
        if norm in {"success", "ok"}:
            return cls.SUCCESS
        if norm in {"revert", "failed", "fail", "error"}:
            return cls.REVERT
        if default is not None:
            return default
        raise ValueError(f"unknown CallStatus: {s!r}")


__all__ = ["CallStatus"]
