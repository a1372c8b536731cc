"""
flowyield.math.safe_uint
========================

Checked and saturating unsigned-integer helpers for the accounting modules.

Goals
-----
- U128-oriented arithmetic that never uses Python floats.
- Two styles of safety:
  1) **Checked**: raise `ArithmeticFailure` on overflow/underflow/div-by-zero.
  2) **Bounded**: clamp to and test against explicit ranges.
- Every failure carries the numeric code of the module doing the arithmetic,
  so a calculator overflow reports 105 while a ledger overflow reports 110.

Conventions
-----------
- "checked" helpers take an optional `code`/`reason`; modules usually bind
  them once through `CheckedMath`.
- All inputs must already be in [0, U128_MAX]; a negative input is treated as
  an underflow that happened upstream.
"""

from __future__ import annotations

from typing import Final

from ..errors import ArithmeticFailure

U128_MAX: Final[int] = (1 << 128) - 1

# Default code when a module does not declare its own.
ERR_ARITHMETIC: Final[int] = 110

OOB: Final[str] = "UINT_OOB"
OVERFLOW: Final[str] = "UINT_OVERFLOW"
UNDERFLOW: Final[str] = "UINT_UNDERFLOW"
DIV_ZERO: Final[str] = "UINT_DIV0"


def _fail(code: int, reason: str, message: str, **data: int) -> ArithmeticFailure:
    return ArithmeticFailure(code, reason, message, data=data or None)


# ---------------------------------------------------------------------------
# Domain guards
# ---------------------------------------------------------------------------


def is_u128(x: int) -> bool:
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= U128_MAX


def require_u128(*xs: int, code: int = ERR_ARITHMETIC) -> None:
    """Raise unless every x is an int in [0, U128_MAX]."""
    for x in xs:
        if not is_u128(x):
            raise _fail(code, OOB, f"value out of u128 range: {x!r}")


# ---------------------------------------------------------------------------
# Checked (fail-fast)
# ---------------------------------------------------------------------------


def u_add(x: int, y: int, *, code: int = ERR_ARITHMETIC) -> int:
    require_u128(x, y, code=code)
    s = x + y
    if s > U128_MAX:
        raise _fail(code, OVERFLOW, "addition overflow", x=x, y=y)
    return s


def u_sub(x: int, y: int, *, code: int = ERR_ARITHMETIC) -> int:
    """Checked subtract: raise when y > x instead of wrapping."""
    require_u128(x, y, code=code)
    if y > x:
        raise _fail(code, UNDERFLOW, "subtraction underflow", x=x, y=y)
    return x - y


def u_mul(x: int, y: int, *, code: int = ERR_ARITHMETIC) -> int:
    require_u128(x, y, code=code)
    p = x * y
    if p > U128_MAX:
        raise _fail(code, OVERFLOW, "multiplication overflow", x=x, y=y)
    return p


def u_div(x: int, y: int, *, code: int = ERR_ARITHMETIC) -> int:
    """Checked floor division."""
    require_u128(x, y, code=code)
    if y == 0:
        raise _fail(code, DIV_ZERO, "division by zero", x=x)
    return x // y


def u_mul_div(x: int, y: int, d: int, *, code: int = ERR_ARITHMETIC) -> int:
    """floor(x*y/d) where the intermediate product must itself fit u128."""
    return u_div(u_mul(x, y, code=code), d, code=code)


# ---------------------------------------------------------------------------
# Bounds
# ---------------------------------------------------------------------------


def clamp(x: int, lo: int, hi: int) -> int:
    if lo > hi:
        raise ValueError("clamp bounds inverted")
    return lo if x < lo else hi if x > hi else x


def in_range(x: int, lo: int, hi: int) -> bool:
    return isinstance(x, int) and not isinstance(x, bool) and lo <= x <= hi


class CheckedMath:
    """
    Checked helpers bound to one module's arithmetic error code.

        m = CheckedMath(code=105)
        share = m.div(m.mul(amount, rate), total_invested)
    """

    __slots__ = ("code",)

    def __init__(self, code: int = ERR_ARITHMETIC) -> None:
        self.code = int(code)

    def add(self, x: int, y: int) -> int:
        return u_add(x, y, code=self.code)

    def sub(self, x: int, y: int) -> int:
        return u_sub(x, y, code=self.code)

    def mul(self, x: int, y: int) -> int:
        return u_mul(x, y, code=self.code)

    def div(self, x: int, y: int) -> int:
        return u_div(x, y, code=self.code)

    def mul_div(self, x: int, y: int, d: int) -> int:
        return u_mul_div(x, y, d, code=self.code)

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"CheckedMath(code={self.code})"


__all__ = [
    "U128_MAX",
    "ERR_ARITHMETIC",
    "OOB",
    "OVERFLOW",
    "UNDERFLOW",
    "DIV_ZERO",
    "is_u128",
    "require_u128",
    "u_add",
    "u_sub",
    "u_mul",
    "u_div",
    "u_mul_div",
    "clamp",
    "in_range",
    "CheckedMath",
]
