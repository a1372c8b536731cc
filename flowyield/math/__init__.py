"""
flowyield.math
==============

Integer-only arithmetic for the accounting modules. No floats anywhere: yield
rates are basis points, ratios are percent-scaled integers, and every product
or difference that could leave the unsigned domain goes through the checked
helpers in `safe_uint`.
"""

from __future__ import annotations

from typing import Final

from .safe_uint import (
    ERR_ARITHMETIC,
    U128_MAX,
    CheckedMath,
    clamp,
    in_range,
    is_u128,
    require_u128,
    u_add,
    u_div,
    u_mul,
    u_mul_div,
    u_sub,
)

BPS: Final[int] = 10_000
DAYS_PER_YEAR: Final[int] = 365

__all__ = [
    "BPS",
    "DAYS_PER_YEAR",
    "ERR_ARITHMETIC",
    "U128_MAX",
    "CheckedMath",
    "clamp",
    "in_range",
    "is_u128",
    "require_u128",
    "u_add",
    "u_div",
    "u_mul",
    "u_mul_div",
    "u_sub",
]
