"""
flowyield.runtime.dispatcher — route an operation name to a module method.

Operation names resolve in either form:

    submit_flow / submitFlow
    calculate_current_yield_rate / calculateCurrentYieldRate

Only methods exported with `@operation` are reachable; helpers, stores and
`init` are not.
"""

from __future__ import annotations

import inspect
import re
from typing import Any, Callable, Mapping, Sequence, Tuple

from ..contracts.base import Module, OperationSpec
from ..errors import ValidationFailure, unknown_operation

BAD_ARGUMENTS = 400

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")


def normalize_operation_name(name: str) -> str:
    """camelCase / kebab-case → snake_case; snake_case passes through."""
    s = name.strip().replace("-", "_")
    return _CAMEL_RE.sub(r"_\1", s).lower()


def resolve(module: Module, method: str) -> Tuple[Callable[..., Any], OperationSpec]:
    """Return the bound method and its spec, or raise a NOT_FOUND CallError."""
    if not isinstance(method, str) or not method:
        raise unknown_operation(module.address, repr(method))
    name = normalize_operation_name(method)
    spec = type(module).operations().get(name)
    if spec is None:
        raise unknown_operation(module.address, method)
    return getattr(module, name), spec


def bind_arguments(fn: Callable[..., Any], ctx: Any, args: Sequence[Any], kwargs: Mapping[str, Any]) -> None:
    """Check the call shape up front so bad arguments fail as a result, not a TypeError."""
    try:
        inspect.signature(fn).bind(ctx, *args, **kwargs)
    except TypeError as exc:
        raise ValidationFailure(BAD_ARGUMENTS, "BAD_ARGUMENTS", str(exc)) from None


__all__ = ["BAD_ARGUMENTS", "bind_arguments", "normalize_operation_name", "resolve"]
