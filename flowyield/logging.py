"""
flowyield.logging
-----------------

Structured logging for the engine:
- JSON or concise text formats
- Context-local fields via `contextvars` (trace_id, epoch, target, method, caller)
- Safe serialization of bytes (hex), dataclasses and enums
- Stdlib only

Usage
-----
    from flowyield import logging as flog

    flog.configure(json=False, level="INFO")  # once at process start
    log = flog.get_logger(__name__)

    with flog.trace_scope():
        flog.bind(epoch=1200)
        log.info("flow accepted", extra={"project": 7})

The host binds `epoch`, `target` and `method` around every call, so module
loggers get those fields for free.
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import sys
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional

# ----------------------------
# Context
# ----------------------------

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("_FLOWYIELD_LOG_CONTEXT", default={})

DEFAULT_CONTEXT_KEYS = (
    "trace_id",
    "epoch",
    "target",
    "method",
    "caller",
)

_RESERVED = frozenset(
    (
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
        "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
        "created", "msecs", "relativeCreated", "thread", "threadName",
        "processName", "process", "taskName", "message",
    )
)


def context() -> Dict[str, Any]:
    """Return a *copy* of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind(**fields: Any) -> None:
    """Merge fields into the active context."""
    cur = dict(_LOG_CONTEXT.get())
    cur.update({k: _coerce_value(v) for k, v in fields.items()})
    _LOG_CONTEXT.set(cur)


def unbind(*keys: str) -> None:
    cur = dict(_LOG_CONTEXT.get())
    for k in keys:
        cur.pop(k, None)
    _LOG_CONTEXT.set(cur)


def clear_context() -> None:
    _LOG_CONTEXT.set({})


@contextmanager
def bound(**fields: Any) -> Iterator[None]:
    """Bind fields for the duration of the scope; restores prior context on exit."""
    token = _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **{k: _coerce_value(v) for k, v in fields.items()}})
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


@contextmanager
def trace_scope(trace_id: Optional[str] = None) -> Iterator[str]:
    """Ensure a trace_id is present for the duration of the scope."""
    tid = trace_id or short_uuid()
    with bound(trace_id=tid):
        yield tid


def short_uuid() -> str:
    return uuid.uuid4().hex[:12]


# ----------------------------
# Formatters
# ----------------------------


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, Enum):
        return v.value
    if isinstance(v, (bytes, bytearray)):
        return bytes(v).hex()
    if isinstance(v, (list, tuple)):
        return [_coerce_value(x) for x in v]
    if isinstance(v, dict):
        return {str(k): _coerce_value(x) for k, x in v.items()}
    if is_dataclass(v) and not isinstance(v, type):
        return _coerce_value(asdict(v))
    return str(v)


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


def _extras(record: logging.LogRecord, skip: Any = ()) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in record.__dict__.items():
        if k.startswith("_") or k in _RESERVED or k in skip:
            continue
        out[k] = _coerce_value(v)
    return out


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(context())
        for k, v in _extras(record).items():
            payload.setdefault(k, v)
        if record.exc_info:
            payload["err"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return json.dumps(payload, separators=(",", ":"), default=str)


class TextFormatter(logging.Formatter):
    """
    Human-friendly one-liner:
      2026-01-05T12:34:56.789+00:00 | INFO  | flowyield.runtime.host | epoch=1200 method=submit_flow | call reverted
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = context()
        ctx_str = " ".join(f"{k}={ctx[k]}" for k in DEFAULT_CONTEXT_KEYS if ctx.get(k) is not None)
        extras = " ".join(f"{k}={v}" for k, v in _extras(record, skip=ctx).items())

        line = f"{_utcnow_iso()} | {record.levelname:<5} | {record.name}"
        if ctx_str:
            line += f" | {ctx_str}"
        if extras:
            line += f" {extras}"
        line += f" | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


# ----------------------------
# Public setup API
# ----------------------------


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return logging.getLevelName(str(level).strip().upper()) if str(level).strip() else logging.INFO


def configure(
    *,
    json: bool = False,
    level: str | int = "INFO",
    stream: io.TextIOBase = sys.stderr,
    propagate_existing: bool = False,
) -> None:
    """
    Configure the `flowyield` logger tree.

    Parameters
    ----------
    json : bool
        Emit one JSON object per line instead of the text format.
    level : str | int
        Minimum log level.
    stream : TextIO
        Stream for the console handler (default: stderr).
    propagate_existing : bool
        If True, keep existing handlers and only add ours.
    """
    root = logging.getLogger("flowyield")
    lvl = _coerce_level(level)
    root.setLevel(lvl)

    if not propagate_existing:
        for h in list(root.handlers):
            root.removeHandler(h)

    console = logging.StreamHandler(stream)
    console.setLevel(lvl)
    console.setFormatter(JSONFormatter() if json else TextFormatter())
    root.addHandler(console)


def configure_from_config(cfg: Any) -> None:
    """Configure logging from a `flowyield.config.Config`."""
    configure(json=cfg.log_format == "json", level=cfg.log_level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "flowyield")


__all__ = [
    "DEFAULT_CONTEXT_KEYS",
    "context",
    "bind",
    "unbind",
    "clear_context",
    "bound",
    "trace_scope",
    "short_uuid",
    "JSONFormatter",
    "TextFormatter",
    "configure",
    "configure_from_config",
    "get_logger",
]
