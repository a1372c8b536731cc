"""
flowyield.encoding — deterministic CBOR for results and state snapshots.

Snapshot layout
---------------
A snapshot is a CBOR array of entries sorted by the canonical encoding of
their slot:

    [ [address, store, key, {"t": <type>, "v": <value>}], ... ]

`<type>` is a record class name from `flowyield.types.RECORD_TYPES` (value is
the record's field map) or `"raw"` for plain ints/bools/bytes/strings held in
config stores. Tuple keys such as `(project_id, epoch)` encode as arrays and
decode back to tuples.

Public API
----------
- result_to_cbor(result) -> bytes
- state_to_cbor(entries) -> bytes
- state_from_cbor(blob) -> dict[slot, value]
- state_root(entries) -> bytes (SHA3-256 of the canonical snapshot)

Implementation notes
--------------------
- `cbor2` with `canonical=True`, so map key order and integer widths are
  stable across runs and platforms.
- Records are frozen dataclasses, so decoding rebuilds them exactly.
"""

from __future__ import annotations

import hashlib
from enum import Enum
from typing import Any, Dict, Hashable, List, Mapping, Tuple

import cbor2

from .types import RECORD_TYPES, CallResult, Record
from .state.journal import Slot

RAW = "raw"


def _plain(obj: Any) -> Any:
    """Reduce values to CBOR-native types (records → maps, enums → values)."""
    if isinstance(obj, Record):
        return {"t": type(obj).__name__, "v": _plain(obj.to_dict())}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj)
    if isinstance(obj, Mapping):
        return {str(k): _plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(x) for x in obj]
    return obj


def _freeze(obj: Any) -> Hashable:
    """Arrays decoded from CBOR become tuples so they can serve as keys again."""
    if isinstance(obj, list):
        return tuple(_freeze(x) for x in obj)
    return obj


def _encode_value(value: Any) -> Dict[str, Any]:
    if isinstance(value, Record):
        return {"t": type(value).__name__, "v": value.to_dict()}
    if value is None or isinstance(value, (bool, int, str, bytes)):
        return {"t": RAW, "v": value}
    raise TypeError(f"cannot snapshot value of type {type(value).__name__}")


def _decode_value(obj: Mapping[str, Any]) -> Any:
    tag = obj.get("t")
    if tag == RAW:
        return obj.get("v")
    cls = RECORD_TYPES.get(tag)  # type: ignore[arg-type]
    if cls is None:
        raise ValueError(f"unknown record type in snapshot: {tag!r}")
    return cls.from_dict(obj.get("v") or {})


# ------------------------------ public API ----------------------------------


def result_to_cbor(result: CallResult) -> bytes:
    return cbor2.dumps(_plain(result.to_dict()), canonical=True)


def state_to_cbor(entries: Mapping[Slot, Any]) -> bytes:
    rows: List[Tuple[bytes, List[Any]]] = []
    for ((address, store), key), value in entries.items():
        slot = [_plain(address), store, _plain(key)]
        rows.append((cbor2.dumps(slot, canonical=True), slot + [_encode_value(value)]))
    rows.sort(key=lambda r: r[0])
    return cbor2.dumps([row for _, row in rows], canonical=True)


def state_from_cbor(blob: bytes) -> Dict[Slot, Any]:
    decoded = cbor2.loads(blob)
    if not isinstance(decoded, list):
        raise ValueError("snapshot must be a CBOR array")
    out: Dict[Slot, Any] = {}
    for row in decoded:
        if not isinstance(row, list) or len(row) != 4:
            raise ValueError(f"malformed snapshot row: {row!r}")
        address, store, key, value = row
        out[((_freeze(address), store), _freeze(key))] = _decode_value(value)
    return out


def state_root(entries: Mapping[Slot, Any]) -> bytes:
    return hashlib.sha3_256(state_to_cbor(entries)).digest()


__all__ = ["result_to_cbor", "state_to_cbor", "state_from_cbor", "state_root"]
