"""
flowyield.state.journal — journaling writes, checkpoints, revert/commit.

A deterministic, in-memory write journal over a flat base mapping keyed by
`(namespace, key)`. Namespaces are `(module_address, store_name)` tuples, keys
are whatever the store uses (a project id, a `(project_id, epoch)` tuple, ...).

Nested checkpoints are a stack of overlays. Writes go to the top overlay;
reads consult overlays from top → base. `commit()` merges the top overlay into
the next layer (or the base if it is the last one). `revert()` discards it.

Key properties
--------------
- Pure Python, no I/O.
- Explicit deletion markers, so a delete inside a checkpoint hides a base value
  until commit and is undone by revert.
- Writes outside any checkpoint go straight to the base (used at deploy time).

Intended usage
--------------
    j = Journal()
    j.begin()
    j.set(ns, key, value)
    j.commit()          # or j.revert()

or, scoped:

    with j.checkpoint():
        j.set(ns, key, value)   # committed on normal exit, reverted on exception
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterator, List, MutableMapping, Optional, Tuple

Namespace = Tuple[Any, str]
Slot = Tuple[Namespace, Hashable]


class _Deleted:
    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return "<deleted>"


DELETED = _Deleted()


@dataclass
class _Overlay:
    """One journal layer: staged writes per namespace; DELETED marks removal."""

    writes: Dict[Namespace, Dict[Hashable, Any]] = field(default_factory=dict)

    def lookup(self, ns: Namespace, key: Hashable) -> Tuple[bool, Any]:
        m = self.writes.get(ns)
        if m is None or key not in m:
            return False, None
        return True, m[key]

    def put(self, ns: Namespace, key: Hashable, value: Any) -> None:
        self.writes.setdefault(ns, {})[key] = value

    def is_empty(self) -> bool:
        return not any(self.writes.values())


class Journal:
    """
    A write journal with nested checkpoints.

    Parameters
    ----------
    base : MutableMapping[Slot, Any]
        The committed state. A fresh dict is used when omitted.
    """

    def __init__(self, base: Optional[MutableMapping[Slot, Any]] = None) -> None:
        self._base: MutableMapping[Slot, Any] = base if base is not None else {}
        self._layers: List[_Overlay] = []

    # ------------------------------------------------------------------ #
    # Checkpointing
    # ------------------------------------------------------------------ #

    def depth(self) -> int:
        """Number of open checkpoints (0 when writing straight to base)."""
        return len(self._layers)

    def begin(self) -> int:
        """Open a checkpoint. Returns the new depth."""
        self._layers.append(_Overlay())
        return len(self._layers)

    def commit(self) -> None:
        """Merge the top overlay into its parent, or into the base if it is the last."""
        if not self._layers:
            raise RuntimeError("commit without an open checkpoint")
        top = self._layers.pop()
        if self._layers:
            parent = self._layers[-1]
            for ns, m in top.writes.items():
                for key, value in m.items():
                    parent.put(ns, key, value)
            return
        for ns, m in top.writes.items():
            for key, value in m.items():
                if value is DELETED:
                    self._base.pop((ns, key), None)
                else:
                    self._base[(ns, key)] = value

    def revert(self) -> None:
        """Discard the top overlay."""
        if not self._layers:
            raise RuntimeError("revert without an open checkpoint")
        self._layers.pop()

    @contextmanager
    def checkpoint(self) -> Iterator[int]:
        """Commit on normal exit, revert if the body raises."""
        marker = self.begin()
        try:
            yield marker
        except BaseException:
            self.revert()
            raise
        else:
            self.commit()

    # ------------------------------------------------------------------ #
    # Reads / writes
    # ------------------------------------------------------------------ #

    def get(self, ns: Namespace, key: Hashable, default: Any = None) -> Any:
        for layer in reversed(self._layers):
            hit, value = layer.lookup(ns, key)
            if hit:
                return default if value is DELETED else value
        return self._base.get((ns, key), default)

    def contains(self, ns: Namespace, key: Hashable) -> bool:
        for layer in reversed(self._layers):
            hit, value = layer.lookup(ns, key)
            if hit:
                return value is not DELETED
        return (ns, key) in self._base

    def set(self, ns: Namespace, key: Hashable, value: Any) -> None:
        if value is DELETED:
            raise ValueError("use delete() to remove a key")
        if self._layers:
            self._layers[-1].put(ns, key, value)
        else:
            self._base[(ns, key)] = value

    def delete(self, ns: Namespace, key: Hashable) -> None:
        if self._layers:
            self._layers[-1].put(ns, key, DELETED)
        else:
            self._base.pop((ns, key), None)

    def keys(self, ns: Namespace) -> List[Hashable]:
        """Visible keys of a namespace, base order first, then newly staged keys."""
        seen: Dict[Hashable, bool] = {}
        for (bns, key) in self._base:
            if bns == ns:
                seen[key] = True
        for layer in self._layers:
            for key, value in layer.writes.get(ns, {}).items():
                seen[key] = value is not DELETED
        return [k for k, alive in seen.items() if alive]

    # ------------------------------------------------------------------ #
    # Committed view (snapshots)
    # ------------------------------------------------------------------ #

    def committed(self) -> Dict[Slot, Any]:
        """A shallow copy of the committed base; refuses while checkpoints are open."""
        if self._layers:
            raise RuntimeError("cannot snapshot with open checkpoints")
        return dict(self._base)


__all__ = ["DELETED", "Journal", "Namespace", "Slot"]
