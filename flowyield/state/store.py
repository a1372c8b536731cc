"""
flowyield.state.store — namespaced keyed stores over the shared journal.

Each module owns a handful of `KeyedStore`s (projects, readings, claims, a
`config` store for admin/oracle identities, ...). A store is only a view: all
reads and writes go through the host's `Journal`, so every write made during a
call is committed or reverted together with the rest of that call.

    projects = KeyedStore(journal, (address, "projects"))
    projects.put(7, Project(...))
    projects.get(7)                 # Project(...) or None
    (7, 1200) in readings
"""

from __future__ import annotations

from typing import Any, Hashable, Iterator, List, Tuple

from .journal import Journal, Namespace


class KeyedStore:
    __slots__ = ("_journal", "namespace")

    def __init__(self, journal: Journal, namespace: Namespace) -> None:
        self._journal = journal
        self.namespace = namespace

    def get(self, key: Hashable, default: Any = None) -> Any:
        return self._journal.get(self.namespace, key, default)

    def put(self, key: Hashable, value: Any) -> None:
        if value is None:
            raise ValueError("stores do not hold None; use delete()")
        self._journal.set(self.namespace, key, value)

    def delete(self, key: Hashable) -> None:
        self._journal.delete(self.namespace, key)

    def __contains__(self, key: Hashable) -> bool:
        return self._journal.contains(self.namespace, key)

    def keys(self) -> List[Hashable]:
        return self._journal.keys(self.namespace)

    def items(self) -> Iterator[Tuple[Hashable, Any]]:
        for key in self.keys():
            yield key, self._journal.get(self.namespace, key)

    def __len__(self) -> int:
        return len(self.keys())

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"KeyedStore({self.namespace!r})"


__all__ = ["KeyedStore"]
