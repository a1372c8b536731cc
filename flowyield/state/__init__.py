"""
flowyield.state — in-memory journaled state.

Exports:
  - Journal, DELETED: overlay journal with nested checkpoints
  - KeyedStore:       namespaced view used by modules
"""

from __future__ import annotations

from .journal import DELETED, Journal, Namespace, Slot
from .store import KeyedStore

__all__ = ["DELETED", "Journal", "KeyedStore", "Namespace", "Slot"]
