"""
flowyield.runtime — the host that executes module operations.

- Host: epoch clock, shared journal, atomic call/view, snapshots
- EventSink: ordered event buffer with rollback marks
- dispatcher: operation-name resolution and argument checks
- deploy_pipeline: deploy and wire the three modules
"""

from __future__ import annotations

from .deploy import Pipeline, deploy_pipeline
from .dispatcher import BAD_ARGUMENTS, normalize_operation_name
from .event_sink import EventSink
from .host import Host

__all__ = ["BAD_ARGUMENTS", "EventSink", "Host", "Pipeline", "deploy_pipeline", "normalize_operation_name"]
