"""Optional per-call trace sink for tuning detection."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from grid_detector.models import TraceEvent, TraceStage

logger = logging.getLogger(__name__)

TraceSink = Callable[[TraceEvent], None]


class TraceRecorder:
    """Trace sink that keeps every event in order."""

    def __init__(self) -> None:
        self.events: list[TraceEvent] = []

    def __call__(self, event: TraceEvent) -> None:
        self.events.append(event)

    def by_stage(self, stage: TraceStage) -> list[TraceEvent]:
        return [e for e in self.events if e.stage == stage]

    @property
    def fallback_reason(self) -> str | None:
        events = self.by_stage(TraceStage.FALLBACK)
        return events[-1].details.get("reason") if events else None

    @property
    def confidence_breakdown(self) -> dict[str, float] | None:
        events = self.by_stage(TraceStage.CONFIDENCE)
        return dict(events[-1].details) if events else None

    def to_json(self) -> list[dict[str, Any]]:
        return [e.model_dump(mode="json") for e in self.events]


class Tracer:
    """Emits to an optional sink and mirrors every event to the module logger."""

    def __init__(self, sink: TraceSink | None) -> None:
        self._sink = sink

    def __call__(self, stage: TraceStage, message: str, **details: Any) -> None:
        logger.debug("[%s] %s %s", stage.value, message, details or "")
        if self._sink is None:
            return
        self._sink(TraceEvent(stage=stage, message=message, details=details))
