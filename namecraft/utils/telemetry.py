"""Per-generation telemetry: stage timings, counters and trace metadata."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from .observability import get_logger

TelemetryListener = Callable[[str, Dict[str, Any]], None]


@dataclass
class _StageTiming:
    count: int = 0
    total: float = 0.0
    min: float = 0.0
    max: float = 0.0

    def add(self, duration: float) -> None:
        self.min = duration if self.count == 0 else min(self.min, duration)
        self.max = max(self.max, duration)
        self.count += 1
        self.total += duration

    def as_dict(self) -> Dict[str, float]:
        return {
            "count": self.count,
            "total": self.total,
            "min": self.min,
            "max": self.max,
            "avg": self.total / self.count if self.count else 0.0,
        }


@dataclass
class _TraceState:
    trace_id: int = 0
    name: Optional[str] = None
    timings: Dict[str, _StageTiming] = field(default_factory=dict)
    counters: Dict[str, float] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "trace_id": self.trace_id,
            "name": self.name,
            "timings": {key: value.as_dict() for key, value in self.timings.items()},
            "counters": dict(self.counters),
            "events": deepcopy(self.events),
            "metadata": deepcopy(self.metadata),
        }


class StructuredTelemetry:
    """Collects timings and counters for the trace currently being recorded.

    One trace corresponds to one generation request. Listeners receive every
    event synchronously; a failing listener never interrupts generation.
    """

    def __init__(
        self,
        time_fn: Optional[Callable[[], float]] = None,
        *,
        max_events: int = 256,
        listeners: Optional[Iterable[TelemetryListener]] = None,
    ) -> None:
        self._time_fn = time_fn or time.perf_counter
        self._max_events = max(1, int(max_events))
        self._lock = threading.RLock()
        self._state = _TraceState()
        self._latest: Dict[str, Any] = {}
        self._listeners: List[TelemetryListener] = list(listeners or [])

    def now(self) -> float:
        return float(self._time_fn())

    def _emit(self, event_type: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            listeners: Tuple[TelemetryListener, ...] = tuple(self._listeners)
        for listener in listeners:
            try:
                listener(event_type, dict(payload))
            except Exception:
                continue

    def _refresh_latest_locked(self) -> None:
        self._latest = self._state.snapshot()

    def start_trace(self, name: str) -> int:
        """Discard the previous trace and begin recording ``name``."""

        with self._lock:
            trace_id = self._state.trace_id + 1
            self._state = _TraceState(trace_id=trace_id, name=name)
            self._state.metadata["trace_name"] = name
            self._state.metadata["start_time"] = self.now()
            self._refresh_latest_locked()

        self._emit("trace_started", {"trace_id": trace_id, "name": name})
        return trace_id

    def record_timing(
        self,
        name: str,
        duration: float,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        duration = max(0.0, float(duration))
        details = dict(metadata) if metadata else {}
        with self._lock:
            self._state.timings.setdefault(name, _StageTiming()).add(duration)
            event: Dict[str, Any] = {"name": name, "duration": duration}
            if details:
                event["metadata"] = details
            self._state.events.append(event)
            del self._state.events[: -self._max_events]
            self._refresh_latest_locked()

        self._emit("timing", {"name": name, "duration": duration, "metadata": details})

    @contextmanager
    def timer(
        self,
        name: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Iterator[Dict[str, Any]]:
        """Time the enclosed block; callers may add keys to the yielded dict."""

        payload: Dict[str, Any] = dict(metadata) if metadata else {}
        start = self.now()
        self._emit("timer_started", {"name": name, "metadata": dict(payload)})
        try:
            yield payload
        finally:
            self.record_timing(name, self.now() - start, payload)

    def increment(self, name: str, amount: float = 1.0) -> None:
        value = float(amount)
        with self._lock:
            current = self._state.counters.get(name, 0.0) + value
            self._state.counters[name] = current
            self._refresh_latest_locked()

        self._emit("counter", {"name": name, "delta": value, "value": current})

    def annotate(self, key: str, value: Any) -> None:
        with self._lock:
            self._state.metadata[key] = value
            self._refresh_latest_locked()

        self._emit("metadata", {"key": key, "value": value})

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            self._refresh_latest_locked()
            return deepcopy(self._latest)

    def latest_snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return deepcopy(self._latest)

    def add_listener(self, listener: TelemetryListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: TelemetryListener) -> None:
        with self._lock:
            self._listeners = [entry for entry in self._listeners if entry is not listener]


class TelemetryLogger:
    """Telemetry listener that writes each event to the project logger."""

    def __init__(
        self,
        *,
        logger: Optional[logging.LoggerAdapter] = None,
        level: int = logging.INFO,
        level_map: Optional[Dict[str, int]] = None,
    ) -> None:
        self._logger = logger or get_logger(__name__).bind(component="telemetry")
        self._default_level = level
        self._level_map = dict(level_map or {})

    def __call__(self, event_type: str, payload: Dict[str, Any]) -> None:
        level = self._level_map.get(event_type, self._default_level)
        if not self._logger.isEnabledFor(level):
            return

        label = payload.get("name") or payload.get("key") or payload.get("trace_id") or "event"
        context = {"telemetry.event": event_type}
        context.update({str(key): value for key, value in payload.items()})
        self._logger.log(level, f"Telemetry {event_type}: {label}", context=context)


__all__ = ["StructuredTelemetry", "TelemetryLogger", "TelemetryListener"]
