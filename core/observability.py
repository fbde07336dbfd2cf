# ============================================================================
# OBSERVABILITY
# ============================================================================
# EPOCH: 1 - ADAPTIVE BACKFILL
# STATUS: Core - Telemetry events
# PURPOSE: One-way event emission for processors, with in-process subscribers
# CREATED: 17 OCT 2026
# ============================================================================
"""
Observability

Processors emit telemetry events under a caller-chosen prefix. An event name
is the prefix tuple plus a suffix, e.g.::

    ("billing", "backfill", "start")
    ("billing", "backfill", "batch", "success")

Each event carries measurements (``duration_ms``, ``system_time``,
``batch_count``...) and metadata (``mode``, ``state``, ``reason``...).

Subscribers attach to exact event names. Emitting with a ``None`` prefix is
a no-op, so telemetry is strictly opt-in per operation.

Usage:
    from core.observability import attach, detach

    def on_event(event):
        print(event.name, event.measurements["duration_ms"])

    attach("printer", [("billing", "backfill", "stop")], on_event)
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

EventName = Tuple[str, ...]


# ============================================================================
# EVENTS
# ============================================================================

@dataclass
class TelemetryEvent:
    """A single emitted event."""
    name: EventName
    measurements: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "name": ".".join(self.name),
            "measurements": self.measurements,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }


TelemetryHandler = Callable[[TelemetryEvent], Any]


# ============================================================================
# SUBSCRIPTIONS
# ============================================================================

class TelemetryBus:
    """
    Routes emitted events to attached handlers.

    Handlers run synchronously on the emitter's thread. A handler that raises
    is logged and detached so it cannot break the operation emitting events.
    """

    def __init__(self):
        self._handlers: Dict[str, Tuple[Tuple[EventName, ...], TelemetryHandler]] = {}
        self._lock = threading.Lock()

    def attach(
        self,
        handler_id: str,
        event_names: Iterable[Sequence[str]],
        handler: TelemetryHandler,
    ) -> None:
        """
        Attach a handler to one or more event names.

        Raises:
            ValueError: If handler_id is already attached
        """
        names = tuple(tuple(name) for name in event_names)
        with self._lock:
            if handler_id in self._handlers:
                raise ValueError(f"Telemetry handler already attached: {handler_id}")
            self._handlers[handler_id] = (names, handler)
        logger.debug(f"Attached telemetry handler {handler_id} to {len(names)} events")

    def detach(self, handler_id: str) -> bool:
        """
        Detach a handler.

        Returns:
            True if the handler was attached
        """
        with self._lock:
            return self._handlers.pop(handler_id, None) is not None

    def execute(
        self,
        name: Sequence[str],
        measurements: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Dispatch an event to every handler attached to its name."""
        event = TelemetryEvent(
            name=tuple(name),
            measurements=measurements or {},
            metadata=metadata or {},
        )

        with self._lock:
            targets = [
                (handler_id, handler)
                for handler_id, (names, handler) in self._handlers.items()
                if event.name in names
            ]

        for handler_id, handler in targets:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Telemetry handler {handler_id} failed on {'.'.join(event.name)}: {e}; detaching"
                )
                self.detach(handler_id)

    def clear(self) -> None:
        """Detach all handlers."""
        with self._lock:
            self._handlers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._handlers)


# ============================================================================
# RECORDER
# ============================================================================

class EventRecorder:
    """
    Collects every event emitted under a prefix.

    Useful for diagnostics and tests::

        with EventRecorder.capture(("billing",)) as recorder:
            await run(options)
        assert recorder.names()[0] == ("billing", "start")
    """

    SUFFIXES: Tuple[EventName, ...] = (
        ("start",),
        ("stop",),
        ("success",),
        ("halt",),
        ("error",),
        ("exception",),
        ("batch", "start"),
        ("batch", "success"),
        ("batch", "done"),
        ("batch", "error"),
        ("batch", "exception"),
        ("health_check", "halt"),
    )

    def __init__(self, prefix: Sequence[str], bus: Optional[TelemetryBus] = None):
        self.prefix = tuple(prefix)
        self.events: List[TelemetryEvent] = []
        self._bus = bus or get_bus()
        self._handler_id = f"recorder-{id(self)}"
        self._lock = threading.Lock()

    def _record(self, event: TelemetryEvent) -> None:
        with self._lock:
            self.events.append(event)

    def attach(self) -> None:
        names = [self.prefix + suffix for suffix in self.SUFFIXES]
        self._bus.attach(self._handler_id, names, self._record)

    def detach(self) -> None:
        self._bus.detach(self._handler_id)

    def names(self) -> List[EventName]:
        """Event names in emission order."""
        return [event.name for event in self.events]

    def find(self, *suffix: str) -> Optional[TelemetryEvent]:
        """First event whose name is prefix + suffix."""
        target = self.prefix + tuple(suffix)
        for event in self.events:
            if event.name == target:
                return event
        return None

    @classmethod
    @contextmanager
    def capture(cls, prefix: Sequence[str], bus: Optional[TelemetryBus] = None):
        recorder = cls(prefix, bus=bus)
        recorder.attach()
        try:
            yield recorder
        finally:
            recorder.detach()


# ============================================================================
# GLOBAL INSTANCE
# ============================================================================

_bus: Optional[TelemetryBus] = None


def get_bus() -> TelemetryBus:
    """Get the global telemetry bus."""
    global _bus
    if _bus is None:
        _bus = TelemetryBus()
    return _bus


def attach(
    handler_id: str,
    event_names: Iterable[Sequence[str]],
    handler: TelemetryHandler,
) -> None:
    """Attach a handler on the global bus."""
    get_bus().attach(handler_id, event_names, handler)


def detach(handler_id: str) -> bool:
    """Detach a handler from the global bus."""
    return get_bus().detach(handler_id)


def emit(
    prefix: Optional[Sequence[str]],
    event: Sequence[str],
    measurements: Optional[Dict[str, Any]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Emit ``prefix + event`` on the global bus.

    Args:
        prefix: Operation telemetry prefix (None disables emission)
        event: Event suffix, e.g. ("batch", "success")
        measurements: Numeric measurements
        metadata: Descriptive metadata
    """
    if not prefix:
        return
    get_bus().execute(tuple(prefix) + tuple(event), measurements, metadata)


def elapsed_ms(start: float) -> int:
    """Milliseconds since a time.monotonic() reading."""
    return int((time.monotonic() - start) * 1000)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "EventName",
    "TelemetryEvent",
    "TelemetryBus",
    "EventRecorder",
    "get_bus",
    "attach",
    "detach",
    "emit",
    "elapsed_ms",
]
