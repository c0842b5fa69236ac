"""Synchronous in-process publisher for registry "online"/"offline" events."""

from typing import Any, Callable, Dict, List

from ..log import LogSink, null_sink

ONLINE = "online"
OFFLINE = "offline"
EVENTS = (ONLINE, OFFLINE)

Listener = Callable[[Any], None]


class EventPublisher:
    """Fire-and-forget delivery to listeners, in subscription order.

    "online" carries the full Registration, "offline" the registration id.
    A listener that raises is logged and skipped; later listeners still run.
    """

    def __init__(self, log: LogSink = null_sink):
        self._log = log
        self._listeners: Dict[str, List[Listener]] = {event: [] for event in EVENTS}

    def _check(self, event: str) -> None:
        if event not in self._listeners:
            raise ValueError(f"unknown event {event!r}, expected one of {EVENTS}")

    def on(self, event: str, listener: Listener) -> Listener:
        self._check(event)
        self._listeners[event].append(listener)
        return listener

    def off(self, event: str, listener: Listener) -> bool:
        self._check(event)
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            return False
        return True

    def listener_count(self, event: str) -> int:
        self._check(event)
        return len(self._listeners[event])

    def emit(self, event: str, payload: Any) -> None:
        self._check(event)
        for listener in list(self._listeners[event]):
            try:
                listener(payload)
            except Exception as exc:
                self._log("error", f"{event} listener {listener!r} failed: {exc}")
