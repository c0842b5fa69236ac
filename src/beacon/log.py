"""Log sinks: callables taking ``(level, message, detail=None)``."""

import sys
from typing import Any, Callable, Optional

LEVELS = ("debug", "info", "warning", "error")

LogSink = Callable[..., None]


def _format(level: str, message: str, detail: Any = None) -> str:
    line = f"[beacon] {level.upper()} {message}"
    if detail is not None:
        line += f" {detail}"
    return line


def make_sink(min_level: str = "info", stream=None) -> LogSink:
    """Return a sink writing to *stream* (default stderr) at *min_level* or above."""
    if min_level not in LEVELS:
        raise ValueError(f"unknown log level {min_level!r}, expected one of {LEVELS}")
    threshold = LEVELS.index(min_level)

    def sink(level: str, message: str, detail: Any = None) -> None:
        rank = LEVELS.index(level) if level in LEVELS else len(LEVELS) - 1
        if rank < threshold:
            return
        print(_format(level, message, detail), file=stream or sys.stderr)

    return sink


def null_sink(level: str, message: str, detail: Optional[Any] = None) -> None:
    pass
