#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Info log sink.

Collects free-form text lines (Rich markup) in arrival order for the Info
panel. While started it also receives every record logged under the
``nodewatch`` logger namespace.
"""

import logging
from typing import Callable, List, Optional

from rich.markup import escape

LineListener = Callable[[List[str]], None]
ClearListener = Callable[[], None]

LEVEL_STYLES = {
    logging.DEBUG: "dim",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "bold red",
}


class LogSinkHandler(logging.Handler):
    """logging.Handler that forwards formatted records into a LogSink."""

    def __init__(self, sink: "LogSink", level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        try:
            text = escape(self.format(record))
            style = LEVEL_STYLES.get(record.levelno)
            if style:
                text = "\n".join(f"[{style}]{line}[/{style}]" for line in text.split("\n"))
            self.sink.write(text)
        except Exception:
            self.handleError(record)


class LogSink:
    """Unbounded, oldest-first list of log lines with view listeners."""

    def __init__(self) -> None:
        self.lines: List[str] = []
        self._line_listeners: List[LineListener] = []
        self._clear_listeners: List[ClearListener] = []
        self._handler: Optional[LogSinkHandler] = None
        self._logger: Optional[logging.Logger] = None
        self._previous_level = logging.NOTSET

    @property
    def started(self) -> bool:
        return self._handler is not None

    def write(self, text: str) -> List[str]:
        """Append text, one line per newline-separated part.

        Returns:
            The lines that were appended.
        """
        new_lines = str(text).split("\n")
        self.lines.extend(new_lines)
        for listener in list(self._line_listeners):
            listener(new_lines)
        return new_lines

    def clear(self) -> None:
        self.lines.clear()
        for listener in list(self._clear_listeners):
            listener()

    def add_listener(
        self,
        on_lines: Optional[LineListener] = None,
        on_clear: Optional[ClearListener] = None,
    ) -> None:
        if on_lines is not None:
            self._line_listeners.append(on_lines)
        if on_clear is not None:
            self._clear_listeners.append(on_clear)

    def start(self, logger_name: str = "nodewatch", level: int = logging.INFO) -> None:
        """Route records from logger_name into this sink until stop()."""
        if self._handler is not None:
            return
        handler = LogSinkHandler(self)
        handler.setFormatter(logging.Formatter("%(message)s"))
        target = logging.getLogger(logger_name)
        self._previous_level = target.level
        target.addHandler(handler)
        target.setLevel(level)
        self._handler = handler
        self._logger = target

    def stop(self) -> None:
        """Detach from the logger and restore its level; collected lines are kept."""
        if self._handler is None or self._logger is None:
            return
        self._logger.removeHandler(self._handler)
        self._logger.setLevel(self._previous_level)
        self._handler = None
        self._logger = None
