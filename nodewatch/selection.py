#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Selection tracking and debounced detail refresh.

Every navigation bumps the selection version immediately; the detail
refresh itself only fires once navigation has been quiet for the debounce
delay, and only for the last node selected.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_DELAY = 0.1


@dataclass
class SelectionState:
    """Currently highlighted node plus a navigation counter."""

    node_id: Optional[str] = None
    version: int = 0

    def advance(self, node_id: str) -> int:
        """Record a navigation event and return the new version."""
        self.node_id = node_id
        self.version += 1
        return self.version


class SelectionDebouncer:
    """Coalesces bursts of navigation into one refresh.

    Idle -> PendingRefresh on navigate(); each further navigate() re-arms
    the timer; when the delay elapses quietly on_refresh(node_id) runs for
    the latest selection and the debouncer is Idle again. If on_refresh
    returns a coroutine it is scheduled as a task.
    """

    def __init__(
        self,
        on_refresh: Callable[[str], Any],
        delay: float = DEFAULT_DEBOUNCE_DELAY,
        state: Optional[SelectionState] = None,
    ) -> None:
        self.on_refresh = on_refresh
        self.delay = delay
        self.state = state if state is not None else SelectionState()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set["asyncio.Task[Any]"] = set()

    @property
    def running(self) -> bool:
        return self._loop is not None

    @property
    def is_pending(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Bind to the running event loop. Must be called from inside it."""
        self._loop = asyncio.get_running_loop()

    def stop(self) -> None:
        """Cancel any armed timer and stop arming new ones.

        Refreshes already running are left to finish.
        """
        self._cancel_timer()
        self._loop = None

    def navigate(self, node_id: str) -> int:
        """Handle a navigation event.

        Returns:
            The selection version assigned to this event.
        """
        version = self.state.advance(node_id)
        self._cancel_timer()
        if self._loop is not None:
            self._handle = self._loop.call_later(self.delay, self._fire)
        return version

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        node_id = self.state.node_id
        if node_id is None:
            return
        result = self.on_refresh(node_id)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_refresh_done)

    def _on_refresh_done(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("detail refresh failed: %s", task.exception())
