"""Deferred execution of page checks.

A check is never run synchronously from the edit that caused it: it is
scheduled for the next tick, so the host surface can settle first.
Scheduling a check for a key that already has one pending replaces the
pending one (last write wins).
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, Hashable, Optional

from .constants import FlowConstants

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class CheckScheduler(ABC):
    """Schedules at most one pending callback per key."""

    @abstractmethod
    def schedule(self, key: Hashable, callback: Callback) -> None:
        """Run `callback` on the next tick, superseding any pending one for `key`."""

    @abstractmethod
    def cancel(self, key: Hashable) -> bool:
        """Drop the pending callback for `key`; return True if there was one."""

    @abstractmethod
    def is_pending(self, key: Hashable) -> bool:
        pass


class ManualScheduler(CheckScheduler):
    """Scheduler driven explicitly by the host (or by tests).

    Callbacks scheduled while a tick runs are deferred to the next tick.
    """

    def __init__(self):
        self._pending: Dict[Hashable, Callback] = {}

    def schedule(self, key, callback):
        # Re-inserting moves the key to the end, keeping ticks in schedule order
        self._pending.pop(key, None)
        self._pending[key] = callback

    def cancel(self, key):
        return self._pending.pop(key, None) is not None

    def is_pending(self, key):
        return key in self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def tick(self) -> int:
        """Run every callback pending at the start of this tick.

        Returns:
            Number of callbacks run.
        """
        due, self._pending = self._pending, {}
        for callback in due.values():
            callback()
        return len(due)

    def flush(self, max_ticks: int = FlowConstants.MAX_SETTLE_TICKS) -> int:
        """Run ticks until nothing is pending.

        Returns:
            Number of ticks run.

        Raises:
            RuntimeError: if callbacks keep rescheduling past max_ticks.
        """
        ticks = 0
        while self._pending:
            if ticks >= max_ticks:
                raise RuntimeError(f"Checks did not settle after {max_ticks} ticks")
            self.tick()
            ticks += 1
        return ticks


class AsyncioScheduler(CheckScheduler):
    """Scheduler running callbacks with `loop.call_soon`."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._handles: Dict[Hashable, asyncio.Handle] = {}

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, key, callback):
        self.cancel(key)
        self._handles[key] = self._get_loop().call_soon(self._run, key, callback)

    def _run(self, key, callback):
        self._handles.pop(key, None)
        try:
            callback()
        except Exception:
            # The loop's default handler would only print it
            logger.exception(f"Scheduled check {key!r} failed")

    def cancel(self, key):
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def is_pending(self, key):
        return key in self._handles
