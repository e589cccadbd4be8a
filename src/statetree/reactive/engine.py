"""Reactive engine contract and the built-in implementation.

The store never talks to the observable primitives directly; it goes
through a :class:`ReactiveEngine` so that an application can hand in an
adapter for whatever reactivity system it already runs.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from statetree.reactive.observable import observe
from statetree.reactive.watcher import Computed, Scheduler, WatchCallback, Watcher


@runtime_checkable
class ComputedRef(Protocol):
    @property
    def value(self) -> Any: ...

    def teardown(self) -> None: ...


@runtime_checkable
class ReactiveEngine(Protocol):
    """What the store needs from a reactivity system."""

    def observe(self, data: Any) -> Any:
        """Make a plain nested data object observable and return it."""
        ...

    def computed(self, fn: Callable[[], Any]) -> ComputedRef:
        """Memoize *fn*, recomputing it only when something it read changed."""
        ...

    def watch(
        self,
        source: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        immediate: bool = False,
        sync: bool = False,
    ) -> Callable[[], None]:
        """Call ``callback(new, old)`` whenever *source* changes; returns an unwatch closure."""
        ...

    def next_tick(self, fn: Callable[[], None]) -> None:
        """Run *fn* after the current scheduling tick."""
        ...


class DefaultEngine:
    """Reactive engine built on :mod:`statetree.reactive` primitives.

    Ticks map onto the running asyncio loop (``call_soon``). Without a
    running loop there is no tick to wait for, so deferred work runs
    immediately.
    """

    def __init__(self) -> None:
        self._scheduler = Scheduler(self.next_tick)

    def observe(self, data: Any) -> Any:
        return observe(data)

    def computed(self, fn: Callable[[], Any]) -> Computed:
        return Computed(fn)

    def watch(
        self,
        source: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        immediate: bool = False,
        sync: bool = False,
    ) -> Callable[[], None]:
        watcher = Watcher(source, callback, deep=deep, sync=sync, scheduler=self._scheduler)
        if immediate:
            callback(watcher.value, None)
        return watcher.teardown

    def next_tick(self, fn: Callable[[], None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            fn()
            return
        loop.call_soon(fn)
