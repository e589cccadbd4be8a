"""Derivations: watchers, lazily cached computed values and the flush scheduler."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from statetree.reactive.dep import Dep, current_target, new_id, pop_target, push_target
from statetree.reactive.observable import traverse

_logger = logging.getLogger(__name__)

#: A watcher re-queued more often than this within one flush is assumed
#: to be feeding itself and is dropped for the rest of the flush.
MAX_UPDATE_COUNT = 100

WatchCallback = Callable[[Any, Any], Any]


class Watcher:
    """Evaluates *getter*, records what it read and reacts when any of it changes.

    Modes
    -----
    lazy
        Only marks itself dirty on change; :class:`Computed` re-evaluates
        on the next read.
    sync
        Re-runs inside the write that triggered it.
    default
        Queued on the :class:`Scheduler` and re-run on the next tick.
    """

    def __init__(
        self,
        getter: Callable[[], Any],
        callback: WatchCallback | None = None,
        *,
        lazy: bool = False,
        deep: bool = False,
        sync: bool = False,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.id = new_id()
        self.lazy = lazy
        self.deep = deep
        self.sync = sync
        self.active = True
        self.dirty = lazy
        self._getter = getter
        self._callback = callback
        self._scheduler = scheduler
        self._deps: dict[int, Dep] = {}
        self._new_deps: dict[int, Dep] = {}
        self.value: Any = None if lazy else self.get()

    def get(self) -> Any:
        push_target(self)
        try:
            value = self._getter()
            if self.deep:
                traverse(value)
        finally:
            pop_target()
            self._cleanup_deps()
        return value

    def add_dep(self, dep: Dep) -> None:
        if dep.id in self._new_deps:
            return
        self._new_deps[dep.id] = dep
        if dep.id not in self._deps:
            dep.add_sub(self)

    def _cleanup_deps(self) -> None:
        for dep_id, dep in self._deps.items():
            if dep_id not in self._new_deps:
                dep.remove_sub(self)
        self._deps, self._new_deps = self._new_deps, {}

    @property
    def dep_count(self) -> int:
        return len(self._deps)

    def update(self) -> None:
        if not self.active:
            return
        if self.lazy:
            self.dirty = True
        elif self.sync or self._scheduler is None:
            self.run()
        else:
            self._scheduler.queue(self)

    def run(self) -> None:
        if not self.active:
            return
        value = self.get()
        if self.deep or isinstance(value, (dict, list)) or _changed(self.value, value):
            old_value = self.value
            self.value = value
            if self._callback is not None:
                try:
                    self._callback(value, old_value)
                except Exception:
                    _logger.error("Watcher callback failed", exc_info=True)

    def evaluate(self) -> None:
        self.value = self.get()
        self.dirty = False

    def depend(self) -> None:
        """Make the current derivation depend on everything this one read."""
        for dep in list(self._deps.values()):
            dep.depend()

    def teardown(self) -> None:
        if not self.active:
            return
        self.active = False
        for dep in self._deps.values():
            dep.remove_sub(self)
        self._deps = {}


def _changed(old: Any, new: Any) -> bool:
    if old is new:
        return False
    try:
        return bool(old != new)
    except Exception:
        return True


class Computed:
    """A memoized derived value; recomputed only after something it read changed."""

    def __init__(self, fn: Callable[[], Any]) -> None:
        self._watcher = Watcher(fn, lazy=True)

    @property
    def value(self) -> Any:
        watcher = self._watcher
        if watcher.dirty:
            watcher.evaluate()
        if current_target() is not None:
            watcher.depend()
        return watcher.value

    @property
    def dirty(self) -> bool:
        return self._watcher.dirty

    def teardown(self) -> None:
        self._watcher.teardown()


class Scheduler:
    """Batches non-sync watcher runs into one flush per tick."""

    def __init__(self, next_tick: Callable[[Callable[[], None]], None]) -> None:
        self._next_tick = next_tick
        self._queue: dict[int, Watcher] = {}
        self._waiting = False
        self._flushing = False

    @property
    def pending(self) -> int:
        return len(self._queue)

    def queue(self, watcher: Watcher) -> None:
        if watcher.id in self._queue:
            return
        self._queue[watcher.id] = watcher
        if self._waiting:
            return
        self._waiting = True
        self._next_tick(self.flush)

    def flush(self) -> None:
        if self._flushing:
            return
        self._flushing = True
        runs: dict[int, int] = {}
        try:
            while self._queue:
                watcher_id = min(self._queue)
                watcher = self._queue.pop(watcher_id)
                runs[watcher_id] = runs.get(watcher_id, 0) + 1
                if runs[watcher_id] > MAX_UPDATE_COUNT:
                    _logger.error("Infinite update loop in watcher %d; dropping it for this flush", watcher_id)
                    continue
                watcher.run()
        finally:
            self._flushing = False
            self._waiting = False
