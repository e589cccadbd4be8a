"""Getter projection: the memoizing read layer over state and getters.

A projection is built for one snapshot of the getter registry. Whenever
the module tree changes shape the store builds a fresh projection and
retires the old one on the next tick. Every projection of a store reads
the same observed state holder, so derivations that only read state keep
working across rebuilds.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any

from statetree.reactive.engine import ComputedRef, ReactiveEngine

_STATE_KEY = "state"
_GENERATION_KEY = "generation"


def new_state_holder(engine: ReactiveEngine, state: Any) -> Any:
    """Observed ``{"state": ..., "generation": 0}`` shared by all projections of one store."""
    return engine.observe({_STATE_KEY: state, _GENERATION_KEY: 0})


class GettersView(Mapping[str, Any]):
    """Read-only mapping of qualified getter type to its memoized value."""

    def __init__(self, computed: Mapping[str, ComputedRef], track: Callable[[], Any]) -> None:
        self._computed = computed
        self._track = track

    def __getitem__(self, key: str) -> Any:
        self._track()
        return self._computed[key].value

    def get(self, key: str, default: Any = None) -> Any:
        # A KeyError raised inside a getter must propagate, not read as "absent".
        if key not in self._computed:
            return default
        return self[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._computed)

    def __len__(self) -> int:
        return len(self._computed)

    def __contains__(self, key: object) -> bool:
        return key in self._computed

    def __repr__(self) -> str:
        return f"GettersView({sorted(self._computed)})"


class LocalGettersView(Mapping[str, Any]):
    """Getters of one namespace, addressed without the namespace prefix."""

    def __init__(self, getters: Mapping[str, Any], namespace: str) -> None:
        split = len(namespace)
        self.namespace = namespace
        self._getters = getters
        self._types = {key[split:]: key for key in getters if key.startswith(namespace)}

    def __getitem__(self, key: str) -> Any:
        return self._getters[self._types[key]]

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._types:
            return default
        return self[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, key: object) -> bool:
        return key in self._types

    def __repr__(self) -> str:
        return f"LocalGettersView({self.namespace!r}, {sorted(self._types)})"


class GetterProjection:
    """One computed value per registered getter, over the store's shared state holder."""

    def __init__(
        self,
        engine: ReactiveEngine,
        holder: Any,
        wrapped_getters: Mapping[str, Callable[[], Any]],
    ) -> None:
        self._engine = engine
        self._data = holder
        self._computed: dict[str, ComputedRef] = {
            key: engine.computed(fn) for key, fn in wrapped_getters.items()
        }
        self.getters = GettersView(self._computed, self._track_generation)
        self._local_getters: dict[str, LocalGettersView] = {}
        self._disposers: list[Callable[[], None]] = []
        self.destroyed = False

    @property
    def state(self) -> Any:
        return self._data[_STATE_KEY]

    def set_state(self, state: Any) -> None:
        self._data[_STATE_KEY] = state

    def _track_generation(self) -> int:
        return self._data[_GENERATION_KEY]

    def local_getters(self, namespace: str) -> LocalGettersView:
        view = self._local_getters.get(namespace)
        if view is None:
            view = LocalGettersView(self.getters, namespace)
            self._local_getters[namespace] = view
        return view

    def own(self, disposer: Callable[[], None]) -> None:
        """Tie a watcher's lifetime to this projection."""
        self._disposers.append(disposer)

    def invalidate(self) -> None:
        """Bump the shared generation so everything that read a getter re-evaluates."""
        self._data[_GENERATION_KEY] = self._data[_GENERATION_KEY] + 1

    def destroy(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        for disposer in self._disposers:
            disposer()
        self._disposers.clear()
        for computed in self._computed.values():
            computed.teardown()
