"""Observable containers for the aggregate state tree.

:class:`ReactiveDict` and :class:`ReactiveList` are real ``dict``/``list``
subclasses, so the state tree stays a plain nested data structure (it
compares equal to plain dicts, serializes with ``json`` and so on). The
overrides only add two things:

* reads record a dependency edge for the derivation being evaluated
* writes notify the derivations that read the touched slot

Nested plain dicts and lists are converted on the way in, so every
container reachable from an observed root is itself observed.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator
from typing import Any, SupportsIndex

from statetree.reactive.dep import Dep, current_target

_MISSING = object()


def observe(value: Any) -> Any:
    """Return *value* with every nested dict/list made observable."""
    if isinstance(value, (ReactiveDict, ReactiveList)):
        return value
    if isinstance(value, dict):
        return ReactiveDict(value)
    if isinstance(value, list):
        return ReactiveList(value)
    return value


def is_observed(value: Any) -> bool:
    return isinstance(value, (ReactiveDict, ReactiveList))


def to_plain(value: Any) -> Any:
    """Deep copy of *value* with observable containers turned back into dict/list."""
    if isinstance(value, dict):
        return {key: to_plain(item) for key, item in dict.items(value)}
    if isinstance(value, list):
        return [to_plain(item) for item in list.__iter__(value)]
    return copy.deepcopy(value)


def traverse(value: Any, _seen: set[int] | None = None) -> None:
    """Touch every nested slot of *value* so the current derivation depends on all of it."""
    if not is_observed(value):
        return
    seen = _seen if _seen is not None else set()
    if id(value) in seen:
        return
    seen.add(id(value))
    if isinstance(value, ReactiveDict):
        for key in value:
            traverse(value[key], seen)
    else:
        for item in value:
            traverse(item, seen)


def _depend_child(value: Any) -> None:
    if is_observed(value):
        value.dep.depend()


def _same_value(old: Any, new: Any) -> bool:
    if old is new:
        return True
    if isinstance(old, (dict, list)) or isinstance(new, (dict, list)):
        return False
    try:
        return bool(old == new) and type(old) is type(new)
    except Exception:
        return False


class ReactiveDict(dict):  # type: ignore[type-arg]
    """A ``dict`` whose reads are tracked and whose writes notify.

    Each key owns a :class:`Dep`; the container owns one more (``dep``)
    for its shape, notified when keys are added or removed.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__()
        self.dep = Dep()
        self._key_deps: dict[Any, Dep] = {}
        for key, value in dict(*args, **kwargs).items():
            dict.__setitem__(self, key, observe(value))

    def _key_dep(self, key: Any) -> Dep:
        dep = self._key_deps.get(key)
        if dep is None:
            dep = Dep()
            self._key_deps[key] = dep
        return dep

    def _track_key(self, key: Any) -> None:
        # Per-key deps exist only for keys some derivation actually read.
        if current_target() is None:
            return
        self._key_dep(key).depend()

    def _track_all(self) -> None:
        self.dep.depend()
        for key, value in dict.items(self):
            self._track_key(key)
            _depend_child(value)

    # -- reads ---------------------------------------------------------

    def __getitem__(self, key: Any) -> Any:
        self._track_key(key)
        value = dict.__getitem__(self, key)
        _depend_child(value)
        return value

    def get(self, key: Any, default: Any = None) -> Any:
        self._track_key(key)
        if not dict.__contains__(self, key):
            self.dep.depend()
            return default
        value = dict.__getitem__(self, key)
        _depend_child(value)
        return value

    def __contains__(self, key: object) -> bool:
        self._track_key(key)
        self.dep.depend()
        return dict.__contains__(self, key)

    def __iter__(self) -> Iterator[Any]:
        self.dep.depend()
        return dict.__iter__(self)

    def __len__(self) -> int:
        self.dep.depend()
        return dict.__len__(self)

    def keys(self):  # type: ignore[no-untyped-def]
        self.dep.depend()
        return dict.keys(self)

    def values(self):  # type: ignore[no-untyped-def]
        self._track_all()
        return dict.values(self)

    def items(self):  # type: ignore[no-untyped-def]
        self._track_all()
        return dict.items(self)

    # -- writes --------------------------------------------------------

    def __setitem__(self, key: Any, value: Any) -> None:
        value = observe(value)
        existed = dict.__contains__(self, key)
        if existed and _same_value(dict.__getitem__(self, key), value):
            return
        dict.__setitem__(self, key, value)
        dep = self._key_deps.get(key)
        if dep is not None:
            dep.notify()
        if not existed:
            self.dep.notify()

    def __delitem__(self, key: Any) -> None:
        dict.__delitem__(self, key)
        dep = self._key_deps.pop(key, None)
        if dep is not None:
            dep.notify()
        self.dep.notify()

    def pop(self, key: Any, default: Any = _MISSING) -> Any:
        if not dict.__contains__(self, key):
            if default is _MISSING:
                raise KeyError(key)
            return default
        value = dict.__getitem__(self, key)
        del self[key]
        return value

    def popitem(self) -> tuple[Any, Any]:
        if not dict.__len__(self):
            raise KeyError("popitem(): dictionary is empty")
        key = next(reversed(dict.keys(self)))
        return key, self.pop(key)

    def setdefault(self, key: Any, default: Any = None) -> Any:
        if not dict.__contains__(self, key):
            self[key] = default
        return self[key]

    def update(self, *args: Any, **kwargs: Any) -> None:  # type: ignore[override]
        for key, value in dict(*args, **kwargs).items():
            self[key] = value

    def __ior__(self, other: Any) -> ReactiveDict:  # type: ignore[override,misc]
        self.update(other)
        return self

    def clear(self) -> None:
        for key in list(dict.keys(self)):
            del self[key]

    # -- copies --------------------------------------------------------

    def __copy__(self) -> dict[Any, Any]:
        return dict(dict.items(self))

    def __deepcopy__(self, memo: dict[int, Any]) -> dict[Any, Any]:
        return {copy.deepcopy(key, memo): copy.deepcopy(value, memo) for key, value in dict.items(self)}

    def __reduce_ex__(self, protocol: SupportsIndex) -> Any:
        return (dict, (to_plain(self),))


class ReactiveList(list):  # type: ignore[type-arg]
    """A ``list`` with a single :class:`Dep` covering all of its slots."""

    def __init__(self, iterable: Iterable[Any] = ()) -> None:
        super().__init__(observe(item) for item in iterable)
        self.dep = Dep()

    def _track(self) -> None:
        self.dep.depend()

    # -- reads ---------------------------------------------------------

    def __getitem__(self, index: Any) -> Any:
        self._track()
        value = list.__getitem__(self, index)
        if isinstance(index, slice):
            for item in value:
                _depend_child(item)
        else:
            _depend_child(value)
        return value

    def __iter__(self) -> Iterator[Any]:
        self._track()
        for item in list.__iter__(self):
            _depend_child(item)
            yield item

    def __len__(self) -> int:
        self._track()
        return list.__len__(self)

    def __contains__(self, item: object) -> bool:
        self._track()
        return list.__contains__(self, item)

    def index(self, *args: Any) -> int:
        self._track()
        return list.index(self, *args)

    def count(self, item: Any) -> int:
        self._track()
        return list.count(self, item)

    # -- writes --------------------------------------------------------

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            value = [observe(item) for item in value]
        else:
            value = observe(value)
        list.__setitem__(self, index, value)
        self.dep.notify()

    def __delitem__(self, index: Any) -> None:
        list.__delitem__(self, index)
        self.dep.notify()

    def __iadd__(self, other: Iterable[Any]) -> ReactiveList:  # type: ignore[override,misc]
        self.extend(other)
        return self

    def __imul__(self, factor: SupportsIndex) -> ReactiveList:  # type: ignore[override,misc]
        list.__imul__(self, factor)
        self.dep.notify()
        return self

    def append(self, item: Any) -> None:
        list.append(self, observe(item))
        self.dep.notify()

    def extend(self, items: Iterable[Any]) -> None:
        list.extend(self, [observe(item) for item in items])
        self.dep.notify()

    def insert(self, index: SupportsIndex, item: Any) -> None:
        list.insert(self, index, observe(item))
        self.dep.notify()

    def pop(self, index: SupportsIndex = -1) -> Any:
        value = list.pop(self, index)
        self.dep.notify()
        return value

    def remove(self, item: Any) -> None:
        list.remove(self, item)
        self.dep.notify()

    def clear(self) -> None:
        list.clear(self)
        self.dep.notify()

    def sort(self, *args: Any, **kwargs: Any) -> None:
        list.sort(self, *args, **kwargs)
        self.dep.notify()

    def reverse(self) -> None:
        list.reverse(self)
        self.dep.notify()

    # -- copies --------------------------------------------------------

    def __copy__(self) -> list[Any]:
        return list(list.__iter__(self))

    def __deepcopy__(self, memo: dict[int, Any]) -> list[Any]:
        return [copy.deepcopy(item, memo) for item in list.__iter__(self)]

    def __reduce_ex__(self, protocol: SupportsIndex) -> Any:
        return (list, (to_plain(self),))
