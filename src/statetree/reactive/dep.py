"""Dependency edges between observable data and the derivations reading it."""

from __future__ import annotations

import contextlib
import itertools
from collections.abc import Iterator
from typing import Protocol

# itertools.count is atomic under the GIL; ids double as creation order.
_id_counter = itertools.count(1)

_target_stack: list[Subscriber | None] = []


def new_id() -> int:
    return next(_id_counter)


class Subscriber(Protocol):
    """Anything that can be notified by a :class:`Dep`."""

    id: int
    lazy: bool

    def add_dep(self, dep: Dep) -> None: ...

    def update(self) -> None: ...


def current_target() -> Subscriber | None:
    """The derivation currently collecting dependencies, if any."""
    return _target_stack[-1] if _target_stack else None


def push_target(target: Subscriber | None) -> None:
    _target_stack.append(target)


def pop_target() -> None:
    _target_stack.pop()


@contextlib.contextmanager
def untracked() -> Iterator[None]:
    """Read observable data without recording dependencies."""
    push_target(None)
    try:
        yield
    finally:
        pop_target()


class Dep:
    """A single observable slot (one dict key, or one container's shape)."""

    __slots__ = ("id", "_subs")

    def __init__(self) -> None:
        self.id = new_id()
        self._subs: dict[int, Subscriber] = {}

    def __len__(self) -> int:
        return len(self._subs)

    def add_sub(self, sub: Subscriber) -> None:
        self._subs[sub.id] = sub

    def remove_sub(self, sub: Subscriber) -> None:
        self._subs.pop(sub.id, None)

    def depend(self) -> None:
        target = current_target()
        if target is not None:
            target.add_dep(self)

    def notify(self) -> None:
        subs = sorted(self._subs.values(), key=lambda sub: sub.id)
        # Lazy derivations are only marked dirty; do that first so eager
        # watchers reading them in this pass never see a stale cache.
        for sub in subs:
            if sub.lazy:
                sub.update()
        for sub in subs:
            if not sub.lazy:
                sub.update()
