"""Per-module scoped accessors.

Handlers inside a namespaced module commit, dispatch and read getters by
their local names; the :class:`LocalContext` adds the namespace prefix on
the way out so module authors never hard-code where their module is
mounted.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from statetree._util import ModulePath, get_nested_state, unify_object_style

if TYPE_CHECKING:
    from statetree.store import Store

_logger = logging.getLogger(__name__)


class LocalContext:
    """``dispatch``/``commit``/``getters``/``state`` scoped to one module.

    ``state`` and ``getters`` are resolved on every access: the module's
    state object and the getter projection are both replaced over the
    lifetime of a store.
    """

    def __init__(self, store: Store, namespace: str, path: ModulePath) -> None:
        self._store = store
        self.namespace = namespace
        self.path = path

    def __repr__(self) -> str:
        return f"LocalContext(namespace={self.namespace!r}, path={self.path!r})"

    def dispatch(
        self,
        type_: Any,
        payload: Any = None,
        options: Mapping[str, Any] | None = None,
    ) -> asyncio.Future[Any] | None:
        if not self.namespace:
            return self._store.dispatch(type_, payload)

        call = unify_object_style(type_, payload, options)
        action_type = call.type
        if not call.options.get("root"):
            action_type = self.namespace + call.type
            if not self._store._has_action(action_type):
                _logger.error("Unknown local action type: %s, global type: %s", call.type, action_type)
                return None

        return self._store.dispatch(action_type, call.payload)

    def commit(
        self,
        type_: Any,
        payload: Any = None,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        if not self.namespace:
            self._store.commit(type_, payload, options)
            return

        call = unify_object_style(type_, payload, options)
        mutation_type = call.type
        if not call.options.get("root"):
            mutation_type = self.namespace + call.type
            if not self._store._has_mutation(mutation_type):
                _logger.error("Unknown local mutation type: %s, global type: %s", call.type, mutation_type)
                return

        self._store.commit(mutation_type, call.payload, call.options)

    @property
    def getters(self) -> Mapping[str, Any]:
        if not self.namespace:
            return self._store.getters
        return self._store._local_getters(self.namespace)

    @property
    def state(self) -> Any:
        return get_nested_state(self._store.state, self.path)


class ActionContext:
    """First argument of every action handler."""

    __slots__ = ("_local", "_store")

    def __init__(self, store: Store, local: LocalContext) -> None:
        self._store = store
        self._local = local

    def dispatch(
        self,
        type_: Any,
        payload: Any = None,
        options: Mapping[str, Any] | None = None,
    ) -> asyncio.Future[Any] | None:
        return self._local.dispatch(type_, payload, options)

    def commit(
        self,
        type_: Any,
        payload: Any = None,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        self._local.commit(type_, payload, options)

    @property
    def state(self) -> Any:
        return self._local.state

    @property
    def getters(self) -> Mapping[str, Any]:
        return self._local.getters

    @property
    def root_state(self) -> Any:
        return self._store.state

    @property
    def root_getters(self) -> Mapping[str, Any]:
        return self._store.getters
