"""A single module in the module tree."""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from statetree.exceptions import ModuleDeclarationError
from statetree.module.declaration import ActionDeclaration, ModuleDeclaration

if TYPE_CHECKING:
    from statetree.context import LocalContext


def _initial_state(raw_state: Any) -> dict[str, Any]:
    if raw_state is None:
        return {}
    if callable(raw_state):
        produced = raw_state()
        if not isinstance(produced, Mapping):
            raise ModuleDeclarationError(f"state function must return a mapping, got {type(produced).__name__}")
        return dict(produced)
    # Copied so one declaration can be registered, removed and registered
    # again starting from its declared state.
    return copy.deepcopy(dict(raw_state))


class ModuleNode:
    """Runtime counterpart of a :class:`ModuleDeclaration`.

    ``runtime`` is ``False`` for modules created when the store is built and
    ``True`` for modules added with ``register_module``; only the latter can
    be removed.
    """

    def __init__(self, declaration: ModuleDeclaration, runtime: bool) -> None:
        self.runtime = runtime
        self.namespaced = declaration.namespaced
        self.mutations: dict[str, Callable[..., Any]] = dict(declaration.mutations)
        self.actions: dict[str, ActionDeclaration] = dict(declaration.actions)
        self.getters: dict[str, Callable[..., Any]] = dict(declaration.getters)
        self.state: Any = _initial_state(declaration.state)
        self.context: LocalContext | None = None
        self._children: dict[str, ModuleNode] = {}

    def __repr__(self) -> str:
        return (
            f"ModuleNode(namespaced={self.namespaced}, runtime={self.runtime}, "
            f"children={list(self._children)})"
        )

    def add_child(self, key: str, node: ModuleNode) -> None:
        self._children[key] = node

    def remove_child(self, key: str) -> None:
        self._children.pop(key, None)

    def get_child(self, key: str) -> ModuleNode | None:
        return self._children.get(key)

    def children(self) -> Iterator[tuple[str, ModuleNode]]:
        return iter(list(self._children.items()))

    def update(self, declaration: ModuleDeclaration) -> None:
        """Swap in new handlers; children and state are left alone."""
        self.namespaced = declaration.namespaced
        declared = declaration.model_fields_set
        if "actions" in declared:
            self.actions = dict(declaration.actions)
        if "mutations" in declared:
            self.mutations = dict(declaration.mutations)
        if "getters" in declared:
            self.getters = dict(declaration.getters)
