"""Path-indexed tree of :class:`ModuleNode` objects."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Any

from statetree._util import ModulePath
from statetree.exceptions import ModulePathError
from statetree.module.declaration import ModuleDeclaration, parse_declaration
from statetree.module.node import ModuleNode

_logger = logging.getLogger(__name__)

NAMESPACE_SEPARATOR = "/"


class ModuleTree:
    """Holds the module tree built from a root declaration.

    A *path* is the sequence of child keys leading from the root to a
    module; the root itself is the empty path.
    """

    def __init__(self, raw_root: Any) -> None:
        self.root: ModuleNode
        self.register((), raw_root, runtime=False)

    def get(self, path: Sequence[str]) -> ModuleNode:
        node = self.root
        for depth, key in enumerate(path):
            child = node.get_child(key)
            if child is None:
                walked = ".".join(path[: depth + 1])
                raise ModulePathError(f'module "{walked}" is not registered', path=tuple(path))
            node = child
        return node

    def is_registered(self, path: Sequence[str]) -> bool:
        node: ModuleNode | None = self.root
        for key in path:
            if node is None:
                return False
            node = node.get_child(key)
        return node is not None

    def get_namespace(self, path: Sequence[str]) -> str:
        node = self.root
        namespace = ""
        for key in path:
            child = node.get_child(key)
            if child is None:
                raise ModulePathError(f'module "{".".join(path)}" is not registered', path=tuple(path))
            node = child
            if node.namespaced:
                namespace += key + NAMESPACE_SEPARATOR
        return namespace

    def register(self, path: Sequence[str], raw_module: Any, runtime: bool = True) -> ModuleNode:
        path = tuple(path)
        declaration = parse_declaration(raw_module, path)
        node = ModuleNode(declaration, runtime)
        if not path:
            self.root = node
        else:
            parent = self.get(path[:-1])
            parent.add_child(path[-1], node)

        for key, child in declaration.modules.items():
            self.register(path + (key,), child, runtime)
        return node

    def unregister(self, path: Sequence[str]) -> bool:
        """Detach the module at *path*; static (non-runtime) modules are kept.

        Returns whether anything was removed.
        """
        parent = self.get(path[:-1])
        key = path[-1]
        child = parent.get_child(key)
        if child is None:
            raise ModulePathError(f'module "{".".join(path)}" is not registered', path=tuple(path))
        if not child.runtime:
            return False
        parent.remove_child(key)
        return True

    def update(self, raw_root: Any) -> None:
        _update((), self.root, parse_declaration(raw_root))

    def walk(self) -> Iterator[tuple[ModulePath, ModuleNode]]:
        """Depth-first ``(path, node)`` pairs, parents before children."""
        stack: list[tuple[ModulePath, ModuleNode]] = [((), self.root)]
        while stack:
            path, node = stack.pop()
            yield path, node
            children = [(path + (key,), child) for key, child in node.children()]
            stack.extend(reversed(children))


def _update(path: ModulePath, target: ModuleNode, declaration: ModuleDeclaration) -> None:
    target.update(declaration)

    for key, child in declaration.modules.items():
        existing = target.get_child(key)
        if existing is None:
            _logger.warning(
                "Trying to add a new module '%s' on hot reloading, manual reload is needed",
                ".".join(path + (key,)),
            )
            return
        _update(path + (key,), existing, child)
