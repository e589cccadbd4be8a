"""Module tree layer.

Turns nested raw module declarations into a tree of :class:`ModuleNode`
objects and answers path and namespace questions about it.
"""

from statetree.module.declaration import ActionDeclaration, ModuleDeclaration, parse_declaration
from statetree.module.node import ModuleNode
from statetree.module.tree import NAMESPACE_SEPARATOR, ModuleTree

__all__ = [
    "NAMESPACE_SEPARATOR",
    "ActionDeclaration",
    "ModuleDeclaration",
    "ModuleNode",
    "ModuleTree",
    "parse_declaration",
]
