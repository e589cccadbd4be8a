"""statetree - hierarchical, namespaced state container for reactive applications."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("statetree")
except PackageNotFoundError:
    __version__ = "0+local"
from statetree.config import StoreConfig
from statetree.context import ActionContext, LocalContext
from statetree.exceptions import (
    InvalidTypeError,
    ModuleDeclarationError,
    ModulePathError,
    ModuleRegistrationError,
    StateAssignmentError,
    StoreConfigError,
    StoreError,
)
from statetree.module import ActionDeclaration, ModuleDeclaration, ModuleNode, ModuleTree
from statetree.plugins import DevtoolsHook, create_logger, devtool_plugin
from statetree.reactive import DefaultEngine, ReactiveEngine
from statetree.records import ActionRecord, ActionSubscriber, MutationRecord, WatchOptions
from statetree.store import Store

__all__ = [
    "__version__",
    "ActionContext",
    "ActionDeclaration",
    "ActionRecord",
    "ActionSubscriber",
    "DefaultEngine",
    "DevtoolsHook",
    "InvalidTypeError",
    "LocalContext",
    "ModuleDeclaration",
    "ModuleDeclarationError",
    "ModuleNode",
    "ModulePathError",
    "ModuleRegistrationError",
    "ModuleTree",
    "MutationRecord",
    "ReactiveEngine",
    "StateAssignmentError",
    "Store",
    "StoreConfig",
    "StoreConfigError",
    "StoreError",
    "WatchOptions",
    "create_logger",
    "devtool_plugin",
]
