"""Built-in store plugins.

A plugin is any callable taking the store; it runs once, right after the
store is built, and usually subscribes to mutations or actions.
"""

from statetree.plugins.devtool import DevtoolsHook, devtool_plugin
from statetree.plugins.logger import create_logger

__all__ = [
    "DevtoolsHook",
    "create_logger",
    "devtool_plugin",
]
