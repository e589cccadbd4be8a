"""Bridge to an external debugging / time-travel tool."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from statetree.records import MutationRecord

if TYPE_CHECKING:
    from statetree.store import Store


@runtime_checkable
class DevtoolsHook(Protocol):
    """Event channel shared with the debugging tool.

    The store emits ``"init"`` (store), ``"mutation"`` (record, state) and
    ``"error"`` (exception from a rejected action). The tool may emit
    ``"travel-to-state"`` with a state snapshot to restore.
    """

    def emit(self, event: str, *args: Any) -> None: ...

    def on(self, event: str, handler: Callable[..., Any]) -> None: ...


def devtool_plugin(hook: DevtoolsHook) -> Callable[[Store], None]:
    def plugin(store: Store) -> None:
        store._devtool_hook = hook

        hook.emit("init", store)

        hook.on("travel-to-state", store.replace_state)

        def on_mutation(mutation: MutationRecord, state: Any) -> None:
            hook.emit("mutation", mutation, state)

        store.subscribe(on_mutation)

    return plugin
