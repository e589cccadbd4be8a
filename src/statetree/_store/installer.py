"""Internal module installation for :class:`statetree.store.Store`.

The installer walks the module tree depth-first, mounts each module's
state into the aggregate state tree and fills the flat handler
registries under namespace-qualified types. The registries and the getter
projection are always rebuilt from scratch, never patched.

These functions keep `store.py` small without changing the public API.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from statetree._util import ModulePath, get_nested_state, positional_adapter
from statetree.context import ActionContext, LocalContext
from statetree.module.node import ModuleNode
from statetree.projection import GetterProjection

if TYPE_CHECKING:
    from statetree.plugins.devtool import DevtoolsHook
    from statetree.store import Store

_logger = logging.getLogger(__name__)

MutationHandler = Callable[[Any], None]
ActionHandler = Callable[[Any], "asyncio.Future[Any]"]
WrappedGetter = Callable[[], Any]


def install_module(
    store: Store,
    root_state: Any,
    path: ModulePath,
    node: ModuleNode,
    *,
    hot: bool = False,
    preserve_state: bool = False,
) -> None:
    """Register *node* and its descendants.

    ``hot`` skips state mounting for the whole subtree (used for rebuilds
    where the state tree already has the right shape). ``preserve_state``
    skips it only where the mount point already holds a value.
    """
    is_root = not path
    namespace = store._modules.get_namespace(path)

    if node.namespaced:
        if namespace in store._modules_namespace_map:
            _logger.error(
                "Duplicate namespace %s for the namespaced module %s",
                namespace,
                "/".join(path),
            )
        store._modules_namespace_map[namespace] = node

    if not is_root and not hot:
        parent_state = get_nested_state(root_state, path[:-1])
        module_name = path[-1]
        with store._committing_window():
            if preserve_state and module_name in parent_state:
                _logger.debug("Keeping existing state for module %s", ".".join(path))
            else:
                if module_name in parent_state:
                    _logger.warning(
                        'State field "%s" was overridden by a module with the same name at "%s"',
                        module_name,
                        ".".join(path),
                    )
                node.state = store._engine.observe(node.state)
                parent_state[module_name] = node.state

    local = node.context = LocalContext(store, namespace, path)

    for key, mutation in node.mutations.items():
        register_mutation(store, namespace + key, mutation, local)

    for key, action in node.actions.items():
        action_type = key if action.root else namespace + key
        register_action(store, action_type, action.handler, local)

    for key, getter in node.getters.items():
        register_getter(store, namespace + key, getter, local)

    for key, child in node.children():
        install_module(store, root_state, path + (key,), child, hot=hot, preserve_state=preserve_state)


def register_mutation(store: Store, type_: str, handler: Callable[..., Any], local: LocalContext) -> None:
    call = positional_adapter(handler)

    def wrapped_mutation_handler(payload: Any) -> None:
        call(local.state, payload)

    store._mutations.setdefault(type_, []).append(wrapped_mutation_handler)


def register_action(store: Store, type_: str, handler: Callable[..., Any], local: LocalContext) -> None:
    call = positional_adapter(handler)

    def wrapped_action_handler(payload: Any) -> asyncio.Future[Any]:
        try:
            result = as_future(call(ActionContext(store, local), payload))
        except Exception as err:
            # Plain handlers that raise still hand back a (rejected) future.
            result = asyncio.get_running_loop().create_future()
            result.set_exception(err)
        hook = store._devtool_hook
        if hook is None:
            return result
        return asyncio.ensure_future(_forward_errors(result, hook))

    store._actions.setdefault(type_, []).append(wrapped_action_handler)


def register_getter(store: Store, type_: str, raw_getter: Callable[..., Any], local: LocalContext) -> None:
    if type_ in store._wrapped_getters:
        _logger.error("Duplicate getter key: %s", type_)
        return

    call = positional_adapter(raw_getter)

    def wrapped_getter() -> Any:
        return call(local.state, local.getters, store.state, store.getters)

    store._wrapped_getters[type_] = wrapped_getter


def as_future(result: Any) -> asyncio.Future[Any]:
    """Give every action result the same awaitable shape."""
    if asyncio.isfuture(result):
        return result
    if inspect.isawaitable(result):
        return asyncio.ensure_future(result)
    future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
    future.set_result(result)
    return future


async def _forward_errors(result: Awaitable[Any], hook: DevtoolsHook) -> Any:
    try:
        return await result
    except Exception as err:
        hook.emit("error", err)
        raise


def reset_store(store: Store, *, hot: bool = False) -> None:
    """Rebuild every registry from the current module tree."""
    store._actions = {}
    store._mutations = {}
    store._wrapped_getters = {}
    store._modules_namespace_map = {}
    install_module(store, store.state, (), store._modules.root, hot=True)
    reset_projection(store, hot=hot)


def reset_projection(store: Store, *, hot: bool = False) -> None:
    """Swap in a fresh getter projection and retire the previous one on the next tick."""
    old_projection = store._projection
    projection = GetterProjection(store._engine, store._state_holder, store._wrapped_getters)
    store._projection = projection

    if store.strict:
        enable_strict_mode(store, projection)

    if old_projection is not None:
        if hot:
            # Watchers that read the old getters re-run against the new ones.
            with store._committing_window():
                projection.invalidate()
        store._engine.next_tick(old_projection.destroy)


def enable_strict_mode(store: Store, projection: GetterProjection) -> None:
    def check_committing(_new: Any, _old: Any) -> None:
        if not store._committing:
            _logger.error("Do not mutate store state outside mutation handlers.")

    unwatch = store._engine.watch(lambda: projection.state, check_committing, deep=True, sync=True)
    projection.own(unwatch)
