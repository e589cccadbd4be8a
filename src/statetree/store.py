"""The store: a single state tree written only through registered mutations."""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from statetree._store.installer import install_module, reset_projection, reset_store
from statetree._util import get_nested_state, normalize_path, positional_adapter, unify_object_style
from statetree.config import StoreConfig
from statetree.exceptions import ModuleRegistrationError, StateAssignmentError, StoreConfigError, StoreError
from statetree.module.node import ModuleNode
from statetree.module.tree import ModuleTree
from statetree.plugins.devtool import devtool_plugin
from statetree.projection import GetterProjection, LocalGettersView, new_state_holder
from statetree.reactive.dep import untracked
from statetree.reactive.engine import DefaultEngine, ReactiveEngine
from statetree.records import ActionRecord, ActionSubscriber, MutationRecord, WatchOptions

if TYPE_CHECKING:
    from statetree.plugins.devtool import DevtoolsHook

_logger = logging.getLogger(__name__)

T = TypeVar("T")

MutationSubscriber = Callable[[MutationRecord, Any], Any]
Plugin = Callable[["Store"], None]


def _generic_subscribe(entry: T, subscribers: list[T]) -> Callable[[], None]:
    if entry not in subscribers:
        subscribers.append(entry)

    def unsubscribe() -> None:
        if entry in subscribers:
            subscribers.remove(entry)

    return unsubscribe


class Store:
    """Hierarchical, namespaced state container.

    Usage::

        store = Store(
            {
                "state": {"count": 0},
                "mutations": {"inc": lambda state: state.update(count=state["count"] + 1)},
                "modules": {"cart": cart_module},
            },
            strict=True,
        )
        store.commit("inc")
        await store.dispatch("cart/checkout", items)

    Parameters
    ----------
    module : mapping or ModuleDeclaration, optional
        Root module declaration; child modules go under its ``modules`` key.
    strict : bool, optional
        Overrides ``config.strict``.
    plugins : iterable of callables
        Each is called once with the store, after construction.
    engine : ReactiveEngine, optional
        Reactivity adapter. Defaults to :class:`DefaultEngine`.
    devtools : DevtoolsHook, optional
        Debugging bridge receiving ``init``/``mutation``/``error`` events.
    config : StoreConfig, optional
        Remaining store options.
    """

    def __init__(
        self,
        module: Any = None,
        *,
        strict: bool | None = None,
        plugins: Iterable[Plugin] = (),
        engine: ReactiveEngine | None = None,
        devtools: DevtoolsHook | None = None,
        config: StoreConfig | None = None,
    ) -> None:
        config = config or StoreConfig()
        if strict is not None:
            config = dataclasses.replace(config, strict=strict)
        if config.devtools and devtools is None:
            raise StoreConfigError("devtools is enabled but no devtools hook was supplied")

        self._config = config
        self.strict = config.strict
        self._engine: ReactiveEngine = engine or DefaultEngine()
        self._committing = False
        self._actions: dict[str, list[Callable[[Any], asyncio.Future[Any]]]] = {}
        self._action_subscribers: list[ActionSubscriber] = []
        self._mutations: dict[str, list[Callable[[Any], None]]] = {}
        self._wrapped_getters: dict[str, Callable[[], Any]] = {}
        self._modules = ModuleTree(module if module is not None else {})
        self._modules_namespace_map: dict[str, ModuleNode] = {}
        self._subscribers: list[MutationSubscriber] = []
        self._projection: GetterProjection | None = None
        self._devtool_hook: DevtoolsHook | None = None

        root = self._modules.root
        root.state = self._engine.observe(root.state)
        self._state_holder = new_state_holder(self._engine, root.state)

        # Registers every nested module and collects their getters.
        install_module(self, root.state, (), root)
        reset_projection(self)

        for plugin in plugins:
            plugin(self)

        if devtools is not None:
            devtool_plugin(devtools)(self)

    # ------------------------------------------------------------------
    # State & getters
    # ------------------------------------------------------------------

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def state(self) -> Any:
        return self._require_projection().state

    @state.setter
    def state(self, _value: Any) -> None:
        raise StateAssignmentError("use store.replace_state() to explicitly replace store state.")

    @property
    def getters(self) -> Mapping[str, Any]:
        return self._require_projection().getters

    def replace_state(self, state: Any) -> None:
        """Swap the whole state tree, e.g. when restoring a snapshot."""
        with self._committing_window():
            self._require_projection().set_state(self._engine.observe(state))

    # ------------------------------------------------------------------
    # Commit / dispatch
    # ------------------------------------------------------------------

    def commit(self, type_: Any, payload: Any = None, options: Mapping[str, Any] | None = None) -> None:
        """Run every mutation registered under *type_*, then notify subscribers.

        Accepts ``commit("type", payload)`` and the object style
        ``commit({"type": "type", ...})``.
        """
        call = unify_object_style(type_, payload, options)
        mutation = MutationRecord(type=call.type, payload=call.payload)
        entry = self._mutations.get(call.type)
        if not entry:
            _logger.error("Unknown mutation type: %s", call.type)
            return

        with self._committing_window():
            for handler in list(entry):
                handler(call.payload)

        # Subscribers read state without becoming dependencies of an enclosing derivation.
        with untracked():
            for subscriber in list(self._subscribers):
                subscriber(mutation, self.state)

        if call.options.get("silent") and self._config.warn_on_silent:
            _logger.warning(
                "Mutation type: %s. Silent option has been removed. "
                "Filter mutations in the subscriber or the debugging tool instead",
                call.type,
            )

    def dispatch(self, type_: Any, payload: Any = None) -> asyncio.Future[Any] | None:
        """Run every action registered under *type_*.

        Returns a future resolving to the handler's result (a list of
        results when several modules registered the same type), or
        ``None`` for an unknown type. Must be called with a running
        event loop.
        """
        call = unify_object_style(type_, payload)
        action = ActionRecord(type=call.type, payload=call.payload)
        entry = self._actions.get(call.type)
        if not entry:
            _logger.error("Unknown action type: %s", call.type)
            return None

        try:
            asyncio.get_running_loop()
        except RuntimeError as exc:
            raise StoreError(f"dispatch({call.type!r}) requires a running event loop") from exc

        self._notify_action_subscribers("before", action)

        handlers = list(entry)
        result: Awaitable[Any]
        if len(handlers) > 1:
            result = asyncio.gather(*(handler(call.payload) for handler in handlers))
        else:
            result = handlers[0](call.payload)

        return asyncio.ensure_future(self._settle_action(result, action))

    async def _settle_action(self, result: Awaitable[Any], action: ActionRecord) -> Any:
        value = await result
        self._notify_action_subscribers("after", action)
        return value

    def _notify_action_subscribers(self, phase: str, action: ActionRecord) -> None:
        hooks = [getattr(sub, phase) for sub in list(self._action_subscribers) if getattr(sub, phase) is not None]
        with untracked():
            for hook in hooks:
                try:
                    hook(action, self.state)
                except Exception:
                    _logger.warning("Error in %s action subscribers for %s", phase, action.type, exc_info=True)

    # ------------------------------------------------------------------
    # Subscriptions & watchers
    # ------------------------------------------------------------------

    def subscribe(self, fn: MutationSubscriber) -> Callable[[], None]:
        """Call ``fn(mutation, state)`` after every commit; returns an unsubscribe closure."""
        return _generic_subscribe(fn, self._subscribers)

    def subscribe_action(
        self,
        fn: Callable[[ActionRecord, Any], Any] | Mapping[str, Any] | ActionSubscriber,
    ) -> Callable[[], None]:
        """Hook into dispatches; a bare callable is treated as ``before``."""
        if isinstance(fn, ActionSubscriber):
            subscriber = fn
        elif isinstance(fn, Mapping):
            subscriber = ActionSubscriber(**fn)
        else:
            subscriber = ActionSubscriber(before=fn)
        return _generic_subscribe(subscriber, self._action_subscribers)

    def watch(
        self,
        selector: Callable[..., Any],
        callback: Callable[..., Any],
        options: WatchOptions | Mapping[str, Any] | None = None,
    ) -> Callable[[], None]:
        """Observe ``selector(state, getters)``; returns an unwatch closure."""
        if not callable(selector):
            raise TypeError("store.watch only accepts a function.")
        opts = options if isinstance(options, WatchOptions) else WatchOptions.model_validate(options or {})
        select = positional_adapter(selector)
        return self._engine.watch(
            lambda: select(self.state, self.getters),
            positional_adapter(callback),
            deep=opts.deep,
            immediate=opts.immediate,
            sync=opts.sync,
        )

    # ------------------------------------------------------------------
    # Dynamic modules
    # ------------------------------------------------------------------

    def register_module(self, path: str | Sequence[str], raw_module: Any, *, preserve_state: bool = False) -> None:
        """Add a module at runtime.

        With ``preserve_state=True`` a value already present at the mount
        point (e.g. restored from a snapshot) is kept instead of the
        declared initial state.
        """
        module_path = normalize_path(path)
        if not module_path:
            raise ModuleRegistrationError("cannot register the root module by using register_module.")

        node = self._modules.register(module_path, raw_module, runtime=True)
        install_module(self, self.state, module_path, node, preserve_state=preserve_state)
        # Rebuild the projection so the new getters are picked up.
        reset_projection(self)

    def unregister_module(self, path: str | Sequence[str]) -> None:
        """Remove a module added with :meth:`register_module` along with its state."""
        module_path = normalize_path(path)
        if not self._modules.unregister(module_path):
            _logger.warning(
                "Module %s was registered at construction and cannot be unregistered",
                ".".join(module_path),
            )
            return

        with self._committing_window():
            parent_state = get_nested_state(self.state, module_path[:-1])
            parent_state.pop(module_path[-1], None)
        reset_store(self)

    def has_module(self, path: str | Sequence[str]) -> bool:
        return self._modules.is_registered(normalize_path(path))

    def hot_update(self, new_module: Any) -> None:
        """Replace handlers across the existing tree without touching state."""
        self._modules.update(new_module)
        reset_store(self, hot=True)

    def module_by_namespace(self, namespace: str) -> ModuleNode | None:
        """Look up a namespaced module, as binding helpers do."""
        if namespace and not namespace.endswith("/"):
            namespace += "/"
        node = self._modules_namespace_map.get(namespace)
        if node is None:
            _logger.error("Module namespace not found: %s", namespace)
        return node

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_projection(self) -> GetterProjection:
        if self._projection is None:
            raise StoreError("Store is still being constructed")
        return self._projection

    def _local_getters(self, namespace: str) -> LocalGettersView:
        return self._require_projection().local_getters(namespace)

    def _has_mutation(self, type_: str) -> bool:
        return type_ in self._mutations

    def _has_action(self, type_: str) -> bool:
        return type_ in self._actions

    @contextlib.contextmanager
    def _committing_window(self) -> Iterator[None]:
        committing = self._committing
        self._committing = True
        try:
            yield
        finally:
            self._committing = committing
