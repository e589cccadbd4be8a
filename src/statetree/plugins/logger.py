"""Plugin logging every mutation (and optionally action) through :mod:`logging`."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from statetree._format import summarize_for_log
from statetree.reactive.observable import to_plain
from statetree.records import ActionRecord, MutationRecord

if TYPE_CHECKING:
    from statetree.store import Store

MutationFilter = Callable[[MutationRecord, Any, Any], bool]
ActionFilter = Callable[[ActionRecord, Any], bool]


def _identity(value: Any) -> Any:
    return value


def create_logger(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    collapsed: bool = True,
    filter: MutationFilter | None = None,  # noqa: A002
    transformer: Callable[[Any], Any] = _identity,
    mutation_transformer: Callable[[MutationRecord], Any] | None = None,
    action_filter: ActionFilter | None = None,
    action_transformer: Callable[[ActionRecord], Any] | None = None,
    log_mutations: bool = True,
    log_actions: bool = False,
    max_depth: int = 6,
) -> Callable[[Store], None]:
    """Build a plugin that logs state transitions.

    Parameters
    ----------
    logger : logging.Logger, optional
        Destination. Defaults to the ``statetree.mutations`` logger.
    level : int
        Log level for every record.
    collapsed : bool
        One line per mutation; ``False`` emits separate prev/mutation/next lines.
    filter : callable, optional
        ``filter(mutation, state_before, state_after)`` returning whether to log.
    transformer : callable
        Applied to state snapshots before rendering.
    mutation_transformer / action_transformer : callable, optional
        Applied to records before rendering; defaults to ``type`` + ``payload``.
    action_filter : callable, optional
        ``action_filter(action, state)`` returning whether to log.
    log_mutations / log_actions : bool
        Which record kinds to log.
    max_depth : int
        Nesting depth rendered for payloads and states.
    """
    log = logger or logging.getLogger("statetree.mutations")

    def render(value: Any) -> Any:
        return summarize_for_log(value, max_depth=max_depth)

    def plugin(store: Store) -> None:
        prev_state = to_plain(store.state)

        if log_mutations:

            def on_mutation(mutation: MutationRecord, state: Any) -> None:
                nonlocal prev_state
                next_state = to_plain(state)
                if (filter is None or filter(mutation, prev_state, next_state)) and log.isEnabledFor(level):
                    formatted = (
                        mutation_transformer(mutation)
                        if mutation_transformer is not None
                        else {"type": mutation.type, "payload": mutation.payload}
                    )
                    before = render(transformer(prev_state))
                    after = render(transformer(next_state))
                    if collapsed:
                        log.log(level, "mutation %s %s prev=%s next=%s", mutation.type, render(formatted), before, after)
                    else:
                        log.log(level, "mutation %s", mutation.type)
                        log.log(level, "  prev state %s", before)
                        log.log(level, "  mutation   %s", render(formatted))
                        log.log(level, "  next state %s", after)
                prev_state = next_state

            store.subscribe(on_mutation)

        if log_actions:

            def on_action(action: ActionRecord, state: Any) -> None:
                if action_filter is not None and not action_filter(action, state):
                    return
                if not log.isEnabledFor(level):
                    return
                formatted = (
                    action_transformer(action)
                    if action_transformer is not None
                    else {"type": action.type, "payload": action.payload}
                )
                log.log(level, "action %s %s", action.type, render(formatted))

            store.subscribe_action(on_action)

    return plugin
