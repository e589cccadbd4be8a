"""Small helpers shared by the store, installer and local contexts."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping, Sequence
from typing import Any, NamedTuple

from statetree.exceptions import InvalidTypeError, ModuleRegistrationError

ModulePath = tuple[str, ...]


class UnifiedCall(NamedTuple):
    type: str
    payload: Any
    options: dict[str, Any]


def unify_object_style(type_: Any, payload: Any = None, options: Mapping[str, Any] | None = None) -> UnifiedCall:
    """Normalize ``commit``/``dispatch`` arguments.

    Object style (``commit({"type": "inc", "amount": 2})``) passes the whole
    mapping as the payload and shifts the second argument into options.
    """
    if isinstance(type_, Mapping) and type_.get("type"):
        options = payload
        payload = type_
        type_ = type_["type"]

    if not isinstance(type_, str):
        raise InvalidTypeError(f"expects string as the type, but found {type(type_).__name__}.")

    return UnifiedCall(type_, payload, dict(options) if options else {})


def normalize_path(path: str | Sequence[str]) -> ModulePath:
    if isinstance(path, str):
        return (path,)
    if isinstance(path, Sequence) and all(isinstance(key, str) for key in path):
        return tuple(path)
    raise ModuleRegistrationError("module path must be a string or a sequence of strings.")


def get_nested_state(state: Any, path: Sequence[str]) -> Any:
    for key in path:
        state = state[key]
    return state


def _positional_limit(fn: Callable[..., Any]) -> int | None:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None
    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


def positional_adapter(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap *fn* so it only receives as many leading arguments as it declares.

    Lets handler authors write ``lambda state: state["x"] * 2`` for a getter
    that is always invoked with four arguments.
    """
    limit = _positional_limit(fn)
    if limit is None:
        return fn

    def call(*args: Any) -> Any:
        return fn(*args[:limit])

    return call
