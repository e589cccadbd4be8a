"""Validated shape of a raw module declaration.

Plain mappings are the usual way to declare a module::

    counter = {
        "namespaced": True,
        "state": lambda: {"count": 0},
        "mutations": {"add": lambda state, n: state.update(count=state["count"] + n)},
        "getters": {"double": lambda state: state["count"] * 2},
    }

They are parsed into :class:`ModuleDeclaration` once, at registration,
so shape errors surface there with the offending module path instead of
at the first commit.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from statetree.exceptions import ModuleDeclarationError

_EXPECTED: dict[str, str] = {
    "mutations": "function",
    "getters": "function",
    "actions": 'function or object with "handler" function',
}


class ActionDeclaration(BaseModel):
    """An action handler plus its registration flags.

    ``root=True`` registers the handler under its bare key even inside a
    namespaced module.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    handler: Callable[..., Any]
    root: bool = False


class ModuleDeclaration(BaseModel):
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    namespaced: bool = False
    state: Any = None
    mutations: dict[str, Callable[..., Any]] = Field(default_factory=dict)
    actions: dict[str, ActionDeclaration] = Field(default_factory=dict)
    getters: dict[str, Callable[..., Any]] = Field(default_factory=dict)
    modules: dict[str, ModuleDeclaration] = Field(default_factory=dict)

    @field_validator("state")
    @classmethod
    def _check_state(cls, value: Any) -> Any:
        if value is None or callable(value) or isinstance(value, Mapping):
            return value
        raise ValueError("state must be a mapping or a function returning one")

    @field_validator("actions", mode="before")
    @classmethod
    def _coerce_actions(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        coerced: dict[str, Any] = {}
        for key, action in value.items():
            if callable(action) and not isinstance(action, (ActionDeclaration, Mapping)):
                coerced[key] = {"handler": action}
            else:
                coerced[key] = action
        return coerced


def _describe(exc: ValidationError, path: Sequence[str]) -> tuple[str, tuple[str, ...]]:
    error = exc.errors()[0]
    loc = [str(part) for part in error["loc"]]
    module_path = list(path)
    while len(loc) >= 2 and loc[0] == "modules":
        module_path.append(loc[1])
        loc = loc[2:]

    section = loc[0] if loc else ""
    expected = _EXPECTED.get(section)
    if expected and len(loc) >= 2:
        message = f'{section} should be {expected} but "{section}.{loc[1]}"'
        if module_path:
            message += f' in module "{".".join(module_path)}"'
        message += f" is {error.get('input')!r}."
    else:
        message = f"invalid module declaration field {'.'.join(loc) or '<root>'!r}: {error['msg']}"
        if module_path:
            message += f' in module "{".".join(module_path)}"'
    return message, tuple(module_path)


def parse_declaration(raw: Any, path: Sequence[str] = ()) -> ModuleDeclaration:
    """Validate *raw* (a mapping or declaration) into a :class:`ModuleDeclaration`."""
    if isinstance(raw, ModuleDeclaration):
        return raw
    if not isinstance(raw, Mapping):
        where = f' at "{".".join(path)}"' if path else ""
        raise ModuleDeclarationError(
            f"module declaration{where} must be a mapping, got {type(raw).__name__}",
            path=path,
        )
    try:
        return ModuleDeclaration.model_validate(dict(raw))
    except ValidationError as exc:
        message, module_path = _describe(exc, path)
        raise ModuleDeclarationError(message, path=module_path) from exc
