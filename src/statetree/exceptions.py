"""Custom exception hierarchy for statetree."""

from __future__ import annotations

from collections.abc import Sequence


class StoreError(Exception):
    """Base exception for all statetree errors."""


class StoreConfigError(StoreError):
    """Invalid or missing configuration."""


class ModuleDeclarationError(StoreError):
    """A raw module declaration has the wrong shape.

    Raised for non-callable mutations/getters, actions that are neither a
    callable nor an object carrying a callable ``handler``, and unknown
    declaration keys.
    """

    def __init__(self, message: str, *, path: Sequence[str] = ()) -> None:
        self.path = tuple(path)
        super().__init__(message)


class ModulePathError(StoreError, LookupError):
    """No module is registered at the requested path."""

    def __init__(self, message: str, *, path: Sequence[str] = ()) -> None:
        self.path = tuple(path)
        super().__init__(message)


class ModuleRegistrationError(StoreError):
    """Dynamic registration was called with an unusable path.

    The root module can only be supplied at construction; ``register_module``
    with an empty path always raises this.
    """


class InvalidTypeError(StoreError, TypeError):
    """``commit``/``dispatch`` received a type that is not a string."""


class StateAssignmentError(StoreError):
    """The state tree was assigned directly instead of via ``replace_state``."""
