"""Records passed to subscribers and watch options.

Mutation and action subscribers always receive one of these frozen
records plus the current state; they never see the raw call arguments.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MutationRecord(BaseModel):
    """A committed mutation."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Namespace-qualified mutation type")
    payload: Any = None


class ActionRecord(BaseModel):
    """A dispatched action."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Namespace-qualified action type")
    payload: Any = None


class ActionSubscriber(BaseModel):
    """``before``/``after`` hooks around every dispatched action."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    before: Callable[[ActionRecord, Any], Any] | None = None
    after: Callable[[ActionRecord, Any], Any] | None = None


class WatchOptions(BaseModel):
    """Options for :meth:`statetree.Store.watch`.

    ``sync`` watchers run inside the write that changed their source;
    the others are batched and run on the next tick of the event loop.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    deep: bool = False
    immediate: bool = False
    sync: bool = False
