"""Reactive engine layer.

A minimal observable/computed system: reads of the state tree record
dependency edges, writes re-run or invalidate whatever read them.
"""

from statetree.reactive.dep import Dep, untracked
from statetree.reactive.engine import ComputedRef, DefaultEngine, ReactiveEngine
from statetree.reactive.observable import ReactiveDict, ReactiveList, is_observed, observe, to_plain
from statetree.reactive.watcher import Computed, Scheduler, Watcher

__all__ = [
    "Computed",
    "ComputedRef",
    "DefaultEngine",
    "Dep",
    "ReactiveDict",
    "ReactiveEngine",
    "ReactiveList",
    "Scheduler",
    "Watcher",
    "is_observed",
    "observe",
    "to_plain",
    "untracked",
]
