from __future__ import annotations

import asyncio
from typing import Any

import pytest

from statetree import Store


def _set(state: dict, payload: dict[str, Any]) -> None:
    state.update(payload)


def test_getter_is_memoized_until_a_read_slot_changes() -> None:
    calls: list[int] = []

    def total(state: dict) -> int:
        calls.append(1)
        return state["price"] * state["qty"]

    store = Store(
        {
            "state": {"price": 2, "qty": 3, "label": "cart"},
            "mutations": {"set": _set},
            "getters": {"total": total},
        }
    )

    assert store.getters["total"] == 6
    assert store.getters["total"] == 6
    assert len(calls) == 1

    store.commit("set", {"label": "basket"})
    assert store.getters["total"] == 6
    assert len(calls) == 1

    store.commit("set", {"qty": 4})
    assert store.getters["total"] == 8
    assert len(calls) == 2


def test_getters_receive_local_and_root_arguments() -> None:
    def summary(state: dict, getters: Any, root_state: dict, root_getters: Any) -> tuple[Any, ...]:
        return state["n"], getters["double"], root_state["factor"], root_getters["scaled"]

    store = Store(
        {
            "state": {"factor": 10},
            "getters": {"scaled": lambda state: state["factor"] * 2},
            "modules": {
                "a": {
                    "namespaced": True,
                    "state": {"n": 4},
                    "getters": {"double": lambda state: state["n"] * 2, "summary": summary},
                }
            },
        }
    )

    assert store.getters["a/summary"] == (4, 8, 10, 20)


def test_getter_depending_on_another_getter_follows_its_inputs() -> None:
    store = Store(
        {
            "state": {"items": [1, 2, 3]},
            "mutations": {"push": lambda state, item: state["items"].append(item)},
            "getters": {
                "count": lambda state: len(state["items"]),
                "label": lambda state, getters: f"{getters['count']} items",
            },
        }
    )

    assert store.getters["label"] == "3 items"
    store.commit("push", 4)
    assert store.getters["label"] == "4 items"


def test_non_namespaced_module_getters_are_global() -> None:
    store = Store({"modules": {"a": {"state": {"x": 1}, "getters": {"x_plus": lambda state: state["x"] + 1}}}})

    assert store.getters["x_plus"] == 2
    assert "a/x_plus" not in store.getters


def test_local_getters_strip_namespace() -> None:
    store = Store(
        {
            "modules": {
                "a": {
                    "namespaced": True,
                    "state": {"x": 1},
                    "getters": {"one": lambda state: state["x"], "two": lambda state: state["x"] * 2},
                    "modules": {
                        "b": {"namespaced": True, "getters": {"three": lambda: 3}},
                    },
                }
            }
        }
    )

    local = store._local_getters("a/")
    assert sorted(local) == ["b/three", "one", "two"]
    assert local["two"] == 2
    assert store._local_getters("a/") is local


def test_duplicate_getter_keeps_the_first(caplog: pytest.LogCaptureFixture) -> None:
    store = Store(
        {
            "getters": {"name": lambda: "root"},
            "modules": {"a": {"getters": {"name": lambda: "child"}}},
        }
    )

    assert store.getters["name"] == "root"
    assert "Duplicate getter key: name" in caplog.text


def test_getters_view_is_read_only() -> None:
    store = Store({"getters": {"one": lambda: 1}})

    with pytest.raises(TypeError):
        store.getters["one"] = 2  # type: ignore[index]
    assert dict(store.getters) == {"one": 1}


def test_getter_reading_replaced_state_recomputes() -> None:
    store = Store({"state": {"x": 1}, "getters": {"x": lambda state: state["x"]}})

    assert store.getters["x"] == 1
    store.replace_state({"x": 5})
    assert store.getters["x"] == 5


def test_get_only_falls_back_for_unregistered_getters() -> None:
    store = Store(
        {
            "state": {"x": 1},
            "getters": {"broken": lambda state: state["missing"]},
            "modules": {"a": {"namespaced": True, "getters": {"broken": lambda state: state["missing"]}}},
        }
    )

    assert store.getters.get("absent", "default") == "default"
    with pytest.raises(KeyError, match="missing"):
        store.getters.get("broken", "default")

    local = store._local_getters("a/")
    assert local.get("absent", "default") == "default"
    with pytest.raises(KeyError, match="missing"):
        local.get("broken", "default")


@pytest.mark.asyncio
async def test_superseded_projection_is_torn_down_on_next_tick() -> None:
    store = Store({"state": {"x": 2}, "getters": {"double": lambda state: state["x"] * 2}})
    old = store._projection
    assert old is not None
    old_getters = store.getters

    store.register_module("extra", {"getters": {"triple": lambda state: 3}})

    assert store._projection is not old
    assert not old.destroyed
    assert old_getters["double"] == 4
    assert store.getters["triple"] == 3

    await asyncio.sleep(0)

    assert old.destroyed
    assert store.getters["double"] == 4


def test_superseded_projection_is_torn_down_immediately_without_loop() -> None:
    store = Store({"getters": {"one": lambda: 1}})
    old = store._projection
    assert old is not None

    store.register_module("extra", {"state": {}})

    assert old.destroyed
