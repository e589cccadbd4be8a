from __future__ import annotations

import logging
from typing import Any

import pytest

from statetree import InvalidTypeError, MutationRecord, Store


def _inc(state: dict) -> None:
    state["x"] += 1


def _add(state: dict, payload: dict) -> None:
    state["x"] += payload["amount"]


def _store() -> Store:
    return Store(
        {
            "state": {"count": 0},
            "mutations": {"bump": lambda state: state.update(count=state["count"] + 1)},
            "modules": {
                "a": {
                    "namespaced": True,
                    "state": {"x": 1},
                    "mutations": {"inc": _inc, "add": _add},
                },
            },
        }
    )


def test_commit_namespaced_mutation_updates_module_state() -> None:
    store = _store()

    store.commit("a/inc")

    assert store.state["a"]["x"] == 2


def test_subscribers_observe_post_commit_state() -> None:
    store = _store()
    seen: list[tuple[MutationRecord, int]] = []
    store.subscribe(lambda mutation, state: seen.append((mutation, state["a"]["x"])))

    store.commit("a/add", {"amount": 5})

    assert seen == [(MutationRecord(type="a/add", payload={"amount": 5}), 6)]


def test_object_style_commit_passes_whole_record_as_payload() -> None:
    store = _store()
    payloads: list[Any] = []
    store.subscribe(lambda mutation, _state: payloads.append(mutation.payload))

    store.commit({"type": "a/add", "amount": 3})

    assert store.state["a"]["x"] == 4
    assert payloads == [{"type": "a/add", "amount": 3}]


def test_unknown_mutation_is_logged_and_ignored(caplog: pytest.LogCaptureFixture) -> None:
    store = _store()
    calls: list[str] = []
    store.subscribe(lambda mutation, _state: calls.append(mutation.type))

    with caplog.at_level(logging.ERROR, logger="statetree"):
        store.commit("a/missing")

    assert "Unknown mutation type: a/missing" in caplog.text
    assert calls == []
    assert store.state["a"]["x"] == 1


@pytest.mark.parametrize("bad_type", [None, 42, {"payload": 1}])
def test_non_string_type_is_fatal(bad_type: Any) -> None:
    store = _store()

    with pytest.raises(InvalidTypeError):
        store.commit(bad_type)


def test_silent_option_only_warns(caplog: pytest.LogCaptureFixture) -> None:
    store = _store()
    calls: list[str] = []
    store.subscribe(lambda mutation, _state: calls.append(mutation.type))

    with caplog.at_level(logging.WARNING, logger="statetree"):
        store.commit("bump", None, {"silent": True})

    assert calls == ["bump"]
    assert store.state["count"] == 1
    assert "Silent option has been removed" in caplog.text


def test_handlers_for_shared_type_run_in_registration_order() -> None:
    order: list[str] = []
    store = Store(
        {
            "mutations": {"touch": lambda state: order.append("root")},
            "modules": {
                "first": {"mutations": {"touch": lambda state: order.append("first")}},
                "second": {"mutations": {"touch": lambda state: order.append("second")}},
            },
        }
    )

    store.commit("touch")

    assert order == ["root", "first", "second"]


def test_mutation_receives_its_own_module_state() -> None:
    received: list[Any] = []
    store = Store(
        {
            "modules": {
                "outer": {
                    "state": {"name": "outer"},
                    "modules": {
                        "inner": {
                            "state": {"name": "inner"},
                            "mutations": {"record": lambda state: received.append(state["name"])},
                        }
                    },
                }
            }
        }
    )

    store.commit("record")

    assert received == ["inner"]


def test_unsubscribing_during_notification_does_not_skip_others() -> None:
    store = _store()
    calls: list[str] = []

    def first(_mutation: MutationRecord, _state: Any) -> None:
        calls.append("first")
        unsubscribe_first()

    unsubscribe_first = store.subscribe(first)
    store.subscribe(lambda _mutation, _state: calls.append("second"))

    store.commit("a/inc")
    store.commit("a/inc")

    assert calls == ["first", "second", "second"]


def test_subscribing_twice_registers_once() -> None:
    store = _store()
    calls: list[str] = []

    def listener(mutation: MutationRecord, _state: Any) -> None:
        calls.append(mutation.type)

    unsubscribe = store.subscribe(listener)
    store.subscribe(listener)
    store.commit("a/inc")
    unsubscribe()
    unsubscribe()
    store.commit("a/inc")

    assert calls == ["a/inc"]


def test_committing_flag_is_restored_when_a_mutation_raises() -> None:
    def explode(state: dict) -> None:
        raise RuntimeError("boom")

    store = Store({"mutations": {"explode": explode}})

    with pytest.raises(RuntimeError, match="boom"):
        store.commit("explode")

    assert store._committing is False
