from __future__ import annotations

import logging
from typing import Any

import pytest

from statetree import StateAssignmentError, Store, StoreConfig

STRICT_MESSAGE = "Do not mutate store state outside mutation handlers."


def _module() -> dict[str, Any]:
    return {
        "state": {"count": 0, "nested": {"flag": False}},
        "mutations": {
            "inc": lambda state: state.update(count=state["count"] + 1),
            "flip": lambda state: state["nested"].update(flag=not state["nested"]["flag"]),
        },
    }


def _strict_errors(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [record for record in caplog.records if record.getMessage() == STRICT_MESSAGE]


def test_direct_write_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    store = Store(_module(), strict=True)

    with caplog.at_level(logging.ERROR, logger="statetree"):
        store.state["count"] = 5

    assert len(_strict_errors(caplog)) == 1
    # The write itself is not blocked.
    assert store.state["count"] == 5


def test_nested_direct_write_is_reported(caplog: pytest.LogCaptureFixture) -> None:
    store = Store(_module(), strict=True)

    with caplog.at_level(logging.ERROR, logger="statetree"):
        store.state["nested"]["flag"] = True

    assert len(_strict_errors(caplog)) == 1


def test_writes_through_mutations_are_allowed(caplog: pytest.LogCaptureFixture) -> None:
    store = Store(_module(), strict=True)

    with caplog.at_level(logging.ERROR, logger="statetree"):
        store.commit("inc")
        store.commit("flip")
        store.replace_state({"count": 9, "nested": {"flag": True}})
        store.register_module("extra", {"state": {"y": 1}})
        store.unregister_module("extra")

    assert _strict_errors(caplog) == []
    assert store.state["count"] == 9


def test_strict_from_config() -> None:
    store = Store(_module(), config=StoreConfig(strict=True))

    assert store.strict is True
    assert store.config.strict is True


def test_strict_argument_overrides_config(caplog: pytest.LogCaptureFixture) -> None:
    store = Store(_module(), strict=False, config=StoreConfig(strict=True))

    with caplog.at_level(logging.ERROR, logger="statetree"):
        store.state["count"] = 3

    assert store.strict is False
    assert _strict_errors(caplog) == []


def test_non_strict_store_does_not_report(caplog: pytest.LogCaptureFixture) -> None:
    store = Store(_module())

    with caplog.at_level(logging.ERROR, logger="statetree"):
        store.state["count"] = 5

    assert _strict_errors(caplog) == []


def test_state_property_cannot_be_assigned() -> None:
    store = Store(_module())

    with pytest.raises(StateAssignmentError, match="replace_state"):
        store.state = {"count": 1}
