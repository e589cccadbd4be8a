from __future__ import annotations

import logging
from typing import Any

import pytest

from statetree import ModulePathError, ModuleRegistrationError, Store


def _cart_module() -> dict[str, Any]:
    return {
        "namespaced": True,
        "state": {"items": []},
        "mutations": {"add": lambda state, item: state["items"].append(item)},
        "actions": {"add_later": lambda context, item: context.commit("add", item)},
        "getters": {"size": lambda state: len(state["items"])},
    }


def test_register_module_mounts_state_and_handlers() -> None:
    store = Store({"state": {"user": "ann"}})

    store.register_module("cart", _cart_module())
    store.commit("cart/add", "apple")

    assert store.has_module("cart")
    assert store.state["cart"] == {"items": ["apple"]}
    assert store.getters["cart/size"] == 1
    assert store.state["user"] == "ann"


def test_register_nested_module_under_existing_parent() -> None:
    store = Store({"modules": {"shop": {"namespaced": True, "state": {}}}})

    store.register_module(["shop", "cart"], _cart_module())
    store.commit("shop/cart/add", "pear")

    assert store.state["shop"]["cart"]["items"] == ["pear"]
    assert store.module_by_namespace("shop/cart") is store._modules.get(("shop", "cart"))


def test_register_module_under_missing_parent_fails() -> None:
    store = Store()

    with pytest.raises(ModulePathError):
        store.register_module(["nope", "cart"], _cart_module())


def test_register_root_module_is_rejected() -> None:
    store = Store()

    with pytest.raises(ModuleRegistrationError, match="root module"):
        store.register_module([], _cart_module())


def test_register_module_rejects_non_string_path() -> None:
    store = Store()

    with pytest.raises(ModuleRegistrationError):
        store.register_module(42, _cart_module())  # type: ignore[arg-type]


def test_unregister_module_removes_state_and_handlers(caplog: pytest.LogCaptureFixture) -> None:
    store = Store()
    store.register_module("cart", _cart_module())
    store.commit("cart/add", "apple")

    store.unregister_module("cart")

    assert not store.has_module("cart")
    assert "cart" not in store.state
    assert "cart/size" not in store.getters
    with caplog.at_level(logging.ERROR, logger="statetree"):
        store.commit("cart/add", "pear")
    assert "Unknown mutation type: cart/add" in caplog.text


def test_reregistering_starts_from_declared_state() -> None:
    store = Store()
    declaration = _cart_module()

    store.register_module("cart", declaration)
    store.commit("cart/add", "apple")
    store.unregister_module("cart")
    store.register_module("cart", declaration)

    assert store.state["cart"]["items"] == []


def test_unregister_static_module_is_a_warned_noop(caplog: pytest.LogCaptureFixture) -> None:
    store = Store({"modules": {"cart": _cart_module()}})

    with caplog.at_level(logging.WARNING, logger="statetree"):
        store.unregister_module("cart")

    assert store.has_module("cart")
    assert "cart" in store.state
    assert "cannot be unregistered" in caplog.text


def test_unregister_missing_module_raises() -> None:
    store = Store()

    with pytest.raises(ModulePathError):
        store.unregister_module("ghost")


def test_preserve_state_keeps_hydrated_value() -> None:
    store = Store()
    store.replace_state({"cart": {"items": ["restored"]}})

    store.register_module("cart", _cart_module(), preserve_state=True)

    assert store.state["cart"]["items"] == ["restored"]
    assert store.getters["cart/size"] == 1


def test_preserve_state_mounts_declared_state_when_nothing_is_there() -> None:
    store = Store()

    store.register_module("cart", _cart_module(), preserve_state=True)

    assert store.state["cart"] == {"items": []}


def test_module_overriding_state_field_warns(caplog: pytest.LogCaptureFixture) -> None:
    store = Store({"state": {"cart": "plain value"}})

    with caplog.at_level(logging.WARNING, logger="statetree"):
        store.register_module("cart", _cart_module())

    assert store.state["cart"] == {"items": []}
    assert 'State field "cart" was overridden' in caplog.text


def test_module_by_namespace_logs_unknown_namespace(caplog: pytest.LogCaptureFixture) -> None:
    store = Store()

    with caplog.at_level(logging.ERROR, logger="statetree"):
        assert store.module_by_namespace("ghost") is None

    assert "Module namespace not found: ghost/" in caplog.text


@pytest.mark.asyncio
async def test_registered_module_actions_dispatch() -> None:
    store = Store()
    store.register_module("cart", _cart_module())

    await store.dispatch("cart/add_later", "plum")

    assert store.state["cart"]["items"] == ["plum"]


def test_duplicate_namespace_is_logged_and_later_module_wins(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="statetree"):
        store = Store(
            {
                "modules": {
                    "cart": {"namespaced": True, "state": {"owner": "top"}},
                    "shop": {"modules": {"cart": {"namespaced": True, "state": {"owner": "nested"}}}},
                }
            }
        )

    assert "Duplicate namespace cart/ for the namespaced module shop/cart" in caplog.text
    assert store.module_by_namespace("cart") is store._modules.get(("shop", "cart"))
