# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_socialite

import asyncio

import pytest

from coreason_socialite.context import (
    ProviderContext,
    flow_scope,
    flush_flow_context,
    get_flow_value,
    set_flow_value,
)


class First(ProviderContext):
    pass


class Second(ProviderContext):
    pass


def test_set_and_get_flow_value() -> None:
    assert get_flow_value(("a", "b")) is None
    assert get_flow_value(("a", "b"), "default") == "default"

    assert set_flow_value(("a", "b"), 42) == 42
    assert get_flow_value(("a", "b")) == 42


def test_flush_flow_context() -> None:
    set_flow_value(("a", "b"), 1)
    flush_flow_context()
    assert get_flow_value(("a", "b")) is None


def test_flow_scope_restores_previous_context() -> None:
    set_flow_value(("a", "b"), "outer")

    with flow_scope():
        assert get_flow_value(("a", "b")) is None
        set_flow_value(("a", "b"), "inner")
        assert get_flow_value(("a", "b")) == "inner"

    assert get_flow_value(("a", "b")) == "outer"


def test_keys_are_namespaced_by_class() -> None:
    first, second = First(), Second()

    first.set_context("scopes", ["x"])

    assert first.get_context("scopes") == ["x"]
    assert second.get_context("scopes") is None
    assert first.get_context_key("scopes") == (f"{__name__}.First", "scopes")


def test_instances_of_same_class_share_flow_values() -> None:
    First().set_context("redirect_url", "https://app.test/cb")
    assert First().get_context("redirect_url") == "https://app.test/cb"


def test_get_or_set_context_calls_factory_once() -> None:
    provider = First()
    calls = []

    def factory() -> list[str]:
        calls.append(1)
        return ["value"]

    assert provider.get_or_set_context("key", factory) == ["value"]
    assert provider.get_or_set_context("key", factory) == ["value"]
    assert len(calls) == 1


def test_get_or_set_context_keeps_stored_none() -> None:
    provider = First()
    provider.set_context("key", None)
    assert provider.get_or_set_context("key", lambda: "created") is None


@pytest.mark.asyncio
async def test_concurrent_tasks_are_isolated() -> None:
    """
    Tasks inheriting the same context must not observe each other's writes.
    """
    provider = First()
    provider.set_context("scopes", ["base"])

    async def flow(scope: str) -> list[str]:
        provider.set_context("scopes", [scope])
        await asyncio.sleep(0)
        return provider.get_context("scopes")  # type: ignore[no-any-return]

    results = await asyncio.gather(*(flow(f"scope-{i}") for i in range(10)))

    assert results == [[f"scope-{i}"] for i in range(10)]
    assert provider.get_context("scopes") == ["base"]
